import pytest

from bagextract.textfmt import format_covariance, format_number, format_stamp


def test_stamp_padding():
    assert format_stamp(12, 34) == "000000012000000034"


@pytest.mark.parametrize("sec,nsec", [(0, 0), (1, 999999999), (123456789, 5)])
def test_stamp_length_and_parts(sec, nsec):
    text = format_stamp(sec, nsec)
    assert len(text) == 18
    assert int(text[:9]) == sec
    assert int(text[9:]) == nsec


def test_number_drops_trailing_zeros():
    assert format_number(1.0) == "1"


def test_number_precision_limits_digits():
    short = format_number(0.123456789, 6)
    longer = format_number(0.123456789, 9)
    assert longer == "0.123456789"
    assert len(short) < len(longer)
    assert float(short) == pytest.approx(0.123457)


def test_covariance_joined():
    assert format_covariance([1.5, 2.0]) == "1.5,2"


def test_covariance_count():
    text = format_covariance([0.0] * 9)
    assert text.split(",") == ["0"] * 9