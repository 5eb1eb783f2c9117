import pytest

from bagextract.wire import Decoder, Encoder, Time, WireError


def test_uint32_bytes():
    enc = Encoder()
    enc.uint32(1)
    assert enc.getvalue() == b"\x01\x00\x00\x00"


def test_string_is_length_prefixed():
    enc = Encoder()
    enc.string("ab")
    assert enc.getvalue() == b"\x02\x00\x00\x00ab"


def test_round_trip_all_kinds():
    enc = Encoder()
    enc.uint8(200)
    enc.int8(-3)
    enc.uint16(60000)
    enc.uint32(4_000_000_000)
    enc.int32(-7)
    enc.float64(2.5)
    enc.float64_array([1.0, -1.0, 0.25])
    enc.time(Time(10, 20))
    enc.string("frame")
    enc.blob(b"\x00\xff")
    dec = Decoder(enc.getvalue())
    assert dec.uint8() == 200
    assert dec.int8() == -3
    assert dec.uint16() == 60000
    assert dec.uint32() == 4_000_000_000
    assert dec.int32() == -7
    assert dec.float64() == 2.5
    assert dec.float64_array(3) == (1.0, -1.0, 0.25)
    assert dec.time() == Time(10, 20)
    assert dec.string() == "frame"
    assert dec.blob() == b"\x00\xff"
    assert dec.remaining() == 0


def test_truncated_raises():
    with pytest.raises(WireError):
        Decoder(b"\x01\x02").uint32()


def test_blob_length_beyond_data():
    enc = Encoder()
    enc.uint32(100)
    with pytest.raises(WireError):
        Decoder(enc.getvalue()).blob()


def test_out_of_range_raises():
    with pytest.raises(WireError):
        Encoder().uint8(300)


def test_time_ordering():
    assert Time(1, 5) < Time(2, 0)
    assert Time(1, 5) > Time(1, 4)
    assert Time(2, 3).to_nsec() == 2_000_000_003