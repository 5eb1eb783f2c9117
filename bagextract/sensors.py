"""Tab-separated extractors for sensor and scalar topics."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator, Sequence

from bagextract.bag import BagError, Record
from bagextract.cli import UsageRequested, parse_arguments, topic_records
from bagextract.messages import (
    Float64,
    GeoPointStamped,
    Imu,
    MagneticField,
    NavSatFix,
    UInt32,
)
from bagextract.textfmt import format_covariance, format_number, format_stamp
from bagextract.wire import Time

GPS_PRECISION = 9

_POSITIONALS = (("bag", "BAG-file"), ("topic", "topic name"))
_NOSTAMP = ("nostamp", "use bag stamp instead of message stamp")

Pairs = Iterable[tuple[Record, object]]


def _stamp(time: Time) -> str:
    return format_stamp(time.sec, time.nsec)


def _row(stamp: Time, *columns: str) -> str:
    return "\t".join((_stamp(stamp), *columns))


def imu_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per Imu message, stamped by message header."""
    yield (
        "nsec\tquat_x\tquat_y\tquat_z\tquat_w"
        "\taccel_x\taccel_y\taccel_z\tangular_x\tangular_y\tangular_z"
    )
    for _, msg in records:
        o, a, w = msg.orientation, msg.linear_acceleration, msg.angular_velocity
        values = (o.x, o.y, o.z, o.w, a.x, a.y, a.z, w.x, w.y, w.z)
        yield _row(msg.header.stamp, *(format_number(v) for v in values))


def gps_lines(records: Pairs, nostamp: bool = False) -> Iterator[str]:
    """Yield the header and one line per NavSatFix message.

    With nostamp the bag receive time is used instead of the header stamp.
    """
    yield "nsec\tlat\tlon\talt\tcovariance"
    for record, msg in records:
        stamp = record.time if nostamp else msg.header.stamp
        yield _row(
            stamp,
            format_number(msg.latitude, GPS_PRECISION),
            format_number(msg.longitude, GPS_PRECISION),
            format_number(msg.altitude, GPS_PRECISION),
            format_covariance(msg.position_covariance, GPS_PRECISION),
        )


def compass_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per MagneticField message."""
    yield "nsec\tmag_x\tmag_y\tmag_z\tcovariance"
    for _, msg in records:
        m = msg.magnetic_field
        yield _row(
            msg.header.stamp,
            format_number(m.x),
            format_number(m.y),
            format_number(m.z),
            format_covariance(msg.magnetic_field_covariance),
        )


def float64_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per Float64 message, stamped by receive time."""
    yield "nsec\tdata"
    for record, msg in records:
        yield _row(record.time, format_number(msg.data))


def uint32_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per UInt32 message, stamped by receive time."""
    yield "nsec\tdata"
    for record, msg in records:
        yield _row(record.time, str(msg.data))


def geopoint_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per GeoPointStamped message."""
    yield "nsec\tlat\tlon\talt"
    for _, msg in records:
        p = msg.position
        yield _row(
            msg.header.stamp,
            format_number(p.latitude),
            format_number(p.longitude),
            format_number(p.altitude),
        )


def _run(
    prog: str,
    datatype: str,
    argv: Sequence[str] | None,
    render: Callable[[Pairs, dict], Iterable[str]],
    switches: Sequence[tuple[str, str]] = (),
) -> int:
    try:
        args = parse_arguments(prog, _POSITIONALS, argv, switches)
    except UsageRequested as exc:
        if exc.reason:
            print(f"{prog}: {exc.reason}", file=sys.stderr)
            sys.stdout.write(exc.usage)
            return 1
        sys.stdout.write(exc.usage)
        return 0
    try:
        lines = list(render(topic_records(args["bag"], args["topic"], datatype), args))
    except BagError as exc:
        print(f"{prog}: {exc}", file=sys.stderr)
        return 1
    for line in lines:
        print(line)
    return 0


def main_imu(argv: Sequence[str] | None = None) -> int:
    return _run("extract_imu", Imu.DATATYPE, argv, lambda r, _: imu_lines(r))


def main_gps(argv: Sequence[str] | None = None) -> int:
    return _run(
        "extract_gps",
        NavSatFix.DATATYPE,
        argv,
        lambda r, args: gps_lines(r, args["nostamp"]),
        switches=(_NOSTAMP,),
    )


def main_compass(argv: Sequence[str] | None = None) -> int:
    return _run(
        "extract_compass", MagneticField.DATATYPE, argv, lambda r, _: compass_lines(r)
    )


def main_float64(argv: Sequence[str] | None = None) -> int:
    return _run("extract_float64", Float64.DATATYPE, argv, lambda r, _: float64_lines(r))


def main_uint32(argv: Sequence[str] | None = None) -> int:
    return _run("extract_uint32", UInt32.DATATYPE, argv, lambda r, _: uint32_lines(r))


def main_geopointstamped(argv: Sequence[str] | None = None) -> int:
    return _run(
        "extract_geopointstamped",
        GeoPointStamped.DATATYPE,
        argv,
        lambda r, _: geopoint_lines(r),
    )