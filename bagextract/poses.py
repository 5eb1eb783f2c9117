"""Tab-separated extractors for pose, twist, odometry and point-cloud topics."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator, Sequence

from bagextract.bag import BagError, Record
from bagextract.cli import UsageRequested, parse_arguments, topic_records
from bagextract.messages import (
    Odometry,
    PointCloud2,
    Pose,
    PoseStamped,
    PoseWithCovarianceStamped,
    Twist,
    TwistStamped,
)
from bagextract.textfmt import format_covariance, format_number, format_stamp
from bagextract.wire import Time, WireError

POINT_FIELDS = ("x", "y", "xq", "yq", "zq", "wq", "dist")

_POSITIONALS = (("bag", "BAG-file"), ("topic", "topic name"))

_POSE_COLUMNS = "\tpos_x\tpos_y\tpos_z\tquat_x\tquat_y\tquat_z\tquat_w"
_TWIST_COLUMNS = "\tlin_x\tlin_y\tlin_z\tang_x\tang_y\tang_z"

Pairs = Iterable[tuple[Record, object]]


def _stamp(time: Time) -> str:
    return format_stamp(time.sec, time.nsec)


def _pose_columns(pose: Pose) -> list[str]:
    p, q = pose.position, pose.orientation
    return [format_number(v) for v in (p.x, p.y, p.z, q.x, q.y, q.z, q.w)]


def _twist_columns(twist: Twist) -> list[str]:
    lin, ang = twist.linear, twist.angular
    return [format_number(v) for v in (lin.x, lin.y, lin.z, ang.x, ang.y, ang.z)]


def odometry_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per Odometry message, stamped by message header."""
    yield "nsec" + _POSE_COLUMNS + "\tpose_cov" + _TWIST_COLUMNS + "\ttwist_cov"
    for _, msg in records:
        yield "\t".join((
            _stamp(msg.header.stamp),
            *_pose_columns(msg.pose.pose),
            format_covariance(msg.pose.covariance),
            *_twist_columns(msg.twist.twist),
            format_covariance(msg.twist.covariance),
        ))


def posestamped_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per PoseStamped message."""
    yield "nsec" + _POSE_COLUMNS
    for _, msg in records:
        yield "\t".join((_stamp(msg.header.stamp), *_pose_columns(msg.pose)))


def posewithcovariance_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per PoseWithCovarianceStamped message."""
    yield "nsec" + _POSE_COLUMNS + "\tpose_cov"
    for _, msg in records:
        yield "\t".join((
            _stamp(msg.header.stamp),
            *_pose_columns(msg.pose.pose),
            format_covariance(msg.pose.covariance),
        ))


def twiststamped_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per TwistStamped message."""
    yield "nsec" + _TWIST_COLUMNS
    for _, msg in records:
        yield "\t".join((_stamp(msg.header.stamp), *_twist_columns(msg.twist)))


def pc2_lines(records: Pairs) -> Iterator[str]:
    """Yield the header and one line per point of every PointCloud2 message.

    Each line carries the receive time, the header stamp and the point's
    x, y, xq, yq, zq, wq and dist fields. A missing field raises KeyError.
    """
    yield "recieve\ttimestamp\tx\ty\txq\tyq\tzq\twq\tdist"
    for record, msg in records:
        columns = [msg.field_values(name) for name in POINT_FIELDS]
        prefix = (_stamp(record.time), _stamp(msg.header.stamp))
        for point in zip(*columns):
            yield "\t".join((*prefix, *(format_number(v) for v in point)))


def _run(
    prog: str,
    datatype: str,
    argv: Sequence[str] | None,
    render: Callable[[Pairs], Iterable[str]],
    usage_status: int = 0,
) -> int:
    try:
        args = parse_arguments(prog, _POSITIONALS, argv)
    except UsageRequested as exc:
        if exc.reason:
            print(f"{prog}: {exc.reason}", file=sys.stderr)
            sys.stdout.write(exc.usage)
            return 1
        sys.stdout.write(exc.usage)
        return usage_status
    try:
        lines = list(render(topic_records(args["bag"], args["topic"], datatype)))
    except (BagError, WireError) as exc:
        print(f"{prog}: {exc}", file=sys.stderr)
        return 1
    except KeyError as exc:
        print(f"{prog}: {exc.args[0] if exc.args else exc}", file=sys.stderr)
        return 1
    for line in lines:
        print(line)
    return 0


def main_odometry(argv: Sequence[str] | None = None) -> int:
    return _run("extract_odometry", Odometry.DATATYPE, argv, odometry_lines)


def main_posestamped(argv: Sequence[str] | None = None) -> int:
    return _run("extract_posestamped", PoseStamped.DATATYPE, argv, posestamped_lines)


def main_posewithcovariancestamped(argv: Sequence[str] | None = None) -> int:
    return _run(
        "extract_posewithcovariancestamped",
        PoseWithCovarianceStamped.DATATYPE,
        argv,
        posewithcovariance_lines,
    )


def main_twiststamped(argv: Sequence[str] | None = None) -> int:
    return _run("extract_twiststamped", TwistStamped.DATATYPE, argv, twiststamped_lines)


def main_pc2(argv: Sequence[str] | None = None) -> int:
    return _run("extract_pc2", PointCloud2.DATATYPE, argv, pc2_lines, usage_status=1)