import struct

import pytest

from bagextract.bag import BagWriter, Connection, Record
from bagextract.messages import (
    Header,
    Odometry,
    PointCloud2,
    PointField,
    Pose,
    PoseStamped,
    PoseWithCovariance,
    PoseWithCovarianceStamped,
    Quaternion,
    Twist,
    TwistStamped,
    TwistWithCovariance,
    Vector3,
    encode,
)
from bagextract.poses import (
    POINT_FIELDS,
    main_odometry,
    main_pc2,
    main_posestamped,
    main_posewithcovariancestamped,
    main_twiststamped,
    odometry_lines,
    pc2_lines,
    posestamped_lines,
    posewithcovariance_lines,
    twiststamped_lines,
)
from bagextract.textfmt import format_stamp
from bagextract.wire import Time


def _pair(msg, time=Time(7, 8), topic="/t"):
    conn = Connection(id=0, topic=topic, datatype=msg.DATATYPE)
    return Record(topic, time, conn, encode(msg)), msg


def _cloud(points, stamp=Time(3, 4), names=POINT_FIELDS):
    fields = [PointField(name, 8 * i, 8, 1) for i, name in enumerate(names)]
    step = 8 * len(names)
    data = b"".join(struct.pack(f"<{len(names)}d", *p) for p in points)
    return PointCloud2(
        header=Header(stamp=stamp), height=1, width=len(points), fields=fields,
        point_step=step, row_step=step * len(points), data=data,
    )


def _write_bag(path, topic, messages):
    with BagWriter(path) as bag:
        for i, msg in enumerate(messages):
            conn = Connection(id=0, topic=topic, datatype=msg.DATATYPE)
            bag.write(topic, Time(10 + i, 0), conn, encode(msg))


def test_posestamped_line_pinned():
    msg = PoseStamped(Header(stamp=Time(1, 5)),
                      Pose(Vector3(1.5, -2.0, 0.25), Quaternion()))
    lines = list(posestamped_lines([_pair(msg)]))
    assert lines[0] == "nsec\tpos_x\tpos_y\tpos_z\tquat_x\tquat_y\tquat_z\tquat_w"
    assert lines[1] == "000000001000000005\t1.5\t-2\t0.25\t0\t0\t0\t1"


def test_odometry_columns_and_covariances():
    pose_cov = tuple(float(i) for i in range(36))
    twist_cov = tuple(float(-i) for i in range(36))
    msg = Odometry(
        Header(stamp=Time(2, 3)), "base",
        PoseWithCovariance(Pose(Vector3(1.0, 2.0, 3.0), Quaternion(0.0, 0.0, 0.0, 1.0)), pose_cov),
        TwistWithCovariance(Twist(Vector3(4.0, 5.0, 6.0), Vector3(7.0, 8.0, 9.0)), twist_cov),
    )
    header, line = odometry_lines([_pair(msg)])
    assert header == (
        "nsec\tpos_x\tpos_y\tpos_z\tquat_x\tquat_y\tquat_z\tquat_w\tpose_cov"
        "\tlin_x\tlin_y\tlin_z\tang_x\tang_y\tang_z\ttwist_cov"
    )
    cols = line.split("\t")
    assert len(cols) == len(header.split("\t"))
    assert cols[0] == format_stamp(2, 3)
    assert [float(c) for c in cols[1:8]] == [1.0, 2.0, 3.0, 0.0, 0.0, 0.0, 1.0]
    assert tuple(float(v) for v in cols[8].split(",")) == pose_cov
    assert [float(c) for c in cols[9:15]] == [4.0, 5.0, 6.0, 7.0, 8.0, 9.0]
    assert tuple(float(v) for v in cols[15].split(",")) == twist_cov


def test_posewithcovariance_round_trip():
    cov = tuple(i * 0.5 for i in range(36))
    msg = PoseWithCovarianceStamped(
        Header(stamp=Time(9, 10)),
        PoseWithCovariance(Pose(Vector3(-1.0, 0.5, 2.0), Quaternion(0.0, 1.0, 0.0, 0.0)), cov),
    )
    header, line = posewithcovariance_lines([_pair(msg)])
    assert header.endswith("\tpose_cov")
    cols = line.split("\t")
    assert len(cols) == 9
    assert cols[0] == format_stamp(9, 10)
    assert [float(c) for c in cols[1:8]] == [-1.0, 0.5, 2.0, 0.0, 1.0, 0.0, 0.0]
    assert tuple(float(v) for v in cols[8].split(",")) == cov


def test_twiststamped_uses_header_stamp():
    msg = TwistStamped(Header(stamp=Time(11, 12)),
                       Twist(Vector3(0.1, 0.2, 0.3), Vector3(-0.1, -0.2, -0.3)))
    header, line = twiststamped_lines([_pair(msg, time=Time(99, 99))])
    assert header == "nsec\tlin_x\tlin_y\tlin_z\tang_x\tang_y\tang_z"
    cols = line.split("\t")
    assert cols[0] == format_stamp(11, 12)
    assert [float(c) for c in cols[1:]] == [0.1, 0.2, 0.3, -0.1, -0.2, -0.3]


def test_pc2_one_line_per_point():
    points = [(1.0, 2.0, 0.0, 0.0, 0.0, 1.0, 5.0), (3.0, 4.0, 0.5, 0.5, 0.5, 0.5, 6.0)]
    lines = list(pc2_lines([_pair(_cloud(points), time=Time(20, 21))]))
    assert lines[0] == "recieve\ttimestamp\tx\ty\txq\tyq\tzq\twq\tdist"
    assert len(lines) == 1 + len(points)
    for line, point in zip(lines[1:], points):
        cols = line.split("\t")
        assert cols[0] == format_stamp(20, 21)
        assert cols[1] == format_stamp(3, 4)
        assert tuple(float(c) for c in cols[2:]) == point


def test_pc2_empty_cloud_yields_only_header():
    lines = list(pc2_lines([_pair(_cloud([]))]))
    assert lines == ["recieve\ttimestamp\tx\ty\txq\tyq\tzq\twq\tdist"]


def test_pc2_missing_field_raises():
    cloud = _cloud([(1.0, 2.0)], names=("x", "y"))
    with pytest.raises(KeyError):
        list(pc2_lines([_pair(cloud)]))


def test_main_pc2_usage_exits_with_one(capsys):
    assert main_pc2([]) == 1
    assert capsys.readouterr().out.startswith("extract_pc2 [options] bag topic")


def test_main_posestamped_help_exits_with_zero(capsys):
    assert main_posestamped(["--help"]) == 0
    assert "extract_posestamped [options] bag topic" in capsys.readouterr().out


def test_main_odometry_end_to_end(tmp_path, capsys):
    path = tmp_path / "odom.bag"
    msgs = [Odometry(Header(stamp=Time(1, i)), "base") for i in range(3)]
    _write_bag(path, "/odom", msgs)
    assert main_odometry([str(path), "/odom"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 4
    assert [line.split("\t")[0] for line in out[1:]] == [format_stamp(1, i) for i in range(3)]


def test_main_pc2_end_to_end(tmp_path, capsys):
    path = tmp_path / "cloud.bag"
    _write_bag(path, "/cloud", [_cloud([(1.0, 2.0, 0.0, 0.0, 0.0, 1.0, 3.0)])])
    assert main_pc2([str(path), "/cloud"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
    assert out[1].split("\t")[0] == format_stamp(10, 0)


def test_main_twiststamped_wrong_type(tmp_path, capsys):
    path = tmp_path / "pose.bag"
    _write_bag(path, "/pose", [PoseStamped()])
    assert main_twiststamped([str(path), "/pose"]) == 1
    assert "geometry_msgs/PoseStamped" in capsys.readouterr().err


def test_main_posewithcovariance_missing_bag(tmp_path, capsys):
    assert main_posewithcovariancestamped([str(tmp_path / "none.bag"), "/x"]) == 1
    assert "extract_posewithcovariancestamped" in capsys.readouterr().err