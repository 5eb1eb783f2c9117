import struct

import pytest

from bagextract.messages import (
    CompressedImage, Float64, GeoPoint, GeoPointStamped, Header, Image, Imu,
    MagneticField, NavSatFix, Odometry, PointCloud2, PointField, Pose,
    PoseStamped, PoseWithCovariance, PoseWithCovarianceStamped, Quaternion,
    TFMessage, Transform, TransformStamped, Twist, TwistStamped,
    TwistWithCovariance, UInt32, Vector3, decode, encode,
)
from bagextract.wire import Time, WireError

HDR = Header(7, Time(100, 200), "base")


@pytest.mark.parametrize("message", [
    Imu(HDR, Quaternion(0.1, 0.2, 0.3, 0.9), tuple(range(9)), Vector3(1, 2, 3),
        (0.5,) * 9, Vector3(4, 5, 6), (1.5,) * 9),
    NavSatFix(HDR, -1, 2, 48.1, 11.5, 500.0, tuple(float(i) for i in range(9)), 2),
    MagneticField(HDR, Vector3(0.1, 0.2, 0.3), (2.0,) * 9),
    GeoPointStamped(HDR, GeoPoint(1.0, 2.0, 3.0)),
    Odometry(HDR, "child", PoseWithCovariance(Pose(Vector3(1, 2, 3)), (0.25,) * 36),
             TwistWithCovariance(Twist(Vector3(1, 0, 0), Vector3(0, 0, 1)), (3.0,) * 36)),
    PoseStamped(HDR, Pose(Vector3(1, 1, 1), Quaternion(0, 0, 1, 0))),
    PoseWithCovarianceStamped(HDR, PoseWithCovariance(Pose(), (1.0,) * 36)),
    TwistStamped(HDR, Twist(Vector3(1, 2, 3), Vector3(4, 5, 6))),
    TFMessage([TransformStamped(HDR, "a", Transform(Vector3(1, 2, 3))),
               TransformStamped(HDR, "b")]),
    Image(HDR, 2, 3, "mono8", False, 3, bytes(range(6))),
    CompressedImage(HDR, "png", b"\x89PNG"),
    Float64(2.75),
    UInt32(123456),
])
def test_round_trip(message):
    assert decode(type(message).DATATYPE, encode(message)) == message


def test_float64_bytes():
    assert encode(Float64(1.0)) == struct.pack("<d", 1.0)


def test_unknown_datatype():
    with pytest.raises(ValueError):
        decode("std_msgs/String", b"")


def test_truncated_message():
    data = encode(PoseStamped(HDR))
    with pytest.raises(WireError):
        decode(PoseStamped.DATATYPE, data[:-4])


def test_wrong_covariance_size():
    with pytest.raises(WireError):
        encode(MagneticField(HDR, Vector3(), (1.0, 2.0)))


def _cloud(big=False):
    order = ">" if big else "<"
    points = [(1.0, 2.0), (3.0, 4.0), (5.0, 6.0)]
    data = b"".join(struct.pack(order + "dd", *p) for p in points)
    fields = [PointField("x", 0, 8, 1), PointField("y", 8, 8, 1)]
    return PointCloud2(HDR, 1, 3, fields, big, 16, 48, data, True)


@pytest.mark.parametrize("big", [False, True])
def test_field_values(big):
    cloud = _cloud(big)
    assert cloud.field_values("x") == [1.0, 3.0, 5.0]
    assert cloud.field_values("y") == [2.0, 4.0, 6.0]


def test_field_values_missing_field():
    with pytest.raises(KeyError):
        _cloud().field_values("dist")


def test_cloud_round_trip():
    cloud = _cloud()
    again = decode(PointCloud2.DATATYPE, encode(cloud))
    assert again == cloud
    assert again.field_values("x") == cloud.field_values("x")