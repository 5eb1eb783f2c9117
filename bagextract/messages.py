"""Message types read from and written to bags."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from bagextract.wire import Decoder, Encoder, Time, WireError

_ZERO9 = (0.0,) * 9
_ZERO36 = (0.0,) * 36


@dataclass
class Header:
    seq: int = 0
    stamp: Time = field(default_factory=Time)
    frame_id: str = ""

    @classmethod
    def _read(cls, d: Decoder) -> Header:
        return cls(d.uint32(), d.time(), d.string())

    def _write(self, e: Encoder) -> None:
        e.uint32(self.seq)
        e.time(self.stamp)
        e.string(self.frame_id)


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def _read(cls, d: Decoder) -> Vector3:
        return cls(*d.float64_array(3))

    def _write(self, e: Encoder) -> None:
        e.float64_array((self.x, self.y, self.z))


@dataclass
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def _read(cls, d: Decoder) -> Quaternion:
        return cls(*d.float64_array(4))

    def _write(self, e: Encoder) -> None:
        e.float64_array((self.x, self.y, self.z, self.w))


@dataclass
class Pose:
    position: Vector3 = field(default_factory=Vector3)
    orientation: Quaternion = field(default_factory=Quaternion)

    @classmethod
    def _read(cls, d: Decoder) -> Pose:
        return cls(Vector3._read(d), Quaternion._read(d))

    def _write(self, e: Encoder) -> None:
        self.position._write(e)
        self.orientation._write(e)


@dataclass
class PoseWithCovariance:
    pose: Pose = field(default_factory=Pose)
    covariance: tuple[float, ...] = _ZERO36

    @classmethod
    def _read(cls, d: Decoder) -> PoseWithCovariance:
        return cls(Pose._read(d), d.float64_array(36))

    def _write(self, e: Encoder) -> None:
        self.pose._write(e)
        _fixed(e, self.covariance, 36)


@dataclass
class Twist:
    linear: Vector3 = field(default_factory=Vector3)
    angular: Vector3 = field(default_factory=Vector3)

    @classmethod
    def _read(cls, d: Decoder) -> Twist:
        return cls(Vector3._read(d), Vector3._read(d))

    def _write(self, e: Encoder) -> None:
        self.linear._write(e)
        self.angular._write(e)


@dataclass
class TwistWithCovariance:
    twist: Twist = field(default_factory=Twist)
    covariance: tuple[float, ...] = _ZERO36

    @classmethod
    def _read(cls, d: Decoder) -> TwistWithCovariance:
        return cls(Twist._read(d), d.float64_array(36))

    def _write(self, e: Encoder) -> None:
        self.twist._write(e)
        _fixed(e, self.covariance, 36)


def _fixed(e: Encoder, values, size: int) -> None:
    values = tuple(values)
    if len(values) != size:
        raise WireError(f"expected {size} values, got {len(values)}")
    e.float64_array(values)


@dataclass
class Imu:
    DATATYPE: ClassVar[str] = "sensor_msgs/Imu"
    header: Header = field(default_factory=Header)
    orientation: Quaternion = field(default_factory=Quaternion)
    orientation_covariance: tuple[float, ...] = _ZERO9
    angular_velocity: Vector3 = field(default_factory=Vector3)
    angular_velocity_covariance: tuple[float, ...] = _ZERO9
    linear_acceleration: Vector3 = field(default_factory=Vector3)
    linear_acceleration_covariance: tuple[float, ...] = _ZERO9

    @classmethod
    def _read(cls, d: Decoder) -> Imu:
        return cls(
            Header._read(d),
            Quaternion._read(d), d.float64_array(9),
            Vector3._read(d), d.float64_array(9),
            Vector3._read(d), d.float64_array(9),
        )

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        self.orientation._write(e)
        _fixed(e, self.orientation_covariance, 9)
        self.angular_velocity._write(e)
        _fixed(e, self.angular_velocity_covariance, 9)
        self.linear_acceleration._write(e)
        _fixed(e, self.linear_acceleration_covariance, 9)


@dataclass
class NavSatFix:
    DATATYPE: ClassVar[str] = "sensor_msgs/NavSatFix"
    header: Header = field(default_factory=Header)
    status: int = 0
    service: int = 0
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    position_covariance: tuple[float, ...] = _ZERO9
    position_covariance_type: int = 0

    @classmethod
    def _read(cls, d: Decoder) -> NavSatFix:
        header = Header._read(d)
        status, service = d.int8(), d.uint16()
        lat, lon, alt = d.float64_array(3)
        return cls(header, status, service, lat, lon, alt, d.float64_array(9), d.uint8())

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        e.int8(self.status)
        e.uint16(self.service)
        e.float64_array((self.latitude, self.longitude, self.altitude))
        _fixed(e, self.position_covariance, 9)
        e.uint8(self.position_covariance_type)


@dataclass
class MagneticField:
    DATATYPE: ClassVar[str] = "sensor_msgs/MagneticField"
    header: Header = field(default_factory=Header)
    magnetic_field: Vector3 = field(default_factory=Vector3)
    magnetic_field_covariance: tuple[float, ...] = _ZERO9

    @classmethod
    def _read(cls, d: Decoder) -> MagneticField:
        return cls(Header._read(d), Vector3._read(d), d.float64_array(9))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        self.magnetic_field._write(e)
        _fixed(e, self.magnetic_field_covariance, 9)


@dataclass
class GeoPoint:
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0

    @classmethod
    def _read(cls, d: Decoder) -> GeoPoint:
        return cls(*d.float64_array(3))

    def _write(self, e: Encoder) -> None:
        e.float64_array((self.latitude, self.longitude, self.altitude))


@dataclass
class GeoPointStamped:
    DATATYPE: ClassVar[str] = "geographic_msgs/GeoPointStamped"
    header: Header = field(default_factory=Header)
    position: GeoPoint = field(default_factory=GeoPoint)

    @classmethod
    def _read(cls, d: Decoder) -> GeoPointStamped:
        return cls(Header._read(d), GeoPoint._read(d))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        self.position._write(e)


@dataclass
class Odometry:
    DATATYPE: ClassVar[str] = "nav_msgs/Odometry"
    header: Header = field(default_factory=Header)
    child_frame_id: str = ""
    pose: PoseWithCovariance = field(default_factory=PoseWithCovariance)
    twist: TwistWithCovariance = field(default_factory=TwistWithCovariance)

    @classmethod
    def _read(cls, d: Decoder) -> Odometry:
        return cls(Header._read(d), d.string(), PoseWithCovariance._read(d),
                   TwistWithCovariance._read(d))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        e.string(self.child_frame_id)
        self.pose._write(e)
        self.twist._write(e)


@dataclass
class PoseStamped:
    DATATYPE: ClassVar[str] = "geometry_msgs/PoseStamped"
    header: Header = field(default_factory=Header)
    pose: Pose = field(default_factory=Pose)

    @classmethod
    def _read(cls, d: Decoder) -> PoseStamped:
        return cls(Header._read(d), Pose._read(d))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        self.pose._write(e)


@dataclass
class PoseWithCovarianceStamped:
    DATATYPE: ClassVar[str] = "geometry_msgs/PoseWithCovarianceStamped"
    header: Header = field(default_factory=Header)
    pose: PoseWithCovariance = field(default_factory=PoseWithCovariance)

    @classmethod
    def _read(cls, d: Decoder) -> PoseWithCovarianceStamped:
        return cls(Header._read(d), PoseWithCovariance._read(d))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        self.pose._write(e)


@dataclass
class TwistStamped:
    DATATYPE: ClassVar[str] = "geometry_msgs/TwistStamped"
    header: Header = field(default_factory=Header)
    twist: Twist = field(default_factory=Twist)

    @classmethod
    def _read(cls, d: Decoder) -> TwistStamped:
        return cls(Header._read(d), Twist._read(d))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        self.twist._write(e)


_POINT_FORMATS = {1: "b", 2: "B", 3: "h", 4: "H", 5: "i", 6: "I", 7: "f", 8: "d"}


@dataclass
class PointField:
    name: str = ""
    offset: int = 0
    datatype: int = 8
    count: int = 1

    @classmethod
    def _read(cls, d: Decoder) -> PointField:
        return cls(d.string(), d.uint32(), d.uint8(), d.uint32())

    def _write(self, e: Encoder) -> None:
        e.string(self.name)
        e.uint32(self.offset)
        e.uint8(self.datatype)
        e.uint32(self.count)


@dataclass
class PointCloud2:
    DATATYPE: ClassVar[str] = "sensor_msgs/PointCloud2"
    header: Header = field(default_factory=Header)
    height: int = 1
    width: int = 0
    fields: list[PointField] = field(default_factory=list)
    is_bigendian: bool = False
    point_step: int = 0
    row_step: int = 0
    data: bytes = b""
    is_dense: bool = True

    @classmethod
    def _read(cls, d: Decoder) -> PointCloud2:
        header = Header._read(d)
        height, width = d.uint32(), d.uint32()
        fields = [PointField._read(d) for _ in range(d.uint32())]
        return cls(header, height, width, fields, bool(d.uint8()), d.uint32(),
                   d.uint32(), d.blob(), bool(d.uint8()))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        e.uint32(self.height)
        e.uint32(self.width)
        e.uint32(len(self.fields))
        for f in self.fields:
            f._write(e)
        e.uint8(int(self.is_bigendian))
        e.uint32(self.point_step)
        e.uint32(self.row_step)
        e.blob(self.data)
        e.uint8(int(self.is_dense))

    def field_values(self, name: str) -> list[float]:
        """Return the named field's value for every point in the cloud."""
        spec = next((f for f in self.fields if f.name == name), None)
        if spec is None:
            raise KeyError(f"point cloud has no field '{name}'")
        code = _POINT_FORMATS.get(spec.datatype)
        if code is None:
            raise WireError(f"unknown point field datatype {spec.datatype}")
        if self.point_step <= 0:
            return []
        fmt = (">" if self.is_bigendian else "<") + code
        starts = range(0, len(self.data) - self.point_step + 1, self.point_step)
        try:
            return [struct.unpack_from(fmt, self.data, s + spec.offset)[0] for s in starts]
        except struct.error as exc:
            raise WireError(str(exc)) from exc


@dataclass
class Transform:
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)

    @classmethod
    def _read(cls, d: Decoder) -> Transform:
        return cls(Vector3._read(d), Quaternion._read(d))

    def _write(self, e: Encoder) -> None:
        self.translation._write(e)
        self.rotation._write(e)


@dataclass
class TransformStamped:
    DATATYPE: ClassVar[str] = "geometry_msgs/TransformStamped"
    header: Header = field(default_factory=Header)
    child_frame_id: str = ""
    transform: Transform = field(default_factory=Transform)

    @classmethod
    def _read(cls, d: Decoder) -> TransformStamped:
        return cls(Header._read(d), d.string(), Transform._read(d))

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        e.string(self.child_frame_id)
        self.transform._write(e)


@dataclass
class TFMessage:
    DATATYPE: ClassVar[str] = "tf2_msgs/TFMessage"
    transforms: list[TransformStamped] = field(default_factory=list)

    @classmethod
    def _read(cls, d: Decoder) -> TFMessage:
        return cls([TransformStamped._read(d) for _ in range(d.uint32())])

    def _write(self, e: Encoder) -> None:
        e.uint32(len(self.transforms))
        for t in self.transforms:
            t._write(e)


@dataclass
class Image:
    DATATYPE: ClassVar[str] = "sensor_msgs/Image"
    header: Header = field(default_factory=Header)
    height: int = 0
    width: int = 0
    encoding: str = ""
    is_bigendian: bool = False
    step: int = 0
    data: bytes = b""

    @classmethod
    def _read(cls, d: Decoder) -> Image:
        return cls(Header._read(d), d.uint32(), d.uint32(), d.string(),
                   bool(d.uint8()), d.uint32(), d.blob())

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        e.uint32(self.height)
        e.uint32(self.width)
        e.string(self.encoding)
        e.uint8(int(self.is_bigendian))
        e.uint32(self.step)
        e.blob(self.data)


@dataclass
class CompressedImage:
    DATATYPE: ClassVar[str] = "sensor_msgs/CompressedImage"
    header: Header = field(default_factory=Header)
    format: str = ""
    data: bytes = b""

    @classmethod
    def _read(cls, d: Decoder) -> CompressedImage:
        return cls(Header._read(d), d.string(), d.blob())

    def _write(self, e: Encoder) -> None:
        self.header._write(e)
        e.string(self.format)
        e.blob(self.data)


@dataclass
class Float64:
    DATATYPE: ClassVar[str] = "std_msgs/Float64"
    data: float = 0.0

    @classmethod
    def _read(cls, d: Decoder) -> Float64:
        return cls(d.float64())

    def _write(self, e: Encoder) -> None:
        e.float64(self.data)


@dataclass
class UInt32:
    DATATYPE: ClassVar[str] = "std_msgs/UInt32"
    data: int = 0

    @classmethod
    def _read(cls, d: Decoder) -> UInt32:
        return cls(d.uint32())

    def _write(self, e: Encoder) -> None:
        e.uint32(self.data)


_TYPES = {
    cls.DATATYPE: cls
    for cls in (
        Imu, NavSatFix, MagneticField, GeoPointStamped, Odometry, PoseStamped,
        PoseWithCovarianceStamped, TwistStamped, PointCloud2, TransformStamped,
        TFMessage, Image, CompressedImage, Float64, UInt32,
    )
}


def decode(datatype: str, data: bytes):
    """Deserialise a message of the named type."""
    try:
        cls = _TYPES[datatype]
    except KeyError:
        raise ValueError(f"unsupported message type '{datatype}'") from None
    return cls._read(Decoder(data))


def encode(message) -> bytes:
    """Serialise a message to bytes."""
    enc = Encoder()
    message._write(enc)
    return enc.getvalue()