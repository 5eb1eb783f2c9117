"""Little-endian serialisation primitives for bag records and messages."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass


class WireError(ValueError):
    """Raised when serialised data is truncated or malformed."""


@dataclass(frozen=True, order=True)
class Time:
    """A timestamp split into seconds and nanoseconds."""

    sec: int = 0
    nsec: int = 0

    def to_nsec(self) -> int:
        return self.sec * 1_000_000_000 + self.nsec


class Decoder:
    """Reads primitive values from a byte buffer in sequence."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._pos = 0

    def _unpack(self, fmt: str):
        size = struct.calcsize(fmt)
        chunk = self._take(size)
        return struct.unpack(fmt, chunk)

    def _take(self, size: int) -> bytes:
        if size < 0 or self._pos + size > len(self._data):
            raise WireError(
                f"need {size} bytes at offset {self._pos}, only {self.remaining()} left"
            )
        chunk = bytes(self._data[self._pos:self._pos + size])
        self._pos += size
        return chunk

    def uint8(self) -> int:
        return self._unpack("<B")[0]

    def int8(self) -> int:
        return self._unpack("<b")[0]

    def uint16(self) -> int:
        return self._unpack("<H")[0]

    def uint32(self) -> int:
        return self._unpack("<I")[0]

    def int32(self) -> int:
        return self._unpack("<i")[0]

    def float64(self) -> float:
        return self._unpack("<d")[0]

    def float64_array(self, count: int) -> tuple[float, ...]:
        return self._unpack(f"<{count}d")

    def time(self) -> Time:
        sec, nsec = self._unpack("<II")
        return Time(sec, nsec)

    def string(self) -> str:
        return self.blob().decode("utf-8", errors="replace")

    def blob(self) -> bytes:
        return self._take(self.uint32())

    def remaining(self) -> int:
        return len(self._data) - self._pos


class Encoder:
    """Accumulates primitive values into a byte buffer."""

    def __init__(self) -> None:
        self._parts: list[bytes] = []

    def _pack(self, fmt: str, *values) -> None:
        try:
            self._parts.append(struct.pack(fmt, *values))
        except struct.error as exc:
            raise WireError(str(exc)) from exc

    def uint8(self, value: int) -> None:
        self._pack("<B", value)

    def int8(self, value: int) -> None:
        self._pack("<b", value)

    def uint16(self, value: int) -> None:
        self._pack("<H", value)

    def uint32(self, value: int) -> None:
        self._pack("<I", value)

    def int32(self, value: int) -> None:
        self._pack("<i", value)

    def float64(self, value: float) -> None:
        self._pack("<d", value)

    def float64_array(self, values: Iterable[float]) -> None:
        values = tuple(values)
        self._pack(f"<{len(values)}d", *values)

    def time(self, value: Time) -> None:
        self._pack("<II", value.sec, value.nsec)

    def string(self, value: str) -> None:
        self.blob(value.encode("utf-8"))

    def blob(self, value: bytes) -> None:
        self.uint32(len(value))
        self._parts.append(bytes(value))

    def getvalue(self) -> bytes:
        return b"".join(self._parts)