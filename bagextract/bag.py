"""Reading and writing of version 2.0 bag files."""

from __future__ import annotations

import bz2
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from bagextract.wire import Time

MAGIC = b"#ROSBAG V2.0\n"
BAG_HEADER_SIZE = 4096

OP_MESSAGE = 0x02
OP_BAG_HEADER = 0x03
OP_INDEX = 0x04
OP_CHUNK = 0x05
OP_CHUNK_INFO = 0x06
OP_CONNECTION = 0x07


class BagError(Exception):
    """Raised for unreadable or malformed bag files."""


@dataclass(frozen=True)
class Connection:
    """A topic connection: its type and full connection header."""

    id: int
    topic: str
    datatype: str
    md5sum: str = "*"
    message_definition: str = ""
    header: dict[str, bytes] = field(default_factory=dict, compare=False, hash=False)

    def header_fields(self) -> dict[str, bytes]:
        fields = dict(self.header)
        fields["topic"] = self.topic.encode()
        fields["type"] = self.datatype.encode()
        fields["md5sum"] = self.md5sum.encode()
        fields["message_definition"] = self.message_definition.encode()
        return fields


@dataclass(frozen=True)
class Record:
    """One stored message with its receive time and connection."""

    topic: str
    time: Time
    connection: Connection
    data: bytes


def _parse_fields(buf: bytes) -> dict[str, bytes]:
    fields: dict[str, bytes] = {}
    pos = 0
    while pos < len(buf):
        if pos + 4 > len(buf):
            raise BagError("truncated header field length")
        (size,) = struct.unpack_from("<I", buf, pos)
        pos += 4
        entry = buf[pos:pos + size]
        if len(entry) != size:
            raise BagError("truncated header field")
        name, sep, value = entry.partition(b"=")
        if not sep:
            raise BagError("header field without '='")
        fields[name.decode("ascii", errors="replace")] = value
        pos += size
    return fields


def _encode_fields(fields: dict[str, bytes]) -> bytes:
    parts = []
    for name, value in fields.items():
        entry = name.encode() + b"=" + value
        parts.append(struct.pack("<I", len(entry)) + entry)
    return b"".join(parts)


def _record(fields: dict[str, bytes], data: bytes) -> bytes:
    header = _encode_fields(fields)
    return struct.pack("<I", len(header)) + header + struct.pack("<I", len(data)) + data


def _iter_records(buf: bytes, pos: int, end: int) -> Iterator[tuple[dict[str, bytes], bytes]]:
    while pos < end:
        if pos + 4 > end:
            raise BagError("truncated record header length")
        (hlen,) = struct.unpack_from("<I", buf, pos)
        pos += 4
        if pos + hlen + 4 > end:
            raise BagError("truncated record header")
        header = _parse_fields(buf[pos:pos + hlen])
        pos += hlen
        (dlen,) = struct.unpack_from("<I", buf, pos)
        pos += 4
        if pos + dlen > end:
            raise BagError("truncated record data")
        yield header, buf[pos:pos + dlen]
        pos += dlen


def _u32(fields: dict[str, bytes], name: str) -> int:
    try:
        return struct.unpack("<I", fields[name])[0]
    except (KeyError, struct.error) as exc:
        raise BagError(f"bad or missing '{name}' field") from exc


def _time(fields: dict[str, bytes], name: str) -> Time:
    try:
        sec, nsec = struct.unpack("<II", fields[name])
    except (KeyError, struct.error) as exc:
        raise BagError(f"bad or missing '{name}' field") from exc
    return Time(sec, nsec)


def _decompress(kind: str, data: bytes) -> bytes:
    if kind == "none":
        return data
    if kind == "bz2":
        return bz2.decompress(data)
    if kind == "lz4":
        import lz4.frame

        return lz4.frame.decompress(data)
    raise BagError(f"unsupported chunk compression '{kind}'")


def _normalise_topics(topics: str | Iterable[str] | None) -> set[str] | None:
    if topics is None:
        return None
    if isinstance(topics, str):
        return {topics}
    return set(topics)


class BagReader:
    """Loads every message of a bag file, ordered by receive time."""

    def __init__(self, path) -> None:
        self.path = Path(path)
        try:
            buf = self.path.read_bytes()
        except OSError as exc:
            raise BagError(f"cannot open {self.path}: {exc}") from exc
        if not buf.startswith(MAGIC):
            raise BagError(f"{self.path} is not a version 2.0 bag file")
        self.connections: dict[int, Connection] = {}
        raw: list[tuple[int, Time, bytes]] = []
        self._scan(buf, len(MAGIC), len(buf), raw)
        records = []
        for conn_id, time, data in raw:
            conn = self.connections.get(conn_id)
            if conn is None:
                raise BagError(f"message refers to unknown connection {conn_id}")
            records.append(Record(conn.topic, time, conn, data))
        records.sort(key=lambda r: r.time)
        self._records: list[Record] = records

    def _scan(self, buf: bytes, pos: int, end: int, raw: list) -> None:
        for fields, data in _iter_records(buf, pos, end):
            op = fields.get("op", b"\x00")[0]
            if op == OP_CHUNK:
                kind = fields.get("compression", b"none").decode()
                inner = _decompress(kind, data)
                self._scan(inner, 0, len(inner), raw)
            elif op == OP_CONNECTION:
                conn_id = _u32(fields, "conn")
                info = _parse_fields(data)
                topic = fields.get("topic", info.get("topic", b"")).decode()
                self.connections[conn_id] = Connection(
                    id=conn_id,
                    topic=topic,
                    datatype=info.get("type", b"").decode(),
                    md5sum=info.get("md5sum", b"*").decode(),
                    message_definition=info.get("message_definition", b"").decode(
                        errors="replace"
                    ),
                    header=info,
                )
            elif op == OP_MESSAGE:
                raw.append((_u32(fields, "conn"), _time(fields, "time"), data))

    def messages(self, topics=None) -> Iterator[Record]:
        """Yield records in time order, optionally only for the given topics."""
        wanted = _normalise_topics(topics)
        for record in self._records:
            if wanted is None or record.topic in wanted:
                yield record

    def count(self, topics=None) -> int:
        return sum(1 for _ in self.messages(topics))

    def close(self) -> None:
        self._records = []
        self.connections = {}

    def __enter__(self) -> BagReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class BagWriter:
    """Writes messages into a single uncompressed chunk with a full index."""

    def __init__(self, path) -> None:
        self.path = Path(path)
        try:
            self._file = open(self.path, "wb")
        except OSError as exc:
            raise BagError(f"cannot create {self.path}: {exc}") from exc
        self._chunk = bytearray()
        self._connections: dict[tuple, Connection] = {}
        self._index: dict[int, list[tuple[Time, int]]] = {}
        self._start: Time | None = None
        self._end: Time | None = None
        self._closed = False

    def write(self, topic: str, time: Time, connection: Connection, data: bytes) -> None:
        """Append one serialised message received on topic at time."""
        if self._closed:
            raise BagError("bag is closed")
        key = (
            topic,
            connection.datatype,
            connection.md5sum,
            connection.message_definition,
            tuple(sorted(connection.header.items())),
        )
        conn = self._connections.get(key)
        if conn is None:
            conn = Connection(
                id=len(self._connections),
                topic=topic,
                datatype=connection.datatype,
                md5sum=connection.md5sum,
                message_definition=connection.message_definition,
                header=dict(connection.header),
            )
            self._connections[key] = conn
            self._index[conn.id] = []
            self._chunk += self._connection_record(conn)
        self._index[conn.id].append((time, len(self._chunk)))
        self._chunk += _record(
            {
                "op": bytes([OP_MESSAGE]),
                "conn": struct.pack("<I", conn.id),
                "time": struct.pack("<II", time.sec, time.nsec),
            },
            bytes(data),
        )
        self._start = time if self._start is None else min(self._start, time)
        self._end = time if self._end is None else max(self._end, time)

    @staticmethod
    def _connection_record(conn: Connection) -> bytes:
        return _record(
            {
                "op": bytes([OP_CONNECTION]),
                "conn": struct.pack("<I", conn.id),
                "topic": conn.topic.encode(),
            },
            _encode_fields(conn.header_fields()),
        )

    @staticmethod
    def _bag_header(index_pos: int, conn_count: int, chunk_count: int) -> bytes:
        fields = {
            "op": bytes([OP_BAG_HEADER]),
            "index_pos": struct.pack("<Q", index_pos),
            "conn_count": struct.pack("<I", conn_count),
            "chunk_count": struct.pack("<I", chunk_count),
        }
        header = _encode_fields(fields)
        padding = BAG_HEADER_SIZE - 8 - len(header)
        return _record(fields, b" " * padding)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        out = self._file
        try:
            out.write(MAGIC)
            header_pos = out.tell()
            out.write(self._bag_header(0, 0, 0))
            chunk_count = 0
            chunk_pos = out.tell()
            conns = sorted(self._connections.values(), key=lambda c: c.id)
            if self._chunk:
                chunk_count = 1
                out.write(_record(
                    {
                        "op": bytes([OP_CHUNK]),
                        "compression": b"none",
                        "size": struct.pack("<I", len(self._chunk)),
                    },
                    bytes(self._chunk),
                ))
                for conn in conns:
                    entries = self._index[conn.id]
                    data = b"".join(
                        struct.pack("<III", t.sec, t.nsec, off) for t, off in entries
                    )
                    out.write(_record(
                        {
                            "op": bytes([OP_INDEX]),
                            "ver": struct.pack("<I", 1),
                            "conn": struct.pack("<I", conn.id),
                            "count": struct.pack("<I", len(entries)),
                        },
                        data,
                    ))
            index_pos = out.tell()
            for conn in conns:
                out.write(self._connection_record(conn))
            if chunk_count:
                data = b"".join(
                    struct.pack("<II", c.id, len(self._index[c.id])) for c in conns
                )
                out.write(_record(
                    {
                        "op": bytes([OP_CHUNK_INFO]),
                        "ver": struct.pack("<I", 1),
                        "chunk_pos": struct.pack("<Q", chunk_pos),
                        "start_time": struct.pack("<II", self._start.sec, self._start.nsec),
                        "end_time": struct.pack("<II", self._end.sec, self._end.nsec),
                        "count": struct.pack("<I", len(conns)),
                    },
                    data,
                ))
            out.seek(header_pos)
            out.write(self._bag_header(index_pos, len(conns), chunk_count))
        finally:
            out.close()

    def __enter__(self) -> BagWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()