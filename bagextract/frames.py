"""Copy a bag while dropping transforms for one child frame."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from bagextract.bag import BagError, BagReader, BagWriter
from bagextract.cli import UsageRequested, parse_arguments
from bagextract.messages import TFMessage, decode, encode
from bagextract.wire import WireError

TF_TOPICS = ("/tf", "/tf_static")

_POSITIONALS = (
    ("inbag", "Input BAG-file"),
    ("outbag", "Output BAG-file"),
    ("frame", "Frame to exclude"),
)


def exclude_child_frame(inbag, outbag, frame: str) -> int:
    """Copy inbag to outbag without transforms whose child frame is frame.

    Transform messages left empty are dropped; other topics are copied
    unchanged. Returns the number of messages written.
    """
    written = 0
    with BagReader(inbag) as reader, BagWriter(outbag) as writer:
        for record in reader.messages():
            data = record.data
            if record.topic in TF_TOPICS:
                if record.connection.datatype != TFMessage.DATATYPE:
                    raise BagError(
                        f"topic {record.topic} has type {record.connection.datatype}, "
                        f"expected {TFMessage.DATATYPE}"
                    )
                try:
                    message = decode(TFMessage.DATATYPE, record.data)
                except WireError as exc:
                    raise BagError(f"corrupted message on {record.topic}: {exc}") from exc
                kept = [t for t in message.transforms if t.child_frame_id != frame]
                if not kept:
                    continue
                data = encode(TFMessage(kept))
            writer.write(record.topic, record.time, record.connection, data)
            written += 1
    return written


def main(argv: Sequence[str] | None = None) -> int:
    prog = "exclude_child_frame"
    try:
        args = parse_arguments(prog, _POSITIONALS, argv)
    except UsageRequested as exc:
        if exc.reason:
            print(f"{prog}: {exc.reason}", file=sys.stderr)
        sys.stdout.write(exc.usage)
        return 1
    try:
        exclude_child_frame(args["inbag"], args["outbag"], args["frame"])
    except BagError as exc:
        print(f"{prog}: {exc}", file=sys.stderr)
        return 1
    return 0