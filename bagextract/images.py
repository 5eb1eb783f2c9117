"""Export image topics from a bag as PNG files."""

from __future__ import annotations

import io
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

import numpy as np
from PIL import Image as PILImage

from bagextract.bag import BagError, BagReader
from bagextract.cli import UsageRequested, parse_arguments
from bagextract.messages import CompressedImage, Image, decode
from bagextract.textfmt import format_stamp
from bagextract.wire import Time, WireError

STATUS_NO_TOPIC = 1
STATUS_UNSUPPORTED_TYPE = 3

_POSITIONALS = (
    ("bag", "BAG-file"),
    ("topic", "topic name"),
    ("directory", "output directory"),
)

# encoding -> (channels, bytes per channel, channel order giving RGB(A))
_LAYOUTS = {
    "mono8": (1, 1, None),
    "8UC1": (1, 1, None),
    "mono16": (1, 2, None),
    "16UC1": (1, 2, None),
    "rgb8": (3, 1, (0, 1, 2)),
    "bgr8": (3, 1, (2, 1, 0)),
    "8UC3": (3, 1, (2, 1, 0)),
    "rgba8": (4, 1, (0, 1, 2, 3)),
    "bgra8": (4, 1, (2, 1, 0, 3)),
    "8UC4": (4, 1, (2, 1, 0, 3)),
}


class ImageError(Exception):
    """Raised when an image topic cannot be exported; carries an exit status."""

    def __init__(self, message: str, status: int = 1) -> None:
        super().__init__(message)
        self.status = status


def _raw_to_pil(message: Image) -> PILImage.Image:
    layout = _LAYOUTS.get(message.encoding)
    if layout is None:
        raise ImageError(f"unsupported image encoding '{message.encoding}'")
    channels, depth, order = layout
    height, width = message.height, message.width
    if height == 0 or width == 0:
        raise ImageError("image has no pixels")
    row_bytes = width * channels * depth
    step = message.step or row_bytes
    if step < row_bytes or len(message.data) < step * height:
        raise ImageError("image data is shorter than its dimensions")
    rows = np.frombuffer(message.data, dtype=np.uint8, count=step * height)
    rows = np.ascontiguousarray(rows.reshape(height, step)[:, :row_bytes])
    if depth == 2:
        dtype = ">u2" if message.is_bigendian else "<u2"
        pixels = rows.view(dtype).astype(np.uint16).reshape(height, width)
        return PILImage.fromarray(pixels)
    if channels == 1:
        return PILImage.fromarray(rows, mode="L") if False else PILImage.fromarray(rows)
    pixels = rows.reshape(height, width, channels)[:, :, list(order)]
    return PILImage.fromarray(np.ascontiguousarray(pixels))


def _compressed_to_pil(message: CompressedImage) -> PILImage.Image:
    try:
        with PILImage.open(io.BytesIO(message.data)) as img:
            img.load()
            return img.copy()
    except (OSError, ValueError) as exc:
        raise ImageError(f"cannot decode compressed image: {exc}") from exc


def image_to_pil(message) -> PILImage.Image:
    """Convert a raw or compressed image message to a Pillow image."""
    if isinstance(message, CompressedImage):
        return _compressed_to_pil(message)
    if isinstance(message, Image):
        return _raw_to_pil(message)
    raise TypeError(f"not an image message: {type(message).__name__}")


def image_filename(stamp: Time) -> str:
    """Name of the PNG file for an image stamped at the given time."""
    return format_stamp(stamp.sec, stamp.nsec) + ".png"


def extract_images(bag_path, topic: str, directory, out: TextIO | None = None) -> tuple[int, int]:
    """Write every image on topic into directory as PNG.

    Progress goes to out. Returns the numbers of extracted and corrupted
    messages. Raises ImageError when the topic is absent or not an image type.
    """
    out = sys.stdout if out is None else out
    with BagReader(bag_path) as bag:
        records = list(bag.messages(topic))
    if not records:
        raise ImageError(f"There is no [{topic}] topic in {bag_path}", STATUS_NO_TOPIC)
    datatype = records[0].connection.datatype
    if datatype not in (Image.DATATYPE, CompressedImage.DATATYPE):
        raise ImageError(
            f"Topic {topic} has unsupported type {datatype}", STATUS_UNSUPPORTED_TYPE
        )

    total = len(records)
    corrupted = 0
    outdir = Path(directory)
    for position, record in enumerate(records, start=1):
        try:
            if record.connection.datatype != datatype:
                raise WireError(f"unexpected type {record.connection.datatype}")
            message = decode(datatype, record.data)
        except WireError:
            out.write("Corrupted message\n")
            corrupted += 1
            continue
        image_to_pil(message).save(outdir / image_filename(message.header.stamp), format="PNG")
        out.write(f"\r{position}/{total} ({position / total * 100:3.1f}%)")
    out.write(f"\n{total - corrupted} images extracted, {corrupted} corrupted\n")
    return total - corrupted, corrupted


def main(argv: Sequence[str] | None = None) -> int:
    prog = "extract_images"
    try:
        args = parse_arguments(prog, _POSITIONALS, argv)
    except UsageRequested as exc:
        sys.stdout.write(exc.usage)
        if exc.reason:
            print(f"{prog}: {exc.reason}", file=sys.stderr)
            return 1
        return 0
    try:
        extract_images(args["bag"], args["topic"], args["directory"], sys.stdout)
    except ImageError as exc:
        print(exc, file=sys.stderr)
        return exc.status
    except (BagError, OSError) as exc:
        print(f"{prog}: {exc}", file=sys.stderr)
        return 1
    return 0