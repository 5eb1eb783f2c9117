"""Command-line handling shared by the extractor commands."""

from __future__ import annotations

import sys
from collections.abc import Iterator, Sequence

from bagextract.bag import BagError, BagReader, Record
from bagextract.messages import decode
from bagextract.wire import WireError


class UsageRequested(Exception):
    """Raised when help was asked for or the arguments were incomplete."""

    def __init__(self, usage: str, reason: str | None = None) -> None:
        super().__init__(reason or usage)
        self.usage = usage
        self.reason = reason


def _usage(prog: str, positionals, switches) -> str:
    names = [n for n, _ in positionals]
    args = [(f"--{n} arg", h) for n, h in positionals]
    opts = [("--help", "print this message")] + [(f"--{n}", h) for n, h in switches]
    width = max(len(flag) for flag, _ in args + opts) + 2
    lines = [" ".join([f"{prog} [options]", *names]), "", "Arguments:"]
    lines += [f"  {flag:<{width}}{text}" for flag, text in args]
    lines += ["", "Options:"]
    lines += [f"  {flag:<{width}}{text}" for flag, text in opts]
    return "\n".join(lines) + "\n"


def parse_arguments(
    prog: str,
    positionals: Sequence[tuple[str, str]],
    argv: Sequence[str] | None = None,
    switches: Sequence[tuple[str, str]] = (),
) -> dict:
    """Parse named-or-positional arguments and boolean switches.

    Each positional may also be given as ``--name value`` or ``--name=value``.
    Raises UsageRequested on ``--help``, missing arguments or bad input.
    """
    usage = _usage(prog, positionals, switches)
    names = [n for n, _ in positionals]
    flags = {n: False for n, _ in switches}
    args = sys.argv[1:] if argv is None else list(argv)

    def fail(reason: str):
        raise UsageRequested(usage, reason)

    values: dict[str, str] = {}
    free: list[str] = []
    want_help = False
    tokens = iter(args)
    options_done = False
    for token in tokens:
        if not options_done and token == "--":
            options_done = True
        elif not options_done and token.startswith("--"):
            name, eq, value = token[2:].partition("=")
            if name == "help":
                want_help = True
            elif name in flags:
                if eq:
                    fail(f"option '--{name}' takes no value")
                flags[name] = True
            elif name in names:
                if not eq:
                    value = next(tokens, None)
                    if value is None:
                        fail(f"option '--{name}' requires a value")
                if name in values:
                    fail(f"option '--{name}' given more than once")
                values[name] = value
            else:
                fail(f"unrecognised option '{token}'")
        else:
            free.append(token)

    for position, token in enumerate(free):
        if position >= len(names):
            fail("too many positional arguments")
        name = names[position]
        if name in values:
            fail(f"option '--{name}' given more than once")
        values[name] = token

    if want_help or any(n not in values for n in names):
        raise UsageRequested(usage)
    return {**values, **flags}


def topic_records(bag_path, topic: str, datatype: str) -> Iterator[tuple[Record, object]]:
    """Yield (record, decoded message) for a topic, in time order.

    Raises BagError if the topic's first message is of another type.
    Messages that fail to decode as datatype are skipped.
    """
    with BagReader(bag_path) as bag:
        records = list(bag.messages(topic))
    if records and records[0].connection.datatype != datatype:
        raise BagError(
            f"topic {topic} has type {records[0].connection.datatype}, expected {datatype}"
        )
    for record in records:
        if record.connection.datatype != datatype:
            continue
        try:
            message = decode(datatype, record.data)
        except WireError:
            continue
        yield record, message