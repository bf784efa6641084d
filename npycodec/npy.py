"""Read and write single NPY buffers from paths, byte strings, or streams.

Usage::

    hdr = parse_header("data.npy")

    out = np.empty((2, 3), dtype=np.float32)
    read_into("data.npy", out)

    m = read("data.npy", Target.of(np.float64, Layout.ROW_MAJOR))

    write("out.npy", m)
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
from typing import BinaryIO

import numpy as np

from .dtype import type_descriptor_of
from .errors import InvalidFormat, MissingDestination
from .format import DEFAULT_VERSION
from .header import Header, encode_header, read_header
from .marshal import (
    Target,
    check,
    decode,
    decode_array,
    decode_into,
    encode,
    target_for,
)

__all__ = [
    "parse_header",
    "read",
    "read_into",
    "load",
    "write",
    "dumps",
    "type_descriptor_of",
]

logger = logging.getLogger("npycodec")


# ── Source / sink handling ─────────────────────────────────────────────────


@contextlib.contextmanager
def open_source(source):
    """Yield a readable binary stream for a path, bytes, or stream."""
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as f:
            yield f
    elif isinstance(source, (bytes, bytearray, memoryview)):
        yield io.BytesIO(source)
    elif hasattr(source, "read"):
        yield source
    else:
        raise TypeError(
            f"source must be a path, bytes, or binary stream, "
            f"got {type(source).__name__}"
        )


@contextlib.contextmanager
def open_sink(sink, *, atomic: bool = True):
    """Yield a writable binary stream for *sink*.

    Path sinks are written atomically: ``.tmp`` → fsync → rename; the
    temporary file is removed if the body raises.
    """
    if hasattr(sink, "write"):
        yield sink
        return
    if not isinstance(sink, (str, os.PathLike)):
        raise TypeError(
            f"sink must be a path or binary stream, got {type(sink).__name__}"
        )
    dest = os.fspath(sink)
    tmp_path = dest + ".tmp" if atomic else dest
    try:
        with open(tmp_path, "wb") as f:
            yield f
            if atomic:
                f.flush()
                os.fsync(f.fileno())
        if atomic:
            os.replace(tmp_path, dest)
    except BaseException:
        if atomic and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def read_section(stream: BinaryIO, target: Target | None = None) -> tuple[Header, bytes]:
    header, offset = read_header(stream)
    logger.debug("parsed %s (data offset %d)", header, offset)
    if target is not None:
        check(header, target)
    nbytes = header.nbytes
    data = stream.read(nbytes)
    if data is None or len(data) != nbytes:
        got = 0 if data is None else len(data)
        raise InvalidFormat(f"truncated data: expected {nbytes} bytes, got {got}")
    return header, data


# ── Read ────────────────────────────────────────────────────────────────────


def parse_header(source) -> Header:
    """Parse and validate the header of *source* without reading data."""
    with open_source(source) as stream:
        header, _ = read_header(stream)
    return header


def read(source, target: Target):
    """Decode *source* into a new value shaped by *target*."""
    if target is None:
        raise MissingDestination("target is None")
    with open_source(source) as stream:
        header, data = read_section(stream, target)
    return decode(header, data, target)


def read_into(source, destination) -> None:
    """Fill a pre-allocated ``numpy.ndarray`` or ``array.array`` in place.

    Type and dimension checks run before any element is copied, so the
    destination is unchanged when an error is raised.
    """
    target = target_for(destination)
    with open_source(source) as stream:
        header, data = read_section(stream, target)
    decode_into(header, data, destination)


def load(source) -> np.ndarray:
    """Decode *source* in the header's own type and shape (C-order result)."""
    with open_source(source) as stream:
        header, data = read_section(stream)
    return decode_array(header, data)


# ── Write ───────────────────────────────────────────────────────────────────


def dumps(value, *, version: tuple[int, int] = DEFAULT_VERSION) -> bytes:
    """Return the complete NPY encoding of *value*."""
    header, data = encode(value, version=version)
    return encode_header(header) + data


def write(
    sink,
    value,
    *,
    version: tuple[int, int] = DEFAULT_VERSION,
    atomic: bool = True,
) -> Header:
    """Write *value* to *sink* (path or writable binary stream).

    Path sinks are written atomically: ``.tmp`` → fsync → rename.
    """
    header, data = encode(value, version=version)
    logger.debug("writing %s (%d data bytes)", header, len(data))
    with open_sink(sink, atomic=atomic) as f:
        f.write(encode_header(header))
        f.write(data)
    return header
