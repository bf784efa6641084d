"""Text rendering of NPY buffers and NPZ archives."""

from __future__ import annotations

import io
import sys
from typing import BinaryIO, TextIO

import blake3
import numpy as np

from . import npy
from .errors import NpyError
from .format import ZIP_SIGNATURE
from .marshal import decode_array, encode
from .npz import NpzReader


def format_values(values: np.ndarray) -> str:
    """Render *values* in logical (row-major) order without summarization."""
    return np.array2string(
        values, max_line_width=sys.maxsize, threshold=sys.maxsize
    )


def content_digest(values: np.ndarray) -> str:
    """BLAKE3 of the canonical encoding: little-endian, row-major.

    Buffers holding the same logical array hash equal regardless of their
    on-disk byte order or storage order.
    """
    _, canonical = encode(values)
    return blake3.blake3(canonical).hexdigest()


def _dump_buffer(out: TextIO, stream: BinaryIO, digest: bool) -> None:
    header, data = npy.read_section(stream)
    values = decode_array(header, data)
    out.write(f"npy-header: {header}\n")
    out.write(f"npy-data: {format_values(values)}\n")
    if digest:
        out.write(f"npy-blake3: {content_digest(values)}\n")


def is_archive(stream: BinaryIO) -> bool:
    """Peek at *stream* for the ZIP signature and rewind."""
    sig = stream.read(len(ZIP_SIGNATURE))
    stream.seek(-len(sig), io.SEEK_CUR)
    return sig == ZIP_SIGNATURE


def dump(out: TextIO, source, *, digest: bool = False) -> int:
    """Write a text dump of *source* (NPY buffer or NPZ archive) to *out*.

    Archive entries that fail to decode are reported inline as
    ``error: <message>`` and the dump continues.  Returns the number of
    failed entries; errors in a single NPY buffer propagate.
    """
    with npy.open_source(source) as stream:
        if not is_archive(stream):
            _dump_buffer(out, stream, digest)
            return 0

        failures = 0
        with NpzReader(stream) as reader:
            for name in reader.list_entries():
                out.write(f"entry: {name}\n")
                try:
                    with reader.open_entry(name) as f:
                        _dump_buffer(out, f, digest)
                except NpyError as exc:
                    out.write(f"error: {exc}\n")
                    failures += 1
        return failures
