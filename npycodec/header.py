"""NPY header codec – magic/version prologue and the ``descr`` dictionary."""

from __future__ import annotations

import ast
import operator
import struct
from dataclasses import dataclass
from typing import BinaryIO

from .dtype import TypeDescriptor, format_descr, parse_descr
from .errors import InvalidFormat, UnsupportedHeaderType, UnsupportedType
from .format import (
    ARRAY_ALIGN,
    DEFAULT_VERSION,
    HEADER_KEYS,
    HEADER_LEN_FMT,
    MAGIC,
    MAGIC_LEN,
    MAX_HEADER_LEN,
    PREFIX_SIZE,
    SUPPORTED_MAJORS,
    align,
    length_field_size,
    shape_count,
    shape_nbytes,
)


# ── Header ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Header:
    """Parsed description of one NPY buffer (immutable)."""

    major: int
    minor: int
    descr: str
    fortran_order: bool
    shape: tuple[int, ...]

    def __post_init__(self) -> None:
        if self.major not in SUPPORTED_MAJORS or not 0 <= self.minor <= 0xFF:
            raise InvalidFormat(f"unsupported version {self.major}.{self.minor}")
        # structured dtypes are written as a list of fields
        if not isinstance(self.descr, str):
            raise UnsupportedHeaderType(self.descr)
        try:
            desc = parse_descr(self.descr)
        except UnsupportedType as exc:
            raise UnsupportedHeaderType(self.descr) from exc
        if not isinstance(self.fortran_order, bool):
            raise InvalidFormat(f"fortran_order is not a bool: {self.fortran_order!r}")
        shape = _check_shape(self.shape)
        try:
            shape_nbytes(shape, desc.width)
        except ValueError as exc:
            raise InvalidFormat(str(exc)) from exc
        object.__setattr__(self, "shape", shape)

    @classmethod
    def new(
        cls,
        descr: TypeDescriptor | str,
        shape,
        fortran_order: bool = False,
        version: tuple[int, int] = DEFAULT_VERSION,
    ) -> Header:
        """Build a writer-side header, validating every field."""
        if isinstance(descr, TypeDescriptor):
            token = format_descr(descr)
        else:
            token = format_descr(parse_descr(descr))
        major, minor = version
        return cls(major, minor, token, bool(fortran_order), shape)

    @property
    def version(self) -> tuple[int, int]:
        return (self.major, self.minor)

    @property
    def type_descriptor(self) -> TypeDescriptor:
        return parse_descr(self.descr)

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def count(self) -> int:
        return shape_count(self.shape)

    @property
    def nbytes(self) -> int:
        return shape_nbytes(self.shape, self.type_descriptor.width)

    def __str__(self) -> str:
        shape = " ".join(str(d) for d in self.shape)
        fortran = "true" if self.fortran_order else "false"
        return (
            f"Header{{Major:{self.major}, Minor:{self.minor}, "
            f"Descr:{{Type:{self.descr}, Fortran:{fortran}, Shape:[{shape}]}}}}"
        )


def _check_shape(shape) -> tuple[int, ...]:
    if not isinstance(shape, (tuple, list)):
        raise InvalidFormat(f"shape must be a tuple of ints, got {shape!r}")
    dims: list[int] = []
    for d in shape:
        try:
            if isinstance(d, bool):
                raise TypeError
            d = operator.index(d)
        except TypeError:
            raise InvalidFormat(f"shape dimension must be an int, got {d!r}") from None
        if d < 0:
            raise InvalidFormat(f"negative dimension in shape {tuple(shape)}")
        dims.append(d)
    return tuple(dims)


# ── Decode ──────────────────────────────────────────────────────────────────


def _parse_prefix(prefix: bytes) -> tuple[int, int]:
    """Validate magic and version bytes; return ``(major, minor)``."""
    if len(prefix) < MAGIC_LEN or prefix[:MAGIC_LEN] != MAGIC:
        raise InvalidFormat(f"bad magic: {bytes(prefix[:MAGIC_LEN])!r}")
    if len(prefix) < PREFIX_SIZE:
        raise InvalidFormat("truncated header: missing version bytes")
    major, minor = prefix[MAGIC_LEN], prefix[MAGIC_LEN + 1]
    if major not in SUPPORTED_MAJORS:
        raise InvalidFormat(f"unsupported version {major}.{minor}")
    return major, minor


def _parse_dict(text: bytes, major: int, minor: int) -> Header:
    try:
        source = text.decode("latin1").strip()
        d = ast.literal_eval(source)
    except (SyntaxError, TypeError, ValueError, MemoryError, RecursionError) as exc:
        raise InvalidFormat(f"cannot parse header dictionary: {text!r}") from exc

    if not isinstance(d, dict):
        raise InvalidFormat(f"header is not a dictionary: {d!r}")
    missing = [k for k in HEADER_KEYS if k not in d]
    if missing:
        raise InvalidFormat(f"header does not contain the key(s) {missing}")
    extra = sorted(str(k) for k in d if k not in HEADER_KEYS)
    if extra:
        raise InvalidFormat(f"header contains unrecognized key(s) {extra}")

    if not isinstance(d["shape"], tuple):
        raise InvalidFormat(f"shape is not a tuple: {d['shape']!r}")
    return Header(major, minor, d["descr"], d["fortran_order"], d["shape"])


def decode_header(buf) -> tuple[Header, int]:
    """Parse the prologue at the start of *buf*.

    Returns the :class:`Header` and the offset of the first data byte.
    """
    buf = memoryview(buf).cast("B")
    major, minor = _parse_prefix(bytes(buf[:PREFIX_SIZE]))

    len_size = length_field_size(major)
    len_end = PREFIX_SIZE + len_size
    if len(buf) < len_end:
        raise InvalidFormat("truncated header: missing length field")
    (header_len,) = struct.unpack(HEADER_LEN_FMT[major], buf[PREFIX_SIZE:len_end])
    if header_len > MAX_HEADER_LEN:
        raise InvalidFormat(
            f"header length {header_len} exceeds safety cap ({MAX_HEADER_LEN})"
        )

    data_offset = len_end + header_len
    if len(buf) < data_offset:
        raise InvalidFormat("truncated header dictionary")
    header = _parse_dict(bytes(buf[len_end:data_offset]), major, minor)
    return header, data_offset


def _read_exact(stream: BinaryIO, n: int, what: str) -> bytes:
    data = stream.read(n)
    if data is None or len(data) != n:
        raise InvalidFormat(f"truncated {what}")
    return data


def read_header(stream: BinaryIO) -> tuple[Header, int]:
    """Read exactly the prologue from *stream* (no read-ahead into data).

    On a magic mismatch nothing past the first six bytes is consumed.
    """
    magic = stream.read(MAGIC_LEN) or b""
    if magic != MAGIC:
        raise InvalidFormat(f"bad magic: {magic!r}")
    version = _read_exact(stream, 2, "header: missing version bytes")
    major, minor = _parse_prefix(magic + version)

    len_size = length_field_size(major)
    raw_len = _read_exact(stream, len_size, "header: missing length field")
    (header_len,) = struct.unpack(HEADER_LEN_FMT[major], raw_len)
    if header_len > MAX_HEADER_LEN:
        raise InvalidFormat(
            f"header length {header_len} exceeds safety cap ({MAX_HEADER_LEN})"
        )

    text = _read_exact(stream, header_len, "header dictionary")
    header = _parse_dict(text, major, minor)
    return header, PREFIX_SIZE + len_size + header_len


# ── Encode ──────────────────────────────────────────────────────────────────


def _dict_text(header: Header) -> str:
    if len(header.shape) == 1:
        shape = f"({header.shape[0]},)"
    else:
        shape = "(" + ", ".join(str(d) for d in header.shape) + ")"
    return (
        f"{{'descr': {header.descr!r}, "
        f"'fortran_order': {header.fortran_order!r}, "
        f"'shape': {shape}, }}"
    )


def encode_header(header: Header) -> bytes:
    """Serialize *header*; the result length is a multiple of ARRAY_ALIGN."""
    text = _dict_text(header).encode("latin1")
    len_size = length_field_size(header.major)
    # +1 for the terminating newline
    unpadded = PREFIX_SIZE + len_size + len(text) + 1
    total = align(unpadded, ARRAY_ALIGN)
    header_len = total - PREFIX_SIZE - len_size

    max_len = (1 << (8 * len_size)) - 1
    if header_len > max_len:
        raise InvalidFormat(
            f"header length {header_len} does not fit version "
            f"{header.major}.{header.minor}"
        )

    padded = text + b" " * (total - unpadded) + b"\n"
    return (
        MAGIC
        + bytes([header.major, header.minor])
        + struct.pack(HEADER_LEN_FMT[header.major], header_len)
        + padded
    )
