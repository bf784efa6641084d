"""Descriptor tokens (``<f8``, ``|b1``, ...) and the supported scalar table."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

import numpy as np

from .errors import UnsupportedType


class ByteOrder(Enum):
    LITTLE = "<"
    BIG = ">"
    NATIVE = "="


class Kind(Enum):
    BOOL = "b"
    INT = "i"
    UINT = "u"
    FLOAT = "f"
    COMPLEX = "c"


NOT_APPLICABLE = "|"

_TOKEN_RE = re.compile(r"([<>|=])([biufc])([0-9]{1,2})")

# (kind, width) -> numpy scalar type.  Read-only.
SUPPORTED: Mapping[tuple[Kind, int], type] = MappingProxyType({
    (Kind.BOOL, 1): np.bool_,
    (Kind.INT, 1): np.int8,
    (Kind.INT, 2): np.int16,
    (Kind.INT, 4): np.int32,
    (Kind.INT, 8): np.int64,
    (Kind.UINT, 1): np.uint8,
    (Kind.UINT, 2): np.uint16,
    (Kind.UINT, 4): np.uint32,
    (Kind.UINT, 8): np.uint64,
    (Kind.FLOAT, 4): np.float32,
    (Kind.FLOAT, 8): np.float64,
    (Kind.COMPLEX, 8): np.complex64,
    (Kind.COMPLEX, 16): np.complex128,
})

# Python builtins resolve to the widest native counterpart.
_BY_BUILTIN: Mapping[type, tuple[Kind, int]] = MappingProxyType({
    bool: (Kind.BOOL, 1),
    int: (Kind.INT, 8),
    float: (Kind.FLOAT, 8),
    complex: (Kind.COMPLEX, 16),
})

_KIND_LETTERS = frozenset(k.value for k in Kind)


@dataclass(frozen=True)
class TypeDescriptor:
    """Byte order, kind, and width of one array element."""

    byte_order: ByteOrder
    kind: Kind
    width: int

    def __post_init__(self) -> None:
        if (self.kind, self.width) not in SUPPORTED:
            raise UnsupportedType(
                f"{self.kind.value}{self.width}",
                "unsupported kind/width combination",
            )
        # byte order is immaterial for 1-byte elements
        if self.width == 1 and self.byte_order is not ByteOrder.NATIVE:
            object.__setattr__(self, "byte_order", ByteOrder.NATIVE)

    @property
    def token(self) -> str:
        return format_descr(self)

    @property
    def scalar_type(self) -> type:
        return SUPPORTED[(self.kind, self.width)]

    @property
    def numpy_dtype(self) -> np.dtype:
        """The numpy dtype with this descriptor's byte order applied."""
        return np.dtype(self.scalar_type).newbyteorder(self._order_char())

    def same_type(self, other: TypeDescriptor) -> bool:
        """Kind and width equal; byte order is ignored."""
        return self.kind is other.kind and self.width == other.width

    def little_endian(self) -> TypeDescriptor:
        return TypeDescriptor(ByteOrder.LITTLE, self.kind, self.width)

    def native(self) -> TypeDescriptor:
        return TypeDescriptor(ByteOrder.NATIVE, self.kind, self.width)

    def _order_char(self) -> str:
        if self.width == 1:
            return NOT_APPLICABLE
        return self.byte_order.value

    def __str__(self) -> str:
        return self.token


def parse_descr(token: str) -> TypeDescriptor:
    """Parse a descriptor token such as ``<i4`` into a :class:`TypeDescriptor`."""
    if not isinstance(token, str):
        raise UnsupportedType(token, "descriptor token must be a string")
    m = _TOKEN_RE.fullmatch(token)
    if m is None:
        raise UnsupportedType(token)
    order, letter, digits = m.groups()
    width = int(digits)
    if order == NOT_APPLICABLE:
        if width != 1:
            raise UnsupportedType(token, "'|' byte order requires a 1-byte type")
        byte_order = ByteOrder.NATIVE
    else:
        byte_order = ByteOrder(order)
    kind = Kind(letter)
    if (kind, width) not in SUPPORTED:
        raise UnsupportedType(token)
    return TypeDescriptor(byte_order, kind, width)


def format_descr(desc: TypeDescriptor) -> str:
    """Render *desc* as its canonical token; 1-byte types always use ``|``."""
    return f"{desc._order_char()}{desc.kind.value}{desc.width}"


def type_descriptor_of(obj) -> TypeDescriptor:
    """Map a dtype, scalar type, value, or array to a native-order descriptor.

    Accepts numpy dtypes and anything ``np.dtype`` understands by type
    (``np.float32``, ``"f8"``), numpy scalars and arrays, and the Python
    builtins ``bool``, ``int``, ``float`` and ``complex`` (types or values).
    """
    if isinstance(obj, type) and obj in _BY_BUILTIN:
        kind, width = _BY_BUILTIN[obj]
        return TypeDescriptor(ByteOrder.NATIVE, kind, width)
    if type(obj) in _BY_BUILTIN:
        kind, width = _BY_BUILTIN[type(obj)]
        return TypeDescriptor(ByteOrder.NATIVE, kind, width)

    if obj is None:
        raise UnsupportedType(obj, "no dtype for")
    if isinstance(obj, (np.ndarray, np.generic)):
        dt = obj.dtype
    else:
        try:
            dt = np.dtype(obj)
        except TypeError as exc:
            raise UnsupportedType(obj, "no dtype for") from exc

    if dt.fields is not None or dt.subdtype is not None or dt.kind not in _KIND_LETTERS:
        raise UnsupportedType(dt.str)
    key = (Kind(dt.kind), dt.itemsize)
    if key not in SUPPORTED:
        raise UnsupportedType(dt.str)
    return TypeDescriptor(ByteOrder.NATIVE, *key)
