"""Array marshaling between NPY data sections and in-memory containers.

Destinations come in a closed set of layouts (:class:`Layout`):

* ``SCALAR``    – a single element; the header shape must be ``()``.
* ``VECTOR``    – a flat sequence, filled in stored order.
* ``ROW_MAJOR`` – a 2-D matrix laid out C-order in memory.
* ``COL_MAJOR`` – a 2-D matrix laid out Fortran-order in memory.

Matrix destinations always hold the *logical* matrix: column-major data on
disk is transposed during the copy, never relabeled.
"""

from __future__ import annotations

import array
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .dtype import TypeDescriptor, type_descriptor_of
from .errors import (
    DimensionMismatch,
    InvalidFormat,
    MissingDestination,
    TypeMismatch,
    UnsupportedType,
)
from .format import DEFAULT_VERSION
from .header import Header

# array.array typecodes with no fixed-width numeric counterpart
_TEXT_TYPECODES = frozenset("uw")


class Layout(Enum):
    SCALAR = "scalar"
    VECTOR = "vector"
    ROW_MAJOR = "C"
    COL_MAJOR = "F"


# ── Target ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Target:
    """Element type and shape a caller expects to receive.

    ``shape=None`` means the destination is growable and is sized from the
    header; a fixed shape must match the header exactly (element count for
    vectors, full shape for matrices).
    """

    descr: TypeDescriptor
    layout: Layout = Layout.VECTOR
    shape: tuple[int, ...] | None = None

    @classmethod
    def of(cls, dtype, layout: Layout = Layout.VECTOR, shape=None) -> Target:
        if shape is not None:
            shape = tuple(int(d) for d in shape)
        return cls(type_descriptor_of(dtype), layout, shape)

    @classmethod
    def for_array(cls, out: np.ndarray) -> Target:
        """Derive a fixed-shape target from a pre-allocated array."""
        if out.ndim == 0:
            layout = Layout.SCALAR
        elif out.ndim == 1:
            layout = Layout.VECTOR
        elif out.ndim == 2:
            if out.flags.f_contiguous and not out.flags.c_contiguous:
                layout = Layout.COL_MAJOR
            else:
                layout = Layout.ROW_MAJOR
        else:
            raise DimensionMismatch(
                f"destination arrays must have at most 2 dimensions, got {out.ndim}"
            )
        return cls(type_descriptor_of(out.dtype), layout, tuple(out.shape))

    @classmethod
    def for_sequence(cls, seq: array.array) -> Target:
        """Growable flat target for an :class:`array.array`."""
        if seq.typecode in _TEXT_TYPECODES:
            raise UnsupportedType(seq.typecode, "array typecode has no dtype")
        return cls(type_descriptor_of(np.dtype(seq.typecode)), Layout.VECTOR)

    @property
    def fixed(self) -> bool:
        return self.shape is not None


# ── Checks ──────────────────────────────────────────────────────────────────


def check(header: Header, target: Target) -> None:
    """Raise unless *header* can be decoded into *target* without coercion."""
    on_disk = header.type_descriptor
    if not on_disk.same_type(target.descr):
        raise TypeMismatch(
            f"on-disk type {header.descr} does not match destination "
            f"{target.descr.native().token}"
        )

    if target.layout is Layout.SCALAR:
        if header.ndim != 0:
            raise DimensionMismatch(
                f"scalar destination needs shape (), file has {header.shape}"
            )
        return
    if header.ndim == 0:
        raise DimensionMismatch("shape () can only be read into a scalar")

    if target.layout is Layout.VECTOR:
        if target.fixed:
            if len(target.shape) != 1:
                raise DimensionMismatch(f"vector shape must be 1-D: {target.shape}")
            if target.shape[0] != header.count:
                raise DimensionMismatch(
                    f"destination holds {target.shape[0]} elements, "
                    f"file has {header.count}"
                )
        return

    if header.ndim != 2:
        raise DimensionMismatch(
            f"matrix destination needs a 2-D shape, file has {header.shape}"
        )
    if target.fixed and target.shape != header.shape:
        raise DimensionMismatch(
            f"destination shape {target.shape} != file shape {header.shape}"
        )


def _stored(header: Header, data) -> np.ndarray:
    """1-D array over *data* in stored order with the on-disk dtype."""
    expected = header.nbytes
    if len(data) != expected:
        raise InvalidFormat(
            f"data section has {len(data)} bytes, header declares {expected}"
        )
    dtype = header.type_descriptor.numpy_dtype
    if header.count == 0:
        return np.empty(0, dtype=dtype)
    return np.frombuffer(data, dtype=dtype, count=header.count)


# ── Decode ──────────────────────────────────────────────────────────────────


def decode(header: Header, data, target: Target):
    """Decode *data* (exactly ``header.nbytes`` long) into a new value.

    Returns a numpy scalar for ``SCALAR`` targets and a native-order array
    that owns its memory otherwise.
    """
    check(header, target)
    data = memoryview(data).cast("B")
    flat = _stored(header, data).astype(target.descr.native().numpy_dtype)

    if target.layout is Layout.SCALAR:
        return flat[0]
    if target.layout is Layout.VECTOR:
        return flat

    order = "F" if header.fortran_order else "C"
    logical = flat.reshape(header.shape, order=order)
    if target.layout is Layout.COL_MAJOR:
        return np.asfortranarray(logical)
    return np.ascontiguousarray(logical)


def decode_array(header: Header, data) -> np.ndarray:
    """Decode into the header's own shape, C-order, native byte order."""
    descr = header.type_descriptor.native()
    if header.ndim == 0:
        return np.asarray(decode(header, data, Target(descr, Layout.SCALAR)))
    flat = decode(header, data, Target(descr, Layout.VECTOR))
    order = "F" if header.fortran_order else "C"
    return np.ascontiguousarray(flat.reshape(header.shape, order=order))


def target_for(out) -> Target:
    """Validate a caller-owned destination and derive its :class:`Target`."""
    if out is None:
        raise MissingDestination("destination is None")
    if isinstance(out, array.array):
        return Target.for_sequence(out)
    if not isinstance(out, np.ndarray):
        raise TypeError(
            f"destination must be a numpy.ndarray or array.array, "
            f"got {type(out).__name__}"
        )
    if not out.flags.writeable:
        raise ValueError("destination array is read-only")
    return Target.for_array(out)


def decode_into(header: Header, data, out) -> None:
    """Fill *out* in place; *out* is untouched if any check fails."""
    target = target_for(out)
    value = decode(header, data, target)
    if isinstance(out, array.array):
        del out[:]
        out.frombytes(value.tobytes())
    else:
        out[...] = value


# ── Encode ──────────────────────────────────────────────────────────────────


def encode(value, version: tuple[int, int] = DEFAULT_VERSION) -> tuple[Header, bytes]:
    """Encode a scalar, sequence, or array as ``(Header, data bytes)``.

    Element bytes are little-endian and always row-major.
    """
    if value is None:
        raise UnsupportedType(value, "cannot encode")
    try:
        arr = np.asarray(value)
    except ValueError as exc:
        raise UnsupportedType(value, "cannot encode") from exc
    descr = type_descriptor_of(arr).little_endian()
    header = Header.new(descr, arr.shape, fortran_order=False, version=version)
    data = arr.astype(descr.numpy_dtype, copy=False).tobytes(order="C")
    return header, data
