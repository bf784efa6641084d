"""Descriptor token parse / format tests."""

import numpy as np
import pytest

from npycodec.dtype import (
    SUPPORTED,
    ByteOrder,
    Kind,
    TypeDescriptor,
    format_descr,
    parse_descr,
    type_descriptor_of,
)
from npycodec.errors import UnsupportedType


@pytest.mark.parametrize("kind, width", sorted(SUPPORTED, key=lambda k: (k[0].value, k[1])))
@pytest.mark.parametrize("order", list(ByteOrder))
def test_parse_format_roundtrip(kind, width, order):
    desc = TypeDescriptor(order, kind, width)
    assert parse_descr(format_descr(desc)) == desc


@pytest.mark.parametrize("token, expected", [
    ("<f8", (ByteOrder.LITTLE, Kind.FLOAT, 8)),
    (">i4", (ByteOrder.BIG, Kind.INT, 4)),
    ("=c16", (ByteOrder.NATIVE, Kind.COMPLEX, 16)),
    ("<c8", (ByteOrder.LITTLE, Kind.COMPLEX, 8)),
    ("|b1", (ByteOrder.NATIVE, Kind.BOOL, 1)),
    ("|u1", (ByteOrder.NATIVE, Kind.UINT, 1)),
    (">u8", (ByteOrder.BIG, Kind.UINT, 8)),
    ("<i2", (ByteOrder.LITTLE, Kind.INT, 2)),
])
def test_parse(token, expected):
    assert parse_descr(token) == TypeDescriptor(*expected)


def test_one_byte_types_format_with_bar():
    for token in ("<i1", ">i1", "=u1", "<b1"):
        assert format_descr(parse_descr(token))[0] == "|"
    assert format_descr(TypeDescriptor(ByteOrder.BIG, Kind.UINT, 1)) == "|u1"


@pytest.mark.parametrize("token", [
    "",
    "f8",
    "<f",
    "<f2",
    "<f16",
    "<i3",
    "<i16",
    "<b2",
    "<c4",
    "<x4",
    "|i4",
    "<f8 ",
    " <f8",
    "<f8\n",
    "<i0",
    "<iab",
    "<i4x",
    "!f8",
    "<U5",
    "O",
])
def test_parse_rejects(token):
    with pytest.raises(UnsupportedType):
        parse_descr(token)


def test_parse_rejects_non_string():
    with pytest.raises(UnsupportedType):
        parse_descr(8)


def test_unsupported_combination_rejected():
    with pytest.raises(UnsupportedType):
        TypeDescriptor(ByteOrder.LITTLE, Kind.BOOL, 2)
    with pytest.raises(UnsupportedType):
        TypeDescriptor(ByteOrder.LITTLE, Kind.FLOAT, 2)


def test_numpy_dtype():
    assert parse_descr(">i4").numpy_dtype == np.dtype(">i4")
    assert parse_descr("<f8").numpy_dtype == np.dtype("<f8")
    assert parse_descr("|u1").numpy_dtype == np.dtype("u1")
    assert parse_descr("|b1").numpy_dtype == np.dtype(bool)
    assert parse_descr("=c8").numpy_dtype == np.dtype(np.complex64)


def test_little_endian_and_native():
    d = parse_descr(">f4")
    assert d.little_endian().token == "<f4"
    assert d.native().token == "=f4"
    assert d.same_type(parse_descr("<f4"))
    assert not d.same_type(parse_descr("<f8"))
    assert not d.same_type(parse_descr("<i4"))


@pytest.mark.parametrize("obj, token", [
    (np.float32, "=f4"),
    (np.float64, "=f8"),
    (np.int8, "|i1"),
    (np.uint16, "=u2"),
    (np.complex128, "=c16"),
    (np.bool_, "|b1"),
    (np.dtype(">i2"), "=i2"),
    ("u4", "=u4"),
    (bool, "|b1"),
    (int, "=i8"),
    (float, "=f8"),
    (complex, "=c16"),
    (True, "|b1"),
    (3, "=i8"),
    (2.5, "=f8"),
    (1j, "=c16"),
    (np.float32(1.5), "=f4"),
    (np.zeros(3, dtype=np.uint64), "=u8"),
])
def test_type_descriptor_of(obj, token):
    assert type_descriptor_of(obj).token == token


@pytest.mark.parametrize("obj", [
    None,
    np.float16,
    np.dtype("U3"),
    np.dtype("O"),
    np.dtype([("a", "<f4")]),
    np.zeros(2, dtype="S4"),
    "not-a-dtype",
    object(),
])
def test_type_descriptor_of_rejects(obj):
    with pytest.raises(UnsupportedType):
        type_descriptor_of(obj)


def test_supported_table_is_read_only():
    with pytest.raises(TypeError):
        SUPPORTED[(Kind.FLOAT, 2)] = np.float16
    assert (Kind.FLOAT, 2) not in SUPPORTED
