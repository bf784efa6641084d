"""npycodec – reader/writer for the NPY dense-array format and NPZ archives."""

__version__ = "0.1.0"

from .format import MAGIC, DEFAULT_VERSION, ARRAY_ALIGN
from .errors import (
    NpyError, InvalidFormat, UnsupportedType, UnsupportedHeaderType,
    TypeMismatch, DimensionMismatch, MissingDestination, EntryNotFound,
)
from .dtype import ByteOrder, Kind, TypeDescriptor, parse_descr, format_descr, type_descriptor_of
from .header import Header, decode_header, encode_header, read_header
from .marshal import Layout, Target, decode, decode_into, encode
from .npy import parse_header, read, read_into, load, write, dumps
from .npz import NpzReader, write_npz
from .dump import dump

__all__ = [
    "__version__",
    "MAGIC", "DEFAULT_VERSION", "ARRAY_ALIGN",
    "NpyError", "InvalidFormat", "UnsupportedType", "UnsupportedHeaderType",
    "TypeMismatch", "DimensionMismatch", "MissingDestination", "EntryNotFound",
    "ByteOrder", "Kind", "TypeDescriptor", "parse_descr", "format_descr",
    "type_descriptor_of",
    "Header", "decode_header", "encode_header", "read_header",
    "Layout", "Target", "decode", "decode_into", "encode",
    "parse_header", "read", "read_into", "load", "write", "dumps",
    "NpzReader", "write_npz",
    "dump",
]
