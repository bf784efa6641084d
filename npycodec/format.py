"""NPY binary format constants, struct formats, and alignment helpers."""

import struct

# ── Magic & version ─────────────────────────────────────────────────────────

MAGIC = b"\x93NUMPY"
MAGIC_LEN = len(MAGIC)

SUPPORTED_MAJORS = (1, 2)
DEFAULT_VERSION = (2, 0)

# ── Header-length field (little-endian, sized by major version) ────────────
#
# Prologue:
#   magic[6]  major(u8) minor(u8)  header_len(u16 | u32)  dict[header_len]
#
# The dictionary is padded with spaces and terminated by "\n" so that the
# data section starts at a multiple of ARRAY_ALIGN.

HEADER_LEN_FMT = {
    1: "<H",
    2: "<I",
}

PREFIX_SIZE = MAGIC_LEN + 2

assert struct.calcsize(HEADER_LEN_FMT[1]) == 2
assert struct.calcsize(HEADER_LEN_FMT[2]) == 4

ARRAY_ALIGN = 16

HEADER_KEYS = ("descr", "fortran_order", "shape")

# ── ZIP archive (npz) ──────────────────────────────────────────────────────

ZIP_SIGNATURE = b"PK\x03\x04"
NPY_SUFFIX = ".npy"

# ── Safety limits ──────────────────────────────────────────────────────────

MAX_HEADER_LEN = 64 * 1024      # reject absurd dictionaries before reading
MAX_DATA_BYTES = 1 << 62        # shape product ceiling (overflow guard)


# ── Alignment helpers ──────────────────────────────────────────────────────


def align(offset: int, alignment: int) -> int:
    """Round *offset* up to the next multiple of *alignment*."""
    return (offset + alignment - 1) // alignment * alignment


def length_field_size(major: int) -> int:
    return struct.calcsize(HEADER_LEN_FMT[major])


# ── Shape utilities ────────────────────────────────────────────────────────


def shape_count(shape) -> int:
    """Number of elements described by *shape* (1 for the empty shape)."""
    n = 1
    for d in shape:
        if d < 0:
            raise ValueError(f"negative dimension: {d}")
        n *= d
    return n


def shape_nbytes(shape, itemsize: int) -> int:
    """Compute total bytes for *shape*, checking for overflow."""
    nbytes = shape_count(shape) * itemsize
    if nbytes > MAX_DATA_BYTES:
        raise ValueError(f"shape product overflow: {list(shape)}")
    return nbytes
