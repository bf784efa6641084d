"""File-level round trips through npycodec and numpy's own NPY reader/writer."""

import array
import io
import os

import numpy as np
import pytest

from npycodec import npy
from npycodec.errors import (
    InvalidFormat,
    MissingDestination,
    TypeMismatch,
    UnsupportedType,
)
from npycodec.marshal import Layout, Target


# ── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture
def matrix():
    return np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]], dtype="<f4")


@pytest.fixture
def matrix_npy(tmp_path, matrix):
    path = str(tmp_path / "matrix.npy")
    npy.write(path, matrix)
    return path


# ── Tests ───────────────────────────────────────────────────────────────────


def test_parse_header(matrix_npy):
    h = npy.parse_header(matrix_npy)
    assert h.descr == "<f4"
    assert h.shape == (2, 3)
    assert h.fortran_order is False
    assert h.version == (2, 0)


def test_read_into_matrix(matrix_npy, matrix):
    out = np.empty((2, 3), dtype=np.float32)
    npy.read_into(matrix_npy, out)
    np.testing.assert_array_equal(out, matrix)


def test_read_with_target(matrix_npy, matrix):
    m = npy.read(matrix_npy, Target.of(np.float32, Layout.ROW_MAJOR))
    np.testing.assert_array_equal(m, matrix)
    v = npy.read(matrix_npy, Target.of(np.float32))
    np.testing.assert_array_equal(v, matrix.ravel())


def test_read_into_growable_sequence(matrix_npy):
    seq = array.array("f")
    npy.read_into(matrix_npy, seq)
    assert seq.tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]


def test_type_mismatch_before_data(matrix_npy):
    out = np.zeros((2, 3), dtype=np.float64)
    with pytest.raises(TypeMismatch):
        npy.read_into(matrix_npy, out)
    assert not out.any()


def test_missing_destination_checked_first(tmp_path):
    with pytest.raises(MissingDestination):
        npy.read_into(str(tmp_path / "does-not-exist.npy"), None)
    with pytest.raises(MissingDestination):
        npy.read(b"garbage", None)


def test_load(matrix_npy, matrix):
    np.testing.assert_array_equal(npy.load(matrix_npy), matrix)


def test_no_tmp_left_behind(matrix_npy, tmp_path):
    assert os.listdir(tmp_path) == ["matrix.npy"]


def test_write_to_stream_and_bytes_source(matrix):
    buf = io.BytesIO()
    header = npy.write(buf, matrix)
    raw = buf.getvalue()
    assert raw == npy.dumps(matrix)
    assert npy.parse_header(raw) == header
    np.testing.assert_array_equal(npy.load(raw), matrix)
    np.testing.assert_array_equal(npy.load(memoryview(raw)), matrix)


def test_stream_left_at_end_of_data(matrix):
    stream = io.BytesIO(npy.dumps(matrix) + b"TRAILER")
    npy.load(stream)
    assert stream.read() == b"TRAILER"


def test_version_1(tmp_path, matrix):
    path = tmp_path / "v1.npy"
    npy.write(path, matrix, version=(1, 0))
    with open(path, "rb") as f:
        raw = f.read()
    assert raw[6] == 1
    assert npy.parse_header(path).version == (1, 0)
    np.testing.assert_array_equal(npy.load(path), matrix)


def test_scalar_file(tmp_path):
    path = tmp_path / "scalar.npy"
    npy.write(path, np.uint64(2**64 - 1))
    out = np.zeros((), dtype=np.uint64)
    npy.read_into(path, out)
    assert int(out) == 2**64 - 1
    assert npy.read(path, Target.of(np.uint64, Layout.SCALAR)) == np.uint64(2**64 - 1)


def test_zero_length_file(tmp_path):
    path = tmp_path / "empty.npy"
    npy.write(path, np.zeros((0, 5), dtype=np.float64))
    m = npy.read(path, Target.of(np.float64, Layout.ROW_MAJOR))
    assert m.shape == (0, 5)


def test_truncated_data(tmp_path, matrix):
    raw = npy.dumps(matrix)
    with pytest.raises(InvalidFormat, match="truncated data"):
        npy.load(raw[:-1])


def test_bad_source_type():
    with pytest.raises(TypeError):
        npy.load(12345)


# ── numpy interoperability ──────────────────────────────────────────────────


@pytest.mark.parametrize("dtype", [
    "<f8", ">f8", "<f4", "<i4", ">i2", "<u8", "|u1", "|i1", "|b1", "<c8", ">c16",
])
@pytest.mark.parametrize("order", ["C", "F"])
def test_numpy_written_files_decode(tmp_path, dtype, order):
    rng = np.random.default_rng(0)
    m = (rng.random((3, 4)) * 100).astype(dtype)
    m = np.asfortranarray(m) if order == "F" else np.ascontiguousarray(m)
    path = str(tmp_path / "np.npy")
    np.save(path, m)

    h = npy.parse_header(path)
    assert h.fortran_order is (order == "F")
    assert h.version == (1, 0)

    got = npy.read(path, Target.of(np.dtype(dtype), Layout.ROW_MAJOR))
    np.testing.assert_array_equal(got, m)
    got = npy.read(path, Target.of(np.dtype(dtype), Layout.COL_MAJOR))
    np.testing.assert_array_equal(got, m)


def test_numpy_reads_our_files(tmp_path):
    values = [
        np.float64(3.5),
        np.arange(5, dtype=np.int16),
        np.array([[1, 2], [3, 4]], dtype=">u4"),
        np.array([True, False, True]),
        np.arange(24, dtype=np.float32).reshape(2, 3, 4),
        np.zeros((0, 3), dtype=np.complex64),
    ]
    for i, value in enumerate(values):
        for version in [(1, 0), (2, 0)]:
            path = str(tmp_path / f"v{i}-{version[0]}.npy")
            npy.write(path, value, version=version)
            back = np.load(path)
            assert back.dtype == np.asarray(value).dtype.newbyteorder("<")
            np.testing.assert_array_equal(back, value)


def test_out_of_range_version_rejected():
    with pytest.raises(InvalidFormat, match="unsupported version"):
        npy.dumps(1, version=(2, 256))


def test_numpy_record_array_is_unsupported_type(tmp_path):
    path = str(tmp_path / "rec.npy")
    np.save(path, np.zeros(2, dtype=[("a", "<i4"), ("b", "<f8")]))
    with pytest.raises(UnsupportedType):
        npy.parse_header(path)
    with pytest.raises(UnsupportedType):
        npy.load(path)
