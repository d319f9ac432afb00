"""Tests for point buffers and the packed point-file format."""

import jax.numpy as jnp
import numpy as np
import pytest

from pairbin import PointBuffer, PointFileError, load_points, write_points


def test_round_trip_applies_scale(tmp_path):
    coords = np.array([[1.0, 2.0, 3.0], [-4.0, 0.5, 8.0]])
    path = tmp_path / "points.bin"
    write_points(path, coords)

    assert path.stat().st_size == 6 * 8

    points = load_points(path, scale=0.5)
    assert points.n_points == 2
    assert len(points) == 2
    assert points.coords.dtype == jnp.float64
    assert np.allclose(np.asarray(points.coords), coords * 0.5)


def test_file_is_little_endian_float64(tmp_path):
    path = tmp_path / "points.bin"
    path.write_bytes(np.array([1.0, 2.0, 3.0], dtype="<f8").tobytes())
    points = load_points(path)
    assert np.asarray(points.coords).tolist() == [[1.0, 2.0, 3.0]]


def test_empty_file_gives_empty_buffer(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    points = load_points(path)
    assert points.n_points == 0
    assert points.coords.shape == (0, 3)


def test_missing_file_names_the_path(tmp_path):
    path = tmp_path / "missing.bin"
    with pytest.raises(PointFileError, match="missing.bin") as info:
        load_points(path)
    assert info.value.path == str(path)


def test_trailing_bytes_are_rejected(tmp_path):
    path = tmp_path / "ragged.bin"
    path.write_bytes(np.zeros(3, dtype="<f8").tobytes() + b"\x00\x01")
    with pytest.raises(PointFileError, match="trailing"):
        load_points(path)


def test_value_count_must_be_multiple_of_three(tmp_path):
    path = tmp_path / "short.bin"
    path.write_bytes(np.zeros(4, dtype="<f8").tobytes())
    with pytest.raises(PointFileError, match="multiple of 3"):
        load_points(path)


def test_from_flat_validates_length():
    points = PointBuffer.from_flat([0.0, 1.0, 2.0, 3.0, 4.0, 5.0], scale=2.0)
    assert np.asarray(points.coords).tolist() == [[0.0, 2.0, 4.0], [6.0, 8.0, 10.0]]
    with pytest.raises(ValueError, match="multiple of 3"):
        PointBuffer.from_flat([1.0, 2.0])


def test_buffer_rejects_wrong_shape():
    with pytest.raises(ValueError, match="n_points, 3"):
        PointBuffer(jnp.zeros((4, 2)))


def test_preview_formats_three_values_per_line():
    points = PointBuffer.from_flat(np.arange(30, dtype=np.float64))
    lines = points.preview().splitlines()
    assert len(lines) == 7
    assert lines[0] == "0.0, 1.0, 2.0"
    assert lines[-1] == "18.0, 19.0, 20.0"
    assert PointBuffer.empty().preview() == ""
