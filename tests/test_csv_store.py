from __future__ import annotations

import stat
from pathlib import Path

import numpy as np
import pytest

from kmeans_kit.csv_store import (
    append_vectors,
    load_vectors,
    read_centroids,
    write_centroids,
)
from kmeans_kit.errors import ModelMismatchError, PersistenceError, StoreFormatError


def test_row_format_has_trailing_comma(tmp_path: Path) -> None:
    p = tmp_path / "training.csv"
    n = append_vectors(p, [np.array([0.5, 1.0, 0.0], dtype=np.float32)])
    assert n == 1
    assert p.read_text(encoding="utf-8") == "0.500000,1.000000,0.000000,\n"


def test_append_twice_doubles_rows(tmp_path: Path) -> None:
    p = tmp_path / "sub" / "training.csv"  # parent created on demand
    vecs = [np.full(4, 0.25, dtype=np.float32), np.full(4, 0.75, dtype=np.float32)]
    append_vectors(p, vecs)
    append_vectors(p, vecs)
    loaded = load_vectors(p)
    assert loaded.shape == (4, 4)
    assert np.allclose(loaded[2], 0.25) and np.allclose(loaded[3], 0.75)


def test_load_round_trip_within_tolerance(tmp_path: Path) -> None:
    rng = np.random.default_rng(0)
    vecs = rng.random((3, 10)).astype(np.float32)
    p = tmp_path / "t.csv"
    append_vectors(p, vecs)
    assert np.allclose(load_vectors(p), vecs, atol=1e-6)


def test_load_empty_and_blank_lines(tmp_path: Path) -> None:
    p = tmp_path / "empty.csv"
    p.write_text("", encoding="utf-8")
    assert load_vectors(p).shape == (0, 0)
    p.write_text("0.1,0.2,\n\n0.3,0.4,\n", encoding="utf-8")
    assert load_vectors(p).shape == (2, 2)


def test_jagged_rows_are_rejected(tmp_path: Path) -> None:
    p = tmp_path / "jagged.csv"
    p.write_text("0.1,0.2,0.3,\n0.4,0.5,\n", encoding="utf-8")
    with pytest.raises(StoreFormatError):
        load_vectors(p)


def test_non_numeric_field(tmp_path: Path) -> None:
    p = tmp_path / "bad.csv"
    p.write_text("0.1,abc,\n", encoding="utf-8")
    with pytest.raises(StoreFormatError):
        load_vectors(p)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PersistenceError):
        load_vectors(tmp_path / "nope.csv")


def test_expected_size_mismatch(tmp_path: Path) -> None:
    p = tmp_path / "t.csv"
    append_vectors(p, [np.zeros(6)])
    with pytest.raises(ModelMismatchError):
        load_vectors(p, expected_size=400)


def test_centroid_round_trip(tmp_path: Path) -> None:
    p = tmp_path / "model" / "centroids.csv"
    c = np.array([[0.1, 0.2, 0.3], [0.9, 0.8, 0.7]], dtype=np.float32)
    write_centroids(p, c)
    assert np.allclose(read_centroids(p), c, atol=1e-6)


def test_centroid_write_overwrites(tmp_path: Path) -> None:
    p = tmp_path / "centroids.csv"
    write_centroids(p, np.zeros((3, 2)))
    write_centroids(p, np.ones((2, 2)))
    got = read_centroids(p)
    assert got.shape == (2, 2)
    assert np.allclose(got, 1.0)
    # only the model itself is left behind, no temp files
    assert [x.name for x in tmp_path.iterdir()] == ["centroids.csv"]


def test_read_centroids_empty_file(tmp_path: Path) -> None:
    p = tmp_path / "centroids.csv"
    p.write_text("", encoding="utf-8")
    with pytest.raises(PersistenceError):
        read_centroids(p)


def test_centroid_file_mode_matches_training_file(tmp_path: Path) -> None:
    centroids = tmp_path / "centroids.csv"
    training = tmp_path / "training.csv"
    write_centroids(centroids, np.zeros((2, 2)))
    append_vectors(training, np.zeros((2, 2)))
    assert stat.S_IMODE(centroids.stat().st_mode) == stat.S_IMODE(training.stat().st_mode)


def test_failed_centroid_write_leaves_no_temp_file(tmp_path: Path) -> None:
    p = tmp_path / "centroids.csv"
    with pytest.raises(ValueError):
        write_centroids(p, [["0.5", "not-a-number"]])
    assert list(tmp_path.iterdir()) == []
