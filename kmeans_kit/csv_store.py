"""
CSV persistence for training vectors and cluster centroids.

Both files share one row format: every value written with six decimals,
comma-separated, with a trailing comma before the newline:

    0.501961,0.498039,0.505882,...,0.423529,

The training set is append-only across collect runs. The centroid file is
rewritten on every training run and its row index is the cluster id.
"""
from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np

from .errors import ModelMismatchError, PersistenceError, StoreFormatError


def ensure_parent_dir(path: Path) -> None:
    """Create the missing parent directories of an output file path."""
    parent = Path(path).parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(f"failed to create directory for file path: {path}: {e}") from e


def format_row(values: Iterable[float]) -> List[str]:
    return [f"{float(v):f}" for v in values] + [""]


def _write_rows(f, vectors) -> int:
    w = csv.writer(f, lineterminator="\n")
    n = 0
    for vec in vectors:
        w.writerow(format_row(vec))
        n += 1
    return n


def append_vectors(path: Path, vectors) -> int:
    """Append one row per vector, creating the file if needed. Returns rows written."""
    path = Path(path)
    ensure_parent_dir(path)
    try:
        with open(path, "a", newline="", encoding="utf-8") as f:
            return _write_rows(f, vectors)
    except OSError as e:
        raise PersistenceError(f"failed to append training data to {path}: {e}") from e


def load_vectors(path: Path, expected_size: Optional[int] = None) -> np.ndarray:
    """Read every row of a training or centroid CSV into an (n, d) float32 array.

    Blank lines are ignored. Rows must all have the same number of fields;
    nothing is padded or truncated.
    """
    path = Path(path)
    rows = []
    try:
        with open(path, newline="", encoding="utf-8") as f:
            for lineno, row in enumerate(csv.reader(f), start=1):
                if not row:
                    continue
                if row[-1] == "":
                    row = row[:-1]
                try:
                    values = [float(x) for x in row]
                except ValueError as e:
                    raise StoreFormatError(f"{path}:{lineno}: {e}") from e
                if rows and len(values) != len(rows[0]):
                    raise StoreFormatError(
                        f"{path}:{lineno}: expected {len(rows[0])} fields, got {len(values)}"
                    )
                rows.append(values)
    except FileNotFoundError as e:
        raise PersistenceError(f"CSV file not found: {path}") from e
    except OSError as e:
        raise PersistenceError(f"failed to read {path}: {e}") from e

    if not rows:
        return np.zeros((0, 0), dtype=np.float32)
    arr = np.asarray(rows, dtype=np.float32)
    if expected_size is not None and arr.shape[1] != expected_size:
        raise ModelMismatchError(
            f"{path} holds vectors of length {arr.shape[1]}, expected {expected_size}"
        )
    return arr


def _umask_mode() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def write_centroids(path: Path, centroids) -> None:
    """Replace the centroid file at path with one row per centroid.

    Rows go to a temporary file in the same directory which is then renamed
    over path, so readers never see a half-written model. The file gets the
    same permissions a plain open() would give it.
    """
    path = Path(path)
    ensure_parent_dir(path)
    tmp = None
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
            _write_rows(f, centroids)
        os.chmod(tmp, _umask_mode())
        os.replace(tmp, path)
        tmp = None
    except OSError as e:
        raise PersistenceError(
            f"error writing the CSV output file for the cluster centroids: {path}: {e}"
        ) from e
    finally:
        if tmp is not None and os.path.exists(tmp):
            os.remove(tmp)


def read_centroids(path: Path, expected_size: Optional[int] = None) -> np.ndarray:
    centroids = load_vectors(path, expected_size=expected_size)
    if len(centroids) == 0:
        raise PersistenceError(f"no centroids in {path}")
    return centroids
