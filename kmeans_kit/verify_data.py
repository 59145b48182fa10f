# -*- coding: utf-8 -*-
"""
Sanity checks for a training-set CSV and/or a centroid CSV.
- Reports row counts and vector length, and compares it with the feature config.
- Flags jagged rows, values outside [0, 1] for normalised data, and duplicate
  training rows (collecting the same directory twice appends it twice).
- Checks that the centroids have the same length as the training vectors.

Usage:
  kmeans-kit verify --training data/training.csv --centroids data/centroids.csv
"""
from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import FeatureConfig
from .errors import PersistenceError


@dataclass
class TableStats:
    rows: int = 0
    dim: int = 0
    jagged: int = 0
    duplicates: int = 0
    out_of_range: int = 0


@dataclass
class VerifyReport:
    training: Optional[TableStats] = None
    centroids: Optional[TableStats] = None
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def read_vector_table(path: Path) -> pd.DataFrame:
    """Load a vector CSV as a DataFrame of strings, one column per field.

    The trailing comma of each row is dropped. Rows shorter than the widest
    row are padded with None, so jagged rows show up as missing fields
    whichever row is the longer one. Empty fields are missing too.
    """
    path = Path(path)
    rows = []
    try:
        with open(path, newline="", encoding="utf-8") as f:
            for row in csv.reader(f):
                if not row:
                    continue
                if row[-1] == "":
                    row = row[:-1]
                if not row:
                    continue
                rows.append([x if x.strip() else None for x in row])
    except FileNotFoundError as e:
        raise PersistenceError(f"CSV file not found: {path}") from e
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise PersistenceError(f"cannot parse {path}: {e}") from e
    if not rows:
        return pd.DataFrame()
    width = max(len(r) for r in rows)
    return pd.DataFrame([r + [None] * (width - len(r)) for r in rows], columns=range(width))


def table_stats(df: pd.DataFrame, normalized: bool) -> TableStats:
    st = TableStats(rows=len(df), dim=df.shape[1])
    if df.empty:
        return st
    st.jagged = int(df.isna().any(axis=1).sum())
    st.duplicates = int(df.duplicated().sum())
    if normalized:
        vals = df.apply(pd.to_numeric, errors="coerce")
        st.out_of_range = int(((vals < 0.0) | (vals > 1.0)).any(axis=1).sum())
    return st


def verify(
    training_csv: Optional[Path] = None,
    centroids_csv: Optional[Path] = None,
    config: Optional[FeatureConfig] = None,
) -> VerifyReport:
    config = config or FeatureConfig()
    rep = VerifyReport()

    if training_csv is not None:
        rep.training = table_stats(read_vector_table(training_csv), config.normalize)
        t = rep.training
        if t.rows == 0:
            rep.problems.append(f"training set {training_csv} is empty")
        elif t.dim != config.size:
            rep.problems.append(
                f"training vectors have {t.dim} values, config expects {config.size}"
            )
        if t.jagged:
            rep.problems.append(f"{t.jagged} training rows have missing fields")
        if t.out_of_range:
            rep.problems.append(f"{t.out_of_range} training rows have values outside [0, 1]")

    if centroids_csv is not None:
        rep.centroids = table_stats(read_vector_table(centroids_csv), config.normalize)
        c = rep.centroids
        if c.rows == 0:
            rep.problems.append(f"centroid file {centroids_csv} is empty")
        elif c.dim != config.size:
            rep.problems.append(f"centroids have {c.dim} values, config expects {config.size}")
        if c.jagged:
            rep.problems.append(f"{c.jagged} centroid rows have missing fields")
        if rep.training is not None and rep.training.rows and c.rows:
            if c.dim != rep.training.dim:
                rep.problems.append(
                    f"centroid length {c.dim} differs from training vector length {rep.training.dim}"
                )
            if c.rows > rep.training.rows:
                rep.problems.append(
                    f"{c.rows} centroids but only {rep.training.rows} training rows"
                )
    return rep


def print_report(rep: VerifyReport) -> None:
    if rep.training is not None:
        t = rep.training
        print(f"Training rows: {t.rows} | vector length: {t.dim}")
        if t.duplicates:
            print(f"[INFO] Duplicate training rows: {t.duplicates} (same image collected more than once?)")
    if rep.centroids is not None:
        c = rep.centroids
        print(f"Centroids (K): {c.rows} | vector length: {c.dim}")
    for p in rep.problems:
        print(f"[WARN] {p}")
    print("Verification done.")
