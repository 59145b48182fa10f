"""
The five run modes:

  train-now      scan images -> k-means -> (copy into clusters) -> centroids CSV
  collect        scan images -> append vectors to the training CSV
  train          training CSV -> k-means -> centroids CSV
  predict        one image -> nearest centroid id
  batch-predict  scan images -> nearest centroid per image -> move into clusters
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from . import csv_store
from .clustering import TrainResult, assign, nearest, train_records
from .clustering import train as train_vectors
from .config import FeatureConfig
from .errors import NoInputError
from .features import ImageRecord, ScanResult, compute_feature, scan_directory
from .routing import RouteConfig, RouteSummary, route_records

logger = logging.getLogger(__name__)


def _scan_or_fail(images_dir: Path, extensions: Sequence[str], config: FeatureConfig) -> ScanResult:
    scan = scan_directory(images_dir, extensions, config)
    if not scan.records:
        raise NoInputError(f"No image files found in given directory: {images_dir}")
    if scan.skipped:
        logger.info("%d of %d images in %s could not be decoded", scan.skipped, scan.matched, images_dir)
    return scan


def write_assignments(path: Path, records: Sequence[ImageRecord]) -> None:
    """filename,extension,cluster table, one row per record in scan order."""
    csv_store.ensure_parent_dir(path)
    df = pd.DataFrame(
        {
            "filename": [r.filename for r in records],
            "extension": [r.extension for r in records],
            "cluster": [r.cluster for r in records],
        }
    )
    df.to_csv(path, index=False)


def _route(records, images_dir, output_dir, route: RouteConfig, move: bool) -> RouteSummary:
    summary = route_records(records, images_dir, output_dir, route, move=move)
    logger.info(
        "%s %d files into %s (%d siblings missing, %d failed)",
        "Moved" if move else "Copied",
        summary.routed,
        output_dir,
        summary.missing,
        summary.failed,
    )
    return summary


def train_now(
    config: FeatureConfig,
    k: int,
    centroids_path: Path,
    images_dir: Path,
    extensions: Sequence[str],
    cluster_dir: Optional[Path] = None,
    route: Optional[RouteConfig] = None,
    assignments_path: Optional[Path] = None,
) -> TrainResult:
    csv_store.ensure_parent_dir(centroids_path)
    scan = _scan_or_fail(images_dir, extensions, config)
    result = train_records(scan.records, k)

    if cluster_dir is not None:
        _route(result.records, images_dir, cluster_dir, route or RouteConfig(tuple(extensions)), move=False)
    if assignments_path is not None:
        write_assignments(assignments_path, result.records)

    csv_store.write_centroids(centroids_path, result.centroids)
    return result


def collect(
    config: FeatureConfig,
    images_dir: Path,
    training_csv: Path,
    extensions: Sequence[str],
) -> int:
    """Append the vectors of every decodable image to training_csv.

    Images already collected by an earlier run are appended again; the
    training set is not deduplicated.
    """
    csv_store.ensure_parent_dir(training_csv)
    scan = _scan_or_fail(images_dir, extensions, config)
    return csv_store.append_vectors(training_csv, (r.vector for r in scan.records))


def train(
    k: int,
    training_csv: Path,
    centroids_path: Path,
    config: Optional[FeatureConfig] = None,
) -> np.ndarray:
    csv_store.ensure_parent_dir(centroids_path)
    vectors = csv_store.load_vectors(training_csv, expected_size=config.size if config else None)
    if len(vectors) == 0:
        raise NoInputError(f"training data CSV is empty: {training_csv}")
    centroids, _ = train_vectors(vectors, k)
    csv_store.write_centroids(centroids_path, centroids)
    return centroids


def predict(config: FeatureConfig, image_path: Path, centroids_path: Path) -> int:
    centroids = csv_store.read_centroids(centroids_path, expected_size=config.size)
    return nearest(centroids, compute_feature(Path(image_path), config))


def batch_predict(
    config: FeatureConfig,
    centroids_path: Path,
    images_dir: Path,
    output_dir: Path,
    extensions: Sequence[str],
    route: Optional[RouteConfig] = None,
    assignments_path: Optional[Path] = None,
) -> List[ImageRecord]:
    centroids = csv_store.read_centroids(centroids_path, expected_size=config.size)
    scan = _scan_or_fail(images_dir, extensions, config)
    records = assign(scan.records, centroids)
    if assignments_path is not None:
        write_assignments(assignments_path, records)
    _route(records, images_dir, output_dir, route or RouteConfig(tuple(extensions)), move=True)
    return records
