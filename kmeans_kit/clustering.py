from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from sklearn.cluster import KMeans

from .errors import ArgumentError, ModelMismatchError, NoInputError
from .features import ImageRecord, stack_vectors

logger = logging.getLogger(__name__)


@dataclass
class TrainResult:
    centroids: np.ndarray  # (K, D), row index == cluster id
    records: List[ImageRecord]  # scan order, each with its cluster id

    @property
    def k(self) -> int:
        return len(self.centroids)


def cluster(points: np.ndarray, k: int):
    """Lloyd k-means. Returns (centroids, labels), labels aligned with points."""
    km = KMeans(n_clusters=k, n_init=10, random_state=42).fit(points)
    centroids = km.cluster_centers_.astype(np.float32)
    labels = km.labels_.astype(int).tolist()
    return centroids, labels


def nearest(centroids: np.ndarray, vector: np.ndarray) -> int:
    """Index of the centroid closest to vector (squared euclidean)."""
    centroids = np.asarray(centroids, dtype=np.float32)
    vector = np.asarray(vector, dtype=np.float32)
    if centroids.ndim != 2 or centroids.shape[1] != vector.shape[-1]:
        raise ModelMismatchError(
            f"feature vector has {vector.shape[-1]} values but centroids have "
            f"{centroids.shape[-1]}; image width/height/channels must match the trained model"
        )
    d2 = ((centroids - vector) ** 2).sum(axis=1)
    return int(np.argmin(d2))


def train(vectors: np.ndarray, k: int):
    vectors = np.asarray(vectors, dtype=np.float32)
    if len(vectors) == 0:
        raise NoInputError("no training vectors to cluster")
    if k < 1:
        raise ArgumentError(f"K must be at least 1, got {k}")
    if k > len(vectors):
        raise ArgumentError(f"K={k} is larger than the number of training vectors ({len(vectors)})")
    logger.info("Clustering %d vectors of length %d into %d clusters", len(vectors), vectors.shape[1], k)
    return cluster(vectors, k)


def train_records(records: Sequence[ImageRecord], k: int) -> TrainResult:
    centroids, labels = train(stack_vectors(r.vector for r in records), k)
    assigned = [r.with_cluster(c) for r, c in zip(records, labels)]
    return TrainResult(centroids=centroids, records=assigned)


def assign(records: Sequence[ImageRecord], centroids: np.ndarray) -> List[ImageRecord]:
    return [r.with_cluster(nearest(centroids, r.vector)) for r in records]
