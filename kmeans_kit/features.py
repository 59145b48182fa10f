"""
Image -> feature vector, and directory scans that pair each image name with
its vector.

A feature is the image converted to the configured channel mode, resampled
to width x height and flattened row-major with channels interleaved, so a
20x20 greyscale config gives 400 values. With normalisation on every value
is in [0, 1], otherwise in [0, 255].
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np
from PIL import Image

from .config import FeatureConfig
from .errors import DecodeError, DirectoryError, ResizeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRecord:
    """One scanned image. cluster is filled in once the record is assigned."""

    filename: str
    vector: np.ndarray = field(repr=False, compare=False)
    extension: str = ""
    cluster: Optional[int] = None

    def with_cluster(self, cluster: int) -> "ImageRecord":
        return replace(self, cluster=int(cluster))


@dataclass
class ScanResult:
    records: List[ImageRecord]
    seen: int = 0  # regular files in the directory
    matched: int = 0  # of those, files with an allowed extension
    skipped: int = 0  # matched files that failed to decode

    @property
    def vectors(self) -> np.ndarray:
        return stack_vectors([r.vector for r in self.records])


def file_extension(name: str) -> str:
    """Text after the final '.', or '' when the name has none."""
    _, dot, ext = name.rpartition(".")
    return ext if dot else ""


def load_image(fp: Path, mode: str) -> Image.Image:
    try:
        with Image.open(fp) as im:
            return im.convert(mode)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"cannot decode image {fp}: {e}") from e


def compute_feature(fp: Path, config: FeatureConfig) -> np.ndarray:
    im = load_image(fp, config.mode)
    try:
        im = im.resize((config.width, config.height), Image.LANCZOS)
    except (OSError, ValueError) as e:
        raise ResizeError(f"cannot resize image {fp}: {e}") from e
    feat = np.asarray(im, dtype=np.float32).reshape(-1)
    if config.normalize:
        feat = feat / 255.0
    feat = feat.astype(np.float32)
    feat.setflags(write=False)
    return feat


def stack_vectors(vectors: Iterable[np.ndarray]) -> np.ndarray:
    vectors = list(vectors)
    if not vectors:
        return np.zeros((0, 0), dtype=np.float32)
    return np.stack(vectors, axis=0)


def collect_images(images_dir: Path, extensions: Iterable[str]):
    """Regular files directly under images_dir whose extension is allowed.

    Returns (paths, seen) where seen counts every regular file. Symlinks and
    subdirectories are not followed.
    """
    images_dir = Path(images_dir)
    allowed = set(extensions)
    if not images_dir.is_dir():
        raise DirectoryError(f"cannot open directory: {images_dir}")
    try:
        entries = sorted(images_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise DirectoryError(f"cannot open directory: {images_dir}: {e}") from e

    paths, seen = [], 0
    for p in entries:
        if p.is_symlink() or not p.is_file():
            continue
        seen += 1
        if file_extension(p.name) in allowed:
            paths.append(p)
    return paths, seen


def scan_directory(
    images_dir: Path, extensions: Iterable[str], config: FeatureConfig
) -> ScanResult:
    paths, seen = collect_images(images_dir, extensions)
    result = ScanResult(records=[], seen=seen, matched=len(paths))
    for p in paths:
        try:
            feat = compute_feature(p, config)
        except DecodeError as e:
            logger.warning("Skipping invalid or corrupt image %s: %s", p.name, e)
            result.skipped += 1
            continue
        result.records.append(
            ImageRecord(filename=p.name, vector=feat, extension=file_extension(p.name))
        )
    logger.debug(
        "Scanned %s: %d files, %d matched, %d skipped",
        images_dir,
        result.seen,
        result.matched,
        result.skipped,
    )
    return result
