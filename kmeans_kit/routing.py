"""
Copy or move clustered images into <output_dir>/<cluster_id>/.

One logical image can exist as several files: the primary variant that was
decoded (e.g. a jpeg thumbnail) and sibling variants of other types (e.g. a
png at full resolution, a raw sensor dump). Siblings are never decoded; they
are found by name through a naming strategy and follow the primary's cluster.
"""
from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Tuple

from .config import DEFAULT_AFFIX, DEFAULT_IMAGE_TYPES
from .errors import RoutingError
from .features import ImageRecord, file_extension

logger = logging.getLogger(__name__)


class FileNaming(ABC):
    """Maps a primary filename to the name of its sibling with another extension."""

    @abstractmethod
    def sibling_name(self, filename: str, extension: str) -> str:
        ...


def _stem(filename: str) -> str:
    stem, dot, _ = filename.rpartition(".")
    return stem if dot else filename


class SameStemNaming(FileNaming):
    """img_1.jpeg -> img_1.png"""

    def sibling_name(self, filename: str, extension: str) -> str:
        return f"{_stem(filename)}.{extension}"


class AffixStripNaming(FileNaming):
    """img_1_thumbnail.jpeg -> img_1.png, img_1.raw (the jpeg itself keeps its name).

    Preview files carry an affix in their name that their full-resolution and
    raw siblings do not. The affix is removed for every extension other than
    the primary's own; if the stem does not contain it the stem is used as is.
    """

    def __init__(self, affix: str = DEFAULT_AFFIX):
        self.affix = affix

    def sibling_name(self, filename: str, extension: str) -> str:
        if extension == file_extension(filename):
            return filename
        stem = _stem(filename)
        if self.affix and self.affix in stem:
            head, _, tail = stem.rpartition(self.affix)
            stem = head + tail
        return f"{stem}.{extension}"

    def __repr__(self) -> str:
        return f"AffixStripNaming(affix={self.affix!r})"


@dataclass(frozen=True)
class RouteConfig:
    sibling_extensions: Tuple[str, ...] = DEFAULT_IMAGE_TYPES
    naming: FileNaming = field(default_factory=AffixStripNaming)


@dataclass
class RouteSummary:
    routed: int = 0
    missing: int = 0
    failed: int = 0


def cluster_dir(output_dir: Path, cluster: int) -> Path:
    d = Path(output_dir) / str(cluster)
    try:
        d.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RoutingError(f"failed to create directory for file path: {d}: {e}") from e
    return d


def route_records(
    records: Iterable[ImageRecord],
    images_dir: Path,
    output_dir: Path,
    route: RouteConfig,
    move: bool = False,
) -> RouteSummary:
    """Copy (training) or move (prediction) every record's files to its cluster dir.

    Missing siblings are skipped silently. A failed copy/move of one file is
    logged and the batch goes on; failing to create a cluster directory stops
    the batch without undoing files already routed.
    """
    images_dir = Path(images_dir)
    transfer = shutil.move if move else shutil.copy2
    summary = RouteSummary()
    for rec in records:
        if rec.cluster is None:
            raise ValueError(f"record {rec.filename} has no cluster assignment")
        dest = cluster_dir(output_dir, rec.cluster)
        for ext in route.sibling_extensions:
            name = route.naming.sibling_name(rec.filename, ext)
            src = images_dir / name
            if not src.is_file():
                summary.missing += 1
                continue
            try:
                transfer(str(src), str(dest / name))
            except OSError as e:
                logger.warning("Failed to %s %s to %s: %s", "move" if move else "copy", src, dest, e)
                summary.failed += 1
                continue
            summary.routed += 1
            logger.debug("%s %s -> %s", "Moved" if move else "Copied", name, dest)
    return summary
