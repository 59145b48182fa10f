from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import ArgumentError

# Pillow mode for each supported channel count.
CHANNEL_MODES = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}

DEFAULT_WIDTH = 20
DEFAULT_HEIGHT = 20
DEFAULT_CHANNELS = 1

DEFAULT_IMAGE_TYPES = ("jpeg",)
DEFAULT_AFFIX = "_thumbnail"


@dataclass(frozen=True)
class FeatureConfig:
    """How an image is turned into a feature vector.

    Changing any of width, height or channels changes the vector length, so
    previously collected training rows and centroids no longer apply.
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    channels: int = DEFAULT_CHANNELS
    normalize: bool = True

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ArgumentError(
                f"image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.channels not in CHANNEL_MODES:
            raise ArgumentError(
                f"channels must be one of {sorted(CHANNEL_MODES)}, got {self.channels}"
            )

    @property
    def size(self) -> int:
        return self.width * self.height * self.channels

    @property
    def mode(self) -> str:
        return CHANNEL_MODES[self.channels]


def parse_extensions(value: str) -> Tuple[str, ...]:
    """Split a comma-separated list like 'jpeg,png' (leading dots dropped)."""
    exts = []
    for part in value.split(","):
        part = part.strip().lstrip(".")
        if part and part not in exts:
            exts.append(part)
    if not exts:
        raise ArgumentError(f"no file extensions in {value!r}")
    return tuple(exts)
