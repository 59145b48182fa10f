from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from PIL import Image


def _write_image(path: Path, value: int = 128, size=(32, 24), color: bool = False, stripes: bool = False) -> Path:
    """Save a flat (or horizontally striped) image; size is (width, height)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    w, h = size
    arr = np.full((h, w), value, dtype=np.uint8)
    if stripes:
        arr[::2, :] = 255 - value
    if color:
        arr = np.stack([arr, arr // 2, 255 - arr], axis=-1)
    Image.fromarray(arr).save(path)
    return path


@pytest.fixture
def make_image():
    return _write_image


@pytest.fixture
def two_groups_dir(tmp_path: Path) -> Path:
    """Three dark and three bright jpeg thumbnails."""
    d = tmp_path / "thumbs"
    for i, v in enumerate([10, 20, 30]):
        _write_image(d / f"dark_{i}_thumbnail.jpeg", value=v)
    for i, v in enumerate([220, 230, 240]):
        _write_image(d / f"bright_{i}_thumbnail.jpeg", value=v)
    return d
