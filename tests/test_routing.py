from __future__ import annotations

import shutil
from pathlib import Path

import numpy as np
import pytest

from kmeans_kit.errors import RoutingError
from kmeans_kit.features import ImageRecord
from kmeans_kit.routing import AffixStripNaming, FileNaming, RouteConfig, SameStemNaming, route_records


def _rec(name: str, cluster=0) -> ImageRecord:
    return ImageRecord(filename=name, vector=np.zeros(1), extension=name.rsplit(".", 1)[-1], cluster=cluster)


@pytest.mark.parametrize(
    "filename, ext, expected",
    [
        ("img_1_thumbnail.jpeg", "jpeg", "img_1_thumbnail.jpeg"),
        ("img_1_thumbnail.jpeg", "png", "img_1.png"),
        ("img_1_thumbnail.jpeg", "ims_rgb", "img_1.ims_rgb"),
        ("img_2.jpeg", "png", "img_2.png"),
        ("a_thumbnail_b_thumbnail.jpeg", "png", "a_thumbnail_b.png"),
    ],
)
def test_affix_strip_naming(filename: str, ext: str, expected: str) -> None:
    assert AffixStripNaming("_thumbnail").sibling_name(filename, ext) == expected


def test_same_stem_naming() -> None:
    naming = SameStemNaming()
    assert naming.sibling_name("img_1_thumbnail.jpeg", "png") == "img_1_thumbnail.png"
    assert naming.sibling_name("noext", "png") == "noext.png"


def test_naming_strategy_must_define_sibling_name() -> None:
    class Incomplete(FileNaming):
        pass

    with pytest.raises(TypeError):
        Incomplete()


def test_copy_routes_all_siblings(tmp_path: Path) -> None:
    src = tmp_path / "in"
    src.mkdir()
    for name in ["img_1_thumbnail.jpeg", "img_1.png", "img_1.ims_rgb", "img_2_thumbnail.jpeg"]:
        (src / name).write_bytes(b"x")
    out = tmp_path / "out"
    route = RouteConfig(("jpeg", "png", "ims_rgb"), AffixStripNaming("_thumbnail"))

    summary = route_records([_rec("img_1_thumbnail.jpeg", 1), _rec("img_2_thumbnail.jpeg", 0)], src, out, route)

    assert sorted(p.name for p in (out / "1").iterdir()) == ["img_1.ims_rgb", "img_1.png", "img_1_thumbnail.jpeg"]
    assert [p.name for p in (out / "0").iterdir()] == ["img_2_thumbnail.jpeg"]
    assert summary.routed == 4 and summary.missing == 2 and summary.failed == 0
    # copies leave the originals in place
    assert (src / "img_1.png").exists()


def test_move_removes_originals(tmp_path: Path) -> None:
    src = tmp_path / "in"
    src.mkdir()
    (src / "a.jpeg").write_bytes(b"x")
    (src / "a.png").write_bytes(b"y")
    route_records([_rec("a.jpeg", 2)], src, tmp_path / "out", RouteConfig(("jpeg", "png")), move=True)
    assert not (src / "a.jpeg").exists() and not (src / "a.png").exists()
    assert (tmp_path / "out" / "2" / "a.png").read_bytes() == b"y"


def test_missing_sibling_is_skipped(tmp_path: Path) -> None:
    src = tmp_path / "in"
    src.mkdir()
    (src / "a.jpeg").write_bytes(b"x")
    summary = route_records([_rec("a.jpeg", 0)], src, tmp_path / "out", RouteConfig(("jpeg", "png")))
    assert summary.missing == 1
    assert not (tmp_path / "out" / "0" / "a.png").exists()
    assert (tmp_path / "out" / "0" / "a.jpeg").exists()


def test_unassigned_record_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        route_records([_rec("a.jpeg", None)], tmp_path, tmp_path / "out", RouteConfig())


def test_directory_creation_failure_aborts(tmp_path: Path) -> None:
    src = tmp_path / "in"
    src.mkdir()
    (src / "a.jpeg").write_bytes(b"x")
    out = tmp_path / "out"
    out.write_text("a file, not a directory")
    with pytest.raises(RoutingError):
        route_records([_rec("a.jpeg", 0)], src, out, RouteConfig())


def test_failed_copy_is_logged_and_batch_continues(tmp_path: Path, monkeypatch, caplog) -> None:
    src = tmp_path / "in"
    src.mkdir()
    (src / "a.jpeg").write_bytes(b"x")
    (src / "b.jpeg").write_bytes(b"x")
    real_copy = shutil.copy2

    def flaky_copy(s, d):
        if s.endswith("a.jpeg"):
            raise PermissionError("denied")
        return real_copy(s, d)

    monkeypatch.setattr(shutil, "copy2", flaky_copy)
    with caplog.at_level("WARNING", logger="kmeans_kit"):
        summary = route_records([_rec("a.jpeg", 0), _rec("b.jpeg", 0)], src, tmp_path / "out", RouteConfig())
    assert summary.failed == 1 and summary.routed == 1
    assert (tmp_path / "out" / "0" / "b.jpeg").exists()
    assert "a.jpeg" in caplog.text
