"""HTML overview of a routed output directory (<root>/<cluster_id>/<files>)."""
from __future__ import annotations

import html
import os
from pathlib import Path
from typing import Optional

from .errors import DirectoryError, NoInputError

HTML_HEAD = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Cluster Gallery</title>
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>
:root{ --bg:#0b1320; --card:#111a2e; --ink:#e9eef9; --muted:#a9b7d0; --accent:#6aa9ff; }
*{box-sizing:border-box}
body{margin:24px; font-family:Inter,system-ui,Segoe UI,Roboto,Arial,sans-serif; background:var(--bg); color:var(--ink)}
h1{font-size:28px; margin:0 0 8px}
h2{margin:32px 0 12px; font-size:22px; color:var(--accent)}
.section{margin-bottom:28px; border-top:1px solid #1f2942; padding-top:18px}
.grid{display:grid; grid-template-columns:repeat(auto-fill,minmax(180px,1fr)); gap:12px}
.card{background:var(--card); border:1px solid #1f2942; border-radius:14px; padding:10px}
.card img{width:100%; height:140px; object-fit:contain; background:#0a0f1e; border-radius:8px}
.name{font-size:12px; color:var(--muted); margin-top:6px; word-break:break-all}
.list{margin-top:8px; font-size:12px; color:var(--muted)}
.list a{color:var(--muted); text-decoration:none}
.badge{font-size:12px; background:#0e1b34; padding:2px 8px; border-radius:999px; border:1px solid #1f2942; color:#b7c6e6}
</style>
</head>
<body>
<h1>Cluster Gallery</h1>
"""
HTML_TAIL = """</body></html>"""

# types a browser can show inline; everything else is listed as a link
WEB_IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"}


def _href(p: Path, out: Path) -> str:
    rel = Path(os.path.relpath(p, out.parent)).as_posix()
    return html.escape(rel, quote=True)


def cluster_dirs(root: Path):
    if not root.is_dir():
        raise DirectoryError(f"cannot open directory: {root}")
    dirs = [d for d in root.iterdir() if d.is_dir() and d.name.isdigit()]
    return sorted(dirs, key=lambda d: int(d.name))


def make_gallery(root: Path, out_html: Optional[Path] = None) -> Path:
    root = Path(root)
    dirs = cluster_dirs(root)
    if not dirs:
        raise NoInputError(f"no cluster directories under {root}")
    out = Path(out_html) if out_html else root / "gallery.html"

    parts = [HTML_HEAD]
    for d in dirs:
        files = sorted(p for p in d.iterdir() if p.is_file())
        shown = [p for p in files if p.suffix.lower() in WEB_IMAGE_EXTS]
        others = [p for p in files if p.suffix.lower() not in WEB_IMAGE_EXTS]
        parts.append(
            f'<div class="section"><h2>Cluster {d.name} <span class="badge">{len(files)} files</span></h2>'
        )
        parts.append('<div class="grid">')
        for p in shown:
            rel = _href(p, out)
            name = html.escape(p.name)
            parts.append(
                f'<div class="card"><a href="{rel}" target="_blank"><img src="{rel}" alt="{name}"></a>'
                f'<div class="name">{name}</div></div>'
            )
        parts.append("</div>")
        if others:
            parts.append('<div class="list">')
            for p in others:
                rel = _href(p, out)
                parts.append(f'• <a href="{rel}">{html.escape(p.name)}</a><br>')
            parts.append("</div>")
        parts.append("</div>")
    parts.append(HTML_TAIL)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text("\n".join(parts), encoding="utf-8")
    return out
