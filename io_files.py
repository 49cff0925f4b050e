"""Helpers for writing board layouts to disk."""

from __future__ import annotations

import os
from html import escape
from typing import Sequence

from config import CFG


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_coords(items: Sequence, Wc: int, Hc: int, base_dir: str) -> str:
    """Write one line per item (cells and pixels) to the configured text file."""

    path = _resolve_output_path(base_dir, CFG.COORDS_OUT, "coords.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    grid = CFG.GRID_PX
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"canvas {Wc}x{Hc} cells ({Wc * grid}x{Hc * grid} px)\n")
        if not items:
            f.write("No items\n")
        else:
            for it in items:
                f.write(
                    f"{it.id} [{it.kind}] @ ({it.gx},{it.gy}) size ({it.gw}×{it.gh}) "
                    f"px=({it.gx * grid},{it.gy * grid},{it.gw * grid},{it.gh * grid})\n"
                )
    return path


def layout_view_html(svg: str, legend_html: str, title: str = "Layout View") -> str:
    title = escape(title)
    return f"""<!doctype html>
<html><head><meta charset='utf-8'><title>{title}</title>
<style>.swatch{{display:inline-block;width:12px;height:12px;margin-right:6px}}</style></head>
<body class='container'>
<h1>{title}</h1>
<section class='card'><div class='gridwrap'>{svg}</div></section>
<section class='card'><h3>Legend</h3><ul>{legend_html}</ul></section>
</body></html>"""


def write_layout_view_html(svg: str, legend_html: str, base_dir: str) -> str:
    """Write the rendered SVG/legend preview to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(layout_view_html(svg, legend_html))
    return path


__all__ = ["write_coords", "write_layout_view_html", "layout_view_html"]
