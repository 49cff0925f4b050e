import random
import zlib
from html import escape
from typing import Dict, List, Sequence, Tuple


def _color(name: str) -> str:
    rng = random.Random(zlib.crc32(name.encode("utf-8")))
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"


def render_board(items: Sequence, Wc: int, Hc: int, scale: int = 4) -> Tuple[str, str]:
    """SVG of the canvas with one rectangle per item, plus a legend by kind."""
    palette: Dict[str, str] = {}
    for it in items:
        palette.setdefault(it.kind, _color(it.kind))

    svg_w = int(Wc * scale) + 2
    svg_h = int(Hc * scale) + 2

    rects: List[str] = []
    for it in items:
        x = int(it.gx * scale) + 1
        y = int(it.gy * scale) + 1
        w = int(it.gw * scale)
        h = int(it.gh * scale)
        label = escape(str(it.id))
        rects.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="{h}" fill="{palette[it.kind]}" stroke="black" stroke-width="1">'
            f'<title>{label} {it.gw}x{it.gh} @ ({it.gx},{it.gy})</title></rect>'
            f'<text x="{x+3}" y="{y+12}" font-size="10" fill="black">{label}</text>'
        )
    frame = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{frame}{"".join(rects)}</svg>'
    )

    counts: Dict[str, int] = {}
    for it in items:
        counts[it.kind] = counts.get(it.kind, 0) + 1
    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>{escape(k)} × {counts[k]}</li>"
        for k, c in palette.items()
    )
    return svg, legend
