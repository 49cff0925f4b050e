# packing/edges.py
import math
from typing import Sequence

from models import EdgeShift, canvas_dims

EDGE_ALIASES = {
    "left": "left",
    "right": "right",
    "up": "up",
    "top": "up",
    "down": "down",
    "bottom": "down",
}


def shift_edge(items: Sequence, item_id, edge: str, delta, W, H) -> EdgeShift:
    """Move the boundary line under one edge of ``item_id`` by ``delta`` cells.

    Items whose far edge sits on the line (the near group) grow or shrink;
    items whose origin sits on it (the far group) move and resize by the same
    amount so their own far edges stay put.  The delta is clamped so no item
    drops below one cell or leaves the canvas, then applied to both groups at
    once.  Returns the new list and the delta actually applied.
    """
    unchanged = EdgeShift(list(items), 0)
    dims = canvas_dims(W, H)
    if dims is None:
        return unchanged
    W, H = dims
    side = EDGE_ALIASES.get(str(edge).lower())
    if side is None:
        raise ValueError(f"unknown edge: {edge!r}")
    try:
        want = float(delta)
    except (TypeError, ValueError):
        return unchanged
    if not math.isfinite(want) or want == 0:
        return unchanged

    items = list(items)
    target = next((it for it in items if it.id == item_id), None)
    if target is None:
        return unchanged

    horizontal = side in ("left", "right")
    if horizontal:
        line = target.gx + target.gw if side == "right" else target.gx
        near = [i for i, it in enumerate(items) if it.gx + it.gw == line]
        far = [i for i, it in enumerate(items) if it.gx == line]
        limit = W
    else:
        line = target.gy + target.gh if side == "down" else target.gy
        near = [i for i, it in enumerate(items) if it.gy + it.gh == line]
        far = [i for i, it in enumerate(items) if it.gy == line]
        limit = H
    if not near or not far:
        return unchanged

    lo = -math.inf
    hi = math.inf
    for i in near:
        it = items[i]
        pos, size = (it.gx, it.gw) if horizontal else (it.gy, it.gh)
        lo = max(lo, 1 - size)
        hi = min(hi, limit - (pos + size))
    for i in far:
        it = items[i]
        pos, size = (it.gx, it.gw) if horizontal else (it.gy, it.gh)
        hi = min(hi, size - 1)
        lo = max(lo, -pos)
    if lo > hi:
        return unchanged

    d = int(max(lo, min(hi, want)))
    if d == 0:
        return unchanged

    out = list(items)
    for i in near:
        it = items[i]
        if horizontal:
            out[i] = it.with_rect(it.gx, it.gy, it.gw + d, it.gh)
        else:
            out[i] = it.with_rect(it.gx, it.gy, it.gw, it.gh + d)
    for i in far:
        it = items[i]
        if horizontal:
            out[i] = it.with_rect(it.gx + d, it.gy, it.gw - d, it.gh)
        else:
            out[i] = it.with_rect(it.gx, it.gy + d, it.gw, it.gh - d)
    return EdgeShift(out, d)
