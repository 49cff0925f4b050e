# board_parser.py: tolerant request payload parser
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional, Tuple

from models import KIND_IMAGE, Board, Item, canvas_cells

_STYLES = ("styleboard", "moodboard")


def _to_float(x: Any) -> Optional[float]:
    try:
        f = float(x)
    except Exception:
        return None
    return f if math.isfinite(f) else None


def _to_int(x: Any) -> Optional[int]:
    f = _to_float(x)
    if f is None:
        return None
    return int(f)


def _first(d: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d and d[k] is not None and d[k] != "":
            return d[k]
    return None


def _as_list(val: Any) -> Optional[List[Any]]:
    if val is None:
        return []
    if isinstance(val, str):
        # form posts may carry the items as a JSON string
        try:
            val = json.loads(val)
        except ValueError:
            return None
    if isinstance(val, (list, tuple)):
        return list(val)
    return None


def parse_item(raw: Any, index: int = 0) -> Tuple[Optional[Item], Optional[str]]:
    """Decode one item dict; accepts natW/nat_w style keys and numeric strings."""
    if not isinstance(raw, dict):
        return None, f"item {index}: not an object"
    item_id = _first(raw, "id", "key")
    if item_id is None:
        return None, f"item {index}: missing id"

    gx = _to_int(_first(raw, "gx", "x"))
    gy = _to_int(_first(raw, "gy", "y"))
    gw = _to_int(_first(raw, "gw", "w"))
    gh = _to_int(_first(raw, "gh", "h"))
    if gw is None or gh is None:
        return None, f"item {index}: missing size"
    if gw < 1 or gh < 1:
        return None, f"item {index}: size must be at least 1x1"

    return Item(
        id=str(item_id),
        kind=str(_first(raw, "kind", "type") or KIND_IMAGE),
        gx=gx or 0,
        gy=gy or 0,
        gw=gw,
        gh=gh,
        nat_w=_to_float(_first(raw, "natW", "nat_w")),
        nat_h=_to_float(_first(raw, "natH", "nat_h")),
        nat_r=_to_float(_first(raw, "natR", "nat_r")),
        approved=raw.get("approved"),
        url=str(raw.get("url") or ""),
    ), None


def parse_items(raw: Any) -> Tuple[List[Item], Optional[str]]:
    lst = _as_list(raw)
    if lst is None:
        return [], "items must be a list"
    items: List[Item] = []
    seen = set()
    for i, r in enumerate(lst):
        it, err = parse_item(r, i)
        if err:
            return [], err
        if it.id in seen:
            return [], f"duplicate item id: {it.id}"
        seen.add(it.id)
        items.append(it)
    return items, None


def parse_canvas(payload: Dict[str, Any]) -> Tuple[Optional[int], Optional[int], Optional[str]]:
    """Canvas size in cells, from ``W``/``H`` (cells) or ``width_px``/``height_px``."""
    W = _to_int(_first(payload, "W", "cols", "width_cells"))
    H = _to_int(_first(payload, "H", "rows", "height_cells"))
    if W is None or H is None:
        w_px = _to_float(_first(payload, "width_px", "canvas_w"))
        h_px = _to_float(_first(payload, "height_px", "canvas_h"))
        if w_px is not None and h_px is not None:
            W, H = canvas_cells(w_px, h_px)
    if W is None or H is None:
        return None, None, "missing canvas size"
    if W < 1 or H < 1:
        return None, None, "canvas size must be positive"
    return W, H, None


def parse_board(payload: Any, default_style: str = "styleboard") -> Tuple[Optional[Board], Optional[str]]:
    """
    Return (board, error_message_or_None).
    Accepts a JSON object or a form mapping (see app.py for how it is built).
    """
    if not payload or not hasattr(payload, "get"):
        return None, "nothing parsed from request"
    data = dict(payload)

    style = str(_first(data, "board", "style") or default_style).strip().lower()
    if style not in _STYLES:
        return None, f"unknown board: {style}"

    W, H, err = parse_canvas(data)
    if err:
        return None, err

    items, err = parse_items(data.get("items"))
    if err:
        return None, err

    return Board(style=style, W=W, H=H, items=items), None


def fmt_items(items: List[Item]) -> List[Dict[str, Any]]:
    return [it.to_dict() for it in items]
