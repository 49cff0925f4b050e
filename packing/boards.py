# packing/boards.py
import random
import uuid
from typing import Optional, Sequence, Tuple, Union

from config import CFG
from models import (
    KIND_SITE,
    NO_SPACE,
    Item,
    NoSpace,
    Rect,
    canvas_dims,
    cells_from_px,
    detect_kind,
    site_cells,
)
from progress import log_detail
from packing.gaps import grow_to_bounding_box
from packing.moodboard import relayout
from packing.strategies import Policy, place, spawn_for

STYLEBOARD = "styleboard"
MOODBOARD = "moodboard"
BOARDS = (STYLEBOARD, MOODBOARD)


def _check_board(board: str) -> str:
    b = str(board or "").strip().lower()
    if b not in BOARDS:
        raise ValueError(f"unknown board: {board!r}")
    return b


def new_item(
    url: str,
    *,
    item_id: Optional[str] = None,
    kind: Optional[str] = None,
    nat_w: Optional[float] = None,
    nat_h: Optional[float] = None,
) -> Item:
    """Build an unplaced item sized from its kind and natural pixel size."""
    kind = kind or detect_kind(url)
    if kind == KIND_SITE:
        gw, gh = site_cells()
    else:
        gw, gh = cells_from_px(nat_w, nat_h)
    nat_r = None
    if nat_w and nat_h and nat_w > 0 and nat_h > 0:
        nat_r = float(nat_w) / float(nat_h)
    return Item(
        id=item_id or uuid.uuid4().hex,
        kind=kind,
        gx=0,
        gy=0,
        gw=gw,
        gh=gh,
        nat_w=nat_w,
        nat_h=nat_h,
        nat_r=nat_r,
        approved=False,
        url=url or "",
    )


def add_item(
    board: str,
    items: Sequence,
    item: Item,
    W,
    H,
    intensity=None,
    rng: Optional[random.Random] = None,
) -> Tuple[list, Union[Rect, NoSpace]]:
    """Insert ``item`` into a board; returns ``(items, rect_or_NO_SPACE)``.

    The moodboard re-tiles everything around the newcomer.  The styleboard keeps
    existing geometry and searches a free slot: anchored kinds use the strict
    ring layout (falling back to the snake search), everything else the snake.
    """
    board = _check_board(board)
    items = list(items)
    dims = canvas_dims(W, H)
    if dims is None:
        return items, NO_SPACE
    W, H = dims

    if board == MOODBOARD:
        laid = relayout(items + [item], W, H, intensity, rng)
        placed = next((it for it in laid if it.id == item.id), None)
        if placed is None:
            return laid, NO_SPACE
        return laid, placed.rect

    rect = NO_SPACE
    if item.kind == CFG.ANCHOR_KIND and CFG.SITE_STRICT_RADIAL:
        rect = place(items, item.gw, item.gh, W, H, Policy.STRICT_RADIAL, kind=item.kind)
    if not rect:
        rect = place(items, item.gw, item.gh, W, H, Policy.SNAKE)
    if not rect:
        return items, NO_SPACE
    return items + [item.with_rect(rect.gx, rect.gy, item.gw, item.gh)], rect


def remove_item(
    board: str,
    items: Sequence,
    item_id,
    W,
    H,
    intensity=None,
    rng: Optional[random.Random] = None,
) -> list:
    board = _check_board(board)
    rest = [it for it in items if it.id != item_id]
    if board == MOODBOARD:
        return relayout(rest, W, H, intensity, rng)
    return rest


def repack(items: Sequence, W, H) -> list:
    """Re-insert every item, in order, with the snake search.

    Items that find no slot are pinned at the canvas-center spawn point,
    clamped into the canvas, and kept out of the occupancy the remaining
    items are placed against.  Output order matches input order.
    """
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    settled: list = []
    out: list = []
    misses = 0
    for it in items:
        rect = place(settled, it.gw, it.gh, W, H, Policy.SNAKE)
        if rect:
            moved = it.with_rect(rect.gx, rect.gy, it.gw, it.gh)
            settled.append(moved)
        else:
            spawn = spawn_for(it.gw, it.gh, W, H)
            gx = max(0, min(W - it.gw, spawn.gx))
            gy = max(0, min(H - it.gh, spawn.gy))
            moved = it.with_rect(gx, gy, it.gw, it.gh)
            misses += 1
            log_detail("Repack miss", id=it.id, size=f"{it.gw}x{it.gh}", at=(gx, gy), canvas=f"{W}x{H}")
        out.append(moved)
    if misses:
        log_detail("Repack spawned items", misses=misses, items=len(out), canvas=f"{W}x{H}")
    return out


def collect(items: Sequence, W, H) -> list:
    """Repack, then grow items into the tight box around them."""
    if not items:
        return []
    return grow_to_bounding_box(repack(items, W, H), W, H)


def resize_canvas(
    board: str,
    items: Sequence,
    W,
    H,
    intensity=None,
    rng: Optional[random.Random] = None,
) -> list:
    board = _check_board(board)
    if board == MOODBOARD:
        return relayout(items, W, H, intensity, rng)
    return repack(items, W, H)
