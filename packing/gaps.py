# packing/gaps.py
from typing import List, Optional, Sequence, Tuple

from config import CFG
from models import canvas_dims

LEFT, UP, RIGHT, DOWN = "left", "up", "right", "down"
STAGES = (LEFT, UP, RIGHT, DOWN)


def _order(boxes: List[List[int]], stage: str) -> List[int]:
    idxs = list(range(len(boxes)))
    if stage == LEFT:
        idxs.sort(key=lambda i: boxes[i][0])
    elif stage == UP:
        idxs.sort(key=lambda i: boxes[i][1])
    elif stage == RIGHT:
        idxs.sort(key=lambda i: -(boxes[i][0] + boxes[i][2]))
    else:
        idxs.sort(key=lambda i: -(boxes[i][1] + boxes[i][3]))
    return idxs


def _clear(boxes: List[List[int]], me: int, x: int, y: int, w: int, h: int, g: int) -> bool:
    """True when the box misses every other item's gutter-inflated footprint."""
    x2, y2 = x + w, y + h
    for j, (ox, oy, ow, oh) in enumerate(boxes):
        if j == me:
            continue
        if x < ox + ow + g and ox - g < x2 and y < oy + oh + g and oy - g < y2:
            return False
    return True


def _grow(items: Sequence, target: Tuple[int, int, int, int], budget: Optional[int] = None) -> list:
    """Grow items one cell at a time toward ``target`` (x1, y1, x2, y2; exclusive ends).

    Stops after ``budget`` single-cell steps; by default eight steps per
    missing cell of area, at least 1000.  A stopped run keeps the growth so far.
    """
    tx1, ty1, tx2, ty2 = target
    g = CFG.GUTTER
    boxes = [[it.gx, it.gy, it.gw, it.gh] for it in items]

    def try_grow(i: int, stage: str) -> bool:
        x, y, w, h = boxes[i]
        if stage == LEFT:
            if x > tx1 and _clear(boxes, i, x - 1, y, w + 1, h, g):
                boxes[i] = [x - 1, y, w + 1, h]
                return True
        elif stage == UP:
            if y > ty1 and _clear(boxes, i, x, y - 1, w, h + 1, g):
                boxes[i] = [x, y - 1, w, h + 1]
                return True
        elif stage == RIGHT:
            if x + w < tx2 and _clear(boxes, i, x, y, w + 1, h, g):
                boxes[i] = [x, y, w + 1, h]
                return True
        else:
            if y + h < ty2 and _clear(boxes, i, x, y, w, h + 1, g):
                boxes[i] = [x, y, w, h + 1]
                return True
        return False

    target_area = max(0, tx2 - tx1) * max(0, ty2 - ty1)
    cur_area = sum(b[2] * b[3] for b in boxes)
    missing = max(0, target_area - cur_area)
    if budget is None:
        budget = max(1000, missing * 8)

    steps = 0
    changed = True
    while changed and steps < budget:
        changed = False
        for stage in STAGES:
            for i in _order(boxes, stage):
                while try_grow(i, stage):
                    changed = True
                    steps += 1
                    if steps >= budget:
                        break
                if steps >= budget:
                    break
            if steps >= budget:
                break

    out = []
    for it, (x, y, w, h) in zip(items, boxes):
        if (x, y, w, h) == (it.gx, it.gy, it.gw, it.gh):
            out.append(it)
        else:
            out.append(it.with_rect(x, y, w, h))
    return out


def grow_to_edges(items: Sequence, W, H) -> list:
    """Stretch items toward the canvas edges, keeping the gutter between them."""
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    if not items:
        return []
    return _grow(list(items), (0, 0, W, H))


def grow_to_bounding_box(items: Sequence, W, H) -> list:
    """Same growth, bounded by the tight box around the current items."""
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    if not items:
        return []
    items = list(items)
    x1 = max(0, min(it.gx for it in items))
    y1 = max(0, min(it.gy for it in items))
    x2 = min(W, max(it.gx + it.gw for it in items))
    y2 = min(H, max(it.gy + it.gh for it in items))
    return _grow(items, (x1, y1, x2, y2))
