# packing/occupancy.py
from dataclasses import dataclass
from itertools import accumulate
from typing import Dict, Iterable, List, Sequence, Tuple

from config import CFG
from models import Rect


@dataclass
class Occupancy:
    """Bitmap of claimed cells plus its (W+1) x (H+1) prefix sum."""
    W: int
    H: int
    grid: bytearray
    ps: List[int]

    def cell(self, x: int, y: int) -> bool:
        if x < 0 or y < 0 or x >= self.W or y >= self.H:
            return False
        return self.grid[y * self.W + x] != 0

    def occupied(self, x1: int, y1: int, x2: int, y2: int) -> bool:
        return query(self.ps, x1, y1, x2, y2, self.W)

    def can_place(self, gx: int, gy: int, gw: int, gh: int) -> bool:
        return can_place(Rect(gx, gy, gw, gh), self.W, self.H, self.ps)


def _mark(grid: bytearray, W: int, x0: int, y0: int, x1: int, y1: int) -> None:
    # half-open [x0, x1) x [y0, y1), already clipped
    if x1 <= x0 or y1 <= y0:
        return
    run = b"\x01" * (x1 - x0)
    for y in range(y0, y1):
        base = y * W
        grid[base + x0:base + x1] = run


def prefix_sum(grid: bytearray, W: int, H: int) -> List[int]:
    stride = W + 1
    ps = [0] * (stride * (H + 1))
    for y in range(H):
        prev = y * stride
        base = prev + stride
        row = accumulate(grid[y * W:(y + 1) * W])
        ps[base + 1:base + stride] = [a + b for a, b in zip(row, ps[prev + 1:prev + stride])]
    return ps


def build_inflated(items: Iterable, W: int, H: int, gutter: int = None) -> Occupancy:
    """Occupancy where every item claims its box grown by the gutter on each side."""
    g = CFG.GUTTER if gutter is None else int(gutter)
    grid = bytearray(W * H)
    for it in items:
        x0 = max(0, it.gx - g)
        y0 = max(0, it.gy - g)
        x1 = min(W, it.gx + it.gw + g)
        y1 = min(H, it.gy + it.gh + g)
        _mark(grid, W, x0, y0, x1, y1)
    return Occupancy(W, H, grid, prefix_sum(grid, W, H))


def build_exact(items: Iterable, W: int, H: int) -> Tuple[bytearray, bool]:
    """Mark exact footprints; stop at the first cell claimed twice.

    Returns ``(grid, overlapped)``.  The grid is partial when an overlap was hit.
    """
    grid = bytearray(W * H)
    for it in items:
        x0 = max(0, it.gx)
        y0 = max(0, it.gy)
        x1 = min(W, it.gx + it.gw)
        y1 = min(H, it.gy + it.gh)
        if x1 <= x0 or y1 <= y0:
            continue
        for y in range(y0, y1):
            base = y * W
            if any(grid[base + x0:base + x1]):
                return grid, True
            grid[base + x0:base + x1] = b"\x01" * (x1 - x0)
    return grid, False


def has_overlap_exact(items: Iterable, W: int, H: int) -> bool:
    return build_exact(items, W, H)[1]


def query(ps: Sequence[int], x1: int, y1: int, x2: int, y2: int, W: int) -> bool:
    """True when any cell of the inclusive box (x1, y1)-(x2, y2) is claimed."""
    s = W + 1
    a = ps[y1 * s + x1]
    b = ps[y1 * s + x2 + 1]
    c = ps[(y2 + 1) * s + x1]
    d = ps[(y2 + 1) * s + x2 + 1]
    return (d - b - c + a) > 0


def can_place(rect: Rect, W: int, H: int, ps: Sequence[int]) -> bool:
    if rect.gw < 1 or rect.gh < 1:
        return False
    if rect.gx < 0 or rect.gy < 0:
        return False
    if rect.gx + rect.gw > W or rect.gy + rect.gh > H:
        return False
    return not query(ps, rect.gx, rect.gy, rect.gx + rect.gw - 1, rect.gy + rect.gh - 1, W)


def frontier(items: Iterable, occ: Occupancy, gutter: int = None) -> List[Tuple[int, int]]:
    """Free cells in the one-cell ring just outside each item's inflated box.

    Order follows the items, then top, bottom, left, right rows of each ring;
    duplicates keep their first position.
    """
    g = CFG.GUTTER if gutter is None else int(gutter)
    W, H = occ.W, occ.H
    seen: Dict[Tuple[int, int], None] = {}
    for it in items:
        min_x = max(0, it.gx - g)
        max_x = min(W - 1, it.gx + it.gw + g - 1)
        min_y = max(0, it.gy - g)
        max_y = min(H - 1, it.gy + it.gh + g - 1)
        y_top, y_bot = min_y - 1, max_y + 1
        x_left, x_right = min_x - 1, max_x + 1
        if y_top >= 0:
            for x in range(min_x, max_x + 1):
                if not occ.cell(x, y_top):
                    seen.setdefault((x, y_top))
        if y_bot < H:
            for x in range(min_x, max_x + 1):
                if not occ.cell(x, y_bot):
                    seen.setdefault((x, y_bot))
        if x_left >= 0:
            for y in range(min_y, max_y + 1):
                if not occ.cell(x_left, y):
                    seen.setdefault((x_left, y))
        if x_right < W:
            for y in range(min_y, max_y + 1):
                if not occ.cell(x_right, y):
                    seen.setdefault((x_right, y))
    return list(seen)


def edge_touch_sides(gx: int, gy: int, gw: int, gh: int, occ: Occupancy) -> Tuple[int, int, int, int]:
    """Claimed cells bordering each side of the box, as (right, down, left, up)."""
    top = bottom = left = right = 0
    for x in range(gx, gx + gw):
        if occ.cell(x, gy - 1):
            top += 1
        if occ.cell(x, gy + gh):
            bottom += 1
    for y in range(gy, gy + gh):
        if occ.cell(gx - 1, y):
            left += 1
        if occ.cell(gx + gw, y):
            right += 1
    return right, bottom, left, top


def edge_touch_sum(gx: int, gy: int, gw: int, gh: int, occ: Occupancy) -> int:
    return sum(edge_touch_sides(gx, gy, gw, gh, occ))
