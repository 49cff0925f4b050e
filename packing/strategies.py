# packing/strategies.py
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from config import CFG
from models import NO_SPACE, NoSpace, Rect, canvas_dims
from progress import log_detail
from packing.occupancy import Occupancy, build_inflated, edge_touch_sides, edge_touch_sum, frontier

Placement = Union[Rect, NoSpace]


class Policy:
    PACKED = "packed"
    SNAKE = "snake"
    RADIAL = "radial"
    STRICT_RADIAL = "strict_radial"
    SPIRAL = "spiral"

    ALL = (PACKED, SNAKE, RADIAL, STRICT_RADIAL, SPIRAL)


# side index relative to the anchor; lower wins ties
SIDE_R, SIDE_D, SIDE_L, SIDE_U = 0, 1, 2, 3


def spawn_for(gw: int, gh: int, W: int, H: int) -> Rect:
    """Canvas-center origin for a ``gw`` x ``gh`` box."""
    return Rect(W // 2 - gw // 2, H // 2 - gh // 2, gw, gh)


def center_out(anchor: int, lo: int, hi: int) -> Iterator[int]:
    """anchor, anchor+1, anchor-1, anchor+2, ... restricted to [lo, hi]."""
    step = 0
    while True:
        a = anchor + step
        if lo <= a <= hi:
            yield a
        if step:
            b = anchor - step
            if lo <= b <= hi:
                yield b
        step += 1
        if anchor - step < lo and anchor + step > hi:
            break


def side_index(anchor, gx: int, gy: int, gw: int, gh: int) -> int:
    ax = anchor.gx + anchor.gw / 2
    ay = anchor.gy + anchor.gh / 2
    dx = gx + gw / 2 - ax
    dy = gy + gh / 2 - ay
    if abs(dx) >= abs(dy):
        return SIDE_R if dx >= 0 else SIDE_L
    return SIDE_D if dy >= 0 else SIDE_U


def packed_score(gx: int, gy: int, gw: int, gh: int, occ: Occupancy, anchor) -> float:
    right, down, left, up = edge_touch_sides(gx, gy, gw, gh, occ)
    total = right + down + left + up
    corner = 1000 if ((right and up) or (right and down) or (left and up) or (left and down)) else 0
    ax = anchor.gx + anchor.gw / 2
    ay = anchor.gy + anchor.gh / 2
    dist = abs(gx + gw / 2 - ax) + abs(gy + gh / 2 - ay)
    return total * 100000 + corner - dist * 10 - side_index(anchor, gx, gy, gw, gh)


# ------------------------------
# Strategies
# ------------------------------

def find_packed(items: Sequence, gw: int, gh: int, W: int, H: int) -> Placement:
    """Frontier search scored by contact with the existing cluster.

    Candidates are origins that put the new box flush against a claimed cell
    next to a frontier cell.  The highest score wins; the first candidate seen
    keeps a tie.
    """
    if not items:
        return spawn_for(gw, gh, W, H)

    occ = build_inflated(items, W, H)
    anchor = items[-1]

    candidates: Dict[Tuple[int, int], None] = {}
    for fx, fy in frontier(items, occ):
        if occ.cell(fx - 1, fy):
            for t in range(gh):
                candidates.setdefault((fx, fy - t))
        if occ.cell(fx + 1, fy):
            for t in range(gh):
                candidates.setdefault((fx - gw + 1, fy - t))
        if occ.cell(fx, fy - 1):
            for t in range(gw):
                candidates.setdefault((fx - t, fy))
        if occ.cell(fx, fy + 1):
            for t in range(gw):
                candidates.setdefault((fx - t, fy - gh + 1))

    best: Optional[Tuple[int, int]] = None
    best_score = 0.0
    for gx, gy in candidates:
        if not occ.can_place(gx, gy, gw, gh):
            continue
        score = packed_score(gx, gy, gw, gh, occ, anchor)
        if best is None or score > best_score:
            best, best_score = (gx, gy), score

    if best is not None:
        return Rect(best[0], best[1], gw, gh)
    return _fallback(items, gw, gh, W, H, occ)


def find_snake(items: Sequence, gw: int, gh: int, W: int, H: int) -> Placement:
    """Center-out scan of the cluster's neighbourhood, pockets first.

    Columns are visited center-out from the last item, and rows center-out
    inside each column.  The first origin touching two or more claimed cells
    wins; failing that the first touching one; failing that the first free one.
    """
    if not items:
        return spawn_for(gw, gh, W, H)

    g = CFG.GUTTER
    occ = build_inflated(items, W, H)
    anchor = items[-1]

    min_x = min(it.gx - g for it in items)
    min_y = min(it.gy - g for it in items)
    max_x = max(it.gx + it.gw + g - 1 for it in items)
    max_y = max(it.gy + it.gh + g - 1 for it in items)
    margin = CFG.SNAKE_MARGIN
    x_lo = _clamp(min_x - gw - margin, 0, W - gw)
    x_hi = _clamp(max_x + margin, 0, W - gw)
    y_lo = _clamp(min_y - gh - margin, 0, H - gh)
    y_hi = _clamp(max_y + margin, 0, H - gh)

    ys = list(center_out(anchor.gy, y_lo, y_hi))
    first_one: Optional[Tuple[int, int]] = None
    first_any: Optional[Tuple[int, int]] = None
    for x in center_out(anchor.gx, x_lo, x_hi):
        for y in ys:
            if not occ.can_place(x, y, gw, gh):
                continue
            touch = edge_touch_sum(x, y, gw, gh, occ)
            if touch >= 2:
                return Rect(x, y, gw, gh)
            if touch >= 1 and first_one is None:
                first_one = (x, y)
            if first_any is None:
                first_any = (x, y)

    pick = first_one or first_any
    if pick is not None:
        return Rect(pick[0], pick[1], gw, gh)
    return _fallback(items, gw, gh, W, H, occ)


def find_radial(items: Sequence, gw: int, gh: int, W: int, H: int, occ: Occupancy = None) -> Placement:
    """Rings around the last item, sides Right, Down, Left, Up, one gutter apart."""
    if not items:
        return spawn_for(gw, gh, W, H)

    g = CFG.GUTTER
    if occ is None:
        occ = build_inflated(items, W, H)
    anchor = items[-1]
    x_max = W - gw
    y_max = H - gh

    base_r = anchor.gx + anchor.gw + g
    base_l = anchor.gx - gw - g
    base_d = anchor.gy + anchor.gh + g
    base_u = anchor.gy - gh - g
    r_max = max(0, x_max - base_r, base_l, y_max - base_d, base_u)

    def fits(x: int, y: int) -> bool:
        return 0 <= x <= x_max and 0 <= y <= y_max and occ.can_place(x, y, gw, gh)

    for r in range(r_max + 1):
        x = base_r + r
        if 0 <= x <= x_max:
            for y in range(anchor.gy - r, anchor.gy + r + 1):
                if fits(x, y):
                    return Rect(x, y, gw, gh)
        y = base_d + r
        if 0 <= y <= y_max:
            for x in range(anchor.gx - r, anchor.gx + r + 1):
                if fits(x, y):
                    return Rect(x, y, gw, gh)
        x = base_l - r
        if 0 <= x <= x_max:
            for y in range(anchor.gy - r, anchor.gy + r + 1):
                if fits(x, y):
                    return Rect(x, y, gw, gh)
        y = base_u - r
        if 0 <= y <= y_max:
            for x in range(anchor.gx - r, anchor.gx + r + 1):
                if fits(x, y):
                    return Rect(x, y, gw, gh)
    return NO_SPACE


def next_ring_side(items: Sequence, kind: str = None) -> Tuple[int, int]:
    """(ring, side) of the next slot around the anchor; side -1 means "center"."""
    kind = kind or CFG.ANCHOR_KIND
    n = sum(1 for it in items if it.kind == kind)
    if n == 0:
        return 0, -1
    k = n - 1
    return k // 4, k % 4


def _ring_slots(anchor, gw: int, gh: int, r: int) -> List[Tuple[int, int, int]]:
    """Slots of ring ``r`` as (side, x, y): each side's sweep, then its corner."""
    g = CFG.GUTTER
    step_x = anchor.gw + 2 * g
    step_y = anchor.gh + 2 * g
    x_r = anchor.gx + anchor.gw + (r + 1) * step_x
    y_d = anchor.gy + anchor.gh + (r + 1) * step_y
    x_l = anchor.gx - (r + 1) * step_x - gw
    y_u = anchor.gy - (r + 1) * step_y - gh
    sweep = range(-r, r + 1)

    slots: List[Tuple[int, int, int]] = []
    slots.extend((SIDE_R, x_r, anchor.gy + k * step_y) for k in sweep)
    slots.append((SIDE_R, x_r, y_u))                      # top-right
    slots.extend((SIDE_D, anchor.gx + k * step_x, y_d) for k in sweep)
    slots.append((SIDE_D, x_r, y_d))                      # bottom-right
    slots.extend((SIDE_L, x_l, anchor.gy + k * step_y) for k in sweep)
    slots.append((SIDE_L, x_l, y_d))                      # bottom-left
    slots.extend((SIDE_U, anchor.gx + k * step_x, y_u) for k in sweep)
    slots.append((SIDE_U, x_l, y_u))                      # top-left
    return slots


def find_strict_radial(items: Sequence, gw: int, gh: int, W: int, H: int, kind: str = None) -> Placement:
    """Anchored ring layout for one kind of item.

    The first item of ``kind`` is the anchor; peers go into rings stepping by
    the anchor's footprint plus two gutters.  The first-choice slot comes from
    the number of peers already placed and the search walks forward from it.
    """
    kind = kind or CFG.ANCHOR_KIND
    peers = [it for it in items if it.kind == kind]
    if not peers:
        # first of its kind goes to the center, or as near to it as possible
        return find_spiral(items, gw, gh, W, H)

    anchor = peers[0]
    occ = build_inflated(items, W, H)
    x_max = W - gw
    y_max = H - gh
    g = CFG.GUTTER
    step_x = anchor.gw + 2 * g
    step_y = anchor.gh + 2 * g

    r_max = max(
        (x_max - anchor.gx - anchor.gw) // step_x - 1,
        (anchor.gx - gw) // step_x - 1,
        (y_max - anchor.gy - anchor.gh) // step_y - 1,
        (anchor.gy - gh) // step_y - 1,
    )
    ring0, side0 = next_ring_side(items, kind)
    if r_max < 0 or ring0 > r_max:
        return NO_SPACE

    for r in range(ring0, r_max + 1):
        for side, x, y in _ring_slots(anchor, gw, gh, r):
            if r == ring0 and side < side0:
                continue
            if 0 <= x <= x_max and 0 <= y <= y_max and occ.can_place(x, y, gw, gh):
                return Rect(x, y, gw, gh)
    return NO_SPACE


def _spiral_walk(occ: Occupancy, gw: int, gh: int, budget: int) -> Tuple[Optional[Rect], bool]:
    """Unit-step spiral from the spawn point.

    Returns ``(rect, exhausted)``; ``exhausted`` is True only when the probe
    budget ran out before the walk had covered the whole canvas.
    """
    W, H = occ.W, occ.H
    start = spawn_for(gw, gh, W, H)
    x, y = start.gx, start.gy
    if occ.can_place(x, y, gw, gh):
        return start, False

    reach = 2 * max(W, H) + 2
    legs = ((1, 0), (0, 1), (-1, 0), (0, -1))
    run = 1
    leg = 0
    probes = 0
    while run <= reach:
        dx, dy = legs[leg % 4]
        for _ in range(run):
            x += dx
            y += dy
            probes += 1
            if occ.can_place(x, y, gw, gh):
                return Rect(x, y, gw, gh), False
            if probes >= budget:
                return None, True
        leg += 1
        if leg % 2 == 0:
            run += 1
    return None, False


def find_spiral(items: Sequence, gw: int, gh: int, W: int, H: int, occ: Occupancy = None) -> Placement:
    if occ is None:
        occ = build_inflated(items, W, H)
    rect, exhausted = _spiral_walk(occ, gw, gh, max(1, CFG.SPIRAL_MAX_STEPS))
    if rect is not None:
        return rect
    if exhausted and CFG.EXACT_RESCUE:
        log_detail("Spiral budget exhausted", size=f"{gw}x{gh}", canvas=f"{W}x{H}", steps=CFG.SPIRAL_MAX_STEPS)
        from packing.exact_rescue import rescue_placement
        spawn = spawn_for(gw, gh, W, H)
        return rescue_placement(items, gw, gh, W, H, target=(spawn.gx, spawn.gy))
    return NO_SPACE


def _fallback(items: Sequence, gw: int, gh: int, W: int, H: int, occ: Occupancy) -> Placement:
    rect = find_radial(items, gw, gh, W, H, occ)
    if rect:
        return rect
    return find_spiral(items, gw, gh, W, H, occ)


def _clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


# ------------------------------
# Dispatch
# ------------------------------

_FINDERS = {
    Policy.PACKED: find_packed,
    Policy.SNAKE: find_snake,
    Policy.RADIAL: find_radial,
    Policy.SPIRAL: find_spiral,
}


def find_placement(policy: str, items: Sequence, gw: int, gh: int, W: int, H: int, *, kind: str = None) -> Placement:
    """Run one placement policy on an already validated canvas."""
    if policy == Policy.STRICT_RADIAL:
        return find_strict_radial(items, gw, gh, W, H, kind=kind)
    finder = _FINDERS.get(policy)
    if finder is None:
        raise ValueError(f"unknown placement policy: {policy!r}")
    return finder(items, gw, gh, W, H)


def place(items: Sequence, gw, gh, W, H, policy: str = Policy.PACKED, *, kind: str = None) -> Placement:
    """Find an origin for a new ``gw`` x ``gh`` box among ``items``.

    Returns a :class:`Rect` or ``NO_SPACE``.  Sizes and canvas are validated
    here; the individual strategies assume sane input.
    """
    dims = canvas_dims(W, H)
    if dims is None:
        return NO_SPACE
    W, H = dims
    try:
        gw, gh = int(gw), int(gh)
    except (TypeError, ValueError):
        return NO_SPACE
    if gw < 1 or gh < 1 or gw > W or gh > H:
        return NO_SPACE

    rect = find_placement(policy, list(items), gw, gh, W, H, kind=kind)
    if not rect:
        log_detail("No space", policy=policy, size=f"{gw}x{gh}", canvas=f"{W}x{H}", items=len(items))
    return rect
