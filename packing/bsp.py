# packing/bsp.py
import logging
import math
import random
from typing import List, Optional, Tuple

from config import CFG
from models import Region
from progress import log_detail

Range = Optional[Tuple[int, int]]

_EPS = 1e-9


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _clamp(v, lo, hi):
    return max(lo, min(hi, v))


def min_leaf_side(W: int, H: int, count: int, t: float, attempt: int) -> int:
    """Smallest side, in cells, a leaf may have on this attempt.

    Starts from the side of a square holding the average area per item, shrunk
    by intensity (more variety) and by each retry.
    """
    area_per = (W * H) / max(1, count)
    side_est = math.sqrt(area_per)
    inten_k = 0.65 - 0.15 * t
    retry_k = max(0.35, 1 - 0.22 * attempt)
    min_c = int(math.floor(side_est * inten_k * retry_k))
    max_clamp = min(W, H) // 2
    return max(2, min(max_clamp, min_c))


def _split_range(total: int, leaf_lo: int, leaf_hi: int, k: int, rest: int, minc: int) -> Range:
    """Feasible first-child extents for cutting ``total`` into ``k`` / ``rest`` items.

    Both children keep at least ``minc``; a child that ends up holding a single
    item must also land inside ``[leaf_lo, leaf_hi]``.
    """
    lo = minc
    hi = total - minc
    if k == 1:
        lo = max(lo, leaf_lo)
        hi = min(hi, leaf_hi)
    if rest == 1:
        lo = max(lo, total - leaf_hi)
        hi = min(hi, total - leaf_lo)
    return (lo, hi) if lo <= hi else None


def v_range(w: int, h: int, k: int, n: int, minc: int) -> Range:
    # vertical cut: first child is the left one, extent measured along w
    leaf_lo = int(math.ceil(CFG.R_MIN * h - _EPS))
    leaf_hi = int(math.floor(CFG.R_MAX * h + _EPS))
    return _split_range(w, leaf_lo, leaf_hi, k, n - k, minc)


def h_range(w: int, h: int, k: int, n: int, minc: int) -> Range:
    # horizontal cut: first child is the top one, extent measured along h
    leaf_lo = int(math.ceil(w / CFG.R_MAX - _EPS))
    leaf_hi = int(math.floor(w / CFG.R_MIN + _EPS))
    return _split_range(h, leaf_lo, leaf_hi, k, n - k, minc)


def _probe_counts(n: int) -> List[int]:
    # every k in [2, n-2] sees the same constraints
    ks = [1]
    if n >= 4:
        ks.append(2)
    if n - 1 not in ks:
        ks.append(n - 1)
    return ks


def divisible(r: Region, n: int, minc: int) -> bool:
    if n < 2:
        return False
    return any(
        v_range(r.w, r.h, k, n, minc) or h_range(r.w, r.h, k, n, minc)
        for k in _probe_counts(n)
    )


def _choose_split(r: Region, minc: int, rng: random.Random) -> Optional[Tuple[int, Range, Range]]:
    n = r.n
    first = rng.randint(1, n - 1)
    others = sorted((j for j in range(1, n) if j != first), key=lambda j: (abs(j - n / 2), j))
    for k in [first] + others:
        vr = v_range(r.w, r.h, k, n, minc)
        hr = h_range(r.w, r.h, k, n, minc)
        if vr or hr:
            return k, vr, hr
    return None


def _split(
    r: Region, k: int, vr: Range, hr: Range, t: float, rng: random.Random, prefer: Optional[str] = None
) -> Tuple[Region, Region]:
    if prefer is None:
        prefer_v = r.w > r.h
    else:
        # "cols" favours vertical cuts, "rows" horizontal ones
        prefer_v = prefer == "cols"
    bias = 0.15 * (1 - t)
    coin = rng.random()
    try_v = coin < (0.5 + (bias if prefer_v else -bias))
    if try_v and not vr and hr:
        try_v = False
    if not try_v and not hr and vr:
        try_v = True

    n = r.n
    jitter = 0.1 + 0.35 * t
    want_p = _clamp(k / n + (rng.random() * 2 - 1) * jitter, 0.15, 0.85)

    if try_v:
        w_min, w_max = vr
        w1 = _clamp(_round_half_up(r.w * want_p), w_min, w_max)
        a = Region(r.x, r.y, w1, r.h, k, r.depth + 1)
        b = Region(r.x + w1, r.y, r.w - w1, r.h, n - k, r.depth + 1)
    else:
        h_min, h_max = hr
        h1 = _clamp(_round_half_up(r.h * want_p), h_min, h_max)
        a = Region(r.x, r.y, r.w, h1, k, r.depth + 1)
        b = Region(r.x, r.y + h1, r.w, r.h - h1, n - k, r.depth + 1)
    return a, b


def _pick_region(regions: List[Region], t: float, rng: random.Random) -> int:
    open_idx = [i for i, r in enumerate(regions) if r.n > 1]
    if not open_idx:
        return -1
    if t > 0.6:
        return open_idx[rng.randint(0, len(open_idx) - 1)]
    return max(
        open_idx,
        key=lambda i: (abs(math.log(regions[i].w / regions[i].h)), regions[i].area),
    )


def _largest_divisible(regions: List[Region], extra: int, minc: int, skip: Optional[Region] = None) -> Optional[Region]:
    best = None
    for r in regions:
        if r is skip:
            continue
        if not divisible(r, r.n + extra, minc):
            continue
        if best is None or r.area > best.area:
            best = r
    return best


def bsp_tile(
    count: int,
    W: int,
    H: int,
    t: float,
    attempt: int = 0,
    rng: Optional[random.Random] = None,
    *,
    min_side: Optional[int] = None,
    prefer: Optional[str] = None,
) -> List[Region]:
    """Partition the W x H rectangle into up to ``count`` leaf regions.

    Regions live in one flat list; a split replaces a region by its two
    children in place, so the list always tiles the root exactly.  A region
    that cannot be cut is frozen as a leaf and its surplus items become debt,
    handed to the largest region that can still be cut.
    """
    rng = rng or random.Random()
    minc = min_leaf_side(W, H, count, t, attempt) if min_side is None else int(min_side)

    regions: List[Region] = [Region(0, 0, W, H, max(1, count), 0)]
    debt = 0

    guard = CFG.BSP_GUARD
    while guard > 0 and any(r.n > 1 for r in regions):
        guard -= 1
        idx = _pick_region(regions, t, rng)
        if idx < 0:
            break
        r = regions[idx]

        choice = _choose_split(r, minc, rng)
        if choice is None:
            debt += r.n - 1
            r.n = 1
            cand = _largest_divisible(regions, debt, minc, skip=r)
            if cand is not None:
                cand.n += debt
                debt = 0
            continue

        k, vr, hr = choice
        a, b = _split(r, k, vr, hr, t, rng, prefer)
        if debt:
            big = a if a.area >= b.area else b
            if divisible(big, big.n + debt, minc):
                big.n += debt
                debt = 0
        regions[idx:idx + 1] = [a, b]

    if debt > 0:
        cand = _largest_divisible(regions, debt, minc)
        if cand is not None:
            cand.n += debt
            debt = 0
            extra_guard = CFG.BSP_EXTRA_GUARD
            while extra_guard > 0 and any(r.n > 1 for r in regions):
                extra_guard -= 1
                idx = _pick_region(regions, t, rng)
                if idx < 0:
                    break
                r = regions[idx]
                choice = _choose_split(r, minc, rng)
                if choice is None:
                    r.n = 1
                    continue
                k, vr, hr = choice
                regions[idx:idx + 1] = list(_split(r, k, vr, hr, t, rng, prefer))

    return [r for r in regions if r.n == 1]


def tile_with_retries(
    count: int,
    W: int,
    H: int,
    t: float,
    rng: Optional[random.Random] = None,
    prefer: Optional[str] = None,
) -> List[Region]:
    """Run :func:`bsp_tile` until it yields ``count`` leaves.

    Each retry lowers the minimum leaf side; the last resort forces it to 2.
    """
    rng = rng or random.Random()
    leaves: List[Region] = []
    for attempt in range(max(1, CFG.BSP_ATTEMPTS)):
        leaves = bsp_tile(count, W, H, t, attempt, rng, prefer=prefer)
        if len(leaves) == count:
            return leaves

    log_detail(
        "BSP shortfall",
        level=logging.WARNING,
        leaves=len(leaves),
        wanted=count,
        canvas=f"{W}x{H}",
        retry="min_side=2",
    )
    return bsp_tile(count, W, H, t, 99, rng, min_side=2, prefer=prefer)
