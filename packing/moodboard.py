# packing/moodboard.py
import logging
import math
import random
from typing import List, Optional, Sequence

from config import CFG
from models import canvas_dims, effective_aspect
from progress import log_detail
from packing.bsp import tile_with_retries
from packing.gaps import grow_to_edges
from packing.occupancy import has_overlap_exact

MODE_SINGLE = "single"
MODE_COMBO = "combo"


def normalize_intensity(value) -> float:
    """Intensity as a fraction in [0, 1].

    Accepts a fraction or a 0..100 slider value (anything above 1); ``None``
    and unreadable values fall back to ``DEFAULT_INTENSITY``.
    """
    if value is None:
        value = CFG.DEFAULT_INTENSITY
    try:
        t = float(value)
    except (TypeError, ValueError):
        t = float(CFG.DEFAULT_INTENSITY)
    if not math.isfinite(t):
        t = float(CFG.DEFAULT_INTENSITY)
    if t > 1:
        t /= 100.0
    return max(0.0, min(1.0, t))


def default_rng() -> random.Random:
    return random.Random(CFG.SEED) if CFG.SEED is not None else random.Random()


def mood_items(items: Sequence) -> list:
    return [it for it in items if it.kind in CFG.MOOD_KINDS]


def layout_single(
    items: Sequence,
    W,
    H,
    intensity=None,
    *,
    shuffle_order: bool = False,
    rng: Optional[random.Random] = None,
    prefer: Optional[str] = None,
) -> list:
    """Give every item one leaf of a fresh BSP partition of the canvas.

    Leaves are ordered by aspect; items are ordered by their own aspect at low
    intensity and shuffled otherwise, then paired index for index.  The output
    keeps the (possibly shuffled) item order.
    """
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    work = list(items)
    if not work:
        return []
    rng = rng or default_rng()
    t = normalize_intensity(intensity)
    if shuffle_order:
        rng.shuffle(work)

    leaves = tile_with_retries(len(work), W, H, t, rng, prefer=prefer)
    if not leaves:
        return work

    leaf_order = sorted(range(len(leaves)), key=lambda i: leaves[i].aspect)
    by_aspect = [(i, effective_aspect(it)) for i, it in enumerate(work)]
    if t < 0.2:
        by_aspect.sort(key=lambda p: p[1])
    else:
        rng.shuffle(by_aspect)

    out = list(work)
    matched = min(len(leaves), len(out))
    for i in range(matched):
        idx = by_aspect[i][0]
        leaf = leaves[leaf_order[i]]
        out[idx] = work[idx].with_rect(leaf.x, leaf.y, leaf.w, leaf.h)
    # surplus items share leaves round-robin; the overlap check downstream sees it
    for i in range(matched, len(out)):
        idx = by_aspect[i][0]
        leaf = leaves[leaf_order[(i - matched) % len(leaves)]]
        out[idx] = work[idx].with_rect(leaf.x, leaf.y, leaf.w, leaf.h)
    return out


def _band_counts(total: int, parts: List[float]) -> List[int]:
    counts = [max(1, int(math.floor(total * p + 0.5))) for p in parts]
    diff = sum(counts) - total
    while diff != 0:
        for i in range(len(counts)):
            if diff == 0:
                break
            if diff > 0 and counts[i] > 1:
                counts[i] -= 1
                diff -= 1
            elif diff < 0:
                counts[i] += 1
                diff += 1
    return counts


def layout_combo(
    items: Sequence,
    W,
    H,
    intensity=None,
    rng: Optional[random.Random] = None,
    *,
    shuffle_order: bool = True,
) -> list:
    """Cut the canvas into 2 or 3 bands and lay each band out on its own."""
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    work = list(items)
    if not work:
        return []
    rng = rng or default_rng()
    t = normalize_intensity(intensity)
    if shuffle_order:
        rng.shuffle(work)

    blocks = 3 if rng.random() < (0.5 + 0.4 * t) else 2
    blocks = min(blocks, len(work))
    vertical = rng.random() < 0.5
    span = W if vertical else H
    if blocks < 2 or span < 2 * blocks:
        return layout_single(work, W, H, t, rng=rng)

    parts: List[float] = []
    rest = 1.0
    for i in range(blocks - 1):
        p = max(0.2, min(0.6, rng.random() * 0.5 + 0.25))
        take = max(0.2, min(rest - 0.2 * (blocks - 1 - i), p * rest))
        parts.append(take)
        rest -= take
    parts.append(rest)

    counts = _band_counts(len(work), parts)

    sizes: List[int] = []
    offset = 0
    for bi, p in enumerate(parts):
        if bi == blocks - 1:
            size = span - offset
        else:
            size = max(1, int(math.floor(span * p)))
        sizes.append(size)
        offset += size
    if any(s < 1 for s in sizes):
        return layout_single(work, W, H, t, rng=rng)

    out: list = []
    cursor = 0
    offset = 0
    for cnt, size in zip(counts, sizes):
        batch = work[cursor:cursor + cnt]
        cursor += cnt
        bw, bh = (size, H) if vertical else (W, size)
        prefer = "rows" if rng.random() < 0.5 else "cols"
        laid = layout_single(batch, bw, bh, t, rng=rng, prefer=prefer)
        dx, dy = (offset, 0) if vertical else (0, offset)
        out.extend(it.with_rect(it.gx + dx, it.gy + dy, it.gw, it.gh) for it in laid)
        offset += size
    return out


def relayout(items: Sequence, W, H, intensity=None, rng: Optional[random.Random] = None) -> list:
    """Re-tile the moodboard keeping item order (delete, resize, reflow).

    Only image and video items take part.  Runs on a fixed seed unless an
    ``rng`` is given, so reflowing a settled board reproduces it.
    """
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    rng = rng or random.Random(CFG.REFLOW_SEED)
    t = normalize_intensity(intensity)
    mood = mood_items(items)

    laid = layout_single(mood, W, H, t, shuffle_order=False, rng=rng)
    if has_overlap_exact(laid, W, H):
        log_detail("Reflow overlap", level=logging.WARNING, items=len(mood), canvas=f"{W}x{H}", retry="shuffled")
        laid = layout_single(mood, W, H, t, shuffle_order=True, rng=rng)
    return laid


def shuffle(
    items: Sequence,
    W,
    H,
    intensity=None,
    rng: Optional[random.Random] = None,
    *,
    mode: str = MODE_SINGLE,
) -> list:
    """Fresh random mosaic stretched to the canvas edges.

    Overlap after stretching is retried with a plain layout, then with that
    layout stretched; when both still overlap the plain layout is returned and
    the condition is logged.
    """
    if mode not in (MODE_SINGLE, MODE_COMBO):
        raise ValueError(f"unknown shuffle mode: {mode!r}")
    dims = canvas_dims(W, H)
    if dims is None:
        return list(items)
    W, H = dims
    rng = rng or default_rng()
    t = normalize_intensity(intensity)
    mood = mood_items(items)

    def layout() -> list:
        if mode == MODE_COMBO:
            return layout_combo(mood, W, H, t, rng, shuffle_order=True)
        return layout_single(mood, W, H, t, shuffle_order=True, rng=rng)

    laid = grow_to_edges(layout(), W, H)
    if not has_overlap_exact(laid, W, H):
        return laid

    log_detail("Shuffle overlap after stretch", level=logging.WARNING, items=len(mood), retry="layout_only")
    retry = layout()
    if not has_overlap_exact(retry, W, H):
        return retry

    retry2 = grow_to_edges(retry, W, H)
    if not has_overlap_exact(retry2, W, H):
        return retry2

    log_detail(
        "Shuffle overlap unresolved",
        level=logging.WARNING,
        items=len(mood),
        canvas=f"{W}x{H}",
        result="layout_only",
    )
    return retry
