# packing/exact_rescue.py
from typing import Optional, Sequence, Tuple, Union

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import NO_SPACE, NoSpace, Rect
from progress import log_detail


def _inflated_box(it, W: int, H: int, g: int) -> Optional[Tuple[int, int, int, int]]:
    x0 = max(0, it.gx - g)
    y0 = max(0, it.gy - g)
    x1 = min(W, it.gx + it.gw + g)
    y1 = min(H, it.gy + it.gh + g)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1 - x0, y1 - y0


def rescue_placement(
    items: Sequence,
    gw: int,
    gh: int,
    W: int,
    H: int,
    *,
    target: Optional[Tuple[int, int]] = None,
    work: Optional[float] = None,
) -> Union[Rect, NoSpace]:
    """Exact search for a free ``gw`` x ``gh`` origin once the greedy walk gave up.

    Every existing item is a fixed, gutter-inflated box; the new box must not
    overlap any of them.  Among feasible origins the one closest (Manhattan)
    to ``target`` is preferred.  The search is single-worker with a fixed seed
    and bounded by deterministic work (``CFG.EXACT_RESCUE_WORK``), never wall
    clock, so the same board yields the same answer on any machine.
    """
    if gw > W or gh > H:
        return NO_SPACE
    if len(items) > CFG.EXACT_RESCUE_MAX_ITEMS:
        log_detail("Exact rescue skipped", items=len(items), limit=CFG.EXACT_RESCUE_MAX_ITEMS)
        return NO_SPACE

    g = CFG.GUTTER
    sx, sy = target if target is not None else (W // 2 - gw // 2, H // 2 - gh // 2)
    limit = CFG.EXACT_RESCUE_WORK if work is None else work

    m = _cp.CpModel()
    x = m.NewIntVar(0, W - gw, "x")
    y = m.NewIntVar(0, H - gh, "y")
    xs = [m.NewFixedSizeIntervalVar(x, gw, "new_x")]
    ys = [m.NewFixedSizeIntervalVar(y, gh, "new_y")]

    for i, it in enumerate(items):
        box = _inflated_box(it, W, H, g)
        if box is None:
            continue
        bx, by, bw, bh = box
        xs.append(m.NewFixedSizeIntervalVar(bx, bw, f"ix_{i}"))
        ys.append(m.NewFixedSizeIntervalVar(by, bh, f"iy_{i}"))

    m.AddNoOverlap2D(xs, ys)

    dx = m.NewIntVar(0, max(W, abs(sx) + W), "dx")
    dy = m.NewIntVar(0, max(H, abs(sy) + H), "dy")
    m.AddAbsEquality(dx, x - sx)
    m.AddAbsEquality(dy, y - sy)
    m.Minimize(dx + dy)

    solver = _cp.CpSolver()
    solver.parameters.max_deterministic_time = float(limit)
    solver.parameters.num_search_workers = 1
    solver.parameters.random_seed = 0
    solver.parameters.log_search_progress = False

    res = solver.Solve(m)

    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        rect = Rect(int(solver.Value(x)), int(solver.Value(y)), gw, gh)
        log_detail(
            "Exact rescue placed",
            rect=rect.as_tuple(),
            optimal=(res == _cp.OPTIMAL),
            items=len(items),
        )
        return rect

    if res == _cp.INFEASIBLE:
        reason = "Proven infeasible"
    elif res == _cp.MODEL_INVALID:
        reason = "Model invalid"
    else:
        reason = "Work budget spent before a solution"
    log_detail("Exact rescue failed", size=f"{gw}x{gh}", canvas=f"{W}x{H}", reason=reason)
    return NO_SPACE
