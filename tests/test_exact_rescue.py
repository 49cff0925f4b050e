import pytest

pytest.importorskip("ortools")

from config import CFG
from models import NO_SPACE, Item
import packing.exact_rescue as rescue_module
from packing.exact_rescue import rescue_placement
from packing.occupancy import build_inflated
from packing.strategies import Policy, place


def _it(i, gx, gy, gw, gh):
    return Item(id=str(i), kind="image", gx=gx, gy=gy, gw=gw, gh=gh)


def test_rescue_returns_closest_free_origin():
    items = [_it("a", 4, 4, 2, 2)]
    rect = rescue_placement(items, 2, 2, 10, 10, target=(4, 4), work=5)
    assert rect
    assert abs(rect.gx - 4) + abs(rect.gy - 4) == 3
    assert build_inflated(items, 10, 10).can_place(rect.gx, rect.gy, 2, 2)


def test_rescue_reports_no_space_on_full_canvas():
    items = [_it("big", 0, 0, 10, 10)]
    assert rescue_placement(items, 1, 1, 10, 10, work=5) is NO_SPACE


def test_rescue_skips_oversized_models(monkeypatch):
    monkeypatch.setattr(CFG, "EXACT_RESCUE_MAX_ITEMS", 1)
    items = [_it("a", 0, 0, 1, 1), _it("b", 5, 5, 1, 1)]
    assert rescue_placement(items, 2, 2, 10, 10) is NO_SPACE


def test_spiral_falls_back_to_rescue_when_budget_runs_out(monkeypatch):
    monkeypatch.setattr(CFG, "SPIRAL_MAX_STEPS", 1)
    monkeypatch.setattr(CFG, "EXACT_RESCUE", True)
    monkeypatch.setattr(CFG, "EXACT_RESCUE_WORK", 5)
    items = [_it("a", 4, 4, 2, 2)]
    rect = place(items, 2, 2, 10, 10, Policy.SPIRAL)
    assert rect
    assert abs(rect.gx - 4) + abs(rect.gy - 4) == 3


def test_spiral_rescue_is_repeatable_on_a_crowded_board(monkeypatch):
    monkeypatch.setattr(CFG, "SPIRAL_MAX_STEPS", 5)
    monkeypatch.setattr(CFG, "EXACT_RESCUE", True)
    monkeypatch.setattr(CFG, "EXACT_RESCUE_WORK", 5)
    items = [_it(f"t{r}_{c}", c * 30, r * 30, 20, 20) for r in range(10) for c in range(10)]

    first = place(items, 3, 3, 300, 300, Policy.SPIRAL)
    second = place(items, 3, 3, 300, 300, Policy.SPIRAL)
    assert first
    assert first == second
    assert build_inflated(items, 300, 300).can_place(first.gx, first.gy, 3, 3)


def test_rescue_uses_deterministic_work_limit(monkeypatch):
    seen = {}
    real_solver = rescue_module._cp.CpSolver

    def _recording_solver():
        solver = real_solver()
        seen["solver"] = solver
        return solver

    monkeypatch.setattr(rescue_module._cp, "CpSolver", _recording_solver)
    rescue_placement([_it("a", 4, 4, 2, 2)], 2, 2, 10, 10, work=2.5)
    params = seen["solver"].parameters
    assert params.max_deterministic_time == 2.5
    assert params.num_search_workers == 1
