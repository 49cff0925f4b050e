from models import Item, Rect
from packing.occupancy import (
    build_exact,
    build_inflated,
    can_place,
    edge_touch_sides,
    edge_touch_sum,
    frontier,
    has_overlap_exact,
    query,
)


def _it(i, gx, gy, gw, gh, kind="image"):
    return Item(id=str(i), kind=kind, gx=gx, gy=gy, gw=gw, gh=gh)


def test_inflated_marks_gutter_ring():
    occ = build_inflated([_it(1, 4, 4, 2, 2)], 10, 10)
    assert occ.cell(3, 3) and occ.cell(6, 6)
    assert not occ.cell(2, 3)
    assert not occ.cell(7, 7)
    assert sum(occ.grid) == 16


def test_inflated_clips_at_canvas_edges():
    occ = build_inflated([_it(1, 0, 0, 2, 2)], 5, 5)
    assert sum(occ.grid) == 9
    assert occ.ps[-1] == 9


def test_query_uses_inclusive_corners():
    occ = build_inflated([_it(1, 4, 4, 2, 2)], 10, 10)
    assert query(occ.ps, 0, 0, 9, 9, 10)
    assert query(occ.ps, 0, 0, 3, 3, 10)
    assert not query(occ.ps, 0, 0, 2, 9, 10)
    assert not query(occ.ps, 7, 7, 9, 9, 10)


def test_can_place_checks_bounds_and_occupancy():
    occ = build_inflated([_it(1, 4, 4, 2, 2)], 10, 10)
    assert can_place(Rect(0, 0, 3, 3), 10, 10, occ.ps)
    assert not can_place(Rect(1, 1, 3, 3), 10, 10, occ.ps)
    assert not can_place(Rect(8, 8, 3, 3), 10, 10, occ.ps)
    assert not can_place(Rect(-1, 0, 2, 2), 10, 10, occ.ps)
    assert occ.can_place(7, 0, 3, 3)


def test_exact_build_detects_shared_cells_only():
    assert not has_overlap_exact([_it(1, 0, 0, 2, 2), _it(2, 2, 0, 2, 2)], 10, 10)
    assert has_overlap_exact([_it(1, 0, 0, 3, 3), _it(2, 2, 2, 2, 2)], 10, 10)

    grid, overlapped = build_exact([_it(1, 0, 0, 2, 2)], 4, 4)
    assert not overlapped
    assert sum(grid) == 4


def test_frontier_is_ring_outside_inflated_box():
    items = [_it(1, 4, 4, 2, 2)]
    occ = build_inflated(items, 10, 10)
    cells = frontier(items, occ)

    assert len(cells) == 16
    assert len(set(cells)) == len(cells)
    for cell in [(3, 2), (6, 7), (2, 3), (7, 6)]:
        assert cell in cells
    assert (2, 2) not in cells
    assert all(not occ.cell(x, y) for x, y in cells)


def test_frontier_stops_at_canvas_edge():
    items = [_it(1, 0, 0, 2, 2)]
    occ = build_inflated(items, 6, 6)
    cells = frontier(items, occ)
    # only the bottom row and right column exist
    assert sorted(cells) == [(0, 3), (1, 3), (2, 3), (3, 0), (3, 1), (3, 2)]


def test_edge_touch_counts_per_side():
    occ = build_inflated([_it(1, 4, 4, 2, 2)], 10, 10)
    assert edge_touch_sides(7, 3, 2, 2, occ) == (0, 0, 2, 0)
    assert edge_touch_sum(7, 3, 2, 2, occ) == 2
    assert edge_touch_sum(0, 0, 2, 2, occ) == 0
