import json

import pytest

from config import CFG
from board_parser import fmt_items, parse_board, parse_canvas, parse_item


def test_parse_board_reads_cells_and_items():
    payload = {
        "board": "Moodboard",
        "W": "40",
        "H": 30,
        "items": [
            {"id": "a", "kind": "image", "gx": 1, "gy": 2, "gw": 3, "gh": 4, "natW": 800, "natH": 600},
            {"id": 2, "gx": "5", "gy": "6", "gw": "2", "gh": "2", "nat_w": "10", "nat_h": "20"},
        ],
    }
    board, err = parse_board(payload)
    assert err is None
    assert board.style == "moodboard"
    assert (board.W, board.H) == (40, 30)
    a, b = board.items
    assert (a.gx, a.gy, a.gw, a.gh, a.nat_w) == (1, 2, 3, 4, 800.0)
    assert b.id == "2"
    assert b.kind == "image"
    assert (b.nat_w, b.nat_h) == (10.0, 20.0)


def test_items_may_arrive_as_a_json_string():
    items = [{"id": "x", "gw": 2, "gh": 2}]
    board, err = parse_board({"W": 10, "H": 10, "items": json.dumps(items)})
    assert err is None
    assert [it.id for it in board.items] == ["x"]
    assert board.style == "styleboard"


def test_canvas_from_pixels(monkeypatch):
    monkeypatch.setattr(CFG, "GRID_PX", 16)
    assert parse_canvas({"width_px": 1280, "height_px": 720}) == (80, 45, None)


@pytest.mark.parametrize(
    "payload,needle",
    [
        ({}, "nothing parsed"),
        ({"W": 10}, "missing canvas"),
        ({"W": 0, "H": 5}, "positive"),
        ({"W": 10, "H": 10, "board": "pinboard"}, "unknown board"),
        ({"W": 10, "H": 10, "items": "not json"}, "items must be a list"),
        ({"W": 10, "H": 10, "items": [{"gw": 1, "gh": 1}]}, "missing id"),
        ({"W": 10, "H": 10, "items": [{"id": "a", "gw": 0, "gh": 1}]}, "at least 1x1"),
        ({"W": 10, "H": 10, "items": [{"id": "a", "gw": 1, "gh": 1}, {"id": "a", "gw": 1, "gh": 1}]}, "duplicate"),
    ],
)
def test_parse_board_errors(payload, needle):
    board, err = parse_board(payload)
    assert board is None
    assert needle in err


def test_parse_item_rejects_non_objects():
    item, err = parse_item(["a"], 3)
    assert item is None
    assert err == "item 3: not an object"


def test_fmt_items_uses_wire_keys():
    board, _ = parse_board({"W": 5, "H": 5, "items": [{"id": "a", "gw": 1, "gh": 1, "natR": 1.5}]})
    assert fmt_items(board.items) == [{"id": "a", "kind": "image", "gx": 0, "gy": 0, "gw": 1, "gh": 1, "natR": 1.5}]
