import pytest

from config import CFG
from models import (
    NO_SPACE,
    Item,
    NoSpace,
    Rect,
    canvas_cells,
    canvas_dims,
    cells_from_px,
    detect_kind,
    effective_aspect,
    px_to_cells,
)


@pytest.fixture(autouse=True)
def _grid(monkeypatch):
    monkeypatch.setattr(CFG, "GRID_PX", 16)
    monkeypatch.setattr(CFG, "MAX_SIDE_PX", 1440)


@pytest.mark.parametrize(
    "url,kind",
    [
        ("https://x.test/a.PNG", "image"),
        ("https://x.test/a.jpeg?v=3", "image"),
        ("data:image/png;base64,AAAA", "image"),
        ("https://x.test/loop.webm", "video"),
        ("data:video/mp4;base64,AAAA", "video"),
        ("https://x.test/", "site"),
        ("", "site"),
    ],
)
def test_detect_kind(url, kind):
    assert detect_kind(url) == kind


def test_pixel_conversions():
    assert px_to_cells(24) == 2
    assert px_to_cells(3) == 1
    assert canvas_cells(1000, 600) == (62, 37)


def test_cells_from_px_caps_long_side_and_rounds_up():
    assert cells_from_px(1920, 1080) == (90, 51)
    assert cells_from_px(100, 50) == (7, 4)
    assert cells_from_px(5000, 10) == (90, 1)


@pytest.mark.parametrize("w,h", [(None, None), (0, 100), (-5, 10), (float("inf"), 10), ("x", 3)])
def test_cells_from_px_falls_back_on_unknown_size(w, h):
    assert cells_from_px(w, h) == (45, 30)


def test_canvas_dims():
    assert canvas_dims(10.7, "8") == (10, 8)
    assert canvas_dims(0, 8) is None
    assert canvas_dims(float("nan"), 8) is None
    assert canvas_dims([], 8) is None


def test_effective_aspect_prefers_ratio_then_size():
    assert effective_aspect(Item(id="a", nat_r=1.5)) == pytest.approx(1.5)
    assert effective_aspect(Item(id="a", nat_r=0.001, nat_w=300, nat_h=200)) == pytest.approx(1.5)
    assert effective_aspect(Item(id="a")) == pytest.approx(4 / 3)
    assert effective_aspect(Item(id="a", nat_r=10)) == pytest.approx(CFG.R_MAX)
    assert effective_aspect(Item(id="a", nat_w=100, nat_h=1000)) == pytest.approx(CFG.R_MIN)


def test_rect_geometry():
    r = Rect(2, 3, 4, 5)
    assert (r.x2, r.y2, r.area) == (6, 8, 20)
    assert r.as_tuple() == (2, 3, 4, 5)


def test_item_to_dict_uses_wire_keys():
    it = Item(id="7", gx=1, gy=2, gw=1, gh=3, nat_w=640.0, nat_h=480.0)
    d = it.to_dict()
    assert (d["id"], d["kind"], d["gw"], d["gh"]) == ("7", "image", 1, 3)
    assert d["natH"] == 480.0
    assert d["natW"] == 640.0
    assert "natR" not in d
    assert "url" not in d


def test_with_rect_returns_new_item():
    it = Item(id="a", gx=1, gy=1, gw=2, gh=2)
    moved = it.with_rect(4, 5, 6, 7)
    assert it.rect == Rect(1, 1, 2, 2)
    assert moved.rect == Rect(4, 5, 6, 7)


def test_no_space_is_a_falsy_singleton():
    assert not NO_SPACE
    assert NoSpace() is NO_SPACE
    assert repr(NO_SPACE) == "NO_SPACE"
