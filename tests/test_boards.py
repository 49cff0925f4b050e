import random

import pytest

from config import CFG
from models import NO_SPACE, Item, Rect
from packing.boards import add_item, collect, new_item, remove_item, repack, resize_canvas


def _site(i, gx=0, gy=0):
    return Item(id=str(i), kind="site", gx=gx, gy=gy, gw=4, gh=4)


def _separated(items, g=1):
    for i, a in enumerate(items):
        for b in items[i + 1:]:
            if (a.gx < b.gx + b.gw + g and b.gx - g < a.gx + a.gw
                    and a.gy < b.gy + b.gh + g and b.gy - g < a.gy + a.gh):
                return False
    return True


@pytest.fixture
def site_anchor(monkeypatch):
    monkeypatch.setattr(CFG, "ANCHOR_KIND", "site")
    monkeypatch.setattr(CFG, "SITE_STRICT_RADIAL", True)


def test_new_item_sizes_from_kind(monkeypatch):
    monkeypatch.setattr(CFG, "GRID_PX", 16)
    monkeypatch.setattr(CFG, "MAX_SIDE_PX", 1440)
    monkeypatch.setattr(CFG, "SITE_TILE_W", 90)
    monkeypatch.setattr(CFG, "SITE_TILE_H", 68)

    img = new_item("https://cdn.example.com/photo.JPG?w=2", item_id="p", nat_w=1920, nat_h=1080)
    assert (img.kind, img.gw, img.gh) == ("image", 90, 51)
    assert img.nat_r == pytest.approx(1920 / 1080)

    site = new_item("https://example.com/", item_id="s")
    assert (site.kind, site.gw, site.gh) == ("site", 90, 68)

    unknown = new_item("clip.mp4", item_id="v")
    assert (unknown.kind, unknown.gw, unknown.gh) == ("video", 45, 30)
    assert unknown.nat_r is None

    assert len(new_item("a.png").id) == 32


def test_styleboard_add_uses_spawn_then_snake():
    item = Item(id="a", gw=4, gh=3)
    items, rect = add_item("styleboard", [], item, 40, 30)
    assert rect == Rect(18, 14, 4, 3)
    assert items[0].rect == rect

    items, rect = add_item("styleboard", items, Item(id="b", gw=4, gh=3), 40, 30)
    assert rect
    assert _separated(items)


def test_styleboard_sites_follow_the_anchor_rings(site_anchor):
    items, first = add_item("styleboard", [], _site("s1"), 40, 40)
    assert first == Rect(18, 18, 4, 4)
    items, second = add_item("styleboard", items, _site("s2"), 40, 40)
    assert second == Rect(28, 18, 4, 4)
    assert [it.id for it in items] == ["s1", "s2"]


def test_styleboard_add_reports_no_space():
    full = [Item(id="big", gx=0, gy=0, gw=10, gh=10)]
    items, rect = add_item("styleboard", full, Item(id="x", gw=2, gh=2), 10, 10)
    assert rect is NO_SPACE
    assert items == full


def test_moodboard_add_retiles_everything():
    items = [Item(id=f"m{i}", nat_w=800, nat_h=600, nat_r=4 / 3) for i in range(3)]
    new = Item(id="new", nat_w=600, nat_h=800, nat_r=3 / 4)
    laid, rect = add_item("moodboard", items, new, 48, 36, 0)
    assert rect
    assert {it.id for it in laid} == {"m0", "m1", "m2", "new"}
    assert next(it for it in laid if it.id == "new").rect == rect


def test_moodboard_add_of_a_site_has_no_slot():
    _, rect = add_item("moodboard", [], _site("s"), 48, 36)
    assert rect is NO_SPACE


def test_remove_item():
    items = [Item(id="a", gx=0, gy=0, gw=2, gh=2), Item(id="b", gx=5, gy=5, gw=2, gh=2)]
    assert remove_item("styleboard", items, "a", 10, 10) == [items[1]]

    media = [Item(id=f"m{i}", nat_w=800, nat_h=600) for i in range(3)]
    laid = remove_item("moodboard", media, "m1", 48, 36, 0, random.Random(0))
    assert [it.id for it in laid] == ["m0", "m2"]


def test_repack_restores_gutters():
    items = [Item(id=str(i), gx=0, gy=0, gw=4, gh=4) for i in range(3)]
    out = repack(items, 30, 30)
    assert out[0].rect == Rect(13, 13, 4, 4)
    assert [it.id for it in out] == ["0", "1", "2"]
    assert _separated(out)


def test_collect_grows_inside_the_cluster():
    items = [Item(id=str(i), gw=3, gh=2) for i in range(4)]
    out = collect(items, 30, 30)
    assert _separated(out)
    assert all(a.rect.area >= 6 for a in out)
    assert collect([], 30, 30) == []


def test_resize_canvas_by_board():
    items = [Item(id=str(i), gx=i * 6, gy=0, gw=4, gh=4) for i in range(3)]
    out = resize_canvas("styleboard", items, 20, 20)
    assert _separated(out)
    assert all(it.rect.x2 <= 20 and it.rect.y2 <= 20 for it in out)

    media = [Item(id=f"m{i}", nat_w=800, nat_h=600) for i in range(3)]
    out = resize_canvas("moodboard", media, 30, 20, 0)
    assert all(it.rect.x2 <= 30 and it.rect.y2 <= 20 for it in out)


def test_unknown_board_raises():
    with pytest.raises(ValueError):
        add_item("pinboard", [], Item(id="a"), 10, 10)


def test_shrinking_keeps_oversize_items_on_canvas(activity_log):
    items = [
        Item(id="s", kind="site", gx=0, gy=0, gw=90, gh=68),
        Item(id="i", gx=100, gy=0, gw=10, gh=10),
        Item(id="j", gx=100, gy=20, gw=10, gh=10),
    ]
    out = resize_canvas("styleboard", items, 60, 60)
    assert [it.id for it in out] == ["s", "i", "j"]
    assert all(it.gx >= 0 and it.gy >= 0 for it in out)

    site, rest = out[0], out[1:]
    assert (site.gx, site.gy) == (0, 0)
    assert all(it.rect.x2 <= 60 and it.rect.y2 <= 60 for it in rest)
    assert _separated(rest)
    assert any(m.startswith("Repack miss | id=s size=90x68") for m in activity_log.messages)


def test_repack_miss_that_fits_is_clamped_inside():
    items = [Item(id="a", gw=10, gh=10), Item(id="b", gw=4, gh=4)]
    out = repack(items, 10, 10)
    assert out[0].rect == Rect(0, 0, 10, 10)
    assert out[1].rect == Rect(3, 3, 4, 4)
