from models import NO_SPACE, EdgeShift, Item, Rect, Region
from packing.bsp import bsp_tile, min_leaf_side, tile_with_retries
from packing.boards import MOODBOARD, STYLEBOARD, add_item, collect, new_item, remove_item, repack, resize_canvas
from packing.edges import shift_edge
from packing.gaps import grow_to_bounding_box, grow_to_edges
from packing.moodboard import layout_combo, layout_single, relayout, shuffle
from packing.strategies import Policy, find_placement, place

__all__ = [
    "NO_SPACE",
    "EdgeShift",
    "Item",
    "Rect",
    "Region",
    "Policy",
    "place",
    "find_placement",
    "bsp_tile",
    "min_leaf_side",
    "tile_with_retries",
    "layout_single",
    "layout_combo",
    "relayout",
    "shuffle",
    "shift_edge",
    "grow_to_edges",
    "grow_to_bounding_box",
    "add_item",
    "remove_item",
    "new_item",
    "repack",
    "collect",
    "resize_canvas",
    "STYLEBOARD",
    "MOODBOARD",
]
