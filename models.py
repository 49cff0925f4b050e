import math
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, NamedTuple, Optional, Tuple

from config import CFG

KIND_IMAGE = "image"
KIND_VIDEO = "video"
KIND_SITE = "site"

_IMAGE_EXT = re.compile(r"\.(png|jpe?g|gif|webp|avif|svg)$")
_VIDEO_EXT = re.compile(r"\.(mp4|webm|ogg)$")

# used when the natural size of a media item is unknown
FALLBACK_PX = (720, 480)


def px_to_cells(px: float) -> int:
    return max(1, round(px / CFG.GRID_PX))


def cells_from_px(w_px: float, h_px: float) -> Tuple[int, int]:
    """Cell footprint for media of natural size ``w_px`` x ``h_px``.

    The long side is capped at ``MAX_SIDE_PX`` keeping proportions, then both
    sides are rounded up to whole cells (never cropped).
    """
    try:
        w = float(w_px)
        h = float(h_px)
    except (TypeError, ValueError):
        w, h = FALLBACK_PX
    if not (math.isfinite(w) and math.isfinite(h)) or w <= 0 or h <= 0:
        w, h = FALLBACK_PX
    longest = max(w, h)
    if longest > CFG.MAX_SIDE_PX:
        scale = CFG.MAX_SIDE_PX / longest
        w = round(w * scale)
        h = round(h * scale)
    cap = max(1, CFG.MAX_SIDE_PX // CFG.GRID_PX)
    gw = min(cap, max(1, math.ceil(w / CFG.GRID_PX)))
    gh = min(cap, max(1, math.ceil(h / CFG.GRID_PX)))
    return gw, gh


def site_cells() -> Tuple[int, int]:
    return CFG.SITE_TILE_W, CFG.SITE_TILE_H


def canvas_cells(w_px: float, h_px: float) -> Tuple[int, int]:
    return int(w_px // CFG.GRID_PX), int(h_px // CFG.GRID_PX)


def detect_kind(url: str) -> str:
    u = (url or "").strip().split("?")[0].lower()
    if u.startswith("data:image/") or _IMAGE_EXT.search(u):
        return KIND_IMAGE
    if u.startswith("data:video/") or _VIDEO_EXT.search(u):
        return KIND_VIDEO
    return KIND_SITE


def canvas_dims(W: Any, H: Any) -> Optional[Tuple[int, int]]:
    """Integer canvas size, or ``None`` for non-numeric, non-finite or empty sizes."""
    try:
        w = float(W)
        h = float(H)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(w) and math.isfinite(h)):
        return None
    wi, hi = int(w), int(h)
    if wi < 1 or hi < 1:
        return None
    return wi, hi


def clamp_aspect(r: float) -> float:
    return max(CFG.R_MIN, min(CFG.R_MAX, r))


def effective_aspect(item: "Item") -> float:
    r = item.nat_r
    if r is not None and math.isfinite(r) and r > 0.01:
        return clamp_aspect(r)
    w, h = item.nat_w, item.nat_h
    if w and h and w > 0 and h > 0:
        return clamp_aspect(w / h)
    return clamp_aspect(4 / 3)


@dataclass(frozen=True)
class Rect:
    gx: int
    gy: int
    gw: int
    gh: int

    @property
    def x2(self) -> int:
        return self.gx + self.gw

    @property
    def y2(self) -> int:
        return self.gy + self.gh

    @property
    def area(self) -> int:
        return self.gw * self.gh

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.gx, self.gy, self.gw, self.gh)


class NoSpace:
    _instance: Optional["NoSpace"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_SPACE"


NO_SPACE = NoSpace()


@dataclass(frozen=True)
class Item:
    id: str
    kind: str = KIND_IMAGE
    gx: int = 0
    gy: int = 0
    gw: int = 1
    gh: int = 1
    nat_w: Optional[float] = None
    nat_h: Optional[float] = None
    nat_r: Optional[float] = None
    approved: Any = None
    url: str = ""

    @property
    def rect(self) -> Rect:
        return Rect(self.gx, self.gy, self.gw, self.gh)

    def with_rect(self, gx: int, gy: int, gw: int, gh: int) -> "Item":
        return replace(self, gx=int(gx), gy=int(gy), gw=int(gw), gh=int(gh))

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "gx": self.gx,
            "gy": self.gy,
            "gw": self.gw,
            "gh": self.gh,
        }
        if self.nat_w is not None:
            d["natW"] = self.nat_w
        if self.nat_h is not None:
            d["natH"] = self.nat_h
        if self.nat_r is not None:
            d["natR"] = self.nat_r
        if self.approved is not None:
            d["approved"] = self.approved
        if self.url:
            d["url"] = self.url
        return d


@dataclass
class Region:
    x: int
    y: int
    w: int
    h: int
    n: int
    depth: int = 0

    @property
    def area(self) -> int:
        return self.w * self.h

    @property
    def aspect(self) -> float:
        return self.w / self.h if self.h else 0.0


class EdgeShift(NamedTuple):
    items: list
    applied: int


@dataclass
class Board:
    """Request-level bundle: board style, canvas and the current items."""
    style: str
    W: int
    H: int
    items: list = field(default_factory=list)
