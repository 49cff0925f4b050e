# config.py
import os

# ======= Grid units =======
GRID_PX = int(os.getenv("MB_GRID_PX", "16"))      # pixels per cell
GUTTER  = int(os.getenv("MB_GUTTER", "1"))        # cells of clearance around styleboard items

# ======= Aspect envelope (moodboard) =======
R_MIN = 9 / 16
R_MAX = 16 / 9

# ======= Media sizing =======
MAX_SIDE_PX = int(os.getenv("MB_MAX_SIDE_PX", "1440"))
SITE_TILE_W = int(os.getenv("MB_SITE_TILE_W", "90"))   # 1440 / 16
SITE_TILE_H = int(os.getenv("MB_SITE_TILE_H", "68"))   # ~1088 / 16

# ======= Placement search =======
SNAKE_MARGIN     = int(os.getenv("MB_SNAKE_MARGIN", "2"))
SPIRAL_MAX_STEPS = int(os.getenv("MB_SPIRAL_MAX_STEPS", "200000"))
SITE_STRICT_RADIAL = int(os.getenv("MB_SITE_STRICT_RADIAL", "1")) != 0
ANCHOR_KIND      = os.getenv("MB_ANCHOR_KIND", "site")

# CP-SAT last resort once the greedy chain has run out of budget.
EXACT_RESCUE         = int(os.getenv("MB_EXACT_RESCUE", "1")) != 0
EXACT_RESCUE_WORK    = float(os.getenv("MB_EXACT_RESCUE_WORK", "5"))   # deterministic time, not wall clock
EXACT_RESCUE_MAX_ITEMS = int(os.getenv("MB_EXACT_RESCUE_MAX_ITEMS", "2000"))

# ======= BSP tiler =======
BSP_ATTEMPTS    = int(os.getenv("MB_BSP_ATTEMPTS", "4"))
BSP_GUARD       = int(os.getenv("MB_BSP_GUARD", "50000"))
BSP_EXTRA_GUARD = int(os.getenv("MB_BSP_EXTRA_GUARD", "20000"))

# ======= Moodboard =======
# 0..100, same scale as the intensity slider
DEFAULT_INTENSITY = float(os.getenv("MB_DEFAULT_INTENSITY", "40"))
MOOD_KINDS = tuple(
    k.strip() for k in os.getenv("MB_MOOD_KINDS", "image,video").split(",") if k.strip()
)

# Reflow runs on a fixed seed so a repeated reflow keeps the same mosaic.
# Shuffle draws from SEED when set, otherwise from a fresh system seed.
REFLOW_SEED = int(os.getenv("MB_REFLOW_SEED", "0"))
_seed_env   = os.getenv("MB_SEED", "").strip()
SEED        = int(_seed_env) if _seed_env else None

# ======= Service =======
COOLDOWN_MS  = int(os.getenv("MB_COOLDOWN_MS", "500"))
ACTIVITY_LOG = os.getenv("MB_ACTIVITY_LOG", "logs/layout_activity.log")

# ======= Output names =======
COORDS_OUT  = os.getenv("MB_COORDS_OUT", "coords.txt")
LAYOUT_HTML = os.getenv("MB_LAYOUT_HTML", "layout_view.html")


class CFG:
    GRID_PX = GRID_PX
    GUTTER  = GUTTER

    R_MIN = R_MIN
    R_MAX = R_MAX

    MAX_SIDE_PX = MAX_SIDE_PX
    SITE_TILE_W = SITE_TILE_W
    SITE_TILE_H = SITE_TILE_H

    SNAKE_MARGIN       = SNAKE_MARGIN
    SPIRAL_MAX_STEPS   = SPIRAL_MAX_STEPS
    SITE_STRICT_RADIAL = SITE_STRICT_RADIAL
    ANCHOR_KIND        = ANCHOR_KIND

    EXACT_RESCUE           = EXACT_RESCUE
    EXACT_RESCUE_WORK      = EXACT_RESCUE_WORK
    EXACT_RESCUE_MAX_ITEMS = EXACT_RESCUE_MAX_ITEMS

    BSP_ATTEMPTS    = BSP_ATTEMPTS
    BSP_GUARD       = BSP_GUARD
    BSP_EXTRA_GUARD = BSP_EXTRA_GUARD

    DEFAULT_INTENSITY = DEFAULT_INTENSITY
    MOOD_KINDS        = MOOD_KINDS
    REFLOW_SEED       = REFLOW_SEED
    SEED              = SEED

    COOLDOWN_MS  = COOLDOWN_MS
    ACTIVITY_LOG = ACTIVITY_LOG

    COORDS_OUT  = COORDS_OUT
    LAYOUT_HTML = LAYOUT_HTML

__all__ = ["CFG", "GUTTER", "R_MIN", "R_MAX"]
