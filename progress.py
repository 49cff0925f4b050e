from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

# ------------------------------
# Thread-safe global run state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_path() -> Optional[Path]:
    configured = (CFG.ACTIVITY_LOG or "").strip()
    if not configured:
        return None
    p = Path(configured)
    if not p.is_absolute():
        p = Path(__file__).resolve().parent / p
    return p


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("packing.activity")
    if logger.handlers:
        return logger

    log_path = _log_path()
    if log_path is None:
        return logger
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except Exception:
        # Layout calls keep working without an activity log.
        logger.handlers.clear()
    return logger


ACTIVITY_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ACTIVITY_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except Exception:
        return None


def log_detail(event: str, level: int = logging.INFO, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    try:
        if extras:
            ACTIVITY_LOGGER.log(level, "%s | %s", event, " ".join(extras))
        else:
            ACTIVITY_LOGGER.log(level, "%s", event)
    except Exception:
        # Logging failures must never bubble back to callers.
        pass


# Single source of truth for /progress
PROGRESS: Dict[str, Any] = {
    "busy": False,          # a heavy operation is running
    "operation": "",        # e.g. shuffle | repack | collect
    "started": None,        # t0 (float) of the current/last operation
    "elapsed": 0.0,         # seconds of the last finished operation
    "cooldown_until": 0.0,  # epoch seconds before which new work is refused
    "ok": None,             # outcome of the last operation
    "message": "",
    "run_id": 0,            # monotonically increasing identifier
}

# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{seconds:.1f}s"
    m, s = divmod(int(seconds), 60)
    return f"{m}m {s}s"


def reset() -> None:
    with PROGRESS_LOCK:
        PROGRESS.update({
            "busy": False,
            "operation": "",
            "started": None,
            "elapsed": 0.0,
            "cooldown_until": 0.0,
            "ok": None,
            "message": "",
        })


# ------------------------------
# Busy / cooldown gate
# ------------------------------

def begin(operation: str) -> bool:
    """Claim the gate for a heavy operation.

    Returns ``False`` when another operation is still running or the previous
    one finished less than ``COOLDOWN_MS`` ago.
    """
    with PROGRESS_LOCK:
        now = _now()
        if PROGRESS["busy"] or now < float(PROGRESS["cooldown_until"] or 0.0):
            log_detail("Gate refused", operation=operation, running=PROGRESS["operation"] or None)
            return False
        try:
            run_id = int(PROGRESS.get("run_id", 0)) + 1
        except Exception:
            run_id = 1
        PROGRESS.update({
            "busy": True,
            "operation": str(operation),
            "started": now,
            "elapsed": 0.0,
            "ok": None,
            "message": "",
            "run_id": run_id,
        })
        log_detail("Operation started", operation=operation, run_id=run_id)
        return True


def finish(ok: Any = True, *, message: Any = None) -> None:
    with PROGRESS_LOCK:
        now = _now()
        t0 = PROGRESS.get("started")
        duration = None
        if isinstance(t0, (int, float)):
            duration = max(0.0, now - float(t0))
        PROGRESS.update({
            "busy": False,
            "elapsed": duration or 0.0,
            "cooldown_until": now + max(0, CFG.COOLDOWN_MS) / 1000.0,
            "ok": bool(ok),
            "message": "" if message is None else str(message),
        })
        log_detail(
            "Operation finished",
            operation=PROGRESS.get("operation"),
            ok=PROGRESS["ok"],
            duration=_fmt_seconds(duration),
            message=PROGRESS["message"],
        )


# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        now = _now()
        elapsed = PROGRESS["elapsed"]
        if PROGRESS["busy"] and isinstance(PROGRESS["started"], (int, float)):
            elapsed = now - float(PROGRESS["started"])
        return {
            "busy": PROGRESS["busy"],
            "operation": PROGRESS["operation"],
            "elapsed": elapsed,
            "elapsed_str": _fmt_elapsed(elapsed),
            "cooling_down": now < float(PROGRESS["cooldown_until"] or 0.0),
            "ok": PROGRESS["ok"],
            "message": PROGRESS["message"],
            "run_id": PROGRESS["run_id"],
        }
