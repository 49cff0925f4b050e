# app.py: JSON service over the layout engine; /progress no-cache
from __future__ import annotations
import os
import random
from typing import Any, Callable, Dict, Optional, Tuple

from flask import Flask, request, send_from_directory, jsonify

from board_parser import parse_board, fmt_items
from config import CFG
from io_files import layout_view_html, write_coords, write_layout_view_html
from render import render_board
from packing import (
    Policy,
    add_item,
    collect,
    grow_to_bounding_box,
    grow_to_edges,
    new_item,
    place,
    relayout,
    remove_item,
    repack,
    resize_canvas,
    shift_edge,
    shuffle,
)
from progress import (
    begin as progress_begin,
    finish as progress_finish,
    log_detail,
    snapshot as progress_snapshot,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_COORDS_FULL_PATH, COORDS_DIR, COORDS_FILENAME = _resolve_output_paths(
    CFG.COORDS_OUT, "coords.txt"
)
_LAYOUT_FULL_PATH, LAYOUT_DIR, LAYOUT_FILENAME = _resolve_output_paths(
    CFG.LAYOUT_HTML, "layout_view.html"
)

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    try:
        if request.path == "/progress":
            resp.headers["Cache-Control"] = "no-store, max-age=0"
            resp.headers["Pragma"] = "no-cache"
            resp.headers["Expires"] = "0"
    except Exception:
        pass
    return resp


class BadRequest(Exception):
    pass


def _merge_like_mapping() -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        merged.update(payload)

    try:
        form_dict = request.form.to_dict(flat=True)
    except Exception:
        form_dict = dict(request.form or {})
    for k, v in form_dict.items():
        merged.setdefault(k, v)

    try:
        args_dict = request.args.to_dict(flat=True)
    except Exception:
        args_dict = dict(request.args or {})
    for k, v in args_dict.items():
        merged.setdefault(k, v)

    return merged


def _load(default_style: str = "styleboard"):
    payload = _merge_like_mapping()
    board, err = parse_board(payload, default_style=default_style)
    if err:
        raise BadRequest(err)
    return payload, board


def _rng_from(payload: Dict[str, Any]) -> Optional[random.Random]:
    seed = payload.get("seed")
    if seed is None or seed == "":
        return None
    try:
        return random.Random(int(seed))
    except (TypeError, ValueError):
        raise BadRequest(f"bad seed: {seed!r}")


def _int_field(payload: Dict[str, Any], key: str) -> int:
    try:
        return int(float(payload[key]))
    except KeyError:
        raise BadRequest(f"missing {key}")
    except (TypeError, ValueError):
        raise BadRequest(f"bad {key}: {payload.get(key)!r}")


def _optional_float(payload: Dict[str, Any], key: str) -> Optional[float]:
    v = payload.get(key)
    if v is None or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        raise BadRequest(f"bad {key}: {v!r}")


def _items_response(items, **extra):
    body = {"ok": True, "items": fmt_items(items)}
    body.update(extra)
    return jsonify(body)


def _run(operation: str, fn: Callable[[], Any], *, gated: bool = False):
    if gated and not progress_begin(operation):
        return jsonify({"ok": False, "reason": "busy"}), 409
    ok = False
    try:
        resp = fn()
        ok = True
        return resp
    except BadRequest as e:
        return jsonify({"ok": False, "reason": str(e)}), 400
    except ValueError as e:
        return jsonify({"ok": False, "reason": str(e)}), 400
    except Exception as e:
        reason = f"layout exception: {type(e).__name__}: {e}"
        log_detail("Request failed", operation=operation, reason=reason)
        return jsonify({"ok": False, "reason": reason}), 500
    finally:
        if gated:
            progress_finish(ok)


# ------------------------------
# Placement
# ------------------------------

@app.route("/place", methods=["POST"])
def place_route():
    def _do():
        payload, board = _load()
        gw = _int_field(payload, "gw")
        gh = _int_field(payload, "gh")
        policy = str(payload.get("policy") or Policy.PACKED)
        if policy not in Policy.ALL:
            raise BadRequest(f"unknown policy: {policy}")
        rect = place(board.items, gw, gh, board.W, board.H, policy, kind=payload.get("kind"))
        if not rect:
            return jsonify({"ok": False, "reason": "no space"})
        return jsonify({"ok": True, "rect": {"gx": rect.gx, "gy": rect.gy, "gw": rect.gw, "gh": rect.gh}})
    return _run("place", _do)


@app.route("/add", methods=["POST"])
def add_route():
    def _do():
        payload, board = _load()
        url = str(payload.get("url") or "").strip()
        if not url:
            raise BadRequest("missing url")
        item = new_item(
            url,
            item_id=payload.get("id") or None,
            kind=payload.get("kind") or None,
            nat_w=_optional_float(payload, "natW"),
            nat_h=_optional_float(payload, "natH"),
        )
        if any(it.id == item.id for it in board.items):
            raise BadRequest(f"duplicate item id: {item.id}")
        items, rect = add_item(board.style, board.items, item, board.W, board.H,
                               payload.get("intensity"), _rng_from(payload))
        if not rect:
            return jsonify({"ok": False, "reason": "no space", "items": fmt_items(items)})
        return _items_response(items, id=item.id)
    return _run("add", _do, gated=True)


@app.route("/remove", methods=["POST"])
def remove_route():
    def _do():
        payload, board = _load()
        if payload.get("id") is None:
            raise BadRequest("missing id")
        items = remove_item(board.style, board.items, str(payload["id"]), board.W, board.H,
                            payload.get("intensity"), _rng_from(payload))
        return _items_response(items)
    return _run("remove", _do, gated=True)


# ------------------------------
# Moodboard
# ------------------------------

@app.route("/relayout", methods=["POST"])
def relayout_route():
    def _do():
        payload, board = _load("moodboard")
        items = relayout(board.items, board.W, board.H, payload.get("intensity"), _rng_from(payload))
        return _items_response(items)
    return _run("relayout", _do)


@app.route("/shuffle", methods=["POST"])
def shuffle_route():
    def _do():
        payload, board = _load("moodboard")
        mode = str(payload.get("mode") or "single")
        items = shuffle(board.items, board.W, board.H, payload.get("intensity"), _rng_from(payload), mode=mode)
        return _items_response(items)
    return _run("shuffle", _do, gated=True)


# ------------------------------
# Geometry edits
# ------------------------------

@app.route("/shift-edge", methods=["POST"])
def shift_edge_route():
    def _do():
        payload, board = _load()
        if payload.get("id") is None:
            raise BadRequest("missing id")
        delta = _int_field(payload, "delta")
        res = shift_edge(board.items, str(payload["id"]), str(payload.get("edge") or ""), delta, board.W, board.H)
        return _items_response(res.items, applied=res.applied)
    return _run("shift-edge", _do)


@app.route("/grow/edges", methods=["POST"])
def grow_edges_route():
    def _do():
        _, board = _load()
        return _items_response(grow_to_edges(board.items, board.W, board.H))
    return _run("grow-edges", _do)


@app.route("/grow/bbox", methods=["POST"])
def grow_bbox_route():
    def _do():
        _, board = _load()
        return _items_response(grow_to_bounding_box(board.items, board.W, board.H))
    return _run("grow-bbox", _do)


@app.route("/collect", methods=["POST"])
def collect_route():
    def _do():
        _, board = _load()
        return _items_response(collect(board.items, board.W, board.H))
    return _run("collect", _do, gated=True)


@app.route("/repack", methods=["POST"])
def repack_route():
    def _do():
        _, board = _load()
        return _items_response(repack(board.items, board.W, board.H))
    return _run("repack", _do, gated=True)


@app.route("/resize", methods=["POST"])
def resize_route():
    def _do():
        payload, board = _load()
        items = resize_canvas(board.style, board.items, board.W, board.H,
                              payload.get("intensity"), _rng_from(payload))
        return _items_response(items)
    return _run("resize", _do, gated=True)


# ------------------------------
# Preview / downloads
# ------------------------------

@app.route("/preview", methods=["POST"])
def preview_route():
    def _do():
        _, board = _load()
        svg, legend = render_board(board.items, board.W, board.H)
        write_coords(board.items, board.W, board.H, BASE_DIR)
        write_layout_view_html(svg, legend, BASE_DIR)
        return layout_view_html(svg, legend, title=f"{board.style.title()} {board.W}×{board.H}")
    return _run("preview", _do)


@app.route("/download/coords")
def download_coords():
    return send_from_directory(COORDS_DIR, COORDS_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(LAYOUT_DIR, LAYOUT_FILENAME, as_attachment=True)


@app.route("/progress")
def progress_route():
    return jsonify(progress_snapshot())


if __name__ == "__main__":
    app.run(debug=False)
