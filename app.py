import os
import uuid
import threading
import traceback
from collections import OrderedDict
from datetime import datetime

from flask import Flask, request, render_template, Response, session, jsonify
from werkzeug.exceptions import RequestEntityTooLarge
from dotenv import load_dotenv

import ai_client
from errors import AnalysisInProgressError, ValidationError
from image_encoder import MAX_IMAGE_BYTES, OVERSIZED_MESSAGE
from result_formatter import dump_blocks
from site_config import SITE_CONFIG, DEFAULT_IMAGE_PATH, MAX_SESSIONS, MAX_SESSION_BYTES
from upload_controller import UploadController

load_dotenv()

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY") or os.urandom(32)
# Room for the multipart envelope on top of the 20 MiB image limit
app.config["MAX_CONTENT_LENGTH"] = MAX_IMAGE_BYTES + 1024 * 1024

ERROR_LOG = "last_error.log"

# Per-browser-session controllers, in memory only
_controllers: "OrderedDict[str, UploadController]" = OrderedDict()
_controllers_lock = threading.Lock()


# ── Inject site config into every template automatically ──────────────────────
@app.context_processor
def inject_globals():
    return {"site": SITE_CONFIG}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _log_error(context: str, exc: Exception) -> None:
    """Write the last error with timestamp to last_error.log (no user data)."""
    with open(ERROR_LOG, "w", encoding="utf-8") as f:
        f.write(f"[{datetime.now().isoformat(timespec='seconds')}] {context}\n\n")
        if exc.__traceback__:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=f)
        else:
            f.write(f"{type(exc).__name__}: {exc}\n")


def _analyze(encoded_image: str, prompt: str, timeout: float | None = None) -> str:
    # Looked up per call so the active client can be swapped at runtime
    return ai_client.call_ai(encoded_image, prompt, timeout=timeout)


def _new_controller() -> UploadController:
    controller = UploadController(
        analyze_fn=_analyze,
        default_image_path=DEFAULT_IMAGE_PATH,
        error_hook=_log_error,
    )
    controller.initialize()
    return controller


def _find_controller() -> UploadController | None:
    sid = session.get("sid")
    if not sid:
        return None
    with _controllers_lock:
        controller = _controllers.get(sid)
        if controller is not None:
            _controllers.move_to_end(sid)
        return controller


def _view_controller() -> UploadController:
    """Controller for read-only requests; a fresh default view is not registered."""
    return _find_controller() or _new_controller()


def _get_controller() -> UploadController:
    """Controller for state-changing requests; registers one on first use."""
    controller = _find_controller()
    if controller is not None:
        return controller
    sid = uuid.uuid4().hex
    session["sid"] = sid
    controller = _new_controller()
    with _controllers_lock:
        _controllers[sid] = controller
    _trim_sessions()
    return controller


def _trim_sessions() -> None:
    """Drop the least recently used sessions until both limits hold.

    The current session and sessions with an outstanding analysis are kept.
    """
    keep = session.get("sid")
    with _controllers_lock:
        held = sum(c.held_bytes() for c in _controllers.values())
        for sid in list(_controllers):
            if len(_controllers) <= MAX_SESSIONS and held <= MAX_SESSION_BYTES:
                break
            controller = _controllers[sid]
            if sid == keep or controller.session.loading:
                continue
            held -= controller.held_bytes()
            del _controllers[sid]


def _snapshot(controller: UploadController) -> dict:
    state = controller.session
    return {
        "image":         state.image,
        "analysis_text": state.analysis_text,
        "loading":       state.loading,
        "error":         state.error,
        "blocks":        dump_blocks(controller.blocks()),
    }


def _respond(controller: UploadController, status: int = 200, notice: str | None = None):
    """JSON for /api/* routes, the rendered page otherwise."""
    if request.path.startswith("/api/"):
        payload = _snapshot(controller)
        if notice:
            payload["notice"] = notice
        return jsonify(payload), status
    return render_template(
        "index.html",
        state=controller.session,
        blocks=controller.blocks(),
        notice=notice,
    ), status


# ── Error handlers ────────────────────────────────────────────────────────────

@app.errorhandler(RequestEntityTooLarge)
def too_large(e):
    controller = _get_controller()
    controller.reject("upload", ValidationError(OVERSIZED_MESSAGE))
    return _respond(controller, 413)


@app.errorhandler(AnalysisInProgressError)
def busy(e):
    return _respond(_view_controller(), 409, notice=e.message)


# ── Routes ────────────────────────────────────────────────────────────────────

@app.route("/robots.txt")
def robots_txt():
    return Response("User-agent: *\nDisallow: /\n", mimetype="text/plain")


@app.route("/")
def index():
    return _respond(_view_controller())


@app.route("/api/session")
def session_state():
    return _respond(_view_controller())


@app.route("/upload", methods=["POST"])
@app.route("/api/upload", methods=["POST"])
def upload():
    controller = _get_controller()
    file = request.files.get("image")
    if not file or not file.filename:
        # Nothing selected: leave the session as it is
        return _respond(controller, 400, notice="No file received.")
    controller.select_image(file)
    _trim_sessions()
    return _respond(controller)


@app.route("/analyze", methods=["POST"])
@app.route("/api/analyze", methods=["POST"])
def analyze():
    controller = _get_controller()
    controller.reanalyze()
    return _respond(controller)


if __name__ == "__main__":
    print("Starting on http://localhost:5000")
    app.run(debug=True, port=5000)
