# hookbin/routes.py
import logging
from urllib.parse import quote

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed

from .capture import flatten_headers
from .errors import HookbinError, InternalFailure, InvalidLogCount, NotFound
from .models import InboundEvent

logger = logging.getLogger(__name__)

bp = Blueprint("hookbin", __name__)

WEBHOOK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

# Browsers ask for these on their own; they are never tokens.
BROWSER_FILES = {"favicon.ico", "robots.txt", "sitemap.xml", "manifest.json"}


def _services():
    return current_app.extensions["hookbin"]


def _request_target() -> str:
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI")
    if raw:
        return raw
    target = quote(request.path, safe="/:@!$&'()*+,;=~")
    if request.query_string:
        target += "?" + request.query_string.decode("latin-1")
    return target


def _read_body(limit: int) -> bytes:
    # One byte past the cap is enough to know the body is too large.
    stream = request.stream
    chunks = []
    remaining = limit + 1
    while remaining > 0:
        chunk = stream.read(min(remaining, 64 * 1024))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


@bp.app_errorhandler(HookbinError)
def handle_hookbin_error(err: HookbinError):
    logger.warning("Error occurred on %s %s: %s", request.method, request.path, err.message)
    return jsonify(err.to_dict()), err.status_code


@bp.app_errorhandler(HTTPException)
def handle_http_error(err: HTTPException):
    response = jsonify({"error": err.name, "status": err.code})
    response.status_code = err.code
    if isinstance(err, MethodNotAllowed) and err.valid_methods:
        response.headers["Allow"] = ", ".join(err.valid_methods)
    return response


@bp.app_errorhandler(Exception)
def handle_unexpected_error(err: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    failure = InternalFailure()
    return jsonify(failure.to_dict()), failure.status_code


@bp.route("/", methods=["GET"])
def index():
    return jsonify({
        "name": "hookbin",
        "endpoints": {
            "POST /api/tokens": "Create a token",
            "GET /api/tokens": "List tokens",
            "DELETE /api/tokens/{token}": "Delete a token and its requests",
            "ANY /{token}": "Capture a webhook",
            "GET /{token}/log/{count}": "Most recent captured requests (max 1000)",
            "GET /health": "Health check",
        },
    }), 200


@bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"}), 200


@bp.route("/api/tokens", methods=["POST"])
def create_token():
    token = _services().tokens.create_token(flatten_headers(request.headers.items()))
    return jsonify(token.to_dict()), 200


@bp.route("/api/tokens", methods=["GET"])
def list_tokens():
    tokens = _services().tokens.list_tokens()
    return jsonify([t.to_dict() for t in tokens]), 200


@bp.route("/api/tokens/<token>", methods=["DELETE"])
def delete_token(token):
    _services().tokens.delete_token(token)
    return jsonify({"status": "deleted"}), 200


@bp.route("/api/<path:rest>", methods=WEBHOOK_METHODS)
def api_fallback(rest):
    # Keeps unsupported methods on the token API from reaching the webhook routes.
    if rest == "tokens":
        raise MethodNotAllowed(valid_methods=["GET", "POST"])
    name, _, extra = rest.partition("/")
    if name == "tokens" and extra and "/" not in extra:
        raise MethodNotAllowed(valid_methods=["DELETE"])
    raise NotFound()


@bp.route("/<token>/log/<int(signed=True):count>", methods=["GET"])
def get_logs(token, count):
    captured = _services().logs.get_logs(token, count)
    return jsonify([r.to_dict() for r in captured]), 200


@bp.route("/<token>/log/<path:count>", methods=["GET"])
def get_logs_bad_count(token, count):
    raise InvalidLogCount()


@bp.route("/<token>", methods=WEBHOOK_METHODS)
@bp.route("/<token>/<path:path>", methods=WEBHOOK_METHODS)
def webhook(token, path=None):
    if token in BROWSER_FILES:
        logger.debug("Browser file request: %s", token)
        raise NotFound()

    capture = _services().capture
    event = InboundEvent(
        method=request.method,
        target=_request_target(),
        headers=list(request.headers.items()),
        query_string=request.query_string.decode("utf-8", errors="replace"),
        body=_read_body(capture.max_body_bytes),
    )
    receipt = capture.capture(token, event)
    return jsonify(receipt.to_dict()), 200
