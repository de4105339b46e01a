from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

design_mode_bp = Blueprint("design_mode", __name__)


@design_mode_bp.after_request
def add_cors_headers(response):
    """Allow the host page (another origin) to call the backend."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response


@design_mode_bp.route("/messages", methods=["OPTIONS"])
def messages_preflight():
    return "", 204


@design_mode_bp.route("/messages", methods=["POST"])
def post_message():
    """Handle one request message; reply with every response it produced."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "type" not in data:
        return jsonify({"error": "a JSON object with a type is required"}), 400
    handler = current_app.extensions["design_mode_handler"]
    return jsonify({"messages": handler.handle(data)})


@design_mode_bp.route("/health")
def health():
    handler = current_app.extensions["design_mode_handler"]
    return jsonify({
        "status": "ok",
        "pendingUploads": len(handler.reassembler.pending_uploads),
        "journalEntries": len(handler.journal),
    })
