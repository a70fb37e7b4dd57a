from flask import Blueprint, current_app, jsonify, request

from services.extraction.results import NotFound

bp = Blueprint("feeds", __name__, url_prefix="/feeds")


def _service():
    return current_app.extensions["feed_extraction"]


def _owner():
    # authentication happens upstream; the caller's id arrives as a header
    return request.headers.get("X-User-Id", "").strip() or None


@bp.before_request
def _require_owner():
    if request.endpoint != "feeds.auto_refresh_status" and _owner() is None:
        return jsonify(success=False, error="X-User-Id header is required"), 400


@bp.post("/<feed_id>/refresh")
def refresh_feed(feed_id):
    result = _service().extract(feed_id, _owner())
    status = 404 if isinstance(result, NotFound) else 200
    return jsonify(result.to_dict()), status


@bp.post("/refresh-all")
def refresh_all():
    result = _service().extract_all(_owner())
    return jsonify(result.to_dict()), (200 if result.success else 500)


@bp.post("/<feed_id>/pause")
def pause_feed(feed_id):
    result = _service().pause_feed(feed_id, _owner())
    return jsonify(result.to_dict()), (200 if result.success else 404)


@bp.post("/<feed_id>/resume")
def resume_feed(feed_id):
    body = request.get_json(silent=True) or {}
    interval = body.get("interval_minutes")
    if interval is not None:
        try:
            interval = float(interval)
        except (TypeError, ValueError):
            return jsonify(success=False, error="interval_minutes must be a number"), 400
        if interval <= 0:
            return jsonify(success=False, error="interval_minutes must be positive"), 400

    result = _service().resume_feed(feed_id, _owner(), interval)
    return jsonify(result.to_dict()), (200 if result.success else 404)


@bp.get("/auto-refresh")
def auto_refresh_status():
    return jsonify([s.to_dict() for s in _service().get_auto_refresh_status()])
