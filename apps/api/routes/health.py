from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    service = current_app.extensions["feed_extraction"]
    return jsonify(ok=True, autoRefreshJobs=len(service.get_auto_refresh_status()))
