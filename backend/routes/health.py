"""
Minimal health check endpoint

Reports process liveness and whether the category cache is reachable.
"""

from datetime import datetime

from flask import Blueprint, jsonify

import cache_manager

health_bp = Blueprint("health", __name__, url_prefix="/api")


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Minimal health check endpoint.

    The category cache is optional, so an unreachable Redis is reported but
    does not make the service unhealthy.

    Returns:
        200: {"status": "ok", "cache": "up"|"down", "timestamp": ...}
    """
    cache_up = cache_manager.get_redis_client() is not None
    return jsonify(
        {
            "status": "ok",
            "cache": "up" if cache_up else "down",
            "timestamp": datetime.now().isoformat(),
        }
    )
