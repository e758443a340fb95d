# backend/millet/routes/system.py
"""
System banner and health endpoints.
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Round-trip the database.

    Returns dict with status and latency.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/")
def index():
    return jsonify({"success": True, "message": "Millet inventory API is running"})


@system_bp.get("/api/healthcheck")
def healthcheck():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "success": healthy,
        "message": "ok" if healthy else "degraded",
        "database": database,
    }
    return jsonify(body), 200 if healthy else 503
