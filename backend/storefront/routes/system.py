# backend/storefront/routes/system.py
"""
Health endpoint for load balancers and deploy checks.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Round-trip a trivial query and report latency."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"dialect": db.engine.dialect.name},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
        200 when every check is healthy, 503 otherwise
    """
    checks = {"database": check_database_health()}
    healthy = all(c["status"] == "healthy" for c in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "stock_enforced": bool(current_app.config.get("STOREFRONT_ENFORCE_STOCK", True)),
        "checks": checks,
    }), 200 if healthy else 503
