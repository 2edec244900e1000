"""
Health Check Endpoints

1. /health/live - Liveness probe (is the process alive?)
2. /health/ready - Readiness probe (can the database be reached?)
3. /health/detailed - Dependency, blueprint and configuration summary
"""

import os
import time
import logging
from datetime import datetime, timezone
from typing import Dict, Any

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text

from models import db

logger = logging.getLogger(__name__)

health_production_bp = Blueprint('health_production', __name__, url_prefix='/health')

_startup_time = time.time()
_startup_complete = False


def mark_startup_complete():
    global _startup_complete
    _startup_complete = True
    logger.info("Startup complete - ready for traffic")


def get_uptime_seconds() -> float:
    return time.time() - _startup_time


def check_database_health() -> Dict[str, Any]:
    """SELECT 1 round trip; healthy, latency_ms and error on failure."""
    start = time.time()
    backend = db.engine.url.get_backend_name()
    try:
        db.session.execute(text("SELECT 1")).fetchone()
        db.session.rollback()
        return {
            "healthy": True,
            "latency_ms": round((time.time() - start) * 1000, 2),
            "type": backend,
        }
    except Exception as e:
        db.session.rollback()
        logger.warning(f"Database health check failed: {e}")
        return {
            "healthy": False,
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e)[:100],
            "type": backend,
        }


@health_production_bp.route('/live')
def liveness():
    """No external dependencies; only proves the process is serving."""
    return jsonify({
        "status": "alive",
        "uptime_seconds": round(get_uptime_seconds(), 2)
    }), 200


@health_production_bp.route('/ready')
def readiness():
    db_health = check_database_health()
    is_ready = db_health.get("healthy", False)
    return jsonify({
        "status": "ready" if is_ready else "not_ready",
        "checks": {"database": db_health},
        "timestamp": datetime.now(timezone.utc).isoformat()
    }), 200 if is_ready else 503


@health_production_bp.route('/detailed')
def detailed_health():
    db_health = check_database_health()
    registry = current_app.extensions.get('fusion_blueprints')
    blueprints = registry.get_status() if registry else None

    if not db_health.get("healthy", False):
        overall_status = "unhealthy"
    elif blueprints and blueprints["failed_count"]:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    report = current_app.extensions.get('fusion_startup_report')
    response = {
        "status": overall_status,
        "startup_complete": _startup_complete,
        "uptime_seconds": round(get_uptime_seconds(), 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "dependencies": {"database": db_health},
        "blueprints": blueprints,
        "startup_validation": report.to_dict()["summary"] if report else None,
        "environment": {
            "env": os.environ.get("FLASK_ENV", "development"),
            "testing": bool(current_app.config.get("TESTING")),
            "db_retry_attempts": current_app.config.get("DB_RETRY_ATTEMPTS"),
        },
    }
    return jsonify(response), 200 if overall_status != "unhealthy" else 503
