"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — database round-trip plus catalog counts
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import func, select

from app.models import db
from app.models.catalog import Company, Equipment, HealthTest, Staff
from app.models.operation import Appointment

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe, always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check: database failed: %s", exc)

    # ── Catalog ──────────────────────────────────────────────────────
    if overall:
        counts = {}
        for label, model in (
            ("companies", Company), ("staff", Staff), ("tests", HealthTest),
            ("equipment", Equipment), ("appointments", Appointment),
        ):
            counts[label] = db.session.execute(select(func.count()).select_from(model)).scalar()
        checks["catalog"] = {"status": "ok", "counts": counts}

    # ── Messaging ────────────────────────────────────────────────────
    transport = current_app.config.get("MESSAGING_TRANSPORT", "link")
    webhook_ok = transport != "webhook" or bool(current_app.config.get("MESSAGING_WEBHOOK_URL"))
    checks["messaging"] = {
        "status": "ok" if webhook_ok else "misconfigured",
        "transport": transport,
    }

    # ── App info ─────────────────────────────────────────────────────
    checks["app"] = {
        "name": "Field Screening Operations",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
