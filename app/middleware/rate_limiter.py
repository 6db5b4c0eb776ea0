"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in app/__init__.py with no default limits;
this module applies granular limits per route category.

Usage:
    from app.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"

# Endpoint that fans out one outbound message per recipient
NOTIFY_ENDPOINT = "operation_bp.notify_staff"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Bulk staff notify:   NOTIFY_RATE_LIMIT (default 30 per minute)
        - Wizard / operations: 60/minute
        - Catalog reads:       200/minute
        - Health check:        exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    notify_limit = app.config.get("NOTIFY_RATE_LIMIT", "30 per minute")
    view = app.view_functions.get(NOTIFY_ENDPOINT)
    if view:
        app.view_functions[NOTIFY_ENDPOINT] = limiter.limit(notify_limit)(view)

    for bp_name in ("operation_wizard_bp", "operation_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("catalog_bp", "notification_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: notify: %s, write: %s, read: %s",
        notify_limit, WRITE_LIMIT, READ_LIMIT,
    )
