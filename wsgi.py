"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi run
    flask --app wsgi seed-demo-catalog
    flask --app wsgi db init        # once, then db migrate / db upgrade
    gunicorn wsgi:app
"""

from app import create_app

app = create_app()
