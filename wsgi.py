"""WSGI entry point for production deployment (gunicorn wsgi:app)."""

from server import create_app

app = create_app()
