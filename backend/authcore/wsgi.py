"""WSGI entry point (``gunicorn authcore.wsgi:app``)."""

from __future__ import annotations

from authcore import create_app

app = create_app()
