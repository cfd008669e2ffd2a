"""WSGI entry point: ``gunicorn -c gunicorn.conf.py bearer_auth.wsgi:app``."""

from bearer_auth import create_app

app = create_app()
