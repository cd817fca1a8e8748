"""WSGI entrypoint: ``gunicorn -c gunicorn.conf.py wsgi:app``."""

from accounts import create_app

app = create_app()
