"""Account service: registration, login and refresh token rotation over HTTP."""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
