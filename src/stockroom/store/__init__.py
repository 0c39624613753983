"""Reference implementation of the remote item store."""
from __future__ import annotations

from .api import app, create_app

__all__ = ["app", "create_app"]
