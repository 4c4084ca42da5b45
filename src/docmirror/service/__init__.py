"""HTTP API over the document synchronizer."""

from .app import create_app

__all__ = ["create_app"]
