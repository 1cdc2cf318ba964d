# ABOUTME: HTTP serving layer for generated endpoints
# ABOUTME: Exposes create_app for uvicorn and tests

from .app import create_app

__all__ = ["create_app"]
