# ABOUTME: Cross-cutting utilities and shared infrastructure
# ABOUTME: Supporting services: logging, retries, rich output helpers

"""
Utils Layer: Shared infrastructure and cross-cutting concerns

This layer provides:
- Logging configuration and progress tracking
- Bounded retry policy for page rendering
- Rich table helpers for the CLI
"""

from . import logging

__all__ = [
    "logging",
]
