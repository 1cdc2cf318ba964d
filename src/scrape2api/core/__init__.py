# ABOUTME: Business logic and orchestration layer
# ABOUTME: Generation pipeline, refresh gate and the error taxonomy

"""
Core Layer: Business logic and workflow orchestration

This layer handles:
- The generate/preview pipeline and its streamed events
- Refresh token derivation and refresh gating
- Errors surfaced to HTTP and CLI callers

Data Flow: extraction/ → codegen/ → persistence/ → server/ and CLI
"""

from .errors import (
    DataNotFoundError,
    InternalError,
    InvalidRefreshTokenError,
    InvalidUrlError,
    RefreshUnsupportedError,
    RendererError,
    Scrape2APIError,
)

# Import pipeline and refresh on-demand to avoid circular imports
# Use: from scrape2api.core.pipeline import GenerationPipeline

__all__ = [
    "DataNotFoundError",
    "InternalError",
    "InvalidRefreshTokenError",
    "InvalidUrlError",
    "RefreshUnsupportedError",
    "RendererError",
    "Scrape2APIError",
]
