# ABOUTME: Logging configuration, progress tracking, and output formatting
# ABOUTME: Provides rich console output and structured logging for the generation pipeline

from .config import LoggingMode, configure_logging, get_logging_status, suppress_library_output
from .progress import SimpleProgressTracker, create_smart_progress
from .utils import LogContext, get_logger, log_api_call, log_pipeline_step, with_pipeline_context

__all__ = [
    # Configuration
    "LoggingMode",
    "configure_logging",
    "get_logging_status",
    "suppress_library_output",
    # Progress
    "SimpleProgressTracker",
    "create_smart_progress",
    # Utilities
    "LogContext",
    "get_logger",
    "log_api_call",
    "log_pipeline_step",
    "with_pipeline_context",
]
