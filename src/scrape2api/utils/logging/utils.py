# ABOUTME: Logger helpers: structlog loggers, timed operation decorators and bound pipeline contexts
# ABOUTME: Renderer calls and pipeline steps log start, success or failure with their duration

import contextlib
import functools
import inspect
import time
import uuid
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

import structlog

F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, named after the calling module when no name is given."""
    if name is None:
        frame = inspect.currentframe()
        caller = frame.f_back if frame else None
        name = caller.f_globals.get("__name__") if caller else None

    return structlog.get_logger(name or "scrape2api")


def generate_operation_id() -> str:
    """Short random id correlating the log lines of one operation."""
    return uuid.uuid4().hex[:8]


def _find_url(args: tuple, kwargs: dict) -> str | None:
    for arg in (*args, *kwargs.values()):
        if isinstance(arg, str) and arg.startswith(("http://", "https://")):
            return arg
    return None


def _result_info(result: Any) -> dict[str, Any]:
    return {"result_count": len(result)} if hasattr(result, "__len__") else {}


@contextlib.contextmanager
def _timed(bound_logger, label: str, outcome: dict[str, Any]) -> Iterator[None]:
    """Log the failure or success of the wrapped block with its duration.

    Callers may add keys to ``outcome`` inside the block; they are logged on success.
    """
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        bound_logger.error(
            f"{label} failed",
            duration_seconds=round(time.perf_counter() - started, 3),
            error=str(e),
            error_type=type(e).__name__,
            success=False,
        )
        raise
    bound_logger.info(
        f"{label} succeeded",
        duration_seconds=round(time.perf_counter() - started, 3),
        success=True,
        **outcome,
    )


def log_api_call(api_name: str, **context) -> Callable[[F], F]:
    """Decorate an async call to an external service (browser, HTTP) with timing logs.

    The first http(s) URL among the arguments is bound to every log line.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            bound_logger = get_logger(func.__module__).bind(
                api_name=api_name, call_id=generate_operation_id(), url=_find_url(args, kwargs), **context
            )
            bound_logger.debug(f"API call to {api_name}")
            with _timed(bound_logger, f"API call to {api_name}", {}):
                return await func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def log_pipeline_step(step_name: str, pipeline: str = "generate") -> Callable[[F], F]:
    """Decorate a pipeline step (sync or async) with timing logs and a result count."""

    def decorator(func: F) -> F:
        def _logger():
            return get_logger(func.__module__).bind(step=step_name, pipeline=pipeline)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                outcome: dict[str, Any] = {}
                with _timed(_logger(), f"Pipeline step {step_name}", outcome):
                    result = await func(*args, **kwargs)
                    outcome.update(_result_info(result))
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            outcome: dict[str, Any] = {}
            with _timed(_logger(), f"Pipeline step {step_name}", outcome):
                result = func(*args, **kwargs)
                outcome.update(_result_info(result))
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


class LogContext:
    """Binds context to a logger for the duration of a block and reports failures."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, **context):
        self.logger = logger
        self.context = context
        self.bound_logger: structlog.stdlib.BoundLogger | None = None

    def __enter__(self) -> structlog.stdlib.BoundLogger:
        self.bound_logger = self.logger.bind(**self.context)
        return self.bound_logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self.bound_logger is not None:
            self.bound_logger.error("Operation failed", error=str(exc_val), error_type=exc_type.__name__)


def with_pipeline_context(pipeline_name: str, **context) -> LogContext:
    """Logging context for one pipeline run, tagged with a fresh operation id."""
    return LogContext(
        get_logger("scrape2api.pipeline"), pipeline=pipeline_name, operation_id=generate_operation_id(), **context
    )
