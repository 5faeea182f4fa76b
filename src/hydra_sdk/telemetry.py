"""OpenTelemetry and structlog integration for the Hydra SDK.

Every HTTP request runs inside a span, every public manager operation
inside another one; log events are structured key/value records. Values
of credential-like keys never reach a log line or a span attribute.
"""

from __future__ import annotations

import functools
import inspect
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Generator, MutableMapping

    from .config import TelemetryConfig

P = ParamSpec("P")
T = TypeVar("T")

SDK_NAME = "hydra-sdk"
SDK_VERSION = "0.1.0"

#: Argument and log keys whose values are replaced by ``REDACTED``.
SENSITIVE_KEYS = frozenset(
    {"token", "access_token", "client_secret", "secret", "authorization", "password"}
)
REDACTED = "[redacted]"

_tracer: trace.Tracer | None = None
_logger: structlog.BoundLogger | None = None


def get_tracer() -> trace.Tracer:
    """Tracer used for request and operation spans."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SDK_NAME, SDK_VERSION)
    return _tracer


def get_logger() -> structlog.BoundLogger:
    """Logger used by every SDK component."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(SDK_NAME)
    return _logger


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking credential-like values."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def configure_telemetry(config: TelemetryConfig) -> None:
    """Route SDK logs through a JSON structlog pipeline and name the tracer.

    The SDK never calls this itself; applications opt in.

    Args:
        config: Telemetry configuration.
    """
    global _tracer, _logger

    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    level = logging.getLevelNamesMapping().get(config.log_level, logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_secrets,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _tracer = trace.get_tracer(config.service_name, SDK_VERSION)
    _logger = structlog.get_logger(config.service_name)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """Run the block inside a span named ``name``.

    A failing block marks the span as error; SDK errors also tag it with
    their error code. The exception is re-raised unchanged.
    """
    with get_tracer().start_as_current_span(
        name,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            code = getattr(e, "code", None)
            if isinstance(code, str):
                span.set_attribute("hydra.error.code", code)
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.record_exception(e)
            raise


def _scalar_arguments(
    signature: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    bound = signature.bind_partial(*args, **kwargs)
    attributes: dict[str, Any] = {}
    for param, value in bound.arguments.items():
        if param == "self" or not isinstance(value, (str, int, float, bool)):
            continue
        attributes[f"hydra.{param}"] = REDACTED if param in SENSITIVE_KEYS else value
    return attributes


def traced(
    name: str | None = None,
    *,
    record_args: bool = False,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Run each call of the decorated method inside its own span.

    Args:
        name: Span name, ``hydra.<resource>.<operation>`` by convention.
        record_args: Record scalar arguments as ``hydra.<parameter>``
            attributes (sensitive parameters are redacted).
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__qualname__
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attributes = _scalar_arguments(signature, args, kwargs) if record_args else None
            with trace_operation(span_name, attributes=attributes):
                return func(*args, **kwargs)

        return wrapper

    return decorator
