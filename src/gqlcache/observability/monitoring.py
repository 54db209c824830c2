"""
gqlcache - Observability Monitoring

Prometheus metrics, request-id correlation and structured JSON logging.

The adapter is also the observability channel for the operation cache:
cache-store failures arrive through report_cache_error() as
(operation, error) pairs and are logged and counted without ever touching
the caller's result.
"""

import contextvars
import json
import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# Request ID context variable, set per HTTP request by the server middleware
_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

LOGGER_NAME = "gqlcache"


class ObservabilityAdapter:
    """
    Observability adapter.

    Each adapter owns its CollectorRegistry, so a fresh adapter starts from
    zero and adapters never collide on metric names.
    """

    def __init__(
        self,
        enable_metrics: bool = True,
        json_logs: bool = False,
        log_level: str = "INFO",
        registry: CollectorRegistry | None = None,
    ):
        """
        Initialize observability adapter.

        Args:
            enable_metrics: Register and record Prometheus metrics
            json_logs: Install the JSON formatter on the package logger
            log_level: Level for the package logger
            registry: Registry to publish into (a private one by default)
        """
        self.enable_metrics = enable_metrics
        self.registry = registry or CollectorRegistry()
        self.logger = logging.getLogger(LOGGER_NAME)
        if json_logs:
            self._setup_json_logging(log_level)

        self._metrics: dict[str, Any] = {}
        if enable_metrics:
            self._setup_metrics()

    def _setup_json_logging(self, log_level: str) -> None:
        """Replace package log handlers with a single JSON stream handler."""
        self.logger.handlers.clear()
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        self.logger.addHandler(handler)
        self.logger.setLevel(log_level)
        self.logger.propagate = False

    def _setup_metrics(self) -> None:
        """Register the operation-cache and span metrics."""
        for outcome in ("hits", "misses", "bypass", "invalidations"):
            name = f"gqlcache_cache_{outcome}_total"
            self._metrics[name] = Counter(
                name,
                f"Operation cache {outcome}",
                ["operation"],
                registry=self.registry,
            )

        self._metrics["gqlcache_cache_errors_total"] = Counter(
            "gqlcache_cache_errors_total",
            "Cache-store failures absorbed by the operation cache",
            ["operation", "action"],
            registry=self.registry,
        )

        self._metrics["gqlcache_span_duration_seconds"] = Histogram(
            "gqlcache_span_duration_seconds",
            "Duration of traced spans in seconds",
            ["span_name"],
            registry=self.registry,
        )

    def increment_counter(self, metric_name: str, **labels: str) -> None:
        """Increment a registered counter. No-op when metrics are disabled."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels: str) -> None:
        """Observe a registered histogram. No-op when metrics are disabled."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)

    def get_sample(self, sample_name: str, **labels: str) -> float:
        """
        Current value of one exposition sample, 0.0 if never recorded.

        Counters expose ``<name>`` directly; histograms expose
        ``<name>_count`` and ``<name>_sum``.
        """
        value = self.registry.get_sample_value(sample_name, labels)
        return value if value is not None else 0.0

    def render_metrics(self) -> bytes:
        """Prometheus text exposition of this adapter's registry."""
        return generate_latest(self.registry)

    def report_cache_error(self, operation: str, error: BaseException, action: str = "unknown") -> None:
        """
        Receive a cache-store failure.

        Args:
            operation: GraphQL operation name the cache call was made for
            error: The store error
            action: Cache step that failed (lookup, populate, invalidate)
        """
        self.increment_counter("gqlcache_cache_errors_total", operation=operation, action=action)
        self.logger.warning(
            f"Cache {action} failed for {operation}: {error}",
            extra={
                "operation": operation,
                "cache_action": action,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )

    @contextmanager
    def trace(self, span_name: str) -> Generator[None, None, None]:
        """
        Context manager timing a span into gqlcache_span_duration_seconds.

        Example:
            with observability.trace("gateway.handle"):
                response = await gateway.handle(body, auth)
        """
        start_time = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.logger.error(f"Span error: {span_name}", extra={"span_name": span_name, "error": str(e)})
            raise
        finally:
            self.observe_histogram(
                "gqlcache_span_duration_seconds", time.perf_counter() - start_time, span_name=span_name
            )

    def get_request_id(self) -> str | None:
        return _request_id_ctx.get()

    def set_request_id(self, request_id: str) -> None:
        _request_id_ctx.set(request_id)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    _RESERVED = frozenset(
        (
            "args",
            "msg",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "name",
            "message",
        )
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = _request_id_ctx.get()
        if request_id:
            log_data["request_id"] = request_id

        # Extra fields passed through logger.*(extra=...)
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in self._RESERVED:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


# Global observability adapter instance (singleton)
_observability_adapter: ObservabilityAdapter | None = None


def get_observability() -> ObservabilityAdapter:
    """
    Get the global observability adapter instance.

    Returns:
        Global ObservabilityAdapter instance
    """
    global _observability_adapter

    if _observability_adapter is None:
        from ..config import get_config

        config = get_config()
        _observability_adapter = ObservabilityAdapter(
            enable_metrics=config.observability.enable_metrics,
            json_logs=config.observability.json_logs,
            log_level=str(config.log_level),
        )

    return _observability_adapter


def initialize_observability(
    enable_metrics: bool = True,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> ObservabilityAdapter:
    """
    Initialize the global observability adapter.

    Returns:
        Initialized ObservabilityAdapter instance
    """
    global _observability_adapter

    _observability_adapter = ObservabilityAdapter(
        enable_metrics=enable_metrics,
        json_logs=json_logs,
        log_level=log_level,
    )

    return _observability_adapter
