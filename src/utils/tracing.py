# src/utils/tracing.py

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
import functools
import logging
import sys
import time
from typing import Optional

from .logging import ColoredFormatter

_INSTRUMENTED = False

logger = logging.getLogger(__name__)


class TracingFormatter(ColoredFormatter):
    """Extends ColoredFormatter to include OpenTelemetry trace and span IDs."""

    DARKER_GREEN = '\033[2;32m'
    BLUE = '\033[34m'

    def __init__(self, *args, service_name: str = "unknown", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        span_context = trace.get_current_span().get_span_context()

        if span_context.is_valid:
            trace_id = format(span_context.trace_id, '032x')[:8]
            span_id = format(span_context.span_id, '016x')[:8]
            record.trace_id = f"[{trace_id}:{span_id}]"
        else:
            record.trace_id = ""

        record.service_name = f"{self.BLUE}{self.service_name}{self.RESET}"
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"

        # Skip ColoredFormatter.format, the level name is already colored
        return logging.Formatter.format(self, record)

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        s = time.strftime(datefmt, ct) if datefmt else time.strftime(self.default_time_format, ct)
        s = self.default_msec_format % (s, record.msecs)
        return f"{self.DARKER_GREEN}[{s}]{self.RESET}"


def setup_tracing(service_name: str, enable_console_export: bool = False):
    """
    Initialize OpenTelemetry tracing once per process.

    Must run before the FastAPI app is constructed so the instrumentor can
    patch the application class.
    """
    global _INSTRUMENTED

    current_provider = trace.get_tracer_provider()

    if hasattr(current_provider, 'get_span_processor') or _INSTRUMENTED:
        return

    resource = Resource(attributes={"service.name": service_name})
    provider = TracerProvider(resource=resource)

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    try:
        trace.set_tracer_provider(provider)
    except ValueError:
        pass

    if not _INSTRUMENTED:
        try:
            FastAPIInstrumentor().instrument()
            _INSTRUMENTED = True
            logger.info(f"✅ OTEL: Instrumentation complete for {service_name}")
        except Exception as e:
            if "already instrumented" not in str(e).lower():
                logger.warning(f"OTEL Instrumentation warning: {e}")


def setup_logger_with_tracing(name: str, level: int = logging.INFO, service_name: str = "unknown") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = TracingFormatter(
        fmt='%(asctime)s [%(service_name)s] %(levelname)s:    %(trace_id)s %(filename)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        service_name=service_name
    )

    formatter.default_time_format = '%Y-%m-%d %H:%M:%S'
    formatter.default_msec_format = '%s.%03d'

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def traced(span_name: Optional[str] = None):
    """Wrap an async callable in an OpenTelemetry span named after it."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            tracer = trace.get_tracer(func.__module__)
            name = span_name or func.__qualname__

            with tracer.start_as_current_span(name):
                return await func(*args, **kwargs)

        return wrapper
    return decorator
