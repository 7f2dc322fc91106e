# app/core/tracing.py - Trace-aware structured logging with OpenTelemetry spans

import os
import socket
import traceback
import sys
import json
import random
from datetime import datetime, timezone
from typing import Optional, Dict
from contextvars import ContextVar

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

from app.core.config import settings

SERVICE = "tasknest-api"
SERVICE_VERSION = "1.0.0"

# Context variables for manual trace propagation
_trace_id_context: ContextVar[str] = ContextVar('trace_id', default='no-trace')
_span_id_context: ContextVar[str] = ContextVar('span_id', default='no-span')

_tracer = None
_tracer_provider = None


def generate_trace_id() -> str:
    """Generate a 128-bit trace ID as 32-character hex string"""
    return f"{random.getrandbits(128):032x}"


def generate_span_id() -> str:
    """Generate a 64-bit span ID as 16-character hex string"""
    return f"{random.getrandbits(64):016x}"


class TracingMiddleware:
    """ASGI middleware that guarantees every request runs with a trace context
    and echoes the trace id back in the X-Trace-ID response header."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        trace_id, span_id = _ids_from_current_span()
        if trace_id is None:
            trace_id, span_id = generate_trace_id(), generate_span_id()

        _trace_id_context.set(trace_id)
        _span_id_context.set(span_id)

        async def send_with_trace_header(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-trace-id", trace_id.encode()))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_trace_header)


def _ids_from_current_span():
    if not settings.ENABLE_OTEL_EXPORTER:
        return None, None
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None, None
    return f"{span_context.trace_id:032x}", f"{span_context.span_id:016x}"


def setup_tracing(app, db_engine=None) -> bool:
    """Install the tracing middleware, logging sinks and (optionally) OpenTelemetry"""
    global _tracer, _tracer_provider

    app.add_middleware(TracingMiddleware)
    setup_structured_logging(enable_json=settings.should_use_json_logging)

    setup_logger = logger.bind(trace_id=generate_trace_id(), span_id=generate_span_id())

    if not settings.ENABLE_OTEL_EXPORTER:
        setup_logger.info("OpenTelemetry disabled in config - using local trace IDs only")
        return True

    setup_logger.info("Setting up OpenTelemetry tracing...")

    resource = Resource.create({
        SERVICE_NAME: SERVICE,
        "service.version": SERVICE_VERSION,
        "service.environment": settings.ENVIRONMENT,
    })
    _tracer_provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
    trace.set_tracer_provider(_tracer_provider)
    _tracer = trace.get_tracer(__name__)

    if settings.ENABLE_OTEL_CONSOLE_EXPORT:
        _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        setup_logger.info("Console span exporter enabled")

    if settings.ENABLE_EXTERNAL_TRACING:
        otlp_exporter = OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True)
        _tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        setup_logger.info(f"OTLP exporter enabled: {settings.OTLP_ENDPOINT}")

    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=_tracer_provider,
        excluded_urls="/health,/metrics,/docs,/redoc,/openapi.json"
    )
    setup_logger.info("FastAPI instrumented")

    if db_engine is not None:
        instrument_database(db_engine)

    setup_logger.info("OpenTelemetry tracing setup complete")
    return True


def instrument_database(db_engine) -> bool:
    """Add SQLAlchemy instrumentation to the (sync side of the) async engine"""
    if _tracer_provider is None:
        return False

    SQLAlchemyInstrumentor().instrument(
        engine=getattr(db_engine, 'sync_engine', db_engine),
        tracer_provider=_tracer_provider,
        enable_commenter=True
    )
    logger.bind(**get_trace_context()).info("SQLAlchemy instrumented")
    return True


def format_stack_trace(exception_info) -> Optional[str]:
    """Format a loguru exception record for JSON output"""
    if not exception_info or not exception_info.traceback:
        return None
    return ''.join(traceback.format_exception(
        exception_info.type,
        exception_info.value,
        exception_info.traceback
    ))


def setup_structured_logging(enable_json: bool = None):
    """Replace loguru's default sink with a JSON or a human-readable one"""
    if enable_json is None:
        enable_json = settings.should_use_json_logging

    logger.remove()

    hostname = socket.gethostname()
    pid = os.getpid()
    environment = settings.ENVIRONMENT

    if enable_json:
        def json_sink(message):
            record = message.record
            extra = record["extra"]

            trace_id = extra.get("trace_id") or _trace_id_context.get()
            span_id = extra.get("span_id") or _span_id_context.get()

            log_entry = {
                "@timestamp": datetime.now(timezone.utc).isoformat(),
                "level": record["level"].name,
                "message": record["message"],
                "service": {"name": SERVICE, "version": SERVICE_VERSION, "environment": environment},
                "host": {"hostname": hostname},
                "process": {"pid": pid},
                "log": {
                    "logger": record["name"],
                    "function": record["function"],
                    "line": record["line"],
                },
                "trace": {"id": trace_id, "span_id": span_id},
            }

            custom = {k: v for k, v in extra.items() if k not in ("trace_id", "span_id")}
            if custom:
                log_entry["custom"] = custom

            if record["exception"]:
                log_entry["error"] = {
                    "type": record["exception"].type.__name__ if record["exception"].type else "UnknownError",
                    "message": str(record["exception"].value),
                    "stack_trace": format_stack_trace(record["exception"]),
                }

            sys.stderr.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            sys.stderr.flush()

        logger.add(json_sink, level=settings.LOG_LEVEL, enqueue=True, catch=True)
    else:
        def format_with_trace(record):
            trace_id = _trace_id_context.get()
            trace_info = f" [trace:{trace_id[:8]}]" if trace_id != "no-trace" else ""
            return (
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
                "<cyan>{name}:{function}:{line}</cyan>" + trace_info + " - <level>{message}</level>\n{exception}"
            )

        logger.add(
            sys.stderr,
            format=format_with_trace,
            level=settings.LOG_LEVEL,
            colorize=True,
            enqueue=True,
            catch=True
        )


def get_current_trace_span_ids() -> tuple[str, str]:
    """Current trace_id and span_id, generating local ones outside a request"""
    trace_id = _trace_id_context.get()
    span_id = _span_id_context.get()
    if trace_id != "no-trace" and span_id != "no-span":
        return trace_id, span_id

    otel_ids = _ids_from_current_span()
    if otel_ids[0] is not None:
        trace_id, span_id = otel_ids
    else:
        trace_id, span_id = generate_trace_id(), generate_span_id()

    _trace_id_context.set(trace_id)
    _span_id_context.set(span_id)
    return trace_id, span_id


def get_current_trace_id() -> str:
    trace_id, _ = get_current_trace_span_ids()
    return trace_id


def get_current_span_id() -> str:
    _, span_id = get_current_trace_span_ids()
    return span_id


def get_trace_context() -> Dict[str, str]:
    trace_id, span_id = get_current_trace_span_ids()
    return {"trace_id": trace_id, "span_id": span_id}


def log_with_trace(level: str, message: str, **kwargs):
    """Log through loguru with the current trace context bound"""
    log_func = getattr(logger.bind(**get_trace_context(), **kwargs), level.lower())
    log_func(message)


# Convenience functions
def info(message: str, **kwargs):
    log_with_trace("info", message, **kwargs)


def debug(message: str, **kwargs):
    log_with_trace("debug", message, **kwargs)


def warning(message: str, **kwargs):
    log_with_trace("warning", message, **kwargs)


def error(message: str, **kwargs):
    log_with_trace("error", message, **kwargs)


__all__ = [
    'setup_tracing', 'get_current_trace_span_ids', 'get_current_trace_id', 'get_current_span_id',
    'get_trace_context', 'log_with_trace', 'info', 'debug', 'warning', 'error'
]
