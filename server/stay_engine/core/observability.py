"""Observability setup for OpenTelemetry, Prometheus metrics, and structured logging."""

import logging

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from .. import __version__
from .config import settings

SERVICE_NAME = "stay-booking-engine"

# Prometheus metrics
REGISTRY = CollectorRegistry()

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

QUOTES_CREATED = Counter(
    'estimate_quotes_created_total',
    'Estimates created by quote requests',
    registry=REGISTRY
)

QUOTES_COLLAPSED = Counter(
    'estimate_quotes_collapsed_total',
    'Quote requests folded into an existing unpaid estimate',
    ['match'],
    registry=REGISTRY
)

PACKAGE_RESOLUTIONS = Counter(
    'package_resolutions_total',
    'Package references resolved, by the rule that matched',
    ['matched_by'],
    registry=REGISTRY
)

AVAILABILITY_CONFLICTS = Counter(
    'availability_conflicts_total',
    'Overlapping date requests detected',
    ['stage'],
    registry=REGISTRY
)

BOOKINGS_CONFIRMED = Counter(
    'bookings_confirmed_total',
    'Bookings materialized from paid estimates',
    registry=REGISTRY
)

BOOKINGS_CANCELLED = Counter(
    'bookings_cancelled_total',
    'Bookings cancelled',
    registry=REGISTRY
)

CATALOG_FETCH_FAILURES = Counter(
    'external_catalog_fetch_failures_total',
    'External catalog fetches that failed and fell back to local packages',
    registry=REGISTRY
)

CATALOG_CACHE_HITS = Counter(
    'external_catalog_cache_hits_total',
    'External catalog requests served from the short-lived cache',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": __version__,
        "environment": settings.environment,
    })


def setup_tracing(otlp_endpoint: str | None = None):
    """Setup OpenTelemetry tracing, exporting over OTLP when an endpoint is given."""
    provider = TracerProvider(resource=_resource())
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics(otlp_endpoint: str | None = None):
    """Setup OpenTelemetry metrics, exporting over OTLP when an endpoint is given."""
    if otlp_endpoint:
        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=otlp_endpoint),
            export_interval_millis=60000,
        )
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))
    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the async engine's sync core with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for engine business metrics."""

    @staticmethod
    def record_quote_created():
        QUOTES_CREATED.inc()

    @staticmethod
    def record_quote_collapsed(match: str):
        """Record a quote folded into an existing estimate ("exact" or "latest")."""
        QUOTES_COLLAPSED.labels(match=match).inc()

    @staticmethod
    def record_resolution(matched_by: str):
        PACKAGE_RESOLUTIONS.labels(matched_by=matched_by).inc()

    @staticmethod
    def record_availability_conflict(stage: str):
        """Record an overlap found at "quote", "payment" or "reschedule" time."""
        AVAILABILITY_CONFLICTS.labels(stage=stage).inc()

    @staticmethod
    def record_booking_confirmed():
        BOOKINGS_CONFIRMED.inc()

    @staticmethod
    def record_booking_cancelled():
        BOOKINGS_CANCELLED.inc()

    @staticmethod
    def record_catalog_failure():
        CATALOG_FETCH_FAILURES.inc()

    @staticmethod
    def record_catalog_cache_hit():
        CATALOG_CACHE_HITS.inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
