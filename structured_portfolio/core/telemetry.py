"""OpenTelemetry wiring for the portfolio service.

Portfolio operations emit ``portfolio.<operation>`` spans and increment the
``portfolio.operations`` counter against the global providers. Until
``setup_telemetry`` installs real providers those calls are no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LogRecordProcessor
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.semconv.resource import ResourceAttributes

from structured_portfolio.config import PortfolioSettings

logger = logging.getLogger(__name__)

_TELEMETRY_INITIALISED = False
_METRIC_EXPORT_INTERVAL_MS = 10000


@dataclass
class TelemetrySinks:
    """Where spans, metrics and log records end up."""

    span_processor: SpanProcessor
    metric_reader: MetricReader
    log_processor: LogRecordProcessor


def otlp_sinks(settings: PortfolioSettings) -> TelemetrySinks:
    """Batch everything to the OTLP gRPC collector named in ``settings``."""

    options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        options["endpoint"] = settings.telemetry_otlp_endpoint
    return TelemetrySinks(
        span_processor=BatchSpanProcessor(OTLPSpanExporter(**options)),
        metric_reader=PeriodicExportingMetricReader(
            OTLPMetricExporter(**options),
            export_interval_millis=_METRIC_EXPORT_INTERVAL_MS,
        ),
        log_processor=BatchLogRecordProcessor(OTLPLogExporter(**options)),
    )


def portfolio_resource(settings: PortfolioSettings) -> Resource:
    return Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
            ResourceAttributes.SERVICE_NAMESPACE: "structured-portfolio",
            "portfolio.id": settings.portfolio_id,
            "portfolio.asset": settings.underlying_asset,
        }
    )


def setup_telemetry(app: FastAPI, settings: PortfolioSettings, sinks: TelemetrySinks | None = None) -> bool:
    """Install global providers and instrument ``app``.

    Returns ``True`` when instrumentation is active. ``sinks`` defaults to
    the OTLP exporters; tests pass in-memory ones instead. Providers are
    process-global, so only the first enabled call takes effect.
    """

    global _TELEMETRY_INITIALISED  # noqa: PLW0603 - single initialisation guard

    if _TELEMETRY_INITIALISED:
        return True

    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return False

    sinks = sinks or otlp_sinks(settings)
    resource = portfolio_resource(settings)

    tracer_provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio)),
    )
    tracer_provider.add_span_processor(sinks.span_processor)
    trace.set_tracer_provider(tracer_provider)

    meter_provider = MeterProvider(resource=resource, metric_readers=[sinks.metric_reader])
    metrics.set_meter_provider(meter_provider)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(sinks.log_processor)
    set_logger_provider(logger_provider)
    LoggingInstrumentor().instrument(set_logging_format=False)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider, meter_provider=meter_provider)

    _TELEMETRY_INITIALISED = True
    logger.info("Telemetry initialised for portfolio %s", settings.portfolio_id)
    return True


__all__ = ["TelemetrySinks", "otlp_sinks", "portfolio_resource", "setup_telemetry"]
