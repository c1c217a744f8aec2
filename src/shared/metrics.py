from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from .config import settings


def setup_metrics(app_name: str):
    """Configure OpenTelemetry metrics."""

    resource = Resource.create({"service.name": app_name})

    metric_readers = []
    if settings.OTEL_CONSOLE_EXPORT:
        metric_readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter()))

    provider = MeterProvider(resource=resource, metric_readers=metric_readers)

    metrics.set_meter_provider(provider)
