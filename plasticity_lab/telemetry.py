"""OpenTelemetry bootstrap utilities and pipeline metrics."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

from opentelemetry import metrics, trace

from .config import TelemetryConfig

LOGGER = logging.getLogger(__name__)

TRACER = trace.get_tracer("plasticity_lab")


class TelemetryManager:
    """Install OTLP trace and metric providers for the process.

    Nothing is installed when telemetry is disabled; the API-level tracer and
    meter then stay no-ops, so instrumented code never needs to check.
    """

    def __init__(self, config: TelemetryConfig) -> None:
        self.config = config
        self._providers: List[Any] = []

    @property
    def enabled(self) -> bool:
        return bool(self._providers)

    def configure(self) -> None:
        if not self.config.enabled or not (self.config.capture_traces or self.config.capture_metrics):
            LOGGER.debug("Telemetry disabled by configuration")
            return
        try:
            from opentelemetry.sdk.resources import Resource
        except ImportError:
            LOGGER.warning("OpenTelemetry SDK not available; telemetry disabled")
            return

        resource = Resource.create(
            {
                "service.name": self.config.service_name,
                "deployment.environment": self.config.environment,
            }
        )
        if self.config.capture_traces:
            self._install(self._tracer_provider, resource, "tracing")
        if self.config.capture_metrics:
            self._install(self._meter_provider, resource, "metrics")

    def _install(self, factory: Callable[[Any], Any], resource: Any, label: str) -> None:
        try:
            provider = factory(resource)
        except Exception as exc:  # pragma: no cover - exporter wiring
            LOGGER.warning("Failed to initialise OTLP %s exporter: %s", label, exc)
            return
        self._providers.append(provider)
        LOGGER.info("OpenTelemetry %s configured (endpoint=%s)", label, self.config.exporter_endpoint)

    def _tracer_provider(self, resource: Any) -> Any:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

        provider = TracerProvider(
            resource=resource,
            sampler=ParentBased(TraceIdRatioBased(self.config.sampling_ratio)),
        )
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=self.config.exporter_endpoint)))
        trace.set_tracer_provider(provider)
        return provider

    def _meter_provider(self, resource: Any) -> Any:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

        reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=self.config.exporter_endpoint))
        provider = MeterProvider(resource=resource, metric_readers=[reader])
        metrics.set_meter_provider(provider)
        return provider

    def shutdown(self) -> None:
        while self._providers:
            provider = self._providers.pop()
            try:
                provider.shutdown()
            except Exception:  # pragma: no cover - best effort cleanup
                LOGGER.debug("Telemetry provider shutdown failed", exc_info=True)


def configure_telemetry(config: TelemetryConfig) -> TelemetryManager:
    manager = TelemetryManager(config=config)
    manager.configure()
    return manager


class PipelineMetrics:
    """Counters emitted by the extraction, graph and modulation stages.

    Instruments are created from the global meter provider, which is a no-op
    until :class:`TelemetryManager` installs an SDK provider.
    """

    def __init__(self, meter: metrics.Meter | None = None) -> None:
        meter = meter or metrics.get_meter("plasticity_lab")
        self._accepted = meter.create_counter(
            "plasticity.mentions.accepted",
            unit="1",
            description="Alias matches accepted as region mentions",
        )
        self._rejected = meter.create_counter(
            "plasticity.mentions.rejected",
            unit="1",
            description="Alias matches rejected by a context rule",
        )
        self._unknown_regions = meter.create_counter(
            "plasticity.graph.unknown_regions",
            unit="1",
            description="Confirmed region codes missing from the catalog",
        )
        self._deltas = meter.create_counter(
            "plasticity.modulation.deltas",
            unit="1",
            description="Significant weight changes emitted by the modulator",
        )

    def record_accepted(self, region_code: str) -> None:
        self._accepted.add(1, attributes={"region": region_code})

    def record_rejected(self, rule: str) -> None:
        self._rejected.add(1, attributes={"rule": rule})

    def record_unknown_region(self, region_code: str) -> None:
        self._unknown_regions.add(1, attributes={"region": region_code})

    def record_deltas(self, count: int, *, change_type: str) -> None:
        if count:
            self._deltas.add(count, attributes={"change_type": change_type})


PIPELINE_METRICS = PipelineMetrics()


__all__ = [
    "PIPELINE_METRICS",
    "PipelineMetrics",
    "TRACER",
    "TelemetryManager",
    "configure_telemetry",
]
