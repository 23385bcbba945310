"""Configuration helpers for the simulation services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import os


def _parse_int(raw: str | None, default: int, *, minimum: int = 0) -> int:
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= minimum else default


def _parse_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _parse_ratio(raw: str | None, default: float) -> float:
    return min(max(_parse_float(raw, default), 0.0), 1.0)


def _parse_flag(raw: str | None, default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


@dataclass(slots=True)
class ExtractionConfig:
    """Window sizes used by the mention extractor and context validator."""

    context_window: int = 100
    gene_window: int = 15
    excerpt_window: int = 150
    max_sentence_length: int = 300

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "EXTRACTION_",
    ) -> "ExtractionConfig":
        env = env or os.environ
        defaults = cls()
        return cls(
            context_window=_parse_int(env.get(f"{prefix}CONTEXT_WINDOW"), defaults.context_window),
            gene_window=_parse_int(env.get(f"{prefix}GENE_WINDOW"), defaults.gene_window),
            excerpt_window=_parse_int(env.get(f"{prefix}EXCERPT_WINDOW"), defaults.excerpt_window, minimum=1),
            max_sentence_length=_parse_int(
                env.get(f"{prefix}MAX_SENTENCE_LENGTH"), defaults.max_sentence_length, minimum=1
            ),
        )


@dataclass(slots=True)
class ModulationConfig:
    """Bounds and noise settings for connectivity modulation.

    ``min_weight``/``max_weight`` may be narrower than ``[0, 1]`` to keep
    modulated edges away from degenerate extremes.  A ``seed`` makes jitter
    reproducible; ``jitter=0`` disables it entirely.
    """

    min_weight: float = 0.0
    max_weight: float = 1.0
    jitter: float = 0.1
    noise_floor: float = 0.01
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.min_weight = min(max(self.min_weight, 0.0), 1.0)
        self.max_weight = min(max(self.max_weight, 0.0), 1.0)
        if self.min_weight > self.max_weight:
            self.min_weight, self.max_weight = self.max_weight, self.min_weight
        self.jitter = min(max(self.jitter, 0.0), 1.0)
        self.noise_floor = max(self.noise_floor, 0.0)

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "MODULATION_",
    ) -> "ModulationConfig":
        env = env or os.environ
        defaults = cls()
        seed_raw = env.get(f"{prefix}SEED")
        seed: Optional[int] = None
        if seed_raw is not None and seed_raw.strip():
            seed = _parse_int(seed_raw, -1)
            if seed < 0:
                seed = None
        return cls(
            min_weight=_parse_ratio(env.get(f"{prefix}MIN_WEIGHT"), defaults.min_weight),
            max_weight=_parse_ratio(env.get(f"{prefix}MAX_WEIGHT"), defaults.max_weight),
            jitter=_parse_ratio(env.get(f"{prefix}JITTER"), defaults.jitter),
            noise_floor=max(_parse_float(env.get(f"{prefix}NOISE_FLOOR"), defaults.noise_floor), 0.0),
            seed=seed,
        )


@dataclass(slots=True)
class CatalogConfig:
    """Optional file overrides for the bundled reference data."""

    regions_path: Optional[str] = None
    connections_path: Optional[str] = None
    modifiers_path: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "CATALOG_",
    ) -> "CatalogConfig":
        env = env or os.environ

        def _path(key: str) -> Optional[str]:
            value = (env.get(f"{prefix}{key}") or "").strip()
            return value or None

        return cls(
            regions_path=_path("REGIONS_PATH"),
            connections_path=_path("CONNECTIONS_PATH"),
            modifiers_path=_path("MODIFIERS_PATH"),
        )


@dataclass(slots=True)
class TelemetryConfig:
    """OpenTelemetry exporter settings.

    Telemetry stays off unless ``OTEL_ENABLED`` is truthy or an OTLP endpoint
    is configured.
    """

    enabled: bool = False
    service_name: str = "plasticity-lab"
    environment: str = "development"
    exporter_endpoint: Optional[str] = None
    sampling_ratio: float = 0.1
    capture_metrics: bool = True
    capture_traces: bool = True

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "OTEL_",
    ) -> "TelemetryConfig":
        env = env or os.environ
        defaults = cls()
        endpoint = env.get(f"{prefix}EXPORTER_OTLP_ENDPOINT") or None
        return cls(
            enabled=_parse_flag(env.get(f"{prefix}ENABLED"), defaults.enabled) or endpoint is not None,
            service_name=env.get(f"{prefix}SERVICE_NAME") or defaults.service_name,
            environment=env.get(f"{prefix}ENVIRONMENT") or env.get("DEPLOYMENT_ENV") or defaults.environment,
            exporter_endpoint=endpoint,
            sampling_ratio=_parse_ratio(env.get(f"{prefix}TRACES_SAMPLER_ARG"), defaults.sampling_ratio),
            capture_metrics=_parse_flag(env.get(f"{prefix}CAPTURE_METRICS"), defaults.capture_metrics),
            capture_traces=_parse_flag(env.get(f"{prefix}CAPTURE_TRACES"), defaults.capture_traces),
        )


DEFAULT_EXTRACTION_CONFIG = ExtractionConfig.from_env()
DEFAULT_MODULATION_CONFIG = ModulationConfig.from_env()
DEFAULT_CATALOG_CONFIG = CatalogConfig.from_env()
DEFAULT_TELEMETRY_CONFIG = TelemetryConfig.from_env()
