"""Bounded perturbation of region-graph connection weights.

Each edge of a :class:`~plasticity_lab.graph.builder.FilteredGraph` is nudged
by the sum of its intervention and setting modifiers, scaled by the duration
factor and a small symmetric jitter, then clamped to ``[min_weight,
max_weight]``.  Only changes larger than the noise floor are reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional

import numpy as np

from ..config import DEFAULT_MODULATION_CONFIG, ModulationConfig
from ..graph.builder import FilteredGraph
from ..graph.models import ChangeType, WeightDelta, pair_key, split_pair_key
from ..telemetry import PIPELINE_METRICS, PipelineMetrics


LOGGER = logging.getLogger(__name__)

# Float subtraction can overshoot an exact noise-floor change by a few ulps.
NOISE_TOLERANCE = 1e-9


def canonical_modifiers(modifiers: Mapping[str, float]) -> Mapping[str, float]:
    """Return ``modifiers`` re-keyed by canonical pair keys."""

    canonical: Dict[str, float] = {}
    for raw_key, value in modifiers.items():
        key = pair_key(*split_pair_key(raw_key))
        if key in canonical:
            LOGGER.warning("Modifier key %r duplicates %s; keeping the later value", raw_key, key)
        canonical[key] = float(value)
    return MappingProxyType(canonical)


@dataclass(frozen=True)
class PerturbationProfile:
    """Modifier tables and duration scale for one simulated scenario."""

    intervention_modifiers: Mapping[str, float] = field(default_factory=dict)
    setting_modifiers: Mapping[str, float] = field(default_factory=dict)
    duration_scale: float = 1.0
    intervention: Optional[str] = None
    setting: Optional[str] = None
    duration: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "intervention_modifiers", canonical_modifiers(self.intervention_modifiers))
        object.__setattr__(self, "setting_modifiers", canonical_modifiers(self.setting_modifiers))
        scale = float(self.duration_scale)
        if scale < 0.0:
            raise ValueError(f"duration_scale must not be negative, got {scale}")
        object.__setattr__(self, "duration_scale", scale)

    @property
    def keys(self) -> FrozenSet[str]:
        return frozenset(self.intervention_modifiers) | frozenset(self.setting_modifiers)

    def raw_change(self, key: str) -> float:
        """Unjittered change for the edge identified by ``key``."""

        total = self.intervention_modifiers.get(key, 0.0) + self.setting_modifiers.get(key, 0.0)
        return total * self.duration_scale


class ConnectivityModulator:
    """Apply a :class:`PerturbationProfile` to a graph in place."""

    def __init__(
        self,
        min_weight: float = 0.0,
        max_weight: float = 1.0,
        jitter: float = 0.1,
        noise_floor: float = 0.01,
        *,
        rng: np.random.Generator | None = None,
        seed: Optional[int] = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        if min_weight > max_weight:
            raise ValueError(f"min_weight ({min_weight}) must not exceed max_weight ({max_weight})")
        if jitter < 0.0:
            raise ValueError("jitter must not be negative")
        self.min_weight = float(min_weight)
        self.max_weight = float(max_weight)
        self.jitter = float(jitter)
        self.noise_floor = float(noise_floor)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.metrics = metrics or PIPELINE_METRICS

    @classmethod
    def from_config(
        cls,
        config: ModulationConfig | None = None,
        *,
        rng: np.random.Generator | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> "ConnectivityModulator":
        config = config or DEFAULT_MODULATION_CONFIG
        return cls(
            min_weight=config.min_weight,
            max_weight=config.max_weight,
            jitter=config.jitter,
            noise_floor=config.noise_floor,
            rng=rng,
            seed=config.seed,
            metrics=metrics,
        )

    def _jitter_factor(self) -> float:
        if self.jitter == 0.0:
            return 1.0
        return 1.0 + float(self.rng.uniform(-self.jitter, self.jitter))

    def modulate(self, graph: FilteredGraph, profile: PerturbationProfile) -> List[WeightDelta]:
        """Update ``current_weight`` on every edge and return the significant deltas."""

        deltas: List[WeightDelta] = []
        matched: set[str] = set()
        for edge in graph.edges:
            raw = profile.raw_change(edge.key)
            if edge.key in profile.keys:
                matched.add(edge.key)
            if raw != 0.0:
                raw *= self._jitter_factor()
            before = edge.current_weight
            after = float(np.clip(before + raw, self.min_weight, self.max_weight))
            edge.current_weight = after
            change = after - before
            if abs(change) <= self.noise_floor + NOISE_TOLERANCE:
                continue
            deltas.append(
                WeightDelta(
                    endpoint_a=edge.endpoint_a,
                    endpoint_b=edge.endpoint_b,
                    before_weight=before,
                    after_weight=after,
                    change_type=ChangeType.INCREASED if change > 0 else ChangeType.DECREASED,
                )
            )

        unmatched = sorted(profile.keys - matched)
        if unmatched:
            LOGGER.debug("Modifier keys without a matching edge: %s", ", ".join(unmatched))
        for change_type in (ChangeType.INCREASED, ChangeType.DECREASED):
            self.metrics.record_deltas(
                sum(1 for delta in deltas if delta.change_type is change_type),
                change_type=change_type.value,
            )
        LOGGER.info("Modulated %d edge(s); %d significant change(s)", len(graph.edges), len(deltas))
        return deltas


__all__ = ["ConnectivityModulator", "PerturbationProfile", "canonical_modifiers"]
