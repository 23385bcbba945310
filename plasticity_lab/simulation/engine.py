"""High level simulation orchestration layer.

:class:`SimulationEngine` chains mention extraction, graph construction and
connectivity modulation for a single request and scores how well the
documents supported the resulting network.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import (
    DEFAULT_CATALOG_CONFIG,
    DEFAULT_EXTRACTION_CONFIG,
    DEFAULT_MODULATION_CONFIG,
    CatalogConfig,
    ExtractionConfig,
    ModulationConfig,
)
from ..graph.builder import FilteredGraph, GraphBuilder
from ..graph.catalog import ConnectivityCatalog, RegionCatalog, load_reference_catalogs
from ..graph.models import Document, MentionEvidence, RegionMentions, WeightDelta
from ..graph.text_mining import DocumentLike, ExtractionResult, MentionExtractor
from ..telemetry import TRACER
from .modulation import ConnectivityModulator, PerturbationProfile
from .profiles import DEFAULT_DURATION, DEFAULT_INTERVENTION, DEFAULT_SETTING, ModifierLibrary


LOGGER = logging.getLogger(__name__)

SUCCESS_CONFIDENCE = 0.5
SUCCESS_MIN_REGIONS = 3
TOP_REGION_COUNT = 5
TOP_CHANGE_COUNT = 3

MECHANISM_TERMS = ("connectivity", "neuroplasticity", "network", "communication", "integration", "synchrony", "coupling")
OUTCOME_TERMS = ("depression", "anxiety", "mood", "wellbeing", "cognition", "emotional", "therapeutic", "treatment")


class SimulationStatus(str, Enum):
    """Outcome of a simulation run."""

    COMPLETED = "COMPLETED"
    NO_EVIDENCE = "NO_EVIDENCE"


@dataclass(frozen=True)
class EngineRequest:
    """Input payload for the orchestration layer."""

    documents: Sequence[DocumentLike]
    intervention: str = DEFAULT_INTERVENTION
    setting: str = DEFAULT_SETTING
    duration: str = DEFAULT_DURATION


@dataclass(frozen=True)
class EngineResult:
    """Structured result returned by :class:`SimulationEngine`."""

    status: SimulationStatus
    profile: PerturbationProfile
    extraction: ExtractionResult
    graph: FilteredGraph
    baseline_weights: Mapping[str, float] = field(default_factory=dict)
    deltas: Tuple[WeightDelta, ...] = ()
    region_mentions: Tuple[RegionMentions, ...] = ()
    confidence: float = 0.0
    success: bool = False
    summary: str = ""

    @property
    def confirmed_codes(self) -> Tuple[str, ...]:
        return tuple(sorted(self.extraction.codes))

    @property
    def evidence(self) -> Tuple[MentionEvidence, ...]:
        return self.extraction.evidence

    @property
    def truncated(self) -> bool:
        return self.extraction.truncated


# ---------------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------------


def confidence_score(document_count: int, region_count: int, mention_count: int) -> float:
    """Return a ``[0, 1]`` score rewarding broad, well-cited evidence."""

    score = (
        min(0.4, 0.08 * document_count)
        + min(0.3, 0.05 * region_count)
        + min(0.3, 0.03 * mention_count)
    )
    return min(1.0, score)


def is_successful(confidence: float, region_count: int) -> bool:
    return confidence >= SUCCESS_CONFIDENCE and region_count >= SUCCESS_MIN_REGIONS


def summarise_mentions(
    evidence: Sequence[MentionEvidence],
    regions: RegionCatalog,
) -> Tuple[RegionMentions, ...]:
    """Group evidence by region, most cited first (ties by code)."""

    grouped: Dict[str, List[MentionEvidence]] = {}
    for item in evidence:
        grouped.setdefault(item.region_code, []).append(item)
    summaries: List[RegionMentions] = []
    for code, items in grouped.items():
        region = regions.get(code)
        if region is None:
            continue
        summaries.append(RegionMentions(region=region, mentions=tuple(items)))
    summaries.sort(key=lambda summary: (-summary.count, summary.region.code))
    return tuple(summaries)


def _dominant_term(texts: Sequence[str], terms: Sequence[str], default: str) -> str:
    counts: Counter[str] = Counter()
    for text in texts:
        for term in terms:
            if term in text:
                counts[term] += 1
    if not counts:
        return default
    return max(terms, key=lambda term: counts[term])


def build_summary(
    documents: Sequence[Document],
    profile: PerturbationProfile,
    mentions: Sequence[RegionMentions],
    deltas: Sequence[WeightDelta],
) -> str:
    """Short prose summary of the research themes, regions and largest changes."""

    if not mentions:
        return (
            f"None of the {len(documents)} document(s) discussed a catalogued brain region; "
            "no network was simulated."
        )
    texts = [document.text.lower() for document in documents[:TOP_REGION_COUNT]]
    mechanism = _dominant_term(texts, MECHANISM_TERMS, "connectivity")
    outcome = _dominant_term(texts, OUTCOME_TERMS, "therapeutic")
    parts = [
        f"Analysis of {len(documents)} document(s) suggests that {profile.intervention or 'the intervention'} "
        f"in a {profile.setting or 'neutral'} setting modulates brain {mechanism} "
        f"with implications for {outcome} outcomes.",
        f"The documents discuss {len(mentions)} brain region(s): "
        + ", ".join(summary.region.code for summary in mentions[:TOP_REGION_COUNT])
        + ".",
    ]
    strongest = sorted(deltas, key=lambda delta: (-abs(delta.magnitude), delta.key))[:TOP_CHANGE_COUNT]
    if strongest:
        parts.append(
            "Largest changes: "
            + ", ".join(
                f"{delta.key} {delta.before_weight:.2f} -> {delta.after_weight:.2f}" for delta in strongest
            )
            + "."
        )
    else:
        parts.append("No connection changed beyond the noise floor.")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class SimulationEngine:
    """Evidence-filtered network simulation for a batch of documents."""

    def __init__(
        self,
        region_catalog: RegionCatalog | None = None,
        connectivity_catalog: ConnectivityCatalog | None = None,
        modifier_library: ModifierLibrary | None = None,
        extractor: MentionExtractor | None = None,
        modulator: ConnectivityModulator | None = None,
        builder: GraphBuilder | None = None,
    ) -> None:
        if region_catalog is None or connectivity_catalog is None:
            default_regions, default_connections = load_reference_catalogs(
                DEFAULT_CATALOG_CONFIG.regions_path,
                DEFAULT_CATALOG_CONFIG.connections_path,
            )
            if region_catalog is None:
                region_catalog = default_regions
            if connectivity_catalog is None:
                connectivity_catalog = default_connections
        self.region_catalog = region_catalog
        self.connectivity_catalog = connectivity_catalog
        self.modifier_library = modifier_library or ModifierLibrary.load_default(DEFAULT_CATALOG_CONFIG.modifiers_path)
        self.extractor = extractor or MentionExtractor()
        self.modulator = modulator or ConnectivityModulator.from_config()
        self.builder = builder or GraphBuilder()

    @classmethod
    def from_config(
        cls,
        catalog_config: CatalogConfig | None = None,
        extraction_config: ExtractionConfig | None = None,
        modulation_config: ModulationConfig | None = None,
    ) -> "SimulationEngine":
        catalog_config = catalog_config or DEFAULT_CATALOG_CONFIG
        regions, connections = load_reference_catalogs(
            catalog_config.regions_path,
            catalog_config.connections_path,
        )
        return cls(
            region_catalog=regions,
            connectivity_catalog=connections,
            modifier_library=ModifierLibrary.load_default(catalog_config.modifiers_path),
            extractor=MentionExtractor(config=extraction_config or DEFAULT_EXTRACTION_CONFIG),
            modulator=ConnectivityModulator.from_config(modulation_config or DEFAULT_MODULATION_CONFIG),
        )

    def run(
        self,
        request: EngineRequest,
        *,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> EngineResult:
        profile = self.modifier_library.build_profile(request.intervention, request.setting, request.duration)
        with TRACER.start_as_current_span("plasticity.simulation.run") as span:
            span.set_attribute("plasticity.intervention", profile.intervention or "")
            span.set_attribute("plasticity.setting", profile.setting or "")
            span.set_attribute("plasticity.duration", profile.duration or "")
            span.set_attribute("plasticity.documents", len(request.documents))

            extraction = self.extractor.extract(
                request.documents,
                self.region_catalog.alias_index(),
                should_stop=should_stop,
            )
            documents = [
                item if isinstance(item, Document) else Document.from_record(item, index=index)
                for index, item in enumerate(request.documents[: extraction.documents_scanned])
            ]
            graph = self.builder.build(extraction.codes, self.region_catalog, self.connectivity_catalog)
            mentions = summarise_mentions(extraction.evidence, self.region_catalog)
            confidence = confidence_score(len(documents), len(graph.vertices), len(extraction.evidence))
            span.set_attribute("plasticity.regions", len(graph.vertices))

            if graph.is_empty:
                LOGGER.info("No region evidence in %d document(s)", len(documents))
                span.set_attribute("plasticity.status", SimulationStatus.NO_EVIDENCE.value)
                return EngineResult(
                    status=SimulationStatus.NO_EVIDENCE,
                    profile=profile,
                    extraction=extraction,
                    graph=graph,
                    confidence=confidence,
                    success=False,
                    summary=build_summary(documents, profile, (), ()),
                )

            baseline = graph.weights()
            deltas = self.modulator.modulate(graph, profile)
            span.set_attribute("plasticity.deltas", len(deltas))
            span.set_attribute("plasticity.status", SimulationStatus.COMPLETED.value)
            result = EngineResult(
                status=SimulationStatus.COMPLETED,
                profile=profile,
                extraction=extraction,
                graph=graph,
                baseline_weights=baseline,
                deltas=tuple(deltas),
                region_mentions=mentions,
                confidence=confidence,
                success=is_successful(confidence, len(graph.vertices)),
                summary=build_summary(documents, profile, mentions, deltas),
            )
        LOGGER.info(
            "Simulation finished: %d region(s), %d change(s), confidence %.2f",
            len(graph.vertices),
            len(deltas),
            confidence,
        )
        return result


__all__ = [
    "EngineRequest",
    "EngineResult",
    "SimulationEngine",
    "SimulationStatus",
    "build_summary",
    "confidence_score",
    "is_successful",
    "summarise_mentions",
]
