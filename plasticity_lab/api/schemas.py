"""Pydantic schemas for simulation requests and results."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from ..graph.builder import FilteredGraph, GraphEdge
from ..graph.models import (
    ChangeType,
    ConnectionKind,
    ContextCategory,
    Document,
    MentionEvidence,
    Region,
    RegionMentions,
    WeightDelta,
)
from ..simulation.engine import EngineRequest, EngineResult, SimulationStatus
from ..simulation.profiles import DEFAULT_DURATION, DEFAULT_INTERVENTION, DEFAULT_SETTING


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class DocumentPayload(BaseModel):
    """Research excerpt submitted for mention extraction.

    ``body``, ``abstract``/``abstract_text`` and ``full_text`` are joined into
    a single body, in that order, the same way :meth:`Document.from_record`
    reads literature records.
    """

    id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("id", "pmid"),
        description="Stable identifier such as a PMID",
    )
    title: str | None = Field(default="", description="Document title")
    body: str = Field(default="", description="Abstract, body and full text")

    @model_validator(mode="before")
    @classmethod
    def _merge_text_fields(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        merged = dict(data)
        merged["body"] = Document.from_record(data).body
        for key in ("abstract", "abstract_text", "full_text"):
            merged.pop(key, None)
        return merged

    @field_validator("title", mode="before")
    @classmethod
    def _blank_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    def to_domain(self, index: int = 0) -> Document:
        return Document(identifier=self.id or f"doc-{index}", title=self.title or "", body=self.body)


class SimulationRequest(BaseModel):
    """Documents plus the scenario tags to simulate."""

    documents: List[DocumentPayload] = Field(default_factory=list)
    intervention: str = Field(default=DEFAULT_INTERVENTION)
    setting: str = Field(default=DEFAULT_SETTING)
    duration: str = Field(default=DEFAULT_DURATION)

    def to_domain(self) -> EngineRequest:
        return EngineRequest(
            documents=[document.to_domain(index) for index, document in enumerate(self.documents)],
            intervention=self.intervention,
            setting=self.setting,
            duration=self.duration,
        )


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


class NetworkNode(BaseModel):
    """Region rendered as a network vertex."""

    code: str
    name: str
    activity: float = Field(..., ge=0.0, le=1.0)
    plasticity: float = Field(..., ge=0.0, le=1.0)
    network: str | None = None
    position: Tuple[float, float] | None = None

    @classmethod
    def from_domain(cls, region: Region) -> "NetworkNode":
        return cls(
            code=region.code,
            name=region.display_name,
            activity=region.baseline_activity,
            plasticity=region.neuroplasticity_potential,
            network=region.network,
            position=region.position,
        )


class NetworkEdge(BaseModel):
    """Connection between two network vertices."""

    source: str
    target: str
    weight: float = Field(..., ge=0.0, le=1.0)
    baseline: float = Field(..., ge=0.0, le=1.0)
    kind: ConnectionKind

    @classmethod
    def from_domain(cls, edge: GraphEdge) -> "NetworkEdge":
        return cls(
            source=edge.endpoint_a,
            target=edge.endpoint_b,
            weight=edge.current_weight,
            baseline=edge.baseline_weight,
            kind=edge.kind,
        )


class NetworkPayload(BaseModel):
    """Filtered region network after modulation."""

    nodes: List[NetworkNode] = Field(default_factory=list)
    edges: List[NetworkEdge] = Field(default_factory=list)
    skipped_codes: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, graph: FilteredGraph) -> "NetworkPayload":
        return cls(
            nodes=[NetworkNode.from_domain(graph.vertices[code]) for code in graph.codes],
            edges=[NetworkEdge.from_domain(edge) for edge in graph.edges],
            skipped_codes=list(graph.skipped_codes),
        )


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------


class MentionPayload(BaseModel):
    """Excerpt supporting a region mention."""

    region_code: str
    document_id: str
    matched_alias: str
    excerpt: str
    context: ContextCategory

    @classmethod
    def from_domain(cls, evidence: MentionEvidence) -> "MentionPayload":
        return cls(
            region_code=evidence.region_code,
            document_id=evidence.source_document_id,
            matched_alias=evidence.matched_alias,
            excerpt=evidence.excerpt,
            context=evidence.context_category,
        )


class RegionMentionsPayload(BaseModel):
    """All mentions for one region, used for citation lists."""

    code: str
    name: str
    count: int = Field(..., ge=0)
    mentions: List[MentionPayload] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, summary: RegionMentions) -> "RegionMentionsPayload":
        return cls(
            code=summary.region.code,
            name=summary.region.display_name,
            count=summary.count,
            mentions=[MentionPayload.from_domain(item) for item in summary.mentions],
        )


class WeightDeltaPayload(BaseModel):
    """Significant connection change."""

    source: str
    target: str
    before: float
    after: float
    change: float
    change_type: ChangeType

    @classmethod
    def from_domain(cls, delta: WeightDelta) -> "WeightDeltaPayload":
        return cls(
            source=delta.endpoint_a,
            target=delta.endpoint_b,
            before=delta.before_weight,
            after=delta.after_weight,
            change=delta.magnitude,
            change_type=delta.change_type,
        )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class SimulationPayload(BaseModel):
    """Serialisable view of an :class:`EngineResult`."""

    status: SimulationStatus
    intervention: str | None = None
    setting: str | None = None
    duration: str | None = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    success: bool
    truncated: bool = False
    summary: str = ""
    confirmed_codes: List[str] = Field(default_factory=list)
    network: NetworkPayload
    baseline_weights: Dict[str, float] = Field(default_factory=dict)
    regions: List[RegionMentionsPayload] = Field(default_factory=list)
    deltas: List[WeightDeltaPayload] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: EngineResult) -> "SimulationPayload":
        return cls(
            status=result.status,
            intervention=result.profile.intervention,
            setting=result.profile.setting,
            duration=result.profile.duration,
            confidence=result.confidence,
            success=result.success,
            truncated=result.truncated,
            summary=result.summary,
            confirmed_codes=list(result.confirmed_codes),
            network=NetworkPayload.from_domain(result.graph),
            baseline_weights=dict(result.baseline_weights),
            regions=[RegionMentionsPayload.from_domain(summary) for summary in result.region_mentions],
            deltas=[WeightDeltaPayload.from_domain(delta) for delta in result.deltas],
        )


__all__ = [
    "DocumentPayload",
    "MentionPayload",
    "NetworkEdge",
    "NetworkNode",
    "NetworkPayload",
    "RegionMentionsPayload",
    "SimulationPayload",
    "SimulationRequest",
    "WeightDeltaPayload",
]
