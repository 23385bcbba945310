"""Core data models for the region network.

Regions and connections are immutable reference records shared by every
request.  Mentions, documents and weight deltas are created per request and
never outlive it.  All region pairs are keyed by :func:`pair_key`, which sorts
the two region codes so that ``AMY``/``mPFC`` and ``mPFC``/``AMY`` resolve to the
same ``"AMY-mPFC"`` identifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Sequence, Tuple


class ConnectionKind(str, Enum):
    """Functional character of a connection."""

    EXCITATORY = "EXCITATORY"
    INHIBITORY = "INHIBITORY"
    MODULATORY = "MODULATORY"


class ContextCategory(str, Enum):
    """Topic of the sentence a mention was found in."""

    CONNECTIVITY = "connectivity"
    ACTIVITY = "activity"
    NEUROPLASTICITY = "neuroplasticity"
    STRUCTURE = "structure"
    FUNCTION = "function"
    GENERAL = "general"


class ChangeType(str, Enum):
    """Direction of a weight change."""

    INCREASED = "INCREASED"
    DECREASED = "DECREASED"
    STABLE = "STABLE"


def canonical_pair(code_a: str, code_b: str) -> Tuple[str, str]:
    """Return the two codes in canonical (ordinal) order."""

    return (code_a, code_b) if code_a <= code_b else (code_b, code_a)


def pair_key(code_a: str, code_b: str) -> str:
    """Return the ``"codeA-codeB"`` key used by modifier tables."""

    first, second = canonical_pair(code_a, code_b)
    return f"{first}-{second}"


def split_pair_key(key: str) -> Tuple[str, str]:
    """Split a pair key and return it canonicalised.

    Region codes never contain hyphens, so the first hyphen separates the two
    codes.  Keys written in the wrong order are reordered.
    """

    first, sep, second = key.strip().partition("-")
    if not sep or not first or not second:
        raise ValueError(f"Malformed pair key: {key!r}")
    return canonical_pair(first.strip(), second.strip())


def _check_unit_interval(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {value}")
    return value


@dataclass(frozen=True, slots=True)
class Region:
    """Anatomical brain region with the aliases it goes by in prose."""

    code: str
    display_name: str
    aliases: FrozenSet[str] = frozenset()
    baseline_activity: float = 0.5
    neuroplasticity_potential: float = 0.5
    description: Optional[str] = None
    function: Optional[str] = None
    network: Optional[str] = None
    position: Optional[Tuple[float, float]] = None

    def __post_init__(self) -> None:
        code = self.code.strip()
        if not code:
            raise ValueError("Region code must not be empty")
        if "-" in code:
            raise ValueError(f"Region code {code!r} must not contain '-'")
        object.__setattr__(self, "code", code)
        aliases = frozenset(alias.strip().lower() for alias in self.aliases if alias and alias.strip())
        object.__setattr__(self, "aliases", aliases)
        object.__setattr__(
            self, "baseline_activity", _check_unit_interval("baseline_activity", self.baseline_activity)
        )
        object.__setattr__(
            self,
            "neuroplasticity_potential",
            _check_unit_interval("neuroplasticity_potential", self.neuroplasticity_potential),
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Region":
        position = record.get("position")
        if isinstance(position, Sequence) and len(position) == 2:
            position = (float(position[0]), float(position[1]))
        else:
            position = None
        aliases = record.get("aliases", ()) or ()
        if isinstance(aliases, str):
            raise TypeError("aliases must be a list of strings, not a single string")
        return cls(
            code=str(record.get("code", "")),
            display_name=str(record.get("name") or record.get("display_name") or record.get("code", "")),
            aliases=frozenset(str(alias) for alias in aliases),
            baseline_activity=float(record.get("baseline_activity", 0.5)),
            neuroplasticity_potential=float(record.get("neuroplasticity_potential", 0.5)),
            description=record.get("description"),
            function=record.get("function"),
            network=record.get("network"),
            position=position,
        )


@dataclass(frozen=True, slots=True)
class ConnectionEdge:
    """Undirected, weighted reference connection between two region codes."""

    endpoint_a: str
    endpoint_b: str
    kind: ConnectionKind = ConnectionKind.EXCITATORY
    baseline_weight: float = 0.5
    description: Optional[str] = None

    def __post_init__(self) -> None:
        first, second = canonical_pair(self.endpoint_a.strip(), self.endpoint_b.strip())
        object.__setattr__(self, "endpoint_a", first)
        object.__setattr__(self, "endpoint_b", second)
        if not isinstance(self.kind, ConnectionKind):
            object.__setattr__(self, "kind", ConnectionKind(str(self.kind).upper()))
        object.__setattr__(
            self, "baseline_weight", _check_unit_interval("baseline_weight", self.baseline_weight)
        )

    @property
    def key(self) -> str:
        return pair_key(self.endpoint_a, self.endpoint_b)

    @property
    def is_self_loop(self) -> bool:
        return self.endpoint_a == self.endpoint_b

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ConnectionEdge":
        return cls(
            endpoint_a=str(record.get("source") or record.get("endpoint_a") or ""),
            endpoint_b=str(record.get("target") or record.get("endpoint_b") or ""),
            kind=ConnectionKind(str(record.get("kind", "EXCITATORY")).upper()),
            baseline_weight=float(record.get("baseline_weight", record.get("weight", 0.5))),
            description=record.get("description"),
        )


@dataclass(frozen=True, slots=True)
class Document:
    """A research excerpt to scan for region mentions."""

    identifier: str
    title: str = ""
    body: str = ""

    @property
    def text(self) -> str:
        """Title and body joined by a newline, original casing preserved."""

        parts = [part for part in (self.title or "", self.body or "") if part.strip()]
        return "\n".join(parts)

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, index: int = 0) -> "Document":
        """Build a document from a literature payload.

        ``body`` is taken from ``body``, ``abstract``/``abstract_text`` and
        ``full_text`` fields, joined in that order.
        """

        identifier = record.get("id") or record.get("pmid") or record.get("pubmed_id") or f"doc-{index}"
        body_parts = []
        for key in ("body", "abstract", "abstract_text", "full_text"):
            value = record.get(key)
            if isinstance(value, str) and value.strip():
                body_parts.append(value.strip())
        title = record.get("title")
        return cls(
            identifier=str(identifier),
            title=title.strip() if isinstance(title, str) else "",
            body=" ".join(body_parts),
        )


@dataclass(frozen=True, slots=True)
class MentionEvidence:
    """Accepted alias occurrence with its supporting excerpt."""

    region_code: str
    source_document_id: str
    matched_alias: str
    excerpt: str
    context_category: ContextCategory = ContextCategory.GENERAL


@dataclass(frozen=True, slots=True)
class WeightDelta:
    """Significant change applied to one edge by the modulator."""

    endpoint_a: str
    endpoint_b: str
    before_weight: float
    after_weight: float
    change_type: ChangeType

    @property
    def key(self) -> str:
        return pair_key(self.endpoint_a, self.endpoint_b)

    @property
    def magnitude(self) -> float:
        return self.after_weight - self.before_weight


@dataclass(frozen=True, slots=True)
class RegionMentions:
    """All evidence collected for one region, used for citation displays."""

    region: Region
    mentions: Tuple[MentionEvidence, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.mentions)


__all__ = [
    "ChangeType",
    "ConnectionEdge",
    "ConnectionKind",
    "ContextCategory",
    "Document",
    "MentionEvidence",
    "Region",
    "RegionMentions",
    "WeightDelta",
    "canonical_pair",
    "pair_key",
    "split_pair_key",
]
