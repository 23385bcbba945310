"""Request-scoped graph restricted to the regions a request confirmed."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..telemetry import PIPELINE_METRICS, PipelineMetrics
from .catalog import ConnectivityCatalog, RegionCatalog
from .models import ConnectionEdge, ConnectionKind, Region, pair_key


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class GraphEdge:
    """Catalog connection with a weight that the modulator may move."""

    connection: ConnectionEdge
    current_weight: float

    @property
    def endpoint_a(self) -> str:
        return self.connection.endpoint_a

    @property
    def endpoint_b(self) -> str:
        return self.connection.endpoint_b

    @property
    def key(self) -> str:
        return self.connection.key

    @property
    def baseline_weight(self) -> float:
        return self.connection.baseline_weight

    @property
    def kind(self) -> ConnectionKind:
        return self.connection.kind

    @classmethod
    def from_connection(cls, connection: ConnectionEdge) -> "GraphEdge":
        return cls(connection=connection, current_weight=connection.baseline_weight)


@dataclass(slots=True)
class FilteredGraph:
    """Vertices are region codes; every edge joins two of them."""

    vertices: Dict[str, Region] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)
    skipped_codes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for edge in self.edges:
            if edge.endpoint_a not in self.vertices or edge.endpoint_b not in self.vertices:
                raise ValueError(f"Edge {edge.key} references a region outside the graph")

    @property
    def is_empty(self) -> bool:
        return not self.vertices

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(sorted(self.vertices))

    def __iter__(self) -> Iterator[GraphEdge]:
        return iter(self.edges)

    def edge(self, code_a: str, code_b: str) -> Optional[GraphEdge]:
        key = pair_key(code_a, code_b)
        for candidate in self.edges:
            if candidate.key == key:
                return candidate
        return None

    def weights(self) -> Dict[str, float]:
        """Snapshot of ``pair key -> current weight``."""

        return {edge.key: edge.current_weight for edge in self.edges}


class GraphBuilder:
    """Restrict the reference catalogs to a confirmed set of region codes."""

    def __init__(self, metrics: PipelineMetrics | None = None) -> None:
        self.metrics = metrics or PIPELINE_METRICS

    def build(
        self,
        confirmed_codes: Iterable[str],
        region_catalog: RegionCatalog,
        connectivity_catalog: ConnectivityCatalog,
    ) -> FilteredGraph:
        vertices: Dict[str, Region] = {}
        skipped: List[str] = []
        for code in sorted(set(confirmed_codes)):
            region = region_catalog.get(code)
            if region is None:
                LOGGER.warning("Confirmed region %s is not in the catalog; skipping", code)
                self.metrics.record_unknown_region(code)
                skipped.append(code)
                continue
            vertices[code] = region

        edges = [
            GraphEdge.from_connection(connection)
            for connection in connectivity_catalog
            if connection.endpoint_a in vertices and connection.endpoint_b in vertices
        ]
        LOGGER.info("Built graph with %d region(s) and %d connection(s)", len(vertices), len(edges))
        return FilteredGraph(vertices=vertices, edges=edges, skipped_codes=tuple(skipped))


__all__ = ["FilteredGraph", "GraphBuilder", "GraphEdge"]
