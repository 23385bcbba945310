"""Immutable region and connectivity catalogs.

Both catalogs are loaded once per process and shared read-only between
requests.  :func:`load_reference_catalogs` reads the JSON files bundled in
:mod:`plasticity_lab.graph.data` (or user supplied overrides) and caches the
result, so repeated calls hand back the same objects.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .models import ConnectionEdge, Region, pair_key


LOGGER = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when reference data is structurally invalid."""


class RegionCatalog:
    """Read-only collection of :class:`Region` records keyed by code."""

    def __init__(self, regions: Iterable[Region]) -> None:
        by_code: Dict[str, Region] = {}
        for region in regions:
            if region.code in by_code:
                raise CatalogError(f"Duplicate region code {region.code!r}")
            by_code[region.code] = region
        self._regions: Mapping[str, Region] = MappingProxyType(by_code)

    def __contains__(self, code: object) -> bool:
        return code in self._regions

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions.values())

    def __len__(self) -> int:
        return len(self._regions)

    def get(self, code: str) -> Optional[Region]:
        return self._regions.get(code)

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(sorted(self._regions))

    def alias_index(self) -> Dict[str, List[str]]:
        """Return ``code -> aliases`` as consumed by the mention extractor."""

        return {code: sorted(self._regions[code].aliases) for code in sorted(self._regions)}

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "RegionCatalog":
        regions: List[Region] = []
        for index, record in enumerate(records):
            try:
                regions.append(Region.from_record(record))
            except (TypeError, ValueError) as exc:
                raise CatalogError(f"Invalid region record #{index}: {exc}") from exc
        return cls(regions)


class ConnectivityCatalog:
    """Read-only set of canonicalised, undirected reference connections.

    Self-loops and repeated pairs are dropped on construction (the first
    occurrence of a pair wins), which keeps every graph built from the
    catalog simple.
    """

    def __init__(self, edges: Iterable[ConnectionEdge]) -> None:
        by_key: Dict[str, ConnectionEdge] = {}
        for edge in edges:
            if edge.is_self_loop:
                LOGGER.warning("Skipping self-loop connection on %s", edge.endpoint_a)
                continue
            if edge.key in by_key:
                LOGGER.warning("Skipping duplicate connection %s", edge.key)
                continue
            by_key[edge.key] = edge
        self._edges: Mapping[str, ConnectionEdge] = MappingProxyType(by_key)

    def __iter__(self) -> Iterator[ConnectionEdge]:
        return iter(self._edges.values())

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, key: object) -> bool:
        return key in self._edges

    def get(self, code_a: str, code_b: str) -> Optional[ConnectionEdge]:
        return self._edges.get(pair_key(code_a, code_b))

    def restricted_to(self, regions: RegionCatalog) -> "ConnectivityCatalog":
        """Return a catalog without edges that reference unknown region codes."""

        kept: List[ConnectionEdge] = []
        for edge in self:
            missing = [code for code in (edge.endpoint_a, edge.endpoint_b) if code not in regions]
            if missing:
                LOGGER.warning("Skipping connection %s referencing unknown region(s) %s", edge.key, missing)
                continue
            kept.append(edge)
        return ConnectivityCatalog(kept)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "ConnectivityCatalog":
        edges: List[ConnectionEdge] = []
        for index, record in enumerate(records):
            try:
                edges.append(ConnectionEdge.from_record(record))
            except (TypeError, ValueError) as exc:
                raise CatalogError(f"Invalid connection record #{index}: {exc}") from exc
        return cls(edges)


def _read_packaged_json(name: str) -> Dict[str, Any]:
    with resources.files("plasticity_lab.graph.data").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _read_json_file(path: str | Path) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _records(payload: Any, key: str) -> Sequence[Mapping[str, Any]]:
    if isinstance(payload, Mapping):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise CatalogError(f"Expected a list of {key}")
    return payload


def build_catalogs(
    region_payload: Any,
    connection_payload: Any,
) -> Tuple[RegionCatalog, ConnectivityCatalog]:
    """Build both catalogs from decoded JSON payloads."""

    regions = RegionCatalog.from_records(_records(region_payload, "regions"))
    connections = ConnectivityCatalog.from_records(_records(connection_payload, "connections"))
    connections = connections.restricted_to(regions)
    LOGGER.info("Loaded %d regions and %d connections", len(regions), len(connections))
    return regions, connections


@lru_cache(maxsize=None)
def load_reference_catalogs(
    regions_path: str | None = None,
    connections_path: str | None = None,
) -> Tuple[RegionCatalog, ConnectivityCatalog]:
    """Return the process-wide catalogs, loading them on first use."""

    region_payload = _read_json_file(regions_path) if regions_path else _read_packaged_json("regions.json")
    connection_payload = (
        _read_json_file(connections_path) if connections_path else _read_packaged_json("connections.json")
    )
    return build_catalogs(region_payload, connection_payload)


__all__ = [
    "CatalogError",
    "ConnectivityCatalog",
    "RegionCatalog",
    "build_catalogs",
    "load_reference_catalogs",
]
