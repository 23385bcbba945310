import dataclasses
import json

import pytest

from plasticity_lab.graph.catalog import (
    CatalogError,
    ConnectivityCatalog,
    RegionCatalog,
    build_catalogs,
    load_reference_catalogs,
)
from plasticity_lab.graph.models import ConnectionKind


def test_reference_catalogs_load_packaged_data(reference_catalogs) -> None:
    regions, connections = reference_catalogs

    assert len(regions) == 10
    assert "AMY" in regions
    assert regions.get("AMY").display_name == "Amygdala"
    assert regions.alias_index()["AMY"] == ["amygdala", "amygdalae", "amygdalar"]
    edge = connections.get("AMY", "mPFC")
    assert edge is not None
    assert edge.baseline_weight == pytest.approx(0.65)
    assert edge.kind is ConnectionKind.INHIBITORY
    assert connections.get("mPFC", "AMY") is edge


def test_reference_catalogs_are_loaded_once() -> None:
    assert load_reference_catalogs() is load_reference_catalogs()


def test_catalog_records_are_immutable(reference_catalogs) -> None:
    regions, _ = reference_catalogs

    with pytest.raises(dataclasses.FrozenInstanceError):
        regions.get("AMY").code = "XYZ"  # type: ignore[misc]


def test_duplicate_region_codes_are_rejected() -> None:
    with pytest.raises(CatalogError):
        RegionCatalog.from_records([{"code": "AMY", "name": "Amygdala"}, {"code": "AMY", "name": "Again"}])


@pytest.mark.parametrize(
    "record",
    [
        {"code": "", "name": "Nameless"},
        {"code": "AMY", "name": "Amygdala", "baseline_activity": 1.5},
        {"code": "A-B", "name": "Hyphenated"},
    ],
)
def test_invalid_region_records_are_rejected(record) -> None:
    with pytest.raises(CatalogError):
        RegionCatalog.from_records([record])


@pytest.mark.parametrize(
    "record",
    [
        {"source": "AMY", "target": "mPFC", "baseline_weight": -0.1},
        {"source": "AMY", "target": "mPFC", "baseline_weight": 0.5, "kind": "BOGUS"},
    ],
)
def test_invalid_connection_records_are_rejected(record) -> None:
    with pytest.raises(CatalogError):
        ConnectivityCatalog.from_records([record])


def test_self_loops_and_mirrored_duplicates_are_dropped() -> None:
    catalog = ConnectivityCatalog.from_records(
        [
            {"source": "mPFC", "target": "AMY", "baseline_weight": 0.65},
            {"source": "AMY", "target": "mPFC", "baseline_weight": 0.2},
            {"source": "AMY", "target": "AMY", "baseline_weight": 0.9},
        ]
    )

    assert len(catalog) == 1
    assert catalog.get("AMY", "mPFC").baseline_weight == pytest.approx(0.65)


def test_connections_to_unknown_regions_are_skipped() -> None:
    regions, connections = build_catalogs(
        [{"code": "AMY", "name": "Amygdala"}, {"code": "mPFC", "name": "Medial Prefrontal Cortex"}],
        [
            {"source": "AMY", "target": "mPFC", "baseline_weight": 0.6},
            {"source": "AMY", "target": "XYZ", "baseline_weight": 0.4},
        ],
    )

    assert len(regions) == 2
    assert [edge.key for edge in connections] == ["AMY-mPFC"]


def test_catalogs_can_be_loaded_from_files(tmp_path) -> None:
    regions_path = tmp_path / "regions.json"
    connections_path = tmp_path / "connections.json"
    regions_path.write_text(
        json.dumps({"regions": [{"code": "X1", "name": "X", "aliases": ["Region X"]}, {"code": "Y1", "name": "Y"}]}),
        encoding="utf-8",
    )
    connections_path.write_text(
        json.dumps({"connections": [{"source": "Y1", "target": "X1", "weight": 0.3, "kind": "modulatory"}]}),
        encoding="utf-8",
    )

    regions, connections = load_reference_catalogs(str(regions_path), str(connections_path))

    assert regions.codes == ("X1", "Y1")
    assert regions.alias_index() == {"X1": ["region x"], "Y1": []}
    edge = connections.get("X1", "Y1")
    assert edge.kind is ConnectionKind.MODULATORY
    assert edge.baseline_weight == pytest.approx(0.3)


def test_structurally_invalid_payload_is_rejected() -> None:
    with pytest.raises(CatalogError):
        build_catalogs({"regions": "not-a-list"}, {"connections": []})


def test_single_string_aliases_are_rejected() -> None:
    with pytest.raises(CatalogError, match="record #0"):
        RegionCatalog.from_records([{"code": "AMY", "name": "Amygdala", "aliases": "amygdala"}])
