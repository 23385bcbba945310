import pytest

from plasticity_lab.graph.builder import FilteredGraph, GraphBuilder, GraphEdge
from plasticity_lab.graph.models import ConnectionEdge


def test_builder_restricts_catalog_to_confirmed_codes(small_catalogs) -> None:
    regions, connections = small_catalogs

    graph = GraphBuilder().build({"AMY", "mPFC"}, regions, connections)

    assert graph.codes == ("AMY", "mPFC")
    assert len(graph.edges) == 1
    edge = graph.edges[0]
    assert edge.key == "AMY-mPFC"
    assert edge.current_weight == pytest.approx(0.65)
    assert edge.baseline_weight == pytest.approx(0.65)
    assert graph.edge("mPFC", "AMY") is edge


def test_unknown_codes_are_skipped_not_fatal(small_catalogs, caplog) -> None:
    regions, connections = small_catalogs

    with caplog.at_level("WARNING", logger="plasticity_lab.graph.builder"):
        graph = GraphBuilder().build(["AMY", "XYZ"], regions, connections)

    assert graph.codes == ("AMY",)
    assert graph.skipped_codes == ("XYZ",)
    assert graph.edges == []
    assert "XYZ" in caplog.text


def test_empty_confirmation_yields_empty_graph(small_catalogs) -> None:
    regions, connections = small_catalogs

    graph = GraphBuilder().build(set(), regions, connections)

    assert graph.is_empty
    assert graph.weights() == {}


def test_every_edge_joins_two_vertices(reference_catalogs) -> None:
    regions, connections = reference_catalogs
    confirmed = {"AMY", "mPFC", "THL", "FP", "V1"}

    graph = GraphBuilder().build(confirmed, regions, connections)

    expected = [
        connection.key
        for connection in connections
        if connection.endpoint_a in confirmed and connection.endpoint_b in confirmed
    ]
    assert [edge.key for edge in graph.edges] == expected
    for edge in graph.edges:
        assert edge.endpoint_a in graph.vertices
        assert edge.endpoint_b in graph.vertices
    assert len({edge.key for edge in graph.edges}) == len(graph.edges)


def test_graph_rejects_edges_outside_vertex_set(small_catalogs) -> None:
    regions, _ = small_catalogs
    dangling = GraphEdge.from_connection(ConnectionEdge("AMY", "V1", baseline_weight=0.3))

    with pytest.raises(ValueError):
        FilteredGraph(vertices={"AMY": regions.get("AMY")}, edges=[dangling])

