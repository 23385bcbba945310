import pytest

from plasticity_lab.graph.models import ChangeType, Document
from plasticity_lab.simulation import (
    ConnectivityModulator,
    EngineRequest,
    SimulationEngine,
    SimulationStatus,
    UnknownProfileError,
)
from plasticity_lab.simulation.engine import confidence_score, is_successful


@pytest.fixture()
def small_engine(small_catalogs, modifier_library, steady_modulator) -> SimulationEngine:
    regions, connections = small_catalogs
    return SimulationEngine(
        region_catalog=regions,
        connectivity_catalog=connections,
        modifier_library=modifier_library,
        modulator=steady_modulator,
    )


FEAR_DOCUMENT = Document(
    identifier="pmid-1",
    title="Fear regulation",
    body="Activity in the amygdala decreased while the medial prefrontal cortex showed stronger connectivity.",
)


def test_engine_runs_the_full_pipeline(small_engine) -> None:
    request = EngineRequest(
        documents=[FEAR_DOCUMENT],
        intervention="test_compound",
        setting="Quiet Room",
        duration="medium",
    )

    result = small_engine.run(request)

    assert result.status is SimulationStatus.COMPLETED
    assert result.confirmed_codes == ("AMY", "mPFC")
    assert result.baseline_weights == {"AMY-mPFC": 0.65}
    assert len(result.deltas) == 1
    delta = result.deltas[0]
    assert delta.after_weight == pytest.approx(0.95)
    assert delta.change_type is ChangeType.INCREASED
    assert result.confidence == pytest.approx(0.08 + 0.10 + 0.06)
    assert not result.success
    assert "AMY" in result.summary
    assert "AMY-mPFC" in result.summary


def test_no_evidence_is_distinct_from_no_changes(small_engine) -> None:
    silent = small_engine.run(
        EngineRequest(
            documents=[Document(identifier="d1", title="Unrelated", body="Weather patterns over the ocean.")],
            intervention="test_compound",
            setting="quiet_room",
        )
    )
    isolated = small_engine.run(
        EngineRequest(
            documents=[Document(identifier="d2", title="Vision", body="Visual cortex activation was robust.")],
            intervention="test_compound",
            setting="quiet_room",
        )
    )

    assert silent.status is SimulationStatus.NO_EVIDENCE
    assert silent.graph.is_empty
    assert silent.deltas == ()
    assert not silent.success
    assert isolated.status is SimulationStatus.COMPLETED
    assert isolated.confirmed_codes == ("V1",)
    assert isolated.deltas == ()


def test_region_mentions_are_sorted_by_count(small_engine) -> None:
    documents = [
        FEAR_DOCUMENT,
        Document(identifier="pmid-2", title="Amygdala activity", body="The amygdala response to threat increased."),
    ]

    result = small_engine.run(
        EngineRequest(documents=documents, intervention="test_compound", setting="quiet_room")
    )

    assert [(summary.region.code, summary.count) for summary in result.region_mentions] == [
        ("AMY", 2),
        ("mPFC", 1),
    ]


def test_unknown_profile_tags_fail_before_extraction(small_engine) -> None:
    with pytest.raises(UnknownProfileError):
        small_engine.run(EngineRequest(documents=[FEAR_DOCUMENT], intervention="caffeine", setting="quiet_room"))


def test_engine_honours_should_stop(small_engine) -> None:
    result = small_engine.run(
        EngineRequest(documents=[FEAR_DOCUMENT], intervention="test_compound", setting="quiet_room"),
        should_stop=lambda: True,
    )

    assert result.truncated
    assert result.status is SimulationStatus.NO_EVIDENCE


def test_reference_engine_reports_success_for_broad_evidence() -> None:
    engine = SimulationEngine(modulator=ConnectivityModulator(seed=1))
    documents = [
        {
            "id": f"pmid-{index}",
            "title": f"Study {index}",
            "abstract": "Functional connectivity between the amygdala, hippocampus and thalamus increased.",
        }
        for index in range(5)
    ]

    result = engine.run(EngineRequest(documents=documents, intervention="ketamine", setting="guided_therapy"))

    assert result.status is SimulationStatus.COMPLETED
    assert result.confirmed_codes == ("AHP", "AMY", "THL")
    assert result.confidence == pytest.approx(0.4 + 0.15 + 0.3)
    assert result.success
    for edge in result.graph.edges:
        assert 0.0 <= edge.current_weight <= 1.0


def test_confidence_and_success_thresholds() -> None:
    assert confidence_score(0, 0, 0) == 0.0
    assert confidence_score(100, 100, 100) == pytest.approx(1.0)
    assert is_successful(0.5, 3)
    assert not is_successful(0.49, 3)
    assert not is_successful(0.9, 2)
