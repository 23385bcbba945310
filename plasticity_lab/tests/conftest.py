import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from plasticity_lab.graph.catalog import (
    ConnectivityCatalog,
    RegionCatalog,
    build_catalogs,
    load_reference_catalogs,
)
from plasticity_lab.simulation.modulation import ConnectivityModulator
from plasticity_lab.simulation.profiles import ModifierLibrary


@pytest.fixture()
def small_catalogs() -> tuple[RegionCatalog, ConnectivityCatalog]:
    """Two connected regions plus an isolated one."""

    return build_catalogs(
        {
            "regions": [
                {
                    "code": "AMY",
                    "name": "Amygdala",
                    "aliases": ["amygdala", "amygdalar"],
                    "baseline_activity": 0.8,
                    "neuroplasticity_potential": 0.6,
                },
                {
                    "code": "mPFC",
                    "name": "Medial Prefrontal Cortex",
                    "aliases": ["medial prefrontal cortex", "mpfc"],
                    "baseline_activity": 0.7,
                    "neuroplasticity_potential": 0.75,
                },
                {
                    "code": "V1",
                    "name": "Primary Visual Cortex",
                    "aliases": ["visual cortex", "v1"],
                    "baseline_activity": 0.6,
                    "neuroplasticity_potential": 0.4,
                },
            ]
        },
        {
            "connections": [
                {"source": "mPFC", "target": "AMY", "baseline_weight": 0.65, "kind": "INHIBITORY"},
            ]
        },
    )


@pytest.fixture()
def reference_catalogs() -> tuple[RegionCatalog, ConnectivityCatalog]:
    return load_reference_catalogs()


@pytest.fixture()
def modifier_library() -> ModifierLibrary:
    return ModifierLibrary.from_mapping(
        {
            "interventions": {
                "test_compound": {"label": "Test compound", "modifiers": {"mPFC-AMY": 0.20}},
            },
            "settings": {
                "quiet-room": {"label": "Quiet room", "modifiers": {"AMY-mPFC": 0.10}},
            },
            "durations": {"short": 0.7, "medium": 1.0, "extended": 1.3},
        }
    )


@pytest.fixture()
def steady_modulator() -> ConnectivityModulator:
    """Modulator without jitter so weight changes are exact."""

    return ConnectivityModulator(jitter=0.0)
