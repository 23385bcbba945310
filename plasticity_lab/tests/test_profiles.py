import json

import pytest

from plasticity_lab.simulation.profiles import ModifierLibrary, UnknownProfileError, normalise_tag


def test_default_library_exposes_reference_tables() -> None:
    library = ModifierLibrary.load_default()

    interventions, settings, durations = library.tags()
    assert interventions == ["ketamine", "lsd", "mdma", "psilocybin"]
    assert settings == ["calm_nature", "creative_studio", "guided_therapy", "meditation_space", "social_gathering"]
    assert durations == ["extended", "medium", "short"]
    assert library.intervention("LSD").label == "LSD"
    assert library.intervention("lsd").modifiers["V1-mPFC"] == pytest.approx(0.20)
    assert library.setting("social_gathering").modifiers["AMY-FP"] == pytest.approx(0.08)


def test_build_profile_normalises_tags() -> None:
    library = ModifierLibrary.load_default()

    profile = library.build_profile("Psilocybin", "calm-nature", "Extended")

    assert profile.intervention == "psilocybin"
    assert profile.setting == "calm_nature"
    assert profile.duration == "extended"
    assert profile.duration_scale == pytest.approx(1.3)
    assert profile.intervention_modifiers["AMY-mPFC"] == pytest.approx(0.20)
    assert profile.setting_modifiers["PCC-mPFC"] == pytest.approx(-0.05)


@pytest.mark.parametrize(
    ("intervention", "setting", "duration", "kind"),
    [
        ("caffeine", "calm_nature", "medium", "intervention"),
        ("lsd", "nightclub", "medium", "setting"),
        ("lsd", "calm_nature", "forever", "duration"),
    ],
)
def test_unknown_tags_raise(intervention: str, setting: str, duration: str, kind: str) -> None:
    library = ModifierLibrary.load_default()

    with pytest.raises(UnknownProfileError) as excinfo:
        library.build_profile(intervention, setting, duration)

    assert excinfo.value.kind == kind
    assert isinstance(excinfo.value, KeyError)
    assert "expected one of" in str(excinfo.value)


def test_validate_against_reports_unreachable_keys(reference_catalogs) -> None:
    regions, connections = reference_catalogs
    library = ModifierLibrary.load_default()

    assert library.validate_against(regions) == []
    problems = library.validate_against(regions, connections)
    assert problems
    assert all("no catalog connection" in problem for problem in problems)
    assert any("V1-mPFC" in problem for problem in problems)


def test_validate_against_reports_unknown_codes(reference_catalogs) -> None:
    regions, _ = reference_catalogs
    library = ModifierLibrary.from_mapping(
        {
            "interventions": {"test": {"modifiers": {"AMY-XYZ": 0.1}}},
            "settings": {"room": {"AMY-mPFC": 0.1}},
            "durations": {"medium": 1.0},
        }
    )

    problems = library.validate_against(regions)

    assert problems == ["intervention test: AMY-XYZ names unknown region(s) XYZ"]
    assert library.setting("room").modifiers["AMY-mPFC"] == pytest.approx(0.1)


def test_library_loads_override_file(tmp_path) -> None:
    path = tmp_path / "tables.json"
    path.write_text(
        json.dumps(
            {
                "interventions": {"Breathwork": {"label": "Breathwork", "modifiers": {"mPFC-AMY": 0.05}}},
                "settings": {"Home": {"label": "Home", "modifiers": {}}},
                "durations": {"Medium": 1.0},
            }
        ),
        encoding="utf-8",
    )

    library = ModifierLibrary.load_default(path)
    profile = library.build_profile("breathwork", "home", "medium")

    assert dict(profile.intervention_modifiers) == {"AMY-mPFC": 0.05}


def test_normalise_tag() -> None:
    assert normalise_tag(" Guided-Therapy ") == "guided_therapy"
    assert normalise_tag("meditation space") == "meditation_space"
