import json

from plasticity_lab.cli import main


def _write_documents(tmp_path, payload) -> str:
    path = tmp_path / "documents.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_regions_command_lists_catalog(capsys) -> None:
    assert main(["regions"]) == 0

    out = capsys.readouterr().out
    assert "AMY\tAmygdala\tamygdala, amygdalae, amygdalar" in out
    assert "10 regions" in out


def test_profiles_command_lists_tags(capsys) -> None:
    assert main(["profiles"]) == 0

    out = capsys.readouterr().out
    assert "psilocybin" in out
    assert "meditation_space" in out
    assert "extended" in out


def test_simulate_command_prints_payload(tmp_path, capsys) -> None:
    path = _write_documents(
        tmp_path,
        [
            {
                "pmid": "1",
                "title": "Emotion circuits",
                "abstract": "Functional connectivity between the amygdala and the medial prefrontal cortex increased.",
            }
        ],
    )

    assert main(["simulate", path, "--intervention", "mdma", "--no-jitter"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "COMPLETED"
    assert payload["intervention"] == "mdma"
    assert payload["confirmed_codes"] == ["AMY", "mPFC"]
    delta = payload["deltas"][0]
    assert (delta["source"], delta["target"]) == ("AMY", "mPFC")
    assert delta["after"] == 1.0
    assert delta["change_type"] == "INCREASED"


def test_simulate_command_reports_no_evidence(tmp_path, capsys) -> None:
    path = _write_documents(tmp_path, {"documents": [{"title": "Weather report"}], "setting": "guided-therapy"})

    assert main(["simulate", path, "--seed", "3"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "NO_EVIDENCE"
    assert payload["setting"] == "guided_therapy"
    assert payload["deltas"] == []


def test_simulate_command_rejects_unknown_tags(tmp_path, capsys) -> None:
    path = _write_documents(tmp_path, [{"title": "Amygdala activity"}])

    assert main(["simulate", path, "--intervention", "caffeine"]) == 2

    assert "Unknown intervention 'caffeine'" in capsys.readouterr().err


def test_simulate_command_reports_unreadable_input(tmp_path, capsys) -> None:
    assert main(["simulate", str(tmp_path / "missing.json")]) == 2

    assert "Could not read documents" in capsys.readouterr().err


def test_simulate_command_accepts_untitled_documents(tmp_path, capsys) -> None:
    path = _write_documents(
        tmp_path,
        [{"title": None, "abstract": "Intro.", "full_text": "The amygdala response increased."}],
    )

    assert main(["simulate", path, "--no-jitter"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert "AMY" in payload["confirmed_codes"]
