import json
from pathlib import Path

import pytest

from staffmatch import cli


@pytest.fixture(autouse=True)
def _no_llm_key(monkeypatch):
    monkeypatch.setattr("staffmatch.config.STAFFMATCH_LLM_KEY", None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


def test_json_output(data_dir: Path, capsys) -> None:
    code = cli.main(["--data-dir", str(data_dir), "--target-id", "vac-1", "--json"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["method"] == "points"
    assert [m["id"] for m in payload["matches"]] == ["c-1", "c-3"]


def test_human_summary(data_dir: Path, capsys) -> None:
    code = cli.main(["--data-dir", str(data_dir), "--target-id", "vac-1", "--mode", "distance_only"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Method: distance_only" in out
    assert "Anna Müller" in out
    assert "distance unknown" in out


def test_ai_mode_without_key_falls_back(data_dir: Path, capsys) -> None:
    code = cli.main(["--data-dir", str(data_dir), "--target-id", "vac-1", "--mode", "ai", "--json"])

    captured = capsys.readouterr()
    assert code == 0
    assert json.loads(captured.out)["method"] == "points"
    assert "No API key" in captured.err


def test_target_file(data_dir: Path, tmp_path: Path, capsys) -> None:
    target_file = tmp_path / "target.json"
    target_file.write_text(json.dumps({"id": "adhoc", "role": "Zimmermann", "latitude": 46.95, "longitude": 7.45}), encoding="utf-8")

    code = cli.main(["--data-dir", str(data_dir), "--target", str(target_file), "--json"])

    assert code == 0
    assert [m["id"] for m in json.loads(capsys.readouterr().out)["matches"]] == ["c-2"]


def test_unknown_target_exit_code(data_dir: Path) -> None:
    assert cli.main(["--data-dir", str(data_dir), "--target-id", "nope"]) == cli.EXIT_NOT_FOUND


def test_validation_error_exit_code(data_dir: Path) -> None:
    # vac-geo has no coordinates and no geocoder match for an empty locations file
    (data_dir / "locations.json").write_text("[]", encoding="utf-8")
    code = cli.main(["--data-dir", str(data_dir), "--target-id", "vac-geo", "--mode", "distance_only"])
    assert code == cli.EXIT_VALIDATION


def test_top_k_limits_results(data_dir: Path, capsys) -> None:
    cli.main(["--data-dir", str(data_dir), "--target-id", "vac-1", "--mode", "distance_only", "--top-k", "1", "--json"])
    assert len(json.loads(capsys.readouterr().out)["matches"]) == 1


@pytest.mark.parametrize(
    "content, message",
    [
        (json.dumps({"role": "Maler", "latitude": 47.0, "longitude": 8.0}), "missing 'id'"),
        (json.dumps({"id": "adhoc", "role": "Maler", "latitude": "abc", "longitude": 8.0}), "latitude"),
        (json.dumps({"id": "adhoc", "role": "Maler", "radius_km": "weit"}), "radius_km"),
        (json.dumps({"id": "adhoc", "role": "Maler", "urgency": "sofort"}), "urgency"),
        ('{"id": "adhoc", ', "not valid JSON"),
        (json.dumps(["adhoc"]), "JSON object"),
    ],
)
def test_malformed_target_file_exit_code(data_dir: Path, tmp_path: Path, capsys, content, message) -> None:
    target_file = tmp_path / "target.json"
    target_file.write_text(content, encoding="utf-8")

    code = cli.main(["--data-dir", str(data_dir), "--target", str(target_file)])

    assert code == cli.EXIT_VALIDATION
    err = capsys.readouterr().err
    assert "Invalid request" in err
    assert message in err
