from __future__ import annotations

import json

from app_cli.score_attempt import main


def _write(path, payload) -> str:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_scores_attempt_against_sample_test(tmp_path, capsys):
    attempt = _write(tmp_path / "a.json", {
        "id": "a1",
        "test_id": "sat-practice-1",
        "status": "submitted",
        "answers": [
            {"question_id": "rw-1-q1", "value": "b"},
            {"question_id": "math-1-q2", "value": "0.5"},
            {"question_id": "math-1-q3", "value": "6"},
        ],
    })
    assert main([attempt]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["total_score"] == 3.0
    assert out["max_score"] == 8.0
    math = out["section_scores"][1]
    assert math["raw_score"] == 2.0
    assert math["scaled_score"] == 500


def test_invalid_attempt_exit_code(tmp_path, capsys):
    attempt = _write(tmp_path / "a.json", {
        "id": "a1",
        "test_id": "sat-practice-1",
        "status": "in-progress",
        "answers": [{"question_id": "rw-1-q1", "value": "b"}, {"question_id": "rw-1-q1", "value": "c"}],
    })
    assert main([attempt]) == 2
    err = capsys.readouterr().err
    assert "NOT_SUBMITTED" in err
    assert "DUPLICATE_ANSWER" in err


def test_unreadable_input_exit_code(tmp_path):
    assert main([str(tmp_path / "missing.json")]) == 1
