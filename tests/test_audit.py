from __future__ import annotations

import json

from sat_core import audit
from sat_core.types import Section

from tests.conftest import build_full_test, build_two_question_test


def test_audit_counts_types_difficulty_and_topics():
    summary = audit.audit(build_full_test())

    math = summary["coverage"]["m"]
    assert math["types"] == {"multiple-choice": 2, "grid-in": 2, "essay": 0}
    assert math["difficulty"] == {"easy": 1, "medium": 1, "hard": 2}
    assert math["points"] == 6.0
    assert summary["topics"]["vocabulary"] == 3
    assert summary["totals"] == {"questions": 9, "points": 11.0, "time_limit": 4020.0}
    assert summary["errors"] == []


def test_audit_lists_validation_errors():
    test = build_two_question_test()
    test.sections.append(Section(id="blank", subject="math", time_limit=60))
    summary = audit.audit(test)
    assert any("SECTION_EMPTY" in e for e in summary["errors"])


def test_main_exit_codes_and_summary_file(tmp_path, monkeypatch, capsys):
    good = tmp_path / "good.json"
    good.write_text(json.dumps({
        "id": "g",
        "sections": [{"id": "s", "subject": "math", "time_limit": 60,
                      "questions": [{"id": "q", "type": "grid-in", "correct_answer": "2"}]}],
    }), encoding="utf-8")
    out = tmp_path / "audit" / "summary.json"

    assert audit.main([str(good), "--out", str(out)]) == 0
    assert json.loads(out.read_text(encoding="utf-8"))["test_id"] == "g"
    assert "No errors." in capsys.readouterr().out

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"id": "b", "sections": [{"id": "s", "subject": "math", "time_limit": 0}]}),
                   encoding="utf-8")
    assert audit.main([str(bad)]) == 2
    assert "SECTION_EMPTY" in capsys.readouterr().out

    assert audit.main([str(tmp_path / "missing.json")]) == 1


def test_main_defaults_to_sample_test(capsys):
    assert audit.main([]) == 0
    assert "sat-practice-1" in capsys.readouterr().out
