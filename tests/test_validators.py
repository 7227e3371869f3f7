from __future__ import annotations

import copy

from sat_core import loader
from sat_core.types import Question, QuestionOption, Section, StudentAnswer
from sat_core.validators import validate_question, validate_test, validate_test_attempt

from tests.conftest import build_full_test, build_two_question_test, grid_in, mcq, submitted


def _codes(res) -> list[str]:
    return [e.code for e in res.errors]


def test_well_formed_tests_are_valid():
    for test in (build_two_question_test(), build_full_test()):
        res = validate_test(test)
        assert res.valid, res.errors
        assert res.errors == []


def test_section_without_questions_is_rejected():
    test = build_two_question_test()
    test.sections.append(Section(id="empty", subject="reading", time_limit=300, questions=[]))

    res = validate_test(test)
    assert not res.valid
    empty = [e for e in res.errors if e.code == "SECTION_EMPTY"]
    assert len(empty) == 1
    assert empty[0].ref == "empty"
    assert "has no questions" in empty[0].message


def test_all_problems_reported_in_one_pass():
    test = build_two_question_test()
    test.sections[0].time_limit = 0
    test.sections[0].questions.append(mcq("Q1", "A"))
    test.sections[0].questions.append(grid_in("Q3", "about half"))
    test.sections.append(Section(id="s2", subject="math", time_limit=-5))

    codes = _codes(validate_test(test))
    assert "INVALID_TIME_LIMIT" in codes
    assert "DUPLICATE_QUESTION_ID" in codes
    assert "INVALID_CORRECT_ANSWER" in codes
    assert "SECTION_EMPTY" in codes
    assert codes.count("INVALID_TIME_LIMIT") == 2


def test_duplicate_question_ids_across_sections():
    test = build_full_test()
    test.sections[1].questions[0].id = "rw1"
    res = validate_test(test)
    dup = [e for e in res.errors if e.code == "DUPLICATE_QUESTION_ID"]
    assert [e.ref for e in dup] == ["rw1"]


def test_test_without_sections():
    test = build_two_question_test()
    test.sections = []
    assert _codes(validate_test(test)) == ["TEST_NO_SECTIONS"]


def test_question_answer_key_checks():
    missing = Question(id="q", type="grid-in")
    assert "MISSING_CORRECT_ANSWER" in _codes(validate_question(missing))

    not_an_option = mcq("q", "E")
    assert "INVALID_CORRECT_ANSWER" in _codes(validate_question(not_an_option))

    essay = Question(id="e", type="essay", correct_answer="  ")
    assert "MISSING_CORRECT_ANSWER" in _codes(validate_question(essay))

    unknown = Question(id="u", type="matching", correct_answer="x")  # type: ignore[arg-type]
    assert _codes(validate_question(unknown)) == ["INVALID_TYPE"]


def test_multiple_choice_option_rules():
    q = mcq("q", "A")
    q.options = [QuestionOption(id="A", is_correct=True)]
    assert "INSUFFICIENT_OPTIONS" in _codes(validate_question(q))

    q = mcq("q", "A")
    q.options = [QuestionOption(id=x) for x in "AABCDE"]
    codes = _codes(validate_question(q))
    assert "TOO_MANY_OPTIONS" in codes
    assert "DUPLICATE_OPTION_IDS" in codes

    q = mcq("q", "A")
    q.options[0].is_correct = True
    q.options[1].is_correct = True
    assert "INVALID_CORRECT_ANSWER_COUNT" in _codes(validate_question(q))


def test_points_range():
    assert "INVALID_RANGE" in _codes(validate_question(mcq("q", "A", points=-1)))
    assert "INVALID_RANGE" in _codes(validate_question(mcq("q", "A", points=11)))
    assert validate_question(mcq("q", "A", points=0)).valid


def test_scale_table_shape():
    test = build_two_question_test()
    test.sections[0].scale_table = [200, 500, 800]
    assert validate_test(test).valid

    test.sections[0].scale_table = [200, 800]
    assert "SCALE_TABLE_LENGTH" in _codes(validate_test(test))

    test.sections[0].scale_table = [200, 800, 700]
    assert "SCALE_TABLE_ORDER" in _codes(validate_test(test))


def test_scale_table_entries_must_be_numbers():
    test = build_two_question_test()
    for table in ([200, None, 800], [200, "500", 800], "200-800"):
        test.sections[0].scale_table = table
        res = validate_test(test)
        assert "INVALID_VALUE" in _codes(res)
        assert [e.field for e in res.errors] == ["sections[0].scale_table"]


def test_wrongly_typed_fields_are_reported_not_raised():
    payload = {
        "id": "t1",
        "sections": [{
            "id": "s1",
            "subject": "math",
            "time_limit": 600,
            "scale_table": [200, None],
            "questions": [
                {"id": "Q1", "type": "grid-in", "correct_answer": "1/2", "estimated_time": "5"},
            ],
        }],
    }
    res = validate_test(loader.test_from_dict(payload))
    assert sorted(_codes(res)) == ["INVALID_VALUE", "INVALID_VALUE"]
    assert {e.field for e in res.errors} == {
        "sections[0].questions[0].estimated_time", "sections[0].scale_table",
    }

    q = mcq("q", "A")
    q.points = "2"
    assert "INVALID_RANGE" in _codes(validate_question(q))
    test = build_two_question_test()
    test.sections[0].time_limit = "600"
    test.sections[0].questions[0].points = None
    test.sections[0].scale_table = [200, 500, 800]
    codes = _codes(validate_test(test))
    assert "INVALID_TIME_LIMIT" in codes
    assert "INVALID_RANGE" in codes
    assert "SCALE_TABLE_LENGTH" not in codes


def test_attempt_times_must_be_numbers(two_question_test):
    attempt = submitted(two_question_test, [("Q1", "B")])
    attempt.answers[0].time_spent = "30"
    attempt.total_time_spent = None
    res = validate_test_attempt(two_question_test, attempt)
    assert _codes(res) == ["INVALID_VALUE", "INVALID_VALUE"]


def test_validate_test_does_not_mutate_input():
    test = build_full_test()
    before = copy.deepcopy(test)
    validate_test(test)
    assert test == before


def test_valid_attempt_and_idempotence(two_question_test):
    attempt = submitted(two_question_test, [("Q1", "b"), ("Q2", "0.50")])
    first = validate_test_attempt(two_question_test, attempt)
    second = validate_test_attempt(two_question_test, attempt)
    assert first.valid and first.errors == []
    assert second.valid and second.errors == []


def test_partial_attempt_is_valid(two_question_test):
    attempt = submitted(two_question_test, [("Q1", "B")])
    assert validate_test_attempt(two_question_test, attempt).valid


def test_duplicate_answer_is_rejected(two_question_test):
    attempt = submitted(two_question_test, [("Q1", "B"), ("Q1", "C"), ("Q2", "1/2")])
    res = validate_test_attempt(two_question_test, attempt)
    assert not res.valid
    dup = [e for e in res.errors if e.code == "DUPLICATE_ANSWER"]
    assert len(dup) == 1
    assert dup[0].ref == "Q1"


def test_attempt_consistency_errors_accumulate(two_question_test):
    attempt = submitted(two_question_test, [("Q9", "B"), ("", "A")], status="in-progress")
    attempt.test_id = "other"
    attempt.answers.append(StudentAnswer(question_id="Q1", value="B", time_spent=-3))

    res = validate_test_attempt(two_question_test, attempt)
    codes = _codes(res)
    assert "TEST_MISMATCH" in codes
    assert "NOT_SUBMITTED" in codes
    assert "UNKNOWN_QUESTION" in codes
    assert "REQUIRED" in codes
    assert "INVALID_VALUE" in codes
    unknown = [e for e in res.errors if e.code == "UNKNOWN_QUESTION"]
    assert unknown[0].ref == "Q9"


def test_unrecognised_status(two_question_test):
    attempt = submitted(two_question_test, [("Q1", "B")], status="finished")
    assert _codes(validate_test_attempt(two_question_test, attempt)) == ["INVALID_STATUS"]
