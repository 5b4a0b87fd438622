from uuid import uuid4

import pytest

from app.services.extraction.models import ExtractedQuestion, IngestionSummary, requires_review
from app.services.extraction.question_builder import QuestionRecordBuilder


@pytest.fixture
def builder():
    return QuestionRecordBuilder()


class TestRequiresReview:
    @pytest.mark.parametrize(
        "confidence, expected",
        [(0.95, False), (0.9, False), (0.89, True), (0.0, True), (None, False)],
    )
    def test_threshold(self, confidence, expected):
        assert requires_review(confidence) is expected


def test_builds_records_in_model_order(builder, section_id):
    normalized = {
        "questions": [
            {"q_no": 2, "text": "Second", "answer_type": "true_false", "confidence": 0.99},
            {"q_no": 1, "text": "First", "answer_type": "single", "confidence": 0.5},
        ]
    }

    questions = builder.build(section_id, normalized)

    assert [q.question_number for q in questions] == [2, 1]
    assert all(q.section_id == section_id for q in questions)
    assert [q.requires_review for q in questions] == [False, True]


def test_absent_optional_fields_default_to_none(builder, section_id):
    normalized = {"questions": [{"q_no": 1, "text": "Define entropy.", "answer_type": "short_answer", "confidence": 0.8}]}

    question = builder.build(section_id, normalized)[0]

    assert question.section_label is None
    assert question.options is None
    assert question.answer_hint is None


def test_empty_strings_are_treated_as_absent(builder, section_id):
    normalized = {
        "questions": [
            {"q_no": 1, "section": "", "text": "Q", "answer_type": "single", "answer_hint": "", "confidence": 1}
        ]
    }

    question = builder.build(section_id, normalized)[0]

    assert question.section_label is None
    assert question.answer_hint is None
    assert question.confidence == 1.0


def test_keeps_options_list(builder, section_id):
    options = ["A. Paris", "B. Rome"]
    normalized = {"questions": [{"q_no": 1, "text": "Capital?", "options": options, "answer_type": "single", "confidence": 0.9}]}

    question = builder.build(section_id, normalized)[0]

    assert question.options == options
    assert question.requires_review is False


def test_non_list_options_are_dropped(builder, section_id):
    normalized = {"questions": [{"q_no": 1, "text": "Q", "options": "A, B", "answer_type": "single", "confidence": 0.9}]}

    assert builder.build(section_id, normalized)[0].options is None


@pytest.mark.parametrize("normalized", [{}, {"questions": None}, {"questions": "none"}, {"questions": {"q_no": 1}}])
def test_missing_or_malformed_questions_yield_nothing(builder, section_id, normalized):
    assert builder.build(section_id, normalized) == []


def test_empty_question_list(builder, section_id):
    assert builder.build(section_id, {"questions": []}) == []


def test_skips_non_object_elements(builder, section_id):
    normalized = {"questions": ["stray text", {"q_no": 1, "text": "Q", "answer_type": "essay", "confidence": 0.7}, 3]}

    questions = builder.build(section_id, normalized)

    assert len(questions) == 1
    assert questions[0].answer_type == "essay"


def test_unrecognized_answer_type_is_kept(builder, section_id):
    normalized = {"questions": [{"q_no": 1, "text": "Q", "answer_type": "matching", "confidence": 0.95}]}

    assert builder.build(section_id, normalized)[0].answer_type == "matching"


@pytest.mark.parametrize(
    "raw, expected",
    [("0.75", 0.75), (True, None), ("high", None), (None, None), ([0.9], None)],
)
def test_confidence_coercion(builder, section_id, raw, expected):
    normalized = {"questions": [{"q_no": 1, "text": "Q", "answer_type": "single", "confidence": raw}]}

    question = builder.build(section_id, normalized)[0]

    assert question.confidence == expected
    if expected is None:
        assert question.requires_review is False


def test_to_row_uses_column_names():
    section_id = uuid4()
    question = ExtractedQuestion(
        section_id=section_id,
        question_number=4,
        text="Q4",
        answer_type="multi",
        confidence=0.92,
        section_label="B",
        options=["x", "y"],
        answer_hint="both",
    )

    assert question.to_row() == {
        "section_id": section_id,
        "q_no": 4,
        "section_label": "B",
        "text": "Q4",
        "options": ["x", "y"],
        "answer_type": "multi",
        "answer_hint": "both",
        "confidence": 0.92,
        "requires_review": False,
    }


def test_summary_counts_review_flags(builder, section_id):
    normalized = {
        "questions": [
            {"q_no": 1, "text": "a", "answer_type": "single", "confidence": 0.95},
            {"q_no": 2, "text": "b", "answer_type": "single", "confidence": 0.9},
            {"q_no": 3, "text": "c", "answer_type": "single", "confidence": 0.2},
            {"q_no": 4, "text": "d", "answer_type": "single"},
        ]
    }

    summary = IngestionSummary.from_questions(builder.build(section_id, normalized))

    assert summary.to_dict() == {"total_questions": 4, "questions_requiring_review": 1}
