import pytest

from lms.models.quiz import Question
from lms.services.grading import grade_answers, is_answer_correct, score_percentage


def mcq(question_id, correct_option):
    return Question(
        id=question_id,
        question_text="?",
        question_type="mcq",
        options=["a", "b", "c", "d"],
        correct_option=correct_option,
    )


def short(question_id, correct_answer):
    return Question(id=question_id, question_text="?", question_type="short_answer", correct_answer=correct_answer)


def test_mcq_score_and_percentage():
    questions = [mcq(1, 1), mcq(2, 0), mcq(3, 2), mcq(4, 3)]
    result = grade_answers(questions, {1: 1, 2: 0, 3: 2, 4: 2})

    assert result.score == 3
    assert result.total_questions == 4
    assert result.percentage == 75.0
    assert [item.is_correct for item in result.answers] == [True, True, True, False]


def test_short_answer_is_trimmed_and_case_folded():
    assert is_answer_correct(short(1, "Paris"), " paris ")
    assert not is_answer_correct(short(1, "Paris"), "Lyon")


@pytest.mark.parametrize("value", [None, "", "   "])
def test_blank_short_answer_is_incorrect(value):
    assert not is_answer_correct(short(1, "Paris"), value)


def test_mcq_accepts_digit_strings_but_not_booleans():
    assert is_answer_correct(mcq(1, 2), "2")
    assert not is_answer_correct(mcq(1, 1), True)
    assert not is_answer_correct(mcq(1, 0), "zero")


def test_unanswered_questions_are_stored_as_missing():
    result = grade_answers([mcq(1, 0), short(2, "x")], {})

    assert result.score == 0
    assert [(item.answer, item.is_correct) for item in result.answers] == [(None, False), (None, False)]


def test_percentage_without_questions_is_zero():
    assert score_percentage(0, 0) == 0.0
