"""Quiz grading rules.

mcq questions compare the recorded option index with ``correct_option``;
short_answer questions compare case-folded, whitespace-trimmed text with
``correct_answer``. Unanswered questions are never an error: they simply
grade as incorrect.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from lms.models.quiz import Question, QuestionType


@dataclass(frozen=True)
class GradedAnswer:
    question_id: int
    answer: Optional[str]
    is_correct: bool


@dataclass(frozen=True)
class GradeResult:
    score: int
    total_questions: int
    answers: List[GradedAnswer] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return score_percentage(self.score, self.total_questions)


def score_percentage(score: int, total_questions: int) -> float:
    """Percentage derived from a raw score; 0 for a quiz without questions."""
    if total_questions <= 0:
        return 0.0
    return score / total_questions * 100.0


def normalize_answer(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()


def _option_index(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return None


def is_answer_correct(question: Question, value: Any) -> bool:
    if question.question_type == QuestionType.MCQ.value:
        selected = _option_index(value)
        return selected is not None and selected == question.correct_option
    given = normalize_answer(value)
    return bool(given) and given == normalize_answer(question.correct_answer)


def stringify_answer(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def grade_answers(questions: Sequence[Question], answers: Dict[int, Any]) -> GradeResult:
    """Grade every question of a quiz against the recorded answers."""
    graded = []
    for question in questions:
        value = answers.get(question.id)
        graded.append(
            GradedAnswer(
                question_id=question.id,
                answer=stringify_answer(value),
                is_correct=is_answer_correct(question, value),
            )
        )
    score = sum(1 for item in graded if item.is_correct)
    return GradeResult(score=score, total_questions=len(questions), answers=graded)
