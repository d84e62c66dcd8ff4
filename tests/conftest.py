"""
Pytest Configuration and Fixtures

Shared test fixtures for unit and API tests.
"""

from collections.abc import Callable

import pytest

from leveling.assessment import (
    AdaptiveAssessmentEngine,
    AssessmentService,
    Program,
    ProgramLevel,
    Question,
    QuestionBank,
)
from leveling.assessment.scoring import AnswerValue


@pytest.fixture
def engine() -> AdaptiveAssessmentEngine:
    """Create a leveling engine."""
    return AdaptiveAssessmentEngine()


@pytest.fixture
def sample_program() -> Program:
    """Three-level math program with one question type per level."""
    return Program(
        id="math-basic",
        name="Basic Math",
        subject="math",
        levels=[
            ProgramLevel(
                level_number=1,
                title="Number recognition",
                questions=[
                    Question(
                        id=f"L1-Q{i}",
                        text=f"Which number is {i}?",
                        question_type="multiple_choice",
                        options=[str(i), str(i + 1), str(i + 2)],
                        correct_option_index=0,
                    )
                    for i in range(1, 4)
                ],
            ),
            ProgramLevel(
                level_number=2,
                title="Addition",
                questions=[
                    Question(
                        id=f"L2-Q{i}",
                        text=f"What is {i} + {i}?",
                        question_type="one_word_answer",
                        accepted_answers=[str(i * 2)],
                        points=2,
                    )
                    for i in range(1, 4)
                ],
            ),
            ProgramLevel(
                level_number=3,
                title="Reading numbers aloud",
                questions=[
                    Question(
                        id=f"L3-Q{i}",
                        text=f"Read the number {i * 100} aloud",
                        question_type="verbal_evaluation",
                    )
                    for i in range(1, 4)
                ],
            ),
        ],
    )


@pytest.fixture
def question_bank(sample_program: Program) -> QuestionBank:
    """Question bank holding the sample program."""
    return QuestionBank([sample_program], version="test")


@pytest.fixture
def service(question_bank: QuestionBank) -> AssessmentService:
    """Assessment service with deterministic question order."""
    return AssessmentService(question_bank, seed=0)


@pytest.fixture
def answer_for() -> Callable[[Question, bool], AnswerValue]:
    """Build a right or wrong answer for any question type."""

    def _answer(question: Question, correct: bool) -> AnswerValue:
        if question.question_type == "multiple_choice":
            right = question.options[question.correct_option_index or 0]
            if correct:
                return right
            return next(option for option in question.options if option != right)
        if question.question_type == "one_word_answer":
            return question.accepted_answers[0] if correct else "not-an-answer"
        return correct

    return _answer
