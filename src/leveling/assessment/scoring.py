"""
Answer Scoring

Turns a raw student answer into the right/wrong flag the engine consumes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from leveling.core.validation import InvalidArgumentError

if TYPE_CHECKING:
    from leveling.assessment.question_bank import Question

AnswerValue = str | int | bool


def evaluate_answer(question: Question, user_answer: AnswerValue | None) -> bool:
    """Decide whether an answer is correct.

    Rules by question type:
    - multiple_choice: a str answer must equal the correct option text
      exactly; an int answer is a 0-based option index. JSON "2" and 2
      are therefore different answers when options are numerals.
    - one_word_answer: case-insensitive, trimmed match with any accepted answer
    - verbal_evaluation: the assessor's bool judgement

    Args:
        question: Question being answered
        user_answer: Raw answer

    Returns:
        True if correct

    Raises:
        InvalidArgumentError: If the answer is missing or has the wrong shape
    """
    if user_answer is None:
        raise InvalidArgumentError("Answer cannot be empty")

    if question.question_type == "multiple_choice":
        # Question validation guarantees the answer key is a valid option index
        correct = question.options[question.correct_option_index or 0]
        if isinstance(user_answer, bool):
            raise InvalidArgumentError("Multiple choice answer must be an option or index")
        if isinstance(user_answer, int):
            if not 0 <= user_answer < len(question.options):
                raise InvalidArgumentError(f"Option index {user_answer} out of range")
            return question.options[user_answer] == correct
        return user_answer == correct

    if question.question_type == "one_word_answer":
        answer = str(user_answer).lower().strip()
        return any(accepted.lower().strip() == answer for accepted in question.accepted_answers)

    # verbal_evaluation
    if not isinstance(user_answer, bool):
        raise InvalidArgumentError("Verbal evaluation answer must be true or false")
    return user_answer


def points_earned(question: Question, is_correct: bool) -> int:
    return question.points if is_correct else 0
