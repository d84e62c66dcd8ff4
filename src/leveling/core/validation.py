"""
Error types and input validation for the leveling engine.

All validation functions follow the pattern:
1. Accept raw caller input
2. Validate against engine rules
3. Return the cleaned value or raise an AssessmentError subclass

Both error classes signal caller misuse. They are raised immediately and never
retried or absorbed inside the engine.
"""

from typing import Any


class AssessmentError(Exception):
    """Base class for leveling assessment errors."""

    pass


class InvalidArgumentError(AssessmentError):
    """Raised for out-of-range levels or malformed answer input."""

    pass


class InvalidStateError(AssessmentError):
    """Raised when an operation is not allowed in the session's current state."""

    pass


class AssessmentNotFoundError(AssessmentError):
    """Raised when an assessment id is unknown to the service."""

    pass


# ============================================================================
# Level Validation
# ============================================================================


def validate_level(level: Any, max_level: int) -> int:
    """
    Validate a 0-based difficulty level.

    Args:
        level: Raw level value
        max_level: Highest allowed level (inclusive)

    Returns:
        The level as an int

    Raises:
        InvalidArgumentError: If level is not an int in [0, max_level]
    """
    # bool is an int subclass; True must not pass as level 1
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidArgumentError(f"Level must be an integer, got {type(level).__name__}")

    if level < 0 or level > max_level:
        raise InvalidArgumentError(f"Level {level} is outside the range 0..{max_level}")

    return level


# ============================================================================
# Answer Validation
# ============================================================================


def validate_answer_flag(is_correct: Any) -> bool:
    """
    Validate a right/wrong answer flag.

    Args:
        is_correct: Raw answer outcome

    Returns:
        The flag as a bool

    Raises:
        InvalidArgumentError: If the flag is not a bool
    """
    if not isinstance(is_correct, bool):
        raise InvalidArgumentError(
            f"Answer outcome must be a boolean, got {type(is_correct).__name__}"
        )

    return is_correct
