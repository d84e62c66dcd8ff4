"""
Assessment State Models

Plain-data session and result types for the adaptive leveling engine.
Sessions round-trip through model_dump()/model_validate(), which is how a
persistence layer snapshots and resumes them.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

SessionState = Literal["testing", "completed"]

LevelChange = Literal["jump", "promote", "demote", "hold"]

StopReason = Literal[
    "oscillation",
    "max_performance",
    "min_performance",
    "stable",
    "max_questions",
    "manual",
    "no_questions",
]

# Highest 0-based level; mirrored by AdaptiveAssessmentEngine.MAX_LEVEL
MAX_LEVEL = 9


class AssessmentSession(BaseModel):
    """In-memory state of one leveling assessment."""

    current_level: int = Field(default=0, ge=0, le=MAX_LEVEL)
    correct_streak: int = Field(default=0, ge=0)
    wrong_streak: int = Field(default=0, ge=0)
    high_performance_streak: int = Field(default=0, ge=0)
    level_stability_count: int = Field(default=0, ge=0)
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    level_history: list[int] = Field(default_factory=lambda: [0])
    oscillation_count: int = Field(default=0, ge=0)
    last_oscillation_levels: tuple[int, int] | None = None
    state: SessionState = "testing"

    stop_reason: StopReason | None = None
    last_change: LevelChange | None = None
    final_level: int | None = Field(default=None, ge=1, le=MAX_LEVEL + 1)

    @model_validator(mode="after")
    def check_history(self) -> "AssessmentSession":
        """Reject snapshots whose history disagrees with the counters."""
        if len(self.level_history) != self.total_questions + 1:
            raise ValueError(
                f"level_history has {len(self.level_history)} entries, "
                f"expected total_questions + 1 = {self.total_questions + 1}"
            )
        if any(level < 0 or level > MAX_LEVEL for level in self.level_history):
            raise ValueError(f"level_history entries must be within 0..{MAX_LEVEL}")
        return self

    @property
    def is_completed(self) -> bool:
        return self.state == "completed"


class OscillationResult(BaseModel):
    """A two-level back-and-forth pattern found in level history."""

    levels: tuple[int, int]
    is_same_pattern: bool


class AssessmentResult(BaseModel):
    """Outcome reported to the caller. final_level is 1-based."""

    final_level: int
    total_questions: int
    correct_answers: int
    accuracy: float = 0.0
    stop_reason: StopReason | None = None
