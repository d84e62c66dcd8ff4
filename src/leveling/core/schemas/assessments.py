"""
Assessment Pydantic Schemas

Request/response models for assessment API endpoints.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# Request schemas
class AssessmentCreate(BaseModel):
    """Request schema for starting an assessment."""

    student_id: str = Field(min_length=1)
    program_id: str = Field(min_length=1)
    seed_level: int = Field(default=0, description="0-based starting level")
    randomize_questions: bool | None = None


class AnswerSubmit(BaseModel):
    """Request schema for submitting an answer."""

    question_id: str
    user_answer: bool | int | str | None = Field(
        default=None,
        description=(
            "Option text (string) or 0-based option index (integer) for multiple choice, "
            "text for one-word answers, true/false for verbal evaluation"
        ),
    )
    time_spent: float = Field(default=0.0, ge=0)


# Response schemas
class QuestionSchema(BaseModel):
    """Question shown to the student (no answer key)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    question_type: str
    options: list[str] = []
    points: int


class ProgressSchema(BaseModel):
    """Running totals for an assessment."""

    total_questions: int
    correct_answers: int
    accuracy: float


class AssessmentResultSchema(BaseModel):
    """Final result. final_level is 1-based."""

    model_config = ConfigDict(from_attributes=True)

    final_level: int
    total_questions: int
    correct_answers: int
    accuracy: float
    stop_reason: str | None = None


class CurrentQuestionResponse(BaseModel):
    """Response for the current-question endpoint."""

    has_next_question: bool
    question: QuestionSchema | None = None
    current_level: int
    level_number: int
    progress: ProgressSchema
    stop_reason: str | None = None
    result: AssessmentResultSchema | None = None


class LevelChangeSchema(BaseModel):
    previous_level: int
    new_level: int
    reason: str


class AnswerResponse(BaseModel):
    """Response after submitting an answer."""

    is_correct: bool
    points_earned: int
    current_level: int
    level_change: LevelChangeSchema | None = None
    progress: ProgressSchema
    assessment_completed: bool = False
    result: AssessmentResultSchema | None = None


class LevelStatsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level_number: int
    questions_answered: int
    correct_answers: int
    total_points: int
    time_spent: float


class AssessmentSchema(BaseModel):
    """Assessment summary."""

    id: UUID
    student_id: str
    program_id: str
    subject: str
    status: str
    started_at: datetime
    completed_at: datetime | None = None
    current_level: int
    level_history: list[int]
    oscillation_detected: bool
    stop_reason: str | None = None
    progress: ProgressSchema
    average_time_per_question: float
    level_stats: list[LevelStatsSchema] = []
    result: AssessmentResultSchema | None = None
