"""Pydantic schemas for API validation."""

from .assessments import (
    AnswerResponse,
    AnswerSubmit,
    AssessmentCreate,
    AssessmentResultSchema,
    AssessmentSchema,
    CurrentQuestionResponse,
    LevelChangeSchema,
    LevelStatsSchema,
    ProgressSchema,
    QuestionSchema,
)

__all__ = [
    # Requests
    "AssessmentCreate",
    "AnswerSubmit",
    # Responses
    "AnswerResponse",
    "AssessmentResultSchema",
    "AssessmentSchema",
    "CurrentQuestionResponse",
    "LevelChangeSchema",
    "LevelStatsSchema",
    "ProgressSchema",
    "QuestionSchema",
]
