"""
Service dependencies for FastAPI.

A single AssessmentService lives for the whole process. Tests swap it with
app.dependency_overrides[get_assessment_service].
"""

from __future__ import annotations

import logging

from leveling.assessment import AssessmentService, QuestionBank
from leveling.config import settings

logger = logging.getLogger(__name__)

_service: AssessmentService | None = None


def init_assessment_service(question_bank: QuestionBank | None = None) -> AssessmentService:
    """Build the process-wide service, loading the question bank from settings."""
    global _service

    if question_bank is None:
        if settings.QUESTION_BANK_PATH is not None:
            question_bank = QuestionBank.from_file(settings.QUESTION_BANK_PATH)
        else:
            logger.warning("QUESTION_BANK_PATH not set, starting with an empty question bank")
            question_bank = QuestionBank()

    _service = AssessmentService(
        question_bank,
        randomize=settings.RANDOMIZE_QUESTIONS,
        seed=settings.QUESTION_SEED,
    )
    return _service


def get_assessment_service() -> AssessmentService:
    """Dependency for getting the assessment service."""
    if _service is None:
        return init_assessment_service()
    return _service
