"""
Assessment Module

Adaptive leveling engine, question bank, answer scoring and the program
assessment service.
"""

from .adaptive import AdaptiveAssessmentEngine
from .question_bank import Program, ProgramLevel, Question, QuestionBank, QuestionPicker
from .service import AssessmentService, ProgramAssessment
from .state import AssessmentResult, AssessmentSession, OscillationResult

__all__ = [
    "AdaptiveAssessmentEngine",
    "AssessmentResult",
    "AssessmentService",
    "AssessmentSession",
    "OscillationResult",
    "Program",
    "ProgramAssessment",
    "ProgramLevel",
    "Question",
    "QuestionBank",
    "QuestionPicker",
]
