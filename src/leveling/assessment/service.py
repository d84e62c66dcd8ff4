"""
Program Assessment Service

Runs server-backed leveling assessments: serves questions from a program,
scores answers, feeds the engine and keeps per-assessment records in memory.

Each assessment has its own asyncio.Lock. Every mutating call holds it, so
concurrent requests against one assessment are applied one at a time while
different assessments never wait on each other.

Records and their locks are kept for the life of the process, including
completed and abandoned ones. There is no eviction; a deployment that
needs it should persist session snapshots and drop finished records.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from leveling.assessment.adaptive import AdaptiveAssessmentEngine
from leveling.assessment.question_bank import Question, QuestionBank, QuestionPicker
from leveling.assessment.scoring import AnswerValue, evaluate_answer, points_earned
from leveling.assessment.state import (
    AssessmentResult,
    AssessmentSession,
    LevelChange,
    StopReason,
)
from leveling.core.validation import (
    AssessmentNotFoundError,
    InvalidArgumentError,
    InvalidStateError,
)

logger = logging.getLogger(__name__)

AssessmentStatus = Literal["in_progress", "completed", "abandoned"]


@dataclass
class QuestionResponse:
    """One answered question."""

    question_id: str
    level_number: int
    user_answer: AnswerValue
    is_correct: bool
    time_spent: float
    points_earned: int
    answered_at: datetime


@dataclass
class LevelStats:
    """Running totals for one program level."""

    level_number: int
    questions_answered: int = 0
    correct_answers: int = 0
    total_points: int = 0
    time_spent: float = 0.0


@dataclass
class ProgramAssessment:
    """A student's assessment against one program."""

    student_id: str
    program_id: str
    subject: str
    session: AssessmentSession
    picker: QuestionPicker
    id: UUID = field(default_factory=uuid4)
    status: AssessmentStatus = "in_progress"
    stop_reason: StopReason | None = None
    responses: list[QuestionResponse] = field(default_factory=list)
    level_stats: dict[int, LevelStats] = field(default_factory=dict)
    current_question: Question | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    result: AssessmentResult | None = None

    @property
    def accuracy(self) -> float:
        if not self.session.total_questions:
            return 0.0
        return self.session.correct_answers / self.session.total_questions * 100

    @property
    def average_time_per_question(self) -> float:
        if not self.responses:
            return 0.0
        return sum(r.time_spent for r in self.responses) / len(self.responses)

    @property
    def duration_seconds(self) -> int:
        end = self.completed_at or datetime.now(UTC)
        return int((end - self.started_at).total_seconds())


@dataclass
class AnswerOutcome:
    """What happened after one answer was submitted."""

    is_correct: bool
    points_earned: int
    previous_level: int
    current_level: int
    level_change: LevelChange | None
    completed: bool
    result: AssessmentResult | None = None


class AssessmentService:
    """In-memory store and orchestration for program assessments."""

    def __init__(
        self,
        question_bank: QuestionBank,
        engine: AdaptiveAssessmentEngine | None = None,
        randomize: bool = True,
        seed: int | None = None,
    ):
        """Initialize the service.

        Args:
            question_bank: Programs to draw questions from
            engine: Leveling engine (a default one is created if omitted)
            randomize: Default for shuffling questions within a level
            seed: Seed for question shuffling (None for nondeterministic)
        """
        self.question_bank = question_bank
        self.engine = engine or AdaptiveAssessmentEngine()
        self.randomize = randomize
        self.seed = seed
        self._assessments: dict[UUID, ProgramAssessment] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}

    def get(self, assessment_id: UUID) -> ProgramAssessment:
        """Get an assessment by ID.

        Raises:
            AssessmentNotFoundError: If the id is unknown
        """
        assessment = self._assessments.get(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(f"Assessment not found with ID: {assessment_id}")
        return assessment

    def list_for_student(self, student_id: str) -> list[ProgramAssessment]:
        """List a student's assessments, newest first."""
        assessments = [a for a in self._assessments.values() if a.student_id == student_id]
        return sorted(assessments, key=lambda a: a.started_at, reverse=True)

    async def create(
        self,
        student_id: str,
        program_id: str,
        seed_level: int = 0,
        randomize: bool | None = None,
    ) -> ProgramAssessment:
        """Start a new assessment.

        Raises:
            KeyError: If program_id is not in the question bank
            InvalidArgumentError: If seed_level is out of range
        """
        program = self.question_bank.get_program(program_id)
        session = self.engine.start(seed_level)
        picker = QuestionPicker(
            program,
            randomize=self.randomize if randomize is None else randomize,
            seed=self.seed,
        )

        assessment = ProgramAssessment(
            student_id=student_id,
            program_id=program.id,
            subject=program.subject,
            session=session,
            picker=picker,
        )
        self._assessments[assessment.id] = assessment
        self._locks[assessment.id] = asyncio.Lock()

        logger.info(
            f"Created assessment {assessment.id} for student {student_id} "
            f"on program {program.id} at level {seed_level}"
        )
        return assessment

    async def current_question(self, assessment_id: UUID) -> Question | None:
        """Get the question the student should answer now.

        Repeated calls return the same question until it is answered. If the
        current level has no questions, the assessment is completed.

        Returns:
            Current question, or None once the assessment is over
        """
        assessment = self.get(assessment_id)
        async with self._locks[assessment_id]:
            if assessment.status != "in_progress":
                return None

            if assessment.current_question is None:
                level = assessment.session.current_level
                assessment.current_question = assessment.picker.next_question(level)
                if assessment.current_question is None:
                    logger.warning(
                        f"Assessment {assessment_id}: no questions at level {level}, completing"
                    )
                    self._complete(assessment, reason="no_questions")

            return assessment.current_question

    async def submit_answer(
        self,
        assessment_id: UUID,
        question_id: str,
        user_answer: AnswerValue | None,
        time_spent: float = 0.0,
    ) -> AnswerOutcome:
        """Score an answer and advance the engine.

        Raises:
            InvalidStateError: If the assessment is not in progress
            InvalidArgumentError: If question_id is not the current question,
                or the answer is malformed
        """
        assessment = self.get(assessment_id)
        async with self._locks[assessment_id]:
            if assessment.status != "in_progress":
                raise InvalidStateError(f"Cannot submit answers to {assessment.status} assessment")

            question = assessment.current_question
            if question is None or question.id != question_id:
                raise InvalidArgumentError("Invalid question ID for current state")

            if time_spent < 0:
                raise InvalidArgumentError("time_spent cannot be negative")

            is_correct = evaluate_answer(question, user_answer)
            points = points_earned(question, is_correct)

            session = assessment.session
            previous_level = session.current_level
            level_number = assessment.picker.level_number(previous_level)
            self.engine.submit_answer(session, is_correct)

            assessment.responses.append(
                QuestionResponse(
                    question_id=question.id,
                    level_number=level_number,
                    user_answer=user_answer,
                    is_correct=is_correct,
                    time_spent=time_spent,
                    points_earned=points,
                    answered_at=datetime.now(UTC),
                )
            )
            stats = assessment.level_stats.setdefault(level_number, LevelStats(level_number))
            stats.questions_answered += 1
            stats.time_spent += time_spent
            stats.total_points += points
            if is_correct:
                stats.correct_answers += 1

            assessment.current_question = None

            if session.is_completed:
                self._complete(assessment)

            return AnswerOutcome(
                is_correct=is_correct,
                points_earned=points,
                previous_level=previous_level,
                current_level=session.current_level,
                level_change=session.last_change,
                completed=assessment.status == "completed",
                result=assessment.result,
            )

    async def complete(self, assessment_id: UUID) -> AssessmentResult:
        """Force completion ("complete test now"). Idempotent.

        Raises:
            InvalidStateError: If the assessment was abandoned
        """
        assessment = self.get(assessment_id)
        async with self._locks[assessment_id]:
            if assessment.status == "abandoned":
                raise InvalidStateError("Cannot complete an abandoned assessment")
            if assessment.result is None:
                self._complete(assessment)
            assert assessment.result is not None
            return assessment.result

    async def abandon(self, assessment_id: UUID) -> ProgramAssessment:
        """Mark an in-progress assessment abandoned.

        Raises:
            InvalidStateError: If the assessment already completed
        """
        assessment = self.get(assessment_id)
        async with self._locks[assessment_id]:
            if assessment.status == "completed":
                raise InvalidStateError("Cannot abandon a completed assessment")
            assessment.status = "abandoned"
            assessment.current_question = None
            assessment.completed_at = assessment.completed_at or datetime.now(UTC)
            logger.info(f"Assessment {assessment_id} abandoned")
            return assessment

    def _complete(self, assessment: ProgramAssessment, reason: StopReason = "manual") -> None:
        """Finalize the engine session and the assessment record. Caller holds the lock."""
        assessment.result = self.engine.complete(assessment.session, reason)
        assessment.status = "completed"
        assessment.stop_reason = assessment.result.stop_reason
        assessment.current_question = None
        assessment.completed_at = datetime.now(UTC)

        logger.info(
            f"Assessment {assessment.id} completed at level {assessment.result.final_level} "
            f"({assessment.stop_reason})"
        )
