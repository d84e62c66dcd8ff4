"""
Assessment API Endpoints

Program leveling assessments: start, current question, answer submission,
forced completion and results.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from leveling.assessment import AssessmentService, ProgramAssessment
from leveling.assessment.state import AssessmentResult
from leveling.core.dependencies import get_assessment_service
from leveling.core.schemas.assessments import (
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
from leveling.core.validation import (
    AssessmentNotFoundError,
    InvalidArgumentError,
    InvalidStateError,
)

router = APIRouter()

LEVEL_CHANGE_REASONS = {
    "jump": "High performance streak - skip level",
    "promote": "Correct streak - advance level",
    "demote": "Wrong streak - go back level",
}


def _get_or_404(service: AssessmentService, assessment_id: UUID) -> ProgramAssessment:
    try:
        return service.get(assessment_id)
    except AssessmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


def _progress(assessment: ProgramAssessment) -> ProgressSchema:
    return ProgressSchema(
        total_questions=assessment.session.total_questions,
        correct_answers=assessment.session.correct_answers,
        accuracy=assessment.accuracy,
    )


def _result(result: AssessmentResult | None) -> AssessmentResultSchema | None:
    if result is None:
        return None
    return AssessmentResultSchema.model_validate(result, from_attributes=True)


def _to_schema(assessment: ProgramAssessment) -> AssessmentSchema:
    session = assessment.session
    return AssessmentSchema(
        id=assessment.id,
        student_id=assessment.student_id,
        program_id=assessment.program_id,
        subject=assessment.subject,
        status=assessment.status,
        started_at=assessment.started_at,
        completed_at=assessment.completed_at,
        current_level=session.current_level,
        level_history=list(session.level_history),
        oscillation_detected=session.last_oscillation_levels is not None,
        stop_reason=assessment.stop_reason,
        progress=_progress(assessment),
        average_time_per_question=assessment.average_time_per_question,
        level_stats=[
            LevelStatsSchema.model_validate(stats, from_attributes=True)
            for _, stats in sorted(assessment.level_stats.items())
        ],
        result=_result(assessment.result),
    )


@router.post("", response_model=AssessmentSchema, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    data: AssessmentCreate, service: AssessmentService = Depends(get_assessment_service)
) -> AssessmentSchema:
    """Start a leveling assessment for a student on a program."""
    try:
        assessment = await service.create(
            student_id=data.student_id,
            program_id=data.program_id,
            seed_level=data.seed_level,
            randomize=data.randomize_questions,
        )
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Program not found with ID: {data.program_id}",
        ) from e
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return _to_schema(assessment)


@router.get("/students/{student_id}", response_model=list[AssessmentSchema])
async def list_student_assessments(
    student_id: str, service: AssessmentService = Depends(get_assessment_service)
) -> list[AssessmentSchema]:
    """List all assessments for a student."""
    return [_to_schema(a) for a in service.list_for_student(student_id)]


@router.get("/{assessment_id}", response_model=AssessmentSchema)
async def get_assessment(
    assessment_id: UUID, service: AssessmentService = Depends(get_assessment_service)
) -> AssessmentSchema:
    """Get assessment details and results by ID."""
    return _to_schema(_get_or_404(service, assessment_id))


@router.get("/{assessment_id}/question", response_model=CurrentQuestionResponse)
async def get_current_question(
    assessment_id: UUID, service: AssessmentService = Depends(get_assessment_service)
) -> CurrentQuestionResponse:
    """Get the question to ask now, or the final result once the assessment is over."""
    assessment = _get_or_404(service, assessment_id)
    if assessment.status == "abandoned":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Assessment is not in progress",
        )

    question = await service.current_question(assessment_id)
    level = assessment.session.current_level

    return CurrentQuestionResponse(
        has_next_question=question is not None,
        question=QuestionSchema.model_validate(question) if question else None,
        current_level=level,
        level_number=assessment.picker.level_number(level),
        progress=_progress(assessment),
        stop_reason=assessment.stop_reason,
        result=_result(assessment.result),
    )


@router.post("/{assessment_id}/answers", response_model=AnswerResponse)
async def submit_answer(
    assessment_id: UUID,
    answer: AnswerSubmit,
    service: AssessmentService = Depends(get_assessment_service),
) -> AnswerResponse:
    """Submit an answer to the current question."""
    assessment = _get_or_404(service, assessment_id)

    try:
        outcome = await service.submit_answer(
            assessment_id,
            question_id=answer.question_id,
            user_answer=answer.user_answer,
            time_spent=answer.time_spent,
        )
    except InvalidStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    level_change = None
    if outcome.level_change in LEVEL_CHANGE_REASONS:
        level_change = LevelChangeSchema(
            previous_level=outcome.previous_level,
            new_level=assessment.session.level_history[-1],
            reason=LEVEL_CHANGE_REASONS[outcome.level_change],
        )

    return AnswerResponse(
        is_correct=outcome.is_correct,
        points_earned=outcome.points_earned,
        current_level=outcome.current_level,
        level_change=level_change,
        progress=_progress(assessment),
        assessment_completed=outcome.completed,
        result=_result(outcome.result),
    )


@router.post("/{assessment_id}/complete", response_model=AssessmentResultSchema)
async def complete_assessment(
    assessment_id: UUID, service: AssessmentService = Depends(get_assessment_service)
) -> AssessmentResultSchema:
    """Finish the assessment now and report the current level."""
    _get_or_404(service, assessment_id)

    try:
        result = await service.complete(assessment_id)
    except InvalidStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return AssessmentResultSchema.model_validate(result, from_attributes=True)


@router.post("/{assessment_id}/abandon", response_model=AssessmentSchema)
async def abandon_assessment(
    assessment_id: UUID, service: AssessmentService = Depends(get_assessment_service)
) -> AssessmentSchema:
    """Stop the assessment without reporting a level."""
    _get_or_404(service, assessment_id)

    try:
        assessment = await service.abandon(assessment_id)
    except InvalidStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return _to_schema(assessment)
