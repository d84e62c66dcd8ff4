"""
Adaptive Leveling Engine

Decides, answer by answer, which difficulty level a student sees next and
when the assessment stops:
- Two correct in a row → up one level
- Two wrong in a row → down one level
- Three correct in a row at level 6+ → jump two levels
- Stop on stability, top/floor performance, oscillation, or 35 questions

Levels are 0-based internally (0..9) and reported 1-based (1..10).
"""

from __future__ import annotations

import logging

from leveling.assessment.state import (
    AssessmentResult,
    AssessmentSession,
    LevelChange,
    OscillationResult,
    StopReason,
)
from leveling.core.validation import (
    InvalidStateError,
    validate_answer_flag,
    validate_level,
)

logger = logging.getLogger(__name__)


class AdaptiveAssessmentEngine:
    """Pure state-transition logic for leveling assessments.

    The engine holds no per-session state. Every operation takes the session
    it acts on, so one engine instance can serve any number of independent
    sessions. Callers sharing a session across requests must serialize
    updates to it themselves.
    """

    # Levels 0..MAX_LEVEL
    MAX_LEVEL = 9

    # High-performance jump
    HIGH_LEVEL_THRESHOLD = 6
    HIGH_PERFORMANCE_STREAK = 3
    LEVEL_JUMP = 2

    # Regular promotion/demotion
    PROMOTE_STREAK = 2
    DEMOTE_STREAK = 2

    # Stop conditions
    STABILITY_STOP = 4
    STABILITY_MIN_QUESTIONS = 12
    MAX_PERFORMANCE_STREAK = 2
    MAX_PERFORMANCE_MIN_QUESTIONS = 15
    MIN_PERFORMANCE_STREAK = 4
    MIN_PERFORMANCE_MIN_QUESTIONS = 10
    OSCILLATION_STOP = 2
    OSCILLATION_MIN_QUESTIONS = 12
    MAX_QUESTIONS = 35

    # History entries inspected for oscillation
    OSCILLATION_WINDOW = 6

    def start(self, seed_level: int = 0) -> AssessmentSession:
        """Create a fresh session.

        Args:
            seed_level: Starting 0-based level (non-zero for resumed programs)

        Returns:
            New session in the testing state

        Raises:
            InvalidArgumentError: If seed_level is outside 0..MAX_LEVEL
        """
        level = validate_level(seed_level, self.MAX_LEVEL)
        return AssessmentSession(current_level=level, level_history=[level])

    def submit_answer(self, session: AssessmentSession, is_correct: bool) -> AssessmentSession:
        """Apply one answer to the session.

        Order matters: streaks and the question count are updated first, the
        level decision reads the updated streaks, then history, oscillation and
        stop checks run on the result.

        Args:
            session: Session to update (mutated in place)
            is_correct: Whether the student answered correctly

        Returns:
            The same session object

        Raises:
            InvalidStateError: If the session is already completed
            InvalidArgumentError: If is_correct is not a bool
        """
        if session.is_completed:
            raise InvalidStateError("Cannot submit answers to a completed assessment")

        is_correct = validate_answer_flag(is_correct)

        # 1. Streaks
        if is_correct:
            session.correct_streak += 1
            session.wrong_streak = 0
            session.correct_answers += 1
            if session.current_level >= self.HIGH_LEVEL_THRESHOLD:
                session.high_performance_streak += 1
        else:
            session.wrong_streak += 1
            session.correct_streak = 0
            session.high_performance_streak = 0

        # 2. Question count
        session.total_questions += 1

        # 3. Level decision
        previous_level = session.current_level
        session.last_change = self._apply_level_change(session)
        if session.current_level == previous_level:
            session.level_stability_count += 1
        else:
            logger.debug(
                f"Level {previous_level} -> {session.current_level} "
                f"({session.last_change}) after question {session.total_questions}"
            )

        # 4. History
        session.level_history.append(session.current_level)

        # 5. Oscillation
        oscillation = self.detect_oscillation(
            session.level_history, session.last_oscillation_levels
        )
        if oscillation:
            if oscillation.is_same_pattern:
                session.oscillation_count += 1
            else:
                session.oscillation_count = 1
                session.last_oscillation_levels = oscillation.levels

        # 6. Stop check
        reason = self.stop_reason(session)
        if reason:
            self._finish(session, reason)

        return session

    def _apply_level_change(self, session: AssessmentSession) -> LevelChange:
        """Run the first-match-wins level rules.

        Returns:
            Which rule fired, or "hold" if none did
        """
        level = session.current_level

        if (
            session.high_performance_streak >= self.HIGH_PERFORMANCE_STREAK
            and self.HIGH_LEVEL_THRESHOLD <= level < self.MAX_LEVEL
        ):
            # Clamp: a jump from MAX_LEVEL - 1 lands on MAX_LEVEL
            session.current_level = min(level + self.LEVEL_JUMP, self.MAX_LEVEL)
            session.correct_streak = 0
            session.high_performance_streak = 0
            session.level_stability_count = 0
            return "jump"

        if session.correct_streak >= self.PROMOTE_STREAK and level < self.MAX_LEVEL:
            session.current_level = level + 1
            session.correct_streak = 0
            session.level_stability_count = 0
            return "promote"

        if session.wrong_streak >= self.DEMOTE_STREAK and level > 0:
            session.current_level = level - 1
            session.wrong_streak = 0
            session.level_stability_count = 0
            return "demote"

        return "hold"

    def detect_oscillation(
        self, history: list[int], last_levels: tuple[int, int] | None
    ) -> OscillationResult | None:
        """Look for an A-B-A-B pattern at the end of the level history.

        Args:
            history: Full level history (seed first)
            last_levels: (low, high) of the previously detected pattern

        Returns:
            Detected pattern, or None if the tail does not oscillate
        """
        if len(history) < 4:
            return None

        recent = history[-self.OSCILLATION_WINDOW :]

        # A-B-A-B on the last four entries
        if recent[-4] == recent[-2] and recent[-3] == recent[-1] and recent[-4] != recent[-3]:
            levels = (min(recent[-4], recent[-3]), max(recent[-4], recent[-3]))
            return OscillationResult(levels=levels, is_same_pattern=levels == last_levels)

        # A-B-A-B-A-B on the last six entries, always counted as a repeat
        if (
            len(recent) >= 6
            and recent[-6] == recent[-4] == recent[-2]
            and recent[-5] == recent[-3] == recent[-1]
            and recent[-6] != recent[-5]
        ):
            levels = (min(recent[-6], recent[-5]), max(recent[-6], recent[-5]))
            return OscillationResult(levels=levels, is_same_pattern=True)

        return None

    def _oscillation_stop(self, session: AssessmentSession) -> bool:
        return (
            session.oscillation_count >= self.OSCILLATION_STOP
            and session.total_questions >= self.OSCILLATION_MIN_QUESTIONS
        )

    def stop_reason(self, session: AssessmentSession) -> StopReason | None:
        """Check the stop conditions against the updated session.

        When several conditions hold at once, oscillation is reported first
        because it is the only one that changes the reported level.

        Returns:
            Reason the assessment should stop, or None to continue
        """
        total = session.total_questions

        if self._oscillation_stop(session):
            return "oscillation"

        if (
            session.current_level == self.MAX_LEVEL
            and session.correct_streak >= self.MAX_PERFORMANCE_STREAK
            and total >= self.MAX_PERFORMANCE_MIN_QUESTIONS
        ):
            return "max_performance"

        if (
            session.wrong_streak >= self.MIN_PERFORMANCE_STREAK
            and session.current_level == 0
            and total >= self.MIN_PERFORMANCE_MIN_QUESTIONS
        ):
            return "min_performance"

        if (
            session.level_stability_count >= self.STABILITY_STOP
            and total >= self.STABILITY_MIN_QUESTIONS
        ):
            return "stable"

        if total >= self.MAX_QUESTIONS:
            return "max_questions"

        return None

    def _finish(
        self, session: AssessmentSession, reason: StopReason, collapse: bool = True
    ) -> None:
        """Mark the session completed, collapsing an oscillation to its lower level."""
        if collapse and reason == "oscillation" and session.last_oscillation_levels:
            low = session.last_oscillation_levels[0]
            logger.debug(
                f"Oscillation between {session.last_oscillation_levels}; reporting level {low}"
            )
            session.current_level = low

        session.state = "completed"
        session.stop_reason = reason
        session.final_level = session.current_level + 1

        logger.info(
            f"Assessment completed: level {session.final_level} after "
            f"{session.total_questions} questions ({reason})"
        )

    def complete(
        self, session: AssessmentSession, reason: StopReason = "manual"
    ) -> AssessmentResult:
        """Report the result, force-completing a session still in testing.

        Forced completion never applies the oscillation correction. Calling
        this again on a completed session returns the same result and ignores
        reason.

        Args:
            session: Session to report on
            reason: Stop reason recorded if the session is still testing

        Returns:
            Final 1-based level with question counts
        """
        if not session.is_completed:
            self._finish(session, reason, collapse=False)

        accuracy = (
            session.correct_answers / session.total_questions * 100
            if session.total_questions
            else 0.0
        )

        return AssessmentResult(
            final_level=session.current_level + 1,
            total_questions=session.total_questions,
            correct_answers=session.correct_answers,
            accuracy=accuracy,
            stop_reason=session.stop_reason,
        )
