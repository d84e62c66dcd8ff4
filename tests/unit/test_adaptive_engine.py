"""
Unit Tests for the Adaptive Leveling Engine

Covers level changes, rule precedence, stop conditions, oscillation handling
and forced completion.
"""

import random

import pytest
from pydantic import ValidationError

from leveling.assessment import AdaptiveAssessmentEngine, AssessmentSession
from leveling.core.validation import InvalidArgumentError, InvalidStateError


def play(engine: AdaptiveAssessmentEngine, session: AssessmentSession, answers: str) -> None:
    """Submit answers written as a string of C (correct) and W (wrong)."""
    for answer in answers:
        engine.submit_answer(session, answer == "C")


def resumed_session(history: list[int], **fields) -> AssessmentSession:
    """Rebuild a session from a snapshot ending at the last history entry."""
    return AssessmentSession(
        current_level=history[-1],
        level_history=history,
        total_questions=len(history) - 1,
        **fields,
    )


# ============================================================================
# Session Start
# ============================================================================


class TestStart:
    """Tests for starting a session."""

    def test_default_seed(self, engine):
        """New session starts at level 0 with a one-entry history."""
        session = engine.start()

        assert session.current_level == 0
        assert session.level_history == [0]
        assert session.state == "testing"
        assert session.total_questions == 0
        assert session.correct_answers == 0
        assert session.oscillation_count == 0
        assert session.last_oscillation_levels is None

    def test_custom_seed(self, engine):
        """Resumed programs can start at a higher level."""
        session = engine.start(5)

        assert session.current_level == 5
        assert session.level_history == [5]

    @pytest.mark.parametrize("seed", [-1, 10, True, "3", 2.0, None])
    def test_reject_invalid_seed(self, engine, seed):
        """Seed must be an int within 0..9."""
        with pytest.raises(InvalidArgumentError):
            engine.start(seed)


# ============================================================================
# Level Changes
# ============================================================================


class TestLevelChanges:
    """Tests for the ordered level-change rules."""

    def test_two_correct_promotes(self, engine):
        """Two correct answers move up one level and reset the correct streak."""
        session = engine.start(0)

        play(engine, session, "C")
        assert session.current_level == 0
        assert session.correct_streak == 1
        assert session.level_stability_count == 1

        play(engine, session, "C")
        assert session.current_level == 1
        assert session.correct_streak == 0
        assert session.level_stability_count == 0
        assert session.last_change == "promote"

    def test_two_wrong_demotes(self, engine):
        """Two wrong answers move down one level and reset the wrong streak."""
        session = engine.start(3)

        play(engine, session, "WW")

        assert session.current_level == 2
        assert session.wrong_streak == 0
        assert session.last_change == "demote"

    def test_high_performance_jump(self, engine):
        """Third correct answer at level 6+ jumps two levels."""
        session = engine.start(6)

        play(engine, session, "CC")
        assert session.current_level == 7
        assert session.high_performance_streak == 2

        play(engine, session, "C")
        assert session.current_level == 9
        assert session.last_change == "jump"
        assert session.high_performance_streak == 0
        assert session.correct_streak == 0
        assert session.level_history == [6, 6, 7, 9]

    def test_jump_beats_promotion(self, engine):
        """When both the jump and promotion trigger, only the jump applies."""
        session = resumed_session(
            [6, 6],
            correct_streak=1,
            high_performance_streak=2,
            correct_answers=1,
        )

        engine.submit_answer(session, True)

        assert session.current_level == 8
        assert session.last_change == "jump"

    def test_jump_from_level_8_stops_at_top(self, engine):
        """A jump from level 8 lands on level 9, never past it."""
        session = engine.start(8)

        # 8 -> 7 (hps reset) -> 8 with hps 2 -> jump
        play(engine, session, "WWCCC")

        assert session.level_history == [8, 8, 7, 7, 8, 9]
        assert session.current_level == 9
        assert session.last_change == "jump"

    def test_top_level_blocks_promotion(self, engine):
        """At level 9 correct streaks keep growing and count as stable answers."""
        session = engine.start(9)

        play(engine, session, "CCC")

        assert session.current_level == 9
        assert session.correct_streak == 3
        assert session.high_performance_streak == 3
        assert session.level_stability_count == 3
        assert session.last_change == "hold"

    def test_floor_blocks_demotion(self, engine):
        """At level 0 wrong streaks keep growing and count as stable answers."""
        session = engine.start(0)

        play(engine, session, "WW")

        assert session.current_level == 0
        assert session.wrong_streak == 2
        assert session.level_stability_count == 2

    def test_stability_resets_on_level_change(self, engine):
        """Stability counts answers since the last level change."""
        session = engine.start(0)

        play(engine, session, "CWC")
        assert session.level_stability_count == 3

        play(engine, session, "C")
        assert session.current_level == 1
        assert session.level_stability_count == 0

    def test_wrong_answer_resets_high_performance_streak(self, engine):
        """A wrong answer clears the high-performance streak."""
        session = engine.start(6)

        play(engine, session, "C")
        assert session.high_performance_streak == 1

        play(engine, session, "W")
        assert session.high_performance_streak == 0

    def test_high_performance_not_counted_below_level_6(self, engine):
        """Correct answers below level 6 do not build the high-performance streak."""
        session = engine.start(5)

        play(engine, session, "C")

        assert session.high_performance_streak == 0


# ============================================================================
# Invariants
# ============================================================================


class TestInvariants:
    """Properties that hold for any answer sequence."""

    @pytest.mark.parametrize("seed", range(50))
    def test_random_sequences(self, engine, seed):
        """Bounds, history length, streak exclusivity and the question ceiling."""
        rng = random.Random(seed)
        session = engine.start(rng.randint(0, engine.MAX_LEVEL))
        p_correct = rng.random()

        while not session.is_completed:
            before = session.total_questions
            engine.submit_answer(session, rng.random() < p_correct)

            assert 0 <= session.current_level <= engine.MAX_LEVEL
            assert len(session.level_history) == session.total_questions + 1
            assert min(session.correct_streak, session.wrong_streak) == 0
            assert session.total_questions == before + 1

        assert session.total_questions <= engine.MAX_QUESTIONS
        assert session.final_level == session.current_level + 1

    def test_sessions_are_independent(self, engine):
        """One engine serves many sessions without sharing state."""
        first = engine.start(0)
        second = engine.start(4)

        play(engine, first, "CC")
        play(engine, second, "WW")

        assert first.current_level == 1
        assert second.current_level == 3
        assert first.level_history == [0, 0, 1]
        assert second.level_history == [4, 4, 3]


# ============================================================================
# Stop Conditions
# ============================================================================


class TestStopConditions:
    """Tests for automatic completion."""

    def test_max_performance(self, engine):
        """All-correct student climbs to the top and stops at question 17."""
        session = engine.start(0)

        play(engine, session, "C" * 16)
        assert session.state == "testing"
        assert session.current_level == 9

        play(engine, session, "C")
        assert session.state == "completed"
        assert session.stop_reason == "max_performance"
        assert session.total_questions == 17

        result = engine.complete(session)
        assert result.final_level == 10
        assert result.correct_answers == 17

    def test_min_performance(self, engine):
        """All-wrong student at the floor stops at question 10 with level 1."""
        session = engine.start(0)

        play(engine, session, "W" * 9)
        assert session.state == "testing"

        play(engine, session, "W")
        assert session.state == "completed"
        assert session.stop_reason == "min_performance"

        result = engine.complete(session)
        assert result.final_level == 1
        assert result.total_questions == 10
        assert result.correct_answers == 0

    def test_stable_level(self, engine):
        """Alternating answers hold the level and stop at question 12."""
        session = engine.start(3)

        play(engine, session, "CW" * 5 + "C")
        assert session.state == "testing"
        assert session.level_stability_count == 11

        play(engine, session, "W")
        assert session.state == "completed"
        assert session.stop_reason == "stable"
        assert engine.complete(session).final_level == 4

    def test_hard_ceiling(self, engine):
        """Up-down bouncing never stabilizes and stops at question 35."""
        session = engine.start(0)
        answers = ("CCWW" * 9)[:35]

        play(engine, session, answers[:34])
        assert session.state == "testing"
        assert session.level_stability_count <= 1
        assert session.oscillation_count == 0

        play(engine, session, answers[34])
        assert session.state == "completed"
        assert session.stop_reason == "max_questions"
        assert engine.complete(session).final_level == 2

    def test_completed_session_rejects_answers(self, engine):
        """Answers after completion raise InvalidStateError."""
        session = engine.start(0)
        play(engine, session, "W" * 10)

        with pytest.raises(InvalidStateError):
            engine.submit_answer(session, True)

        assert session.total_questions == 10

    @pytest.mark.parametrize("flag", ["yes", 1, None])
    def test_malformed_answer(self, engine, flag):
        """Only bools are accepted as answer outcomes."""
        session = engine.start(0)

        with pytest.raises(InvalidArgumentError):
            engine.submit_answer(session, flag)

        assert session.total_questions == 0


# ============================================================================
# Oscillation
# ============================================================================


class TestOscillationDetection:
    """Tests for the oscillation pattern detector."""

    def test_too_short(self, engine):
        """Fewer than four entries never oscillate."""
        assert engine.detect_oscillation([0, 1, 0], None) is None

    def test_new_pattern(self, engine):
        """A-B-A-B is detected as a new pattern when nothing was recorded."""
        result = engine.detect_oscillation([0, 1, 0, 1], None)

        assert result is not None
        assert result.levels == (0, 1)
        assert result.is_same_pattern is False

    def test_repeat_pattern(self, engine):
        """The same two levels again count as a repeat."""
        result = engine.detect_oscillation([5, 5, 2, 1, 2, 1], (1, 2))

        assert result is not None
        assert result.levels == (1, 2)
        assert result.is_same_pattern is True

    def test_different_pattern(self, engine):
        """Different levels replace the recorded pattern."""
        result = engine.detect_oscillation([3, 4, 3, 4], (1, 2))

        assert result is not None
        assert result.levels == (3, 4)
        assert result.is_same_pattern is False

    @pytest.mark.parametrize(
        "history",
        [
            [0, 0, 1, 1],
            [1, 1, 1, 1],
            [0, 1, 2, 3],
            [0, 1, 0, 1, 1],
        ],
    )
    def test_no_pattern(self, engine, history):
        """Histories without an A-B-A-B tail are not oscillating."""
        assert engine.detect_oscillation(history, None) is None

    def test_doubled_steps_never_oscillate(self, engine):
        """Level changes need two-answer streaks, so plain play yields no A-B-A-B."""
        session = engine.start(0)

        play(engine, session, "CCWW" * 4)

        assert session.oscillation_count == 0
        assert session.last_oscillation_levels is None


class TestOscillationStop:
    """Tests for the oscillation stop and final-level collapse."""

    def test_collapse_to_lower_level(self, engine):
        """Second detection of the same pattern at question 12 reports the lower level."""
        session = resumed_session(
            [0] * 9 + [0, 1, 0],
            correct_streak=1,
            correct_answers=6,
            oscillation_count=1,
            last_oscillation_levels=(0, 1),
        )

        engine.submit_answer(session, True)

        assert session.level_history[-4:] == [0, 1, 0, 1]
        assert session.oscillation_count == 2
        assert session.total_questions == 12
        assert session.state == "completed"
        assert session.stop_reason == "oscillation"
        assert session.current_level == 0
        assert engine.complete(session).final_level == 1

    def test_new_pattern_resets_count(self, engine):
        """A different pattern restarts the count at 1."""
        session = resumed_session(
            [0] * 9 + [0, 1, 0],
            correct_streak=1,
            oscillation_count=1,
            last_oscillation_levels=(2, 3),
        )

        engine.submit_answer(session, True)

        assert session.oscillation_count == 1
        assert session.last_oscillation_levels == (0, 1)
        assert session.state == "testing"

    def test_no_stop_before_question_12(self, engine):
        """A repeated pattern early in the assessment does not stop it."""
        session = resumed_session(
            [0, 0, 0, 0, 1, 0],
            correct_streak=1,
            oscillation_count=1,
            last_oscillation_levels=(0, 1),
        )

        engine.submit_answer(session, True)

        assert session.oscillation_count == 2
        assert session.total_questions == 6
        assert session.state == "testing"
        assert session.current_level == 1

    def test_ceiling_does_not_collapse_single_oscillation(self, engine):
        """Stopping at 35 with only one detection keeps the current level."""
        session = resumed_session([0] * 32 + [0, 1, 0], correct_streak=1)

        engine.submit_answer(session, True)

        assert session.oscillation_count == 1
        assert session.stop_reason == "max_questions"
        assert session.current_level == 1
        assert engine.complete(session).final_level == 2


# ============================================================================
# Completion
# ============================================================================


class TestComplete:
    """Tests for reporting and forced completion."""

    def test_force_complete(self, engine):
        """Completing a testing session reports the current level."""
        session = engine.start(2)
        play(engine, session, "CC")

        result = engine.complete(session)

        assert session.state == "completed"
        assert session.stop_reason == "manual"
        assert result.final_level == 4
        assert result.total_questions == 2
        assert result.correct_answers == 2
        assert result.accuracy == 100.0

    def test_complete_with_reason(self, engine):
        """A caller-supplied reason is recorded on the session and the result."""
        session = engine.start(1)

        result = engine.complete(session, "no_questions")

        assert session.stop_reason == "no_questions"
        assert result.stop_reason == "no_questions"
        assert result.final_level == 2

    def test_complete_is_idempotent(self, engine):
        """Calling complete twice returns the same result."""
        session = engine.start(0)
        play(engine, session, "W" * 10)

        first = engine.complete(session)
        second = engine.complete(session)

        assert first == second
        assert first.stop_reason == "min_performance"

    def test_force_complete_skips_oscillation_collapse(self, engine):
        """Only the automatic oscillation stop reports the lower level."""
        session = resumed_session(
            [0, 0, 0, 1, 0, 1],
            oscillation_count=3,
            last_oscillation_levels=(0, 1),
        )

        result = engine.complete(session)

        assert result.final_level == 2

    def test_forced_oscillation_reason_skips_collapse(self, engine):
        """A forced finish never collapses, whatever reason the caller records."""
        session = resumed_session(
            [0, 0, 0, 1, 0, 1],
            oscillation_count=3,
            last_oscillation_levels=(0, 1),
        )

        result = engine.complete(session, "oscillation")

        assert result.final_level == 2
        assert result.stop_reason == "oscillation"

    def test_complete_without_answers(self, engine):
        """An unanswered session reports its seed level with zero accuracy."""
        result = engine.complete(engine.start(7))

        assert result.final_level == 8
        assert result.total_questions == 0
        assert result.accuracy == 0.0


# ============================================================================
# Snapshots
# ============================================================================


class TestSnapshots:
    """Sessions are plain data that survive a dump/validate round trip."""

    def test_resume_continues_identically(self, engine):
        """A restored session behaves exactly like the original."""
        original = engine.start(3)
        play(engine, original, "CWWCC")

        restored = AssessmentSession.model_validate(original.model_dump(mode="json"))
        play(engine, original, "CCWCWW")
        play(engine, restored, "CCWCWW")

        assert restored == original

    def test_reject_inconsistent_history(self):
        """History length must match the question count."""
        with pytest.raises(ValidationError):
            AssessmentSession(level_history=[0, 1], total_questions=0)

    def test_reject_out_of_range_level(self):
        """Snapshots cannot carry levels outside 0..9."""
        with pytest.raises(ValidationError):
            AssessmentSession(current_level=10, level_history=[10])
