#!/usr/bin/env python3
"""
Leveling Simulation: run the engine against simulated students

Each simulated student has a known true level. They answer questions at or
below it correctly with probability --p-known and questions above it with
probability --p-unknown. The report shows how often each level is reported
and why assessments stopped, which is how the thresholds are sanity-checked.

Usage:
    python scripts/simulate_assessments.py --true-level 4
    python scripts/simulate_assessments.py --true-level 7 --runs 5000 --seed 1
"""

import argparse
import random
import sys
from collections import Counter
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from leveling.assessment import AdaptiveAssessmentEngine


def simulate(
    engine: AdaptiveAssessmentEngine,
    rng: random.Random,
    true_level: int,
    p_known: float,
    p_unknown: float,
    seed_level: int = 0,
) -> tuple[int, str | None, int]:
    """Run one assessment to completion.

    Returns:
        (reported 1-based level, stop reason, questions asked)
    """
    session = engine.start(seed_level)
    while not session.is_completed:
        p = p_known if session.current_level <= true_level else p_unknown
        engine.submit_answer(session, rng.random() < p)

    result = engine.complete(session)
    return result.final_level, result.stop_reason, result.total_questions


def main() -> int:
    parser = argparse.ArgumentParser(description="Simulate leveling assessments")
    parser.add_argument(
        "--true-level", type=int, required=True, help="Simulated student's 0-based level"
    )
    parser.add_argument("--runs", type=int, default=1000, help="Number of assessments")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--seed-level", type=int, default=0, help="Starting 0-based level")
    parser.add_argument("--p-known", type=float, default=0.9)
    parser.add_argument("--p-unknown", type=float, default=0.2)
    args = parser.parse_args()

    engine = AdaptiveAssessmentEngine()
    if not 0 <= args.true_level <= engine.MAX_LEVEL:
        parser.error(f"--true-level must be within 0..{engine.MAX_LEVEL}")

    rng = random.Random(args.seed)
    levels: Counter[int] = Counter()
    reasons: Counter[str | None] = Counter()
    total_questions = 0

    for _ in range(args.runs):
        level, reason, questions = simulate(
            engine, rng, args.true_level, args.p_known, args.p_unknown, args.seed_level
        )
        levels[level] += 1
        reasons[reason] += 1
        total_questions += questions

    print(f"True level: {args.true_level + 1} (reported scale 1-{engine.MAX_LEVEL + 1})")
    print(f"Runs: {args.runs}, mean questions: {total_questions / args.runs:.1f}")
    print("\nReported levels:")
    for level in sorted(levels):
        share = levels[level] / args.runs * 100
        print(f"  Level {level:>2}: {levels[level]:>6}  ({share:5.1f}%)")
    print("\nStop reasons:")
    for reason, count in reasons.most_common():
        print(f"  {reason}: {count}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
