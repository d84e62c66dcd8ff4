"""
Question Bank

In-memory program library serving questions for the engine's current level.

Architecture:
- Load once at app startup from a JSON document
- Keep in memory, keyed by program id
- The engine never sees questions; it only decides levels
"""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

QuestionType = Literal["multiple_choice", "one_word_answer", "verbal_evaluation"]


class Question(BaseModel):
    """A single assessment question."""

    id: str
    text: str
    question_type: QuestionType
    options: list[str] = Field(default_factory=list)
    correct_option_index: int | None = None
    accepted_answers: list[str] = Field(default_factory=list)
    points: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def check_answer_key(self) -> Question:
        """Reject multiple choice questions whose answer key is not one of the options."""
        if self.question_type != "multiple_choice":
            return self
        if not self.options:
            raise ValueError(f"Multiple choice question {self.id} has no options")
        index = self.correct_option_index or 0
        if not 0 <= index < len(self.options):
            raise ValueError(
                f"Question {self.id}: correct_option_index {index} is outside "
                f"0..{len(self.options) - 1}"
            )
        return self


class ProgramLevel(BaseModel):
    """Questions for one program level. level_number is 1-based, as authored."""

    level_number: int = Field(ge=1)
    title: str = ""
    questions: list[Question] = Field(default_factory=list)


class Program(BaseModel):
    """A subject program with its ordered levels."""

    id: str
    name: str
    subject: str
    levels: list[ProgramLevel] = Field(default_factory=list)

    def level(self, index: int) -> ProgramLevel | None:
        """Get the program level for a 0-based engine level.

        Engine levels past the authored ones reuse the last level.
        """
        if not self.levels:
            return None
        ordered = sorted(self.levels, key=lambda lvl: lvl.level_number)
        return ordered[min(index, len(ordered) - 1)]


class QuestionBank:
    """Registry of programs available for assessment."""

    def __init__(self, programs: list[Program] | None = None, version: str = "unknown"):
        self.programs: dict[str, Program] = {}
        self.metadata: dict[str, Any] = {"version": version}
        for program in programs or []:
            self.add_program(program)

    @classmethod
    def from_file(cls, path: Path) -> QuestionBank:
        """Load programs from a JSON document.

        Expected structure: {"version": "...", "programs": [ {...}, ... ]}

        Raises:
            FileNotFoundError: If the file does not exist
        """
        if not path.exists():
            raise FileNotFoundError(f"Question bank not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        programs = [Program.model_validate(item) for item in data.get("programs", [])]
        bank = cls(programs, version=data.get("version", "unknown"))
        logger.info(f"Loaded {len(bank)} programs from {path}")
        return bank

    def __len__(self) -> int:
        return len(self.programs)

    def add_program(self, program: Program) -> None:
        self.programs[program.id] = program
        self.metadata["total_programs"] = len(self.programs)

    def get_program(self, program_id: str) -> Program:
        """Get program by ID.

        Raises:
            KeyError: If program_id not found
        """
        if program_id not in self.programs:
            available = ", ".join(sorted(self.programs.keys()))
            raise KeyError(
                f"Program '{program_id}' not found.\nAvailable programs: {available}"
            )
        return self.programs[program_id]

    def list_programs(self, subject: str | None = None) -> list[str]:
        """List program IDs, optionally filtered by subject."""
        if subject is None:
            return sorted(self.programs.keys())
        return sorted(pid for pid, program in self.programs.items() if program.subject == subject)


class QuestionPicker:
    """Serves questions for one assessment.

    Each level's questions are shuffled once (when randomized) and then
    served round-robin, so a student sees every question at a level before
    any repeats.
    """

    def __init__(self, program: Program, randomize: bool = True, seed: int | None = None):
        self.program = program
        self.randomize = randomize
        self._rng = random.Random(seed)
        self._orders: dict[int, list[Question]] = {}
        self._asked: dict[int, int] = {}

    def _order(self, level: int) -> list[Question]:
        if level not in self._orders:
            program_level = self.program.level(level)
            questions = list(program_level.questions) if program_level else []
            if self.randomize:
                self._rng.shuffle(questions)
            self._orders[level] = questions
        return self._orders[level]

    def next_question(self, level: int) -> Question | None:
        """Pick the next question for a 0-based level.

        Returns:
            Question to ask, or None if the level has no questions
        """
        questions = self._order(level)
        if not questions:
            return None
        asked = self._asked.get(level, 0)
        self._asked[level] = asked + 1
        return questions[asked % len(questions)]

    def level_number(self, level: int) -> int:
        """1-based program level number shown for a 0-based engine level."""
        program_level = self.program.level(level)
        return program_level.level_number if program_level else level + 1
