"""
Data Models
===========
Pydantic models for the parsed quiz structure.
All models serialize to the JSON shape consumed by the quiz client
(camelCase field names via ``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


MULTIPLE_CHOICE = "Multiple Choice"
FREE_TEXT = "Free Text"


class QuestionKind(str, Enum):
    """Tagged variant of the raw ``**Type:**`` directive value."""
    MULTIPLE_CHOICE = "multiple_choice"
    FREE_TEXT = "free_text"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "QuestionKind":
        if not raw:
            return cls.UNKNOWN
        if raw == MULTIPLE_CHOICE:
            return cls.MULTIPLE_CHOICE
        if raw == FREE_TEXT:
            return cls.FREE_TEXT
        return cls.OTHER


class DiagnosticType(str, Enum):
    """Structural problems reported by the parser in strict mode."""
    DIRECTIVE_OUTSIDE_QUESTION = "directive_outside_question"
    DUPLICATE_TITLE = "duplicate_title"
    EMPTY_DIRECTIVE = "empty_directive"
    DUPLICATE_DIRECTIVE = "duplicate_directive"
    MISSING_TYPE = "missing_type"
    UNKNOWN_TYPE = "unknown_type"


# ─── Quiz Models ──────────────────────────────────────────────────────────────


class Option(BaseModel):
    """One selectable choice of a multiple-choice question."""
    model_config = ConfigDict(populate_by_name=True)

    text: str
    is_correct: bool = Field(default=False, alias="isCorrect")


class Question(BaseModel):
    """
    A single quiz item.

    ``type`` holds the raw directive string so unrecognized values survive
    a round trip; ``kind`` is the normalized variant used for rendering.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(ge=1)
    title: str = ""
    type: Optional[str] = None
    media: Optional[str] = None
    options: list[Option] = Field(default_factory=list)
    answer: Optional[str] = None
    is_bonus: bool = Field(default=False, alias="isBonus")

    @computed_field
    @property
    def kind(self) -> QuestionKind:
        return QuestionKind.from_raw(self.type)

    @property
    def correct_options(self) -> list[Option]:
        return [opt for opt in self.options if opt.is_correct]


class Quiz(BaseModel):
    """Top-level parsed document: title plus ordered questions."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    questions: list[Question] = Field(default_factory=list)
    media_files: list[str] = Field(default_factory=list, alias="mediaFiles")
    name: Optional[str] = None

    def to_api(self) -> dict:
        """Serialize to the JSON structure served over HTTP."""
        return self.model_dump(by_alias=True, mode="json")


# ─── Diagnostics / Reports ────────────────────────────────────────────────────


class Diagnostic(BaseModel):
    """A structural problem found on one line of the source document."""
    line_number: int = Field(ge=1)
    rule: str = Field(description="Parser rule that was attempted")
    type: DiagnosticType
    message: str
    question_id: Optional[int] = None


class ValidationReport(BaseModel):
    """Post-parse validation report."""
    total_questions: int = 0
    bonus_questions: int = 0
    media_file_count: int = 0
    questions_missing_type: list[int] = Field(default_factory=list)
    questions_with_unknown_type: list[int] = Field(default_factory=list)
    choice_questions_without_options: list[int] = Field(default_factory=list)
    choice_questions_without_correct: list[int] = Field(default_factory=list)
    free_text_questions_without_answer: list[int] = Field(default_factory=list)
    diagnostic_breakdown: dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def problem_question_ids(self) -> list[int]:
        ids = set(self.questions_missing_type)
        ids.update(self.questions_with_unknown_type)
        ids.update(self.choice_questions_without_options)
        ids.update(self.choice_questions_without_correct)
        ids.update(self.free_text_questions_without_answer)
        return sorted(ids)

    @computed_field
    @property
    def playable_rate(self) -> float:
        if self.total_questions == 0:
            return 0.0
        playable = self.total_questions - len(self.problem_question_ids)
        return round(playable / self.total_questions * 100, 2)


class ParseResult(BaseModel):
    """
    Complete output of a parse run: the quiz, any strict-mode diagnostics
    and the validation report.
    """
    quiz: Quiz
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=ValidationReport)
