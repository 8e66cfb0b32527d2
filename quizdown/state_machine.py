"""
State Machine Parser
====================
Single-pass parser that turns a quiz markdown document into a ``Quiz``.

Each line is tested against the anchors below in priority order and the
first anchor that fires consumes the line:

    # Title                   -> quiz title
    ### Question [Bonus]      -> starts a new question
    ![alt](path)              -> question media
    **Type:** Multiple Choice -> question type
    **Answer:** text          -> question answer
    - [ ] / - [x] text        -> option (x marks the correct one)

Anything else is prose and is ignored. In strict mode the parser records a
``Diagnostic`` for every line it had to ignore or overwrite, but it never
raises on document content.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Optional

from .models import (
    Diagnostic,
    DiagnosticType,
    Option,
    Question,
    QuestionKind,
    Quiz,
)

logger = logging.getLogger(__name__)

# ─── Anchor Patterns ──────────────────────────────────────────────────────────

TITLE_PREFIX = "# "
QUESTION_PREFIX = "### "

# ![alt](path), anywhere on the line; alt text is ignored
MEDIA_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")

TYPE_LABEL = "**Type:**"
TYPE_PATTERN = re.compile(r"\*\*Type:\*\*\s*(.+)")

ANSWER_LABEL = "**Answer:**"
ANSWER_PATTERN = re.compile(r"\*\*Answer:\*\*\s*(.+)")

# "- [ ] text", "  - [x] text", "- [X] text"
OPTION_PATTERN = re.compile(r"^\s*- \[([ x])\]\s*", re.IGNORECASE)

BONUS_MARKER = "bonus"


class ParserState(Enum):
    """Whether a question accumulator is currently open."""
    SEEKING_QUESTION = "SEEKING_QUESTION"
    QUESTION_BODY = "QUESTION_BODY"


class QuizDocumentParser:
    """
    Finite State Machine that transforms quiz markdown text into a ``Quiz``.

    Every call to ``parse`` starts from a clean state, so a single instance
    can be reused; separate instances share nothing and are safe to use from
    several threads.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.reset()

    def reset(self):
        """Reset the state machine for a fresh parsing run."""
        self.state = ParserState.SEEKING_QUESTION
        self.title = ""
        self.title_seen = False
        self.current_question: Optional[Question] = None
        self.questions: list[Question] = []
        self.media_files: list[str] = []
        self.diagnostics: list[Diagnostic] = []
        self._seen_directives: set[str] = set()
        self._question_line = 0

    def parse(self, text: str) -> Quiz:
        """Parse document text into a Quiz."""
        self.reset()

        for line_number, line in enumerate(text.split("\n"), start=1):
            self._process_line(line, line_number)

        # The last question has no following heading to flush it
        if self.current_question:
            self._finalize_question()

        logger.debug(
            f"Parsed quiz '{self.title}': {len(self.questions)} questions, "
            f"{len(self.media_files)} media files"
        )

        return Quiz(
            title=self.title,
            questions=self.questions,
            media_files=self.media_files,
        )

    def _process_line(self, line: str, line_number: int):
        """Apply the first matching anchor to a single line."""

        # ─── 1. Title ───
        if line.startswith(TITLE_PREFIX):
            if not self.title_seen and self.current_question is None:
                self.title = line[len(TITLE_PREFIX):].strip()
                self.title_seen = True
            else:
                self._report(
                    line_number, "title", DiagnosticType.DUPLICATE_TITLE,
                    "Only the first top-level heading before the first "
                    "question is used as the quiz title",
                )
            return

        # ─── 2. Question heading ───
        if line.startswith(QUESTION_PREFIX):
            self._start_new_question(line, line_number)
            return

        if self.state == ParserState.SEEKING_QUESTION:
            rule = self._detect_rule(line)
            if rule:
                self._report(
                    line_number, rule,
                    DiagnosticType.DIRECTIVE_OUTSIDE_QUESTION,
                    f"'{rule}' line appears before any question heading",
                )
            return

        q = self.current_question

        # ─── 3. Media ───
        media_match = MEDIA_PATTERN.search(line)
        if media_match:
            path = media_match.group(2)
            self._check_duplicate("media", line_number)
            q.media = path
            if path not in self.media_files:
                self.media_files.append(path)
            return

        # ─── 4. Type directive ───
        if TYPE_LABEL in line:
            value = self._directive_value(TYPE_PATTERN, line)
            if value is not None:
                self._check_duplicate("type", line_number)
                q.type = value
            if not value:
                self._report(
                    line_number, "type", DiagnosticType.EMPTY_DIRECTIVE,
                    "Type directive has no value",
                )
            return

        # ─── 5. Answer directive ───
        if ANSWER_LABEL in line:
            value = self._directive_value(ANSWER_PATTERN, line)
            if value is not None:
                self._check_duplicate("answer", line_number)
                q.answer = value
            if not value:
                self._report(
                    line_number, "answer", DiagnosticType.EMPTY_DIRECTIVE,
                    "Answer directive has no value",
                )
            return

        # ─── 6. Option ───
        opt_match = OPTION_PATTERN.match(line)
        if opt_match:
            q.options.append(Option(
                text=line[opt_match.end():].strip(),
                is_correct=opt_match.group(1).lower() == "x",
            ))

    def _start_new_question(self, line: str, line_number: int):
        """Finalize previous and start fresh state."""
        if self.current_question:
            self._finalize_question()

        self.current_question = Question(
            id=len(self.questions) + 1,
            title=line[len(QUESTION_PREFIX):].strip(),
            is_bonus=BONUS_MARKER in line.lower(),
        )
        self._question_line = line_number
        self._seen_directives = set()
        self.state = ParserState.QUESTION_BODY

        logger.debug(
            f"Detected question {self.current_question.id} "
            f"on line {line_number}"
        )

    def _finalize_question(self):
        """Store the open question, checking its type in strict mode."""
        q = self.current_question

        kind = QuestionKind.from_raw(q.type)
        if kind == QuestionKind.UNKNOWN:
            self._report(
                self._question_line, "question", DiagnosticType.MISSING_TYPE,
                f"Question {q.id} has no Type directive",
            )
        elif kind == QuestionKind.OTHER:
            self._report(
                self._question_line, "type", DiagnosticType.UNKNOWN_TYPE,
                f"Question {q.id} has unrecognized type '{q.type}'",
            )

        self.questions.append(q)
        self.current_question = None
        self.state = ParserState.SEEKING_QUESTION

    # ─── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _directive_value(pattern: re.Pattern, line: str) -> Optional[str]:
        """Stripped value after the label, or None for a bare label."""
        match = pattern.search(line)
        return match.group(1).strip() if match else None

    @staticmethod
    def _detect_rule(line: str) -> Optional[str]:
        """Name the body rule a line would match, used for diagnostics."""
        if MEDIA_PATTERN.search(line):
            return "media"
        if TYPE_LABEL in line:
            return "type"
        if ANSWER_LABEL in line:
            return "answer"
        if OPTION_PATTERN.match(line):
            return "option"
        return None

    def _check_duplicate(self, rule: str, line_number: int):
        """Later directives overwrite earlier ones; flag it in strict mode."""
        if rule in self._seen_directives:
            self._report(
                line_number, rule, DiagnosticType.DUPLICATE_DIRECTIVE,
                f"Repeated '{rule}' directive overrides the earlier one",
            )
        self._seen_directives.add(rule)

    def _report(
        self,
        line_number: int,
        rule: str,
        diagnostic_type: DiagnosticType,
        message: str,
    ):
        if not self.strict:
            return
        question_id = None
        if self.current_question is not None:
            question_id = self.current_question.id
        self.diagnostics.append(Diagnostic(
            line_number=line_number,
            rule=rule,
            type=diagnostic_type,
            message=message,
            question_id=question_id,
        ))


def parse(text: str, strict: bool = False) -> Quiz:
    """Parse quiz markdown into a Quiz."""
    return QuizDocumentParser(strict=strict).parse(text)
