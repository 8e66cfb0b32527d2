"""
Validation Engine
=================
Post-parse validation and reporting.

After parsing a quiz, generates a report of:
    - Total / Bonus Questions
    - Questions Missing a Type
    - Questions With an Unrecognized Type
    - Multiple Choice Questions Without Options / Without a Correct Option
    - Free Text Questions Without an Answer
    - Diagnostic breakdown by type (strict mode)

The parser itself is permissive; this is where authors find out what it
silently skipped.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from .models import (
    Diagnostic,
    QuestionKind,
    Quiz,
    ValidationReport,
)

logger = logging.getLogger(__name__)


class ValidationEngine:
    """
    Validates a parsed quiz and produces a report.
    """

    def validate(
        self,
        quiz: Quiz,
        diagnostics: Iterable[Diagnostic] = (),
    ) -> ValidationReport:
        """
        Run full validation on a parsed quiz.

        Args:
            quiz: The parsed quiz.
            diagnostics: Strict-mode diagnostics collected by the parser.

        Returns:
            ValidationReport with all detected issues.
        """
        report = ValidationReport()
        report.diagnostic_breakdown = dict(
            Counter(d.type.value for d in diagnostics)
        )

        if not quiz.questions:
            logger.warning(f"Quiz '{quiz.title}' has no questions")
            return report

        report.total_questions = len(quiz.questions)
        report.media_file_count = len(quiz.media_files)

        for q in quiz.questions:
            if q.is_bonus:
                report.bonus_questions += 1

            if q.kind == QuestionKind.UNKNOWN:
                report.questions_missing_type.append(q.id)

            elif q.kind == QuestionKind.OTHER:
                report.questions_with_unknown_type.append(q.id)

            elif q.kind == QuestionKind.MULTIPLE_CHOICE:
                if not q.options:
                    report.choice_questions_without_options.append(q.id)
                elif not q.correct_options:
                    report.choice_questions_without_correct.append(q.id)

            elif q.kind == QuestionKind.FREE_TEXT and not q.answer:
                report.free_text_questions_without_answer.append(q.id)

        # Log summary
        logger.info("=" * 60)
        logger.info(f"VALIDATION REPORT: {quiz.title or '(untitled)'}")
        logger.info("=" * 60)
        logger.info(f"Total Questions: {report.total_questions}")
        logger.info(f"Bonus Questions: {report.bonus_questions}")
        logger.info(
            f"Playable: {report.playable_rate}% "
            f"({len(report.problem_question_ids)} with problems)"
        )
        logger.info(
            f"Missing Type: {len(report.questions_missing_type)}"
        )
        logger.info(
            f"Unknown Type: {len(report.questions_with_unknown_type)}"
        )
        logger.info(
            f"Choice Without Options: "
            f"{len(report.choice_questions_without_options)}"
        )
        logger.info(
            f"Choice Without Correct Option: "
            f"{len(report.choice_questions_without_correct)}"
        )
        logger.info(
            f"Free Text Without Answer: "
            f"{len(report.free_text_questions_without_answer)}"
        )
        logger.info(f"Media Files: {report.media_file_count}")

        if report.diagnostic_breakdown:
            logger.info("Diagnostic Breakdown:")
            for diagnostic_type, count in sorted(
                report.diagnostic_breakdown.items()
            ):
                logger.info(f"  • {diagnostic_type}: {count}")

        logger.info("=" * 60)

        return report
