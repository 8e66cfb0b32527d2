"""
Quiz Engine
===========
Orchestrator that combines document loading, state machine parsing and
validation into one call.

Usage:
    engine = QuizEngine(ParserConfig(quiz_dir="quizzes"))
    result = engine.load("geography")
    # result is a ParseResult with quiz, diagnostics and validation

Architecture:
    quizzes/<name>/<name>.md → QuizDocumentParser → Quiz →
    ValidationEngine → ParseResult (JSON)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import storage
from .models import ParseResult
from .state_machine import QuizDocumentParser
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ParserConfig:
    """Configuration for the quiz engine."""

    # Library
    quiz_dir: Optional[str] = None

    # Parsing
    strict: bool = False
    use_cache: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class QuizEngine:
    """
    Loads and parses quizzes from the quiz library.

    Parsing is stateless per call, so one engine can serve concurrent
    requests; the optional cache is lock-guarded.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.cache = storage.QuizCache() if self.config.use_cache else None
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("quizdown")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(file_handler)

    def parse_text(
        self,
        text: str,
        name: Optional[str] = None,
        strict: Optional[bool] = None,
    ) -> ParseResult:
        """
        Parse quiz markdown into a ParseResult.

        Args:
            text: Document text.
            name: Quiz identifier to attach to the result.
            strict: Override the configured strict mode.
        """
        if strict is None:
            strict = self.config.strict

        start_time = time.time()

        parser = QuizDocumentParser(strict=strict)
        quiz = parser.parse(text)
        quiz.name = name

        validation = ValidationEngine().validate(quiz, parser.diagnostics)

        elapsed = time.time() - start_time
        logger.info(
            f"Parsed '{name or quiz.title}' in {elapsed * 1000:.1f}ms, "
            f"{len(quiz.questions)} questions"
        )

        return ParseResult(
            quiz=quiz,
            diagnostics=parser.diagnostics,
            validation=validation,
        )

    def parse_file(
        self,
        path: str,
        strict: Optional[bool] = None,
    ) -> ParseResult:
        """
        Parse a quiz document from an arbitrary path.

        Raises:
            FileNotFoundError: If the document doesn't exist or can't be read.
        """
        doc_path = Path(path).absolute()
        if not doc_path.is_file():
            raise FileNotFoundError(f"Quiz document not found: {doc_path}")

        return self._parse_path(doc_path, doc_path.stem, strict)

    def load(self, name: str, strict: Optional[bool] = None) -> ParseResult:
        """
        Load and parse a named quiz from the library.

        Raises:
            QuizNotFoundError: If the quiz doesn't exist or can't be read.
        """
        path = storage.get_quiz_path(name, self.config.quiz_dir)
        return self._parse_path(path, name, strict)

    def _parse_path(
        self,
        path: Path,
        name: str,
        strict: Optional[bool],
    ) -> ParseResult:
        if strict is None:
            strict = self.config.strict

        if self.cache is None:
            return self.parse_text(storage.read_document(path), name, strict)

        return self.cache.get_or_parse(
            path,
            strict,
            lambda text: self.parse_text(text, name, strict),
        )

    def list_quizzes(self) -> list[str]:
        """List quiz names available in the library."""
        return storage.list_quizzes(self.config.quiz_dir)

    def media_path(self, quiz_name: str, filename: str) -> Path:
        """
        Resolve a media file of a quiz.

        Raises:
            MediaNotFoundError: If the file is missing or outside the quiz.
        """
        return storage.resolve_media_path(
            quiz_name, filename, self.config.quiz_dir
        )
