"""
Quiz Library Storage
====================
Locates quiz documents and their media files on disk.

Directory Layout:
    quizzes/
    └── {quiz_name}/
        ├── {quiz_name}.md   # Quiz document
        └── ...              # Media referenced by the document

The library root defaults to ``<project root>/quizzes`` and can be moved
with the QUIZDOWN_QUIZ_DIR environment variable.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Project root: one level up from /quizdown/ package
_PROJECT_ROOT = Path(__file__).parent.parent.absolute()

_DEFAULT_QUIZ_DIR = _PROJECT_ROOT / "quizzes"

QUIZ_EXTENSION = ".md"


class QuizNotFoundError(FileNotFoundError):
    """The named quiz does not exist or cannot be read."""


class MediaNotFoundError(FileNotFoundError):
    """The requested media file does not exist inside the quiz directory."""


def get_quiz_dir(quiz_dir: Optional[str] = None) -> Path:
    """Return the configured quiz library root."""
    if quiz_dir:
        return Path(quiz_dir).absolute()
    return Path(
        os.environ.get("QUIZDOWN_QUIZ_DIR", str(_DEFAULT_QUIZ_DIR))
    ).absolute()


def _is_safe_name(name: str) -> bool:
    """A quiz name must be a single plain path component."""
    return bool(name) and name not in (".", "..") and Path(name).name == name \
        and "\\" not in name


# ─── Quiz Documents ───────────────────────────────────────────────────────────


def list_quizzes(quiz_dir: Optional[str] = None) -> list[str]:
    """List quiz names: subdirectories ``d`` that contain ``d/d.md``."""
    root = get_quiz_dir(quiz_dir)
    if not root.is_dir():
        logger.warning(f"Quiz directory does not exist: {root}")
        return []

    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_dir() and (entry / f"{entry.name}{QUIZ_EXTENSION}").is_file()
    )


def get_quiz_path(name: str, quiz_dir: Optional[str] = None) -> Path:
    """
    Get the absolute path of a quiz document.

    Raises:
        QuizNotFoundError: If the name is invalid or the file is missing.
    """
    if not _is_safe_name(name):
        raise QuizNotFoundError(f"Quiz not found: {name!r}")

    path = get_quiz_dir(quiz_dir) / name / f"{name}{QUIZ_EXTENSION}"
    if not path.is_file():
        raise QuizNotFoundError(f"Quiz not found: {name!r}")
    return path


def read_document(path: Path) -> str:
    """
    Read a quiz document as UTF-8 text.

    Raises:
        QuizNotFoundError: If the file is missing or cannot be decoded.
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise QuizNotFoundError(f"Quiz document unreadable: {path}") from e


def load_quiz_text(name: str, quiz_dir: Optional[str] = None) -> str:
    """Read the markdown of a named quiz."""
    return read_document(get_quiz_path(name, quiz_dir))


# ─── Media Files ──────────────────────────────────────────────────────────────


def resolve_media_path(
    quiz_name: str,
    filename: str,
    quiz_dir: Optional[str] = None,
) -> Path:
    """
    Resolve a media file referenced by a quiz.

    Returns the absolute path, which always lies inside the quiz directory.

    Raises:
        MediaNotFoundError: If the quiz or file is missing, or the filename
            points outside the quiz directory.
    """
    if not _is_safe_name(quiz_name):
        raise MediaNotFoundError(f"Media file not found: {filename!r}")

    base = (get_quiz_dir(quiz_dir) / quiz_name).resolve()
    try:
        target = (base / filename).resolve()
        found = base in target.parents and target.is_file()
    except (OSError, ValueError):
        # NUL bytes and over-long names cannot name a file
        found = False

    if not found:
        logger.warning(f"Media NOT FOUND: {quiz_name}/{filename!r}")
        raise MediaNotFoundError(f"Media file not found: {filename!r}")

    return target


# ─── Parsed Quiz Cache ────────────────────────────────────────────────────────


class QuizCache:
    """
    Read-through cache of parsed quizzes.

    Entries are keyed by document path and invalidated when the file's
    modification time changes.
    """

    def __init__(self):
        self._entries: dict[tuple[str, bool], tuple[int, object]] = {}
        self._lock = threading.Lock()

    def get_or_parse(
        self,
        path: Path,
        strict: bool,
        loader: Callable[[str], object],
    ):
        """
        Return the cached value for ``path``, calling ``loader(text)`` to
        build it when the file is new or has changed.
        """
        key = (str(path), strict)
        try:
            mtime = os.stat(path).st_mtime_ns
        except OSError as e:
            raise QuizNotFoundError(f"Quiz document unreadable: {path}") from e

        with self._lock:
            cached = self._entries.get(key)
            if cached and cached[0] == mtime:
                logger.debug(f"Cache hit: {path}")
                return cached[1]

        value = loader(read_document(path))

        with self._lock:
            self._entries[key] = (mtime, value)
        return value

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def media_kind(path: str) -> str:
    """Classify a media reference as 'video' or 'image' by its extension."""
    suffix = Path(path).suffix.lower()
    if suffix in (".mov", ".mp4", ".webm"):
        return "video"
    return "image"

