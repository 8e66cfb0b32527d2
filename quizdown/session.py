"""
Quiz Session
============
Keyboard-driven navigation through a quiz, modelled as an explicit finite
state machine. ``reduce`` is a pure function: it takes the current session,
a key and the quiz being played and returns the next session. Rendering
(terminal or browser) only reads the session.

Phases:
    SELECTING → quiz list, waiting for ``choose_quiz``
    START     → quiz title / media gallery, Space or → starts
    QUESTION  → one question; Space or → selects, reveals, then advances
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence

from .models import Question, QuestionKind, Quiz


class Phase(str, Enum):
    SELECTING = "selecting"
    START = "start"
    QUESTION = "question"


class Key(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    SPACE = "space"

    @classmethod
    def from_name(cls, name: str) -> Optional["Key"]:
        """Map a key name (``ArrowUp``, ``Space``, ``" "``, ``up``) to a Key."""
        return _KEY_NAMES.get(name) or _KEY_NAMES.get(name.lower())


_KEY_NAMES = {
    "ArrowUp": Key.UP,
    "ArrowDown": Key.DOWN,
    "ArrowLeft": Key.LEFT,
    "ArrowRight": Key.RIGHT,
    " ": Key.SPACE,
    "Space": Key.SPACE,
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "space": Key.SPACE,
}

ADVANCE_KEYS = (Key.SPACE, Key.RIGHT)


@dataclass(frozen=True)
class QuizSession:
    """Immutable snapshot of the client's navigation state."""
    phase: Phase = Phase.SELECTING
    quiz_id: Optional[str] = None
    question_index: int = 0
    cursor: int = 0
    selection: Optional[int] = None
    revealed: bool = False


def initial_session(quiz_ids: Sequence[str]) -> QuizSession:
    """A single available quiz is opened directly; otherwise pick one."""
    if len(quiz_ids) == 1:
        return QuizSession(phase=Phase.START, quiz_id=quiz_ids[0])
    return QuizSession(phase=Phase.SELECTING)


def choose_quiz(session: QuizSession, quiz_id: str) -> QuizSession:
    return QuizSession(phase=Phase.START, quiz_id=quiz_id)


def current_question(session: QuizSession, quiz: Quiz) -> Optional[Question]:
    if session.phase != Phase.QUESTION:
        return None
    if 0 <= session.question_index < len(quiz.questions):
        return quiz.questions[session.question_index]
    return None


def selection_is_correct(session: QuizSession, quiz: Quiz) -> Optional[bool]:
    """Whether the selected option is correct; None when nothing is selected."""
    question = current_question(session, quiz)
    if question is None or session.selection is None:
        return None
    return question.options[session.selection].is_correct


def _show_question(session: QuizSession, index: int) -> QuizSession:
    return replace(
        session,
        phase=Phase.QUESTION,
        question_index=index,
        cursor=0,
        selection=None,
        revealed=False,
    )


def reduce(session: QuizSession, key: Key, quiz: Quiz) -> QuizSession:
    """Return the session that results from pressing ``key``."""
    if session.phase == Phase.SELECTING:
        return session

    if session.phase == Phase.START:
        if key in ADVANCE_KEYS and quiz.questions:
            return _show_question(session, 0)
        return session

    question = current_question(session, quiz)
    if question is None:
        return QuizSession(phase=Phase.START, quiz_id=session.quiz_id)

    if session.revealed:
        if key in ADVANCE_KEYS:
            next_index = session.question_index + 1
            if next_index >= len(quiz.questions):
                # Quiz finished
                return QuizSession(phase=Phase.START, quiz_id=session.quiz_id)
            return _show_question(session, next_index)
        if key == Key.LEFT:
            return _show_question(session, max(session.question_index - 1, 0))
        return session

    is_choice = (
        question.kind == QuestionKind.MULTIPLE_CHOICE and question.options
    )
    if not is_choice:
        if key in ADVANCE_KEYS:
            return replace(session, revealed=True)
        return session

    count = len(question.options)
    if session.selection is None:
        if key == Key.UP:
            return replace(session, cursor=(session.cursor - 1) % count)
        if key == Key.DOWN:
            return replace(session, cursor=(session.cursor + 1) % count)
        if key in ADVANCE_KEYS:
            return replace(session, selection=session.cursor)
        return session

    if key in ADVANCE_KEYS:
        return replace(session, revealed=True)
    return session
