"""
Quizdown
========
Markdown quiz parser and server.

Architecture:
    - State Machine: Parses quiz markdown into Quiz / Question / Option models
    - Validation Engine: Reports what the permissive parse skipped
    - Storage: Locates quizzes and their media in the quiz library
    - Session: Keyboard navigation state machine for playing a quiz
    - Server / CLI: JSON API and terminal front ends

Version: 1.0.0
"""

__version__ = "1.0.0"
