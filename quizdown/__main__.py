"""
Module entry point for: python -m quizdown

Allows running the tool directly as a module:
    python -m quizdown parse <quiz.md> [options]
    python -m quizdown validate <quiz.md>
    python -m quizdown serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
