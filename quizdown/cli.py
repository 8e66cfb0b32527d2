"""
CLI Interface
=============
Command-line interface for the quiz parser.

Usage:
    python -m quizdown parse <quiz.md> [options]
    python -m quizdown validate <quiz.md>
    python -m quizdown list [--quiz-dir DIR]
    python -m quizdown serve [options]
    python -m quizdown play [<quiz.md>] [--quiz-dir DIR]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .engine import ParserConfig, QuizEngine
from .models import QuestionKind, Quiz
from .session import (
    Key,
    Phase,
    QuizSession,
    choose_quiz,
    current_question,
    initial_session,
    reduce,
    selection_is_correct,
)
from .storage import media_kind

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="quizdown")
def cli():
    """Quizdown: markdown quiz parser and server."""
    pass


@cli.command()
@click.argument("md_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Collect diagnostics for lines the parser had to skip",
)
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    md_path: str,
    strict: bool,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Parse a quiz markdown file."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    engine = _make_engine(strict=strict, log_level=log_level, log_file=log_file)

    try:
        result = engine.parse_file(md_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    if json_output:
        print(json.dumps(
            result.model_dump(by_alias=True, mode="json"),
            indent=2,
            ensure_ascii=False,
        ))
        return

    _display_quiz(result.quiz)
    if strict:
        _display_diagnostics(result.diagnostics)


@cli.command()
@click.argument("md_path", type=click.Path(exists=True, dir_okay=False))
def validate(md_path: str):
    """Validate a quiz file; exits non-zero when diagnostics were found."""

    engine = _make_engine(strict=True, log_level="WARNING")

    try:
        result = engine.parse_file(md_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Validation Report[/]\n"
            f"[dim]File: {md_path}[/]",
            border_style="cyan",
        )
    )

    _display_validation_table(result.validation.model_dump())
    _display_diagnostics(result.diagnostics)

    if result.diagnostics:
        sys.exit(1)


@cli.command("list")
@click.option(
    "--quiz-dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Quiz library directory (default: $QUIZDOWN_QUIZ_DIR or ./quizzes)",
)
def list_command(quiz_dir: str):
    """List quizzes in the quiz library."""

    engine = _make_engine(quiz_dir=quiz_dir, log_level="ERROR")
    names = engine.list_quizzes()

    if not names:
        console.print("[yellow]No quizzes found[/]")
        return

    table = Table(title="Quizzes", border_style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Title")
    table.add_column("Questions", justify="right")

    for name in names:
        try:
            quiz = engine.load(name).quiz
        except FileNotFoundError:
            table.add_row(name, "[red](unreadable)[/]", "-")
            continue
        table.add_row(name, quiz.title, str(len(quiz.questions)))

    console.print(table)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=3000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
@click.option(
    "--quiz-dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Quiz library directory",
)
def serve(host: str, port: int, debug: bool, quiz_dir: str):
    """Start the HTTP quiz server."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Quizdown Server[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug, quiz_dir=quiz_dir)


# ─── Terminal Play ────────────────────────────────────────────────────────────


# click.getchar() returns escape sequences for arrow keys
TERMINAL_KEYS = {
    "\x1b[A": "ArrowUp",
    "\x1b[B": "ArrowDown",
    "\x1b[C": "ArrowRight",
    "\x1b[D": "ArrowLeft",
    "\xe0H": "ArrowUp",
    "\xe0P": "ArrowDown",
    "\xe0M": "ArrowRight",
    "\xe0K": "ArrowLeft",
    "k": "up",
    "j": "down",
    "l": "right",
    "h": "left",
    " ": "Space",
}

QUIT_KEYS = ("q", "Q", "\x03", "\x1b")


@cli.command()
@click.argument(
    "md_path",
    required=False,
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "--quiz-dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Quiz library to choose from when no file is given",
)
def play(md_path: str, quiz_dir: str):
    """Play a quiz in the terminal (arrows / Space, q to quit)."""

    engine = _make_engine(quiz_dir=quiz_dir, log_level="ERROR")

    names = [Path(md_path).stem] if md_path else engine.list_quizzes()
    if not names:
        console.print("[red]Error:[/] No quizzes found")
        sys.exit(1)

    session = initial_session(names)
    if session.phase == Phase.SELECTING:
        name = click.prompt("Quiz", type=click.Choice(names))
        session = choose_quiz(session, name)

    try:
        if md_path:
            quiz = engine.parse_file(md_path).quiz
        else:
            quiz = engine.load(session.quiz_id).quiz
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    _render_session(session, quiz)

    while True:
        char = click.getchar()
        if not char or char in QUIT_KEYS:
            break

        key = Key.from_name(TERMINAL_KEYS.get(char, ""))
        if key is None:
            continue

        previous = session
        session = reduce(session, key, quiz)
        _render_session(session, quiz)

        if previous.phase == Phase.QUESTION and session.phase == Phase.START:
            console.print("[bold green]Quiz finished![/]")


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _make_engine(**kwargs) -> QuizEngine:
    # Parsed once per invocation, nothing to cache
    return QuizEngine(ParserConfig(use_cache=False, **kwargs))


def _display_quiz(quiz: Quiz):
    """Display a parsed quiz as a table."""
    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]{quiz.title or '(untitled)'}[/]\n"
            f"[dim]{len(quiz.questions)} questions, "
            f"{len(quiz.media_files)} media files[/]",
            border_style="cyan",
        )
    )

    table = Table(border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Question", style="bold")
    table.add_column("Type")
    table.add_column("Options", justify="right")
    table.add_column("Answer")
    table.add_column("Media")

    for q in quiz.questions:
        title = Text(q.title)
        if q.is_bonus:
            title.append(" ★", style="yellow")
        table.add_row(
            str(q.id),
            title,
            q.type or "[red](none)[/]",
            f"{len(q.correct_options)}/{len(q.options)}" if q.options else "-",
            Text(q.answer or "-"),
            Text(q.media or "-"),
        )

    console.print(table)
    console.print()


def _display_validation_table(validation: dict):
    """Display validation report as a rich table."""
    table = Table(title="Validation Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[red]✗[/]"

    total = validation.get("total_questions", 0)
    rate = validation.get("playable_rate", 0)

    table.add_row(
        "Total Questions",
        str(total),
        "[green]✓[/]" if total > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Playable",
        f"{rate}%",
        "[green]✓[/]" if rate >= 100 else "[yellow]⚠[/]",
    )
    table.add_row("Bonus Questions", str(validation.get("bonus_questions", 0)), "")
    table.add_row("Media Files", str(validation.get("media_file_count", 0)), "")

    for label, key in (
        ("Missing Type", "questions_missing_type"),
        ("Unknown Type", "questions_with_unknown_type"),
        ("Choice Without Options", "choice_questions_without_options"),
        ("Choice Without Correct Option", "choice_questions_without_correct"),
        ("Free Text Without Answer", "free_text_questions_without_answer"),
    ):
        ids = validation.get(key, [])
        table.add_row(
            label,
            ", ".join(str(i) for i in ids) if ids else "0",
            status_icon(len(ids)),
        )

    console.print(table)
    console.print()


def _display_diagnostics(diagnostics):
    """Display strict-mode diagnostics."""
    if not diagnostics:
        console.print("[green]No diagnostics[/]")
        console.print()
        return

    table = Table(title="Diagnostics", border_style="yellow")
    table.add_column("Line", justify="right")
    table.add_column("Rule")
    table.add_column("Type", style="bold")
    table.add_column("Message")

    for d in diagnostics:
        table.add_row(str(d.line_number), d.rule, d.type.value, d.message)

    console.print(table)
    console.print()


def _render_session(session: QuizSession, quiz: Quiz):
    """Render the current play session."""
    console.clear()

    if session.phase != Phase.QUESTION:
        body = Text(quiz.title or "(untitled)", style="bold cyan")
        body.append(f"\n{len(quiz.questions)} questions", style="dim")
        for path in quiz.media_files:
            body.append(f"\n  [{media_kind(path)}] {path}", style="dim")
        console.print(Panel.fit(body, border_style="cyan"))
        console.print("[dim]Press Space or → to start, q to quit[/]")
        return

    q = current_question(session, quiz)
    header = f"Question {q.id}/{len(quiz.questions)}"
    if q.is_bonus:
        header += " [yellow]★ Bonus[/]"

    body = Text(q.title, style="bold")
    if q.media:
        body.append(f"\n[{media_kind(q.media)}] {q.media}", style="dim")

    if q.kind == QuestionKind.MULTIPLE_CHOICE and q.options:
        for index, option in enumerate(q.options):
            body.append("\n")
            body.append_text(_option_line(session, index, option.text,
                                          option.is_correct))
    elif session.revealed and q.answer:
        body.append("\nAnswer: ", style="bold")
        body.append(q.answer, style="green")

    console.print(Panel(body, title=header, border_style="cyan"))

    verdict = selection_is_correct(session, quiz)
    if session.revealed and verdict is not None:
        console.print("[bold green]✓ Right answer![/]" if verdict
                      else "[bold red]✗ Not quite[/]")

    if session.revealed:
        console.print("[dim]Space or → for next question, ← for previous[/]")
    elif session.selection is not None:
        console.print("[dim]Press Space again to reveal answer[/]")
    else:
        console.print("[dim]Press Space or → to reveal the answer[/]")


def _option_line(
    session: QuizSession,
    index: int,
    text: str,
    is_correct: bool,
) -> Text:
    marker = "›" if index == session.cursor and session.selection is None else " "
    box = "[•]" if index == session.selection else "[ ]"
    line = Text(f"{marker} {box} {text}")

    if session.revealed:
        if is_correct:
            line.stylize("bold green")
            line.append("  ✓ Correct", style="green")
        elif index == session.selection:
            line.stylize("red")
            line.append("  ✗ Wrong", style="red")
        else:
            line.stylize("dim")
    elif index == session.selection:
        line.stylize("bold")
    elif index == session.cursor and session.selection is None:
        line.stylize("cyan")

    return line


# ─── Entry point (for python -m quizdown.cli) ─────────────────────────────────


if __name__ == "__main__":
    cli()
