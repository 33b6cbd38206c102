"""Rich-powered console front end for the quiz session engine.

The loop renders whatever the engine state says, reads one command per turn
and forwards it to the engine. It keeps no quiz state of its own beyond the
per-question responses shown in the closing summary.
"""

from __future__ import annotations

import string
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .engine import (
    AnswerSelected,
    AwaitingAnswer,
    Finished,
    QuizSessionEngine,
    Reviewing,
)
from .errors import InvalidIndexError, SessionError
from .models import Topic

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "empty"]

CHOICE_KEYS = string.ascii_uppercase


@dataclass(frozen=True)
class QuestionResponse:
    """The answer given to one question."""

    question: str
    selected: str
    correct_answer: str
    is_correct: bool


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``."""

    topic_title: str
    exit_action: ExitAction
    score: int = 0
    total: int = 0
    feedback: str | None = None
    responses: list[QuestionResponse] = field(default_factory=list)


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["select", "submit", "next", "quit"]
    choice: int | None = None


def choice_key(index: int) -> str:
    return CHOICE_KEYS[index] if index < len(CHOICE_KEYS) else str(index + 1)


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"s", "submit"}:
        return SessionCommand("submit")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if len(text) == 1 and text.upper() in CHOICE_KEYS:
        return SessionCommand("select", CHOICE_KEYS.index(text.upper()))
    return None


def run_quiz_session(
    topic: Topic,
    engine: QuizSessionEngine,
    console: Console,
    input_provider: InputProvider,
) -> QuizSessionResult:
    """Run ``topic`` to completion (or until the user quits)."""

    try:
        engine.select_topic(topic)
    except InvalidIndexError as exc:
        console.print(
            Panel(
                Text(str(exc)), title=Text(topic.title), border_style="yellow"
            )
        )
        return QuizSessionResult(topic.title, "empty")

    responses: list[QuestionResponse] = []
    while True:
        state = engine.state
        if isinstance(state, Finished):
            result = engine.acknowledge_finish()
            outcome = QuizSessionResult(
                topic_title=result.topic_title,
                exit_action="finished",
                score=result.score,
                total=result.total,
                feedback=result.feedback,
                responses=responses,
            )
            render_summary(console, outcome)
            return outcome

        if isinstance(state, (AwaitingAnswer, AnswerSelected)):
            _render_question(console, engine)
        elif isinstance(state, Reviewing):
            _render_review(console, engine, state)

        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            engine.abandon()
            return QuizSessionResult(topic.title, "quit", responses=responses)

        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Leaving quiz without a score.[/]")
            engine.abandon()
            return QuizSessionResult(topic.title, "quit", responses=responses)
        try:
            response = _apply_command(command, engine)
        except SessionError as exc:
            console.print(Text(str(exc), style="red"))
            continue
        if response is not None:
            responses.append(response)


def _apply_command(
    command: SessionCommand, engine: QuizSessionEngine
) -> QuestionResponse | None:
    if command.type == "select" and command.choice is not None:
        engine.select_answer(command.choice)
        return None
    if command.type == "next":
        engine.next()
        return None
    if command.type == "submit":
        question = engine.current_question
        state = engine.state
        correct = engine.submit()
        if question is None or not isinstance(state, AnswerSelected):
            return None
        return QuestionResponse(
            question=question.text,
            selected=question.answers[state.choice],
            correct_answer=question.correct_answer,
            is_correct=correct,
        )
    return None


def _render_question(console: Console, engine: QuizSessionEngine) -> None:
    session = engine.session
    question = engine.current_question
    if session is None or question is None:
        return
    header = Text.assemble(
        (f"Question {session.current_question_index + 1}", "bold cyan"),
        (f" / {session.total_questions}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.text, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Answer")
    selected = session.selected_answer_index
    for index, answer in enumerate(question.answers):
        indicator = "•" if index == selected else " "
        row = Text(indicator + " ")
        answer_text = Text(answer)
        if index == selected:
            answer_text.stylize("bold green")
        row += answer_text
        table.add_row(choice_key(index), row)
    console.print(table)

    keys = ", ".join(choice_key(i) for i in range(len(question.answers)))
    console.print(
        Text(
            f"Score {session.correct_count} | "
            f"Commands: answers [{keys}], s (submit), q (quit)",
            style="dim",
        )
    )


def _render_review(
    console: Console, engine: QuizSessionEngine, state: Reviewing
) -> None:
    question = engine.current_question
    if question is None:
        return
    if state.correct:
        console.print("[bold green]Correct![/]")
    else:
        console.print(
            Text.assemble(
                ("Incorrect.", "bold red"),
                " The answer was ",
                (question.correct_answer, "bold"),
                ".",
            )
        )
    console.print(Text("n (next), q (quit)", style="dim"))


def render_summary(console: Console, result: QuizSessionResult) -> None:
    console.print()
    console.rule(Text(f"{result.topic_title}: results", style="bold magenta"))

    overview = Table(
        show_header=False, box=box.MINIMAL_DOUBLE_HEAD, expand=False
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Correct", f"{result.score} of {result.total}")
    overview.add_row("Feedback", result.feedback or "")
    console.print(overview)

    if not result.responses:
        return
    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Correct answer")
    responses.add_column("Result", justify="center")
    for number, response in enumerate(result.responses, start=1):
        responses.add_row(
            str(number),
            Text(response.question),
            Text(response.selected),
            Text(response.correct_answer),
            "✅" if response.is_correct else "❌",
        )
    console.print(responses)


def render_topics(console: Console, topics: Sequence[Topic]) -> None:
    """Print the topic list the way the topic screen shows it."""

    if not topics:
        console.print("[yellow]The source lists no topics.[/]")
        return
    table = Table(title="Quiz topics", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Icon", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Description", overflow="fold")
    table.add_column("Questions", justify="right")
    for number, topic in enumerate(topics, start=1):
        table.add_row(
            str(number),
            Text(topic.icon),
            Text(topic.title),
            Text(topic.description),
            str(topic.question_count),
        )
    console.print(table)
