from __future__ import annotations

import pytest
from rich.console import Console

from fixtures import make_topic

from iquiz.quizzer.engine import Browsing, QuizSessionEngine
from iquiz.quizzer.models import Question, Topic
from iquiz.quizzer.session import (
    QuestionResponse,
    QuizSessionResult,
    SessionCommand,
    _apply_command,
    choice_key,
    parse_session_command,
    render_summary,
    render_topics,
    run_quiz_session,
)


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def _console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def test_parse_session_command_variants() -> None:
    assert parse_session_command("a") == SessionCommand("select", 0)
    assert parse_session_command("D") == SessionCommand("select", 3)
    assert parse_session_command("  Next ") == SessionCommand("next")
    assert parse_session_command("s") == SessionCommand("submit")
    assert parse_session_command("submit") == SessionCommand("submit")
    assert parse_session_command("quit") == SessionCommand("quit")
    assert parse_session_command("exit") == SessionCommand("quit")
    assert parse_session_command(None) is None
    assert parse_session_command("") is None
    assert parse_session_command("?unknown") is None


def test_choice_key_letters() -> None:
    assert [choice_key(i) for i in range(3)] == ["A", "B", "C"]
    assert choice_key(30) == "31"


def test_run_quiz_session_perfect_flow() -> None:
    console = _console()
    engine = QuizSessionEngine()
    provider = make_provider(["a", "s", "n", "c", "b", "submit", "next"])

    result = run_quiz_session(make_topic(), engine, console, provider)

    assert result.exit_action == "finished"
    assert (result.score, result.total) == (2, 2)
    assert result.feedback == "Perfect"
    assert [r.is_correct for r in result.responses] == [True, True]
    assert result.responses[1].selected == "b"
    assert engine.state == Browsing()
    output = console.export_text()
    assert "Question 1" in output
    assert "Correct!" in output
    assert "Mathematics: results" in output
    assert "2 of 2" in output


def test_run_quiz_session_reports_wrong_answer() -> None:
    console = _console()
    engine = QuizSessionEngine()
    provider = make_provider(["c", "s", "n"])

    result = run_quiz_session(
        make_topic(correct=(1,)), engine, console, provider
    )

    assert result.exit_action == "finished"
    assert result.score == 0
    assert result.feedback == "Try harder"
    assert result.responses == [
        QuestionResponse(
            question="Question 1",
            selected="c",
            correct_answer="b",
            is_correct=False,
        )
    ]
    assert "The answer was" in console.export_text()


def test_run_quiz_session_surfaces_engine_errors() -> None:
    console = _console()
    engine = QuizSessionEngine()
    provider = make_provider(["s", "z", "n", "???", "q"])

    result = run_quiz_session(make_topic(), engine, console, provider)

    assert result.exit_action == "quit"
    assert engine.state == Browsing()
    output = console.export_text()
    assert "Select an answer before submitting." in output
    assert "out of range" in output
    assert "Submit the current answer before moving on." in output
    assert "Unrecognized command" in output
    assert "Leaving quiz without a score." in output


def test_run_quiz_session_empty_topic() -> None:
    console = _console()
    engine = QuizSessionEngine()

    result = run_quiz_session(
        make_topic("Empty", correct=()), engine, console, lambda: ""
    )

    assert result.exit_action == "empty"
    assert engine.state == Browsing()
    assert "has no questions" in console.export_text()


def test_run_quiz_session_handles_stop_iteration() -> None:
    console = _console()
    engine = QuizSessionEngine()

    result = run_quiz_session(
        make_topic(), engine, console, iter(()).__next__
    )

    assert result.exit_action == "quit"
    assert engine.state == Browsing()
    assert "Session interrupted" in console.export_text()


def test_apply_command_ignores_select_without_choice() -> None:
    engine = QuizSessionEngine()
    engine.select_topic(make_topic())

    result = _apply_command(SessionCommand("select", None), engine)

    assert result is None
    assert engine.session.selected_answer_index is None


def test_render_summary_without_responses() -> None:
    console = _console()

    render_summary(
        console,
        QuizSessionResult(
            topic_title="Science",
            exit_action="finished",
            score=3,
            total=4,
            feedback="Almost there",
        ),
    )

    output = console.export_text()
    assert "3 of 4" in output
    assert "Almost there" in output
    assert "Responses" not in output


def test_render_topics_lists_titles_and_counts() -> None:
    console = _console()

    render_topics(console, [make_topic(), make_topic("Science", correct=(0,))])

    output = console.export_text()
    assert "Mathematics" in output
    assert "Science" in output
    assert "All about Science" in output


def test_render_topics_empty() -> None:
    console = _console()

    render_topics(console, [])

    assert "no topics" in console.export_text()


def _bracket_topic(correct_index: int) -> Topic:
    question = Question(
        text="Which annotation is [generic]?",
        answers=("list[int]", "a[/]", "[bold]plain"),
        correct_index=correct_index,
    )
    return Topic(
        id="types",
        title="Types [advanced]",
        description="Square [brackets]",
        icon="generic_icon",
        questions=(question,),
    )


@pytest.mark.parametrize(
    "correct_index, expected",
    [(0, "list[int]"), (1, "a[/]"), (2, "[bold]plain")],
)
def test_bracketed_text_is_shown_literally(correct_index, expected) -> None:
    console = _console()
    wrong = "c" if correct_index != 2 else "a"
    provider = make_provider([wrong, "s", "n"])

    result = run_quiz_session(
        _bracket_topic(correct_index), QuizSessionEngine(), console, provider
    )

    assert result.exit_action == "finished"
    assert result.responses[0].correct_answer == expected
    output = console.export_text()
    assert f"The answer was {expected}." in output
    assert "Which annotation is [generic]?" in output


def test_render_topics_keeps_brackets() -> None:
    console = _console()

    render_topics(console, [_bracket_topic(0)])

    output = console.export_text()
    assert "Types [advanced]" in output
    assert "Square [brackets]" in output
