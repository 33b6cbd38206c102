from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest
from textual.css.query import NoMatches

from fixtures import json_handler, make_topic, mock_client, sample_payload

from iquiz.quizzer.engine import (
    AnswerSelected,
    AwaitingAnswer,
    Browsing,
    Finished,
    Reviewing,
)
from iquiz.quizzer.repository import QuizRepository
from iquiz.quizzer.settings import DEFAULT_SOURCE_URL
from iquiz.quizzer.view import quiz as view


class InlineExecutor(ThreadPoolExecutor):
    """Run submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):  # type: ignore[override]
        fn(*args, **kwargs)
        return None


@pytest.fixture
def make_app(source_config):
    def _make(handler=None) -> view.QuizApp:
        handler = handler or json_handler(sample_payload())

        def make_repository(_dispatch) -> QuizRepository:
            return QuizRepository(
                source_config,
                client=mock_client(handler),
                dispatch=lambda callback: callback(),
                executor=InlineExecutor(max_workers=1),
            )

        return view.QuizApp(make_repository)

    return _make


@pytest.mark.parametrize(
    "state, expected",
    [
        (Browsing(), "topics"),
        (AwaitingAnswer(0), "question"),
        (AnswerSelected(0, 1), "question"),
        (Reviewing(0, False), "review"),
        (Finished(1, 2), "finished"),
    ],
)
def test_visible_panel_follows_state(state, expected) -> None:
    assert view.visible_panel(state) == expected


def test_review_text() -> None:
    question = make_topic(correct=(2,)).questions[0]

    assert view.review_text(question, True) == "Correct!"
    assert view.review_text(question, False) == (
        "Incorrect. The answer was: c"
    )


def test_topic_label_includes_icon_and_description() -> None:
    label = view.topic_label(make_topic())

    assert "Mathematics" in label.plain
    assert "math_icon" in label.plain
    assert "All about Mathematics" in label.plain


def test_app_loads_topics(make_app) -> None:
    app = make_app()

    generation = app.reload_topics()

    assert generation == 1
    assert [t.title for t in app.topics] == [
        "Science!",
        "Marvel Super Heroes",
        "Mathematics",
    ]
    assert app.status_text == ""


def test_app_reports_download_failure(make_app) -> None:
    app = make_app(json_handler(b""))

    app.reload_topics()

    assert app.topics == []
    assert app.status_text.startswith("Download failed:")
    assert "no data" in app.status_text


def test_app_plays_a_topic_to_the_end(make_app) -> None:
    app = make_app()
    app.reload_topics()

    assert app.select_topic_at(1) is True
    assert isinstance(app.engine.state, AwaitingAnswer)
    assert app.choose_answer(0) is True
    assert app.submit_answer() is True
    assert app.engine.state == Reviewing(0, True)
    assert app.next_question() is True
    assert app.choose_answer(1) is True
    assert app.submit_answer() is True
    assert app.next_question() is True
    assert app.engine.state == Finished(2, 2)
    assert app.engine.result.feedback == "Perfect"

    assert app.leave_quiz() is True
    assert app.engine.state == Browsing()


def test_app_keeps_engine_errors_as_notice(make_app) -> None:
    app = make_app()
    app.reload_topics()
    app.select_topic_at(0)

    assert app.submit_answer() is False
    assert app.notice == "Select an answer before submitting."
    assert app.engine.state == AwaitingAnswer(0)

    app.choose_answer(0)
    assert app.notice == ""


def test_app_ignores_unknown_topic_index(make_app) -> None:
    app = make_app()
    app.reload_topics()

    assert app.select_topic_at(7) is False
    assert app.engine.state == Browsing()


def test_app_leave_mid_quiz_abandons(make_app) -> None:
    app = make_app()
    app.reload_topics()
    app.select_topic_at(2)
    app.choose_answer(1)

    assert app.leave_quiz() is True
    assert app.engine.state == Browsing()
    assert app.engine.session is None


def test_app_save_source_reloads_from_new_location(
    make_app, source_config
) -> None:
    seen: list[str] = []

    def handler(request):
        seen.append(str(request.url))
        return json_handler(sample_payload())(request)

    app = make_app(handler)
    app.reload_topics()

    assert app.save_source("https://quiz.example.org/q.json") is True
    assert source_config.get() == "https://quiz.example.org/q.json"
    assert seen == [DEFAULT_SOURCE_URL, "https://quiz.example.org/q.json"]


def test_app_save_source_rejects_empty(make_app) -> None:
    app = make_app()

    assert app.save_source("   ") is False
    assert "must not be empty" in app.status_text


def _raise(exc: Exception):
    def _query_one(*args, **kwargs):
        raise exc

    return _query_one


def test_app_skips_redraw_when_stage_is_missing(make_app, monkeypatch) -> None:
    app = make_app()
    monkeypatch.setattr(app, "query_one", _raise(NoMatches("#stage")))

    app.reload_topics()

    assert len(app.topics) == 3


def test_app_redraw_does_not_hide_other_errors(make_app, monkeypatch) -> None:
    app = make_app()
    monkeypatch.setattr(app, "query_one", _raise(RuntimeError("layout")))

    with pytest.raises(RuntimeError, match="layout"):
        app.reload_topics()


def test_save_button_without_url_field_is_ignored(
    make_app, monkeypatch, source_config
) -> None:
    app = make_app()
    monkeypatch.setattr(app, "query_one", _raise(NoMatches("#source-url")))

    pressed = SimpleNamespace(button=SimpleNamespace(id="save-source"))
    app.on_button_pressed(pressed)

    assert source_config.get() is None


def test_app_save_source_reports_unreadable_settings(
    make_app, source_config
) -> None:
    source_config.path.parent.mkdir(parents=True, exist_ok=True)
    source_config.path.write_text("[source\nurl = ", encoding="utf-8")
    app = make_app()

    assert app.save_source("https://quiz.example.org/q.json") is False
    assert "parse" in app.status_text
    assert source_config.path.read_text(encoding="utf-8") == "[source\nurl = "
