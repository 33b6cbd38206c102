from typing import Callable, List, Literal, Optional, Sequence

from rich.text import Text
from textual.app import App, ComposeResult, ScreenStackError
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Button, Input, Static

from ..engine import (
    AnswerSelected,
    AwaitingAnswer,
    Finished,
    QuizResult,
    QuizSessionEngine,
    Reviewing,
    SessionState,
)
from ..errors import SessionError
from ..models import Question, Topic
from ..repository import Dispatch, QuizRepository
from ..session import choice_key
from ..settings import SettingsError

Panel = Literal["topics", "question", "review", "finished"]


def visible_panel(state: SessionState) -> Panel:
    """Map an engine state to the panel that should be on screen."""

    if isinstance(state, (AwaitingAnswer, AnswerSelected)):
        return "question"
    if isinstance(state, Reviewing):
        return "review"
    if isinstance(state, Finished):
        return "finished"
    return "topics"


def topic_label(topic: Topic) -> Text:
    label = Text(topic.title, style="bold")
    label.append(f"  ({topic.icon})", style="dim")
    label.append("\n" + topic.description)
    return label


def review_text(question: Question, correct: bool) -> str:
    if correct:
        return "Correct!"
    return f"Incorrect. The answer was: {question.correct_answer}"


class QuizApp(App):
    TITLE = "iQuiz"
    CSS = """
#answers Button.selected { background: $accent; color: black; }
#topic-list Button { width: 100%; height: auto; }
#status, #message { color: $warning; }
"""
    BINDINGS = [
        ("a", "choose(0)", "A"),
        ("b", "choose(1)", "B"),
        ("c", "choose(2)", "C"),
        ("d", "choose(3)", "D"),
        ("s", "submit", "Submit"),
        ("n", "next", "Next"),
        ("escape", "leave", "Back"),
        ("r", "reload", "Reload"),
    ]

    def __init__(
        self,
        make_repository: Callable[[Dispatch], QuizRepository],
    ) -> None:
        super().__init__()
        # Fetch completions arrive on worker threads; hop back to the UI.
        self._repository = make_repository(self.call_from_thread)
        self._quiz_engine = QuizSessionEngine(
            on_state_changed=self._handle_state_change
        )
        self._topics: List[Topic] = []
        self._quiz_status = ""
        self._quiz_message = ""

    @property
    def repository(self) -> QuizRepository:
        return self._repository

    @property
    def engine(self) -> QuizSessionEngine:
        return self._quiz_engine

    @property
    def topics(self) -> List[Topic]:
        return list(self._topics)

    @property
    def status_text(self) -> str:
        return self._quiz_status

    @property
    def notice(self) -> str:
        return self._quiz_message

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield self._build_panel()

    def on_mount(self) -> None:
        self.reload_topics()

    # Topic loading (TopicsListener)
    def reload_topics(self) -> int:
        location = self._repository.resolve_source_location()
        self._quiz_status = f"Loading topics from {location}..."
        self._update_stage()
        return self._repository.request_topics(self)

    def on_topics_loaded(self, topics: Sequence[Topic]) -> None:
        self._topics = list(topics)
        self._quiz_status = "" if self._topics else "No topics available."
        self._update_stage()

    def on_fetch_failed(self, message: str) -> None:
        self._quiz_status = f"Download failed: {message}"
        self._update_stage()

    def save_source(self, location: str) -> bool:
        try:
            self._repository.set_source_location(location)
        except (ValueError, SettingsError) as exc:
            self._quiz_status = str(exc)
            self._update_stage()
            return False
        self.reload_topics()
        return True

    # Session commands; each returns False when the engine refused it
    def select_topic_at(self, index: int) -> bool:
        if not 0 <= index < len(self._topics):
            return False
        return self._run(
            lambda: self._quiz_engine.select_topic(self._topics[index])
        )

    def choose_answer(self, index: int) -> bool:
        return self._run(lambda: self._quiz_engine.select_answer(index))

    def submit_answer(self) -> bool:
        return self._run(self._quiz_engine.submit)

    def next_question(self) -> bool:
        return self._run(self._quiz_engine.next)

    def leave_quiz(self) -> bool:
        if isinstance(self._quiz_engine.state, Finished):
            return self._run(self._quiz_engine.acknowledge_finish)
        return self._run(self._quiz_engine.abandon)

    def _run(self, command: Callable[[], object]) -> bool:
        try:
            command()
        except SessionError as exc:
            self._quiz_message = str(exc)
            self._update_stage()
            return False
        return True

    def _handle_state_change(self, _state: SessionState) -> None:
        self._quiz_message = ""
        self._update_stage()

    def _build_panel(self) -> Widget:
        engine = self._quiz_engine
        panel = visible_panel(engine.state)
        session = engine.session
        if panel == "question" and session is not None:
            return QuestionView(
                session.current_question,
                index=session.current_question_index + 1,
                total=session.total_questions,
                selected=session.selected_answer_index,
                message=self._quiz_message,
            )
        if panel == "review" and session is not None:
            state = engine.state
            return ReviewView(
                session.current_question,
                correct=bool(getattr(state, "correct", False)),
                score=session.correct_count,
                answered=session.current_question_index + 1,
                message=self._quiz_message,
            )
        result = engine.result
        if panel == "finished" and result is not None:
            return FinishedView(result)
        return TopicListView(
            self._topics,
            status=self._quiz_status,
            source_url=self._repository.resolve_source_location(),
        )

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except (NoMatches, ScreenStackError):
            return
        stage.remove_children()
        stage.mount(self._build_panel())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("topic-"):
            self.select_topic_at(int(bid.split("-", 1)[1]))
        elif bid.startswith("answer-"):
            self.choose_answer(int(bid.split("-", 1)[1]))
        elif bid == "submit":
            self.submit_answer()
        elif bid == "next":
            self.next_question()
        elif bid in ("leave", "finish"):
            self.leave_quiz()
        elif bid == "save-source":
            try:
                field = self.query_one("#source-url", Input)
            except NoMatches:
                return
            self.save_source(field.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if getattr(event.input, "id", None) == "source-url":
            self.save_source(event.value)

    def action_choose(self, index: int) -> None:
        self.choose_answer(index)

    def action_submit(self) -> None:
        self.submit_answer()

    def action_next(self) -> None:
        self.next_question()

    def action_leave(self) -> None:
        self.leave_quiz()

    def action_reload(self) -> None:
        if visible_panel(self._quiz_engine.state) == "topics":
            self.reload_topics()


class TopicListView(Widget):
    """Topic list plus the source-location setting."""

    def __init__(
        self,
        topics: Sequence[Topic],
        *,
        status: str = "",
        source_url: str = "",
    ) -> None:
        super().__init__()
        self.topics = list(topics)
        self.status_text = status
        self.source_url = source_url

    def compose(self) -> ComposeResult:
        yield Static("Quiz topics", id="heading")
        with VerticalScroll(id="topic-list"):
            for index, topic in enumerate(self.topics):
                yield Button(topic_label(topic), id=f"topic-{index}")
        yield Static(Text(self.status_text), id="status")
        with Horizontal(id="settings"):
            yield Input(
                value=self.source_url,
                placeholder="Quiz source URL",
                id="source-url",
            )
            yield Button("Check now", id="save-source")


class QuestionView(Widget):
    """A single question with its answers, progress and any warning."""

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        selected: Optional[int] = None,
        message: str = "",
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.selected = selected
        self.notice = message

    def compose(self) -> ComposeResult:
        yield Static(f"Question {self.index} of {self.total}", id="progress")
        yield Static(Text(self.question.text), id="question-text")
        with Vertical(id="answers"):
            for number, answer in enumerate(self.question.answers):
                btn = Button(
                    Text(f"{choice_key(number)}) {answer}"),
                    id=f"answer-{number}",
                )
                if number == self.selected:
                    btn.add_class("selected")
                yield btn
        with Horizontal(id="nav"):
            yield Button("Submit", id="submit", variant="primary")
            yield Button("Back", id="leave")
        yield Static(Text(self.notice), id="message")


class ReviewView(Widget):
    """Outcome of the answer just submitted."""

    def __init__(
        self,
        question: Question,
        *,
        correct: bool,
        score: int,
        answered: int,
        message: str = "",
    ) -> None:
        super().__init__()
        self.question = question
        self.correct = correct
        self.score = score
        self.answered = answered
        self.notice = message

    def compose(self) -> ComposeResult:
        yield Static(Text(self.question.text), id="question-text")
        yield Static(Text(review_text(self.question, self.correct)), id="review")
        yield Static(f"Score: {self.score}/{self.answered}", id="score")
        with Horizontal(id="nav"):
            yield Button("Next", id="next", variant="primary")
            yield Button("Back", id="leave")
        yield Static(Text(self.notice), id="message")


class FinishedView(Widget):
    def __init__(self, result: QuizResult) -> None:
        super().__init__()
        self.result = result

    def compose(self) -> ComposeResult:
        yield Static(Text(self.result.feedback, style="bold"), id="feedback")
        yield Static(
            f"You answered {self.result.score} of {self.result.total} "
            "questions correctly.",
            id="score",
        )
        yield Button("Back to topics", id="finish", variant="primary")
