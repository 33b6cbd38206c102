"""Quiz session state machine.

The engine walks one topic at a time through::

    Browsing -> AwaitingAnswer(q) -> AnswerSelected(q, choice)
             -> Reviewing(q, correct) -> AwaitingAnswer(q + 1) | Finished

Rejected operations raise a :class:`SessionError` subclass and leave the
state untouched. Front ends derive what to show from :attr:`state` alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .errors import (
    InvalidIndexError,
    InvalidTransitionError,
    NoSelectionError,
    OutOfRangeError,
)
from .models import Question, Topic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Browsing:
    """No session; the topic list is showing."""


@dataclass(frozen=True)
class AwaitingAnswer:
    question_index: int


@dataclass(frozen=True)
class AnswerSelected:
    question_index: int
    choice: int


@dataclass(frozen=True)
class Reviewing:
    question_index: int
    correct: bool


@dataclass(frozen=True)
class Finished:
    score: int
    total: int


SessionState = Union[
    Browsing, AwaitingAnswer, AnswerSelected, Reviewing, Finished
]
StateListener = Callable[[SessionState], None]


@dataclass
class Session:
    """Progress through a single topic."""

    topic: Topic
    current_question_index: int = 0
    correct_count: int = 0
    selected_answer_index: Optional[int] = None

    @property
    def total_questions(self) -> int:
        return len(self.topic.questions)

    @property
    def current_question(self) -> Question:
        return self.topic.questions[self.current_question_index]


@dataclass(frozen=True)
class QuizResult:
    topic_title: str
    score: int
    total: int
    feedback: str


def performance_feedback(correct: int, total: int) -> str:
    """Band a finished score; lower bounds are inclusive."""

    if total <= 0:
        raise ValueError("total must be positive")
    if not 0 <= correct <= total:
        raise ValueError(f"correct must be within 0..{total}")
    if correct == total:
        return "Perfect"
    # Compare as integers so 3/4 lands exactly on the 0.75 boundary.
    if correct * 4 >= total * 3:
        return "Almost there"
    if correct * 2 >= total:
        return "Good effort, can improve"
    return "Try harder"


class QuizSessionEngine:
    """Owns the active :class:`Session` and enforces valid transitions.

    Not thread-safe: one controlling context drives one engine.
    """

    def __init__(self, on_state_changed: Optional[StateListener] = None):
        self._state: SessionState = Browsing()
        self._session: Optional[Session] = None
        self._listener = on_state_changed

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def current_question(self) -> Optional[Question]:
        if self._session is None or isinstance(self._state, Finished):
            return None
        return self._session.current_question

    @property
    def result(self) -> Optional[QuizResult]:
        if not isinstance(self._state, Finished) or self._session is None:
            return None
        return QuizResult(
            topic_title=self._session.topic.title,
            score=self._state.score,
            total=self._state.total,
            feedback=performance_feedback(
                self._state.score, self._state.total
            ),
        )

    def select_topic(self, topic: Topic) -> SessionState:
        if not isinstance(self._state, Browsing):
            raise InvalidTransitionError(
                "Finish or abandon the current quiz before choosing a topic."
            )
        if not topic.questions:
            raise InvalidIndexError(
                f"Topic '{topic.title}' has no questions."
            )
        self._session = Session(topic=topic)
        return self._transition(AwaitingAnswer(0))

    def select_answer(self, index: int) -> SessionState:
        state = self._state
        if not isinstance(state, (AwaitingAnswer, AnswerSelected)):
            raise InvalidTransitionError(
                "Answers can only be chosen while a question is open."
            )
        session = self._require_session()
        count = len(session.current_question.answers)
        if not 0 <= index < count:
            raise OutOfRangeError(
                f"Answer {index} is out of range; choose 0..{count - 1}."
            )
        session.selected_answer_index = index
        return self._transition(
            AnswerSelected(state.question_index, index)
        )

    def submit(self) -> bool:
        """Score the selected answer and return whether it was correct."""

        state = self._state
        if isinstance(state, AwaitingAnswer):
            raise NoSelectionError("Select an answer before submitting.")
        if not isinstance(state, AnswerSelected):
            raise InvalidTransitionError(
                "There is no pending answer to submit."
            )
        session = self._require_session()
        correct = session.current_question.is_correct(state.choice)
        if correct:
            session.correct_count += 1
        self._transition(Reviewing(state.question_index, correct))
        return correct

    def next(self) -> SessionState:
        state = self._state
        if not isinstance(state, Reviewing):
            raise InvalidTransitionError(
                "Submit the current answer before moving on."
            )
        session = self._require_session()
        following = session.current_question_index + 1
        if following < session.total_questions:
            session.current_question_index = following
            session.selected_answer_index = None
            return self._transition(AwaitingAnswer(following))
        return self._transition(
            Finished(session.correct_count, session.total_questions)
        )

    def abandon(self) -> SessionState:
        if isinstance(self._state, (Browsing, Finished)):
            raise InvalidTransitionError("There is no quiz in progress.")
        self._session = None
        return self._transition(Browsing())

    def acknowledge_finish(self) -> QuizResult:
        result = self.result
        if result is None:
            raise InvalidTransitionError("The quiz is not finished yet.")
        self._session = None
        self._transition(Browsing())
        return result

    def _require_session(self) -> Session:
        if self._session is None:  # pragma: no cover - guarded by state
            raise InvalidTransitionError("No active session.")
        return self._session

    def _transition(self, new_state: SessionState) -> SessionState:
        logger.debug(
            "Session state changed",
            extra={
                "from_state": type(self._state).__name__,
                "to_state": type(new_state).__name__,
            },
        )
        self._state = new_state
        if self._listener is not None:
            self._listener(new_state)
        return new_state
