"""Topic and question records plus the wire-format decoder.

The remote document is a JSON array of topics::

    [{"title": "Science", "desc": "...",
      "questions": [{"text": "...", "answer": "1", "answers": ["a", "b"]}]}]

``answer`` is a 1-based ordinal. ``decode_topics`` is the only place that
converts it; everything past this module works with 0-based indices.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .errors import DecodeError

DEFAULT_ICON = "generic_icon"

TOPIC_ICONS: Mapping[str, str] = {
    "Mathematics": "math_icon",
    "Marvel Super Heroes": "heroes_icon",
    "Science": "science_icon",
}

_slug_re = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class Question:
    """A multiple-choice question with a 0-based correct answer index."""

    text: str
    answers: tuple[str, ...]
    correct_index: int

    def __post_init__(self) -> None:
        if len(self.answers) < 2:
            raise ValueError("a question needs at least two answers")
        if not 0 <= self.correct_index < len(self.answers):
            raise ValueError(
                f"correct_index {self.correct_index} outside "
                f"0..{len(self.answers) - 1}"
            )

    @property
    def correct_answer(self) -> str:
        return self.answers[self.correct_index]

    def is_correct(self, index: int) -> bool:
        return index == self.correct_index


@dataclass(frozen=True)
class Topic:
    """A quiz topic as shown in the topic list."""

    id: str
    title: str
    description: str
    icon: str
    questions: tuple[Question, ...]

    @property
    def question_count(self) -> int:
        return len(self.questions)


def slugify(title: str) -> str:
    s = title.strip().lower()
    s = _slug_re.sub("-", s).strip("-")
    return s or "topic"


def icon_for_title(title: str) -> str:
    """Return the icon identifier for ``title`` (exact, case-sensitive)."""

    return TOPIC_ICONS.get(title, DEFAULT_ICON)


def decode_topics(payload: Any) -> list[Topic]:
    """Decode the parsed JSON ``payload`` into topics.

    Any structural problem fails the whole payload with :class:`DecodeError`;
    individual topics are never skipped.
    """

    if not isinstance(payload, list):
        raise DecodeError(
            "Expected a list of topics, found {0}.".format(
                type(payload).__name__
            )
        )
    return [
        _decode_topic(entry, position)
        for position, entry in enumerate(payload, start=1)
    ]


def _decode_topic(entry: Any, position: int) -> Topic:
    where = f"topic {position}"
    if not isinstance(entry, Mapping):
        raise DecodeError(f"{where}: expected an object.")
    title = _require_str(entry, "title", where)
    description = _require_str(entry, "desc", f"{where} ({title!r})")
    raw_questions = entry.get("questions")
    if not isinstance(raw_questions, Sequence) or isinstance(
        raw_questions, (str, bytes)
    ):
        raise DecodeError(
            f"{where} ({title!r}): 'questions' must be a list."
        )
    questions = tuple(
        _decode_question(raw, f"{where} ({title!r}) question {number}")
        for number, raw in enumerate(raw_questions, start=1)
    )
    return Topic(
        id=slugify(title),
        title=title,
        description=description,
        icon=icon_for_title(title),
        questions=questions,
    )


def _decode_question(raw: Any, where: str) -> Question:
    if not isinstance(raw, Mapping):
        raise DecodeError(f"{where}: expected an object.")
    text = _require_str(raw, "text", where)
    answers_field = raw.get("answers")
    if not isinstance(answers_field, Sequence) or isinstance(
        answers_field, (str, bytes)
    ):
        raise DecodeError(f"{where}: 'answers' must be a list of strings.")
    if not all(isinstance(item, str) for item in answers_field):
        raise DecodeError(f"{where}: 'answers' must be a list of strings.")
    answers = tuple(answers_field)
    if len(answers) < 2:
        raise DecodeError(f"{where}: at least two answers are required.")
    ordinal = _parse_ordinal(raw.get("answer"), where)
    if not 1 <= ordinal <= len(answers):
        raise DecodeError(
            f"{where}: answer {ordinal} is outside 1..{len(answers)}."
        )
    return Question(text=text, answers=answers, correct_index=ordinal - 1)


def _parse_ordinal(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise DecodeError(f"{where}: 'answer' must be an integer ordinal.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    if value is None:
        raise DecodeError(f"{where}: missing 'answer'.")
    raise DecodeError(
        f"{where}: 'answer' must be an integer ordinal, got {value!r}."
    )


def _require_str(data: Mapping[str, Any], key: str, where: str) -> str:
    if key not in data:
        raise DecodeError(f"{where}: missing '{key}'.")
    value = data[key]
    if not isinstance(value, str):
        raise DecodeError(f"{where}: '{key}' must be a string.")
    return value
