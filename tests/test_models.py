from __future__ import annotations

import pytest

from fixtures import sample_payload

from iquiz.quizzer.errors import DecodeError
from iquiz.quizzer.models import (
    DEFAULT_ICON,
    Question,
    decode_topics,
    icon_for_title,
    slugify,
)


def _single(question: dict) -> list[dict]:
    return [{"title": "T", "desc": "d", "questions": [question]}]


def test_decode_converts_one_based_answer() -> None:
    topics = decode_topics(
        _single({"text": "Q", "answer": "2", "answers": ["a", "b", "c"]})
    )

    question = topics[0].questions[0]
    assert question.correct_index == 1
    assert question.correct_answer == "b"
    assert question.is_correct(1)
    assert not question.is_correct(0)


def test_decode_sample_payload_shapes_topics() -> None:
    topics = decode_topics(sample_payload())

    assert [t.title for t in topics] == [
        "Science!",
        "Marvel Super Heroes",
        "Mathematics",
    ]
    marvel = topics[1]
    assert marvel.id == "marvel-super-heroes"
    assert marvel.description == "Avengers, Assemble!"
    assert marvel.question_count == 2
    assert [q.correct_index for q in marvel.questions] == [0, 1]


def test_icons_follow_exact_title_lookup() -> None:
    topics = decode_topics(sample_payload())
    icons = {t.title: t.icon for t in topics}

    assert icons["Mathematics"] == "math_icon"
    assert icons["Marvel Super Heroes"] == "heroes_icon"
    assert icons["Science!"] == DEFAULT_ICON
    assert icon_for_title("mathematics") == DEFAULT_ICON
    assert icon_for_title("Science") == "science_icon"


def test_decode_accepts_integer_ordinals_and_padding() -> None:
    topics = decode_topics(
        _single({"text": "Q", "answer": " 1 ", "answers": ["a", "b"]})
        + _single({"text": "Q", "answer": 2, "answers": ["a", "b"]})
    )

    assert [t.questions[0].correct_index for t in topics] == [0, 1]


def test_decode_keeps_topics_without_questions() -> None:
    topics = decode_topics([{"title": "Empty", "desc": "", "questions": []}])

    assert topics[0].questions == ()


@pytest.mark.parametrize(
    "answer",
    ["0", "4", "-1", "two", "", None, True, 1.5],
)
def test_decode_rejects_bad_ordinals(answer) -> None:
    payload = _single({"text": "Q", "answer": answer, "answers": ["a", "b", "c"]})

    with pytest.raises(DecodeError):
        decode_topics(payload)


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ({"title": "T"}, "list of topics"),
        ([{"desc": "d", "questions": []}], "missing 'title'"),
        ([{"title": "T", "questions": []}], "missing 'desc'"),
        ([{"title": "T", "desc": "d"}], "'questions' must be a list"),
        ([{"title": 3, "desc": "d", "questions": []}], "'title' must be"),
        (["nope"], "expected an object"),
    ],
)
def test_decode_rejects_bad_topic_shapes(payload, fragment) -> None:
    with pytest.raises(DecodeError) as excinfo:
        decode_topics(payload)

    assert fragment in str(excinfo.value)


def test_decode_failure_in_one_topic_fails_whole_payload() -> None:
    payload = sample_payload()
    payload[2]["questions"][0]["answer"] = "x"

    with pytest.raises(DecodeError) as excinfo:
        decode_topics(payload)

    assert "topic 3" in str(excinfo.value)


def test_decode_requires_two_string_answers() -> None:
    with pytest.raises(DecodeError):
        decode_topics(_single({"text": "Q", "answer": "1", "answers": ["a"]}))
    with pytest.raises(DecodeError):
        decode_topics(
            _single({"text": "Q", "answer": "1", "answers": ["a", 2]})
        )
    with pytest.raises(DecodeError):
        decode_topics(_single({"text": "Q", "answer": "1", "answers": "ab"}))


def test_question_guards_its_invariant() -> None:
    with pytest.raises(ValueError):
        Question(text="Q", answers=("a", "b"), correct_index=2)
    with pytest.raises(ValueError):
        Question(text="Q", answers=("a",), correct_index=0)


def test_slugify_falls_back_for_symbol_only_titles() -> None:
    assert slugify("  Science! ") == "science"
    assert slugify("???") == "topic"
