"""Exception types raised by the quiz repository and session engine."""

from __future__ import annotations


class QuizError(RuntimeError):
    """Base class for every error raised by the quiz core."""


class FetchError(QuizError):
    """A topic fetch failed; ``str(exc)`` is suitable for showing to users."""


class ConnectivityError(FetchError):
    """The source could not be reached (DNS, refused, timeout, ...)."""


class ServerStatusError(FetchError):
    """The source answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyBodyError(FetchError):
    """The source answered successfully but without content."""


class DecodeError(FetchError):
    """The payload is not valid JSON or does not match the topic schema."""


class SessionError(QuizError):
    """A session transition was rejected; the engine state is unchanged."""


class InvalidIndexError(SessionError):
    """The chosen topic cannot start a session (it has no questions)."""


class OutOfRangeError(SessionError):
    """An answer index outside the current question's answers."""


class NoSelectionError(SessionError):
    """Submit was requested before any answer was selected."""


class InvalidTransitionError(SessionError):
    """The operation is not allowed in the engine's current state."""
