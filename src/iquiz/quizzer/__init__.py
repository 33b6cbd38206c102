from .engine import (
    AnswerSelected,
    AwaitingAnswer,
    Browsing,
    Finished,
    QuizResult,
    QuizSessionEngine,
    Reviewing,
    Session,
    SessionState,
    performance_feedback,
)
from .errors import (
    ConnectivityError,
    DecodeError,
    EmptyBodyError,
    FetchError,
    InvalidIndexError,
    InvalidTransitionError,
    NoSelectionError,
    OutOfRangeError,
    QuizError,
    ServerStatusError,
    SessionError,
)
from .models import (
    DEFAULT_ICON,
    Question,
    Topic,
    decode_topics,
    icon_for_title,
)
from .repository import QuizRepository, TopicsListener
from .session import QuizSessionResult, run_quiz_session
from .settings import (
    DEFAULT_SOURCE_URL,
    DataSourceConfig,
    QuizSettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "AnswerSelected",
    "AwaitingAnswer",
    "Browsing",
    "Finished",
    "QuizResult",
    "QuizSessionEngine",
    "Reviewing",
    "Session",
    "SessionState",
    "performance_feedback",
    "ConnectivityError",
    "DecodeError",
    "EmptyBodyError",
    "FetchError",
    "InvalidIndexError",
    "InvalidTransitionError",
    "NoSelectionError",
    "OutOfRangeError",
    "QuizError",
    "ServerStatusError",
    "SessionError",
    "DEFAULT_ICON",
    "Question",
    "Topic",
    "decode_topics",
    "icon_for_title",
    "QuizRepository",
    "TopicsListener",
    "QuizSessionResult",
    "run_quiz_session",
    "DEFAULT_SOURCE_URL",
    "DataSourceConfig",
    "QuizSettings",
    "SettingsError",
    "load_settings",
]
