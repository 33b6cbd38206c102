"""Command handlers behind ``iquiz <command>``."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from iquiz.core.logging import configure_logger

from .engine import QuizSessionEngine
from .errors import FetchError
from .models import Topic
from .repository import (
    Dispatch,
    QuizRepository,
    is_well_formed_location,
)
from .session import render_topics, run_quiz_session
from .settings import (
    CONFIG_FILENAME,
    SettingsError,
    SettingsLoadResult,
    load_settings,
    write_settings_template,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandContext:
    loaded: SettingsLoadResult
    log_path: Path


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings file (defaults to IQUIZ_CONFIG or the workspace copy).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root (defaults to IQUIZ_DATA_HOME or ~/.iquiz-data).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )


def _bootstrap(args: argparse.Namespace) -> CommandContext:
    loaded = load_settings(
        config_path=args.config, workspace_path=args.workspace
    )
    _, log_path = configure_logger(
        "iquiz",
        log_dir=loaded.layout.path_for("logs"),
        level=loaded.settings.logging.level,
        verbose=bool(args.verbose or loaded.settings.logging.verbose),
    )
    return CommandContext(loaded=loaded, log_path=log_path)


def build_repository(
    loaded: SettingsLoadResult, *, dispatch: Optional[Dispatch] = None
) -> QuizRepository:
    return QuizRepository(
        loaded.source,
        timeout=loaded.settings.http.timeout_seconds,
        dispatch=dispatch,
    )


def _error(message: str) -> None:
    sys.stderr.write(message + "\n")


def _run(
    parser: argparse.ArgumentParser,
    argv: Optional[Sequence[str]],
    handler: Callable[[argparse.Namespace, CommandContext], int],
) -> int:
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = _bootstrap(args)
    except SettingsError as exc:
        _error(f"Error: {exc}")
        return 2
    logger.debug("iquiz command invoked", extra={"prog": parser.prog})
    return handler(args, context)


def _fetch(repository: QuizRepository) -> Optional[list[Topic]]:
    try:
        return repository.fetch_topics()
    except FetchError as exc:
        _error(f"Error: {exc}")
        return None


def pick_topic(topics: Sequence[Topic], selector: str) -> Optional[Topic]:
    """Find a topic by 1-based position, id, or case-insensitive title."""

    wanted = selector.strip()
    if wanted.isdigit():
        position = int(wanted)
        if 1 <= position <= len(topics):
            return topics[position - 1]
        return None
    lowered = wanted.lower()
    for topic in topics:
        if topic.id == lowered or topic.title.lower() == lowered:
            return topic
    return None


# init
def _init_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iquiz init",
        description="Create the workspace and write the settings template.",
    )
    _add_common_options(parser)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing settings file.",
    )
    return parser


def _cmd_init(args: argparse.Namespace, context: CommandContext) -> int:
    path = context.loaded.config_path
    if path.exists() and not args.force:
        print(f"{CONFIG_FILENAME} already exists at {path}")
        return 0
    try:
        write_settings_template(path, overwrite=bool(args.force))
    except SettingsError as exc:
        _error(f"Error: {exc}")
        return 1
    print(f"Workspace ready at {context.loaded.layout.home}")
    print(f"Created settings {path}")
    return 0


def init_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_init_parser(), argv, _cmd_init)


# topics
def _topics_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iquiz topics",
        description="Download and list the available quiz topics.",
    )
    _add_common_options(parser)
    return parser


def _cmd_topics(args: argparse.Namespace, context: CommandContext) -> int:
    with build_repository(context.loaded) as repository:
        topics = _fetch(repository)
    if topics is None:
        return 1
    render_topics(Console(), topics)
    return 0


def topics_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_topics_parser(), argv, _cmd_topics)


# play
def _play_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iquiz play",
        description="Take a quiz in the terminal.",
    )
    _add_common_options(parser)
    parser.add_argument(
        "topic",
        nargs="?",
        help="Topic number, id or title (prompted when omitted).",
    )
    return parser


def _cmd_play(
    args: argparse.Namespace,
    context: CommandContext,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    console = console or Console()
    ask = input_provider or (lambda: console.input("> "))

    with build_repository(context.loaded) as repository:
        topics = _fetch(repository)
    if topics is None:
        return 1
    if not topics:
        _error("The source lists no topics.")
        return 1

    selector = args.topic
    if not selector:
        render_topics(console, topics)
        console.print("Pick a topic by number, id or title.")
        try:
            selector = ask()
        except (EOFError, KeyboardInterrupt):
            return 1
    topic = pick_topic(topics, selector or "")
    if topic is None:
        _error(f"Unknown topic '{selector}'.")
        return 2

    result = run_quiz_session(topic, QuizSessionEngine(), console, ask)
    logger.info(
        "Quiz session ended",
        extra={
            "topic": topic.title,
            "exit_action": result.exit_action,
            "score": result.score,
            "total": result.total,
        },
    )
    return 1 if result.exit_action == "empty" else 0


def play_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_play_parser(), argv, _cmd_play)


# tui
def _tui_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iquiz tui",
        description="Launch the Textual quiz app.",
    )
    _add_common_options(parser)
    return parser


def _cmd_tui(args: argparse.Namespace, context: CommandContext) -> int:
    from .view.quiz import QuizApp

    app = QuizApp(
        lambda dispatch: build_repository(context.loaded, dispatch=dispatch)
    )
    try:
        app.run()
    finally:
        app.repository.close()
    return 0


def tui_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_tui_parser(), argv, _cmd_tui)


# source
def _source_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iquiz source",
        description="Show or change where quiz topics are downloaded from.",
    )
    _add_common_options(parser)
    parser.add_argument("url", nargs="?", help="New source location.")
    return parser


def _cmd_source(args: argparse.Namespace, context: CommandContext) -> int:
    with build_repository(context.loaded) as repository:
        if args.url is None:
            print(repository.resolve_source_location())
            return 0
        try:
            repository.set_source_location(args.url)
        except (ValueError, SettingsError) as exc:
            _error(f"Error: {exc}")
            return 2
        location = args.url.strip()
        print(f"Source set to {location}")
        if not is_well_formed_location(location):
            _error(
                "Warning: not an http(s) URL; the default source will be "
                "used until it is fixed."
            )
    return 0


def source_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_source_parser(), argv, _cmd_source)
