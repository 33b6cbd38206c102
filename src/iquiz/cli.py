"""Unified CLI entry point for iquiz."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Mapping, Optional, Sequence

HANDLER_MODULE = "iquiz.quizzer._main"


@dataclass(frozen=True)
class CommandSpec:
    """An ``iquiz`` subcommand and its handler in :data:`HANDLER_MODULE`."""

    name: str
    summary: str
    handler: str
    is_tui: bool = False


COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec(
            "init", "Create the workspace and settings file.", "init_main"
        ),
        CommandSpec("topics", "Download and list quiz topics.", "topics_main"),
        CommandSpec("play", "Take a quiz in the terminal.", "play_main"),
        CommandSpec(
            "tui", "Launch the interactive quiz app.", "tui_main", is_tui=True
        ),
        CommandSpec(
            "source", "Show or change the quiz data source URL.", "source_main"
        ),
    )
}


def format_command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    lines = ["Available commands:"]
    for spec in COMMANDS.values():
        suffix = " (TUI)" if spec.is_tui else ""
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}{suffix}")
    return "\n".join(lines)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: iquiz <command> [args...]",
            "Run `iquiz list` for commands or `iquiz help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _out(text: str) -> None:
    sys.stdout.write(text + "\n")


def _err(text: str) -> None:
    sys.stderr.write(text + "\n")


def _unknown(name: str) -> int:
    _err(f"Unknown command '{name}'.")
    _err(format_command_table())
    return 2


def _version() -> str:
    try:
        return metadata.version("iquiz")
    except metadata.PackageNotFoundError:
        return "unknown"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        _out(format_usage())
        return 2

    head, *tail = args
    if head in ("-h", "--help"):
        _out(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        _out(_version())
        return 0
    if head == "list":
        _out(format_command_table())
        return 0
    if head == "help":
        if not tail:
            _out(format_usage())
            return 0
        spec = COMMANDS.get(tail[0])
        if spec is None:
            return _unknown(tail[0])
        _out(f"{spec.name}: {spec.summary}")
        _out(f"Run `iquiz {spec.name} --help` for command options.")
        return 0

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return dispatch(spec, tail)


def dispatch(spec: CommandSpec, argv: Sequence[str]) -> int:
    """Run ``spec``'s handler with ``argv``, folding ``SystemExit`` into a code.

    ``sys.argv`` is rewritten for the duration so argparse reports the
    ``iquiz <name>`` program name.
    """

    handler = getattr(import_module(HANDLER_MODULE), spec.handler)
    saved = sys.argv
    sys.argv = [f"iquiz {spec.name}", *argv]
    try:
        result = handler(list(argv))
    except SystemExit as exc:
        if exc.code is None or isinstance(exc.code, int):
            return exc.code or 0
        _err(str(exc.code))
        return 1
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
