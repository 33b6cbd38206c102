from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from iquiz.core import workspace as workspace_mod  # noqa: E402
from iquiz.quizzer.settings import DataSourceConfig  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    """Point the workspace and settings env vars at a per-test directory."""

    root = tmp_path / "iquiz-data"
    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(root))
    monkeypatch.delenv("IQUIZ_CONFIG", raising=False)
    monkeypatch.delenv("IQUIZ_LOG_LEVEL", raising=False)
    yield root
    iquiz_logger = logging.getLogger("iquiz")
    for handler in list(iquiz_logger.handlers):
        handler.close()
        iquiz_logger.removeHandler(handler)


@pytest.fixture
def source_config(tmp_path: Path) -> DataSourceConfig:
    """A data-source config backed by a file that does not exist yet."""

    return DataSourceConfig(tmp_path / "config" / "iquiz.toml")
