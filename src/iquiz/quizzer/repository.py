"""Fetch and decode quiz topics from the configured data source."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Optional, Protocol, Sequence
from urllib.parse import urlsplit

import httpx

from .errors import (
    ConnectivityError,
    DecodeError,
    EmptyBodyError,
    FetchError,
    ServerStatusError,
)
from .models import Topic, decode_topics
from .settings import DEFAULT_SOURCE_URL, DataSourceConfig

Dispatch = Callable[[Callable[[], None]], None]

logger = logging.getLogger(__name__)


class TopicsListener(Protocol):
    """Receiver for asynchronous fetch completions."""

    def on_topics_loaded(self, topics: Sequence[Topic]) -> None: ...

    def on_fetch_failed(self, message: str) -> None: ...


def is_well_formed_location(location: Optional[str]) -> bool:
    if not location or not location.strip():
        return False
    parts = urlsplit(location.strip())
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def _run_inline(callback: Callable[[], None]) -> None:
    callback()


class QuizRepository:
    """Resolve the source location and retrieve the topic list.

    ``fetch_topics`` is the synchronous primitive. ``request_topics`` runs it
    on a worker thread and hands the completion to ``dispatch`` (the
    designated callback context). Only the most recent request's completion
    is delivered; earlier ones are dropped.
    """

    def __init__(
        self,
        config: DataSourceConfig,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        dispatch: Optional[Dispatch] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout, follow_redirects=True
        )
        self._dispatch: Dispatch = dispatch or _run_inline
        self._owns_executor = executor is None
        self._executor = executor
        self._generation = 0

    def __enter__(self) -> "QuizRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def generation(self) -> int:
        return self._generation

    def resolve_source_location(self) -> str:
        stored = self._config.get()
        if stored is not None and is_well_formed_location(stored):
            return stored.strip()
        if stored is not None:
            logger.warning(
                "Stored source location is malformed; using default",
                extra={"stored": stored, "default": DEFAULT_SOURCE_URL},
            )
        return DEFAULT_SOURCE_URL

    def set_source_location(self, location: str) -> None:
        if not location or not location.strip():
            raise ValueError("Source location must not be empty.")
        self._config.set(location)

    def fetch_topics(self) -> list[Topic]:
        """Fetch, decode and return the topic list.

        Raises a :class:`FetchError` subclass describing the failure.
        """

        url = self.resolve_source_location()
        logger.info("Fetching topics", extra={"url": url})
        try:
            response = self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "Topic fetch failed to connect",
                extra={"url": url, "reason": repr(exc)},
            )
            raise ConnectivityError(
                f"Could not reach {url}: {str(exc) or type(exc).__name__}"
            ) from exc

        if not response.is_success:
            logger.error(
                "Topic fetch returned error status",
                extra={"url": url, "status": response.status_code},
            )
            status = str(response.status_code)
            if response.reason_phrase:
                status = f"{status} {response.reason_phrase}"
            raise ServerStatusError(
                f"Server at {url} answered {status}.",
                status_code=response.status_code,
            )

        if not response.content.strip():
            logger.error("Topic fetch returned empty body", extra={"url": url})
            raise EmptyBodyError(f"Server at {url} returned no data.")

        try:
            payload = json.loads(response.content)
        except (ValueError, RecursionError) as exc:
            logger.error(
                "Topic payload is not JSON",
                extra={"url": url, "reason": str(exc)},
            )
            raise DecodeError(f"Data from {url} is not valid JSON.") from exc

        try:
            topics = decode_topics(payload)
        except DecodeError as exc:
            logger.error(
                "Topic payload has unexpected shape",
                extra={"url": url, "reason": str(exc)},
            )
            raise DecodeError(f"Data from {url} is malformed: {exc}") from exc

        logger.info(
            "Fetched topics", extra={"url": url, "topic_count": len(topics)}
        )
        return topics

    def request_topics(self, listener: TopicsListener) -> int:
        """Fetch in the background and notify ``listener`` exactly once.

        Returns the generation number of this request. The worker hands the
        outcome to ``dispatch``; a request superseded by a newer one is
        dropped there instead of being delivered.
        """

        self._generation += 1
        generation = self._generation
        self._ensure_executor().submit(
            self._fetch_and_dispatch, generation, listener
        )
        return generation

    def _fetch_and_dispatch(
        self, generation: int, listener: TopicsListener
    ) -> None:
        notify: Callable[[], None]
        try:
            topics = self.fetch_topics()
        except FetchError as exc:
            message = str(exc)
            notify = partial(listener.on_fetch_failed, message)
        except Exception as exc:
            logger.exception("Topic fetch crashed")
            message = f"Unexpected error while loading topics: {exc}"
            notify = partial(listener.on_fetch_failed, message)
        else:
            notify = partial(listener.on_topics_loaded, topics)
        self._dispatch(partial(self._deliver, generation, notify))

    def _deliver(self, generation: int, notify: Callable[[], None]) -> None:
        if generation != self._generation:
            logger.debug(
                "Dropping stale topic fetch",
                extra={"generation": generation, "latest": self._generation},
            )
            return
        notify()

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="iquiz-fetch"
            )
        return self._executor

    def close(self) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._owns_client:
            self._client.close()
