"""Shared testing fixtures for the iquiz test suite."""

from .payloads import (  # noqa: F401
    json_handler,
    make_topic,
    mock_client,
    sample_payload,
)

__all__ = [
    "json_handler",
    "make_topic",
    "mock_client",
    "sample_payload",
]
