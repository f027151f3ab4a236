"""Pytest configuration and fixtures for objfs tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import pytest

from objfs.adapters.memory import InMemoryObjectStore
from objfs.vfs import VirtualFilesystem

TEST_BUCKET = "test-bucket"

SEED_OBJECTS: dict[str, bytes] = {
    "a.txt": b"alpha",
    "b.txt": b"bravo",
    "c.jpg": b"jpeg-root",
    "sub/c.jpg": b"jpeg-sub",
    "sub/deep/deep.doc": b"test",
}

OBJFS_ENV_VARS = [
    "OBJFS_ACCESS_KEY",
    "OBJFS_SECRET_KEY",
    "OBJFS_REGION",
    "OBJFS_ENDPOINT_URL",
    "OBJFS_VERBOSE",
    "OBJFS_PLACEHOLDER_NAME",
    "OBJFS_OTEL_ENABLED",
    "OBJFS_OTEL_SERVICE_NAME",
    "OBJFS_OTEL_EXPORTER",
    "OBJFS_OTEL_EXPORTER_OTLP_ENDPOINT",
]


@pytest.fixture(autouse=True)
def clean_objfs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove OBJFS_* variables so tests never pick up a developer's settings."""
    for name in OBJFS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def run() -> Callable[[Coroutine[Any, Any, Any]], Any]:
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def store() -> InMemoryObjectStore:
    """In-memory store seeded with a small two-level tree."""
    return InMemoryObjectStore(dict(SEED_OBJECTS))


@pytest.fixture
def drive(store: InMemoryObjectStore) -> VirtualFilesystem:
    """Filesystem rooted at the bucket top level."""
    return VirtualFilesystem(f"s3://{TEST_BUCKET}/", store)


@pytest.fixture
def drive_sub(store: InMemoryObjectStore) -> VirtualFilesystem:
    """Filesystem rooted at the "sub" folder."""
    return VirtualFilesystem(f"s3://{TEST_BUCKET}/sub/", store)
