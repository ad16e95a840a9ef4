"""Pytest configuration and shared fakes for the uploader tests."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import AsyncIterator, Iterable, List

import pytest

try:
    from gads_audience.config import load_env
    from gads_audience.transform import Fragment
except ImportError as exc:
    raise RuntimeError(
        "gads_audience is not importable. Activate your virtualenv "
        "and run 'pip install -e .[test]' before running pytest."
    ) from exc

# Load default runtime env first, then overlay .env.test if provided
load_env()
test_env = Path(".env.test")
if test_env.exists():
    load_env(dotenv_path=test_env, override=True)


class RecordingSink:
    """In-memory sink that records batches and completes them on a later loop turn."""

    def __init__(self, fail_batches: Iterable[int] = ()) -> None:
        self.fail_batches = set(fail_batches)
        self.batches: List[List[Fragment]] = []
        self.completed: List[int] = []
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    def submit(self, batch):
        index = len(self.batches)
        self.batches.append(list(batch))
        return self._complete(index)

    async def _complete(self, index: int) -> int:
        await asyncio.sleep(0)
        if index in self.fail_batches:
            raise RuntimeError(f"sink rejected batch {index}")
        self.completed.append(index)
        return index

    async def close(self) -> None:
        self.closed = True


async def _chunks(payload: bytes, size: int) -> AsyncIterator[bytes]:
    for start in range(0, len(payload), size):
        yield payload[start:start + size]


@pytest.fixture
def recording_sink():
    return RecordingSink


@pytest.fixture
def byte_chunks():
    """Return a factory splitting a payload into an async stream of chunks."""

    def factory(*parts: bytes, size: int | None = None):
        if size is None:
            async def by_part() -> AsyncIterator[bytes]:
                for part in parts:
                    yield part
            return by_part()
        return _chunks(b"".join(parts), size)

    return factory
