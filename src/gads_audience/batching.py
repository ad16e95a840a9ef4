"""Bounded FIFO of fragments with the batch flush policy."""
from __future__ import annotations

from typing import Iterable, List

from .transform import Fragment

DEFAULT_BATCH_CAPACITY = 10 * 1000

Batch = List[Fragment]


class BatchAccumulator:
    """Queues fragments and hands them out in batches.

    ``ready()`` fires once the queue holds more than ``capacity`` fragments,
    while a steady-state flush takes ``capacity - 1`` of them, so every
    non-final flush leaves the remainder (at least two fragments) queued.
    ``drain()`` empties the queue at end of stream.
    """

    def __init__(self, capacity: int = DEFAULT_BATCH_CAPACITY) -> None:
        if capacity < 2:
            raise ValueError(f"Batch capacity must be at least 2, got {capacity}")
        self.capacity = capacity
        self._queue: List[Fragment] = []

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def flush_size(self) -> int:
        return self.capacity - 1

    def push(self, fragments: Iterable[Fragment]) -> None:
        self._queue.extend(fragments)

    def ready(self) -> bool:
        return len(self._queue) > self.capacity

    def flush(self, batch_size: int | None = None) -> Batch:
        size = self.flush_size if batch_size is None else batch_size
        batch = self._queue[:size]
        del self._queue[:size]
        return batch

    def drain(self) -> Batch:
        batch = self._queue
        self._queue = []
        return batch


__all__ = [
    "Batch",
    "BatchAccumulator",
    "DEFAULT_BATCH_CAPACITY",
]
