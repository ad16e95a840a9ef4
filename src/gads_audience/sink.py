"""Vendor-neutral interface for batch upload sinks."""
from __future__ import annotations

from typing import Awaitable, Protocol, Sequence

from .transform import Fragment


class BatchSink(Protocol):
    """Destination that accepts fragment batches for upload."""

    async def open(self) -> None:
        """Prepare the destination before the first batch is submitted."""

    def submit(self, batch: Sequence[Fragment]) -> Awaitable[object]:
        """Start dispatching ``batch``; the returned awaitable resolves on completion."""

    async def close(self) -> None:
        """Finalize the destination once every submitted batch has completed."""


__all__ = ["BatchSink"]
