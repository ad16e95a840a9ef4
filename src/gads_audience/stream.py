"""Incremental decoding of a JSON array of flat objects."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterable, AsyncIterator, BinaryIO, Dict, Iterator

import ijson

from .errors import StreamDecodeError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

Record = Dict[str, Any]


class RecordStreamDecoder:
    """Push-fed decoder yielding each top-level array element once it is complete.

    Only the record under construction is held in memory. ``feed`` and
    ``close`` are generators: records completed before a decode failure are
    yielded first and the ``StreamDecodeError`` is raised afterwards.
    """

    def __init__(self) -> None:
        self._events = ijson.sendable_list()
        self._coro = ijson.parse_coro(self._events, use_float=True)
        self._builder: ijson.ObjectBuilder | None = None
        self._started = False
        self._closed = False

    def feed(self, chunk: bytes) -> Iterator[Record]:
        if self._closed:
            raise StreamDecodeError("Decoder already closed; cannot feed more data")
        if not chunk:
            return
        cause = None
        try:
            self._coro.send(chunk)
        except ijson.JSONError as exc:
            self._closed = True
            cause = exc
        yield from self._take()
        if cause is not None:
            raise StreamDecodeError(f"Malformed JSON input: {cause}") from cause

    def close(self) -> Iterator[Record]:
        """Finish parsing; raises ``StreamDecodeError`` on truncated input."""
        if self._closed:
            return
        self._closed = True
        cause = None
        try:
            self._coro.close()
        except ijson.JSONError as exc:
            cause = exc
        yield from self._take()
        if cause is not None:
            raise StreamDecodeError(f"Truncated or malformed JSON input: {cause}") from cause

    def _take(self) -> Iterator[Record]:
        events = list(self._events)
        del self._events[:]
        for prefix, event, value in events:
            if not self._started:
                if event != "start_array":
                    self._closed = True
                    raise StreamDecodeError(
                        f"Expected a JSON array at the top level, found {event}"
                    )
                self._started = True
            elif self._builder is not None:
                self._builder.event(event, value)
                if prefix == "item" and event == "end_map":
                    record = self._builder.value
                    self._builder = None
                    yield record
            elif prefix == "item" and event == "start_map":
                self._builder = ijson.ObjectBuilder()
                self._builder.event(event, value)
            elif not (prefix == "" and event == "end_array"):
                self._closed = True
                raise StreamDecodeError(
                    f"Expected an array of objects, found element event {event}"
                )


async def aiter_file(
    handle: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Read a binary file object in chunks without blocking the event loop."""
    total = 0
    while True:
        chunk = await asyncio.to_thread(handle.read, chunk_size)
        if not chunk:
            break
        total += len(chunk)
        yield chunk
    logger.debug("Read %s bytes from input stream", total)


async def read_first_record(chunks: AsyncIterable[bytes]) -> Record | None:
    """Decode just enough of the stream to return its first record."""
    decoder = RecordStreamDecoder()
    async for chunk in chunks:
        for record in decoder.feed(chunk):
            return record
    for record in decoder.close():
        return record
    return None


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "Record",
    "RecordStreamDecoder",
    "aiter_file",
    "read_first_record",
]
