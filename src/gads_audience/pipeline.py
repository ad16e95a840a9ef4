"""Streaming transform-and-batch upload pipeline."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterable, List, Mapping, Sequence

from .batching import DEFAULT_BATCH_CAPACITY, BatchAccumulator
from .config import UploadConfig
from .errors import StreamDecodeError, SubmissionError
from .run_context import RunContext
from .schema import DEFAULT_RULES, ColumnRule, SchemaMapping, infer_schema
from .sink import BatchSink
from .stream import RecordStreamDecoder
from .transform import transform_row

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UploadReport:
    """Outcome of one run, produced after every submission has settled."""

    run_id: str
    state: PipelineState
    batches_submitted: int
    batch_capacity: int
    records_processed: int
    fragments_submitted: int
    decode_error: str | None = None
    submission_errors: List[SubmissionError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE


class StreamingUploader:
    """Parses a JSON array incrementally and uploads its fragments in batches.

    The schema is inferred once from the first record. Batches are handed to
    the sink as soon as the accumulator is ready and the resulting tasks are
    only awaited, all together, once parsing has ended.
    """

    def __init__(
        self,
        sink: BatchSink,
        rules: Sequence[ColumnRule] = DEFAULT_RULES,
        hashing_enabled: bool = True,
        batch_capacity: int = DEFAULT_BATCH_CAPACITY,
        run_context: RunContext | None = None,
    ) -> None:
        self.sink = sink
        self.rules = tuple(rules)
        self.hashing_enabled = hashing_enabled
        self.accumulator = BatchAccumulator(batch_capacity)
        self.run_context = run_context or RunContext.create()
        self.state = PipelineState.IDLE
        self.schema: SchemaMapping = {}
        self.is_schema_determined = False
        self.records_processed = 0
        self.fragments_submitted = 0
        self._submissions: List[asyncio.Future] = []

    @property
    def num_batches(self) -> int:
        return len(self._submissions)

    async def run(self, chunks: AsyncIterable[bytes]) -> UploadReport:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"Uploader already used (state={self.state.value})")
        logger.info("Starting streaming upload run_id=%s", self.run_context.run_id)

        decode_error: StreamDecodeError | None = None
        try:
            await self._parse(chunks)
        except StreamDecodeError as exc:
            decode_error = exc
            self.state = PipelineState.FAILED
            logger.error("Streaming parse failure: %s", exc)
        except Exception:
            self.state = PipelineState.FAILED
            await self._await_submissions()
            raise

        submission_errors = await self._await_submissions()
        if decode_error is None and not submission_errors:
            self.state = PipelineState.DONE
        else:
            self.state = PipelineState.FAILED

        logger.info(
            "Streaming upload complete. Sent %s batches (batch size = %s)",
            self.num_batches,
            self.accumulator.capacity,
        )
        return UploadReport(
            run_id=self.run_context.run_id,
            state=self.state,
            batches_submitted=self.num_batches,
            batch_capacity=self.accumulator.capacity,
            records_processed=self.records_processed,
            fragments_submitted=self.fragments_submitted,
            decode_error=str(decode_error) if decode_error else None,
            submission_errors=submission_errors,
        )

    async def _parse(self, chunks: AsyncIterable[bytes]) -> None:
        self.state = PipelineState.PARSING
        decoder = RecordStreamDecoder()
        source = aiter(chunks)
        while True:
            try:
                chunk = await anext(source)
            except StopAsyncIteration:
                break
            except Exception as exc:
                raise StreamDecodeError(f"Input stream failed: {exc}") from exc
            for record in decoder.feed(chunk):
                self.handle_record(record)
            # let submitted batches make progress between chunks
            await asyncio.sleep(0)
        for record in decoder.close():
            self.handle_record(record)

        self.state = PipelineState.DRAINING
        self._send_if_batch(force=True)

    def handle_record(self, record: Mapping[str, object]) -> None:
        if not self.is_schema_determined:
            self.schema = infer_schema(record, self.rules)
            self.is_schema_determined = True
        self.accumulator.push(transform_row(record, self.schema, self.hashing_enabled))
        self.records_processed += 1
        self._send_if_batch()

    def _send_if_batch(self, force: bool = False) -> None:
        if force:
            batch = self.accumulator.drain()
        elif self.accumulator.ready():
            batch = self.accumulator.flush()
        else:
            return
        submission = asyncio.ensure_future(self.sink.submit(batch))
        self._submissions.append(submission)
        self.fragments_submitted += len(batch)
        logger.debug(
            "Submitted batch %s with %s fragments (final=%s)",
            len(self._submissions),
            len(batch),
            force,
        )

    async def _await_submissions(self) -> List[SubmissionError]:
        if not self._submissions:
            return []
        results = await asyncio.gather(*self._submissions, return_exceptions=True)
        errors = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                error = SubmissionError(index, result)
                logger.error("%s", error)
                errors.append(error)
        return errors


async def run_upload(
    sink: BatchSink,
    chunks: AsyncIterable[bytes],
    upload_config: UploadConfig | None = None,
    run_context: RunContext | None = None,
) -> UploadReport:
    """Open the sink, stream ``chunks`` through the pipeline and close the sink.

    The sink is closed even when the run failed so that batches which were
    accepted before the failure still get processed.
    """
    upload_config = upload_config or UploadConfig()
    uploader = StreamingUploader(
        sink,
        rules=upload_config.compiled_rules(),
        hashing_enabled=upload_config.hashing_enabled,
        batch_capacity=upload_config.batch_capacity,
        run_context=run_context,
    )
    await sink.open()
    try:
        return await uploader.run(chunks)
    finally:
        await sink.close()


__all__ = [
    "PipelineState",
    "StreamingUploader",
    "UploadReport",
    "run_upload",
]
