"""Exception types raised by the upload pipeline."""
from __future__ import annotations


class UploaderError(Exception):
    """Base class for upload pipeline failures."""


class StreamDecodeError(UploaderError):
    """The incoming byte stream is malformed, truncated or not an array of objects."""


class SubmissionError(UploaderError):
    """A single batch dispatch failed; carries the batch index and the cause."""

    def __init__(self, batch_index: int, cause: BaseException) -> None:
        super().__init__(f"Batch {batch_index} submission failed: {cause}")
        self.batch_index = batch_index
        self.cause = cause


__all__ = [
    "UploaderError",
    "StreamDecodeError",
    "SubmissionError",
]
