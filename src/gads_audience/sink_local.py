"""Filesystem-backed BatchSink used for dry runs."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from .sink import BatchSink
from .transform import Fragment

logger = logging.getLogger(__name__)


def _run_dir(root: Path, run_id: str) -> Path:
    return root / f"run_id={run_id}"


class LocalFilesystemBatchSink(BatchSink):
    """Writes every submitted batch to its own JSONL file under the run directory."""

    def __init__(self, root: Path | str, run_id: str) -> None:
        self._root = Path(root)
        self._run_id = run_id
        self._directory = _run_dir(self._root, run_id)
        self._next_index = 0

    @property
    def directory(self) -> Path:
        return self._directory

    async def open(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)

    def submit(self, batch: Sequence[Fragment]):
        index = self._next_index
        self._next_index += 1
        return self._write_batch(index, list(batch))

    async def _write_batch(self, index: int, batch: list[Fragment]) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._directory / f"batch-{index:05d}.jsonl"
        with path.open("w", encoding="utf-8") as handle:
            for fragment in batch:
                handle.write(json.dumps(fragment.to_dict()))
                handle.write("\n")
        logger.info("Wrote %s fragments to %s", len(batch), path)
        return path

    async def close(self) -> None:
        logger.info("Dry-run batches available under %s", self._directory)

    def list_batches(self) -> list[Path]:
        if not self._directory.exists():
            return []
        return sorted(self._directory.glob("batch-*.jsonl"))


__all__ = ["LocalFilesystemBatchSink"]
