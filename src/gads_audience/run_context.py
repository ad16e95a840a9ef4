"""Execution metadata for an upload run."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def _current_run_id() -> str:
    """Return a filesystem-safe UTC timestamp with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .strftime("%Y%m%dT%H%M%S.%f")[:-3]
        + "Z"
    )


@dataclass(frozen=True)
class RunContext:
    """Identifies one upload run in logs and in dry-run output paths."""

    run_id: str

    @classmethod
    def create(cls) -> "RunContext":
        return cls(run_id=_current_run_id())


__all__ = ["RunContext"]
