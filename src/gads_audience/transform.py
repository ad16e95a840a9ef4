"""Per-record transformation into output fragments."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from .hashing import normalize_and_hash
from .schema import SchemaMapping

HASHING_MARKER = "hashed"
PATH_SEPARATOR = "."


@dataclass(frozen=True)
class Fragment:
    """One transformed field destined for ``path`` inside a single-root object."""

    path: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        """Render the fragment as a nested object, e.g. ``{"address_info": {"city": "x"}}``."""
        parts = self.path.split(PATH_SEPARATOR)
        payload: Any = self.value
        for part in reversed(parts):
            payload = {part: payload}
        return payload


def is_sensitive(output_path: str) -> bool:
    return HASHING_MARKER in output_path


def _hash_value(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return normalize_and_hash(value)


def transform_row(
    record: Mapping[str, Any], schema: SchemaMapping, hashing_enabled: bool
) -> List[Fragment]:
    """Produce one fragment per schema entry, in schema order.

    Columns absent from ``record`` still produce a fragment holding ``None``.
    """
    fragments: List[Fragment] = []
    for label, output_path in schema.items():
        value = record.get(label)
        if hashing_enabled and is_sensitive(output_path):
            value = _hash_value(value)
        fragments.append(Fragment(path=output_path, value=value))
    return fragments


__all__ = [
    "Fragment",
    "HASHING_MARKER",
    "is_sensitive",
    "transform_row",
]
