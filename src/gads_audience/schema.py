"""Column label to output path inference."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Sequence, Tuple

logger = logging.getLogger(__name__)

SchemaMapping = Dict[str, str]


@dataclass(frozen=True)
class ColumnRule:
    """A case-insensitive label pattern and the output path it maps to."""

    pattern: re.Pattern
    output_path: str

    @classmethod
    def compile(cls, pattern: str, output_path: str) -> "ColumnRule":
        return cls(pattern=re.compile(pattern, re.IGNORECASE), output_path=output_path)

    def matches(self, label: str) -> bool:
        return self.pattern.search(label) is not None


DEFAULT_RULE_DEFINITIONS: Tuple[Tuple[str, str], ...] = (
    ("email", "hashed_email"),
    ("phone", "hashed_phone_number"),
    ("first", "address_info.hashed_first_name"),
    ("last", "address_info.hashed_last_name"),
    ("city", "address_info.city"),
    ("state", "address_info.state"),
    ("country", "address_info.country_code"),
    ("postal|zip", "address_info.postal_code"),
)


def compile_rules(definitions: Iterable[Tuple[str, str]]) -> Tuple[ColumnRule, ...]:
    """Compile (pattern, output_path) pairs into an immutable ordered rule tuple."""
    return tuple(ColumnRule.compile(pattern, path) for pattern, path in definitions)


DEFAULT_RULES: Tuple[ColumnRule, ...] = compile_rules(DEFAULT_RULE_DEFINITIONS)


def infer_schema(
    record: Mapping[str, object], rules: Sequence[ColumnRule] = DEFAULT_RULES
) -> SchemaMapping:
    """Map every column label of ``record`` to the path of its last matching rule.

    Labels matching no rule are left out, so their values never reach the
    output.
    """
    schema: SchemaMapping = {}
    for label in record.keys():
        for rule in rules:
            if rule.matches(label):
                schema[label] = rule.output_path
    logger.info(
        "Inferred schema for %s of %s columns: %s",
        len(schema),
        len(record),
        schema,
    )
    return schema


__all__ = [
    "ColumnRule",
    "DEFAULT_RULES",
    "DEFAULT_RULE_DEFINITIONS",
    "SchemaMapping",
    "compile_rules",
    "infer_schema",
]
