"""Helpers for formatting an inferred schema for operators."""
from __future__ import annotations

import json
from typing import List, Mapping

from tabulate import tabulate

from .schema import SchemaMapping
from .transform import is_sensitive


def format_schema(
    record: Mapping[str, object],
    schema: SchemaMapping,
    hashing_enabled: bool = True,
    output_format: str = "table",
) -> str:
    """Describe how every column of ``record`` would be handled."""
    rows: List[dict] = []
    for label in record.keys():
        output_path = schema.get(label)
        rows.append(
            {
                "column": label,
                "output_path": output_path,
                "hashed": bool(output_path and hashing_enabled and is_sensitive(output_path)),
            }
        )
    if output_format == "json":
        return json.dumps(rows, indent=2)

    table_data = [
        [
            row["column"],
            row["output_path"] or "(dropped)",
            "yes" if row["hashed"] else "no",
        ]
        for row in rows
    ]
    return tabulate(table_data, headers=["column", "output_path", "hashed"], tablefmt="plain")


__all__ = ["format_schema"]
