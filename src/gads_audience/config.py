"""Typed configuration loader for the audience uploader."""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .batching import DEFAULT_BATCH_CAPACITY
from .schema import DEFAULT_RULE_DEFINITIONS, ColumnRule, compile_rules


def load_env(*args, **kwargs):
    """Proxy to python-dotenv that surfaces actionable errors when missing."""
    try:
        from dotenv import load_dotenv as _load_dotenv
    except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
        raise RuntimeError(
            "python-dotenv is not installed. Install project dependencies with "
            "`pip install -e '.[test]'` before running commands."
        ) from exc
    return _load_dotenv(*args, **kwargs)


load_env()

DEFAULT_CONFIG_PATH = "config/audience_upload.yaml"


class RuleDefinition(BaseModel):
    pattern: str
    output_path: str = Field(..., description="Dotted destination inside a fragment")

    @field_validator("output_path")
    @classmethod
    def _check_depth(cls, value: str) -> str:
        parts = value.split(".")
        if not all(parts) or len(parts) > 2:
            raise ValueError(f"output_path must be 'key' or 'parent.key', got {value!r}")
        return value


def _default_rules() -> List[RuleDefinition]:
    return [
        RuleDefinition(pattern=pattern, output_path=path)
        for pattern, path in DEFAULT_RULE_DEFINITIONS
    ]


class UploadConfig(BaseModel):
    batch_capacity: int = Field(DEFAULT_BATCH_CAPACITY, ge=2)
    hashing_enabled: bool = True
    rules: List[RuleDefinition] = Field(default_factory=_default_rules)
    local_sink_root: str = "data/batches"

    def compiled_rules(self) -> Tuple[ColumnRule, ...]:
        return compile_rules((rule.pattern, rule.output_path) for rule in self.rules)


class GoogleAdsConfig(BaseModel):
    api_version: str | None = None
    customer_id: str
    user_list_id: str
    login_customer_id: str | None = None

    @field_validator("customer_id", "user_list_id", "login_customer_id", mode="before")
    @classmethod
    def _ensure_string(cls, value):
        if value is None:
            return value
        return str(value).replace("-", "")


class AudienceConfig(BaseModel):
    upload: UploadConfig = Field(default_factory=UploadConfig)
    google_ads: GoogleAdsConfig | None = None

    def require_google_ads(self) -> GoogleAdsConfig:
        if self.google_ads is None:
            raise RuntimeError(
                "google_ads configuration is required unless running with --dry-run"
            )
        return self.google_ads


class ConfigLoader:
    """Loads YAML driven configuration and validates it with Pydantic."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.config_path = Path(
            path or os.getenv("GADS_AUDIENCE_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        )
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        self.model = self._parse_yaml()

    def _parse_yaml(self) -> AudienceConfig:
        raw: dict
        with self.config_path.open("r", encoding="utf-8") as fp:
            raw = yaml.safe_load(fp) or {}
        try:
            return AudienceConfig(**raw)
        except ValidationError as exc:  # pragma: no cover - surfacing error to CLI
            raise ValueError(f"Invalid configuration: {exc}") from exc


__all__ = [
    "AudienceConfig",
    "ConfigLoader",
    "GoogleAdsConfig",
    "RuleDefinition",
    "UploadConfig",
    "load_env",
]
