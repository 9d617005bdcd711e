"""
Configuration management for sentinelpath.

A run is configured by the `Config` dataclass. Values can come from a YAML or
JSON file (validated with pydantic before use) and are then overridden by
command-line flags.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .analysis.paths import DEFAULT_MAX_DEPTH, DEFAULT_MAX_PATHS

MODE_EXACTLY_ONE = "exactly-one"
MODE_AT_LEAST_ONE = "at-least-one"

CONFIG_FILENAMES = (".sentinelpath.yaml", ".sentinelpath.yml", ".sentinelpath.json")

DEFAULT_EXTENSIONS = [".js", ".mjs", ".cjs", ".jsx", ".ts", ".mts", ".cts", ".tsx"]


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or fails validation."""


@dataclass
class Config:
    """Main configuration class for sentinelpath."""

    # Analysis limits
    max_paths: int = DEFAULT_MAX_PATHS
    max_depth: int = DEFAULT_MAX_DEPTH

    # Rule settings
    mode: str = MODE_EXACTLY_ONE
    constructor_names: Optional[List[str]] = None
    severity: str = "ERROR"

    # File processing
    max_file_bytes: int = 1_000_000
    extensions: Optional[List[str]] = None
    excludes: List[str] = field(default_factory=list)

    # General settings
    debug: bool = False
    verbose: bool = False

    def __post_init__(self):
        if self.max_paths < 1 or self.max_depth < 1:
            raise ConfigError("max_paths and max_depth must be at least 1")
        if self.constructor_names is None:
            self.constructor_names = ["Promise"]
        if self.extensions is None:
            self.extensions = list(DEFAULT_EXTENSIONS)


class ConfigFile(BaseModel):
    """Schema of an on-disk configuration file."""

    model_config = ConfigDict(extra="forbid")

    max_paths: int = Field(DEFAULT_MAX_PATHS, ge=1, description="Ceiling on enumerated paths per function")
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=1, description="Ceiling on branch nesting depth")
    mode: Literal["exactly-one", "at-least-one"] = MODE_EXACTLY_ONE
    constructor_names: List[str] = Field(default_factory=lambda: ["Promise"], min_length=1)
    severity: Literal["ERROR", "WARN", "INFO"] = "ERROR"
    max_file_bytes: int = Field(1_000_000, ge=1)
    extensions: Optional[List[str]] = None
    excludes: List[str] = Field(default_factory=list)

    @field_validator("constructor_names")
    @classmethod
    def names_must_be_identifiers(cls, v: List[str]) -> List[str]:
        for name in v:
            if not name.isidentifier():
                raise ValueError(f"not an identifier: {name!r}")
        return v

    @field_validator("extensions")
    @classmethod
    def extensions_need_dot(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [e if e.startswith(".") else f".{e}" for e in v]


def load_config(path: str | Path) -> Config:
    """Read a YAML (.yaml/.yml) or JSON configuration file into a Config."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {p}: {e}") from e

    try:
        if p.suffix.lower() in (".yml", ".yaml"):
            obj = yaml.safe_load(text)
        else:
            obj = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to parse config file {p}: {e}") from e

    if obj is None:
        obj = {}
    if not isinstance(obj, dict):
        raise ConfigError(f"Config file {p} must contain a mapping")

    try:
        parsed = ConfigFile.model_validate(obj)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {p}: {e}") from e

    return Config(**parsed.model_dump(exclude_none=True))


def find_config_file(start: str | Path) -> Optional[Path]:
    """Look for a default config file in `start` and its parents."""
    here = Path(start).resolve()
    if here.is_file():
        here = here.parent
    for directory in (here, *here.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None
