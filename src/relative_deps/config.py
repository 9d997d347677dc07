"""Sync configuration.

SyncConfig is frozen (immutable) and carries every knob the sync needs, so
components never read the environment themselves.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from relative_deps.build.runner import default_yarn_executable
from relative_deps.fingerprint.store import HASH_FILE_NAME

# Environment variable overriding the yarn executable
YARN_ENV_VAR = "RELATIVE_DEPS_YARN"

DEFAULT_BUILD_SCRIPT = "build"


class SyncConfig(BaseModel):
    """Configuration for a sync run (frozen)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    build_script: str = Field(
        default=DEFAULT_BUILD_SCRIPT,
        description="Library script run before packing, skipped when undeclared",
    )
    yarn: str = Field(
        default_factory=default_yarn_executable,
        description="Package manager executable",
    )
    hash_file_name: str = Field(
        default=HASH_FILE_NAME,
        description="Fingerprint record file name inside each installed dependency",
    )

    @field_validator("build_script", "yarn")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be non-empty")
        return v

    @field_validator("hash_file_name")
    @classmethod
    def _bare_file_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"hash_file_name must be a bare file name, got {v!r}")
        return v

    @classmethod
    def from_env(cls, **overrides: str) -> SyncConfig:
        """Build a config, taking the yarn executable from the environment if set."""
        values: dict[str, str] = {}
        yarn = os.environ.get(YARN_ENV_VAR)
        if yarn:
            values["yarn"] = yarn
        values.update(overrides)
        return cls(**values)
