"""Tests for SyncConfig validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from relative_deps.config import YARN_ENV_VAR, SyncConfig


class TestSyncConfig:
    """SyncConfig defaults, validation and environment overrides."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "linux")
        config = SyncConfig()
        assert config.build_script == "build"
        assert config.yarn == "yarn"
        assert config.hash_file_name == ".relative-deps-hash"

    def test_windows_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "win32")
        assert SyncConfig().yarn == "yarn.cmd"

    def test_frozen(self) -> None:
        config = SyncConfig()
        with pytest.raises(ValidationError):
            config.build_script = "other"  # type: ignore[misc]

    def test_extra_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            SyncConfig(unknown="x")  # type: ignore[call-arg]

    def test_empty_build_script(self) -> None:
        with pytest.raises(ValidationError, match="build_script"):
            SyncConfig(build_script=" ")

    @pytest.mark.parametrize("name", ["", "a/b", "..", "a\\b"])
    def test_hash_file_name_must_be_bare(self, name: str) -> None:
        with pytest.raises(ValidationError, match="hash_file_name"):
            SyncConfig(hash_file_name=name)

    def test_from_env_reads_yarn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(YARN_ENV_VAR, "/opt/yarn/bin/yarn")
        assert SyncConfig.from_env().yarn == "/opt/yarn/bin/yarn"

    def test_from_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(YARN_ENV_VAR, raising=False)
        config = SyncConfig.from_env(build_script="prepare")
        assert config.build_script == "prepare"
