"""Tests for gitprism.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitprism.config import ConfigError, GitPrismConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={})

    assert isinstance(config, GitPrismConfig)
    assert config.max_zip_bytes == 50 * 1024 * 1024
    assert config.max_output_bytes == 10 * 1024 * 1024
    assert config.max_file_count == 5000
    assert config.github_token is None
    assert config.api_base_url == "https://api.github.com"


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".gitprism.yml").write_text(
        """
limits:
  max_zip_bytes: 1048576
  max_output_bytes: 2048
  max_file_count: 25
github:
  token: "file-token"
  api_base_url: "https://ghe.example.com/api/v3/"
  request_timeout: 5
  user_agent: "GitPrismTest/0.1"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path, env={})

    assert config.max_zip_bytes == 1048576
    assert config.max_output_bytes == 2048
    assert config.max_file_count == 25
    assert config.github_token == "file-token"
    assert config.api_base_url == "https://ghe.example.com/api/v3"
    assert config.request_timeout == 5.0
    assert config.user_agent == "GitPrismTest/0.1"


def test_environment_overrides_file_values(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("limits:\n  max_file_count: 25\n", encoding="utf-8")

    config = load_config(
        config_file,
        env={
            "GITHUB_TOKEN": "env-token",
            "GITPRISM_MAX_FILE_COUNT": "7",
            "GITPRISM_MAX_OUTPUT_BYTES": "4096",
            "GITPRISM_REQUEST_TIMEOUT": "2.5",
        },
    )

    assert config.github_token == "env-token"
    assert config.max_file_count == 7
    assert config.max_output_bytes == 4096
    assert config.request_timeout == 2.5


@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_invalid_environment_limits_raise(tmp_path: Path, value: str) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path, env={"GITPRISM_MAX_FILE_COUNT": value})


def test_non_mapping_config_raises(tmp_path: Path) -> None:
    (tmp_path / ".gitprism.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, env={})


def test_malformed_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / ".gitprism.yml").write_text("limits: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, env={})


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".gitprism.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path, env={}) == GitPrismConfig()
