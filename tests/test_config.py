"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from topicwalk.config import DEFAULT_CORS_ORIGINS, load_config
from topicwalk.errors import ConfigError
from topicwalk.llm import DEFAULT_API_URL, DEFAULT_MODEL

KEY = "sk-ant-api03-abc_DEF-123"


def _missing(tmp_path: Path) -> Path:
    return tmp_path / "absent.env"


def test_defaults(tmp_path: Path) -> None:
    cfg = load_config(env={"CLAUDE_API_KEY": KEY}, dotenv_path=_missing(tmp_path))
    assert cfg.api_key == KEY
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.model == DEFAULT_MODEL
    assert cfg.max_tokens == 5000
    assert cfg.temperature == 0.9
    assert cfg.timeout == 30.0
    assert cfg.cache_size == 100
    assert cfg.cache_ttl == 3600.0
    assert cfg.cors_origins == DEFAULT_CORS_ORIGINS


def test_missing_key_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="CLAUDE_API_KEY"):
        load_config(env={}, dotenv_path=_missing(tmp_path))


def test_blank_key_counts_as_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not set"):
        load_config(env={"CLAUDE_API_KEY": "   "}, dotenv_path=_missing(tmp_path))


def test_malformed_key_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(env={"CLAUDE_API_KEY": "not-a-key"}, dotenv_path=_missing(tmp_path))
    assert "CLAUDE_API_KEY" in str(excinfo.value)
    assert "not-a-key" not in str(excinfo.value)


def test_overrides_are_coerced(tmp_path: Path) -> None:
    cfg = load_config(
        env={
            "CLAUDE_API_KEY": KEY,
            "CLAUDE_API_URL": "http://localhost:9999/v1/messages",
            "TOPICWALK_MODEL": "claude-test",
            "TOPICWALK_MAX_TOKENS": "1200",
            "TOPICWALK_TEMPERATURE": "0.2",
            "TOPICWALK_TIMEOUT": "5",
            "TOPICWALK_CACHE_SIZE": "10",
            "TOPICWALK_CACHE_TTL": "60",
            "TOPICWALK_CORS_ORIGINS": "http://a.test, http://b.test,",
        },
        dotenv_path=_missing(tmp_path),
    )
    assert cfg.api_url == "http://localhost:9999/v1/messages"
    assert cfg.model == "claude-test"
    assert cfg.max_tokens == 1200
    assert cfg.temperature == 0.2
    assert cfg.timeout == 5.0
    assert cfg.cache_size == 10
    assert cfg.cache_ttl == 60.0
    assert cfg.cors_origins == ["http://a.test", "http://b.test"]


def test_bad_number_names_the_variable(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="TOPICWALK_TIMEOUT"):
        load_config(
            env={"CLAUDE_API_KEY": KEY, "TOPICWALK_TIMEOUT": "soon"},
            dotenv_path=_missing(tmp_path),
        )


def test_dotenv_file_is_read(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(f"CLAUDE_API_KEY={KEY}\nTOPICWALK_CACHE_SIZE=7\n", encoding="utf-8")
    cfg = load_config(env={}, dotenv_path=env_file)
    assert cfg.api_key == KEY
    assert cfg.cache_size == 7


def test_environment_beats_dotenv(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(f"CLAUDE_API_KEY={KEY}\nTOPICWALK_MODEL=from-file\n", encoding="utf-8")
    cfg = load_config(env={"TOPICWALK_MODEL": "from-env"}, dotenv_path=env_file)
    assert cfg.model == "from-env"
