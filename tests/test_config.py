"""Tests for themeprobe.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from themeprobe.config import DEFAULT_CONCURRENCY, ThemeProbeConfig, load_config
from themeprobe.errors import ConfigError


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ThemeProbeConfig)
    assert config.root == tmp_path.resolve()
    assert config.concurrency == DEFAULT_CONCURRENCY
    assert config.confidence_threshold is None
    assert config.paths.index == tmp_path.resolve() / "artifacts" / "index.json"
    assert config.paths.cache == tmp_path.resolve() / ".cache" / "themeprobe"
    assert config.github.token_env == "GITHUB_TOKEN"
    assert config.exclude_repos == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".themeprobe.yml"
    config_file.write_text(
        """
paths:
  index: data/index.json
  sources: data/sources
  output: /var/tmp/themeprobe
concurrency: "3"
confidence_threshold: 0.85
github:
  api_url: https://ghe.example/api/v3
  token_env: GHE_TOKEN
  request_timeout: 10
exclude_repos:
  - vim/colorschemes
""",
        encoding="utf-8",
    )

    config = load_config(config_file)
    root = tmp_path.resolve()

    assert config.paths.index == root / "data" / "index.json"
    assert config.paths.sources == root / "data" / "sources"
    assert config.paths.output == Path("/var/tmp/themeprobe")
    assert config.paths.cache == root / ".cache" / "themeprobe"
    assert config.concurrency == 3
    assert config.confidence_threshold == 0.85
    assert config.github.api_url == "https://ghe.example/api/v3"
    assert config.github.token_env == "GHE_TOKEN"
    assert config.github.request_timeout == 10.0
    assert config.exclude_repos == ["vim/colorschemes"]


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".themeprobe.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).concurrency == DEFAULT_CONCURRENCY


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "paths: [unclosed\n",
        "concurrency: 0\n",
        "confidence_threshold: 1.5\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".themeprobe.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
