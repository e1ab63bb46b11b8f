"""Configuration loading for themeprobe (.themeprobe.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".themeprobe.yml"

DEFAULT_CONCURRENCY = 6
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"


@dataclass
class PathsConfig:
    """Input and output locations, relative to the config root."""

    index: Path
    sources: Path
    output: Path
    cache: Path


@dataclass
class GitHubConfig:
    """Transport settings for the GitHub evidence source."""

    api_url: str = DEFAULT_API_URL
    token_env: str = DEFAULT_TOKEN_ENV
    request_timeout: float = 30.0


@dataclass
class ThemeProbeConfig:
    """Represents the settings defined in .themeprobe.yml."""

    root: Path
    paths: PathsConfig
    concurrency: int = DEFAULT_CONCURRENCY
    confidence_threshold: Optional[float] = None
    github: GitHubConfig = field(default_factory=GitHubConfig)
    exclude_repos: List[str] = field(default_factory=list)


def default_paths(root: Path) -> PathsConfig:
    return PathsConfig(
        index=root / "artifacts" / "index.json",
        sources=root / "sources",
        output=root / "reports",
        cache=root / ".cache" / "themeprobe",
    )


def load_config(config_path: Path) -> ThemeProbeConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ThemeProbeConfig(root=root, paths=default_paths(root))

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    defaults = default_paths(root)
    paths_data = _as_dict(data.get("paths"))
    paths = PathsConfig(
        index=_as_path(root, paths_data.get("index")) or defaults.index,
        sources=_as_path(root, paths_data.get("sources")) or defaults.sources,
        output=_as_path(root, paths_data.get("output")) or defaults.output,
        cache=_as_path(root, paths_data.get("cache")) or defaults.cache,
    )

    concurrency = _as_int(data.get("concurrency"))
    if concurrency is not None and concurrency < 1:
        raise ConfigError("concurrency must be at least 1")

    threshold = _as_float(data.get("confidence_threshold"))
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        raise ConfigError("confidence_threshold must be between 0 and 1")

    github_data = _as_dict(data.get("github"))
    github = GitHubConfig()
    if github_data:
        github.api_url = _as_str(github_data.get("api_url")) or github.api_url
        github.token_env = _as_str(github_data.get("token_env")) or github.token_env
        timeout = _as_float(github_data.get("request_timeout"))
        if timeout is not None:
            github.request_timeout = timeout

    return ThemeProbeConfig(
        root=root,
        paths=paths,
        concurrency=concurrency or DEFAULT_CONCURRENCY,
        confidence_threshold=threshold,
        github=github,
        exclude_repos=_as_str_list(data.get("exclude_repos")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else root / path


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "GitHubConfig",
    "PathsConfig",
    "ThemeProbeConfig",
    "default_paths",
    "load_config",
]
