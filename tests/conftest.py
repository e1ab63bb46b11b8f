from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from themeprobe.errors import FetchError
from themeprobe.models import TreeEntry


class FakeSource:
    """In-memory evidence source that records every fetch."""

    def __init__(
        self,
        texts: Optional[Dict[str, str]] = None,
        trees: Optional[Dict[str, Sequence[str]]] = None,
    ) -> None:
        self.texts = dict(texts or {})
        self.trees = {repo: list(paths) for repo, paths in (trees or {}).items()}
        self.calls: List[tuple[str, str]] = []

    async def fetch_text(self, repo: str) -> str:
        self.calls.append(("text", repo))
        if repo not in self.texts:
            raise FetchError(repo, "not found")
        return self.texts[repo]

    async def fetch_tree(self, repo: str) -> List[TreeEntry]:
        self.calls.append(("tree", repo))
        if repo not in self.trees:
            raise FetchError(repo, "not found")
        return [TreeEntry(path=path, kind="blob") for path in self.trees[repo]]


@pytest.fixture
def make_source():
    """Factory for ``FakeSource`` instances."""
    return FakeSource


@pytest.fixture
def sources_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sources"
    path.mkdir()
    return path


@pytest.fixture
def write_json():
    def _write(path: Path, data: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
