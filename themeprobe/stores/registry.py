"""Theme inventory and registry source documents."""

from __future__ import annotations

import json
import os
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..errors import ParseError, ThemeLookupError
from ..logging import get_logger
from ..models import MISSING, Category, Mode, ThemeEntry, Variant

OVERRIDES_FILE = "overrides.json"
BUILTIN_FILE = "builtin.json"
HINTS_FILE = "hints.json"
EXCLUDED_FILE = "excluded.json"

LAYOUT_OVERRIDES = "overrides"
LAYOUT_SPLIT = "split"

# Strategy files of the split layout, in load order.
_STRATEGY_FILES = ("setup", "load", "colorscheme", "file")
_DEFAULT_GROUP = "colorscheme"

logger = get_logger("registry")


@dataclass
class RegistryStore:
    """Persisted source of truth mapping repositories to their strategy.

    Entries are kept as raw mappings so that fields owned by other stages
    survive a load/save cycle untouched.
    """

    overrides: List[Dict[str, Any]] = field(default_factory=list)
    builtin: List[Dict[str, Any]] = field(default_factory=list)
    layout: str = LAYOUT_OVERRIDES
    extra: Dict[str, Any] = field(default_factory=dict)

    def find(self, repo: str) -> Optional[Dict[str, Any]]:
        for entry in self.overrides:
            if entry.get("repo") == repo:
                return entry
        return None

    def current_strategy(self, repo: str) -> Union[Category, str]:
        entry = self.find(repo)
        if entry is None:
            return MISSING
        value = entry_strategy(entry)
        if value is None:
            return MISSING
        return parse_category(value, context=f"store entry for {repo}")


def entry_strategy(entry: Mapping[str, Any]) -> Optional[str]:
    meta = entry.get("meta")
    if not isinstance(meta, dict):
        return None
    strategy = meta.get("strategy")
    if not isinstance(strategy, dict):
        return None
    value = strategy.get("type")
    return value if isinstance(value, str) else None


def parse_category(value: object, *, context: str) -> Category:
    try:
        return Category(value)
    except ValueError as exc:
        raise ParseError(f"Unrecognised strategy {value!r} in {context}") from exc


def parse_mode(value: object, *, context: str) -> Mode:
    try:
        return Mode(value)
    except ValueError as exc:
        raise ParseError(f"Unrecognised mode {value!r} in {context}") from exc


# ----------------------------------------------------------------------
# Inventory


def load_inventory(path: Path) -> List[ThemeEntry]:
    """Read the upstream theme index (an array of theme objects)."""
    data = read_json(path)
    if not isinstance(data, list):
        raise ParseError(f"{path} must contain a JSON array of themes")
    return [_theme_from_dict(item, path) for item in data]


def _theme_from_dict(item: object, path: Path) -> ThemeEntry:
    if not isinstance(item, dict) or not isinstance(item.get("name"), str):
        raise ParseError(f"Malformed theme entry in {path}: {item!r}")
    name = item["name"]
    repo = item.get("repo") if isinstance(item.get("repo"), str) else None
    variants: List[Variant] = []
    for raw in item.get("variants") or []:
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            raise ParseError(f"Malformed variant of {name} in {path}")
        mode = raw.get("mode")
        variants.append(
            Variant(
                name=raw["name"],
                colorscheme=raw.get("colorscheme"),
                mode=parse_mode(mode, context=f"variant {raw['name']}") if mode else None,
            )
        )
    return ThemeEntry(
        name=name,
        repo=repo,
        colorscheme=item.get("colorscheme"),
        variants=variants,
    )


def build_repo_index(themes: Iterable[ThemeEntry]) -> Dict[str, List[ThemeEntry]]:
    index: Dict[str, List[ThemeEntry]] = {}
    for theme in themes:
        if not theme.repo:
            continue
        index.setdefault(theme.repo, []).append(theme)
    return index


def find_theme(themes: Iterable[ThemeEntry], name: str) -> ThemeEntry:
    for theme in themes:
        if theme.name == name:
            return theme
    raise ThemeLookupError(f"Theme not found: {name}")


# ----------------------------------------------------------------------
# Registry store


def load_store(sources_dir: Path) -> RegistryStore:
    """Load ``overrides.json`` or, failing that, the per-strategy files."""
    overrides_path = sources_dir / OVERRIDES_FILE
    if overrides_path.exists():
        data = read_json(overrides_path)
        if not isinstance(data, dict) or not isinstance(data.get("overrides"), list):
            raise ParseError(f"{overrides_path} must contain an 'overrides' list")
        extra = {k: v for k, v in data.items() if k not in ("overrides", "builtin")}
        return RegistryStore(
            overrides=list(data["overrides"]),
            builtin=list(data.get("builtin") or []),
            layout=LAYOUT_OVERRIDES,
            extra=extra,
        )

    store = RegistryStore(layout=LAYOUT_SPLIT)
    for group in (*_STRATEGY_FILES, "builtin"):
        path = sources_dir / f"{group}.json"
        if not path.exists():
            continue
        data = read_json(path)
        themes = data.get("themes") if isinstance(data, dict) else None
        if not isinstance(themes, list):
            logger.warning("Ignoring %s: no 'themes' list", path)
            continue
        if group == "builtin":
            store.builtin.extend(themes)
        else:
            store.overrides.extend(themes)
    return store


def render_store(store: RegistryStore, sources_dir: Path) -> Dict[Path, str]:
    """Serialise ``store`` into the file contents that represent it on disk."""
    if store.layout == LAYOUT_OVERRIDES:
        payload: Dict[str, Any] = dict(store.extra)
        payload["overrides"] = store.overrides
        if store.builtin:
            payload["builtin"] = store.builtin
        return {sources_dir / OVERRIDES_FILE: dump_json(payload)}

    groups: Dict[str, List[Dict[str, Any]]] = {name: [] for name in _STRATEGY_FILES}
    for entry in store.overrides:
        strategy = entry_strategy(entry)
        groups.get(strategy or _DEFAULT_GROUP, groups[_DEFAULT_GROUP]).append(entry)

    rendered: Dict[Path, str] = {}
    for name, themes in groups.items():
        path = sources_dir / f"{name}.json"
        # An emptied group must still be rewritten, or stale entries would reload.
        if not themes and not path.exists():
            continue
        ordered = sorted(themes, key=_name_key)
        rendered[path] = dump_json({"strategy": name, "count": len(ordered), "themes": ordered})
    if store.builtin:
        rendered[sources_dir / BUILTIN_FILE] = dump_json({"themes": store.builtin})
    return rendered


def save_store(store: RegistryStore, sources_dir: Path) -> List[Path]:
    """Persist ``store`` all-or-nothing: every file is staged before any is replaced."""
    rendered = render_store(store, sources_dir)
    staged: List[tuple[Path, Path]] = []
    try:
        for path, content in rendered.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
            staged.append((tmp, path))
            tmp.write_text(content, encoding="utf-8")
    except OSError:
        _discard(staged)
        raise

    backups: List[tuple[Path, Path]] = []
    replaced: List[Path] = []
    try:
        for _, path in staged:
            if path.exists():
                backup = path.with_name(f".{path.name}.{uuid.uuid4().hex}.bak")
                shutil.copyfile(path, backup)
                backups.append((backup, path))
        for tmp, path in staged:
            os.replace(tmp, path)
            replaced.append(path)
    except OSError:
        # Roll back files already replaced; files that did not exist before are removed.
        restored = {path for _, path in backups}
        for backup, path in backups:
            if path in replaced:
                os.replace(backup, path)
        for path in replaced:
            if path not in restored:
                path.unlink(missing_ok=True)
        _discard(staged)
        _discard(backups)
        raise
    _discard(backups)
    return [path for _, path in staged]


def _discard(pairs: Iterable[tuple[Path, Path]]) -> None:
    for tmp, _ in pairs:
        tmp.unlink(missing_ok=True)


def load_hints_document(sources_dir: Path) -> List[Any]:
    path = sources_dir / HINTS_FILE
    if not path.exists():
        return []
    data = read_json(path)
    hints = data.get("hints") if isinstance(data, dict) else None
    if not isinstance(hints, list):
        raise ParseError(f"{path} must contain a 'hints' list")
    return hints


def load_excluded(sources_dir: Path) -> List[str]:
    path = sources_dir / EXCLUDED_FILE
    if not path.exists():
        return []
    data = read_json(path)
    if not isinstance(data, list):
        raise ParseError(f"{path} must contain a JSON array of repositories")
    return [item for item in data if isinstance(item, str)]


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except (OSError, json.JSONDecodeError) as exc:
        raise ParseError(f"Failed to read {path}: {exc}") from exc


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _name_key(entry: Mapping[str, Any]) -> str:
    name = entry.get("name")
    return name.lower() if isinstance(name, str) else ""


__all__ = [
    "LAYOUT_OVERRIDES",
    "LAYOUT_SPLIT",
    "RegistryStore",
    "build_repo_index",
    "dump_json",
    "entry_strategy",
    "find_theme",
    "load_excluded",
    "load_hints_document",
    "load_inventory",
    "load_store",
    "parse_category",
    "parse_mode",
    "read_json",
    "render_store",
    "save_store",
]
