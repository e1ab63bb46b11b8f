"""Persistence helpers for themeprobe."""

from .evidence_cache import EvidenceCache, FileEvidenceCache, MemoryEvidenceCache, slug_repo
from .registry import RegistryStore, load_inventory, load_store, save_store

__all__ = [
    "EvidenceCache",
    "FileEvidenceCache",
    "MemoryEvidenceCache",
    "RegistryStore",
    "load_inventory",
    "load_store",
    "save_store",
    "slug_repo",
]
