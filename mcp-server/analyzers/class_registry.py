"""
Global Class Registry
Read-only snapshot of the project's `class_name` declarations.

The snapshot is built once (from the live editor, the editor's class cache
file, or a scan of the project's scripts) and passed to every analysis
call. It is never invalidated; callers that need fresh data build a new one.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Optional

import httpx

from .config import DEFAULT_TIMEOUT, GLOBAL_CLASS_CACHE, GODOT_BRIDGE_URL
from .engine_api import is_engine_class

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalClass:
    name: str
    path: Optional[str] = None
    base: Optional[str] = None
    language: str = "GDScript"
    icon: str = ""

    def to_dict(self) -> dict:
        return {
            "class": self.name,
            "path": self.path,
            "base": self.base,
            "language": self.language,
            "icon": self.icon
        }


class ClassRegistry:
    """Immutable class_name -> GlobalClass lookup."""

    CACHE_ENTRY_PATTERN = re.compile(r'\{([^{}]*)\}', re.DOTALL)
    CACHE_FIELD_PATTERN = re.compile(r'"(\w+)"\s*:\s*&?"([^"]*)"')
    SCRIPT_CLASS_PATTERN = re.compile(r'^class_name\s+(\w+)(?:\s+extends\s+([^\s#:]+))?', re.MULTILINE)
    SCRIPT_EXTENDS_PATTERN = re.compile(r'^extends\s+([^\s#:]+)', re.MULTILINE)

    def __init__(self, classes: Iterable[GlobalClass] = ()):
        self._classes = MappingProxyType({c.name: c for c in classes})

    def __contains__(self, name: object) -> bool:
        return name in self._classes

    def __len__(self) -> int:
        return len(self._classes)

    def get(self, name: str) -> Optional[GlobalClass]:
        return self._classes.get(name)

    def names(self) -> list[str]:
        return list(self._classes)

    def resolve_path(self, name: str) -> Optional[str]:
        entry = self._classes.get(name)
        return entry.path if entry else None

    def is_registered(self, name: str) -> bool:
        """True for project classes and engine classes alike."""
        return name in self._classes or is_engine_class(name)

    def to_list(self) -> list[dict]:
        return [c.to_dict() for c in self._classes.values()]

    # ============ Builders ============

    @classmethod
    def from_entries(cls, entries: Iterable[dict]) -> "ClassRegistry":
        """Build from global-class dicts ({class, path, base, ...})."""
        classes = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("class") or entry.get("class_name") or entry.get("name")
            if not name:
                continue
            classes.append(GlobalClass(
                name=str(name),
                path=entry.get("path"),
                base=entry.get("base"),
                language=entry.get("language") or "GDScript",
                icon=entry.get("icon") or ""
            ))
        return cls(classes)

    @classmethod
    def from_cache_file(cls, cache_path: str | Path) -> "ClassRegistry":
        """Parse the editor's global_script_class_cache.cfg."""
        content = Path(cache_path).read_text(encoding='utf-8')
        entries = []
        for block in cls.CACHE_ENTRY_PATTERN.finditer(content):
            fields = dict(cls.CACHE_FIELD_PATTERN.findall(block.group(1)))
            if fields:
                entries.append(fields)
        return cls.from_entries(entries)

    @classmethod
    def from_scripts(cls, project_root: str | Path) -> "ClassRegistry":
        """Scan every .gd file for a class_name declaration."""
        root = Path(project_root)
        classes = []
        for gd_file in sorted(root.rglob("*.gd")):
            rel = gd_file.relative_to(root)
            if rel.parts and rel.parts[0].startswith("."):
                continue
            try:
                content = gd_file.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Skipping unreadable script %s: %s", gd_file, e)
                continue
            match = cls.SCRIPT_CLASS_PATTERN.search(content)
            if not match:
                continue
            base = match.group(2)
            if not base:
                extends = cls.SCRIPT_EXTENDS_PATTERN.search(content)
                base = extends.group(1) if extends else None
            classes.append(GlobalClass(
                name=match.group(1),
                path=f"res://{rel.as_posix()}",
                base=base.strip('"\'') if base else None
            ))
        return cls(classes)

    @classmethod
    def from_project(cls, project_root: str | Path) -> "ClassRegistry":
        """Use the editor's class cache when present, else scan the scripts."""
        cache = Path(project_root) / GLOBAL_CLASS_CACHE
        if cache.exists():
            try:
                registry = cls.from_cache_file(cache)
                logger.debug("Loaded %d global classes from %s", len(registry), cache)
                return registry
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read class cache %s: %s", cache, e)
        registry = cls.from_scripts(project_root)
        logger.debug("Scanned %d global classes under %s", len(registry), project_root)
        return registry


async def fetch_global_classes(base_url: str = GODOT_BRIDGE_URL,
                               client: Optional[httpx.AsyncClient] = None) -> Optional[ClassRegistry]:
    """
    Ask the running editor for its global class list.
    Returns None when the editor is unreachable or answers with an error.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
    try:
        response = await client.get(f"{base_url}/project/global_classes")
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug("Global class list unavailable from editor: %s", e)
        return None
    finally:
        if owns_client:
            await client.aclose()

    if isinstance(data, dict):
        if "error" in data:
            logger.debug("Editor returned error for global classes: %s", data["error"])
            return None
        data = data.get("classes", [])
    if not isinstance(data, list):
        return None
    return ClassRegistry.from_entries(data)
