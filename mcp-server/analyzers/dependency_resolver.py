"""
Dependency Resolver
Finds what a script depends on: base classes, loaded resources, referenced
global classes, type hints and literal resource paths.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from .class_registry import ClassRegistry
from .gdscript_parser import GDClass, GDDependency
from .lexing import code_part, extract_quoted_args, strip_inline_comment, tokenize_identifiers

logger = logging.getLogger(__name__)

INHERITANCE = "inheritance"
PRELOAD = "preload"
LOAD = "load"
CLASSDB_REFERENCE = "classdb_reference"
CLASS_REFERENCE = "class_reference"
TYPE_HINT = "type_hint"
LITERAL_RESOURCE = "literal_resource"

DEPENDENCY_KINDS = (
    INHERITANCE, PRELOAD, LOAD, CLASSDB_REFERENCE, CLASS_REFERENCE, TYPE_HINT, LITERAL_RESOURCE,
)

# Resource type by file extension
RESOURCE_TYPE_MAP = {
    # Scripts
    ".gd": "Script",
    ".cs": "Script",
    # Scenes
    ".tscn": "PackedScene",
    ".scn": "PackedScene",
    # 3D Models
    ".glb": "PackedScene",
    ".gltf": "PackedScene",
    ".obj": "Mesh",
    ".fbx": "PackedScene",
    ".blend": "PackedScene",
    # Textures
    ".png": "Texture2D",
    ".jpg": "Texture2D",
    ".jpeg": "Texture2D",
    ".webp": "Texture2D",
    ".svg": "Texture2D",
    ".tga": "Texture2D",
    ".bmp": "Texture2D",
    ".exr": "Texture2D",
    ".hdr": "Texture2D",
    # Resources
    ".tres": "Resource",
    ".res": "Resource",
    ".material": "Material",
    ".gdshader": "Shader",
    ".shader": "Shader",
    # Audio
    ".wav": "AudioStream",
    ".ogg": "AudioStream",
    ".mp3": "AudioStream",
    # Fonts
    ".ttf": "FontFile",
    ".otf": "FontFile",
    ".json": "JSON",
    ".anim": "Animation",
}

RESOURCE_PREFIXES = ("res://", "uid://", "user://")

INHERITANCE_PATTERN = re.compile(r'^(?:class_name\s+\w+\s+)?extends\s+([^\s#:]+)')
CLASS_USAGE_PATTERN = re.compile(r'(?<![\w.$%@])([A-Za-z_]\w*)(?=\s*[.(])')
LITERAL_RESOURCE_PATTERN = re.compile(r'^@?(["\'])((?:res|uid|user)://[^"\']*)\1$')


@dataclass(frozen=True)
class LoaderSpec:
    function: str
    kind: str
    allow_member: bool = False


DEFAULT_LOADERS = (
    LoaderSpec("preload", PRELOAD),
    LoaderSpec("load", LOAD),
    LoaderSpec("ResourceLoader.load", LOAD),
    LoaderSpec("load_threaded_request", LOAD, allow_member=True),
    LoaderSpec("ClassDB.instantiate", CLASSDB_REFERENCE),
)


def resource_type_for(path: str) -> Optional[str]:
    suffix = PurePosixPath(path.split("::", 1)[0]).suffix.lower()
    return RESOURCE_TYPE_MAP.get(suffix)


class DependencyResolver:
    """Extract and resolve the dependencies of one parsed script."""

    def __init__(self, registry: Optional[ClassRegistry] = None,
                 loaders: tuple[LoaderSpec, ...] = DEFAULT_LOADERS):
        self.registry = registry or ClassRegistry()
        self.loaders = loaders
        self._seen: set[tuple[str, str, int]] = set()

    def resolve(self, gd_class: GDClass) -> list[GDDependency]:
        """Populate gd_class.dependencies and return them."""
        self._seen = set()
        gd_class.dependencies = []

        for number, raw in enumerate(gd_class.lines, 1):
            stripped = raw.strip()
            if not stripped or stripped.startswith('#'):
                continue
            self._scan_line(gd_class, stripped, number)

        self._scan_type_hints(gd_class)
        self._scan_literal_resources(gd_class)
        logger.debug("Resolved %d dependencies for %s", len(gd_class.dependencies), gd_class.path)
        return gd_class.dependencies

    def _register(self, gd_class: GDClass, target: str, kind: str, line: int,
                  source_line: str = "", resource_type: Optional[str] = None) -> None:
        """Add a dependency unless (kind, target, line) was already seen."""
        key = (kind, target, line)
        if key in self._seen:
            return
        self._seen.add(key)

        resolved = self._resolve_target(target)
        metadata = {"resource_type": resource_type} if resource_type else {}
        gd_class.dependencies.append(GDDependency(
            target=target,
            kind=kind,
            resolved_path=resolved,
            metadata=metadata,
            source_line=source_line,
            line=line
        ))

    def _resolve_target(self, target: str) -> Optional[str]:
        if target.startswith(RESOURCE_PREFIXES):
            return target
        return self.registry.resolve_path(target)

    def _scan_line(self, gd_class: GDClass, stripped: str, number: int) -> None:
        match = INHERITANCE_PATTERN.match(stripped)
        if match:
            target = match.group(1).strip('"\'')
            resource_type = resource_type_for(target) if target.startswith(RESOURCE_PREFIXES) else None
            self._register(gd_class, target, INHERITANCE, number, stripped, resource_type)

        code = strip_inline_comment(stripped)
        for loader in self.loaders:
            for argument in extract_quoted_args(code, loader.function, loader.allow_member):
                if loader.kind == CLASSDB_REFERENCE:
                    self._register(gd_class, argument, loader.kind, number, stripped)
                else:
                    self._register(gd_class, argument, loader.kind, number, stripped,
                                   resource_type_for(argument))

        if len(self.registry) == 0:
            return
        for match in CLASS_USAGE_PATTERN.finditer(code_part(stripped)):
            name = match.group(1)
            if name in self.registry:
                self._register(gd_class, name, CLASS_REFERENCE, number, stripped)

    def _scan_type_hints(self, gd_class: GDClass) -> None:
        """Known classes named in variable, parameter and return types."""
        hints: list[tuple[str, int]] = []
        for variable in gd_class.variables:
            hints.append((variable.type, variable.line))
        for function in gd_class.functions:
            if function.return_type:
                hints.append((function.return_type, function.line))
            for param in function.parameters:
                hints.append((param.type, function.line))

        for hint, line in hints:
            for token in tokenize_identifiers(hint):
                if token in self.registry:
                    source = gd_class.lines[line - 1].strip() if 0 < line <= len(gd_class.lines) else ""
                    self._register(gd_class, token, TYPE_HINT, line, source)

    def _scan_literal_resources(self, gd_class: GDClass) -> None:
        for variable in gd_class.variables:
            match = LITERAL_RESOURCE_PATTERN.match(variable.default or "")
            if not match:
                continue
            path = match.group(2)
            source = gd_class.lines[variable.line - 1].strip() if 0 < variable.line <= len(gd_class.lines) else ""
            self._register(gd_class, path, LITERAL_RESOURCE, variable.line, source, resource_type_for(path))
