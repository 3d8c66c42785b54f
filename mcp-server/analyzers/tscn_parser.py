"""
TSCN Scene Parser
Parses Godot .tscn files to extract node structure, resources, and connections.
Works completely offline - no Godot required.
"""

import logging
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .config import MAX_SCENE_DEPTH
from .lexing import extract_attribute
from .sources import FileSource

logger = logging.getLogger(__name__)

ROOT_PATH = "."


@dataclass
class TscnResource:
    id: str
    type: str
    path: Optional[str] = None  # For ext_resource
    properties: dict = field(default_factory=dict)


@dataclass
class TscnNode:
    name: str
    type: Optional[str] = None
    parent: Optional[str] = None
    instance: Optional[str] = None  # For instanced scenes
    properties: dict = field(default_factory=dict)
    groups: list[str] = field(default_factory=list)
    children: list['TscnNode'] = field(default_factory=list)

    @property
    def path(self) -> str:
        """Scene-relative node path as used in `parent=` attributes."""
        if self.parent is None:
            return ROOT_PATH
        if self.parent == ROOT_PATH:
            return self.name
        return f"{self.parent}/{self.name}"


@dataclass
class TscnConnection:
    signal: str
    from_node: str
    to_node: str
    method: str
    flags: int = 0


@dataclass
class TscnScene:
    path: str
    format_version: int = 3
    uid: Optional[str] = None
    ext_resources: list[TscnResource] = field(default_factory=list)
    sub_resources: list[TscnResource] = field(default_factory=list)
    nodes: list[TscnNode] = field(default_factory=list)
    connections: list[TscnConnection] = field(default_factory=list)
    root_node: Optional[TscnNode] = None

    @property
    def ext_resource_map(self) -> dict[str, str]:
        return {r.id: r.path for r in self.ext_resources if r.path}


class TscnParser:
    """Parse Godot .tscn scene files."""

    SECTION_PATTERN = re.compile(
        r'^\[(gd_scene|gd_resource|ext_resource|sub_resource|node|connection|editable|resource)\b(.*)\]\s*$'
    )
    PROPERTY_PATTERN = re.compile(r'^([\w/:.\-]+)\s*=\s*(.*)$')

    def __init__(self, source: Optional[FileSource] = None):
        self.source = source or FileSource()

    def parse_file(self, path: str | Path, include_properties: bool = True,
                   include_connections: bool = True) -> TscnScene:
        """Parse a .tscn file and return structured data."""
        content = self.source.read_text(path)
        return self.parse_content(content, str(path), include_properties, include_connections)

    def parse_content(self, content: str, path: str = "", include_properties: bool = True,
                      include_connections: bool = True) -> TscnScene:
        """Parse TSCN content string in a single pass over its lines."""
        scene = TscnScene(path=path)
        current_node: Optional[TscnNode] = None
        last_key: Optional[str] = None

        for raw in content.split('\n'):
            line = raw.strip()
            if not line:
                continue

            section = self.SECTION_PATTERN.match(line)
            if section:
                kind, header = section.group(1), section.group(2)
                current_node = None
                last_key = None

                if kind == "gd_scene":
                    fmt = extract_attribute(header, "format")
                    if fmt and fmt.isdigit():
                        scene.format_version = int(fmt)
                    scene.uid = extract_attribute(header, "uid")

                elif kind == "ext_resource":
                    resource = TscnResource(
                        id=extract_attribute(header, "id") or "",
                        type=extract_attribute(header, "type") or "",
                        path=extract_attribute(header, "path")
                    )
                    uid = extract_attribute(header, "uid")
                    if uid:
                        resource.properties['uid'] = uid
                    scene.ext_resources.append(resource)

                elif kind == "sub_resource":
                    scene.sub_resources.append(TscnResource(
                        id=extract_attribute(header, "id") or "",
                        type=extract_attribute(header, "type") or ""
                    ))

                elif kind == "node":
                    current_node = self._parse_node_header(header)
                    scene.nodes.append(current_node)
                    if current_node.parent is None and scene.root_node is None:
                        scene.root_node = current_node

                elif kind == "connection" and include_connections:
                    flags = extract_attribute(header, "flags")
                    scene.connections.append(TscnConnection(
                        signal=extract_attribute(header, "signal") or "",
                        from_node=extract_attribute(header, "from") or "",
                        to_node=extract_attribute(header, "to") or "",
                        method=extract_attribute(header, "method") or "",
                        flags=int(flags) if flags and flags.isdigit() else 0
                    ))
                continue

            if current_node is None or not include_properties:
                continue

            match = self.PROPERTY_PATTERN.match(line)
            if match:
                last_key = match.group(1)
                current_node.properties[last_key] = {"value": match.group(2), "raw_line": line}
            elif last_key:
                # Continuation of previous property
                entry = current_node.properties[last_key]
                entry["value"] = f"{entry['value']}\n{line}"

        build_hierarchy(scene)
        logger.debug("Parsed scene %s: %d nodes, %d connections",
                     path or "<content>", len(scene.nodes), len(scene.connections))
        return scene

    def _parse_node_header(self, header: str) -> TscnNode:
        node = TscnNode(
            name=extract_attribute(header, "name") or "",
            type=extract_attribute(header, "type"),
            parent=extract_attribute(header, "parent")
        )
        instance = extract_attribute(header, "instance")
        if instance:
            match = re.search(r'ExtResource\(\s*"?([^")\s]+)"?\s*\)', instance)
            node.instance = match.group(1) if match else instance
        groups = extract_attribute(header, "groups")
        if groups:
            node.groups = [g.strip().strip('"') for g in groups.strip('[]').split(',') if g.strip()]
        return node

    def to_dict(self, scene: TscnScene, include_properties: bool = True,
                max_depth: Optional[int] = None) -> dict:
        """Convert TscnScene to dictionary for JSON serialization."""
        return {
            "path": scene.path,
            "format_version": scene.format_version,
            "uid": scene.uid,
            "ext_resources": [
                {"id": r.id, "type": r.type, "path": r.path}
                for r in scene.ext_resources
            ],
            "sub_resources": [
                {"id": r.id, "type": r.type}
                for r in scene.sub_resources
            ],
            "hierarchy": self.get_node_tree(scene, include_properties, max_depth),
            "connections": [
                {
                    "signal": c.signal,
                    "from": c.from_node,
                    "to": c.to_node,
                    "method": c.method,
                    "flags": c.flags
                }
                for c in scene.connections
            ],
            "node_count": len(scene.nodes)
        }

    def get_node_tree(self, scene: TscnScene, include_properties: bool = True,
                      max_depth: Optional[int] = None) -> dict:
        """Get hierarchical node tree starting from root."""
        if not scene.root_node:
            return {}
        limit = MAX_SCENE_DEPTH if max_depth is None else min(max(max_depth, 0), MAX_SCENE_DEPTH)
        return self._node_to_tree(scene.root_node, include_properties, 0, limit)

    def _node_to_tree(self, node: TscnNode, include_properties: bool, depth: int, limit: int) -> dict:
        """Recursively convert node to tree dict, clearing children at the depth cutoff."""
        tree = {
            "name": node.name,
            "type": node.type or "(instanced)",
            "path": node.path,
            "groups": node.groups,
            "children": [] if depth >= limit else [
                self._node_to_tree(c, include_properties, depth + 1, limit) for c in node.children
            ]
        }
        if node.instance:
            tree["instance"] = node.instance
        if include_properties:
            tree["properties"] = {k: v["value"] for k, v in node.properties.items()}
        return tree


def build_hierarchy(scene: TscnScene) -> Optional[TscnNode]:
    """
    Rebuild parent/child links from the flat node list.
    Nodes are indexed by full path and by bare name; a node whose parent
    cannot be found is dropped from the tree (it stays in scene.nodes).
    """
    for node in scene.nodes:
        node.children = []

    root = next((n for n in scene.nodes if n.parent is None), None)
    scene.root_node = root
    if root is None:
        return None

    by_path: dict[str, TscnNode] = {ROOT_PATH: root}
    by_name: dict[str, TscnNode] = {}
    for node in scene.nodes:
        by_name[node.name] = node
        if node is not root:
            by_path[node.path] = node

    for node in scene.nodes:
        if node.parent is None:
            continue
        parent = by_path.get(node.parent) or by_name.get(node.parent)
        if parent is None or parent is node:
            logger.debug("Dropping orphan node %s (parent %s not found)", node.name, node.parent)
            continue
        parent.children.append(node)
    return root


def flatten_hierarchy(root: Optional[TscnNode], max_depth: int = MAX_SCENE_DEPTH) -> list[TscnNode]:
    """Pre-order list of the nodes reachable from root."""
    result: list[TscnNode] = []

    def visit(node: TscnNode, depth: int):
        result.append(node)
        if depth >= max_depth:
            return
        for child in node.children:
            visit(child, depth + 1)

    if root is not None:
        visit(root, 0)
    return result
