"""
Godot Project Analyzer
Entry points for script and scene analysis plus the scene-level aggregation
over every script a scene references.
Works completely offline - no Godot required.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .behavior import (
    BehavioralInsights,
    analyze_behavior,
    analyze_scene_interactions,
    merge_insights,
)
from .call_classifier import CallClassifier
from .class_registry import ClassRegistry
from .config import MAX_SCENE_DEPTH
from .dependency_resolver import DependencyResolver
from .errors import AnalysisError, InvalidStructureError
from .gdscript_parser import GDScriptParser
from .sources import FileSource, find_project_root
from .tscn_parser import TscnNode, TscnParser

logger = logging.getLogger(__name__)

RES_PREFIX = "res://"
EXT_RESOURCE_PATTERN = re.compile(r'^ExtResource\(\s*"?([^")\s]+)"?\s*\)$')
RES_LITERAL_PATTERN = re.compile(r'^"(res://[^"]+)"$')


class ProjectAnalyzer:
    """Analyze scripts and scenes of one Godot project."""

    def __init__(self, project_path: str | Path, registry: Optional[ClassRegistry] = None,
                 source: Optional[FileSource] = None):
        self.project_path = Path(project_path)
        self.source = source or FileSource()
        # Built once and shared read-only by every call on this analyzer
        self.registry = registry if registry is not None else ClassRegistry.from_project(self.project_path)
        self.gdscript_parser = GDScriptParser(self.source)
        self.tscn_parser = TscnParser(self.source)
        self.dependency_resolver = DependencyResolver(self.registry)
        self.call_classifier = CallClassifier(self.registry)

    @classmethod
    def for_path(cls, path: str | Path, registry: Optional[ClassRegistry] = None) -> "ProjectAnalyzer":
        """Create an analyzer rooted at the project containing `path`."""
        root = find_project_root(path)
        if root is None:
            start = Path(path)
            root = start.parent if start.suffix else start
        return cls(root, registry)

    # ============ Paths ============

    def to_fs_path(self, path: str) -> Path:
        """Resolve res://, absolute and project-relative paths."""
        if path.startswith(RES_PREFIX):
            return self.project_path / path[len(RES_PREFIX):]
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.project_path / candidate

    def to_res_path(self, path: str | Path) -> str:
        path_str = str(path)
        if path_str.startswith(RES_PREFIX):
            return path_str
        try:
            rel = Path(path_str).resolve().relative_to(self.project_path.resolve())
        except ValueError:
            return path_str
        return f"{RES_PREFIX}{rel.as_posix()}"

    # ============ Scripts ============

    def analyze_script(self, script_path: str, include_dependencies: bool = False,
                       include_methods: bool = True, include_variables: bool = True,
                       max_depth: Optional[int] = None) -> dict:
        """Get detailed analysis of a single script."""
        try:
            result = self._analyze_script(script_path, include_dependencies,
                                          include_methods, include_variables)
        except AnalysisError as e:
            logger.debug("Script analysis failed for %s: %s", script_path, e)
            return self._script_error(script_path, e)

        if include_dependencies and max_depth:
            result["dependency_tree"] = self._dependency_tree(
                script_path, result["structure"]["dependencies"], max_depth
            )
        return result

    def _analyze_script(self, script_path: str, include_dependencies: bool,
                        include_methods: bool, include_variables: bool) -> dict:
        full_path = self.to_fs_path(script_path)
        gd_class = self.gdscript_parser.parse_file(full_path, include_variables, include_methods)
        gd_class.path = script_path

        if include_dependencies:
            self.dependency_resolver.resolve(gd_class)

        insights = analyze_behavior(gd_class)
        interactions = analyze_scene_interactions(gd_class)
        summaries, call_flows = self.call_classifier.summarize(gd_class) if include_methods else ([], [])

        structure = self.gdscript_parser.to_dict(
            gd_class, include_variables, include_methods, include_dependencies
        )
        return {
            "script_path": script_path,
            "structure": structure,
            "behavioral_analysis": {
                "pattern_count": len(insights.patterns),
                "signal_count": len(gd_class.signals),
                "variable_count": len(gd_class.variables),
                "method_count": len(gd_class.functions),
                "method_summaries": summaries,
                "scene_interactions": interactions
            },
            "behavioral_context": insights.to_dict(),
            "behavioral_flows": {
                "signal_flows": [
                    {"method": e.method, "signal": e.signal, "line": e.line}
                    for e in gd_class.signal_emissions
                ],
                "call_flows": call_flows
            },
            "error": None
        }

    def _script_error(self, script_path: str, error: AnalysisError) -> dict:
        return {
            "script_path": script_path,
            "structure": None,
            "error": error.message,
            "error_kind": error.kind.value
        }

    def _dependency_tree(self, script_path: str, dependencies: list[dict], max_depth: int) -> dict:
        """Follow resolved .gd dependencies at most max_depth levels deep."""
        visited = {self.to_res_path(self.to_fs_path(script_path))}

        def expand(path: str, deps: list[dict], depth: int) -> dict:
            node = {"path": path, "dependencies": []}
            if depth >= max_depth:
                return node
            for dep in deps:
                target = dep.get("resolved_path")
                if not target or not target.endswith(".gd") or target in visited:
                    continue
                visited.add(target)
                try:
                    child = self.gdscript_parser.parse_file(self.to_fs_path(target))
                except AnalysisError as e:
                    node["dependencies"].append({"path": target, "error": e.message, "dependencies": []})
                    continue
                child_deps = [
                    {"resolved_path": d.resolved_path}
                    for d in self.dependency_resolver.resolve(child)
                ]
                node["dependencies"].append(expand(target, child_deps, depth + 1))
            return node

        return expand(script_path, dependencies, 0)

    # ============ Scenes ============

    def analyze_scene(self, scene_path: str, include_properties: bool = True,
                      include_connections: bool = True, max_depth: Optional[int] = None,
                      include_script_insights: bool = True) -> dict:
        """Get detailed analysis of a single scene and the scripts it uses."""
        full_path = self.to_fs_path(scene_path)
        try:
            # script references live in node properties
            scene = self.tscn_parser.parse_file(full_path, include_connections=include_connections)
        except AnalysisError as e:
            logger.debug("Scene analysis failed for %s: %s", scene_path, e)
            return {
                "scene_path": scene_path,
                "structure": None,
                "error": e.message,
                "error_kind": e.kind.value
            }

        structure = self.tscn_parser.to_dict(scene, include_properties, max_depth)
        structure["path"] = scene_path
        result = {
            "scene_path": scene_path,
            "structure": structure,
            "script_insights": {},
            "node_script_mapping": [],
            "scene_insights": None,
            "error": None
        }

        mapping = self.collect_node_scripts(scene.root_node, scene.ext_resource_map)
        result["node_script_mapping"] = mapping
        if include_script_insights:
            unique_scripts = list(dict.fromkeys(entry["script_path"] for entry in mapping))
            result["script_insights"], result["scene_insights"] = self.aggregate_scripts(unique_scripts)
        return result

    def collect_node_scripts(self, root: Optional[TscnNode], ext_resources: dict[str, str]) -> list[dict]:
        """(node_path, script_path) for every node with a script, first node per script."""
        mapping: list[dict] = []
        seen: set[str] = set()

        def walk(node: TscnNode, depth: int):
            script = resolve_script_reference(node, ext_resources)
            if script and script not in seen:
                seen.add(script)
                mapping.append({"node_path": node.path, "script_path": script})
            if depth >= MAX_SCENE_DEPTH:
                logger.warning("Scene hierarchy deeper than %d levels; stopping at %s", MAX_SCENE_DEPTH, node.path)
                return
            for child in node.children:
                walk(child, depth + 1)

        if root is not None:
            walk(root, 0)
        return mapping

    def aggregate_scripts(self, script_paths: list[str]) -> tuple[dict, dict]:
        """Analyze each script once and merge their insights; failures become entries."""
        script_insights: dict[str, dict] = {}
        collected: list[BehavioralInsights] = []
        errors: list[dict] = []

        for script_path in script_paths:
            result = self.analyze_script(script_path)
            script_insights[script_path] = result
            if result.get("error"):
                logger.warning("Skipping insights for %s: %s", script_path, result["error"])
                errors.append({"script_path": script_path, "error": result["error"]})
                continue
            try:
                collected.append(BehavioralInsights.from_dict(result.get("behavioral_context")))
            except InvalidStructureError as e:
                errors.append({"script_path": script_path, "error": e.message})

        merged = merge_insights(collected).to_dict()
        merged["unique_scripts"] = list(script_paths)
        merged["script_count"] = len(script_paths)
        merged["script_errors"] = errors
        return script_insights, merged


def resolve_script_reference(node: TscnNode, ext_resources: dict[str, str]) -> Optional[str]:
    """Script path of a node from a res:// literal or ExtResource id; SubResource is not followed."""
    entry = node.properties.get("script")
    if not entry:
        return None
    value = entry["value"].strip()
    match = RES_LITERAL_PATTERN.match(value)
    if match:
        return match.group(1)
    match = EXT_RESOURCE_PATTERN.match(value)
    if match:
        return ext_resources.get(match.group(1))
    return None
