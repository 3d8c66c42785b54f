"""
Godot MCP Server - Static Analysis Edition
Offline script and scene analysis for Godot projects over MCP stdio.
"""

import asyncio
import json
import logging
import os
import sys
from typing import Any, Optional
from pathlib import Path

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from analyzers import ClassRegistry, ProjectAnalyzer
from analyzers.class_registry import fetch_global_classes
from analyzers.config import GODOT_BRIDGE_URL, LOG_LEVEL, PROJECT_MARKER

logger = logging.getLogger("godot-mcp")

server = Server("godot-mcp")

# Active project path (set via tool)
_active_project: Optional[str] = None
_analyzer: Optional[ProjectAnalyzer] = None


async def load_registry(project_path: str) -> ClassRegistry:
    """Global classes from the running editor, else from the project files."""
    registry = await fetch_global_classes(GODOT_BRIDGE_URL)
    if registry is not None:
        logger.info("Loaded %d global classes from the editor", len(registry))
        return registry
    return ClassRegistry.from_project(project_path)


async def get_analyzer(refresh: bool = False) -> Optional[ProjectAnalyzer]:
    """Get the project analyzer; the class registry is built once per project."""
    global _analyzer
    if not _active_project:
        return None
    if refresh or not _analyzer or _analyzer.project_path != Path(_active_project):
        registry = await load_registry(_active_project)
        _analyzer = ProjectAnalyzer(_active_project, registry)
    return _analyzer


# ============ Tool Definitions ============

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="godot_set_project",
            description="Set the active Godot project path for offline analysis. Required before using analysis tools.",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_path": {
                        "type": "string",
                        "description": "Absolute path to the Godot project folder (containing project.godot)"
                    }
                },
                "required": ["project_path"]
            }
        ),
        Tool(
            name="analyze_script",
            description="Structure, call classification, dependencies and behavior of one GDScript file (offline)",
            inputSchema={
                "type": "object",
                "properties": {
                    "script_path": {"type": "string", "description": "res:// path or path relative to the project root"},
                    "include_dependencies": {"type": "boolean", "default": False},
                    "include_methods": {"type": "boolean", "default": True},
                    "include_variables": {"type": "boolean", "default": True},
                    "max_depth": {"type": "integer", "description": "Follow script dependencies this many levels"}
                },
                "required": ["script_path"]
            }
        ),
        Tool(
            name="analyze_scene",
            description="Node hierarchy, connections and merged script insights of one scene file (offline)",
            inputSchema={
                "type": "object",
                "properties": {
                    "scene_path": {"type": "string", "description": "res:// path or path relative to the project root"},
                    "include_properties": {"type": "boolean", "default": True},
                    "include_connections": {"type": "boolean", "default": True},
                    "max_depth": {"type": "integer", "description": "Truncate the hierarchy below this depth"},
                    "include_script_insights": {"type": "boolean", "default": True}
                },
                "required": ["scene_path"]
            }
        ),
        Tool(
            name="analyze_refresh_classes",
            description="Rebuild the global class registry for the active project",
            inputSchema={"type": "object", "properties": {}}
        ),
    ]


# ============ Tool Handler ============

@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    global _active_project

    result = {}

    # === Project Setup ===
    if name == "godot_set_project":
        path = arguments["project_path"]
        if os.path.exists(os.path.join(path, PROJECT_MARKER)):
            _active_project = path
            result = {"success": True, "project": path}
        else:
            result = {"error": f"No {PROJECT_MARKER} found in {path}"}

    # === Offline Analysis Tools ===
    elif name.startswith("analyze_"):
        analyzer = await get_analyzer(refresh=name == "analyze_refresh_classes")
        if not analyzer:
            result = {"error": "No project set. Use godot_set_project first."}
        else:
            try:
                if name == "analyze_script":
                    result = analyzer.analyze_script(
                        arguments["script_path"],
                        include_dependencies=arguments.get("include_dependencies", False),
                        include_methods=arguments.get("include_methods", True),
                        include_variables=arguments.get("include_variables", True),
                        max_depth=arguments.get("max_depth")
                    )
                elif name == "analyze_scene":
                    result = analyzer.analyze_scene(
                        arguments["scene_path"],
                        include_properties=arguments.get("include_properties", True),
                        include_connections=arguments.get("include_connections", True),
                        max_depth=arguments.get("max_depth"),
                        include_script_insights=arguments.get("include_script_insights", True)
                    )
                elif name == "analyze_refresh_classes":
                    result = {"classes": analyzer.registry.to_list()}
                else:
                    result = {"error": f"Unknown tool: {name}"}
            except Exception as e:
                logger.exception("Tool %s failed", name)
                result = {"error": str(e)}

    else:
        result = {"error": f"Unknown tool: {name}"}

    return [TextContent(type="text", text=json.dumps(result, indent=2))]


# ============ Main ============

async def main():
    # stdout carries the MCP protocol
    logging.basicConfig(stream=sys.stderr, level=LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main_sync():
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
