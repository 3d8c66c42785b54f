"""
Analyzer Configuration
Settings read from the environment once at import time.
"""

import os

# Godot editor bridge (Claude Bridge plugin)
GODOT_BRIDGE_URL = os.getenv("GODOT_BRIDGE_URL", "") or "http://127.0.0.1:6550"
DEFAULT_TIMEOUT = float(os.getenv("GODOT_BRIDGE_TIMEOUT", "") or "30.0")

# Upper bound on ancestor directories visited while looking for project.godot
MAX_ROOT_SEARCH_DEPTH = int(os.getenv("GODOT_MAX_ROOT_SEARCH_DEPTH", "") or "16")

# Upper bound on scene hierarchy recursion
MAX_SCENE_DEPTH = int(os.getenv("GODOT_MAX_SCENE_DEPTH", "") or "64")

LOG_LEVEL = (os.getenv("GODOT_ANALYZER_LOG_LEVEL", "") or "WARNING").upper()

PROJECT_MARKER = "project.godot"
GLOBAL_CLASS_CACHE = ".godot/global_script_class_cache.cfg"
