"""
Behavioral Pattern Analyzer
Lifecycle/event/state patterns for a script and the ways its methods touch
the scene tree. Also merges per-script insights into scene-level insights.
"""

import re
from dataclasses import dataclass, field

from .errors import InvalidStructureError
from .gdscript_parser import GDClass
from .lexing import code_part, strip_inline_comment, unique

LIFECYCLE_PATTERNS = {
    "_init": "initialization",
    "_ready": "initialization",
    "_enter_tree": "tree_lifecycle",
    "_exit_tree": "tree_lifecycle",
    "_process": "frame_update",
    "_physics_process": "physics_update",
    "_input": "input_handling",
    "_unhandled_input": "input_handling",
    "_unhandled_key_input": "input_handling",
    "_shortcut_input": "input_handling",
    "_gui_input": "input_handling",
}

EVENT_HANDLER_PREFIX = "_on_"
STATE_NAME_PATTERN = re.compile(r'state|status|mode', re.IGNORECASE)

COMPLEXITY_ORDER = {"low": 0, "medium": 1, "high": 2}

NODE_QUERY_PATTERNS = (
    re.compile(r'\$(?:"[^"]*"|\'[^\']*\'|[\w/]+)'),
    re.compile(r'(?<![\w])%\w+'),
    re.compile(r'get_node(?:_or_null)?\(\s*["\'][^"\']+["\']\s*\)'),
)
TREE_MUTATION_PATTERN = re.compile(
    r'(?<![\w])(add_child|remove_child|queue_free|reparent|move_child|add_sibling|replace_by)\s*\('
)
SCENE_LOAD_PATTERN = re.compile(r'(?<![\w.])(?:pre)?load\(\s*["\']([^"\']+\.(?:tscn|scn))["\']\s*\)')
INSTANTIATE_PATTERN = re.compile(r'\.instantiate\s*\(\s*\)')
DOWNWARD_CALL_PATTERN = re.compile(
    r'(\$(?:"[^"]*"|[\w/]+)|%\w+|get_node(?:_or_null)?\(\s*["\'][^"\']+["\']\s*\))\.(\w+)\s*\('
)
CONNECT_PATTERN = re.compile(r'([\w.$%/"]+)\.connect\s*\(')


@dataclass
class BehavioralInsights:
    patterns: set[str] = field(default_factory=set)
    lifecycle_methods: set[str] = field(default_factory=set)
    event_handler_count: int = 0
    signals_defined: list[str] = field(default_factory=list)
    signals_emitted: list[str] = field(default_factory=list)
    variable_type_counts: dict[str, int] = field(
        default_factory=lambda: {"exported": 0, "onready": 0, "constant": 0, "regular": 0}
    )
    complexity: str = "low"

    def to_dict(self) -> dict:
        return {
            "patterns": sorted(self.patterns),
            "lifecycle_methods": sorted(self.lifecycle_methods),
            "event_handler_count": self.event_handler_count,
            "signals_defined": list(self.signals_defined),
            "signals_emitted": list(self.signals_emitted),
            "variable_type_counts": dict(self.variable_type_counts),
            "complexity": self.complexity
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BehavioralInsights":
        if not isinstance(data, dict):
            raise InvalidStructureError(f"Expected insights mapping, got {type(data).__name__}")
        counts = {"exported": 0, "onready": 0, "constant": 0, "regular": 0}
        counts.update(data.get("variable_type_counts") or {})
        return cls(
            patterns=set(data.get("patterns") or []),
            lifecycle_methods=set(data.get("lifecycle_methods") or []),
            event_handler_count=int(data.get("event_handler_count") or 0),
            signals_defined=list(data.get("signals_defined") or []),
            signals_emitted=list(data.get("signals_emitted") or []),
            variable_type_counts=counts,
            complexity=data.get("complexity") or "low"
        )


def complexity_for(method_count: int, variable_count: int) -> str:
    if method_count > 20 or variable_count > 30:
        return "high"
    if method_count > 10 or variable_count > 15:
        return "medium"
    return "low"


def analyze_behavior(gd_class: GDClass) -> BehavioralInsights:
    """Detect structural patterns in a parsed script."""
    if not isinstance(gd_class, GDClass):
        raise InvalidStructureError(f"Expected GDClass, got {type(gd_class).__name__}")
    insights = BehavioralInsights()

    for function in gd_class.functions:
        pattern = LIFECYCLE_PATTERNS.get(function.name)
        if pattern:
            insights.lifecycle_methods.add(function.name)
            insights.patterns.add(pattern)
        if function.name.startswith(EVENT_HANDLER_PREFIX):
            insights.event_handler_count += 1
    if insights.event_handler_count > 0:
        insights.patterns.add("event_driven")

    insights.signals_defined = unique(s.name for s in gd_class.signals)
    insights.signals_emitted = unique(e.signal for e in gd_class.signal_emissions)
    if insights.signals_defined:
        insights.patterns.add("signal_emitter")
    if insights.signals_emitted:
        insights.patterns.add("signal_emitting_active")

    counts = insights.variable_type_counts
    for variable in gd_class.variables:
        if variable.is_export:
            counts["exported"] += 1
        elif variable.is_onready:
            counts["onready"] += 1
        elif variable.is_constant:
            counts["constant"] += 1
        else:
            counts["regular"] += 1
        if STATE_NAME_PATTERN.search(variable.name):
            insights.patterns.add("state_management")

    insights.complexity = complexity_for(len(gd_class.functions), len(gd_class.variables))
    return insights


def _call_context(line: str, start: int, name: str) -> str:
    """`receiver.name` using the last whitespace-delimited token before the call."""
    tokens = line[:start].split()
    if tokens and tokens[-1].endswith('.'):
        return f"{tokens[-1].lstrip('(=,')}{name}"
    return name


def analyze_scene_interactions(gd_class: GDClass) -> dict:
    """Node queries, tree mutations, scene loads and signal wiring in method bodies."""
    node_queries = []
    tree_manipulation = []
    scene_loading = []
    downward = []
    connections = []

    for body in gd_class.bodies:
        for _, raw in body:
            line = strip_inline_comment(raw.strip())
            masked = code_part(line)

            for pattern in NODE_QUERY_PATTERNS:
                # node paths live inside quotes, so search the unmasked text
                for match in pattern.finditer(line):
                    if masked[match.start()] in ('$', '%', 'g'):
                        node_queries.append(match.group(0))

            for match in TREE_MUTATION_PATTERN.finditer(masked):
                tree_manipulation.append(_call_context(line, match.start(), match.group(1)))

            for match in SCENE_LOAD_PATTERN.finditer(line):
                scene_loading.append(match.group(1))
            for match in INSTANTIATE_PATTERN.finditer(masked):
                scene_loading.append(_call_context(line, match.start() + 1, "instantiate()"))

            for match in DOWNWARD_CALL_PATTERN.finditer(line):
                if masked[match.start()] in ('$', '%', 'g'):
                    downward.append(f"{match.group(1)}.{match.group(2)}")

            for match in CONNECT_PATTERN.finditer(line):
                if masked[match.start()] not in ('"', "'", ' '):
                    connections.append(match.group(1))

    return {
        "node_queries": unique(node_queries),
        "tree_manipulation": unique(tree_manipulation),
        "scene_loading": unique(scene_loading),
        "downward_communication": unique(downward),
        "upward_communication": unique(e.signal for e in gd_class.signal_emissions),
        "signal_connections": unique(connections)
    }


def merge_insights(items: list[BehavioralInsights]) -> BehavioralInsights:
    """Fold script insights into one: unions, ordered signal lists, sums, max complexity."""
    merged = BehavioralInsights()
    defined: list[str] = []
    emitted: list[str] = []
    for item in items:
        merged.patterns |= item.patterns
        merged.lifecycle_methods |= item.lifecycle_methods
        merged.event_handler_count += item.event_handler_count
        defined.extend(item.signals_defined)
        emitted.extend(item.signals_emitted)
        for key, value in item.variable_type_counts.items():
            merged.variable_type_counts[key] = merged.variable_type_counts.get(key, 0) + value
        if COMPLEXITY_ORDER.get(item.complexity, 0) > COMPLEXITY_ORDER[merged.complexity]:
            merged.complexity = item.complexity
    merged.signals_defined = unique(defined)
    merged.signals_emitted = unique(emitted)
    return merged
