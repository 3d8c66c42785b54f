"""
GDScript Static Analyzer
Parses .gd files to extract classes, functions, signals, exports, and variables.
Works completely offline - no Godot required.

The parser is line based: it tracks whether it is inside a function body and
only recognizes class-level declarations outside of one. Function bodies are
kept for later analysis passes but never appear in serialized output.
"""

import logging
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .errors import InvalidStructureError
from .lexing import (
    extract_balanced,
    find_assignment,
    find_type_colon,
    indentation,
    is_balanced,
    strip_inline_comment,
)
from .sources import FileSource

logger = logging.getLogger(__name__)

INFERRED = "inferred"
VARIANT = "Variant"


@dataclass
class GDSignal:
    name: str
    parameters: list[str] = field(default_factory=list)
    line: int = 0


@dataclass
class GDParameter:
    name: str
    type: str = INFERRED
    default: Optional[str] = None


@dataclass
class GDFunction:
    name: str
    parameters: list[GDParameter] = field(default_factory=list)
    return_type: Optional[str] = None
    is_static: bool = False
    annotations: list[str] = field(default_factory=list)
    line: int = 0


@dataclass
class GDVariable:
    name: str
    type: str = ""
    default: Optional[str] = None
    is_export: bool = False
    is_constant: bool = False
    is_onready: bool = False
    is_static: bool = False
    scope: str = "class"
    annotations: list[str] = field(default_factory=list)
    line: int = 0


@dataclass
class GDDependency:
    target: str
    kind: str
    resolved_path: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    source_line: str = ""
    line: int = 0


@dataclass
class GDSignalEmission:
    method: str
    signal: str
    line: int = 0


@dataclass
class GDClass:
    name: Optional[str]  # class_name if defined
    extends: Optional[str]
    path: str
    signals: list[GDSignal] = field(default_factory=list)
    functions: list[GDFunction] = field(default_factory=list)
    variables: list[GDVariable] = field(default_factory=list)
    dependencies: list[GDDependency] = field(default_factory=list)
    signal_emissions: list[GDSignalEmission] = field(default_factory=list)
    is_tool: bool = False
    # (line_number, raw line) per function, aligned with `functions`
    bodies: list[list[tuple[int, str]]] = field(default_factory=list, repr=False)
    lines: list[str] = field(default_factory=list, repr=False)

    @property
    def exports(self) -> list[GDVariable]:
        return [v for v in self.variables if v.is_export]

    @property
    def plain_variables(self) -> list[GDVariable]:
        return [v for v in self.variables if not v.is_export]

    def body_of(self, index: int) -> list[tuple[int, str]]:
        return self.bodies[index] if 0 <= index < len(self.bodies) else []

    def bodies_by_name(self) -> dict[str, list[tuple[int, str]]]:
        """Name lookup over function bodies; a repeated name keeps the last body."""
        return {func.name: self.body_of(i) for i, func in enumerate(self.functions)}

    def method_names(self) -> set[str]:
        return {func.name for func in self.functions}


# ============ Literal type inference ============

TYPE_CALL_PATTERN = re.compile(r'^([A-Za-z_][\w.]*)\s*\((.*)\)$', re.DOTALL)
NEW_CALL_PATTERN = re.compile(r'^([A-Za-z_]\w*)\.new\s*\((.*)\)$', re.DOTALL)


def infer_type_from_literal(text: Optional[str]) -> str:
    """Best-effort GDScript type of a literal expression."""
    value = (text or "").strip()
    if not value:
        return VARIANT

    first = value[0]
    if first == '^':
        return "NodePath"
    if first == '&':
        return "StringName"
    if len(value) >= 2 and first in ('"', "'") and value[-1] == first:
        return "String"
    if is_balanced(value, '[', ']'):
        return "Array"
    if is_balanced(value, '{', '}'):
        return "Dictionary"

    lowered = value.lower()
    if lowered.startswith(('0x', '0b', '-0x', '-0b')):
        return "int"
    if value in ("true", "false"):
        return "bool"
    if value == "null":
        return "Nil"

    try:
        int(value)
        return "int"
    except ValueError:
        pass
    try:
        float(value)
        return "float"
    except ValueError:
        pass

    match = NEW_CALL_PATTERN.match(value)
    if match:
        return match.group(1)
    match = TYPE_CALL_PATTERN.match(value)
    if match:
        name = match.group(1)
        if name[0].isupper() or '.' not in name:
            return name
    return VARIANT


# ============ Declaration line parsing ============

ANNOTATION_PATTERN = re.compile(r'^@(\w+)')
SIGNAL_PATTERN = re.compile(r'^signal\s+(\w+)\s*(?:\((.*)\))?')
CLASS_NAME_PATTERN = re.compile(r'^class_name\s+(\w+)(?:\s+extends\s+([^\s#:]+))?')
EXTENDS_PATTERN = re.compile(r'^extends\s+([^\s#:]+)')
FUNC_PATTERN = re.compile(r'^(static\s+)?func\b')
VAR_DECL_PATTERN = re.compile(r'^(?:static\s+)?(?:var|const)\s')
EMIT_SIGNAL_PATTERN = re.compile(r'emit_signal\s*\(\s*["\'&]*(\w+)["\']')
EMIT_METHOD_PATTERN = re.compile(r'(?<![\w])(\w+)\.emit\s*\(')


def split_annotations(text: str) -> tuple[list[str], str]:
    """Strip leading @annotations (with their argument lists) from a line."""
    annotations = []
    rest = text.strip()
    while rest.startswith('@'):
        match = ANNOTATION_PATTERN.match(rest)
        if not match:
            break
        end = match.end()
        if rest[end:end + 1] == '(':
            args = extract_balanced(rest, end)
            if args is not None:
                end += len(args) + 2
        annotations.append(rest[:end])
        rest = rest[end:].lstrip()
    return annotations, rest


def parse_variable_line(text: str, line: int = 0, annotations: Optional[list[str]] = None) -> Optional[GDVariable]:
    """
    Parse a `var`/`const` declaration, with any leading annotations.
    Returns None when the line is not a declaration.
    """
    found, rest = split_annotations(strip_inline_comment(text))
    annotations = list(annotations or []) + found

    is_static = rest.startswith("static ")
    if is_static:
        rest = rest[len("static "):].lstrip()

    if rest.startswith("const "):
        is_constant = True
        rest = rest[len("const "):]
    elif rest.startswith("var "):
        is_constant = False
        rest = rest[len("var "):]
    else:
        return None

    var_type = ""
    default = None
    colon = find_type_colon(rest)
    if colon != -1:
        name = rest[:colon]
        remainder = rest[colon + 1:]
        index, op = find_assignment(remainder)
        if index != -1:
            type_text = remainder[:index]
            default = remainder[index + len(op):]
        else:
            type_text = remainder
        var_type = strip_inline_comment(type_text).strip().rstrip(':').strip()
    else:
        index, op = find_assignment(rest)
        if index != -1:
            name = rest[:index]
            default = rest[index + len(op):]
            if op == ':=':
                var_type = INFERRED
        else:
            name = strip_inline_comment(rest)

    if default is not None:
        default = strip_inline_comment(default).strip()
        # property with a setter/getter block
        if default.endswith(':') and not default.endswith('::'):
            default = default[:-1].rstrip()

    name = name.strip().rstrip(':').strip()
    if not name:
        return None

    is_export = any(a.startswith("@export") for a in annotations)
    is_onready = "@onready" in annotations
    if is_constant:
        scope = "const"
    elif is_onready:
        scope = "onready"
    else:
        scope = "class"

    return GDVariable(
        name=name,
        type=var_type,
        default=default,
        is_export=is_export,
        is_constant=is_constant,
        is_onready=is_onready,
        is_static=is_static,
        scope=scope,
        annotations=annotations,
        line=line
    )


def parse_parameter(text: str) -> Optional[GDParameter]:
    param = text.strip()
    if not param:
        return None
    if ':=' in param:
        name, default = param.split(':=', 1)
        default = default.strip()
        return GDParameter(name=name.strip(), type=infer_type_from_literal(default), default=default)
    default = None
    if '=' in param:
        param, default = param.split('=', 1)
        default = default.strip()
    if ':' in param:
        name, param_type = param.split(':', 1)
        return GDParameter(name=name.strip(), type=param_type.strip() or INFERRED, default=default)
    return GDParameter(name=param.strip(), type=INFERRED, default=default)


def parse_function_signature(text: str, line: int = 0) -> GDFunction:
    """Parse `[static] func name(params) -> Type:` into a GDFunction."""
    signature = strip_inline_comment(text).strip()
    is_static = signature.startswith("static")
    if is_static:
        signature = signature[len("static"):].lstrip()
    signature = signature[len("func"):].strip()

    paren = signature.find('(')
    if paren == -1:
        name = signature.rstrip(':').strip()
        return GDFunction(name=name, is_static=is_static, line=line)

    name = signature[:paren].strip()
    params_str = extract_balanced(signature, paren)
    if params_str is None:
        # unterminated list; take what is there
        params_str = signature[paren + 1:]
        after = ""
    else:
        after = signature[paren + len(params_str) + 2:]

    # Parameters are split on every comma, nested brackets in defaults included
    parameters = []
    for chunk in params_str.split(','):
        param = parse_parameter(chunk)
        if param:
            parameters.append(param)

    return_type = None
    if '->' in after:
        return_type = after.split('->', 1)[1]
        colon = return_type.find(':')
        if colon != -1:
            return_type = return_type[:colon]
        return_type = return_type.strip() or None

    return GDFunction(
        name=name,
        parameters=parameters,
        return_type=return_type,
        is_static=is_static,
        line=line
    )


def parse_signal_line(text: str, line: int = 0) -> Optional[GDSignal]:
    match = SIGNAL_PATTERN.match(strip_inline_comment(text).strip())
    if not match:
        return None
    return GDSignal(
        name=match.group(1),
        parameters=_parse_params(match.group(2)) if match.group(2) else [],
        line=line
    )


def find_emitted_signals(text: str) -> list[str]:
    code = strip_inline_comment(text)
    signals = [m.group(1) for m in EMIT_SIGNAL_PATTERN.finditer(code)]
    signals += [m.group(1) for m in EMIT_METHOD_PATTERN.finditer(code)]
    return signals


def _parse_params(params_str: str) -> list[str]:
    """Parse signal parameters."""
    if not params_str or not params_str.strip():
        return []
    return [p.strip() for p in params_str.split(',') if p.strip()]


class GDScriptParser:
    """Parse GDScript files for static analysis."""

    def __init__(self, source: Optional[FileSource] = None):
        self.source = source or FileSource()

    def parse_file(self, path: str | Path, include_variables: bool = True,
                   include_methods: bool = True) -> GDClass:
        """Parse a GDScript file and return structured data."""
        content = self.source.read_text(path)
        return self.parse_content(content, str(path), include_variables, include_methods)

    def parse_content(self, content: str, path: str = "", include_variables: bool = True,
                      include_methods: bool = True) -> GDClass:
        """Parse GDScript content string."""
        lines = content.split('\n')
        gd_class = GDClass(name=None, extends=None, path=path, lines=lines)

        # variables feed the type scope used by method analysis
        track_variables = include_variables or include_methods

        current: Optional[GDFunction] = None
        body: list[tuple[int, str]] = []
        pending_annotations: list[str] = []

        def commit():
            if current is not None:
                gd_class.functions.append(current)
                gd_class.bodies.append(body)

        for number, raw in enumerate(lines, 1):
            raw = raw.rstrip('\r')
            stripped = raw.strip()
            if not stripped or stripped.startswith('#'):
                continue

            # `@rpc func f():` carries its annotations on the declaration line
            annotations, rest = split_annotations(stripped)
            if FUNC_PATTERN.match(rest):
                commit()
                current = parse_function_signature(rest, number)
                current.annotations = pending_annotations + annotations
                body = []
                pending_annotations = []
                continue

            if current is not None:
                if indentation(raw) > 0:
                    body.append((number, raw))
                    for signal in find_emitted_signals(stripped):
                        gd_class.signal_emissions.append(
                            GDSignalEmission(method=current.name, signal=signal, line=number)
                        )
                    continue
                # dedent back to class level closes the body
                commit()
                current = None
                body = []

            self._parse_class_line(gd_class, stripped, number, track_variables, pending_annotations)

        commit()
        logger.debug(
            "Parsed %s: %d functions, %d variables, %d signals",
            path or "<content>", len(gd_class.functions), len(gd_class.variables), len(gd_class.signals)
        )
        return gd_class

    def _parse_class_line(self, gd_class: GDClass, stripped: str, number: int,
                          track_variables: bool, pending_annotations: list[str]) -> None:
        match = CLASS_NAME_PATTERN.match(stripped)
        if match:
            pending_annotations.clear()
            gd_class.name = match.group(1)
            if match.group(2):
                gd_class.extends = match.group(2).strip('"\'')
            return

        match = EXTENDS_PATTERN.match(stripped)
        if match:
            pending_annotations.clear()
            gd_class.extends = match.group(1).strip('"\'')
            return

        if stripped.startswith("signal "):
            pending_annotations.clear()
            signal = parse_signal_line(stripped, number)
            if signal:
                gd_class.signals.append(signal)
            return

        annotations, rest = split_annotations(stripped)
        if "@tool" in annotations:
            gd_class.is_tool = True
            annotations.remove("@tool")
        if annotations and not rest:
            # annotation on its own line applies to the next declaration
            pending_annotations.extend(annotations)
            return

        if track_variables and VAR_DECL_PATTERN.match(rest):
            variable = parse_variable_line(rest, number, pending_annotations + annotations)
            if variable:
                gd_class.variables.append(variable)
        pending_annotations.clear()

    def to_dict(self, gd_class: GDClass, include_variables: bool = True,
                include_methods: bool = True, include_dependencies: bool = True) -> dict:
        """Convert GDClass to dictionary for JSON serialization."""
        if not isinstance(gd_class, GDClass):
            raise InvalidStructureError(f"Expected GDClass, got {type(gd_class).__name__}")
        return {
            "class_name": gd_class.name,
            "extends": gd_class.extends,
            "is_tool": gd_class.is_tool,
            "signals": [
                {"name": s.name, "parameters": s.parameters, "line_number": s.line}
                for s in gd_class.signals
            ],
            "exports": [variable_to_dict(v) for v in gd_class.exports] if include_variables else [],
            "variables": [variable_to_dict(v) for v in gd_class.plain_variables] if include_variables else [],
            "methods": [function_to_dict(f) for f in gd_class.functions] if include_methods else [],
            "dependencies": [
                dependency_to_dict(d) for d in gd_class.dependencies
            ] if include_dependencies else [],
            "signal_emissions": [
                {"method": e.method, "signal": e.signal, "line": e.line}
                for e in gd_class.signal_emissions
            ]
        }


def variable_to_dict(v: GDVariable) -> dict:
    return {
        "name": v.name,
        "type": v.type,
        "default_value": v.default,
        "is_export": v.is_export,
        "is_constant": v.is_constant,
        "is_onready": v.is_onready,
        "is_static": v.is_static,
        "scope": v.scope,
        "annotations": v.annotations,
        "line_number": v.line
    }


def function_to_dict(f: GDFunction) -> dict:
    return {
        "name": f.name,
        "parameters": [
            {"name": p.name, "type": p.type, "default": p.default}
            for p in f.parameters
        ],
        "return_type": f.return_type,
        "is_static": f.is_static,
        "annotations": f.annotations,
        "line_number": f.line
    }


def dependency_to_dict(d: GDDependency) -> dict:
    return {
        "target": d.target,
        "kind": d.kind,
        "resolved_path": d.resolved_path,
        "metadata": d.metadata,
        "source_line": d.source_line,
        "line_number": d.line
    }
