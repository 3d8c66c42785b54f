"""
Call Classifier
Tags every call in a method body as internal, external or builtin.

Classification is heuristic: the engine and primitive method tables, the
project's class registry and the method's known variables are all it has.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .class_registry import ClassRegistry
from .engine_api import (
    ARRAY_TYPES,
    CONSTRUCTOR,
    PRIMITIVE_METHODS,
    engine_class_has_method,
    is_engine_class,
    is_engine_method,
    primitive_has_method,
)
from .gdscript_parser import GDClass, GDFunction, find_emitted_signals
from .lexing import code_part, unique
from .scope import ScriptScope

SELF = "self"

DOTTED_CALL_PATTERN = re.compile(r'(?<![\w.$%])([A-Za-z_]\w*)\.([A-Za-z_]\w*)\s*\(')
BARE_CALL_PATTERN = re.compile(r'(?<![\w.$%@])([A-Za-z_]\w*)\s*\(')

KEYWORDS = {
    "if", "elif", "else", "for", "while", "match", "when", "return", "and",
    "or", "not", "in", "is", "as", "func", "var", "const", "await", "yield",
    "assert", "signal", "class", "extends", "static", "pass", "break",
    "continue", "super", "self", "breakpoint", "preload",
}


class CallKind(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    BUILTIN = "builtin"


@dataclass(frozen=True)
class CallShape:
    method_name: str
    receiver: Optional[str] = None  # None for bare calls

    @property
    def is_dotted(self) -> bool:
        return self.receiver is not None


@dataclass
class CallRecord:
    method_name: str
    object: str
    call_type: CallKind
    line_number: int
    line: str = ""

    @property
    def target(self) -> str:
        if self.call_type == CallKind.EXTERNAL:
            return f"{self.object}.{self.method_name}"
        return self.method_name

    def to_dict(self) -> dict:
        return {
            "method_name": self.method_name,
            "object": self.object,
            "call_type": self.call_type.value,
            "line_number": self.line_number,
            "line": self.line
        }


def extract_call_shapes(line: str) -> list[CallShape]:
    """Dotted `receiver.name(` and bare `name(` calls on one line."""
    code = code_part(line)
    shapes = []
    for match in DOTTED_CALL_PATTERN.finditer(code):
        shapes.append(CallShape(method_name=match.group(2), receiver=match.group(1)))
    for match in BARE_CALL_PATTERN.finditer(code):
        name = match.group(1)
        if name in KEYWORDS:
            continue
        shapes.append(CallShape(method_name=name))
    return shapes


def classify_call(shape: CallShape, scope: dict[str, str], registry: ClassRegistry,
                  declared_methods: set[str]) -> CallKind:
    """Pure classification of one call shape."""
    if not shape.is_dotted:
        if shape.method_name in declared_methods:
            return CallKind.INTERNAL
        return CallKind.BUILTIN

    receiver = shape.receiver
    method = shape.method_name

    if receiver == SELF:
        if method in declared_methods:
            return CallKind.INTERNAL
        return CallKind.BUILTIN if is_engine_method(method) else CallKind.INTERNAL

    # a typed or local variable is a project object, never the engine API
    if receiver in scope:
        return CallKind.EXTERNAL

    if method == CONSTRUCTOR and registry.is_registered(receiver):
        return CallKind.BUILTIN
    if is_engine_class(receiver) and engine_class_has_method(receiver, method):
        return CallKind.BUILTIN
    if receiver in PRIMITIVE_METHODS and primitive_has_method(receiver, method):
        return CallKind.BUILTIN
    if receiver in ARRAY_TYPES and primitive_has_method(receiver, method):
        return CallKind.BUILTIN
    return CallKind.EXTERNAL


class CallClassifier:
    """Classify calls for every method of a parsed script."""

    def __init__(self, registry: Optional[ClassRegistry] = None):
        self.registry = registry or ClassRegistry()

    def classify_method(self, gd_class: GDClass, index: int,
                        script_scope: Optional[ScriptScope] = None) -> list[CallRecord]:
        script_scope = script_scope or ScriptScope(gd_class)
        scope = script_scope.for_method(index)
        declared = gd_class.method_names()
        records = []
        for number, raw in gd_class.body_of(index):
            stripped = raw.strip()
            for shape in extract_call_shapes(stripped):
                kind = classify_call(shape, scope, self.registry, declared)
                records.append(CallRecord(
                    method_name=shape.method_name,
                    object=shape.receiver or SELF,
                    call_type=kind,
                    line_number=number,
                    line=stripped
                ))
        return records

    def summarize_method(self, gd_class: GDClass, index: int,
                         script_scope: Optional[ScriptScope] = None,
                         records: Optional[list[CallRecord]] = None) -> dict:
        """Deduplicated call targets and emitted signals of one method."""
        function: GDFunction = gd_class.functions[index]
        if records is None:
            records = self.classify_method(gd_class, index, script_scope)
        emitted = []
        for _, raw in gd_class.body_of(index):
            emitted.extend(find_emitted_signals(raw))
        return {
            "name": function.name,
            "line_number": function.line,
            "parameter_count": len(function.parameters),
            "return_type": function.return_type,
            "internal_calls": unique(r.target for r in records if r.call_type == CallKind.INTERNAL),
            "external_calls": unique(r.target for r in records if r.call_type == CallKind.EXTERNAL),
            "builtin_calls": unique(r.target for r in records if r.call_type == CallKind.BUILTIN),
            "signals_emitted": unique(emitted),
            "call_count": len(records)
        }

    def summarize(self, gd_class: GDClass) -> tuple[list[dict], list[dict]]:
        """Per-method summaries plus method -> call flows for the whole script."""
        script_scope = ScriptScope(gd_class)
        summaries = []
        flows = []
        for index, function in enumerate(gd_class.functions):
            records = self.classify_method(gd_class, index, script_scope)
            summaries.append(self.summarize_method(gd_class, index, records=records))
            for record in records:
                flows.append({
                    "from": function.name,
                    "to": record.target,
                    "call_type": record.call_type.value,
                    "line_number": record.line_number
                })
        return summaries, flows
