"""
Type & Scope Registry
Name -> type maps for a script's class scope and each of its methods.
"""

from typing import Optional

from .gdscript_parser import (
    INFERRED,
    GDClass,
    GDFunction,
    infer_type_from_literal,
    parse_variable_line,
)

SIGNAL_TYPE = "Signal"


def build_class_scope(gd_class: GDClass) -> dict[str, str]:
    """Typed class variables, exports and constants, plus declared signals."""
    scope: dict[str, str] = {}
    for variable in gd_class.variables:
        if not variable.type or variable.type == INFERRED:
            continue
        scope[variable.name] = variable.type
    for signal in gd_class.signals:
        scope[signal.name] = SIGNAL_TYPE
    return scope


def local_variable_types(body: list[tuple[int, str]]) -> dict[str, str]:
    """Types of `var` declarations inside a method body."""
    types: dict[str, str] = {}
    for _, raw in body:
        stripped = raw.strip()
        if not stripped.startswith("var "):
            continue
        variable = parse_variable_line(stripped)
        if variable is None:
            continue
        if variable.type and variable.type != INFERRED:
            types[variable.name] = variable.type
        else:
            types[variable.name] = infer_type_from_literal(variable.default)
    return types


def build_method_scope(class_scope: dict[str, str], function: GDFunction,
                       body: list[tuple[int, str]]) -> dict[str, str]:
    """Class scope overlaid with parameters, then with body locals."""
    scope = dict(class_scope)
    for param in function.parameters:
        scope[param.name] = param.type
    scope.update(local_variable_types(body))
    return scope


class ScriptScope:
    """Class scope of one script with per-method overlays on demand."""

    def __init__(self, gd_class: GDClass):
        self.gd_class = gd_class
        self.class_scope = build_class_scope(gd_class)

    def for_method(self, index: int) -> dict[str, str]:
        function = self.gd_class.functions[index]
        return build_method_scope(self.class_scope, function, self.gd_class.body_of(index))

    def type_of(self, name: str, method_index: Optional[int] = None) -> Optional[str]:
        scope = self.class_scope if method_index is None else self.for_method(method_index)
        return scope.get(name)
