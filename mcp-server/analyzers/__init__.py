"""
Godot Static Analyzers
Work without Godot running - pure file parsing.
"""

from .gdscript_parser import GDScriptParser, GDClass, infer_type_from_literal
from .tscn_parser import TscnParser, TscnScene
from .class_registry import ClassRegistry, GlobalClass
from .call_classifier import CallKind, classify_call
from .dependency_resolver import DependencyResolver
from .project_analyzer import ProjectAnalyzer
from .errors import AnalysisError, ErrorKind

__all__ = [
    'GDScriptParser',
    'GDClass',
    'infer_type_from_literal',
    'TscnParser',
    'TscnScene',
    'ClassRegistry',
    'GlobalClass',
    'CallKind',
    'classify_call',
    'DependencyResolver',
    'ProjectAnalyzer',
    'AnalysisError',
    'ErrorKind'
]
