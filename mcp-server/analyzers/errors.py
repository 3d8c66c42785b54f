"""
Analysis Errors
Error kinds raised while reading and parsing project files.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNREADABLE = "unreadable"
    EMPTY = "empty"
    INVALID_STRUCTURE = "invalid_structure"


class AnalysisError(Exception):
    """Base error for a failed analysis step."""

    kind: ErrorKind = ErrorKind.INVALID_STRUCTURE

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "path": self.path, "message": self.message}


class FileNotFoundAnalysisError(AnalysisError):
    kind = ErrorKind.NOT_FOUND


class UnreadableFileError(AnalysisError):
    kind = ErrorKind.UNREADABLE


class EmptyFileError(AnalysisError):
    kind = ErrorKind.EMPTY


class InvalidStructureError(AnalysisError):
    kind = ErrorKind.INVALID_STRUCTURE
