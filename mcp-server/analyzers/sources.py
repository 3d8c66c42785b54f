"""
File Source
Reads project files and reports missing, unreadable or empty ones.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import MAX_ROOT_SEARCH_DEPTH, PROJECT_MARKER
from .errors import EmptyFileError, FileNotFoundAnalysisError, UnreadableFileError

logger = logging.getLogger(__name__)


class FileSource:
    """Plain filesystem access for the analyzers."""

    def exists(self, path: str | Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: str | Path) -> str:
        """Read a text file, raising an AnalysisError on failure."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundAnalysisError(f"File not found: {path}", str(path))
        try:
            content = path.read_text(encoding='utf-8')
        except UnicodeDecodeError:
            content = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            raise UnreadableFileError(f"Cannot read {path}: {e}", str(path)) from e
        if not content:
            raise EmptyFileError(f"File is empty: {path}", str(path))
        return content


def find_project_root(start: str | Path, max_depth: int = MAX_ROOT_SEARCH_DEPTH) -> Optional[Path]:
    """Walk up from start looking for project.godot, visiting at most max_depth directories."""
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for _ in range(max_depth):
        if (current / PROJECT_MARKER).exists():
            return current
        if current == current.parent:
            break
        current = current.parent
    logger.debug("No %s found above %s", PROJECT_MARKER, start)
    return None
