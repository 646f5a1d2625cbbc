"""Resolve logical template names to template files on disk."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Sequence

log = logging.getLogger(__name__)

# Tried in this order; the first existing file wins.
TEMPLATE_SUFFIXES = (".html.jade", ".html.haml", ".haml", ".html.php", ".php")


class Dialect(str, Enum):
    """Authoring format of a template source, named by its final extension."""

    JADE = "jade"
    HAML = "haml"
    NATIVE = "php"

    @property
    def compiled(self) -> bool:
        """Whether sources in this dialect must be compiled before execution."""
        return self is not Dialect.NATIVE

    @classmethod
    def from_path(cls, path: Path) -> "Dialect":
        """Dialect implied by the final extension; anything else is native."""
        extension = path.suffix.lstrip(".")
        for dialect in (cls.JADE, cls.HAML):
            if extension == dialect.value:
                return dialect
        return cls.NATIVE


class TemplateFile(NamedTuple):
    """An existing template source and its dialect."""

    path: Path
    dialect: Dialect


class PathResolver:
    """Maps logical template names ("posts/index") to template files."""

    def __init__(self, views_path: Path, suffixes: Sequence[str] = TEMPLATE_SUFFIXES):
        self.views_path = Path(views_path)
        self.suffixes = tuple(suffixes)

    def candidates(self, name: str) -> list[Path]:
        """Candidate paths for name, in priority order."""
        return [self.views_path / f"{name}{suffix}" for suffix in self.suffixes]

    def resolve(self, name: str) -> TemplateFile | None:
        """Return the first candidate that exists, or None."""
        for path in self.candidates(name):
            if path.is_file():
                log.debug(f"Resolved template '{name}' to {path}")
                return TemplateFile(path=path, dialect=Dialect.from_path(path))
        return None
