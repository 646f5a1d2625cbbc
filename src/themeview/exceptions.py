"""themeview Exceptions

Failures raised while rendering theme templates. Everything that can go wrong
inside a render is turned into a TemplateRenderError, which carries the
RenderFailure shown on the error page.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence


class FailureKind(str, Enum):
    """Category of a render failure."""

    TEMPLATE_MISSING = "template_missing"
    DIRECTORY_NOT_WRITABLE = "directory_not_writable"
    COMPILER_FAILURE = "compiler_failure"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class RenderFailure:
    """A classified render failure, ready for display."""

    kind: FailureKind
    title: str
    message: str


class ThemeviewError(Exception):
    """Base exception for all themeview errors."""

    pass


class ThemeConfigError(ThemeviewError):
    """Raised when theme.yaml cannot be parsed or validated."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Invalid theme config {path}: {reason}")


class TemplateRenderError(ThemeviewError):
    """Raised when a template cannot be rendered."""

    def __init__(
        self,
        title: str,
        message: str,
        kind: FailureKind = FailureKind.UNCLASSIFIED,
    ):
        self.title = title
        self.kind = kind
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    @property
    def failure(self) -> RenderFailure:
        return RenderFailure(kind=self.kind, title=self.title, message=self.message)


class TemplateMissingError(TemplateRenderError):
    """Raised when no candidate file exists for a template name."""

    def __init__(self, name: str, candidates: Sequence[Path] = ()):
        self.name = name
        self.candidates = list(candidates)
        tried = ", ".join(p.name for p in self.candidates) or name
        super().__init__(
            "Template missing",
            f"It seems that no template named '{name}' exists (tried {tried}).",
            FailureKind.TEMPLATE_MISSING,
        )


class DirectoryNotWritableError(TemplateRenderError):
    """Raised when the compiled template cache directory is not writable."""

    def __init__(self, directory: Path):
        self.directory = directory
        super().__init__(
            "Directory not writable",
            f"It seems that the {directory} directory is not writable by the "
            "server! Go fix it!",
            FailureKind.DIRECTORY_NOT_WRITABLE,
        )


class CompilerError(TemplateRenderError):
    """Raised when a dialect compiler rejects a template source."""

    def __init__(self, cause: BaseException, source: Path):
        self.cause = cause
        self.source = source
        super().__init__(
            type(cause).__name__,
            str(cause) or f"Failed to compile {source}",
            FailureKind.COMPILER_FAILURE,
        )


class YieldOutsideViewError(TemplateRenderError):
    """Raised when wl_yield() is called while no view is being rendered."""

    def __init__(self) -> None:
        super().__init__(
            "Yield outside view",
            "wl_yield() was called without a view being rendered.",
        )


def classify(error: BaseException) -> TemplateRenderError:
    """Turn any exception raised during a render into a TemplateRenderError."""
    if isinstance(error, TemplateRenderError):
        return error
    return TemplateRenderError(type(error).__name__, str(error))
