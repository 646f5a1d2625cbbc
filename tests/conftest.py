"""Shared fixtures for themeview tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from themeview import Dialect, Renderer, Theme


class FakeCompiler:
    """Stands in for a dialect compiler: wraps the source in a tag."""

    def __init__(self, tag: str):
        self.tag = tag
        self.calls: list[str] = []

    def __call__(self, source: str, path: str) -> str:
        self.calls.append(path)
        return f"<{self.tag}>{source.strip()}</{self.tag}>"


class ErrorDisplay:
    """Records error pages instead of rendering the real one."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def __call__(self, title: str, message: str) -> str:
        self.calls.append((title, message))
        return f"ERROR[{title}]"


@pytest.fixture
def theme(tmp_path) -> Theme:
    (tmp_path / "views").mkdir()
    return Theme(root=tmp_path)


@pytest.fixture
def write_template(theme):
    """Write a file under the theme's views directory."""

    def write(name: str, content: str = "") -> Path:
        path = theme.views_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return write


@pytest.fixture
def compilers() -> dict[Dialect, FakeCompiler]:
    return {Dialect.JADE: FakeCompiler("jade"), Dialect.HAML: FakeCompiler("haml")}


@pytest.fixture
def display() -> ErrorDisplay:
    return ErrorDisplay()


@pytest.fixture
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def renderer(theme, compilers, display, out) -> Renderer:
    return Renderer(theme, compilers=compilers, display_error=display, out=out)
