"""Dialect compilers - turn jade and haml sources into Jinja template text.

Each compiler takes the full source text plus the source path (used for
error locations) and returns executable template text. They do no I/O.
"""

from __future__ import annotations

from typing import Callable, Mapping

from jinja2 import Environment

from themeview.resolver import Dialect

Compiler = Callable[[str, str], str]


def compile_jade(source: str, path: str) -> str:
    """Compile a jade (pug) template to Jinja text with pypugjs."""
    from pypugjs.ext.jinja import Compiler as JinjaCompiler
    from pypugjs.utils import process

    return process(source, filename=path, compiler=JinjaCompiler)


def compile_haml(source: str, path: str) -> str:
    """Compile a haml template to Jinja text with hamlish-jinja.

    hamlish only converts sources whose name ends in .haml, which every
    haml candidate suffix does.
    """
    from hamlish_jinja import HamlishExtension

    environment = Environment(extensions=[HamlishExtension])
    environment.hamlish_mode = "indented"  # type: ignore[attr-defined]
    return environment.preprocess(source, name=path, filename=path)


DEFAULT_COMPILERS: Mapping[Dialect, Compiler] = {
    Dialect.JADE: compile_jade,
    Dialect.HAML: compile_haml,
}
