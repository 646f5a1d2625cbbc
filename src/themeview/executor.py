"""Template executor - runs executable templates with Jinja2."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Mapping

from jinja2 import BaseLoader, Environment, TemplateNotFound

from themeview.output import OutputStack


class AbsolutePathLoader(BaseLoader):
    """Loads templates by absolute filesystem path.

    Templates are reloaded when their mtime changes, so recompiled
    artifacts are picked up without restarting.
    """

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool]]:
        path = Path(template)
        try:
            mtime = os.stat(path).st_mtime_ns
            source = path.read_text()
        except OSError as e:
            raise TemplateNotFound(template) from e

        def uptodate() -> bool:
            try:
                return os.stat(path).st_mtime_ns == mtime
            except OSError:
                return False

        return source, str(path), uptodate


class TemplateExecutor:
    """Runs an executable template, streaming its output into the active buffer."""

    def __init__(self, output: OutputStack, *, autoescape: bool = False):
        self.output = output
        self.env = Environment(
            loader=AbsolutePathLoader(),
            autoescape=autoescape,
            keep_trailing_newline=True,
        )

    def execute(
        self,
        path: Path,
        bindings: Mapping[str, Any],
        helpers: Mapping[str, Any] | None = None,
    ) -> None:
        """Execute the template at path with bindings as its variables.

        Bindings take precedence over helpers with the same name. Errors
        raised by the template are not caught here.
        """
        template = self.env.get_template(str(path))
        context = {**(helpers or {}), **bindings}
        for chunk in template.generate(context):
            self.output.write(chunk)
