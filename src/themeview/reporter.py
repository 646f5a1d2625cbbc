"""Error reporting - replaces a failed render with an error page."""

from __future__ import annotations

import logging
from typing import Callable

from jinja2 import Environment, PackageLoader, select_autoescape

from themeview.exceptions import RenderFailure
from themeview.output import OutputStack

log = logging.getLogger(__name__)

DisplayError = Callable[[str, str], str]


def render_error_page(title: str, message: str) -> str:
    """Render the built-in error page."""
    env = Environment(
        loader=PackageLoader("themeview", "templates"),
        autoescape=select_autoescape(["html"]),
        keep_trailing_newline=True,
    )
    return env.get_template("error.html").render(title=title, message=message)


class ErrorReporter:
    """Discards in-progress output and shows the error page in its place.

    Reporting ends the render: callers must not write any further output
    for the failed operation.
    """

    def __init__(self, output: OutputStack, display: DisplayError | None = None):
        self.output = output
        self.display = display or render_error_page

    def fail(self, failure: RenderFailure, depth: int = 0) -> None:
        """Report failure, dropping every output buffer opened above depth."""
        self.output.unwind(depth)
        log.error(f"{failure.title}: {failure.message}")
        self.output.write(self.display(failure.title, failure.message))
