"""Renderer - composes views, layouts and partials.

A view is rendered inside a layout. The layout is rendered with the view's
locals and pulls the view's own output in wherever it calls wl_yield():

    {# views/layouts/default.html.php #}
    <body>{{ wl_yield() }}</body>

Partials are templates whose file name starts with an underscore;
render_partial("posts/item") renders views/posts/_item.*.

Every template gets these helpers bound by name (locals with the same name
win):

    wl_yield()                          the current view's output
    render_partial(name, locals=None)   a partial's output
    get_partial_content(name, locals=None)
    render_view(name, options=None)     another view inside its own layout

Failures anywhere in a render are reported once, by the outermost render
call: its output is thrown away and replaced with an error page, and the
call returns the RenderFailure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, NamedTuple, TextIO

from markupsafe import Markup
from pydantic import BaseModel, Field

from themeview.cache import CompileCache
from themeview.compilers import Compiler
from themeview.config import Theme, resolve_theme
from themeview.exceptions import (
    RenderFailure,
    TemplateMissingError,
    TemplateRenderError,
    YieldOutsideViewError,
    classify,
)
from themeview.executor import TemplateExecutor
from themeview.output import OutputStack
from themeview.reporter import DisplayError, ErrorReporter
from themeview.resolver import Dialect, PathResolver

log = logging.getLogger(__name__)


class ViewOptions(BaseModel):
    """Options for render_view. Unknown keys are accepted and ignored."""

    model_config = {"extra": "allow"}

    layout: str = "default"
    locals: dict[str, Any] = Field(default_factory=dict)


class ViewFrame(NamedTuple):
    """The view a layout yields to."""

    name: str
    bindings: Mapping[str, Any]


def partial_name(name: str) -> str:
    """Underscore-prefix the last path segment: "a/b/foo" -> "a/b/_foo"."""
    head, sep, last = name.rpartition("/")
    if not last.startswith("_"):
        last = f"_{last}"
    return f"{head}{sep}{last}"


class Renderer:
    """Renders theme templates to an output stream (stdout by default)."""

    def __init__(
        self,
        theme: Theme,
        *,
        compilers: Mapping[Dialect, Compiler] | None = None,
        display_error: DisplayError | None = None,
        out: TextIO | None = None,
    ):
        config = theme.config
        self.theme = theme
        self.output = OutputStack(out)
        self.resolver = PathResolver(theme.views_path, config.template_suffixes)
        self.cache = CompileCache(
            theme.views_path,
            theme.temp_path,
            compilers,
            executable_extension=config.executable_extension,
            dir_mode=config.cache_dir_mode,
        )
        self.executor = TemplateExecutor(self.output, autoescape=config.autoescape)
        self.reporter = ErrorReporter(self.output, display_error)

        self._views: list[ViewFrame] = []
        self._depth = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render_template(
        self, name: str, locals: Mapping[str, Any] | None = None
    ) -> RenderFailure | None:
        """Render the template called name with locals as its variables."""
        return self._guard(self._render_template, name, locals)

    def render_partial(
        self, name: str, locals: Mapping[str, Any] | None = None
    ) -> RenderFailure | None:
        """Render a partial; "posts/item" renders the posts/_item template."""
        return self._guard(self._render_template, partial_name(name), locals)

    def get_partial_content(
        self, name: str, locals: Mapping[str, Any] | None = None
    ) -> str:
        """Render a partial and return its output instead of writing it.

        Returns an empty string if the partial failed (the error page has
        been written to the output instead).
        """
        content = ""

        def capture() -> None:
            nonlocal content
            content = self._capture(self._render_template, partial_name(name), locals)

        self._guard(capture)
        return content

    def wl_yield(self) -> RenderFailure | None:
        """Render the view whose layout is currently being rendered."""
        return self._guard(self._yield)

    def render_view(
        self, name: str, options: Mapping[str, Any] | None = None
    ) -> RenderFailure | None:
        """Render the view called name inside its layout.

        Options:
            layout: layout name under layouts/ (default: the theme's default)
            locals: variables for both the layout and the view
        """
        opts = self._view_options(options)
        return self._guard(self._render_view, name, opts)

    def render_to_string(
        self, name: str, options: Mapping[str, Any] | None = None
    ) -> str:
        """Render a view and return the output (or the error page)."""
        with self.output.capture() as buffer:
            self.render_view(name, options)
            return buffer.getvalue()

    # ------------------------------------------------------------------
    # Rendering internals
    # ------------------------------------------------------------------

    def _render_template(
        self, name: str, locals: Mapping[str, Any] | None = None
    ) -> None:
        bindings = dict(locals or {})
        try:
            template = self.resolver.resolve(name)
            if template is None:
                raise TemplateMissingError(name, self.resolver.candidates(name))

            path = self.cache.ensure_compiled(template.path, template.dialect)
            self.executor.execute(path, bindings, self._helpers())
        except Exception as e:
            error = classify(e)
            if error is e:
                raise
            raise error from e

    def _render_view(self, name: str, opts: ViewOptions) -> None:
        log.debug(f"Rendering view '{name}' in layout '{opts.layout}'")
        self.output.push()
        self._views.append(ViewFrame(name, opts.locals))
        try:
            self._render_template(f"layouts/{opts.layout}", opts.locals)
        finally:
            self._views.pop()
        self.output.flush()

    def _yield(self) -> None:
        if not self._views:
            raise YieldOutsideViewError()
        frame = self._views[-1]
        self._render_template(frame.name, frame.bindings)

    def _view_options(self, options: Mapping[str, Any] | None) -> ViewOptions:
        return ViewOptions.model_validate(
            {"layout": self.theme.config.default_layout, **(options or {})}
        )

    def _capture(self, operation: Callable[..., None], *args: Any) -> str:
        with self.output.capture() as buffer:
            operation(*args)
            return buffer.getvalue()

    def _guard(
        self, operation: Callable[..., None], *args: Any
    ) -> RenderFailure | None:
        """Run operation, reporting a failure if this is the outermost render.

        Nested renders let the failure propagate so that only the outermost
        one discards output and shows the error page. The outermost one
        buffers everything it writes until it has succeeded.
        """
        if self._depth:
            operation(*args)
            return None

        depth = self.output.depth
        self.output.push()
        self._depth += 1
        try:
            operation(*args)
        except TemplateRenderError as e:
            self.reporter.fail(e.failure, depth)
            return e.failure
        finally:
            self._depth -= 1
        self.output.flush()
        return None

    # ------------------------------------------------------------------
    # Template helpers
    # ------------------------------------------------------------------

    def _helpers(self) -> dict[str, Any]:
        return {
            "wl_yield": self._yield_helper,
            "render_partial": self._partial_helper,
            "get_partial_content": self._partial_helper,
            "render_view": self._view_helper,
        }

    def _yield_helper(self) -> Markup:
        return Markup(self._capture(self._yield))

    def _partial_helper(
        self, name: str, locals: Mapping[str, Any] | None = None
    ) -> Markup:
        return Markup(self._capture(self._render_template, partial_name(name), locals))

    def _view_helper(self, name: str, options: Mapping[str, Any] | None = None) -> Markup:
        return Markup(self._capture(self._render_view, name, self._view_options(options)))


def renderer_for(root: Path | str | None = None, **kwargs: Any) -> Renderer:
    """Create a Renderer for the theme at root (default: cwd)."""
    return Renderer(resolve_theme(root), **kwargs)
