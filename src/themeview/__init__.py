"""themeview - theme template rendering.

Resolves logical view names to jade, haml or native (Jinja) templates,
compiles and caches the non-native ones, and renders views inside layouts
with partials and wl_yield().
"""

from themeview._version import __version__
from themeview.cache import CompileCache
from themeview.config import Theme, ThemeConfig, load_theme_yaml, resolve_theme
from themeview.exceptions import (
    CompilerError,
    DirectoryNotWritableError,
    FailureKind,
    RenderFailure,
    TemplateMissingError,
    TemplateRenderError,
    ThemeConfigError,
    ThemeviewError,
    YieldOutsideViewError,
)
from themeview.output import OutputStack
from themeview.renderer import Renderer, ViewOptions, partial_name, renderer_for
from themeview.resolver import TEMPLATE_SUFFIXES, Dialect, PathResolver, TemplateFile

__all__ = [
    "__version__",
    # Rendering
    "Renderer",
    "ViewOptions",
    "partial_name",
    "renderer_for",
    # Building blocks
    "PathResolver",
    "TemplateFile",
    "Dialect",
    "TEMPLATE_SUFFIXES",
    "CompileCache",
    "OutputStack",
    # Config
    "Theme",
    "ThemeConfig",
    "load_theme_yaml",
    "resolve_theme",
    # Errors
    "ThemeviewError",
    "ThemeConfigError",
    "TemplateRenderError",
    "TemplateMissingError",
    "DirectoryNotWritableError",
    "CompilerError",
    "YieldOutsideViewError",
    "RenderFailure",
    "FailureKind",
]
