"""Theme configuration and path layout.

A theme is a directory holding its views and a scratch directory for
compiled templates:

    <theme>/
    ├── theme.yaml      # optional overrides (see ThemeConfig)
    ├── views/          # template sources, layouts/ and partials
    └── tmp/            # compiled template cache
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, NamedTuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from themeview.exceptions import ThemeConfigError
from themeview.resolver import TEMPLATE_SUFFIXES

log = logging.getLogger(__name__)

CONFIG_FILENAME = "theme.yaml"


class ThemeConfig(BaseModel):
    """theme.yaml configuration."""

    model_config = {"extra": "forbid", "frozen": True}

    views_dir: str = Field(default="views", description="Template sources root")
    temp_dir: str = Field(default="tmp", description="Compiled template cache")
    default_layout: str = Field(
        default="default", description="Layout used when a view names none"
    )
    template_suffixes: tuple[str, ...] = Field(
        default=TEMPLATE_SUFFIXES,
        description="Candidate suffixes, tried in order",
    )
    executable_extension: str = Field(
        default=".php", description="Extension of directly executable templates"
    )
    cache_dir_mode: int = Field(
        default=0o760, description="Permission bits for the cache directory"
    )
    autoescape: bool = Field(
        default=False, description="HTML-escape interpolated values"
    )

    @field_validator("cache_dir_mode", mode="before")
    @classmethod
    def parse_octal_mode(cls, value: Any) -> Any:
        """Accept "760" / "0o760" strings as octal permission bits."""
        if isinstance(value, str):
            return int(value.removeprefix("0o"), 8)
        return value

    @field_validator("executable_extension")
    @classmethod
    def require_leading_dot(cls, value: str) -> str:
        if not value.startswith("."):
            raise ValueError("executable_extension must start with '.'")
        return value


def load_theme_yaml(path: Path) -> ThemeConfig:
    """Load theme.yaml from path."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ThemeConfigError(path, str(e)) from e

    if not isinstance(data, dict):
        raise ThemeConfigError(path, "expected a mapping at the top level")

    try:
        return ThemeConfig(**data)
    except ValidationError as e:
        raise ThemeConfigError(path, str(e)) from e


class Theme(NamedTuple):
    """Resolved theme paths."""

    root: Path
    config: ThemeConfig = ThemeConfig()

    @property
    def views_path(self) -> Path:
        """<theme>/<views_dir>/"""
        return self.join_paths(self.root, self.config.views_dir)

    @property
    def temp_path(self) -> Path:
        """<theme>/<temp_dir>/"""
        return self.join_paths(self.root, self.config.temp_dir)

    @staticmethod
    def join_paths(*parts: str | os.PathLike[str]) -> Path:
        return Path(*parts)


def resolve_theme(root: Path | str | None = None) -> Theme:
    """Build a Theme rooted at root (default: cwd), reading theme.yaml if any."""
    theme_root = Path(root) if root is not None else Path.cwd()
    config_file = theme_root / CONFIG_FILENAME

    if config_file.exists():
        config = load_theme_yaml(config_file)
        log.debug(f"Loaded theme config from {config_file}")
    else:
        config = ThemeConfig()

    return Theme(root=theme_root, config=config)
