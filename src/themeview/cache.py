"""Compiled template cache.

Compilable templates (jade, haml) are compiled once into executable template
text and stored under the theme's temp directory, mirroring their location
under the views root:

    views/posts/index.html.haml  ->  tmp/posts/index.html.haml.php

An artifact is reused while it is at least as new as its source (mtime based,
equal timestamps count as fresh). Stale artifacts are overwritten in place;
nothing is ever evicted.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from themeview.compilers import DEFAULT_COMPILERS, Compiler
from themeview.exceptions import CompilerError, DirectoryNotWritableError
from themeview.resolver import Dialect

log = logging.getLogger(__name__)


def is_writable(directory: Path) -> bool:
    return directory.is_dir() and os.access(directory, os.W_OK)


class CompileCache:
    """Compiles template sources on demand and caches the results on disk."""

    def __init__(
        self,
        views_path: Path,
        temp_path: Path,
        compilers: Mapping[Dialect, Compiler] | None = None,
        *,
        executable_extension: str = ".php",
        dir_mode: int = 0o760,
    ):
        self.views_path = Path(views_path)
        self.temp_path = Path(temp_path)
        self.compilers = dict(DEFAULT_COMPILERS if compilers is None else compilers)
        self.executable_extension = executable_extension
        self.dir_mode = dir_mode

    def artifact_path(self, source: Path) -> Path:
        """Cache location for a template source."""
        try:
            relative = Path(source).relative_to(self.views_path)
        except ValueError:
            relative = Path(Path(source).name)

        filename = relative.name.removesuffix(self.executable_extension)
        return self.temp_path / relative.parent / f"{filename}{self.executable_extension}"

    def is_expired(self, source: Path, artifact: Path) -> bool:
        """True unless artifact exists and is not older than source."""
        if not artifact.exists():
            return True
        return source.stat().st_mtime_ns > artifact.stat().st_mtime_ns

    def ensure_path_writable(self, directory: Path) -> None:
        """Create or chmod directory until it is writable.

        Raises:
            DirectoryNotWritableError: If the directory still isn't writable.
        """
        if not directory.is_dir():
            try:
                directory.mkdir(mode=self.dir_mode, parents=True, exist_ok=True)
                log.debug(f"Created cache directory {directory}")
            except OSError as e:
                log.warning(f"Could not create {directory}: {e}")

        if directory.is_dir() and not is_writable(directory):
            try:
                directory.chmod(self.dir_mode)
            except OSError as e:
                log.warning(f"Could not chmod {directory}: {e}")

        if not is_writable(directory):
            raise DirectoryNotWritableError(directory)

    def ensure_compiled(self, source: Path, dialect: Dialect) -> Path:
        """Return an executable, up-to-date path for source.

        Native templates are already executable and are returned unchanged.

        Raises:
            DirectoryNotWritableError: If the cache directory can't be written.
            CompilerError: If the dialect compiler rejects the source.
        """
        source = Path(source)
        if not dialect.compiled:
            return source

        artifact = self.artifact_path(source)
        if not self.is_expired(source, artifact):
            log.debug(f"Cache hit for {source}")
            return artifact

        self.ensure_path_writable(artifact.parent)

        compiler = self.compilers.get(dialect)
        if compiler is None:
            raise CompilerError(
                LookupError(f"No compiler registered for {dialect.value} templates"),
                source,
            )

        text = source.read_text()
        try:
            compiled = compiler(text, str(source))
        except Exception as e:
            raise CompilerError(e, source) from e

        artifact.write_text(compiled)
        log.info(f"Compiled {source} -> {artifact}")
        return artifact
