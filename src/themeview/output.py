"""Output buffering for rendered templates.

Rendering writes into whatever buffer is on top of the stack. Opening a
buffer (a view render, a partial capture) pushes a new scope; closing it
either flushes the text into the enclosing scope or drops it.
"""

from __future__ import annotations

import io
import sys
from contextlib import contextmanager
from typing import Iterator, TextIO


class OutputStack:
    """A stack of text buffers over a sink (stdout by default)."""

    def __init__(self, sink: TextIO | None = None):
        self._sink = sink
        self._buffers: list[io.StringIO] = []

    @property
    def sink(self) -> TextIO:
        # Resolved at write time so a swapped sys.stdout is honoured
        return self._sink if self._sink is not None else sys.stdout

    @property
    def active(self) -> TextIO:
        return self._buffers[-1] if self._buffers else self.sink

    @property
    def depth(self) -> int:
        return len(self._buffers)

    def write(self, text: str) -> None:
        self.active.write(text)

    def push(self) -> io.StringIO:
        buffer = io.StringIO()
        self._buffers.append(buffer)
        return buffer

    def pop(self) -> str:
        """Close the top buffer and return its contents."""
        if not self._buffers:
            raise IndexError("no open output buffer")
        return self._buffers.pop().getvalue()

    def flush(self) -> None:
        """Close the top buffer, writing its contents into the enclosing one."""
        content = self.pop()
        self.write(content)

    def unwind(self, depth: int) -> None:
        """Drop every buffer above depth without writing it anywhere."""
        del self._buffers[depth:]

    @contextmanager
    def capture(self) -> Iterator[io.StringIO]:
        """Collect writes made inside the block instead of passing them on.

        The stack is restored to its previous depth on exit, even when the
        block raises.
        """
        depth = self.depth
        buffer = self.push()
        try:
            yield buffer
        finally:
            self.unwind(depth)
