"""Console sinks that receive step output."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod


class ConsoleSink(ABC):
    """Fire-and-forget destination for step output."""

    @abstractmethod
    def write_out(self, text: str) -> None:
        pass

    @abstractmethod
    def write_err(self, text: str) -> None:
        pass


class StreamConsoleSink(ConsoleSink):
    """Writes to the process's standard streams, one line per call.

    Streams are looked up on every write so that redirection of
    ``sys.stdout`` / ``sys.stderr`` (pytest's capsys, for one) is honored.
    """

    def write_out(self, text: str) -> None:
        self._write(sys.stdout, text)

    def write_err(self, text: str) -> None:
        self._write(sys.stderr, text)

    @staticmethod
    def _write(stream, text: str) -> None:
        stream.write(text if text.endswith("\n") else text + "\n")
        stream.flush()
