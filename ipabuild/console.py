"""
Console status output and interactive selection for ipabuild.
"""
from __future__ import annotations

import sys
from typing import Callable, Protocol, Sequence, TextIO, runtime_checkable

from .errors import SelectionError


class Console:
    """Prefixed status-line output.

    ``debug`` lines are only printed when ``verbose`` is enabled; errors go to
    stderr.
    """

    def __init__(self, verbose: bool = False, stream: TextIO | None = None, err_stream: TextIO | None = None):
        self.verbose = verbose
        self._stream = stream
        self._err_stream = err_stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    @property
    def err_stream(self) -> TextIO:
        return self._err_stream or sys.stderr

    def info(self, message: str) -> None:
        print(f"[INFO] {message}", file=self.stream)

    def warning(self, message: str) -> None:
        print(f"[WARN] {message}", file=self.stream)

    def error(self, message: str) -> None:
        print(f"[ERROR] {message}", file=self.err_stream)

    def ok(self, message: str) -> None:
        print(f"[OK] {message}", file=self.stream)

    def log(self, tool: str, detail: str = "") -> None:
        print(f"[{tool}] {detail}".rstrip(), file=self.stream)

    def debug(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}", file=self.stream)


@runtime_checkable
class Chooser(Protocol):
    """Capability that asks the user to pick one of ``options``."""

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        ...


class ConsoleChooser:
    """Numbered-menu chooser reading answers from stdin."""

    def __init__(
        self,
        *,
        input_func: Callable[[str], str] = input,
        stream: TextIO | None = None,
    ) -> None:
        self._input = input_func
        self._stream = stream

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("choose() requires at least one option")
        out = self._stream or sys.stdout
        for index, option in enumerate(options, start=1):
            print(f"{index}. {option}", file=out)
        while True:
            try:
                answer = self._input(f"{prompt} ").strip()
            except EOFError as exc:
                raise SelectionError(f"{prompt} no answer given (input closed)") from exc
            if answer in options:
                return answer
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1]
            print(f"Please enter a number between 1 and {len(options)}.", file=out)


class FixedChooser:
    """Non-interactive chooser that always picks the option at ``index``."""

    def __init__(self, index: int = 0) -> None:
        self.index = index
        self.prompts: list[tuple[str, list[str]]] = []

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        self.prompts.append((prompt, list(options)))
        return options[self.index]


__all__ = ["Chooser", "Console", "ConsoleChooser", "FixedChooser"]
