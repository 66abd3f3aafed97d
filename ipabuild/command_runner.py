"""Execution of external tools (xcodebuild, xcrun) behind a narrow interface."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Sequence
import os
import shlex
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    streamed: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    """Raised when a command fails."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {' '.join(map(shlex.quote, result.command))}"
        if result.streamed:
            message = f"{message}\nstdout/stderr already streamed above."
        else:
            message = (
                f"{message}\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}"
            )
        super().__init__(message)
        self.result = result


class CommandRunner:
    """Abstract command runner interface.

    ``env`` entries are merged over the current process environment; a value
    of ``None`` removes the variable from the child environment instead.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str | None] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str | None] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        for key, value in env.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        return merged

    def _finalize(self, result: CommandResult, *, check: bool) -> CommandResult:
        if check and result.returncode != 0:
            raise CommandError(result)
        return result

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str | None] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        merged_env = self._merge_environment(env)
        try:
            if not stream:
                process = subprocess.run(
                    command,
                    cwd=str(cwd) if cwd else None,
                    env=merged_env,
                    capture_output=True,
                    text=True,
                    check=False,
                )
                return self._finalize(
                    CommandResult(
                        command=command,
                        returncode=process.returncode,
                        stdout=process.stdout,
                        stderr=process.stderr,
                    ),
                    check=check,
                )

            process = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                check=False,
            )
        except FileNotFoundError as exc:
            # A missing executable behaves like any other failed command.
            return self._finalize(
                CommandResult(command=command, returncode=127, stdout="", stderr=str(exc)),
                check=check,
            )

        return self._finalize(
            CommandResult(
                command=command,
                returncode=process.returncode,
                stdout="",
                stderr="",
                streamed=True,
            ),
            check=check,
        )


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str | None]
    note: str | None
    stream: bool


@dataclass(slots=True)
class _Response:
    tokens: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    effect: Callable[[Sequence[str]], None] | None


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands and replays canned results.

    A response registered with :meth:`respond` matches a command whose first
    element is the executable and which contains every other given token.
    Later registrations win. Unmatched commands succeed with no output.
    """

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []
        self._responses: List[_Response] = []

    def respond(
        self,
        *tokens: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Callable[[Sequence[str]], None] | None = None,
    ) -> None:
        self._responses.insert(0, _Response(tuple(tokens), returncode, stdout, stderr, effect))

    def _match(self, command: Sequence[str]) -> _Response | None:
        for response in self._responses:
            executable, *rest = response.tokens
            if command and command[0] == executable and all(token in command for token in rest):
                return response
        return None

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str | None] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self.commands.append(
            RecordedCommand(
                command=list(command),
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env else {},
                note=note,
                stream=stream,
            )
        )
        response = self._match(command)
        if response is None:
            return CommandResult(command=command, returncode=0, stdout="", stderr="")
        if response.effect is not None:
            response.effect(command)
        result = CommandResult(
            command=command,
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
        )
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
]
