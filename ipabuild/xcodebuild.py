"""Queries against ``xcodebuild`` and parsers for its textual output."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Sequence
import re

from .command_runner import CommandRunner
from .errors import AppSettingsNotFoundError, UnsupportedToolchainError


MINIMUM_XCODE_VERSION = "4.0.0"
APP_WRAPPER_EXTENSION = "app"

_VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)*)")
_SETTINGS_HEADER = re.compile(r'^Build settings for action (\S+) and target "?(.+?)"?:\s*$')
_SETTING_LINE = re.compile(r"^\s+([A-Za-z0-9_]+) = ?(.*)$")
_LIST_SECTIONS = {
    "Targets:": "targets",
    "Build Configurations:": "build_configurations",
    "Schemes:": "schemes",
}


@dataclass(frozen=True, slots=True)
class ToolchainInfo:
    """Static facts about a workspace or project as reported by ``xcodebuild -list``."""

    targets: tuple[str, ...] = ()
    build_configurations: tuple[str, ...] = ()
    schemes: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "ToolchainInfo":
        return cls()


@dataclass(frozen=True, slots=True)
class BuildSettings:
    """Resolved build settings of a single target."""

    target: str
    values: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def require(self, key: str) -> str:
        value = self.values.get(key)
        if not value:
            raise AppSettingsNotFoundError()
        return value

    @property
    def built_products_dir(self) -> str:
        return self.require("BUILT_PRODUCTS_DIR")

    @property
    def wrapper_name(self) -> str:
        return self.require("WRAPPER_NAME")

    @property
    def wrapper_suffix(self) -> str:
        return self.values.get("WRAPPER_SUFFIX", "")

    @property
    def configuration(self) -> str | None:
        return self.values.get("CONFIGURATION")

    @property
    def is_app(self) -> bool:
        return self.values.get("WRAPPER_EXTENSION") == APP_WRAPPER_EXTENSION


def parse_version(text: str) -> str | None:
    """Extract the first dotted version number from ``xcodebuild -version`` output."""

    match = _VERSION_PATTERN.search(text)
    return match.group(1) if match else None


def version_tuple(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def version_less_than(version: str, minimum: str) -> bool:
    left = list(version_tuple(version))
    right = list(version_tuple(minimum))
    width = max(len(left), len(right))
    left.extend([0] * (width - len(left)))
    right.extend([0] * (width - len(right)))
    return left < right


def parse_list_output(text: str) -> ToolchainInfo:
    """Parse the ``Targets``/``Build Configurations``/``Schemes`` sections of ``xcodebuild -list``."""

    sections: Dict[str, List[str]] = {name: [] for name in _LIST_SECTIONS.values()}
    current: str | None = None
    for line in text.splitlines():
        stripped = line.strip()
        if stripped in _LIST_SECTIONS:
            current = _LIST_SECTIONS[stripped]
            continue
        if not stripped:
            current = None
            continue
        if current is not None:
            sections[current].append(stripped)
    return ToolchainInfo(
        targets=tuple(sections["targets"]),
        build_configurations=tuple(sections["build_configurations"]),
        schemes=tuple(sections["schemes"]),
    )


def parse_settings_output(text: str) -> Dict[str, Dict[str, str]]:
    """Parse ``-showBuildSettings`` output into ``{target: {KEY: value}}``."""

    targets: Dict[str, Dict[str, str]] = {}
    current: Dict[str, str] | None = None
    for line in text.splitlines():
        header = _SETTINGS_HEADER.match(line)
        if header:
            current = targets.setdefault(header.group(2), {})
            continue
        if current is None:
            continue
        setting = _SETTING_LINE.match(line)
        if setting:
            current[setting.group(1)] = setting.group(2).strip()
    return targets


class XcodeBuild:
    """Thin wrapper around the ``xcodebuild`` executable."""

    def __init__(self, runner: CommandRunner, *, executable: str = "xcodebuild") -> None:
        self._runner = runner
        self._executable = executable

    def version(self) -> str | None:
        result = self._runner.run([self._executable, "-version"], check=False, note="xcodebuild version")
        if not result.ok:
            return None
        return parse_version(result.stdout)

    def validate_version(self, minimum: str = MINIMUM_XCODE_VERSION) -> str:
        """Return the installed version, raising when it is older than ``minimum``."""

        found = self.version()
        if found is None or version_less_than(found, minimum):
            raise UnsupportedToolchainError(found, minimum)
        return found

    def info(self, *, workspace: str | None = None, project: str | None = None) -> ToolchainInfo:
        """List schemes and configurations; a failed query yields an empty snapshot."""

        command = [self._executable, "-list"]
        if workspace:
            command.extend(["-workspace", workspace])
        elif project:
            command.extend(["-project", project])
        result = self._runner.run(command, check=False, note="xcodebuild list")
        if not result.ok:
            return ToolchainInfo.empty()
        return parse_list_output(result.stdout)

    def settings(self, flags: Sequence[str]) -> Dict[str, Dict[str, str]]:
        result = self._runner.run(
            [self._executable, *flags, "-showBuildSettings"],
            note="xcodebuild settings",
        )
        return parse_settings_output(result.stdout)

    def iter_settings(self, flags: Sequence[str]) -> Iterator[BuildSettings]:
        for target, values in self.settings(flags).items():
            yield BuildSettings(target=target, values=values)

    def app_settings(self, flags: Sequence[str]) -> BuildSettings:
        """Return the settings of the target that builds an ``.app`` bundle."""

        for settings in self.iter_settings(flags):
            if settings.is_app:
                return settings
        raise AppSettingsNotFoundError()

    def build(
        self,
        flags: Sequence[str],
        actions: Sequence[str],
        *,
        verbose: bool = False,
    ) -> None:
        # CC must not leak into xcodebuild; it overrides the toolchain's compiler.
        self._runner.run(
            [self._executable, *flags, *actions],
            env={"CC": None},
            note="xcodebuild",
            stream=verbose,
        )


__all__ = [
    "APP_WRAPPER_EXTENSION",
    "BuildSettings",
    "MINIMUM_XCODE_VERSION",
    "ToolchainInfo",
    "XcodeBuild",
    "parse_list_output",
    "parse_settings_output",
    "parse_version",
    "version_less_than",
]
