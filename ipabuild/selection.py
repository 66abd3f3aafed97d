"""Resolution of the workspace or project, scheme and configuration to build."""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import List

from .config_loader import BuildConfig
from .console import Chooser, Console
from .errors import SelectionError
from .xcodebuild import ToolchainInfo, XcodeBuild


DEFAULT_SDK = "iphoneos"
DEFAULT_CONFIGURATION = "Debug"
WORKSPACE_PATTERN = "*.xcworkspace"
PROJECT_PATTERN = "*.xcodeproj"


@dataclass(frozen=True, slots=True)
class TargetSpec:
    """The concrete thing to build. Exactly one of ``workspace``/``project`` is set."""

    scheme: str
    sdk: str
    workspace: str | None = None
    project: str | None = None
    configuration: str | None = None

    def __post_init__(self) -> None:
        if bool(self.workspace) == bool(self.project):
            raise ValueError("TargetSpec requires exactly one of workspace or project")

    @property
    def container(self) -> str:
        return self.workspace or self.project or ""

    def with_configuration(self, configuration: str) -> "TargetSpec":
        return replace(self, configuration=configuration)

    def flags(self) -> List[str]:
        """Flags shared by every xcodebuild invocation for this target."""

        flags = ["-sdk", self.sdk]
        if self.workspace:
            flags.extend(["-workspace", self.workspace])
        if self.project:
            flags.extend(["-project", self.project])
        flags.extend(["-scheme", self.scheme])
        if self.configuration:
            flags.extend(["-configuration", self.configuration])
        return flags


def detect_containers(directory: Path) -> tuple[List[str], List[str]]:
    """Return the workspace and project bundles found directly in ``directory``."""

    workspaces = sorted(path.name for path in directory.glob(WORKSPACE_PATTERN))
    projects = sorted(path.name for path in directory.glob(PROJECT_PATTERN))
    return workspaces, projects


class TargetSelector:
    def __init__(
        self,
        *,
        xcodebuild: XcodeBuild,
        chooser: Chooser,
        console: Console,
        workspace_dir: Path,
    ) -> None:
        self._xcodebuild = xcodebuild
        self._chooser = chooser
        self._console = console
        self._workspace_dir = workspace_dir

    def select(self, config: BuildConfig, *, project: str | None = None) -> TargetSpec:
        """Resolve a :class:`TargetSpec`.

        ``project`` is only ever taken from the command line; a workspace from
        the command line or the config file takes precedence over it.
        """

        workspace = config.workspace
        if workspace:
            project = None
        elif not project:
            workspace, project = self._determine_workspace_or_project()

        info = self._xcodebuild.info(workspace=workspace, project=project)

        configuration = config.text("configuration", explicit=True)
        if project:
            if not configuration:
                configuration = self._determine_configuration(info)
            if configuration not in info.build_configurations:
                raise SelectionError(f"Configuration {configuration} not found")

        scheme = config.scheme or self._determine_scheme(info)
        if scheme not in info.schemes:
            raise SelectionError(f"Scheme {scheme} not found")

        return TargetSpec(
            workspace=workspace,
            project=project,
            scheme=scheme,
            configuration=configuration,
            sdk=config.sdk or DEFAULT_SDK,
        )

    def _determine_workspace_or_project(self) -> tuple[str | None, str | None]:
        workspaces, projects = detect_containers(self._workspace_dir)
        if workspaces:
            return self._pick("Select a workspace:", workspaces), None
        if projects:
            return None, self._pick("Select a project:", projects)
        raise SelectionError("No Xcode projects or workspaces found in current directory")

    def _determine_configuration(self, info: ToolchainInfo) -> str:
        configurations = list(info.build_configurations)
        if not configurations or DEFAULT_CONFIGURATION in configurations:
            configuration = DEFAULT_CONFIGURATION
        elif len(configurations) == 1:
            configuration = configurations[0]
        else:
            return self._chooser.choose("Select a configuration:", configurations)
        self._console.warning(f"Configuration was not passed, defaulting to {configuration}")
        return configuration

    def _determine_scheme(self, info: ToolchainInfo) -> str:
        if not info.schemes:
            raise SelectionError("No schemes found in Xcode project or workspace")
        return self._pick("Select a scheme:", list(info.schemes))

    def _pick(self, prompt: str, options: List[str]) -> str:
        if len(options) == 1:
            return options[0]
        return self._chooser.choose(prompt, options)


__all__ = [
    "DEFAULT_CONFIGURATION",
    "DEFAULT_SDK",
    "TargetSelector",
    "TargetSpec",
    "detect_containers",
]
