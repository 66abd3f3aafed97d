"""Build orchestration: validate, build, package and archive debug symbols."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from .archive import DSYM_EXTENSION, ZIP_EXTENSION, ArchiveManager
from .command_runner import CommandRunner
from .config_loader import BuildConfig
from .console import Chooser, Console
from .errors import BuildError
from .selection import TargetSelector, TargetSpec
from .xcodebuild import BuildSettings, XcodeBuild


IPA_EXTENSION = ".ipa"


class BuildAction(str, Enum):
    CLEAN = "clean"
    BUILD = "build"
    ARCHIVE = "archive"


@dataclass(slots=True)
class BuildOptions:
    workspace: str | None = None
    project: str | None = None
    configuration: str | None = None
    scheme: str | None = None
    clean: bool | None = None
    archive: bool | None = None
    destination: str | None = None
    embed: str | None = None
    identity: str | None = None
    sdk: str | None = None
    config_file: str | None = None
    verbose: bool = False
    show_config: bool = False

    def config_overrides(self) -> Dict[str, Any]:
        """Options that take part in configuration layering."""

        return {
            "workspace": self.workspace,
            "project": self.project,
            "configuration": self.configuration,
            "scheme": self.scheme,
            "clean": self.clean,
            "archive": self.archive,
            "destination": self.destination,
            "embed": self.embed,
            "identity": self.identity,
            "sdk": self.sdk,
        }


@dataclass(frozen=True, slots=True)
class ArtifactPaths:
    app_path: Path
    dsym_path: Path
    dsym_name: str
    ipa_path: Path
    dsym_archive_path: Path

    @classmethod
    def derive(cls, settings: BuildSettings, destination: Path) -> "ArtifactPaths":
        wrapper_name = settings.wrapper_name
        app_path = Path(settings.built_products_dir) / wrapper_name
        dsym_name = f"{wrapper_name}{DSYM_EXTENSION}"
        suffix = settings.wrapper_suffix
        stem = wrapper_name.replace(suffix, "") if suffix else wrapper_name
        return cls(
            app_path=app_path,
            dsym_path=app_path.with_name(dsym_name),
            dsym_name=dsym_name,
            ipa_path=destination / f"{stem}{IPA_EXTENSION}",
            dsym_archive_path=destination / f"{dsym_name}{ZIP_EXTENSION}",
        )


def build_actions(config: BuildConfig) -> List[str]:
    actions: List[str] = []
    if config.get("clean") is not False:
        actions.append(BuildAction.CLEAN.value)
    actions.append(BuildAction.BUILD.value)
    if config.get("archive") is not False:
        actions.append(BuildAction.ARCHIVE.value)
    return actions


class BuildEngine:
    def __init__(
        self,
        *,
        command_runner: CommandRunner,
        console: Console,
        chooser: Chooser,
        workspace: Path,
        xcodebuild: XcodeBuild | None = None,
        xcrun: str = "xcrun",
    ) -> None:
        self._command_runner = command_runner
        self._console = console
        self._workspace = workspace
        self._xcodebuild = xcodebuild or XcodeBuild(command_runner)
        self._xcrun = xcrun
        self._selector = TargetSelector(
            xcodebuild=self._xcodebuild,
            chooser=chooser,
            console=console,
            workspace_dir=workspace,
        )
        self._archiver = ArchiveManager(console)

    def run(self, options: BuildOptions) -> ArtifactPaths:
        """Run every stage in order; any failure raises and ends the run."""

        self._xcodebuild.validate_version()
        config = BuildConfig.resolve(
            options.config_overrides(),
            config_path=options.config_file,
            root=self._workspace,
        )
        if config.filename is not None:
            self._console.debug(f"Loaded configuration from {config.filename}")
        if options.show_config:
            print(config.to_yaml(), end="")

        target = self._selector.select(config, project=options.project)
        target = self._discover_settings(target)[0]
        destination = self._prepare_destination(config)

        self._build(target, config, verbose=options.verbose)

        target, settings = self._discover_settings(target)
        paths = ArtifactPaths.derive(settings, destination)

        self._package(target, paths, config, embed=options.embed, verbose=options.verbose)
        self._archiver.archive_bundle(paths.dsym_path, destination, name=paths.dsym_name)

        self._console.ok(f"{paths.ipa_path} successfully built")
        return paths

    def _discover_settings(self, target: TargetSpec) -> tuple[TargetSpec, BuildSettings]:
        """Resolve the app target's settings, pinning the configuration xcodebuild chose."""

        settings = self._xcodebuild.app_settings(target.flags())
        if target.configuration is None and settings.configuration:
            target = target.with_configuration(settings.configuration)
        return target, settings

    def _prepare_destination(self, config: BuildConfig) -> Path:
        raw = config.get("destination") or config.output
        destination = Path(raw).expanduser() if raw else self._workspace
        if not destination.is_absolute():
            destination = self._workspace / destination
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildError(f"Cannot create destination '{destination}': {exc}") from exc
        return destination

    def _build(self, target: TargetSpec, config: BuildConfig, *, verbose: bool) -> None:
        self._console.warning(
            f'Building "{target.container}" with Scheme "{target.scheme}" '
            f'and Configuration "{target.configuration}"'
        )
        self._console.log("xcodebuild", target.container)
        self._xcodebuild.build(target.flags(), build_actions(config), verbose=verbose)

    def _package(
        self,
        target: TargetSpec,
        paths: ArtifactPaths,
        config: BuildConfig,
        *,
        embed: str | None,
        verbose: bool,
    ) -> None:
        # Without a profile the dSYM path is passed, matching PackageApplication's default.
        embed_value = embed or config.profile_for(target.configuration) or str(paths.dsym_path)
        command = [
            self._xcrun,
            "-sdk",
            target.sdk,
            "PackageApplication",
            "-v",
            str(paths.app_path),
            "-o",
            str(paths.ipa_path),
            "--embed",
            embed_value,
        ]
        if config.identity:
            command.extend(["-s", str(config.identity)])

        self._console.log("xcrun", "PackageApplication")
        self._console.debug(self._command_runner.format_command(command))
        self._command_runner.run(command, note="PackageApplication", stream=verbose)


__all__ = [
    "ArtifactPaths",
    "BuildAction",
    "BuildEngine",
    "BuildOptions",
    "IPA_EXTENSION",
    "build_actions",
]
