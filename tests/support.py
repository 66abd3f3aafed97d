"""Canned xcodebuild output and a scripted toolchain for tests."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence
import textwrap

from ipabuild.command_runner import RecordingCommandRunner


VERSION_OUTPUT = "Xcode 15.2\nBuild version 15C500b\n"


def list_output(
    *,
    kind: str = "project",
    name: str = "App",
    configurations: Iterable[str] = ("Debug", "Release"),
    schemes: Iterable[str] = ("App",),
) -> str:
    lines = [f'Information about {kind} "{name}":']
    if kind == "project":
        lines.append("    Targets:")
        lines.append(f"        {name}")
        lines.append("")
        lines.append("    Build Configurations:")
        lines.extend(f"        {configuration}" for configuration in configurations)
        lines.append("")
        lines.append('    If no build configuration is specified and -scheme is not passed then "Release" is used.')
        lines.append("")
    lines.append("    Schemes:")
    lines.extend(f"        {scheme}" for scheme in schemes)
    lines.append("")
    return "\n".join(lines)


def settings_output(
    products_dir: Path | str,
    *,
    wrapper_name: str = "App.app",
    configuration: str = "Release",
    extra_targets: bool = True,
) -> str:
    text = ""
    if extra_targets:
        text += textwrap.dedent(
            f"""\
            Build settings for action build and target AppKitLib:
                BUILT_PRODUCTS_DIR = {products_dir}
                CONFIGURATION = {configuration}
                WRAPPER_EXTENSION = framework
                WRAPPER_NAME = AppKitLib.framework
                WRAPPER_SUFFIX = .framework

            """
        )
    text += textwrap.dedent(
        f"""\
        Build settings for action build and target App:
            ACTION = build
            BUILT_PRODUCTS_DIR = {products_dir}
            CONFIGURATION = {configuration}
            EMPTY_SETTING = 
            WRAPPER_EXTENSION = app
            WRAPPER_NAME = {wrapper_name}
            WRAPPER_SUFFIX = .app
        """
    )
    return text


def argument_after(command: Sequence[str], flag: str) -> str:
    return command[list(command).index(flag) + 1]


class FakeToolchain(RecordingCommandRunner):
    """Scripted xcodebuild/xcrun that also creates the products on disk."""

    def __init__(
        self,
        products_dir: Path,
        *,
        list_text: str | None = None,
        version_text: str = VERSION_OUTPUT,
        configuration: str = "Release",
        wrapper_name: str = "App.app",
    ) -> None:
        super().__init__()
        self.products_dir = products_dir
        self.wrapper_name = wrapper_name
        self.respond("xcodebuild", "-version", stdout=version_text)
        self.respond("xcodebuild", "-list", stdout=list_text if list_text is not None else list_output())
        self.respond(
            "xcodebuild",
            "-showBuildSettings",
            stdout=settings_output(products_dir, wrapper_name=wrapper_name, configuration=configuration),
        )
        self.respond("xcodebuild", "build", effect=self._create_products)
        self.respond("xcrun", "PackageApplication", effect=self._create_ipa)

    def _create_products(self, command: Sequence[str]) -> None:
        app = self.products_dir / self.wrapper_name
        app.mkdir(parents=True, exist_ok=True)
        (app / "Info.plist").write_text("<plist/>")
        dwarf = self.products_dir / f"{self.wrapper_name}.dSYM" / "Contents" / "Resources" / "DWARF"
        dwarf.mkdir(parents=True, exist_ok=True)
        (dwarf / "App").write_bytes(b"\x00dwarf")

    @staticmethod
    def _create_ipa(command: Sequence[str]) -> None:
        Path(argument_after(command, "-o")).write_bytes(b"PK\x05\x06" + b"\x00" * 18)

    def executables(self) -> list[str]:
        return [" ".join(record.command[:2]) for record in self.commands]

    def commands_with(self, token: str) -> list[list[str]]:
        return [record.command for record in self.commands if token in record.command]
