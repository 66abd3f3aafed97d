"""Command line interface for ipabuild."""
from __future__ import annotations

from argparse import SUPPRESS, ArgumentParser, BooleanOptionalAction, Namespace
from pathlib import Path
from typing import Iterable
import sys

from .build import BuildEngine, BuildOptions
from .command_runner import CommandError, CommandRunner, SubprocessCommandRunner
from .config_loader import ConfigFileNotFoundError
from .console import Chooser, Console, ConsoleChooser
from .errors import BuildError


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="ipa", description="Build and package iOS apps into .ipa archives")
    parser.add_argument("--verbose", action="store_true", help="Show output of xcodebuild and xcrun")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Create a new .ipa file for your app")
    build_parser.add_argument(
        "-w",
        "--workspace",
        help="Workspace (.xcworkspace) file to use to build app (automatically detected in current directory)",
    )
    build_parser.add_argument(
        "-p",
        "--project",
        help="Project (.xcodeproj) file to use to build app (automatically detected in current directory, "
        "overridden by --workspace option, if passed)",
    )
    build_parser.add_argument("-c", "--configuration", help="Configuration used to build")
    build_parser.add_argument("-s", "--scheme", help="Scheme used to build app")
    build_parser.add_argument("--clean", action=BooleanOptionalAction, default=None, help="Clean project before building")
    build_parser.add_argument("--archive", action=BooleanOptionalAction, default=None, help="Archive project after building")
    build_parser.add_argument("-d", "--destination", help="Destination. Defaults to current directory")
    build_parser.add_argument("-m", "--embed", metavar="PROVISION", help="Sign .ipa file with .mobileprovision")
    build_parser.add_argument("-i", "--identity", help="Identity to be used along with --embed")
    build_parser.add_argument("--sdk", help="Use SDK as the name or path of the base SDK when building the project")
    build_parser.add_argument("--config", dest="config_file", metavar="PATH", help="Configuration file to load")
    build_parser.add_argument("--show-config", action="store_true", help="Print the resolved configuration before building")
    build_parser.add_argument("--verbose", action="store_true", default=SUPPRESS, help="Show output of xcodebuild and xcrun")

    return parser.parse_args(list(argv))


def main(
    argv: Iterable[str] | None = None,
    *,
    runner: CommandRunner | None = None,
    chooser: Chooser | None = None,
    workspace: Path | None = None,
) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    console = Console(verbose=args.verbose)

    if args.command == "build":
        try:
            return _handle_build(
                args,
                workspace or Path.cwd(),
                console=console,
                runner=runner or SubprocessCommandRunner(),
                chooser=chooser or ConsoleChooser(),
            )
        except (BuildError, CommandError, ConfigFileNotFoundError, ValueError, TypeError) as exc:
            console.error(str(exc))
            return 1
        except KeyboardInterrupt:
            console.error("Interrupted")
            return 130
    raise ValueError(f"Unknown command: {args.command}")


def _handle_build(
    args: Namespace,
    workspace: Path,
    *,
    console: Console,
    runner: CommandRunner,
    chooser: Chooser,
) -> int:
    options = BuildOptions(
        workspace=args.workspace,
        project=args.project,
        configuration=args.configuration,
        scheme=args.scheme,
        clean=args.clean,
        archive=args.archive,
        destination=args.destination,
        embed=args.embed,
        identity=args.identity,
        sdk=args.sdk,
        config_file=args.config_file,
        verbose=args.verbose,
        show_config=args.show_config,
    )
    engine = BuildEngine(command_runner=runner, console=console, chooser=chooser, workspace=workspace)
    engine.run(options)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
