"""Packaging of debug-symbol bundles into zip archives."""
from __future__ import annotations

from pathlib import Path
import os
import shutil
import zipfile

from .console import Console
from .errors import BuildError


DSYM_EXTENSION = ".dSYM"
ZIP_EXTENSION = ".zip"


class ArchiveManager:
    """Copy a bundle directory next to the build products and compress it."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def archive_bundle(self, bundle: Path, destination: Path, *, name: str | None = None) -> Path:
        """Copy ``bundle`` into ``destination``, zip the copy and remove it.

        A bundle that already lives in ``destination`` is zipped where it is.

        Returns the path of the created ``<name>.zip``.
        """

        bundle = Path(bundle)
        copy_path = Path(destination) / (name or bundle.name)
        target = copy_path.with_name(copy_path.name + ZIP_EXTENSION)

        if not bundle.is_dir():
            raise BuildError(f"Debug symbols not found at '{bundle}'")

        self._console.log("zip", str(copy_path))
        if copy_path.resolve() == bundle.resolve():
            try:
                return self.make_zip(source_dir=bundle, target_path=target)
            except (OSError, zipfile.BadZipFile) as exc:
                raise BuildError(f"Failed to archive debug symbols '{bundle}': {exc}") from exc

        try:
            if copy_path.exists():
                shutil.rmtree(copy_path)
            shutil.copytree(bundle, copy_path, symlinks=True)
            self.make_zip(source_dir=copy_path, target_path=target)
            shutil.rmtree(copy_path)
        except (OSError, zipfile.BadZipFile) as exc:
            raise BuildError(f"Failed to archive debug symbols '{bundle}': {exc}") from exc
        return target

    @staticmethod
    def make_zip(*, source_dir: Path, target_path: Path) -> Path:
        """Zip ``source_dir`` so that its own name is the archive root."""

        target_path.parent.mkdir(parents=True, exist_ok=True)
        root_name = Path(source_dir.name)

        with zipfile.ZipFile(
            target_path,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=9,
            allowZip64=True,
            strict_timestamps=False,
        ) as archive:
            for dirpath, dirnames, filenames in os.walk(source_dir, topdown=True):
                dirnames.sort()
                filenames.sort()

                current_dir = Path(dirpath)
                relative_dir = root_name / current_dir.relative_to(source_dir)
                archive.write(current_dir, relative_dir.as_posix() + "/")

                for filename in filenames:
                    archive.write(current_dir / filename, (relative_dir / filename).as_posix())

        return target_path


__all__ = ["ArchiveManager", "DSYM_EXTENSION", "ZIP_EXTENSION"]
