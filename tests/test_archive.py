from __future__ import annotations

from pathlib import Path
import io
import tempfile
import unittest
import zipfile

from ipabuild.archive import ArchiveManager
from ipabuild.console import Console
from ipabuild.errors import BuildError


class ArchiveManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.manager = ArchiveManager(Console(stream=io.StringIO()))
        self.bundle = self.root / "products" / "App.app.dSYM"
        dwarf = self.bundle / "Contents" / "Resources" / "DWARF"
        dwarf.mkdir(parents=True)
        (dwarf / "App").write_bytes(b"dwarf")
        (self.bundle / "Contents" / "Info.plist").write_text("<plist/>")
        self.destination = self.root / "out"
        self.destination.mkdir()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_archive_bundle_leaves_only_zip(self) -> None:
        target = self.manager.archive_bundle(self.bundle, self.destination)
        self.assertEqual(target, self.destination / "App.app.dSYM.zip")
        self.assertEqual(sorted(path.name for path in self.destination.iterdir()), ["App.app.dSYM.zip"])
        self.assertTrue(self.bundle.is_dir(), "source bundle must be left untouched")

    def test_zip_is_rooted_at_bundle_name(self) -> None:
        target = self.manager.archive_bundle(self.bundle, self.destination)
        with zipfile.ZipFile(target) as archive:
            names = archive.namelist()
            self.assertIn("App.app.dSYM/Contents/Resources/DWARF/App", names)
            self.assertIn("App.app.dSYM/Contents/Info.plist", names)
            self.assertEqual(archive.read("App.app.dSYM/Contents/Resources/DWARF/App"), b"dwarf")

    def test_custom_name(self) -> None:
        target = self.manager.archive_bundle(self.bundle, self.destination, name="Renamed.dSYM")
        self.assertEqual(target.name, "Renamed.dSYM.zip")
        self.assertFalse((self.destination / "Renamed.dSYM").exists())

    def test_stale_copy_is_replaced(self) -> None:
        stale = self.destination / "App.app.dSYM"
        stale.mkdir()
        (stale / "old").write_text("stale")
        target = self.manager.archive_bundle(self.bundle, self.destination)
        with zipfile.ZipFile(target) as archive:
            self.assertNotIn("App.app.dSYM/old", archive.namelist())
        self.assertFalse(stale.exists())

    def test_destination_holding_the_bundle_zips_in_place(self) -> None:
        products = self.bundle.parent
        target = self.manager.archive_bundle(self.bundle, products)
        self.assertEqual(target, products / "App.app.dSYM.zip")
        self.assertTrue((self.bundle / "Contents" / "Resources" / "DWARF" / "App").is_file())
        with zipfile.ZipFile(target) as archive:
            self.assertIn("App.app.dSYM/Contents/Resources/DWARF/App", archive.namelist())

    def test_missing_bundle_is_fatal(self) -> None:
        with self.assertRaises(BuildError):
            self.manager.archive_bundle(self.root / "missing.dSYM", self.destination)
        self.assertEqual(list(self.destination.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
