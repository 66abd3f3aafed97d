from __future__ import annotations

import io
import unittest

from ipabuild.console import Chooser, Console, ConsoleChooser, FixedChooser
from ipabuild.errors import SelectionError


class ConsoleTests(unittest.TestCase):
    def test_levels_and_streams(self) -> None:
        out, err = io.StringIO(), io.StringIO()
        console = Console(stream=out, err_stream=err)
        console.info("hello")
        console.warning("careful")
        console.ok("done")
        console.log("xcodebuild", "App.xcworkspace")
        console.debug("hidden")
        console.error("broken")
        self.assertEqual(
            out.getvalue().splitlines(),
            ["[INFO] hello", "[WARN] careful", "[OK] done", "[xcodebuild] App.xcworkspace"],
        )
        self.assertEqual(err.getvalue(), "[ERROR] broken\n")

    def test_debug_only_when_verbose(self) -> None:
        out = io.StringIO()
        Console(verbose=True, stream=out).debug("shown")
        self.assertEqual(out.getvalue(), "[DEBUG] shown\n")


class ChooserTests(unittest.TestCase):
    def test_console_chooser_accepts_number(self) -> None:
        answers = iter(["2"])
        out = io.StringIO()
        chooser = ConsoleChooser(input_func=lambda prompt: next(answers), stream=out)
        self.assertEqual(chooser.choose("Select a scheme:", ["App", "Widget"]), "Widget")
        self.assertIn("1. App", out.getvalue())
        self.assertIn("2. Widget", out.getvalue())

    def test_console_chooser_retries_until_valid(self) -> None:
        answers = iter(["0", "banana", "", "App"])
        out = io.StringIO()
        chooser = ConsoleChooser(input_func=lambda prompt: next(answers), stream=out)
        self.assertEqual(chooser.choose("Select a scheme:", ["App", "Widget"]), "App")
        self.assertEqual(out.getvalue().count("Please enter a number between 1 and 2."), 3)

    def test_console_chooser_closed_input_is_a_selection_error(self) -> None:
        def closed(prompt: str) -> str:
            raise EOFError

        chooser = ConsoleChooser(input_func=closed, stream=io.StringIO())
        with self.assertRaises(SelectionError) as ctx:
            chooser.choose("Select a scheme:", ["App", "Widget"])
        self.assertIn("Select a scheme:", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, EOFError)

    def test_console_chooser_requires_options(self) -> None:
        with self.assertRaises(ValueError):
            ConsoleChooser(input_func=lambda prompt: "1").choose("Select:", [])

    def test_fixed_chooser_records_prompts(self) -> None:
        chooser = FixedChooser(index=1)
        self.assertIsInstance(chooser, Chooser)
        self.assertEqual(chooser.choose("Select a project:", ["A", "B", "C"]), "B")
        self.assertEqual(chooser.prompts, [("Select a project:", ["A", "B", "C"])])


if __name__ == "__main__":
    unittest.main()
