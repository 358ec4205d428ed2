"""Tests for the real subprocess runner."""

import sys
import tempfile
import time
import unittest
from pathlib import Path

from lambda_pack.build import SubprocessRunner


class TestSubprocessRunner(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.cwd = Path(self._tmp.name)
        self.runner = SubprocessRunner()

    def tearDown(self):
        self._tmp.cleanup()

    def test_captures_output_and_exit_code(self):
        result = self.runner.run(
            [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"],
            cwd=self.cwd,
            timeout=30,
        )

        self.assertEqual(result.returncode, 3)
        self.assertEqual(result.stdout.strip(), "out")
        self.assertEqual(result.stderr.strip(), "err")
        self.assertFalse(result.timed_out)
        self.assertFalse(result.ok)

    def test_runs_in_given_directory_with_extra_env(self):
        result = self.runner.run(
            [sys.executable, "-c", "import os; print(os.getcwd()); print(os.environ['LAMBDA_PACK_PROBE'])"],
            cwd=self.cwd,
            timeout=30,
            env={"LAMBDA_PACK_PROBE": "yes"},
        )

        lines = result.stdout.splitlines()
        self.assertEqual(Path(lines[0]).resolve(), self.cwd.resolve())
        self.assertEqual(lines[1], "yes")
        self.assertTrue(result.ok)

    def test_timeout_kills_process_group(self):
        marker = self.cwd / "grandchild-finished"
        grandchild = self.cwd / "grandchild.py"
        grandchild.write_text(
            f"import pathlib, time\ntime.sleep(3)\npathlib.Path({str(marker)!r}).touch()\n",
            encoding="utf-8",
        )
        script = (
            "import subprocess, sys, time\n"
            f"subprocess.Popen([sys.executable, {str(grandchild)!r}])\n"
            "time.sleep(30)\n"
        )

        result = self.runner.run([sys.executable, "-c", script], cwd=self.cwd, timeout=0.5)

        self.assertTrue(result.timed_out)
        self.assertFalse(result.ok)
        self.assertLess(result.duration_ms, 10_000)
        time.sleep(4)
        self.assertFalse(marker.exists())

    def test_undecodable_output_is_replaced_not_raised(self):
        result = self.runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.buffer.write(b'caf\\xe9 error'); sys.exit(1)"],
            cwd=self.cwd,
            timeout=30,
        )

        self.assertEqual(result.returncode, 1)
        self.assertEqual(result.stderr, "caf\ufffd error")

    def test_missing_executable_reports_127(self):
        result = self.runner.run(["definitely-not-a-real-tool-xyz"], cwd=self.cwd, timeout=5)

        self.assertEqual(result.returncode, 127)
        self.assertIn("command not found", result.stderr)


if __name__ == "__main__":
    unittest.main()
