from __future__ import annotations

import importlib.util
import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "clean_logs.py"
_spec = importlib.util.spec_from_file_location("clean_logs", _SCRIPT)
assert _spec is not None and _spec.loader is not None
clean_logs_mod = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(clean_logs_mod)


class CleanLogsTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.log_dir = Path(self._tmp.name)
        self.names = [
            "gemini-cli-2026-10-17T10-00-00-000Z.json",
            "gemini-cli-2026-10-18T10-00-00-000Z.json",
            "gemini-cli-2026-10-18T10-00-00-000Z_001.json",
            "gemini-cli-2026-10-19T10-00-00-000Z.json",
        ]
        for name in self.names:
            (self.log_dir / name).write_text("{}", encoding="utf-8")
        (self.log_dir / "notes.txt").write_text("keep me", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_stale_logs_are_the_oldest_beyond_keep(self) -> None:
        stale = clean_logs_mod.find_stale_logs(self.log_dir, keep=2)
        self.assertEqual([p.name for p in stale], self.names[:2])

    def test_missing_dir_has_no_targets(self) -> None:
        self.assertEqual(clean_logs_mod.find_stale_logs(self.log_dir / "nope", keep=1), [])

    def test_default_log_dir_matches_bridge_resolution(self) -> None:
        with patch.object(clean_logs_mod, "load_config_with_path", return_value=({"log_dir": "/from/config"}, None)):
            with patch.dict(os.environ, {"GEMINI_BRIDGE_LOG_DIR": ""}):
                self.assertEqual(clean_logs_mod.default_log_dir(), Path("/from/config"))
            with patch.dict(os.environ, {"GEMINI_BRIDGE_LOG_DIR": str(self.log_dir)}):
                self.assertEqual(clean_logs_mod.default_log_dir(), self.log_dir)

    def test_dry_run_deletes_nothing(self) -> None:
        with redirect_stdout(io.StringIO()):
            clean_logs_mod.clean_logs(self.log_dir, keep=1, dry_run=True)
        self.assertEqual(len(list(self.log_dir.glob("gemini-cli-*.json"))), 4)

    def test_clean_keeps_newest_and_unrelated_files(self) -> None:
        with redirect_stdout(io.StringIO()):
            code = clean_logs_mod.clean_logs(self.log_dir, keep=1, dry_run=False)
        self.assertEqual(code, 0)
        remaining = sorted(p.name for p in self.log_dir.iterdir())
        self.assertEqual(remaining, [self.names[-1], "notes.txt"])


if __name__ == "__main__":
    unittest.main()
