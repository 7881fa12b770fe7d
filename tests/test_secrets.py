from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from typing import Any

from tweetdoc.errors import ConfigError
from tweetdoc.secrets import bearer_token_from_sops, decrypt_sops_json


def _runner(returncode: int, stdout: bytes = b"", stderr: bytes = b"") -> Any:
    calls: list[Any] = []

    def run(cmd: Any, **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    run.calls = calls  # type: ignore[attr-defined]
    return run


class TestSops(unittest.TestCase):
    def test_reads_bearer_token(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "secrets.yaml"
            path.write_text("encrypted", encoding="utf-8")
            run = _runner(0, stdout=b'{"twitter": {"bearer_token": " abc "}}')

            token = bearer_token_from_sops(path, run=run)

        self.assertEqual(token, "abc")
        self.assertEqual(run.calls[0], ["sops", "-d", "--output-type", "json", str(path)])

    def test_failures_raise_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "secrets.yaml"
            path.write_text("encrypted", encoding="utf-8")

            with self.assertRaises(ConfigError):
                decrypt_sops_json(path, run=_runner(1, stderr=b"no key"))
            with self.assertRaises(ConfigError):
                decrypt_sops_json(path, run=_runner(0, stdout=b"not json"))
            with self.assertRaises(ConfigError):
                bearer_token_from_sops(path, run=_runner(0, stdout=b'{"twitter": {}}'))

        with self.assertRaises(ConfigError):
            decrypt_sops_json("/nonexistent/secrets.yaml", run=_runner(0))


if __name__ == "__main__":
    unittest.main()
