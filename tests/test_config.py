from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from tweetdoc.config import config_sha256, load_config, resolve_runtime_secrets
from tweetdoc.config_schema import AppConfig
from tweetdoc.errors import ConfigError


_VALID_YAML = """\
twitter:
  bearer_token_env: TWITTER_BEARER_TOKEN
  api_base_url: https://api.twitter.com/
  timeout_seconds: 5
  max_results: 10
  retry_max_attempts: 2
  retry_base_delay_seconds: 0
  retry_max_delay_seconds: 0

secrets:
  sops_file: "  "

render:
  offset_unit: utf16

output:
  title_template: "Posts by @{username}"
  include_pdf: true
  log_level: WARN
"""


class TestConfig(unittest.TestCase):
    def _write(self, td: str, text: str) -> Path:
        path = Path(td) / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_config_ok(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, _VALID_YAML))

        self.assertEqual(cfg.twitter.max_results, 10)
        self.assertEqual(cfg.twitter.api_base_url, "https://api.twitter.com")
        self.assertIsNone(cfg.secrets.sops_file)
        self.assertEqual(cfg.render.offset_unit, "utf16")
        self.assertTrue(cfg.output.include_pdf)

    def test_empty_file_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_config(self._write(td, ""))
        self.assertEqual(cfg, AppConfig())
        self.assertEqual(cfg.twitter.max_results, 5)

    def test_rejects_invalid_values(self) -> None:
        bad = [
            _VALID_YAML.replace("max_results: 10", "max_results: 3"),
            _VALID_YAML.replace("offset_unit: utf16", "offset_unit: bytes"),
            _VALID_YAML.replace("bearer_token_env: TWITTER_BEARER_TOKEN", "bearer_token_env: 1-bad"),
            _VALID_YAML + "unknown: 1\n",
            "- a\n- b\n",
            "twitter: [unclosed\n",
        ]
        with tempfile.TemporaryDirectory() as td:
            for text in bad:
                with self.subTest(text=text[-40:]):
                    with self.assertRaises(ConfigError):
                        load_config(self._write(td, text))

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/config.yaml")

    def test_resolve_runtime_secrets_requires_env(self) -> None:
        cfg = AppConfig()
        with self.assertRaises(ConfigError):
            resolve_runtime_secrets(cfg, environ={})
        with self.assertRaises(ConfigError):
            resolve_runtime_secrets(cfg, environ={"TWITTER_BEARER_TOKEN": "  "})

        secrets = resolve_runtime_secrets(cfg, environ={"TWITTER_BEARER_TOKEN": " s3cr3t-xyz "})
        self.assertEqual(secrets.bearer_token, "s3cr3t-xyz")
        self.assertNotIn("s3cr3t-xyz", repr(secrets))
        self.assertIn("***", repr(secrets))

    def test_config_hash_is_stable(self) -> None:
        a = config_sha256(AppConfig())
        b = config_sha256(AppConfig())
        self.assertEqual(a, b)
        self.assertEqual(len(a), 64)
        self.assertNotEqual(
            a, config_sha256(AppConfig.model_validate({"render": {"offset_unit": "utf16"}}))
        )


if __name__ == "__main__":
    unittest.main()
