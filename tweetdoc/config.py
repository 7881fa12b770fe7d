from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from .config_schema import AppConfig
from .errors import ConfigError
from .secrets import bearer_token_from_sops


@dataclass(frozen=True)
class RuntimeSecrets:
    bearer_token: str

    def __repr__(self) -> str:
        return "RuntimeSecrets(bearer_token=***)"


def load_config(path: str | Path) -> AppConfig:
    """
    Load a YAML config file and validate it into a typed AppConfig.

    Raises ConfigError with a readable validation message on failure.
    """
    p = Path(path)

    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {p}") from e

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {p}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML in {p} must be a mapping/object")

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_format_pydantic_errors(e, p)) from e


def resolve_runtime_secrets(
    config: AppConfig, *, environ: Mapping[str, str] | None = None
) -> RuntimeSecrets:
    """
    Find the Twitter bearer token.

    The environment variable named by twitter.bearer_token_env wins; otherwise
    the sops-encrypted file from secrets.sops_file is decrypted.
    """
    env = os.environ if environ is None else environ
    token_env = config.twitter.bearer_token_env

    token = (env.get(token_env) or "").strip()
    if token:
        return RuntimeSecrets(bearer_token=token)

    if config.secrets.sops_file:
        return RuntimeSecrets(
            bearer_token=bearer_token_from_sops(
                config.secrets.sops_file,
                sops_binary=config.secrets.sops_binary,
            )
        )

    raise ConfigError(
        f"Missing required environment variable: {token_env} "
        "(or configure secrets.sops_file)"
    )


def config_sha256(config: AppConfig) -> str:
    """
    Compute a stable SHA-256 hash of the config values for reproducibility.
    """
    payload = json.dumps(
        config.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def _format_pydantic_errors(err: ValidationError, path: Path) -> str:
    lines: list[str] = [f"Invalid configuration in {path}:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)
