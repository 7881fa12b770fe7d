from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Callable, Sequence

from .errors import ConfigError

RunFn = Callable[..., "subprocess.CompletedProcess[bytes]"]


def decrypt_sops_json(
    path: str | Path,
    *,
    sops_binary: str = "sops",
    run: RunFn | None = None,
) -> dict[str, Any]:
    """Decrypt a sops-managed file and return its contents as a JSON object."""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Secrets file not found: {p}")

    cmd: Sequence[str] = [sops_binary, "-d", "--output-type", "json", str(p)]
    runner = run or subprocess.run
    try:
        proc = runner(cmd, capture_output=True, check=False)
    except OSError as e:
        raise ConfigError(f"Failed to execute {sops_binary}: {e}") from e

    if proc.returncode != 0:
        stderr = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
        raise ConfigError(f"sops could not decrypt {p}: {stderr or 'unknown error'}")

    try:
        data = json.loads(proc.stdout or b"")
    except ValueError as e:
        raise ConfigError(f"Parsing output error for {p}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Decrypted secrets in {p} must be a mapping/object")
    return data


def bearer_token_from_sops(
    path: str | Path,
    *,
    sops_binary: str = "sops",
    run: RunFn | None = None,
) -> str:
    data = decrypt_sops_json(path, sops_binary=sops_binary, run=run)

    twitter = data.get("twitter")
    token = twitter.get("bearer_token") if isinstance(twitter, dict) else None
    if not isinstance(token, str) or not token.strip():
        raise ConfigError(f"Secrets file {path} has no twitter.bearer_token")
    return token.strip()
