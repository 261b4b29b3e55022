"""Validation and input loading helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .errors import ConfigError, MessageContractError


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def validate_runtime_constraints(
    *,
    input_path: str,
    output: str,
    endpoint: str | None,
    request_timeout: float,
) -> None:
    """Validate CLI/runtime configuration and raise ConfigError on invalid values."""
    if not input_path:
        raise ConfigError("Provide --input with recorded observations.")
    if not output:
        raise ConfigError("--output cannot be empty.")
    if endpoint is not None and not is_supported_url(endpoint):
        raise ConfigError("--endpoint must be an absolute http(s) URL.")
    if request_timeout <= 0:
        raise ConfigError("--timeout must be > 0.")


def load_records(path: str) -> list[dict[str, Any]]:
    """Load JSON-lines records from a UTF-8 file, skipping blank lines."""
    content = Path(path).read_text(encoding="utf-8")
    records: list[dict[str, Any]] = []
    for number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise MessageContractError(f"{path}:{number}: invalid JSON: {exc}") from exc
        if not isinstance(record, dict):
            raise MessageContractError(f"{path}:{number}: expected a JSON object")
        records.append(record)
    return records
