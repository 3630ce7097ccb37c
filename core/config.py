"""Configuration lookup for the application.

Values are resolved from the process environment first and then from a
``.env`` file (``DOTENV_PATH``, default ``./.env``). The resolver is cached;
tests call ``_config_adapter.cache_clear()`` after changing the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import os
from pathlib import Path

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def read_dotenv(path: Path, encoding: str = "utf-8") -> dict[str, str]:
    """Parse KEY=VALUE lines from a dotenv file; a missing file yields {}."""
    values: dict[str, str] = {}
    try:
        lines = path.read_text(encoding=encoding).splitlines()
    except FileNotFoundError:
        return values
    for raw_line in lines:
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = _strip_quotes(value.strip())
    return values


@dataclass(slots=True)
class LayeredConfig:
    """Environment variables win over the dotenv file."""

    dotenv_path: Path
    _dotenv: dict[str, str] | None = field(default=None, init=False)

    def get(self, key: str, default: str | None = None) -> str | None:
        value = os.getenv(key)
        if value is not None:
            return value
        if self._dotenv is None:
            self._dotenv = read_dotenv(self.dotenv_path)
        return self._dotenv.get(key, default)


@lru_cache
def _config_adapter() -> LayeredConfig:
    return LayeredConfig(dotenv_path=Path(os.getenv("DOTENV_PATH", ".env")))


def get_config_value(key: str, default: str | None = None) -> str | None:
    return _config_adapter().get(key, default)


def get_int_setting(key: str, default: int) -> int:
    raw = (get_config_value(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        try:
            return int(float(raw))
        except ValueError:
            return default


def get_float_setting(key: str, default: float) -> float:
    raw = (get_config_value(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_bool_setting(key: str, default: bool) -> bool:
    raw = get_config_value(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    return default


def get_default_model() -> str:
    """Return the configured model name.

    Requires LLM_MODEL to be set in configuration; no implicit defaults.
    """
    value = get_config_value("LLM_MODEL")
    if not value:
        raise RuntimeError("LLM_MODEL is not configured; set it in your config/.env")
    return value


def get_timeout_seconds() -> float:
    """Return the timeout (seconds) for a single LLM call.

    Requires LLM_TIMEOUT_SECONDS to be set in configuration.
    """
    raw = get_config_value("LLM_TIMEOUT_SECONDS")
    if not raw:
        raise RuntimeError("LLM_TIMEOUT_SECONDS is not configured; set it in your config/.env")
    try:
        return float(raw)
    except ValueError:
        return 60.0
