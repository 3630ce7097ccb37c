"""Typed settings assembled from configuration values."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import TypeVar

from core.config import get_config_value, get_float_setting, get_int_setting
from core.quality import MatchMode, QualityPolicy

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

E = TypeVar("E", bound=Enum)


def _parse_csv(value: str | None, *, fallback: Iterable[str]) -> list[str]:
    if not value:
        return list(fallback)
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_choice(raw: str | None, enum_cls: type[E], default: E) -> E:
    if not raw:
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        return default


@dataclass(slots=True)
class AppSettings:
    app_env: str = "dev"
    service_name: str = "apply-io-api"
    app_version: str = "0.1.0"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    def cors_allowlist(self) -> list[str]:
        if self.app_env == "dev" and not self.cors_origins:
            return ["*"]
        return self.cors_origins


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Read-only knobs shared by every pipeline run."""

    min_emit_interval_ms: int = 2000
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    request_timeout_seconds: float = 300.0
    quality_policy: QualityPolicy = QualityPolicy.WARN
    quality_match_mode: MatchMode = MatchMode.SUBSTRING
    max_regenerations: int = 1
    profile_store_path: str | None = None

    @property
    def min_emit_interval_s(self) -> float:
        return self.min_emit_interval_ms / 1000.0


@lru_cache
def get_app_settings() -> AppSettings:
    return AppSettings(
        app_env=get_config_value("APP_ENV", "dev") or "dev",
        service_name=get_config_value("SERVICE_NAME", "apply-io-api") or "apply-io-api",
        app_version=get_config_value("APP_VERSION", "0.1.0") or "0.1.0",
        cors_origins=_parse_csv(
            get_config_value("CORS_ORIGINS"), fallback=("http://localhost:3000",)
        ),
    )


def get_pipeline_settings() -> PipelineSettings:
    return PipelineSettings(
        min_emit_interval_ms=max(0, get_int_setting("PROGRESS_MIN_INTERVAL_MS", 2000)),
        max_upload_bytes=get_int_setting("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        request_timeout_seconds=get_float_setting("REQUEST_TIMEOUT_SECONDS", 300.0),
        quality_policy=_parse_choice(
            get_config_value("QUALITY_POLICY"), QualityPolicy, QualityPolicy.WARN
        ),
        quality_match_mode=_parse_choice(
            get_config_value("QUALITY_MATCH_MODE"), MatchMode, MatchMode.SUBSTRING
        ),
        max_regenerations=max(0, get_int_setting("QUALITY_MAX_REGENERATIONS", 1)),
        profile_store_path=get_config_value("PROFILE_STORE_PATH") or None,
    )
