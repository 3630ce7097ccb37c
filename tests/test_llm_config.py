import pytest

from core import config
from core.quality import MatchMode, QualityPolicy
from core.settings import DEFAULT_MAX_UPLOAD_BYTES, get_pipeline_settings


@pytest.fixture(autouse=True)
def clear_config_cache(monkeypatch):
    for key in [
        "LLM_MODEL",
        "LLM_TIMEOUT_SECONDS",
        "PROGRESS_MIN_INTERVAL_MS",
        "MAX_UPLOAD_BYTES",
        "REQUEST_TIMEOUT_SECONDS",
        "QUALITY_POLICY",
        "QUALITY_MATCH_MODE",
        "QUALITY_MAX_REGENERATIONS",
        "PROFILE_STORE_PATH",
    ]:
        monkeypatch.delenv(key, raising=False)
    config._config_adapter.cache_clear()  # type: ignore[attr-defined]
    yield


def test_get_default_model_requires_llm_model(monkeypatch):
    # No LLM_MODEL → must raise, no implicit defaults.
    with pytest.raises(RuntimeError):
        config.get_default_model()


def test_get_default_model_reads_llm_model(monkeypatch):
    monkeypatch.setenv("LLM_MODEL", "gemini-1.5-pro")
    assert config.get_default_model() == "gemini-1.5-pro"


def test_get_timeout_seconds_requires_config(monkeypatch):
    with pytest.raises(RuntimeError):
        config.get_timeout_seconds()


def test_get_timeout_seconds_parses_value(monkeypatch):
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "90")
    assert config.get_timeout_seconds() == 90.0


def test_dotenv_file_is_read_after_environment(monkeypatch, tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "# comment\nexport LLM_MODEL='from-file'\nQUALITY_POLICY=\"reject\"\n", encoding="utf-8"
    )
    monkeypatch.setenv("DOTENV_PATH", str(dotenv))
    config._config_adapter.cache_clear()  # type: ignore[attr-defined]
    assert config.get_default_model() == "from-file"

    monkeypatch.setenv("LLM_MODEL", "from-env")
    assert config.get_default_model() == "from-env"
    assert get_pipeline_settings().quality_policy is QualityPolicy.REJECT


def test_pipeline_settings_defaults():
    settings = get_pipeline_settings()
    assert settings.min_emit_interval_ms == 2000
    assert settings.min_emit_interval_s == 2.0
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 10 * 1024 * 1024
    assert settings.request_timeout_seconds == 300.0
    assert settings.quality_policy is QualityPolicy.WARN
    assert settings.quality_match_mode is MatchMode.SUBSTRING
    assert settings.max_regenerations == 1
    assert settings.profile_store_path is None


def test_pipeline_settings_overrides(monkeypatch):
    monkeypatch.setenv("PROGRESS_MIN_INTERVAL_MS", "500")
    monkeypatch.setenv("QUALITY_POLICY", "Regenerate")
    monkeypatch.setenv("QUALITY_MATCH_MODE", "word_boundary")
    monkeypatch.setenv("QUALITY_MAX_REGENERATIONS", "3")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "12.5")
    settings = get_pipeline_settings()
    assert settings.min_emit_interval_s == 0.5
    assert settings.quality_policy is QualityPolicy.REGENERATE
    assert settings.quality_match_mode is MatchMode.WORD_BOUNDARY
    assert settings.max_regenerations == 3
    assert settings.request_timeout_seconds == 12.5


def test_unknown_policy_falls_back_to_warn(monkeypatch):
    monkeypatch.setenv("QUALITY_POLICY", "explode")
    monkeypatch.setenv("PROGRESS_MIN_INTERVAL_MS", "-5")
    settings = get_pipeline_settings()
    assert settings.quality_policy is QualityPolicy.WARN
    assert settings.min_emit_interval_ms == 0
