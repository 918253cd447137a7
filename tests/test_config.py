"""Tests for configuration, fingerprints and the error taxonomy."""

import json

import pytest

from core.config import (
    CleaningMethod,
    FetchMethod,
    PipelineConfig,
    ProviderConfig,
    Settings,
    build_pipeline_config,
    get_text_limit,
    load_config,
)
from core.errors import (
    BadRequestError,
    ExtractionFailedError,
    FetchTimeoutError,
    InsufficientContentError,
    NetworkUnreachableError,
    PipelineError,
    ProviderUnavailableError,
    RemoteBlockedError,
    RemoteFetchFailedError,
    ReprocessNotFoundError,
)
from core.ids import config_fingerprint


class TestTextLimit:
    """Model character budget."""

    def test_local_budget_follows_context_window(self, settings):
        assert get_text_limit("ollama", 8192, settings) == (8192 - 2048) * 3

    def test_local_budget_has_floor(self, settings):
        assert get_text_limit("ollama", 2048, settings) == 4000

    def test_remote_budget(self, settings):
        assert get_text_limit("openai", 8192, settings) == 60000
        assert get_text_limit("deepseek", 128000, settings) == 60000


class TestProviderConfig:
    """Caller model selection."""

    def test_defaults(self):
        selection = ProviderConfig(provider="ollama")

        assert selection.model_name == "llama3.2"
        assert selection.num_ctx == 8192

    def test_camel_case_input(self):
        selection = ProviderConfig.model_validate(
            {"provider": "ollama", "model": "qwen2.5", "numCtx": 16384}
        )

        assert selection.num_ctx == 16384

    def test_context_window_must_be_positive(self):
        with pytest.raises(ValueError):
            ProviderConfig(provider="ollama", context_window=0)


class TestConfigFingerprint:
    """Identity of a pipeline configuration."""

    def test_equal_configs_hash_equally(self, settings):
        selection = ProviderConfig(provider="ollama", model="llama3.2")
        first = build_pipeline_config(selection, CleaningMethod.READABILITY, settings)
        second = build_pipeline_config(selection, CleaningMethod.READABILITY, settings)

        assert first is not second
        assert config_fingerprint(first) == config_fingerprint(second)
        assert len(config_fingerprint(first)) == 64

    def test_field_order_does_not_matter(self):
        fields = {
            "cleaner": "readability",
            "model": "llama3.2",
            "provider": "ollama",
            "context_window": 8192,
            "temperature": 0.1,
            "max_input_chars": 18432,
        }
        reordered = dict(reversed(list(fields.items())))

        assert config_fingerprint(PipelineConfig(**fields)) == config_fingerprint(
            PipelineConfig(**reordered)
        )

    @pytest.mark.parametrize(
        "selection, cleaner",
        [
            (ProviderConfig(provider="ollama", model="qwen2.5"), CleaningMethod.READABILITY),
            (ProviderConfig(provider="ollama", model="llama3.2"), CleaningMethod.HTML_STRIP),
            (
                ProviderConfig(provider="ollama", model="llama3.2", context_window=4096),
                CleaningMethod.READABILITY,
            ),
        ],
    )
    def test_any_field_change_changes_hash(self, settings, selection, cleaner):
        baseline = build_pipeline_config(
            ProviderConfig(provider="ollama", model="llama3.2"),
            CleaningMethod.READABILITY,
            settings,
        )
        changed = build_pipeline_config(selection, cleaner, settings)

        assert config_fingerprint(changed) != config_fingerprint(baseline)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("temperature", 0.1000001),
            ("temperature", 0.0),
            ("max_input_chars", 18433),
            ("provider", "openai"),
            ("context_window", 8193),
        ],
    )
    def test_single_field_change_changes_hash(self, field, value):
        fields = {
            "cleaner": "readability",
            "model": "llama3.2",
            "provider": "ollama",
            "context_window": 8192,
            "temperature": 0.1,
            "max_input_chars": 18432,
        }
        baseline = PipelineConfig(**fields)
        changed = PipelineConfig(**{**fields, field: value})

        assert config_fingerprint(changed) != config_fingerprint(baseline)

    def test_serialization_is_canonical(self, settings):
        config = build_pipeline_config(
            ProviderConfig(provider="openai", model="gpt-4o-mini"),
            CleaningMethod.HTML_STRIP,
            settings,
        )
        serialized = config.serialize()

        assert " " not in serialized
        assert list(json.loads(serialized)) == sorted(json.loads(serialized))
        assert json.loads(serialized)["cleaner"] == "html-strip"

    def test_config_is_immutable(self, settings):
        config = build_pipeline_config(
            ProviderConfig(provider="ollama"), CleaningMethod.READABILITY, settings
        )

        with pytest.raises(ValueError):
            config.model = "other"


class TestLoadConfig:
    """YAML defaults and environment settings."""

    def test_missing_file_uses_builtin_defaults(self, tmp_path):
        settings, defaults = load_config(tmp_path / "missing.yaml", Settings(_env_file=None))

        assert defaults.provider.provider == "ollama"
        assert defaults.provider.model_name == "llama3.2"
        assert defaults.pipeline.cleaning_method == CleaningMethod.READABILITY
        assert defaults.pipeline.fetch_method == FetchMethod.STANDARD_WITH_FALLBACK
        assert settings.min_content_chars == 100
        assert settings.meaningful_content_chars == 500

    def test_yaml_defaults(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text(
            "provider:\n"
            "  provider: openai\n"
            "  model: gpt-4o-mini\n"
            "pipeline:\n"
            "  cleaningMethod: html-strip\n"
            "  fetchMethod: always-playwright\n"
        )

        _, defaults = load_config(path, Settings(_env_file=None))

        assert defaults.provider.provider == "openai"
        assert defaults.pipeline.cleaning_method == CleaningMethod.HTML_STRIP
        assert defaults.pipeline.fetch_method == FetchMethod.ALWAYS_PLAYWRIGHT

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("MIN_CONTENT_CHARS", "150")
        monkeypatch.setenv("VERBOSE", "true")

        settings = Settings(_env_file=None)

        assert settings.min_content_chars == 150
        assert settings.verbose == 2


class TestErrors:
    """Caller-facing error taxonomy."""

    @pytest.mark.parametrize(
        "error_cls, status",
        [
            (BadRequestError, 400),
            (RemoteBlockedError, 422),
            (RemoteFetchFailedError, 422),
            (FetchTimeoutError, 504),
            (NetworkUnreachableError, 502),
            (InsufficientContentError, 422),
            (ReprocessNotFoundError, 404),
            (ExtractionFailedError, 500),
        ],
    )
    def test_status_codes(self, error_cls, status):
        error = error_cls("message")

        assert isinstance(error, PipelineError)
        assert error.status_code == status
        assert error.to_dict() == {"error": "message"}

    def test_provider_unavailable(self):
        error = ProviderUnavailableError("deepseek")

        assert error.status_code == 503
        assert error.provider == "deepseek"
        assert "deepseek" in error.message
