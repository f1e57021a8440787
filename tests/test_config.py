"""Tests for configuration loading."""

from pathlib import Path

import pytest

from scriptmill.config import (
    ScriptmillConfig,
    load_config,
    set_config_value,
    validate_config,
)


class TestDefaults:
    def test_default_config(self, default_config: ScriptmillConfig) -> None:
        assert default_config.server.max_batch_size == 10
        assert default_config.transcripts.provider_order == [
            "bulk",
            "captions",
            "library",
            "audio",
        ]
        assert default_config.transcripts.timeout == 30
        assert default_config.transcripts.max_chars == 100_000
        assert default_config.whisper.backend == "api"
        assert default_config.llm.provider == "groq"
        assert default_config.llm.temperature == 0.7
        assert default_config.llm.api_key == ""

    def test_missing_config_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.llm.max_tokens == 4000
        assert config.llm.api_key == ""


class TestFileLoading:
    def test_load_from_toml(self, tmp_config_path: Path) -> None:
        tmp_config_path.write_text(
            '[server]\nport = 9000\n\n'
            '[transcripts]\nproviders = "captions, audio"\n\n'
            '[llm]\nprovider = "openai"\ntemperature = 1\n'
        )
        config = load_config(tmp_config_path)
        assert config.server.port == 9000
        assert config.transcripts.provider_order == ["captions", "audio"]
        assert config.llm.provider == "openai"
        assert config.llm.temperature == 1.0
        assert isinstance(config.llm.temperature, float)
        # Unset values keep defaults
        assert config.server.host == "127.0.0.1"

    def test_unknown_keys_are_ignored(self, tmp_config_path: Path) -> None:
        tmp_config_path.write_text('[llm]\nflavour = "vanilla"\n')
        config = load_config(tmp_config_path)
        assert not hasattr(config.llm, "flavour")


class TestEnvOverrides:
    def test_env_overrides_file(
        self, tmp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        tmp_config_path.write_text('[llm]\nmax_tokens = 1000\n')
        monkeypatch.setenv("SCRIPTMILL_LLM_MAX_TOKENS", "2500")
        config = load_config(tmp_config_path)
        assert config.llm.max_tokens == 2500

    def test_transcript_token(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("TRANSCRIPT_TOKEN", "tok")
        config = load_config(tmp_path / "missing.toml")
        assert config.transcripts.token == "tok"

    def test_provider_specific_key(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("GROQ_API_KEY", "groq-key")
        monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
        config = load_config(tmp_path / "missing.toml")
        assert config.llm.api_key == "groq-key"
        assert config.whisper.api_key == "openai-key"

    def test_provider_selector_picks_matching_key(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("SCRIPTMILL_LLM_PROVIDER", "openai")
        monkeypatch.setenv("GROQ_API_KEY", "groq-key")
        monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
        config = load_config(tmp_path / "missing.toml")
        assert config.llm.api_key == "openai-key"

    def test_generic_key_wins(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("LLM_API_KEY", "generic")
        monkeypatch.setenv("GROQ_API_KEY", "groq-key")
        config = load_config(tmp_path / "missing.toml")
        assert config.llm.api_key == "generic"

    def test_file_key_is_not_overridden(
        self, tmp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        tmp_config_path.write_text('[llm]\napi_key = "from-file"\n')
        monkeypatch.setenv("GROQ_API_KEY", "groq-key")
        config = load_config(tmp_config_path)
        assert config.llm.api_key == "from-file"


class TestSetConfig:
    def test_set_config_value(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "config.toml"
        monkeypatch.setenv("SCRIPTMILL_CONFIG", str(config_path))
        set_config_value("llm.provider", "anthropic")
        config = load_config(config_path)
        assert config.llm.provider == "anthropic"

    def test_set_preserves_existing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "config.toml"
        monkeypatch.setenv("SCRIPTMILL_CONFIG", str(config_path))
        set_config_value("llm.provider", "openai")
        set_config_value("server.port", "9001")
        config = load_config(config_path)
        assert config.llm.provider == "openai"
        assert config.server.port == 9001

    def test_set_rejects_bare_key(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SCRIPTMILL_CONFIG", str(tmp_path / "config.toml"))
        with pytest.raises(ValueError, match="section.key"):
            set_config_value("provider", "openai")


class TestValidateConfig:
    def test_defaults_are_valid(self, default_config: ScriptmillConfig) -> None:
        validate_config(default_config)

    def test_unknown_provider(self, default_config: ScriptmillConfig) -> None:
        default_config.transcripts.providers = "captions,capitons"
        with pytest.raises(ValueError, match="Unknown transcript provider: capitons"):
            validate_config(default_config)

    def test_env_typo_is_caught(
        self, tmp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SCRIPTMILL_TRANSCRIPT_PROVIDERS", "bulk, telepathy")
        config = load_config(tmp_config_path)
        with pytest.raises(ValueError, match="telepathy"):
            validate_config(config)
