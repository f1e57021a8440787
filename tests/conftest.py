"""Shared test fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest

from scriptmill.config import ScriptmillConfig
from scriptmill.models import Transcript

_ENV_VARS = (
    "SCRIPTMILL_CONFIG",
    "SCRIPTMILL_LLM_API_KEY",
    "SCRIPTMILL_LLM_PROVIDER",
    "SCRIPTMILL_TRANSCRIPT_TOKEN",
    "LLM_API_KEY",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "SCRIPTMILL_WHISPER_API_KEY",
    "ANTHROPIC_API_KEY",
    "TRANSCRIPT_TOKEN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the developer's shell out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tmp_config_path(tmp_path: Path) -> Path:
    """Return a temporary config file path."""
    return tmp_path / "config.toml"


@pytest.fixture
def default_config() -> ScriptmillConfig:
    """Return a default config instance."""
    return ScriptmillConfig()


@pytest.fixture
def captions_only_config() -> ScriptmillConfig:
    """Config whose chain only uses the hosted caption service."""
    config = ScriptmillConfig()
    config.transcripts.providers = "captions"
    config.transcripts.captions_url = "https://captions.test/"
    return config


def _make_transcript(
    video_id: str,
    text: str = "",
    status: str = "ok",
    source_url: str | None = None,
) -> Transcript:
    return Transcript(
        video_id=video_id,
        source_url=source_url or f"https://youtu.be/{video_id}",
        text=text,
        status=status,  # type: ignore[arg-type]
        reason=None if status == "ok" else "all providers failed",
        provider="captions" if status == "ok" else None,
    )


@pytest.fixture
def make_transcript() -> Callable[..., Transcript]:
    """Factory for per-video transcripts."""
    return _make_transcript
