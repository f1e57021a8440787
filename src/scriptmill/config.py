"""Configuration loading for scriptmill."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path("~/.config/scriptmill/config.toml").expanduser()

# Provider-specific key variables, consulted after LLM_API_KEY and
# SCRIPTMILL_LLM_API_KEY.
_LLM_KEY_ENV = {
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

KNOWN_PROVIDERS = ("bulk", "captions", "library", "audio")


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    max_batch_size: int = 10


@dataclass
class TranscriptConfig:
    """Transcript provider settings."""

    providers: str = "bulk,captions,library,audio"
    language: str = "en"
    captions_url: str = "https://youtube-transcript-api.deno.dev/"
    bulk_url: str = "https://www.youtube-transcript.io/api/transcripts"
    token: str = ""
    timeout: int = 30
    audio_timeout: int = 600
    max_chars: int = 100_000

    @property
    def provider_order(self) -> list[str]:
        return [p.strip() for p in self.providers.split(",") if p.strip()]


@dataclass
class WhisperConfig:
    """Speech-to-text settings for the audio transcription provider."""

    backend: str = "api"
    model: str = "whisper-1"
    local_model: str = "base"
    api_url: str = "https://api.openai.com/v1/audio/transcriptions"
    api_key: str = ""


@dataclass
class LLMConfig:
    """Completion endpoint settings."""

    provider: str = "groq"
    api_key: str = ""
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 4000
    max_input_chars: int = 100_000
    preview_chars: int = 2000
    timeout: int = 60
    public_fallback_url: str = ""


@dataclass
class ScriptmillConfig:
    """Top-level configuration for scriptmill."""

    server: ServerConfig = field(default_factory=ServerConfig)
    transcripts: TranscriptConfig = field(default_factory=TranscriptConfig)
    whisper: WhisperConfig = field(default_factory=WhisperConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)


def _apply_section(target: object, data: dict[str, object]) -> None:
    """Apply a dict of values onto a dataclass instance."""
    for key, value in data.items():
        if hasattr(target, key):
            expected_type = type(getattr(target, key))
            if expected_type is bool and isinstance(value, str):
                setattr(target, key, value.lower() in ("true", "1", "yes"))
            elif expected_type is int and isinstance(value, str):
                setattr(target, key, int(value))
            elif expected_type is float and isinstance(value, (str, int)):
                setattr(target, key, float(value))
            else:
                setattr(target, key, value)


def _apply_env_overrides(config: ScriptmillConfig) -> None:
    """Override config values from environment variables."""
    env_map: dict[str, tuple[object, str]] = {
        "SCRIPTMILL_HOST": (config.server, "host"),
        "SCRIPTMILL_PORT": (config.server, "port"),
        "SCRIPTMILL_MAX_BATCH_SIZE": (config.server, "max_batch_size"),
        "SCRIPTMILL_TRANSCRIPT_PROVIDERS": (config.transcripts, "providers"),
        "SCRIPTMILL_TRANSCRIPT_LANGUAGE": (config.transcripts, "language"),
        "SCRIPTMILL_CAPTIONS_URL": (config.transcripts, "captions_url"),
        "SCRIPTMILL_BULK_URL": (config.transcripts, "bulk_url"),
        "TRANSCRIPT_TOKEN": (config.transcripts, "token"),
        "SCRIPTMILL_TRANSCRIPT_TOKEN": (config.transcripts, "token"),
        "SCRIPTMILL_TRANSCRIPT_TIMEOUT": (config.transcripts, "timeout"),
        "SCRIPTMILL_AUDIO_TIMEOUT": (config.transcripts, "audio_timeout"),
        "SCRIPTMILL_MAX_CHARS": (config.transcripts, "max_chars"),
        "SCRIPTMILL_WHISPER_BACKEND": (config.whisper, "backend"),
        "SCRIPTMILL_WHISPER_MODEL": (config.whisper, "model"),
        "SCRIPTMILL_WHISPER_LOCAL_MODEL": (config.whisper, "local_model"),
        "SCRIPTMILL_WHISPER_API_URL": (config.whisper, "api_url"),
        "SCRIPTMILL_LLM_PROVIDER": (config.llm, "provider"),
        "SCRIPTMILL_LLM_MODEL": (config.llm, "model"),
        "SCRIPTMILL_LLM_TEMPERATURE": (config.llm, "temperature"),
        "SCRIPTMILL_LLM_MAX_TOKENS": (config.llm, "max_tokens"),
        "SCRIPTMILL_LLM_MAX_INPUT_CHARS": (config.llm, "max_input_chars"),
        "SCRIPTMILL_LLM_PREVIEW_CHARS": (config.llm, "preview_chars"),
        "SCRIPTMILL_LLM_TIMEOUT": (config.llm, "timeout"),
        "SCRIPTMILL_LLM_PUBLIC_FALLBACK_URL": (
            config.llm,
            "public_fallback_url",
        ),
    }
    for env_var, (section, attr) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _apply_section(section, {attr: value})

    if not config.llm.api_key:
        provider_var = _LLM_KEY_ENV.get(config.llm.provider, "")
        for env_var in ("SCRIPTMILL_LLM_API_KEY", "LLM_API_KEY", provider_var):
            value = os.environ.get(env_var) if env_var else None
            if value:
                config.llm.api_key = value
                break

    if not config.whisper.api_key:
        config.whisper.api_key = os.environ.get(
            "SCRIPTMILL_WHISPER_API_KEY"
        ) or os.environ.get("OPENAI_API_KEY", "")


def load_config(path: Path | None = None) -> ScriptmillConfig:
    """Load configuration from TOML file with env var overrides.

    Config file path resolution:
    1. Explicit ``path`` argument
    2. ``SCRIPTMILL_CONFIG`` environment variable
    3. ``~/.config/scriptmill/config.toml``
    """
    import tomllib

    config = ScriptmillConfig()

    config_path = path or Path(
        os.environ.get("SCRIPTMILL_CONFIG", str(_DEFAULT_CONFIG_PATH))
    )
    config_path = config_path.expanduser()

    if config_path.exists():
        logger.info("Loading config from %s", config_path)
        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        section_map: dict[str, object] = {
            "server": config.server,
            "transcripts": config.transcripts,
            "whisper": config.whisper,
            "llm": config.llm,
        }
        for section_name, section_obj in section_map.items():
            if section_name in data and isinstance(data[section_name], dict):
                _apply_section(section_obj, data[section_name])
    else:
        logger.debug("No config file found at %s, using defaults", config_path)

    _apply_env_overrides(config)
    return config


def validate_config(config: ScriptmillConfig) -> None:
    """Reject settings that would only fail once a batch is running."""
    for name in config.transcripts.provider_order:
        if name not in KNOWN_PROVIDERS:
            msg = (
                f"Unknown transcript provider: {name} "
                f"(expected one of {', '.join(KNOWN_PROVIDERS)})"
            )
            raise ValueError(msg)


def set_config_value(key: str, value: str) -> None:
    """Set a single config value in the TOML file.

    Args:
        key: Dotted key like ``llm.provider``.
        value: The value to set.
    """
    import tomllib

    config_path = Path(
        os.environ.get("SCRIPTMILL_CONFIG", str(_DEFAULT_CONFIG_PATH))
    ).expanduser()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    parts = key.split(".", 1)
    if len(parts) != 2:
        msg = f"Key must be in 'section.key' format, got: {key}"
        raise ValueError(msg)

    data: dict[str, dict[str, object]] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
        for k, v in raw.items():
            if isinstance(v, dict):
                data[k] = dict(v)

    section, attr = parts
    data.setdefault(section, {})[attr] = value

    _write_toml(config_path, data)
    logger.info("Set %s in %s", key, config_path)


def _write_toml(path: Path, data: dict[str, dict[str, object]]) -> None:
    """Write a simple nested dict as TOML."""
    lines: list[str] = []
    for section, values in data.items():
        lines.append(f"[{section}]")
        for k, v in values.items():
            if isinstance(v, bool):
                lines.append(f"{k} = {str(v).lower()}")
            elif isinstance(v, (int, float)):
                lines.append(f"{k} = {v}")
            else:
                escaped = str(v).replace("\\", "\\\\").replace('"', '\\"')
                lines.append(f'{k} = "{escaped}"')
        lines.append("")
    path.write_text("\n".join(lines))
