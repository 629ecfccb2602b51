"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from voxmend.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _resolve_repo_path(value: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        return raw
    p = Path(raw)
    if p.is_absolute():
        return str(p)
    return str((_REPO_ROOT / p).resolve())


class ASRConfig(BaseSettings):
    """Speech-recognition provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ASR_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "openai_whisper"
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "whisper-1"
    timeout: float = 300.0  # per HTTP request (seconds)
    call_timeout_s: float | None = Field(
        default=None,
        gt=0,
        description="Upper bound for one segment transcription including retries.",
    )
    # OpenAI rejects uploads above 25 MB.
    max_segment_bytes: int = Field(default=24 * 1024 * 1024, ge=1024)


class LLMConfig(BaseSettings):
    """Revision (LLM) provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "openai"
    base_url: str | None = None
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    timeout: float = 120.0
    call_timeout_s: float | None = Field(default=None, gt=0)
    system_prompt: str = "You are an assistant that corrects and improves STT text."


class AudioConfig(BaseSettings):
    """Audio segmentation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIO_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    ffmpeg_concurrency: int = Field(default=4, ge=1)
    probe_timeout_s: float = Field(default=60.0, gt=0)
    # Constant-bitrate re-encode so every segment decodes on its own.
    segment_codec: str = "libmp3lame"
    segment_bitrate: str = "96k"
    segment_extension: str = "mp3"


class ChunkingConfig(BaseSettings):
    """Transcript chunking / revision batching configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHUNKING_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_chunk_chars: int = Field(
        default=1500,
        ge=1,
        description="Soft limit per chunk; a single long sentence may exceed it.",
    )
    overlap_chars: int = Field(default=100, ge=0)
    batch_size: int = Field(default=3, ge=1)
    min_length_ratio: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Revised text shorter than this share of the chunk is discarded.",
    )
    change_threshold: float = Field(default=0.95, gt=0.0, le=1.0)


class MergeSettings(BaseSettings):
    """Boundary de-duplication thresholds used when stitching fragments."""

    model_config = SettingsConfigDict(
        env_prefix="MERGE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_overlap_sentences: int = Field(default=3, ge=1)
    min_sentence_overlap_chars: int = Field(default=10, ge=0)
    max_ngram: int = Field(default=5, ge=1)
    min_ngram: int = Field(default=2, ge=1)
    min_phrase_overlap_chars: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _validate_ngrams(self) -> "MergeSettings":
        if int(self.min_ngram) > int(self.max_ngram):
            raise ConfigurationError("MERGE_MIN_NGRAM must be <= MERGE_MAX_NGRAM")
        return self


class ConcurrencyConfig(BaseSettings):
    """Concurrency limits by service type."""

    model_config = SettingsConfigDict(
        env_prefix="CONCURRENCY_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    asr: int = Field(default=4, ge=1)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)
    third_party_level: str = "WARNING"
    third_party_loggers: list[str] = Field(default_factory=lambda: ["httpx", "httpcore"])


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: str = "./data"
    log_dir: str = "./logs"
    prompts_dir: str = "./prompts"

    asr: ASRConfig = ASRConfig()
    llm: LLMConfig = LLMConfig()
    audio: AudioConfig = AudioConfig()
    chunking: ChunkingConfig = ChunkingConfig()
    merge: MergeSettings = MergeSettings()
    concurrency: ConcurrencyConfig = ConcurrencyConfig()

    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        # Scripts may run from any CWD; keep paths stable.
        self.data_dir = _resolve_repo_path(self.data_dir)
        self.log_dir = _resolve_repo_path(self.log_dir)
        self.prompts_dir = _resolve_repo_path(self.prompts_dir)
        return self

    def model_post_init(self, __context: Any) -> None:
        for attr in ("data_dir", "log_dir"):
            Path(getattr(self, attr)).mkdir(parents=True, exist_ok=True)

    @property
    def concurrency_asr(self) -> int:
        return int(self.concurrency.asr)

    @property
    def workdir(self) -> Path:
        return Path(self.data_dir) / "workdir"

    def llm_config(self) -> dict[str, Any]:
        """Return the revision provider config dict for the provider registry."""
        cfg = self.llm.model_dump()
        provider = str(cfg.get("provider") or "").strip().lower()
        if not provider:
            raise ConfigurationError("LLM provider is not configured (missing LLM_PROVIDER)")

        base_url = str(cfg.get("base_url") or "").strip()
        if provider in {"openai", "openai_compat"}:
            cfg["base_url"] = base_url or "https://api.openai.com/v1"
        elif base_url:
            cfg["base_url"] = base_url
        else:
            cfg.pop("base_url", None)
        return cfg

    def asr_config(self) -> dict[str, Any]:
        """Return the transcription provider config dict for the provider registry."""
        cfg = self.asr.model_dump()
        cfg["max_concurrent"] = max(1, int(self.concurrency_asr))
        return cfg
