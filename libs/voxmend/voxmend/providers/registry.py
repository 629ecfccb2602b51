"""Provider factory and registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from voxmend.exceptions import ConfigurationError
from voxmend.providers.asr.base import TranscriptionProvider
from voxmend.providers.llm.base import RevisionProvider


def get_transcription_provider(config: Mapping[str, Any]) -> TranscriptionProvider:
    """Get transcription provider based on configuration."""
    provider_type = str(config.get("provider", "openai_whisper")).strip().lower()

    match provider_type:
        case "openai_whisper" | "whisper" | "openai":
            from voxmend.providers.asr.openai_whisper import OpenAIWhisperProvider

            base_url = str(config.get("base_url") or "").strip()
            if not base_url:
                raise ConfigurationError("Whisper provider requires base_url")
            return OpenAIWhisperProvider(
                base_url=base_url,
                api_key=str(config.get("api_key") or ""),
                model=str(config.get("model") or "whisper-1"),
                max_concurrent=int(config.get("max_concurrent", 4)),
                timeout=float(config.get("timeout", 300.0)),
                provider=provider_type,
            )
        case _:
            raise ConfigurationError(f"Unknown ASR provider: {provider_type}")


def get_revision_provider(config: Mapping[str, Any]) -> RevisionProvider:
    """Get revision (LLM) provider based on configuration."""
    provider_type = str(config.get("provider", "openai")).strip().lower()

    match provider_type:
        case "openai" | "openai_compat":
            from voxmend.providers.llm.openai_compat import (
                DEFAULT_SYSTEM_PROMPT,
                OpenAICompatProvider,
            )

            max_tokens = config.get("max_tokens")
            return OpenAICompatProvider(
                api_key=str(config.get("api_key") or ""),
                model=str(config.get("model") or "gpt-4o-mini"),
                base_url=config.get("base_url"),
                provider=provider_type,
                temperature=float(config.get("temperature", 0.3)),
                max_tokens=int(max_tokens) if max_tokens is not None else None,
                timeout=float(config.get("timeout", 120.0)),
                system_prompt=str(config.get("system_prompt") or DEFAULT_SYSTEM_PROMPT),
            )
        case _:
            raise ConfigurationError(f"Unknown LLM provider: {provider_type}")
