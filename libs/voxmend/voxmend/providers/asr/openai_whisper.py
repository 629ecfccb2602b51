"""Whisper transcription provider over the OpenAI-compatible audio API."""

from __future__ import annotations

import logging
import math
import mimetypes
import time
from pathlib import Path
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from voxmend.error_codes import ErrorCode
from voxmend.exceptions import ProviderError, RetryableProviderError
from voxmend.providers._retry import format_http_error, log_retry, wait_retry
from voxmend.providers.asr.base import ASRSegment, TranscriptionProvider, TranscriptionResult

logger = logging.getLogger(__name__)


def _confidence(raw: dict[str, Any]) -> float | None:
    # verbose_json carries avg_logprob rather than a probability.
    value = raw.get("confidence")
    if isinstance(value, (int, float)):
        return min(1.0, max(0.0, float(value)))
    logprob = raw.get("avg_logprob")
    if isinstance(logprob, (int, float)):
        return min(1.0, max(0.0, math.exp(float(logprob))))
    return None


def parse_verbose_json(result: dict[str, Any]) -> TranscriptionResult:
    segments: list[ASRSegment] = []
    for raw in result.get("segments") or []:
        if not isinstance(raw, dict):
            continue
        segments.append(
            ASRSegment(
                text=str(raw.get("text") or "").strip(),
                start=float(raw.get("start") or 0.0),
                end=float(raw.get("end") or 0.0),
                confidence=_confidence(raw),
            )
        )
    duration = result.get("duration")
    return TranscriptionResult(
        text=str(result.get("text") or "").strip(),
        segments=segments,
        duration_s=float(duration) if isinstance(duration, (int, float)) else 0.0,
        language=str(result.get("language") or ""),
    )


class OpenAIWhisperProvider(TranscriptionProvider):
    """Uploads one file per call to `/audio/transcriptions` (verbose_json)."""

    def __init__(
        self,
        base_url: str,
        model: str = "whisper-1",
        api_key: str = "",
        max_concurrent: int = 4,
        timeout: float = 300.0,
        provider: str = "openai_whisper",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            base_url: API base URL (e.g., https://api.openai.com/v1)
            model: Transcription model name
            api_key: Bearer token; omitted from headers when empty
            max_concurrent: Sizes the HTTP connection pool
            timeout: Per-request timeout in seconds
        """
        self.provider = provider
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.max_concurrent = max(1, int(max_concurrent))
        self.timeout = float(timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(
                    max_connections=self.max_concurrent,
                    max_keepalive_connections=max(1, self.max_concurrent // 2),
                ),
                transport=self._transport,
            )
        return self._client

    @retry(
        retry=retry_if_exception_type(RetryableProviderError),
        stop=stop_after_attempt(3),
        wait=wait_retry,
        before_sleep=log_retry(logger, "asr"),
        reraise=True,
    )
    async def _post(self, audio_path: str, language: str | None) -> dict[str, Any]:
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        filename = Path(audio_path).name
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        data = {
            "model": self.model,
            "response_format": "verbose_json",
        }
        if language:
            data["language"] = language

        try:
            with open(audio_path, "rb") as f:
                response = await client.post(
                    f"{self.base_url}/audio/transcriptions",
                    headers=headers,
                    files={"file": (filename, f, content_type)},
                    data=data,
                )
        except OSError as exc:
            raise ProviderError(self.provider, f"cannot read {audio_path}: {exc}", error_code=ErrorCode.ASR_FAILED) from exc
        except httpx.TimeoutException as exc:
            raise RetryableProviderError(self.provider, str(exc), error_code=ErrorCode.ASR_TIMEOUT) from exc
        except httpx.TransportError as exc:
            raise RetryableProviderError(self.provider, str(exc), error_code=ErrorCode.ASR_FAILED) from exc

        if response.status_code >= 400:
            message = format_http_error(response.status_code, response.reason_phrase, response.content)
            if response.status_code == 429 or response.status_code >= 500:
                raise RetryableProviderError(
                    self.provider,
                    message,
                    rate_limited=response.status_code == 429,
                    error_code=ErrorCode.ASR_FAILED,
                )
            raise ProviderError(self.provider, message, error_code=ErrorCode.ASR_FAILED)

        try:
            result = response.json()
        except ValueError as exc:
            raise ProviderError(self.provider, f"invalid JSON response: {exc}", error_code=ErrorCode.ASR_FAILED) from exc
        if not isinstance(result, dict):
            raise ProviderError(self.provider, "unexpected response shape", error_code=ErrorCode.ASR_FAILED)
        return result

    async def transcribe(
        self,
        audio_path: str,
        language: str | None = None,
    ) -> TranscriptionResult:
        started = time.perf_counter()
        result = parse_verbose_json(await self._post(audio_path, language))
        logger.info(
            "asr call (provider=%s, model=%s, latency_ms=%d, segments=%d, duration_s=%.2f)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
            len(result.segments),
            result.duration_s,
        )
        return result

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OpenAIWhisperProvider":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
