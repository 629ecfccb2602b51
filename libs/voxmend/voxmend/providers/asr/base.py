"""Transcription provider base class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class ASRSegment:
    """A transcribed span with timing relative to the submitted file."""

    text: str
    start: float
    end: float
    confidence: float | None = None


@dataclass
class TranscriptionResult:
    text: str = ""
    segments: list[ASRSegment] = field(default_factory=list)
    # 0 when the provider does not report a duration.
    duration_s: float = 0.0
    language: str = ""


class TranscriptionProvider(ABC):
    """Abstract base class for speech-to-text providers."""

    @abstractmethod
    async def transcribe(
        self,
        audio_path: str,
        language: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe one audio file.

        Args:
            audio_path: Path to the audio file.
            language: Optional language hint.

        Returns:
            Full text plus timed segments.

        Raises:
            ProviderError: network, auth or quota failure.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        return None
