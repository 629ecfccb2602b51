"""Segment and transcript models for the transcription/upgrade pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from voxmend.exceptions import DegradedResultWarning


@dataclass(frozen=True)
class AudioSegment:
    """A time-bounded slice of the source audio sized for one ASR call."""

    index: int
    start: float
    end: float
    path: str
    # False when the segment is the caller's source file (fast path).
    owned: bool = True

    @property
    def duration(self) -> float:
        return max(0.0, float(self.end) - float(self.start))


@dataclass
class TranscriptSegment:
    id: str
    text: str
    start: float
    end: float
    confidence: float = 0.0


@dataclass
class TranscriptFragment:
    """Transcription result for one audio segment, before merging."""

    text: str = ""
    segments: list[TranscriptSegment] = field(default_factory=list)
    duration_s: float = 0.0
    language: str = ""
    failed: bool = False

    @classmethod
    def fallback(cls) -> "TranscriptFragment":
        return cls(text="", segments=[], duration_s=0.0, failed=True)


@dataclass(frozen=True)
class Transcript:
    text: str = ""
    segments: tuple[TranscriptSegment, ...] = ()
    language: str = ""
    duration_s: float = 0.0
    failed_segments: int = 0
    total_segments: int = 0

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def confidence(self) -> float:
        if not self.segments:
            return 0.0
        return sum(float(s.confidence) for s in self.segments) / len(self.segments)

    @property
    def degradation(self) -> DegradedResultWarning | None:
        if self.failed_segments <= 0:
            return None
        return DegradedResultWarning("transcribe", self.failed_segments, self.total_segments)


@dataclass
class TextChunk:
    """A sentence-aligned slice of a transcript plus neighbour context."""

    index: int
    raw_text: str
    augmented_text: str
    left_context: str = ""
    right_context: str = ""


@dataclass
class RevisionOutcome:
    index: int
    text: str
    used_fallback: bool = False
    changed: bool = False


@dataclass(frozen=True)
class UpgradedTranscript:
    upgraded_text: str
    improved_percentage: float
    original_text: str = ""
    outcomes: tuple[RevisionOutcome, ...] = ()
    template_name: str = "default-prompt.txt"

    @property
    def chunk_count(self) -> int:
        return len(self.outcomes)

    @property
    def fallback_count(self) -> int:
        return sum(1 for o in self.outcomes if o.used_fallback)

    @property
    def original_length(self) -> int:
        return len(self.original_text)

    @property
    def upgraded_length(self) -> int:
        return len(self.upgraded_text)

    @property
    def degradation(self) -> DegradedResultWarning | None:
        failed = self.fallback_count
        if failed <= 0:
            return None
        return DegradedResultWarning("upgrade", failed, self.chunk_count)


@dataclass
class Paragraph:
    """Group of consecutive transcript segments."""

    id: str
    segment_ids: list[str] = field(default_factory=list)
    start: float = 0.0
    end: float = 0.0
