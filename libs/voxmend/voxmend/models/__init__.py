"""Core data models for voxmend."""

from voxmend.models.segment import (
    AudioSegment,
    Paragraph,
    RevisionOutcome,
    TextChunk,
    Transcript,
    TranscriptFragment,
    TranscriptSegment,
    UpgradedTranscript,
)

__all__ = [
    "AudioSegment",
    "Paragraph",
    "RevisionOutcome",
    "TextChunk",
    "Transcript",
    "TranscriptFragment",
    "TranscriptSegment",
    "UpgradedTranscript",
]
