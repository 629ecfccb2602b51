"""Transcription provider implementations."""

from voxmend.providers.asr.base import ASRSegment, TranscriptionProvider, TranscriptionResult

__all__ = ["ASRSegment", "TranscriptionProvider", "TranscriptionResult"]
