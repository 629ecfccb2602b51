"""Serialization helpers for pipeline results stored or printed as JSON."""

from __future__ import annotations

from typing import Any

from voxmend.models.segment import (
    Paragraph,
    RevisionOutcome,
    Transcript,
    TranscriptSegment,
    UpgradedTranscript,
)


def serialize_transcript_segments(segs: list[TranscriptSegment] | tuple[TranscriptSegment, ...]) -> list[dict[str, Any]]:
    return [
        {
            "id": str(s.id),
            "text": str(s.text),
            "start": float(s.start),
            "end": float(s.end),
            "confidence": float(s.confidence),
        }
        for s in segs
    ]


def deserialize_transcript_segments(items: list[dict[str, Any]]) -> list[TranscriptSegment]:
    out: list[TranscriptSegment] = []
    for item in items:
        out.append(
            TranscriptSegment(
                id=str(item["id"]),
                text=str(item.get("text") or ""),
                start=float(item["start"]),
                end=float(item["end"]),
                confidence=float(item.get("confidence") or 0.0),
            )
        )
    return out


def serialize_transcript(transcript: Transcript) -> dict[str, Any]:
    return {
        "text": transcript.text,
        "segments": serialize_transcript_segments(transcript.segments),
        "language": transcript.language,
        "duration_s": float(transcript.duration_s),
        "failed_segments": int(transcript.failed_segments),
        "total_segments": int(transcript.total_segments),
        "word_count": int(transcript.word_count),
        "confidence": round(float(transcript.confidence), 4),
    }


def deserialize_transcript(data: dict[str, Any]) -> Transcript:
    return Transcript(
        text=str(data.get("text") or ""),
        segments=tuple(deserialize_transcript_segments(list(data.get("segments") or []))),
        language=str(data.get("language") or ""),
        duration_s=float(data.get("duration_s") or 0.0),
        failed_segments=int(data.get("failed_segments") or 0),
        total_segments=int(data.get("total_segments") or 0),
    )


def serialize_paragraphs(paragraphs: list[Paragraph]) -> list[dict[str, Any]]:
    return [
        {
            "id": p.id,
            "segment_ids": list(p.segment_ids),
            "start": float(p.start),
            "end": float(p.end),
        }
        for p in paragraphs
    ]


def serialize_revision_outcomes(outcomes: tuple[RevisionOutcome, ...] | list[RevisionOutcome]) -> list[dict[str, Any]]:
    return [
        {
            "index": int(o.index),
            "used_fallback": bool(o.used_fallback),
            "changed": bool(o.changed),
            "length": len(o.text),
        }
        for o in outcomes
    ]


def serialize_upgraded_transcript(result: UpgradedTranscript) -> dict[str, Any]:
    return {
        "upgraded_text": result.upgraded_text,
        "improved_percentage": float(result.improved_percentage),
        "original_length": int(result.original_length),
        "upgraded_length": int(result.upgraded_length),
        "chunk_count": int(result.chunk_count),
        "fallback_count": int(result.fallback_count),
        "template_used": result.template_name,
        "chunks": serialize_revision_outcomes(result.outcomes),
    }
