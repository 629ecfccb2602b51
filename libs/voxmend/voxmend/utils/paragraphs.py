"""Group transcript segments into paragraphs."""

from __future__ import annotations

from voxmend.models.segment import Paragraph, TranscriptSegment

_TERMINATORS = (".", "!", "?")


def count_words(text: str) -> int:
    return len((text or "").split())


def group_paragraphs(segments: list[TranscriptSegment], gap_s: float = 1.0) -> list[Paragraph]:
    """Split ordered segments into paragraphs.

    A paragraph closes after a segment whose text ends a sentence when the
    silence before the next segment is longer than `gap_s`. The last segment
    always closes the current paragraph.
    """
    paragraphs: list[Paragraph] = []
    current: Paragraph | None = None
    for i, seg in enumerate(segments):
        if current is None:
            current = Paragraph(id=f"paragraph_{len(paragraphs) + 1}", start=float(seg.start))
        current.segment_ids.append(seg.id)
        current.end = float(seg.end)

        is_last = i == len(segments) - 1
        ends_sentence = seg.text.strip().endswith(_TERMINATORS)
        gap = float(segments[i + 1].start) - float(seg.end) if not is_last else 0.0
        if is_last or (ends_sentence and gap > float(gap_s)):
            paragraphs.append(current)
            current = None
    return paragraphs
