"""Stitch per-segment transcription fragments into one transcript.

Adjacent audio segments are cut at approximate points, so the provider often
transcribes the same few words on both sides of a seam. `find_overlap` detects
that duplicated prefix and `merge_fragments` drops it before joining.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from voxmend.config import MergeSettings
from voxmend.models.segment import Transcript, TranscriptFragment, TranscriptSegment
from voxmend.utils.sentence_chunker import sentence_spans

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class MergeConfig:
    """Thresholds for boundary de-duplication (best-effort heuristic)."""

    max_overlap_sentences: int = 3
    min_sentence_overlap_chars: int = 10
    max_ngram: int = 5
    min_ngram: int = 2
    min_phrase_overlap_chars: int = 5

    @classmethod
    def from_settings(cls, settings: MergeSettings) -> "MergeConfig":
        return cls(
            max_overlap_sentences=int(settings.max_overlap_sentences),
            min_sentence_overlap_chars=int(settings.min_sentence_overlap_chars),
            max_ngram=int(settings.max_ngram),
            min_ngram=int(settings.min_ngram),
            min_phrase_overlap_chars=int(settings.min_phrase_overlap_chars),
        )


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _sentence_overlap(prev_text: str, next_text: str, config: MergeConfig) -> int:
    prev_spans = sentence_spans(prev_text)
    next_spans = sentence_spans(next_text)
    max_k = min(int(config.max_overlap_sentences), len(prev_spans), len(next_spans))
    for k in range(max_k, 0, -1):
        tail = _collapse(prev_text[prev_spans[-k][0] :])
        head_end = next_spans[k - 1][1]
        head = _collapse(next_text[:head_end])
        if len(head) > int(config.min_sentence_overlap_chars) and tail == head:
            return head_end
    return 0


def _ngram_overlap(prev_text: str, next_text: str, config: MergeConfig) -> int:
    prev_words = prev_text.split()
    next_words = list(_WORD_RE.finditer(next_text))
    max_n = min(int(config.max_ngram), len(prev_words), len(next_words))
    for n in range(max_n, max(1, int(config.min_ngram)) - 1, -1):
        tail = prev_words[-n:]
        if tail != [m.group() for m in next_words[:n]]:
            continue
        if len(" ".join(tail)) > int(config.min_phrase_overlap_chars):
            return next_words[n - 1].end()
    return 0


def find_overlap(prev_text: str, next_text: str, config: MergeConfig | None = None) -> int:
    """Return how many leading chars of `next_text` repeat the end of `prev_text`.

    Whole sentences are tried first (up to `max_overlap_sentences`, longest
    window first); failing that, word n-grams from `max_ngram` down to
    `min_ngram`. 0 means no overlap was found.
    """
    if not (prev_text or "").strip() or not (next_text or "").strip():
        return 0
    cfg = config or MergeConfig()
    return _sentence_overlap(prev_text, next_text, cfg) or _ngram_overlap(prev_text, next_text, cfg)


def _join(left: str, right: str) -> str:
    if not left:
        return right
    if not right:
        return left
    if left[-1].isspace() or right[0].isspace():
        return left + right
    return f"{left} {right}"


def merge_fragments(
    fragments: list[TranscriptFragment],
    *,
    language: str = "",
    duration_s: float | None = None,
    config: MergeConfig | None = None,
) -> Transcript:
    """Merge ordered fragments into a single `Transcript`.

    Segment timestamps are shifted by the summed duration of the preceding
    fragments and ids are renumbered `segment_1..segment_n`.
    """
    if not fragments:
        return Transcript(text="", segments=(), language=language, duration_s=0.0)

    cfg = config or MergeConfig()
    text = ""
    merged: list[TranscriptSegment] = []
    offset_s = 0.0
    overlaps = 0
    failed = 0

    for i, fragment in enumerate(fragments):
        if fragment.failed:
            failed += 1
        piece = fragment.text or ""
        if i > 0 and piece:
            skip = find_overlap(fragments[i - 1].text or "", piece, cfg)
            if skip:
                overlaps += 1
                logger.debug("merge overlap (fragment=%d, skipped_chars=%d)", i, skip)
                piece = piece[skip:]
        text = _join(text, piece)

        for seg in fragment.segments:
            merged.append(
                TranscriptSegment(
                    id=f"segment_{len(merged) + 1}",
                    text=seg.text,
                    start=float(seg.start) + offset_s,
                    end=float(seg.end) + offset_s,
                    confidence=float(seg.confidence),
                )
            )
        offset_s += max(0.0, float(fragment.duration_s))

    if not language:
        language = next((f.language for f in fragments if f.language), "")

    total_s = float(duration_s) if duration_s is not None else offset_s
    logger.info(
        "merge done (fragments=%d, failed=%d, overlaps=%d, segments=%d, chars=%d)",
        len(fragments),
        failed,
        overlaps,
        len(merged),
        len(text),
    )
    return Transcript(
        text=text,
        segments=tuple(merged),
        language=language,
        duration_s=total_s,
        failed_segments=failed,
        total_segments=len(fragments),
    )
