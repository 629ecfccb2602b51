"""Wrap text chunks with snippets of their neighbours for revision calls."""

from __future__ import annotations

from voxmend.models.segment import TextChunk


def augment_chunks(raw_chunks: list[str], overlap_chars: int = 100) -> list[TextChunk]:
    """Attach up to `overlap_chars` of neighbour text on each side.

    The first chunk gets no left context and the last no right context.
    `raw_text` is left untouched; context only ever lives in `augmented_text`.
    """
    n = max(0, int(overlap_chars))
    out: list[TextChunk] = []
    for index, raw in enumerate(raw_chunks):
        left = ""
        right = ""
        if n and index > 0:
            prev = raw_chunks[index - 1]
            left = prev[max(0, len(prev) - n) :]
        if n and index < len(raw_chunks) - 1:
            right = raw_chunks[index + 1][:n]
        out.append(
            TextChunk(
                index=index,
                raw_text=raw,
                augmented_text=f"{left}{raw}{right}",
                left_context=left,
                right_context=right,
            )
        )
    return out
