"""Sentence-safe text chunking under a character budget.

Sentences end at `.`, `!` or `?` (optionally followed by closing quotes or
brackets) when the next character is whitespace or the end of the text. The
whitespace after a terminator stays with the sentence it follows, so joining
sentences (or chunks) reproduces the input exactly.
"""

from __future__ import annotations

import re

_SENTENCE_END_RE = re.compile(r"[.!?]+[\"'”’)\]}»]*(?:\s+|$)")


def sentence_spans(text: str) -> list[tuple[int, int]]:
    """Return `(start, end)` offsets of each sentence; spans tile `text`."""
    raw = text or ""
    if not raw.strip():
        return []

    spans: list[tuple[int, int]] = []
    cursor = 0
    for match in _SENTENCE_END_RE.finditer(raw):
        end = match.end()
        if end <= cursor:
            continue
        spans.append((cursor, end))
        cursor = end
    if cursor < len(raw):
        # Unterminated tail is a sentence of its own.
        spans.append((cursor, len(raw)))
    return spans


def split_sentences(text: str) -> list[str]:
    return [text[s:e] for s, e in sentence_spans(text)]


def split_into_chunks(text: str, max_chunk_chars: int = 1500) -> list[str]:
    """Greedily pack whole sentences into chunks of at most `max_chunk_chars`.

    The limit is soft: a single sentence longer than the budget becomes its
    own chunk rather than being cut.
    """
    if max_chunk_chars <= 0:
        raise ValueError("max_chunk_chars must be > 0")

    chunks: list[str] = []
    buffer = ""
    for sentence in split_sentences(text):
        if buffer and len(buffer) + len(sentence) > max_chunk_chars:
            chunks.append(buffer)
            buffer = sentence
        else:
            buffer += sentence
    if buffer:
        chunks.append(buffer)
    return chunks
