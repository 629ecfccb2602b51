"""Cheap positional text-divergence scores.

These are telemetry signals, not edit distances: characters are compared
index by index, so one inserted character near the start counts every
following position as changed.
"""

from __future__ import annotations

import re

_WS_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[.,;!?]")


def normalize_for_score(text: str) -> str:
    collapsed = _WS_RE.sub(" ", text or "")
    return _PUNCT_RE.sub("", collapsed).lower().strip()


def improvement_percentage(original: str, revised: str) -> float:
    """Return how much `revised` diverges from `original`, in `[0, 100]`.

    Identical texts score 0.0; fully disjoint texts of equal length score 100.0.
    """
    a = normalize_for_score(original)
    b = normalize_for_score(revised)
    shorter = min(len(a), len(b))
    changes = sum(1 for i in range(shorter) if a[i] != b[i])
    changes += abs(len(a) - len(b))
    pct = changes / max(1, len(a)) * 100.0
    return round(min(100.0, pct), 1)


def similarity(a: str, b: str) -> float:
    """Share of positions (over the longer text) holding the same character."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    same = sum(1 for x, y in zip(a, b) if x == y)
    return same / longest


def is_text_changed(original: str, revised: str, threshold: float = 0.95) -> bool:
    a = _WS_RE.sub(" ", original or "").strip()
    b = _WS_RE.sub(" ", revised or "").strip()
    return similarity(a, b) < float(threshold)
