"""Pull the revised text out of a free-form revision response."""

from __future__ import annotations

import re

_THINK_BLOCK_RE = re.compile(r"<think>[\s\S]*?</think>\s*", re.IGNORECASE)
_THINK_TAG_RE = re.compile(r"</?think>\s*", re.IGNORECASE)

_FENCED_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n([\s\S]*?)\n?[ \t]*```")
_TAG_RE = re.compile(
    r"<(upgraded_text|revised_text|result)>([\s\S]*?)</\1>",
    re.IGNORECASE,
)
_LABEL_RE = re.compile(
    r"\A[ \t]*(?:\*\*)?(?:result|revised text|corrected text|upgraded text|output)(?:\*\*)?[ \t]*:[ \t]*",
    re.IGNORECASE,
)
# Instruction-echo preambles such as "Here is the corrected text:".
_ECHO_LINE_RE = re.compile(
    r"^[ \t]*(?:\*\*)?(?:here(?:'s| is| are)\s+)?(?:(?:the|your)\s+)?(?:corrected|revised|upgraded|improved|fixed)\s+"
    r"(?:stt\s+)?(?:text|version|transcript)[^:\n]*?(?:\*\*)?[ \t]*:[ \t]*$",
    re.IGNORECASE,
)


def _strip_think(text: str) -> str:
    text = _THINK_BLOCK_RE.sub("", text)
    return _THINK_TAG_RE.sub("", text).strip()


def extract_revised_text(response: str) -> str:
    """Return the revised text from a revision provider response.

    Tried in order:
    - a fenced code block (```text ... ```)
    - an `<upgraded_text>`, `<revised_text>` or `<result>` tag
    - a `Result:`-style label, taking everything after it
    - the whole response, minus a leading "Here is the corrected text:" line
    """
    text = _strip_think((response or "").strip())
    if not text:
        return ""

    match = _FENCED_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _TAG_RE.search(text)
    if match and match.group(2).strip():
        return match.group(2).strip()

    match = _LABEL_RE.search(text)
    if match and text[match.end() :].strip():
        return text[match.end() :].strip()

    lines = text.splitlines()
    if len(lines) > 1 and _ECHO_LINE_RE.match(lines[0]):
        return "\n".join(lines[1:]).strip()
    return text


def strip_context(text: str, left_context: str = "", right_context: str = "") -> str:
    """Drop neighbour context the provider echoed back around the revision."""
    out = (text or "").strip()
    left = (left_context or "").strip()
    right = (right_context or "").strip()
    if left and out.startswith(left):
        out = out[len(left) :].lstrip()
    if right and out.endswith(right):
        out = out[: len(out) - len(right)].rstrip()
    return out
