"""File-backed store of revision prompt templates."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from voxmend.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "default-prompt.txt"

_PLACEHOLDER_RE = re.compile(r"\{\{([A-Z_]+)\}\}")

DEFAULT_PROMPT_TEMPLATE = """You are an expert in improving speech-to-text (STT) output. The text below was produced by a speech recognition program. Correct it so it reads naturally and accurately in context.

Chunk: {{CHUNK_INDEX}} / {{TOTAL_CHUNKS}}
Language: {{LANGUAGE}}

### Previous context (for reference only, do not return it):
{{PREVIOUS_CONTEXT}}

### Original STT text:
{{CHUNK_TEXT}}

### Next context (for reference only, do not return it):
{{NEXT_CONTEXT}}

### Instructions:
1. Fix unclear words or sentences so they fit the context.
2. Add or correct punctuation (commas, periods, etc.).
3. Remove repeated or filler words.
4. Fix spacing.
5. Make the sentence structure natural.
6. Preserve the meaning of the original text as much as possible.
7. Add an omitted subject where it is clearly implied.
8. Keep the register (formal or informal) consistent.
9. Preserve technical terms and proper nouns.

### Return only the corrected text:
"""


def render_prompt(
    template: str,
    *,
    chunk_text: str,
    chunk_index: int,
    total_chunks: int,
    language: str = "",
    previous_context: str = "",
    next_context: str = "",
) -> str:
    """Fill `{{...}}` placeholders. `chunk_index` is zero-based; the prompt shows it 1-based."""
    values = {
        "CHUNK_TEXT": chunk_text,
        "CHUNK_INDEX": str(int(chunk_index) + 1),
        "TOTAL_CHUNKS": str(int(total_chunks)),
        "LANGUAGE": language or "auto",
        "PREVIOUS_CONTEXT": previous_context or "(none)",
        "NEXT_CONTEXT": next_context or "(none)",
    }
    # One pass over the template: substituted text is never re-scanned.
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


class PromptTemplateStore:
    def __init__(self, prompts_dir: str | Path) -> None:
        self.prompts_dir = Path(prompts_dir)

    @staticmethod
    def _normalize_name(name: str) -> str:
        raw = str(name or "").strip()
        if not raw or "/" in raw or "\\" in raw or raw.startswith("."):
            raise ConfigurationError(f"invalid prompt template name: {name!r}")
        return raw if raw.endswith(".txt") else f"{raw}.txt"

    def ensure_default(self) -> Path:
        self.prompts_dir.mkdir(parents=True, exist_ok=True)
        path = self.prompts_dir / DEFAULT_TEMPLATE_NAME
        if not path.exists():
            path.write_text(DEFAULT_PROMPT_TEMPLATE, encoding="utf-8")
            logger.info("prompt default created (path=%s)", path)
        return path

    def list_templates(self) -> list[str]:
        try:
            names = sorted(p.name for p in self.prompts_dir.iterdir() if p.suffix == ".txt" and p.is_file())
        except OSError as exc:
            logger.warning("prompt list failed (dir=%s): %s", self.prompts_dir, exc)
            return [DEFAULT_TEMPLATE_NAME]
        return names or [DEFAULT_TEMPLATE_NAME]

    def get(self, name: str | None = None) -> str:
        """Return the template text, or the built-in default when it cannot be read."""
        try:
            path = self.prompts_dir / self._normalize_name(name or DEFAULT_TEMPLATE_NAME)
            return path.read_text(encoding="utf-8")
        except (ConfigurationError, OSError) as exc:
            logger.warning("prompt read failed, using default (name=%s): %s", name, exc)
            return DEFAULT_PROMPT_TEMPLATE

    def save(self, name: str, content: str) -> str:
        """Write a template and return its file name (`.txt` appended when missing)."""
        filename = self._normalize_name(name)
        self.prompts_dir.mkdir(parents=True, exist_ok=True)
        (self.prompts_dir / filename).write_text(content, encoding="utf-8")
        logger.info("prompt saved (name=%s, chars=%d)", filename, len(content))
        return filename
