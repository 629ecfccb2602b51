"""Revision stage: rewrite context-augmented text chunks in bounded batches."""

from __future__ import annotations

import asyncio
import logging
import time

from voxmend.models.segment import RevisionOutcome, TextChunk
from voxmend.pipeline.context import ProgressReporter, StageProgress
from voxmend.providers.llm.base import RevisionProvider
from voxmend.services.prompt_store import DEFAULT_PROMPT_TEMPLATE, render_prompt
from voxmend.utils.improvement import is_text_changed
from voxmend.utils.revision_extract import extract_revised_text, strip_context

logger = logging.getLogger(__name__)

_CONTEXT_SLOTS = ("{{PREVIOUS_CONTEXT}}", "{{NEXT_CONTEXT}}")


def _rewrap(raw: str, revised: str) -> str:
    """Put the raw chunk's surrounding whitespace back around `revised`."""
    stripped = raw.strip()
    if not stripped:
        return raw
    lead = raw[: len(raw) - len(raw.lstrip())]
    trail = raw[len(raw.rstrip()) :]
    return f"{lead}{revised}{trail}"


class ChunkEnhancer:
    """Sends each chunk to a revision provider, batch by batch.

    A batch runs concurrently and is awaited in full before the next starts.
    Any failure or implausible response falls back to the chunk's raw text.
    """

    name = "enhance"

    def __init__(
        self,
        provider: RevisionProvider,
        *,
        batch_size: int = 3,
        min_length_ratio: float = 0.5,
        call_timeout_s: float | None = None,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
        change_threshold: float = 0.95,
    ) -> None:
        self.provider = provider
        self.batch_size = max(1, int(batch_size))
        self.min_length_ratio = float(min_length_ratio)
        self.call_timeout_s = call_timeout_s
        self.prompt_template = prompt_template
        self.change_threshold = float(change_threshold)

    def build_prompt(self, chunk: TextChunk, total: int, language: str = "") -> str:
        # Templates without context slots get the augmented text inline instead.
        has_slots = any(slot in self.prompt_template for slot in _CONTEXT_SLOTS)
        chunk_text = chunk.raw_text if has_slots else chunk.augmented_text
        return render_prompt(
            self.prompt_template,
            chunk_text=chunk_text.strip(),
            chunk_index=chunk.index,
            total_chunks=total,
            language=language,
            previous_context=chunk.left_context.strip(),
            next_context=chunk.right_context.strip(),
        )

    def _fallback(self, chunk: TextChunk) -> RevisionOutcome:
        return RevisionOutcome(index=chunk.index, text=chunk.raw_text, used_fallback=True)

    async def _revise_one(self, chunk: TextChunk, total: int, language: str) -> RevisionOutcome:
        prompt = self.build_prompt(chunk, total, language)
        try:
            response = await asyncio.wait_for(
                self.provider.revise(prompt),
                timeout=self.call_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "enhance timeout, using original chunk (index=%d, timeout_s=%s)",
                chunk.index,
                self.call_timeout_s,
            )
            return self._fallback(chunk)
        except Exception as exc:
            logger.warning("enhance failed, using original chunk (index=%d, error=%s)", chunk.index, exc)
            return self._fallback(chunk)

        revised = strip_context(
            extract_revised_text(response or ""),
            chunk.left_context,
            chunk.right_context,
        )
        min_chars = self.min_length_ratio * len(chunk.raw_text)
        if not revised or len(revised) < min_chars:
            logger.warning(
                "enhance implausible output, using original chunk (index=%d, raw_chars=%d, revised_chars=%d)",
                chunk.index,
                len(chunk.raw_text),
                len(revised),
            )
            return self._fallback(chunk)

        return RevisionOutcome(
            index=chunk.index,
            text=_rewrap(chunk.raw_text, revised),
            used_fallback=False,
            changed=is_text_changed(chunk.raw_text, revised, self.change_threshold),
        )

    async def enhance(
        self,
        chunks: list[TextChunk],
        *,
        language: str = "",
        progress_reporter: ProgressReporter | None = None,
        abandoned: asyncio.Event | None = None,
    ) -> list[RevisionOutcome]:
        total = len(chunks)
        outcomes: list[RevisionOutcome | None] = [None] * total
        progress = StageProgress(self.name, total, progress_reporter, label="chunks")
        started_at = time.monotonic()
        logger.info("enhance start (chunks=%d, batch_size=%d)", total, self.batch_size)
        await progress.start()

        async def _run(position: int, chunk: TextChunk) -> None:
            outcome = await self._revise_one(chunk, total, language)
            outcomes[position] = outcome
            await progress.advance(failed=outcome.used_fallback)

        for batch_start in range(0, total, self.batch_size):
            if abandoned is not None and abandoned.is_set():
                logger.info("enhance stopped, request abandoned (dispatched=%d, total=%d)", batch_start, total)
                break
            batch = chunks[batch_start : batch_start + self.batch_size]
            await asyncio.gather(*[_run(batch_start + i, c) for i, c in enumerate(batch)])

        out = [o if o is not None else self._fallback(chunks[i]) for i, o in enumerate(outcomes)]
        logger.info(
            "enhance done (chunks=%d, fallbacks=%d, changed=%d, elapsed_s=%.2f)",
            total,
            sum(1 for o in out if o.used_fallback),
            sum(1 for o in out if o.changed),
            time.monotonic() - started_at,
        )
        return out
