"""Two-stage pipeline: audio -> transcript, transcript -> revised transcript."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

from voxmend.config import Settings
from voxmend.exceptions import RequestAbandonedError
from voxmend.models.segment import Paragraph, Transcript, UpgradedTranscript
from voxmend.pipeline.context import ProgressReporter
from voxmend.providers.asr.base import TranscriptionProvider
from voxmend.providers.llm.base import RevisionProvider
from voxmend.providers.registry import get_revision_provider, get_transcription_provider
from voxmend.services.prompt_store import DEFAULT_TEMPLATE_NAME, PromptTemplateStore
from voxmend.stages.enhance import ChunkEnhancer
from voxmend.stages.transcribe import ChunkTranscriber
from voxmend.utils.audio_segmenter import AudioSegmenter
from voxmend.utils.context_overlap import augment_chunks
from voxmend.utils.improvement import improvement_percentage
from voxmend.utils.paragraphs import group_paragraphs
from voxmend.utils.sentence_chunker import split_into_chunks
from voxmend.utils.transcript_merger import MergeConfig, merge_fragments

logger = logging.getLogger(__name__)

CUSTOM_TEMPLATE_NAME = "custom"


def _check_abandoned(stage: str, abandoned: asyncio.Event | None) -> None:
    if abandoned is not None and abandoned.is_set():
        logger.info("pipeline abandoned (stage=%s)", stage)
        raise RequestAbandonedError(stage)


class TranscriptionPipeline:
    """Composes segmentation, transcription, merging and revision.

    Holds providers and configuration only; every call's state lives in its
    arguments and return value.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transcription_provider: TranscriptionProvider,
        revision_provider: RevisionProvider,
        segmenter: AudioSegmenter | None = None,
        prompt_store: PromptTemplateStore | None = None,
    ) -> None:
        self.settings = settings
        self.transcription_provider = transcription_provider
        self.revision_provider = revision_provider
        self.segmenter = segmenter or AudioSegmenter.from_settings(settings)
        self.prompt_store = prompt_store or PromptTemplateStore(settings.prompts_dir)
        self.merge_config = MergeConfig.from_settings(settings.merge)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranscriptionPipeline":
        store = PromptTemplateStore(settings.prompts_dir)
        store.ensure_default()
        return cls(
            settings,
            transcription_provider=get_transcription_provider(settings.asr_config()),
            revision_provider=get_revision_provider(settings.llm_config()),
            prompt_store=store,
        )

    async def transcribe_audio(
        self,
        file_path: str,
        language: str | None = None,
        *,
        progress_reporter: ProgressReporter | None = None,
        abandoned: asyncio.Event | None = None,
    ) -> Transcript:
        """Segment, transcribe and merge one audio file.

        Raises:
            FatalInputError: the source audio cannot be read.
            RequestAbandonedError: `abandoned` was set during the run.
        """
        run_id = uuid.uuid4().hex
        started_at = time.monotonic()
        max_bytes = int(self.settings.asr.max_segment_bytes)
        logger.info("transcribe_audio start (path=%s, run_id=%s, max_segment_bytes=%d)", file_path, run_id, max_bytes)

        transcriber = ChunkTranscriber(
            self.transcription_provider,
            concurrency=self.settings.concurrency_asr,
            call_timeout_s=self.settings.asr.call_timeout_s,
        )
        async with self.segmenter.open(file_path, max_bytes, run_id=run_id) as segments:
            total_duration_s = float(segments[-1].end) if segments else 0.0
            _check_abandoned("segment", abandoned)
            fragments = await transcriber.transcribe(
                segments,
                language,
                progress_reporter=progress_reporter,
                abandoned=abandoned,
            )
        _check_abandoned("transcribe", abandoned)

        transcript = merge_fragments(
            fragments,
            language=language or "",
            duration_s=total_duration_s,
            config=self.merge_config,
        )
        if transcript.degradation is not None:
            logger.warning("transcribe_audio degraded (run_id=%s): %s", run_id, transcript.degradation)
        logger.info(
            "transcribe_audio done (run_id=%s, segments=%d, words=%d, duration_s=%.2f, elapsed_s=%.2f)",
            run_id,
            len(fragments),
            transcript.word_count,
            transcript.duration_s,
            time.monotonic() - started_at,
        )
        return transcript

    async def upgrade_transcript(
        self,
        text: str,
        language: str | None = None,
        *,
        template_name: str | None = None,
        custom_prompt: str | None = None,
        progress_reporter: ProgressReporter | None = None,
        abandoned: asyncio.Event | None = None,
    ) -> UpgradedTranscript:
        """Chunk, revise and reassemble `text`.

        `custom_prompt` wins over `template_name`; an unreadable template falls
        back to the built-in default.
        """
        text = text or ""
        if custom_prompt:
            template, used_name = custom_prompt, CUSTOM_TEMPLATE_NAME
        else:
            used_name = template_name or DEFAULT_TEMPLATE_NAME
            template = self.prompt_store.get(used_name)

        chunking = self.settings.chunking
        raw_chunks = split_into_chunks(text, int(chunking.max_chunk_chars))
        if not raw_chunks:
            logger.info("upgrade_transcript skipped (empty text)")
            return UpgradedTranscript(
                upgraded_text=text,
                improved_percentage=0.0,
                original_text=text,
                template_name=used_name,
            )

        started_at = time.monotonic()
        chunks = augment_chunks(raw_chunks, int(chunking.overlap_chars))
        logger.info(
            "upgrade_transcript start (chars=%d, chunks=%d, template=%s)",
            len(text),
            len(chunks),
            used_name,
        )
        enhancer = ChunkEnhancer(
            self.revision_provider,
            batch_size=int(chunking.batch_size),
            min_length_ratio=float(chunking.min_length_ratio),
            call_timeout_s=self.settings.llm.call_timeout_s,
            prompt_template=template,
            change_threshold=float(chunking.change_threshold),
        )
        outcomes = await enhancer.enhance(
            chunks,
            language=language or "",
            progress_reporter=progress_reporter,
            abandoned=abandoned,
        )
        _check_abandoned("enhance", abandoned)

        upgraded_text = "".join(o.text for o in outcomes)
        result = UpgradedTranscript(
            upgraded_text=upgraded_text,
            improved_percentage=improvement_percentage(text, upgraded_text),
            original_text=text,
            outcomes=tuple(outcomes),
            template_name=used_name,
        )
        if result.degradation is not None:
            logger.warning("upgrade_transcript degraded: %s", result.degradation)
        logger.info(
            "upgrade_transcript done (chunks=%d, fallbacks=%d, improved_percentage=%.1f, elapsed_s=%.2f)",
            result.chunk_count,
            result.fallback_count,
            result.improved_percentage,
            time.monotonic() - started_at,
        )
        return result

    def paragraphs(self, transcript: Transcript, gap_s: float = 1.0) -> list[Paragraph]:
        return group_paragraphs(list(transcript.segments), gap_s=gap_s)

    async def close(self) -> None:
        await self.transcription_provider.close()
        await self.revision_provider.close()

    async def __aenter__(self) -> "TranscriptionPipeline":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
