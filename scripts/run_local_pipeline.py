from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from voxmend.config import Settings
from voxmend.models.serializers import (
    serialize_paragraphs,
    serialize_transcript,
    serialize_upgraded_transcript,
)
from voxmend.pipeline import TranscriptionPipeline
from voxmend.utils.logging_setup import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Transcribe and upgrade a local audio file.")
    parser.add_argument("--media", required=True, help="Path to local audio file")
    parser.add_argument("--language", default=None, help="Language hint (optional)")
    parser.add_argument("--template", default=None, help="Prompt template name under PROMPTS_DIR")
    parser.add_argument("--prompt-file", default=None, help="Use this file as a one-off prompt template")
    parser.add_argument("--skip-upgrade", action="store_true", help="Only transcribe")
    parser.add_argument(
        "--max-segment-bytes",
        type=int,
        default=None,
        help="Override ASR_MAX_SEGMENT_BYTES",
    )
    parser.add_argument("--output", default=None, help="Write JSON result here instead of stdout")
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    media_path = Path(args.media)
    if not media_path.exists():
        raise SystemExit(f"Media not found: {media_path}")

    settings = Settings()
    if args.max_segment_bytes is not None:
        settings.asr.max_segment_bytes = int(args.max_segment_bytes)
    setup_logging(settings)

    custom_prompt = Path(args.prompt_file).read_text(encoding="utf-8") if args.prompt_file else None

    async with TranscriptionPipeline.from_settings(settings) as pipeline:
        transcript = await pipeline.transcribe_audio(str(media_path), args.language)
        output: dict[str, object] = {
            "transcript": serialize_transcript(transcript),
            "paragraphs": serialize_paragraphs(pipeline.paragraphs(transcript)),
        }
        if not args.skip_upgrade:
            upgraded = await pipeline.upgrade_transcript(
                transcript.text,
                args.language or transcript.language,
                template_name=args.template,
                custom_prompt=custom_prompt,
            )
            output["upgrade"] = serialize_upgraded_transcript(upgraded)

    payload = json.dumps(output, ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"wrote {args.output}")
    else:
        print(payload)
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
