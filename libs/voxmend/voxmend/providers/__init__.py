"""Provider abstractions for external services."""

from voxmend.providers.registry import get_revision_provider, get_transcription_provider

__all__ = ["get_revision_provider", "get_transcription_provider"]
