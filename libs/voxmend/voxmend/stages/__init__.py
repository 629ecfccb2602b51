"""Processing stages."""

from voxmend.stages.enhance import ChunkEnhancer
from voxmend.stages.transcribe import ChunkTranscriber

__all__ = ["ChunkEnhancer", "ChunkTranscriber"]
