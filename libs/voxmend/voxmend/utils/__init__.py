"""Utility helpers."""

from voxmend.utils.context_overlap import augment_chunks
from voxmend.utils.improvement import improvement_percentage, is_text_changed, similarity
from voxmend.utils.paragraphs import count_words, group_paragraphs
from voxmend.utils.revision_extract import extract_revised_text, strip_context
from voxmend.utils.sentence_chunker import split_into_chunks, split_sentences
from voxmend.utils.transcript_merger import MergeConfig, find_overlap, merge_fragments

__all__ = [
    "augment_chunks",
    "improvement_percentage",
    "is_text_changed",
    "similarity",
    "count_words",
    "group_paragraphs",
    "extract_revised_text",
    "strip_context",
    "split_into_chunks",
    "split_sentences",
    "MergeConfig",
    "find_overlap",
    "merge_fragments",
]
