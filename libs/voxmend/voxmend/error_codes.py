"""Canonical error codes attached to voxmend errors."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"
    INVALID_MEDIA = "INVALID_MEDIA"

    SEGMENTATION_FAILED = "SEGMENTATION_FAILED"
    ASR_FAILED = "ASR_FAILED"
    ASR_TIMEOUT = "ASR_TIMEOUT"
    LLM_FAILED = "LLM_FAILED"
    LLM_TIMEOUT = "LLM_TIMEOUT"

    PROVIDER_FAILED = "PROVIDER_FAILED"
    REQUEST_ABANDONED = "REQUEST_ABANDONED"
