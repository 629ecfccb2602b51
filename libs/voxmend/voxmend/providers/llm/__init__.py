"""Revision provider implementations."""

from voxmend.providers.llm.base import LLMUsage, Message, RevisionProvider

__all__ = ["LLMUsage", "Message", "RevisionProvider"]
