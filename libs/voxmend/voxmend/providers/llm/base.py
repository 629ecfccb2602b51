"""Revision (LLM) provider base class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Message:
    """A chat message."""

    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class LLMUsage:
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class RevisionProvider(ABC):
    """Rewrites one prompt-wrapped text chunk and returns the raw response."""

    @abstractmethod
    async def revise(self, prompt: str) -> str:
        """Send `prompt` and return the free-form response text.

        Raises:
            ProviderError: the call failed.
        """
        ...

    async def close(self) -> None:
        """Close any underlying resources (optional)."""
        return None
