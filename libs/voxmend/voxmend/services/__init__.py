"""Reusable services."""

from voxmend.services.prompt_store import (
    DEFAULT_PROMPT_TEMPLATE,
    DEFAULT_TEMPLATE_NAME,
    PromptTemplateStore,
    render_prompt,
)

__all__ = ["DEFAULT_PROMPT_TEMPLATE", "DEFAULT_TEMPLATE_NAME", "PromptTemplateStore", "render_prompt"]
