"""Prompt value object.

A Prompt is the immutable text sent to every model of a comparison.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from model_comparison.core.constants import (
    CHARS_PER_TOKEN_ESTIMATE,
    MAX_PROMPT_LENGTH,
    MIN_PROMPT_LENGTH,
)
from model_comparison.core.exceptions import ValidationError


@dataclass(frozen=True)
class Prompt:
    """Immutable prompt text, 1 to 50,000 characters.

    Build instances with Prompt.create(), which trims the text and rejects
    empty, whitespace-only and oversized input.

    Attributes:
        content: The trimmed prompt text.

    Example:
        >>> prompt = Prompt.create("  Ping  ")
        >>> prompt.content, prompt.estimated_token_count
        ('Ping', 1)
    """

    content: str

    @classmethod
    def create(cls, content: str | None) -> Prompt:
        """Validate and build a Prompt.

        Args:
            content: Raw prompt text.

        Returns:
            Prompt holding the trimmed text.

        Raises:
            ValidationError: If the text is empty, whitespace-only or longer
                than 50,000 characters.
        """
        if content is None or not content.strip():
            raise ValidationError("Prompt is required", field="prompt", value=content)

        if len(content) > MAX_PROMPT_LENGTH:
            raise ValidationError(
                f"Prompt must be between {MIN_PROMPT_LENGTH} and {MAX_PROMPT_LENGTH} characters",
                field="prompt",
                value=len(content),
            )

        return cls(content=content.strip())

    @property
    def length(self) -> int:
        """Number of characters in the prompt."""
        return len(self.content)

    @property
    def estimated_token_count(self) -> int:
        """Rough token estimate: ceil(length / 4)."""
        return estimate_token_count(self.content)

    def is_within_length_limit(self, max_length: int) -> bool:
        """Check whether the prompt fits in max_length characters."""
        return self.length <= max_length

    def truncated(self, max_length: int) -> str:
        """Return the prompt cut to max_length characters, ending in '...'."""
        if self.length <= max_length:
            return self.content
        return self.content[: max(0, max_length - 3)] + "..."

    def preview(self, max_lines: int = 3) -> str:
        """Return the first max_lines lines, with '...' if more follow."""
        lines = self.content.splitlines()
        preview_lines = lines[:max_lines]
        if len(lines) > max_lines:
            preview_lines.append("...")
        return "\n".join(preview_lines)

    def contains_keywords(self, *keywords: str) -> bool:
        """Check case-insensitively whether any keyword occurs in the prompt."""
        lowered = self.content.lower()
        return any(keyword.lower() in lowered for keyword in keywords if keyword)

    def __str__(self) -> str:
        return self.content


def estimate_token_count(text: str) -> int:
    """Estimate the token count of text (1 token ~ 4 characters).

    Args:
        text: Text to estimate.

    Returns:
        ceil(len(text) / 4), or 0 for empty text.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN_ESTIMATE)
