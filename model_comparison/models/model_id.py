"""ModelIdentifier value object.

Model identifiers are opaque tokens such as "openai/gpt-4o-mini",
"deepseek:chat" or "x-ai/grok-3:free". Equality is case-insensitive.
"""

from __future__ import annotations

import re

from model_comparison.core.constants import (
    FREE_TIER_SUFFIX,
    MAX_MODEL_ID_LENGTH,
    MIN_MODEL_ID_LENGTH,
)
from model_comparison.core.exceptions import ValidationError


_VALID_MODEL_ID = re.compile(r"^[a-zA-Z0-9_\-./:]+$")


class ModelIdentifier:
    """Validated, case-insensitive model identifier.

    An identifier may carry a provider prefix ("provider/name" or
    "provider:name") and a free-tier marker suffix (":free").

    Attributes:
        value: The trimmed identifier, original casing preserved.

    Example:
        >>> model = ModelIdentifier.create("OpenAI/GPT-4o-mini")
        >>> model == ModelIdentifier.create("openai/gpt-4o-mini")
        True
        >>> model.provider_prefix, model.base_model
        ('OpenAI', 'GPT-4o-mini')
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        """Wrap an already-validated value. Prefer ModelIdentifier.create()."""
        self._value = value

    @classmethod
    def create(cls, value: str | None) -> ModelIdentifier:
        """Validate and build a ModelIdentifier.

        Args:
            value: Raw identifier.

        Returns:
            ModelIdentifier holding the trimmed value.

        Raises:
            ValidationError: If the value is blank, outside 2-200 characters,
                or contains characters other than letters, digits and _-./:
        """
        if value is None or not value.strip():
            raise ValidationError("Model ID cannot be empty", field="model_id", value=value)

        trimmed = value.strip()
        if len(trimmed) < MIN_MODEL_ID_LENGTH:
            raise ValidationError(
                f"Model ID '{trimmed}' is too short (minimum {MIN_MODEL_ID_LENGTH} characters)",
                field="model_id",
                value=trimmed,
            )
        if len(trimmed) > MAX_MODEL_ID_LENGTH:
            raise ValidationError(
                f"Model ID is too long (maximum {MAX_MODEL_ID_LENGTH} characters)",
                field="model_id",
                value=trimmed,
            )
        if not _VALID_MODEL_ID.match(trimmed):
            raise ValidationError(
                f"Model ID '{trimmed}' contains invalid characters",
                field="model_id",
                value=trimmed,
            )
        return cls(trimmed)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def value(self) -> str:
        """Get the identifier text."""
        return self._value

    @property
    def provider_prefix(self) -> str | None:
        """Provider part of "provider/name" or "provider:name", if any."""
        separator = self._first_separator()
        if separator is None:
            return None
        return self._value[:separator]

    @property
    def base_model(self) -> str:
        """Identifier without its provider prefix."""
        separator = self._first_separator()
        if separator is None:
            return self._value
        return self._value[separator + 1 :]

    @property
    def has_provider_prefix(self) -> bool:
        return self.provider_prefix is not None

    @property
    def is_free(self) -> bool:
        """True when the identifier carries the ":free" marker."""
        return FREE_TIER_SUFFIX in self._value.lower()

    # -------------------------------------------------------------------------
    # Derived identifiers
    # -------------------------------------------------------------------------

    def without_free_suffix(self) -> str:
        """Return the identifier with every ":free" marker removed."""
        if not self.is_free:
            return self._value
        return re.sub(re.escape(FREE_TIER_SUFFIX), "", self._value, flags=re.IGNORECASE)

    def with_free_suffix(self) -> str:
        """Return the identifier with a ":free" marker appended if missing."""
        if self.is_free:
            return self._value
        return self._value + FREE_TIER_SUFFIX

    def matches(self, other: str | ModelIdentifier | None) -> bool:
        """Compare case-insensitively against a string or identifier."""
        if other is None:
            return False
        text = other.value if isinstance(other, ModelIdentifier) else other.strip()
        return bool(text) and self._value.lower() == text.lower()

    def _first_separator(self) -> int | None:
        # A slash takes precedence over a colon, so "x-ai/grok:free" splits at "/"
        for separator in ("/", ":"):
            index = self._value.find(separator)
            if index > 0:
                return index
        return None

    # -------------------------------------------------------------------------
    # Dunder methods
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModelIdentifier):
            return NotImplemented
        return self._value.lower() == other._value.lower()

    def __hash__(self) -> int:
        return hash(self._value.lower())

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"ModelIdentifier({self._value!r})"
