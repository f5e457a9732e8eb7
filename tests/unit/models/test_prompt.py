"""Tests for the Prompt value object."""

import pytest

from model_comparison.core.exceptions import ValidationError
from model_comparison.models.prompt import Prompt, estimate_token_count


pytestmark = pytest.mark.unit


class TestPromptCreate:
    """Test Prompt.create() validation."""

    def test_trims_content(self) -> None:
        """Surrounding whitespace is removed."""
        assert Prompt.create("  Ping \n").content == "Ping"

    @pytest.mark.parametrize("content", [None, "", "   ", "\n\t"])
    def test_rejects_empty(self, content: str | None) -> None:
        """Empty and whitespace-only prompts are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Prompt.create(content)
        assert exc_info.value.message == "Prompt is required"
        assert exc_info.value.field == "prompt"

    def test_accepts_maximum_length(self) -> None:
        """Exactly 50,000 characters is allowed."""
        assert Prompt.create("a" * 50_000).length == 50_000

    def test_rejects_over_maximum_length(self) -> None:
        """50,001 characters is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Prompt.create("a" * 50_001)
        assert "between 1 and 50000" in exc_info.value.message

    def test_is_immutable(self) -> None:
        """Prompt fields cannot be reassigned."""
        prompt = Prompt.create("Ping")
        with pytest.raises(AttributeError):
            prompt.content = "Pong"  # type: ignore[misc]


class TestPromptQueries:
    """Test derived values."""

    @pytest.mark.parametrize(("length", "tokens"), [(1, 1), (4, 1), (5, 2), (8, 2), (2001, 501)])
    def test_estimated_token_count(self, length: int, tokens: int) -> None:
        """Token estimate is ceil(length / 4)."""
        assert Prompt.create("x" * length).estimated_token_count == tokens

    def test_estimate_token_count_empty(self) -> None:
        """Empty text has no tokens."""
        assert estimate_token_count("") == 0

    def test_is_within_length_limit(self) -> None:
        """Limit check is inclusive."""
        prompt = Prompt.create("abcd")
        assert prompt.is_within_length_limit(4)
        assert not prompt.is_within_length_limit(3)

    def test_truncated(self) -> None:
        """Long prompts are cut and end in an ellipsis."""
        prompt = Prompt.create("abcdefghij")
        assert prompt.truncated(20) == "abcdefghij"
        assert prompt.truncated(6) == "abc..."

    def test_preview(self) -> None:
        """Preview keeps the first lines and marks the rest."""
        prompt = Prompt.create("one\ntwo\nthree\nfour")
        assert prompt.preview() == "one\ntwo\nthree\n..."
        assert prompt.preview(max_lines=5) == "one\ntwo\nthree\nfour"

    def test_contains_keywords(self) -> None:
        """Keyword search is case-insensitive."""
        prompt = Prompt.create("Explain Recursion in Python")
        assert prompt.contains_keywords("recursion")
        assert prompt.contains_keywords("java", "PYTHON")
        assert not prompt.contains_keywords("java")
        assert not prompt.contains_keywords()

    def test_str(self) -> None:
        """str() returns the content."""
        assert str(Prompt.create("Ping")) == "Ping"
