"""
Tests for survey prompt responses.
"""

import pytest

from ohmage.shared.exceptions import ValidationError
from ohmage.surveys.responses import (
    MultiChoiceCustomPrompt,
    MultiChoiceCustomPromptResponse,
    NoResponse,
)


@pytest.fixture
def prompt() -> MultiChoiceCustomPrompt:
    return MultiChoiceCustomPrompt("activities", ("walking", "running", "cycling"))


class TestMultiChoiceCustomPrompt:
    """Tests for choice validation."""

    def test_known_choices(self, prompt: MultiChoiceCustomPrompt) -> None:
        assert prompt.validate_value(["walking", "cycling"]) == ["walking", "cycling"]

    def test_unknown_choice(self, prompt: MultiChoiceCustomPrompt) -> None:
        with pytest.raises(ValidationError) as exc_info:
            prompt.validate_value(["walking", "swimming"])

        assert exc_info.value.details["unknown"] == ["swimming"]


class TestMultiChoiceCustomPromptResponse:
    """Tests for MultiChoiceCustomPromptResponse."""

    def test_choices_response_value(self, prompt: MultiChoiceCustomPrompt) -> None:
        response = MultiChoiceCustomPromptResponse(prompt, choices=["walking", "running"])

        assert response.choices == ("walking", "running")
        assert response.response_value == "[walking, running]"
        assert response.prompt_id == "activities"

    def test_no_response_value(self, prompt: MultiChoiceCustomPrompt) -> None:
        response = MultiChoiceCustomPromptResponse(prompt, no_response=NoResponse.SKIPPED)

        assert response.choices is None
        assert response.response_value == "SKIPPED"

    def test_requires_choices_or_no_response(self, prompt: MultiChoiceCustomPrompt) -> None:
        with pytest.raises(ValueError):
            MultiChoiceCustomPromptResponse(prompt)

    def test_rejects_both(self, prompt: MultiChoiceCustomPrompt) -> None:
        with pytest.raises(ValueError):
            MultiChoiceCustomPromptResponse(
                prompt, no_response=NoResponse.NOT_DISPLAYED, choices=["walking"]
            )

    def test_validation_is_optional(self, prompt: MultiChoiceCustomPrompt) -> None:
        MultiChoiceCustomPromptResponse(prompt, choices=["swimming"])

        with pytest.raises(ValidationError):
            MultiChoiceCustomPromptResponse(prompt, choices=["swimming"], validate=True)

    def test_value_equality(self, prompt: MultiChoiceCustomPrompt) -> None:
        first = MultiChoiceCustomPromptResponse(
            prompt, repeatable_set_iteration=2, choices=["walking"], validate=True
        )
        second = MultiChoiceCustomPromptResponse(
            prompt, repeatable_set_iteration=2, choices=("walking",)
        )

        assert first == second
        assert hash(first) == hash(second)
        assert first != MultiChoiceCustomPromptResponse(
            prompt, repeatable_set_iteration=3, choices=["walking"]
        )
        assert first != MultiChoiceCustomPromptResponse(prompt, no_response=NoResponse.SKIPPED)
