"""
Survey prompt responses.

A prompt response is either the user's answer or a marker explaining why
there is none (the prompt was skipped, or never shown).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from ohmage.shared.exceptions import ValidationError


class NoResponse(str, Enum):
    """Reasons a prompt has no answer."""

    SKIPPED = "SKIPPED"
    NOT_DISPLAYED = "NOT_DISPLAYED"


@dataclass(frozen=True)
class MultiChoiceCustomPrompt:
    """A multiple-choice prompt whose choices are defined per user."""

    prompt_id: str
    choices: tuple[str, ...] = ()

    def validate_value(self, values: Iterable[str]) -> list[str]:
        """Check that every value is one of the prompt's choices.

        Raises:
            ValidationError: A value is not a known choice.
        """
        values = list(values)
        unknown = [v for v in values if v not in self.choices]
        if unknown:
            raise ValidationError(
                f"Unknown choice(s) for prompt '{self.prompt_id}': {', '.join(unknown)}",
                details={"prompt_id": self.prompt_id, "unknown": unknown},
            )
        return values


@dataclass(frozen=True)
class PromptResponse:
    """Common part of every prompt response."""

    prompt: MultiChoiceCustomPrompt
    no_response: NoResponse | None = None
    repeatable_set_iteration: int | None = None

    @property
    def prompt_id(self) -> str:
        return self.prompt.prompt_id

    @property
    def response_value(self) -> str | None:
        return self.no_response.value if self.no_response is not None else None


@dataclass(frozen=True)
class MultiChoiceCustomPromptResponse(PromptResponse):
    """A response to a multiple-choice prompt with custom choices.

    Exactly one of ``choices`` and ``no_response`` must be given. With
    ``validate`` set, every choice must belong to the prompt.
    """

    choices: tuple[str, ...] | None = None
    validate: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.choices is None and self.no_response is None:
            raise ValueError("Both choices and no response are missing.")
        if self.choices is not None and self.no_response is not None:
            raise ValueError("Both choices and no response were given.")

        if self.choices is not None:
            # Accept any iterable; store an immutable copy.
            object.__setattr__(self, "choices", tuple(self.choices))
            if self.validate:
                self.prompt.validate_value(self.choices)

    @property
    def response_value(self) -> str:
        """The no-response label, or the choices rendered as a list."""
        no_response = super().response_value
        if no_response is not None:
            return no_response
        return "[" + ", ".join(self.choices or ()) + "]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultiChoiceCustomPromptResponse):
            return NotImplemented
        return (
            self.prompt_id == other.prompt_id
            and self.repeatable_set_iteration == other.repeatable_set_iteration
            and self.no_response == other.no_response
            and self.choices == other.choices
        )

    def __hash__(self) -> int:
        return hash(
            (self.prompt_id, self.repeatable_set_iteration, self.no_response, self.choices)
        )
