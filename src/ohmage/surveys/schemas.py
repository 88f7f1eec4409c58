"""
Pydantic schemas for survey response reads.
"""

from typing import Literal

from pydantic import BaseModel, Field


class PromptResponseRecord(BaseModel):
    """One user's answer to one prompt."""

    username: str
    survey_id: str
    prompt_id: str
    repeatable_set_iteration: int | None = None
    value: str = Field(..., description="Chosen values as a list, or SKIPPED / NOT_DISPLAYED")


class PromptResponseReadResponse(BaseModel):
    """Prompt responses of a campaign."""

    result: Literal["success"] = "success"
    data: list[PromptResponseRecord]
