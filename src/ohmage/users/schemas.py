"""
Pydantic schemas for user information.
"""

from typing import Literal

from pydantic import BaseModel, Field

from ohmage.campaigns.models import CampaignRole
from ohmage.classes.models import ClassRole


class UserSummary(BaseModel):
    """A user's privileges, memberships and the union of their roles."""

    campaign_creation_privilege: bool = Field(..., description="May create campaigns")
    campaigns: dict[str, str] = Field(default_factory=dict, description="Campaign URN to name")
    classes: dict[str, str] = Field(default_factory=dict, description="Class URN to name")
    campaign_roles: list[CampaignRole] = Field(
        default_factory=list,
        description="Every campaign role the user holds in any campaign",
    )
    class_roles: list[ClassRole] = Field(
        default_factory=list,
        description="Every class role the user holds in any class",
    )


class UserInfoResponse(BaseModel):
    """User information keyed by username."""

    result: Literal["success"] = "success"
    data: dict[str, UserSummary]
