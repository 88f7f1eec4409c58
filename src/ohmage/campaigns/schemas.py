"""
Pydantic schemas for the campaign API.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ohmage.campaigns.models import PrivacyState, RunningState
from ohmage.campaigns.update import CampaignChanges
from ohmage.shared.validators import split_urn_list, validate_urn


class OperationResponse(BaseModel):
    """Acknowledgement for requests that return no data."""

    result: Literal["success"] = "success"


class CampaignUpdateRequest(BaseModel):
    """Sparse campaign update: omitted keys leave the field unchanged."""

    campaign_urn: str = Field(..., description="URN of the campaign to update")
    running_state: RunningState | None = Field(None, description="New running state")
    privacy_state: PrivacyState | None = Field(None, description="New privacy state")
    description: str | None = Field(None, max_length=5000, description="New description")
    xml: str | None = Field(None, min_length=1, description="New campaign XML")
    class_urn_list: str | None = Field(
        None,
        description="Comma-separated URNs of every class the campaign should belong to",
    )

    @field_validator("campaign_urn")
    @classmethod
    def check_campaign_urn(cls, v: str) -> str:
        return validate_urn(v)

    @field_validator("class_urn_list")
    @classmethod
    def check_class_urn_list(cls, v: str | None) -> str | None:
        if v is not None:
            split_urn_list(v)
        return v

    def to_changes(self) -> CampaignChanges:
        """Convert the request into coordinator input."""
        return CampaignChanges(
            running_state=self.running_state,
            privacy_state=self.privacy_state,
            description=self.description,
            xml=self.xml,
            class_urns=split_urn_list(self.class_urn_list) if self.class_urn_list is not None else None,
        )


class CampaignSearchRequest(BaseModel):
    """Admin campaign search; empty or missing filters are ignored."""

    campaign_urn: str | None = Field(None, description="Part or all of a campaign URN")
    campaign_name: str | None = Field(None, description="Part or all of a campaign name")
    description: str | None = Field(None, description="Part or all of a description")
    xml: str | None = Field(None, description="Part or all of the campaign XML")
    authored_by: str | None = Field(None, description="Part or all of the authored-by value")
    start_date: date | None = Field(None, description="Created on or after this date")
    end_date: date | None = Field(None, description="Created on or before this date")
    privacy_state: PrivacyState | None = Field(None, description="Exact privacy state")
    running_state: RunningState | None = Field(None, description="Exact running state")

    @field_validator("privacy_state", "running_state", "start_date", "end_date", mode="before")
    @classmethod
    def blank_as_missing(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CampaignSummary(BaseModel):
    """Campaign information returned by search."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    description: str | None
    running_state: RunningState
    privacy_state: PrivacyState
    authored_by: str | None
    creation_timestamp: datetime


class CampaignSearchResponse(BaseModel):
    """Search results keyed by campaign URN."""

    result: Literal["success"] = "success"
    data: dict[str, CampaignSummary]
