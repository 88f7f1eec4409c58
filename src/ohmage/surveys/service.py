"""
Survey response reads.

Uploaded responses are stored as JSON text: a list with one object per
answered prompt::

    [{"prompt_id": "snacks", "value": ["apple", "tea"],
      "custom_choices": [{"choice_id": 5, "choice_value": "tea"}]},
     {"prompt_id": "snacks", "value": "SKIPPED", "repeatable_set_iteration": 1}]

``value`` is either the list of chosen labels or a no-response label.
"""

import json
from typing import Any

from ohmage.auth.middleware import CurrentUser
from ohmage.campaigns.definition import get_multi_choice_custom_prompts
from ohmage.campaigns.models import CampaignRole
from ohmage.campaigns.repository import CampaignRepository
from ohmage.shared.exceptions import (
    CampaignNotFoundError,
    InvalidStateError,
    PermissionDeniedError,
    ValidationError,
)
from ohmage.shared.logging import get_logger
from ohmage.surveys.repository import SurveyResponseRepository
from ohmage.surveys.responses import (
    MultiChoiceCustomPrompt,
    MultiChoiceCustomPromptResponse,
    NoResponse,
)
from ohmage.surveys.schemas import PromptResponseRecord

logger = get_logger(__name__)


def _decode_entry(
    entry: dict[str, Any],
    prompt: MultiChoiceCustomPrompt,
) -> MultiChoiceCustomPromptResponse:
    value = entry.get("value")
    iteration = entry.get("repeatable_set_iteration")
    if isinstance(value, str):
        return MultiChoiceCustomPromptResponse(
            prompt, no_response=NoResponse(value), repeatable_set_iteration=iteration
        )

    custom = tuple(choice["choice_value"] for choice in entry.get("custom_choices") or ())
    return MultiChoiceCustomPromptResponse(
        MultiChoiceCustomPrompt(prompt.prompt_id, prompt.choices + custom),
        repeatable_set_iteration=iteration,
        choices=value,
        validate=True,
    )


def decode_prompt_responses(
    stored: str,
    prompt: MultiChoiceCustomPrompt,
) -> list[MultiChoiceCustomPromptResponse]:
    """Decode the answers to one prompt from a stored survey response.

    Choices may be any label the campaign defines for the prompt or one the
    user added in ``custom_choices``.

    Raises:
        InvalidStateError: The stored response is malformed or names an
            unknown choice.
    """
    details = {"prompt_id": prompt.prompt_id}
    try:
        entries = json.loads(stored)
    except json.JSONDecodeError as e:
        raise InvalidStateError("Stored survey response is not valid JSON.", details=details) from e
    if not isinstance(entries, list):
        raise InvalidStateError("Stored survey response is not a list.", details=details)

    decoded = []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("prompt_id") != prompt.prompt_id:
            continue
        try:
            decoded.append(_decode_entry(entry, prompt))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise InvalidStateError(
                f"Stored response to prompt '{prompt.prompt_id}' is invalid.",
                details={**details, "error": str(e)},
            ) from e
    return decoded


class SurveyResponseService:
    """Reads prompt responses for users allowed to see them."""

    def __init__(
        self,
        campaigns: CampaignRepository,
        responses: SurveyResponseRepository,
    ) -> None:
        self._campaigns = campaigns
        self._responses = responses

    async def read_prompt_responses(
        self,
        user: CurrentUser,
        campaign_urn: str,
        prompt_id: str,
    ) -> list[PromptResponseRecord]:
        """Answers to a multiple-choice custom prompt of a campaign.

        Admins and supervisors read every user's answers; other members
        read only their own.

        Raises:
            CampaignNotFoundError: Unknown campaign.
            PermissionDeniedError: The user holds no role on the campaign
                and is not an admin.
            ValidationError: The campaign has no such multiple-choice
                custom prompt.
            InvalidStateError: A stored response cannot be decoded.
        """
        campaign = await self._campaigns.get_by_urn(campaign_urn)
        if campaign is None:
            raise CampaignNotFoundError(campaign_urn)

        roles = await self._campaigns.get_user_roles(user.username, campaign_urn)
        if not user.admin and not roles:
            raise PermissionDeniedError(
                "User does not belong to the campaign.",
                details={"username": user.username, "campaign_urn": campaign_urn},
            )

        prompt = get_multi_choice_custom_prompts(campaign.xml).get(prompt_id)
        if prompt is None:
            raise ValidationError(
                f"Not a multiple-choice custom prompt of the campaign: {prompt_id}",
                details={"campaign_urn": campaign_urn, "prompt_id": prompt_id},
            )

        reads_all = user.admin or CampaignRole.SUPERVISOR.value in roles
        stored = await self._responses.list_for_campaign(
            campaign.id, username=None if reads_all else user.username
        )

        records = []
        for row in stored:
            for answer in decode_prompt_responses(row.response, prompt):
                records.append(
                    PromptResponseRecord(
                        username=row.username,
                        survey_id=row.survey_id,
                        prompt_id=answer.prompt_id,
                        repeatable_set_iteration=answer.repeatable_set_iteration,
                        value=answer.response_value,
                    )
                )

        logger.info(
            "Prompt responses read",
            extra={
                "username": user.username,
                "campaign_urn": campaign_urn,
                "prompt_id": prompt_id,
                "count": len(records),
            },
        )
        return records
