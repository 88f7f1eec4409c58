"""
Helpers for reading campaign XML definitions.
"""

import xml.etree.ElementTree as ET

from ohmage.shared.exceptions import ValidationError
from ohmage.surveys.responses import MultiChoiceCustomPrompt

PROMPT_TYPE_MULTI_CHOICE_CUSTOM = "multi_choice_custom"


def _parse(campaign_xml: str) -> ET.Element:
    try:
        return ET.fromstring(campaign_xml)
    except ET.ParseError as e:
        raise ValidationError("Campaign XML could not be parsed", details={"error": str(e)}) from e


def get_prompt_ids(campaign_xml: str) -> set[str]:
    """Collect the id of every prompt defined in a campaign.

    Prompts may appear at any depth (surveys, repeatable sets); each is a
    ``<prompt>`` element with an ``<id>`` child.

    Raises:
        ValidationError: The XML cannot be parsed.
    """
    ids = set()
    for prompt in _parse(campaign_xml).iter("prompt"):
        prompt_id = prompt.findtext("id")
        if prompt_id and prompt_id.strip():
            ids.add(prompt_id.strip())
    return ids


def get_multi_choice_custom_prompts(campaign_xml: str) -> dict[str, MultiChoiceCustomPrompt]:
    """Collect the multiple-choice prompts with custom choices, keyed by id.

    The choices defined in the campaign are the ``label`` of each
    ``<properties>/<property>``; users may add their own at upload time.

    Raises:
        ValidationError: The XML cannot be parsed.
    """
    prompts = {}
    for prompt in _parse(campaign_xml).iter("prompt"):
        prompt_type = (prompt.findtext("promptType") or "").strip()
        prompt_id = (prompt.findtext("id") or "").strip()
        if prompt_type != PROMPT_TYPE_MULTI_CHOICE_CUSTOM or not prompt_id:
            continue
        labels = [label.text for label in prompt.iterfind("properties/property/label")]
        prompts[prompt_id] = MultiChoiceCustomPrompt(
            prompt_id, tuple(label.strip() for label in labels if label and label.strip())
        )
    return prompts
