"""
Validators shared by request schemas.
"""

import re

URN_PATTERN = re.compile(r"^urn:[A-Za-z0-9_:.\-]+$")


def validate_urn(value: str) -> str:
    """Validate a campaign or class URN.

    Raises:
        ValueError: If the value is not a well-formed URN.
    """
    value = value.strip()
    if not URN_PATTERN.match(value):
        raise ValueError(f"Invalid URN: {value!r}")
    return value


def split_urn_list(value: str) -> list[str]:
    """Split a comma-separated URN list.

    Whitespace around items is trimmed, blank items and duplicates are
    dropped, and every remaining item must be a valid URN.
    """
    urns: list[str] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        urn = validate_urn(item)
        if urn not in urns:
            urns.append(urn)
    return urns
