"""
Tag serialization. Tags are stored as a compact JSON list string.
"""

import json


def parse_tags(tags_json: str | None) -> list[str]:
    """Decode stored tags; anything that is not a JSON list yields []."""
    if not tags_json:
        return []
    try:
        parsed = json.loads(tags_json)
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(tag) for tag in parsed]


def stringify_tags(tags: list[str]) -> str:
    # Order is kept as given; customization checks compare this string as-is
    return json.dumps(tags, separators=(",", ":"), ensure_ascii=False)
