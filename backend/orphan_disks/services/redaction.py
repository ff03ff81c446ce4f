"""Field redaction and tag rendering for report rows."""

from orphan_disks.schemas.disk import RedactionPolicy, TagMap

TAG_SEPARATOR = ";"


def redact_identifier(value: str | None, policy: RedactionPolicy) -> str:
    """Return the identifier, or an empty string when identifiers are redacted."""
    if not policy.include_identifiers:
        return ""
    return value or ""


def format_tags(tags: TagMap, policy: RedactionPolicy) -> str:
    """
    Render a tag set as a single string.

    With tag values enabled, emits ``key=value`` pairs in enumeration order.
    Otherwise emits only the keys, sorted case-sensitively, since tag values
    often hold owner emails or cost-center codes.

    Args:
        tags: Disk tags
        policy: Redaction toggles for the run

    Returns:
        Tags joined by ``;``, or an empty string when there are none
    """
    if not tags:
        return ""
    if policy.include_tag_values:
        return TAG_SEPARATOR.join(f"{key}={value}" for key, value in tags.items())
    return TAG_SEPARATOR.join(sorted(tags))
