"""Rule-based safety classification for unattached disks."""

from collections.abc import Iterable
from datetime import datetime, timezone

from orphan_disks.schemas.disk import Classification, ClassificationRule, Decision, TagMap

REASON_EXCLUDED_TAG = "excluded tag key present"
REASON_EXCLUDED_NAME = "name matches exclusion pattern"
REASON_MISSING_CREATED = "missing creation time; needs validation"
REASON_RECENT = "recently created disk"
REASON_SAFE = "unattached and older than threshold with no exclusions"


def calculate_age_days(created_at: datetime | None, now: datetime) -> int | None:
    """
    Whole days elapsed since creation.

    Naive timestamps are treated as UTC. Creation times in the future count
    as zero days old.

    Args:
        created_at: Disk creation timestamp, if known
        now: Reference time

    Returns:
        Non-negative day count, or None when the creation time is unknown
    """
    if created_at is None:
        return None
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0, (now - created_at).days)


def matches_excluded_tag(tags: TagMap, exclude_tag_keys: Iterable[str]) -> bool:
    """True if any configured key is a tag key on the disk (case-insensitive)."""
    return tags.has_any_key(exclude_tag_keys)


def matches_excluded_name(name: str, patterns: Iterable[str]) -> bool:
    """True if any non-blank pattern is a case-insensitive substring of the name."""
    lowered = name.lower()
    for pattern in patterns:
        needle = pattern.strip().lower()
        if needle and needle in lowered:
            return True
    return False


def classify(
    age_days: int | None,
    min_age_days: int,
    excluded_by_tags: bool,
    excluded_by_name: bool,
) -> Decision:
    """
    Assign a classification to an unattached disk.

    Evaluation order is fixed and the first match wins:
    tag exclusion, name exclusion, missing age, age below threshold, safe.
    """
    if excluded_by_tags:
        return Decision(classification=Classification.EXCLUDE, reason=REASON_EXCLUDED_TAG)
    if excluded_by_name:
        return Decision(classification=Classification.EXCLUDE, reason=REASON_EXCLUDED_NAME)
    if age_days is None:
        return Decision(classification=Classification.REVIEW, reason=REASON_MISSING_CREATED)
    if age_days < min_age_days:
        return Decision(classification=Classification.REVIEW, reason=REASON_RECENT)
    return Decision(classification=Classification.SAFE, reason=REASON_SAFE)


def classify_disk(
    name: str,
    tags: TagMap,
    age_days: int | None,
    rule: ClassificationRule,
) -> Decision:
    """Run both exclusion matchers and the classifier for one disk."""
    return classify(
        age_days=age_days,
        min_age_days=rule.min_age_days,
        excluded_by_tags=matches_excluded_tag(tags, rule.exclude_tag_keys),
        excluded_by_name=matches_excluded_name(name, rule.exclude_name_patterns),
    )
