"""Per-subscription scan: list disks, keep orphans, classify and build rows."""

from collections.abc import Iterable
from datetime import datetime

from orphan_disks.core.log import get_logger
from orphan_disks.providers.base import DiskProviderBase
from orphan_disks.schemas.disk import (
    DiskRecord,
    ReportRow,
    ScanOptions,
    SubscriptionRef,
    SubscriptionScanResult,
)
from orphan_disks.services.classifier import calculate_age_days, classify_disk
from orphan_disks.services.redaction import format_tags, redact_identifier

logger = get_logger(__name__)


def is_orphan_candidate(disk: DiskRecord, include_shared: bool) -> bool:
    """An unattached disk, skipping shared disks unless they are included."""
    if disk.is_attached:
        return False
    return include_shared or not disk.is_shared


def is_in_scope(disk: DiskRecord, resource_groups: Iterable[str]) -> bool:
    """Resource group filter; an empty filter keeps everything."""
    wanted = {group.strip().lower() for group in resource_groups if group.strip()}
    if not wanted:
        return True
    return disk.resource_group.lower() in wanted


def build_row(disk: DiskRecord, options: ScanOptions, now: datetime) -> ReportRow:
    """Classify one orphaned disk and flatten it into a report row."""
    tags = disk.tag_map
    age_days = calculate_age_days(disk.created_at, now)
    decision = classify_disk(disk.name, tags, age_days, options.rule)

    return ReportRow(
        subscription_name=disk.subscription_name,
        subscription_id=redact_identifier(disk.subscription_id, options.redaction),
        resource_group=disk.resource_group,
        disk_name=disk.name,
        disk_id=redact_identifier(disk.id, options.redaction),
        location=disk.location,
        sku_name=disk.sku_name,
        size_gib=disk.size_gib,
        max_shares=disk.max_shares,
        created_at=disk.created_at,
        age_days=age_days,
        classification=decision.classification,
        reason=decision.reason,
        tags=format_tags(tags, options.redaction),
    )


def build_rows(
    disks: Iterable[DiskRecord], options: ScanOptions, now: datetime
) -> list[ReportRow]:
    """Filter disks to in-scope orphans and build their rows, preserving order."""
    return [
        build_row(disk, options, now)
        for disk in disks
        if is_orphan_candidate(disk, options.include_shared)
        and is_in_scope(disk, options.resource_groups)
    ]


async def scan_subscription(
    provider: DiskProviderBase,
    subscription: SubscriptionRef,
    options: ScanOptions,
    now: datetime,
) -> SubscriptionScanResult:
    """
    Scan one subscription for orphaned disks.

    Listing failures are returned as an error result carrying zero rows, so
    a subscription contributes either all of its rows or none. This includes
    per-request authentication errors (e.g. a token rejected by a subscription
    in another tenant); sign-in itself is checked when subscriptions are listed.

    Args:
        provider: Disk inventory provider
        subscription: Subscription to scan
        options: Engine configuration for the run
        now: Reference time for age calculation

    Returns:
        SubscriptionScanResult with rows on success, error message on failure
    """
    try:
        disks = await provider.list_disks(subscription)
        rows = build_rows(disks, options, now)
    except Exception as e:
        return SubscriptionScanResult(subscription=subscription, error=str(e) or type(e).__name__)

    logger.info(
        "scan.subscription_completed",
        subscription_name=subscription.name,
        disks_listed=len(disks),
        orphaned=len(rows),
    )
    return SubscriptionScanResult(subscription=subscription, rows=tuple(rows))
