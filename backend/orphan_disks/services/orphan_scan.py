"""Run orchestration: enumerate subscriptions, scan each, aggregate and sort."""

import asyncio
from datetime import datetime, timezone

from orphan_disks.core.log import get_logger
from orphan_disks.providers.base import DiskProviderBase
from orphan_disks.schemas.disk import (
    ReportRow,
    ScanOptions,
    ScanReport,
    SubscriptionRef,
    SubscriptionScanResult,
)
from orphan_disks.services.disk_scanner import scan_subscription

logger = get_logger(__name__)


class NoSubscriptionsError(Exception):
    """No subscriptions are visible to the credentials (or left after filtering)."""

    pass


def select_subscriptions(
    subscriptions: list[SubscriptionRef], subscription_ids: tuple[str, ...]
) -> list[SubscriptionRef]:
    """Apply the optional subscription allow-list (ids compared case-insensitively)."""
    wanted = {sub_id.strip().lower() for sub_id in subscription_ids if sub_id.strip()}
    if not wanted:
        return list(subscriptions)
    return [sub for sub in subscriptions if sub.id.lower() in wanted]


def sort_rows(rows: list[ReportRow]) -> list[ReportRow]:
    """Order rows by subscription name, resource group, disk name (ordinal, case-sensitive)."""
    return sorted(rows, key=lambda row: row.sort_key)


async def _scan_all(
    provider: DiskProviderBase,
    subscriptions: list[SubscriptionRef],
    options: ScanOptions,
    now: datetime,
) -> list[SubscriptionScanResult]:
    if options.max_concurrency <= 1:
        return [
            await scan_subscription(provider, subscription, options, now)
            for subscription in subscriptions
        ]

    semaphore = asyncio.Semaphore(options.max_concurrency)

    async def bounded(subscription: SubscriptionRef) -> SubscriptionScanResult:
        async with semaphore:
            return await scan_subscription(provider, subscription, options, now)

    return list(await asyncio.gather(*(bounded(sub) for sub in subscriptions)))


async def run_scan(
    provider: DiskProviderBase,
    options: ScanOptions,
    now: datetime | None = None,
) -> ScanReport:
    """
    Scan every visible subscription and aggregate the orphaned disks.

    Failed subscriptions are logged and skipped; the remaining rows are
    sorted once after all scans finish, so the order does not depend on
    which scan completed first.

    Args:
        provider: Disk inventory provider
        options: Engine configuration for the run
        now: Reference time for age calculation (defaults to current UTC time)

    Returns:
        ScanReport with sorted rows and the failed subscription results

    Raises:
        NoSubscriptionsError: If no subscriptions are available to scan
        ProviderAuthenticationError: If sign-in fails
    """
    now = now or datetime.now(timezone.utc)

    visible = await provider.list_subscriptions()
    if not visible:
        raise NoSubscriptionsError(
            "No subscriptions are visible to the current credentials. "
            "Check the signed-in account and its role assignments."
        )

    subscriptions = select_subscriptions(visible, options.subscription_ids)
    if not subscriptions:
        raise NoSubscriptionsError(
            f"None of the requested subscriptions ({', '.join(options.subscription_ids)}) "
            f"are visible to the current credentials."
        )

    logger.info(
        "scan.started",
        subscriptions=len(subscriptions),
        include_shared=options.include_shared,
        min_age_days=options.rule.min_age_days,
        max_concurrency=options.max_concurrency,
    )

    results = await _scan_all(provider, subscriptions, options, now)

    succeeded = [result for result in results if result.ok]
    failed = [result for result in results if not result.ok]

    for result in failed:
        logger.error(
            "scan.subscription_failed",
            subscription_name=result.subscription.name,
            error=result.error,
        )

    rows = sort_rows([row for result in succeeded for row in result.rows])

    logger.info(
        "scan.completed",
        subscriptions_scanned=len(succeeded),
        subscriptions_failed=len(failed),
        orphaned_disks=len(rows),
    )

    return ScanReport(
        rows=tuple(rows),
        failures=tuple(failed),
        subscriptions_scanned=len(succeeded),
    )
