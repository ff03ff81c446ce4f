"""Pytest configuration and fixtures for orphaned disk tests."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest
import structlog

from orphan_disks.providers.base import DiskProviderBase
from orphan_disks.schemas.disk import (
    ClassificationRule,
    DiskRecord,
    RedactionPolicy,
    ScanOptions,
    SubscriptionRef,
)

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()


class FakeDiskProvider(DiskProviderBase):
    """In-memory provider: disks per subscription id, optional per-subscription errors."""

    def __init__(
        self,
        subscriptions: list[SubscriptionRef],
        disks: dict[str, list[DiskRecord]] | None = None,
        failures: dict[str, Exception] | None = None,
        subscription_error: Exception | None = None,
    ) -> None:
        self.subscriptions = subscriptions
        self.disks = disks or {}
        self.failures = failures or {}
        self.subscription_error = subscription_error
        self.listed: list[str] = []

    async def list_subscriptions(self) -> list[SubscriptionRef]:
        if self.subscription_error is not None:
            raise self.subscription_error
        return list(self.subscriptions)

    async def list_disks(self, subscription: SubscriptionRef) -> list[DiskRecord]:
        self.listed.append(subscription.id)
        if subscription.id in self.failures:
            raise self.failures[subscription.id]
        return list(self.disks.get(subscription.id, []))


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for age calculations."""
    return FIXED_NOW


@pytest.fixture
def make_disk() -> Callable[..., DiskRecord]:
    """Factory for unattached disks created ``age_days`` before FIXED_NOW."""

    def factory(
        name: str = "data-disk-01",
        age_days: int | None = 90,
        subscription_id: str = "sub-aaa",
        subscription_name: str = "Production",
        resource_group: str = "rg-app",
        **overrides: Any,
    ) -> DiskRecord:
        created_at = None if age_days is None else FIXED_NOW - timedelta(days=age_days)
        fields: dict[str, Any] = {
            "id": (
                f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
                f"/providers/Microsoft.Compute/disks/{name}"
            ),
            "name": name,
            "subscription_id": subscription_id,
            "subscription_name": subscription_name,
            "resource_group": resource_group,
            "location": "westeurope",
            "sku_name": "Premium_LRS",
            "size_gib": 128,
            "created_at": created_at,
        }
        fields.update(overrides)
        return DiskRecord(**fields)

    return factory


@pytest.fixture
def default_rule() -> ClassificationRule:
    """Rule matching the shipped defaults."""
    return ClassificationRule(
        min_age_days=30,
        exclude_tag_keys=("donotdelete", "do-not-delete", "keep"),
        exclude_name_patterns=("golden", "base-image", "template"),
    )


@pytest.fixture
def scan_options(default_rule: ClassificationRule) -> ScanOptions:
    """Default options: shared disks excluded, everything redacted."""
    return ScanOptions(rule=default_rule, redaction=RedactionPolicy())


@pytest.fixture
def fake_provider() -> type[FakeDiskProvider]:
    """The in-memory provider class, for tests that build their own inventory."""
    return FakeDiskProvider
