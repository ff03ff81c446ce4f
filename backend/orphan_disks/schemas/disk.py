"""Disk inventory Pydantic schemas."""

from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TagMap(Mapping[str, str]):
    """
    Read-only view over a disk's tags.

    Keys keep their original casing for rendering, while lookups through
    ``has_any_key`` compare keys case-insensitively. Matchers must go through
    this helper instead of lower-casing keys themselves.
    """

    def __init__(self, tags: Mapping[str, str] | None = None) -> None:
        self._tags: dict[str, str] = dict(tags or {})
        self._folded: frozenset[str] = frozenset(key.lower() for key in self._tags)

    def __getitem__(self, key: str) -> str:
        return self._tags[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"TagMap({self._tags!r})"

    def has_any_key(self, keys: Iterable[str]) -> bool:
        """
        Check whether any of the given keys is present, ignoring case.

        Blank or whitespace-only candidates never match.

        Args:
            keys: Candidate tag keys

        Returns:
            True if at least one candidate equals a tag key case-insensitively
        """
        if not self._folded:
            return False
        for key in keys:
            candidate = key.strip().lower()
            if candidate and candidate in self._folded:
                return True
        return False


class Classification(str, Enum):
    """Safety classification of an unattached disk."""

    SAFE = "SAFE"
    REVIEW = "REVIEW"
    EXCLUDE = "EXCLUDE"


class SubscriptionRef(BaseModel):
    """Subscription identifier/name pair."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class DiskRecord(BaseModel):
    """Managed disk as listed by the cloud provider."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Provider resource identifier")
    name: str
    subscription_id: str
    subscription_name: str
    resource_group: str = ""
    location: str = ""
    sku_name: str = ""
    size_gib: int = 0
    managed_by: str | None = Field(default=None, description="Attaching resource id, None if unattached")
    max_shares: int | None = Field(default=None, description="Values above 1 mark a shared disk")
    created_at: datetime | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def is_attached(self) -> bool:
        return self.managed_by is not None

    @property
    def is_shared(self) -> bool:
        return self.max_shares is not None and self.max_shares > 1

    @property
    def tag_map(self) -> TagMap:
        return TagMap(self.tags)


class ClassificationRule(BaseModel):
    """Rule configuration, immutable for a run."""

    model_config = ConfigDict(frozen=True)

    min_age_days: int = Field(default=30, ge=0)
    exclude_tag_keys: tuple[str, ...] = ()
    exclude_name_patterns: tuple[str, ...] = ()


class Decision(BaseModel):
    """Classification outcome for a single disk."""

    model_config = ConfigDict(frozen=True)

    classification: Classification
    reason: str


class RedactionPolicy(BaseModel):
    """Field-level redaction toggles, applied uniformly to every row."""

    model_config = ConfigDict(frozen=True)

    include_identifiers: bool = False
    include_tag_values: bool = False


class ScanOptions(BaseModel):
    """Complete engine configuration for one run."""

    model_config = ConfigDict(frozen=True)

    rule: ClassificationRule = Field(default_factory=ClassificationRule)
    redaction: RedactionPolicy = Field(default_factory=RedactionPolicy)
    include_shared: bool = False
    resource_groups: tuple[str, ...] = ()
    subscription_ids: tuple[str, ...] = ()
    max_concurrency: int = Field(default=1, ge=1)


class ReportRow(BaseModel):
    """
    One orphaned disk in the final report.

    Field order is the export column order. Redacted identifiers are empty
    strings, never missing.
    """

    model_config = ConfigDict(frozen=True)

    subscription_name: str
    subscription_id: str
    resource_group: str
    disk_name: str
    disk_id: str
    location: str
    sku_name: str
    size_gib: int
    max_shares: int | None
    created_at: datetime | None
    age_days: int | None
    classification: Classification
    reason: str
    tags: str

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.subscription_name, self.resource_group, self.disk_name)


REPORT_COLUMNS: tuple[str, ...] = tuple(ReportRow.model_fields)


class SubscriptionScanResult(BaseModel):
    """Outcome of scanning one subscription: either rows or an error message."""

    model_config = ConfigDict(frozen=True)

    subscription: SubscriptionRef
    rows: tuple[ReportRow, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ScanReport(BaseModel):
    """Aggregated, sorted result of a full run."""

    model_config = ConfigDict(frozen=True)

    rows: tuple[ReportRow, ...] = ()
    failures: tuple[SubscriptionScanResult, ...] = ()
    subscriptions_scanned: int = 0

    def summary(self) -> dict[str, int]:
        """Count rows per classification, including zero counts."""
        counts = {classification.value: 0 for classification in Classification}
        for row in self.rows:
            counts[row.classification.value] += 1
        return counts
