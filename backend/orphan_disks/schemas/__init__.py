"""Pydantic schemas for disk inventory and reports."""

from orphan_disks.schemas.disk import (
    REPORT_COLUMNS,
    Classification,
    ClassificationRule,
    Decision,
    DiskRecord,
    RedactionPolicy,
    ReportRow,
    ScanOptions,
    ScanReport,
    SubscriptionRef,
    SubscriptionScanResult,
    TagMap,
)

__all__ = [
    "REPORT_COLUMNS",
    "Classification",
    "ClassificationRule",
    "Decision",
    "DiskRecord",
    "RedactionPolicy",
    "ReportRow",
    "ScanOptions",
    "ScanReport",
    "SubscriptionRef",
    "SubscriptionScanResult",
    "TagMap",
]
