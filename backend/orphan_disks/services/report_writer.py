"""Report export (CSV/JSON) and console rendering."""

import csv
import json
from collections.abc import Sequence
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from tabulate import tabulate

from orphan_disks.core.log import get_logger
from orphan_disks.schemas.disk import REPORT_COLUMNS, ReportRow, ScanReport

logger = get_logger(__name__)

REPORT_FILE_PREFIX = "orphaned-disks"

PREVIEW_COLUMNS = (
    "subscription_name",
    "resource_group",
    "disk_name",
    "sku_name",
    "size_gib",
    "age_days",
    "classification",
    "reason",
)


def to_text(value: object) -> str:
    """Coerce a row value to text; missing values become empty strings."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def row_to_record(row: ReportRow) -> dict[str, str]:
    """Flatten a row into text values keyed by column name, in column order."""
    return {column: to_text(getattr(row, column)) for column in REPORT_COLUMNS}


def build_report_path(output_dir: str | Path, fmt: str = "csv", now: datetime | None = None) -> Path:
    """
    Create the output folder and return a timestamped report path.

    Args:
        output_dir: Folder to write into (created if missing)
        fmt: File extension, "csv" or "json"
        now: Timestamp used in the file name (defaults to current UTC time)

    Returns:
        Path like ``<output_dir>/orphaned-disks-20250101-120000.csv``
    """
    now = now or datetime.now(timezone.utc)
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{REPORT_FILE_PREFIX}-{now.strftime('%Y%m%d-%H%M%S')}.{fmt}"


def write_csv(rows: Sequence[ReportRow], path: str | Path) -> Path:
    """Write rows as CSV with a header line; redacted fields are empty cells."""
    path = Path(path)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(REPORT_COLUMNS))
        writer.writeheader()
        for row in rows:
            writer.writerow(row_to_record(row))

    logger.info("report.written", path=str(path), format="csv", rows=len(rows))
    return path


def write_json(rows: Sequence[ReportRow], path: str | Path) -> Path:
    """Write rows as a JSON array of objects with the CSV column names as keys."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as handle:
        json.dump([row_to_record(row) for row in rows], handle, indent=2)
        handle.write("\n")

    logger.info("report.written", path=str(path), format="json", rows=len(rows))
    return path


def write_report(rows: Sequence[ReportRow], path: str | Path, fmt: str) -> Path:
    """Write rows in the requested format."""
    if fmt == "json":
        return write_json(rows, path)
    if fmt == "csv":
        return write_csv(rows, path)
    raise ValueError(f"Unsupported report format: {fmt}")


def render_preview(rows: Sequence[ReportRow], limit: int = 20) -> str:
    """Render the first ``limit`` rows as a plain-text table."""
    if not rows:
        return "No orphaned disks found."

    table = [
        [to_text(getattr(row, column)) for column in PREVIEW_COLUMNS]
        for row in rows[:limit]
    ]
    rendered = tabulate(table, headers=list(PREVIEW_COLUMNS), tablefmt="simple")
    if len(rows) > limit:
        rendered += f"\n... {len(rows) - limit} more row(s) in the exported report"
    return rendered


def render_summary(report: ScanReport) -> str:
    """Summarize counts per classification and list failed subscriptions."""
    counts = report.summary()
    lines = [
        f"Subscriptions scanned: {report.subscriptions_scanned}",
        f"Orphaned disks: {len(report.rows)}",
    ]
    lines.extend(f"  {classification}: {count}" for classification, count in counts.items())
    if report.failures:
        lines.append(f"Subscriptions skipped: {len(report.failures)}")
        lines.extend(
            f"  {failure.subscription.name}: {failure.error}" for failure in report.failures
        )
    return "\n".join(lines)
