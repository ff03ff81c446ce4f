"""
Command-line entry point for the orphaned disk report.

Usage:
    orphan-disks [--output-dir DIR] [--format csv|json]
                 [--include-shared|--exclude-shared]
                 [--include-identifiers|--exclude-identifiers]
                 [--include-tag-values|--exclude-tag-values]
                 [--min-age-days N] [--exclude-tag-key KEY ...]
                 [--exclude-name-pattern PATTERN ...]
                 [--resource-group RG ...] [--subscription ID ...]
"""

import asyncio
from datetime import datetime, timezone

import click

from orphan_disks.core.config import settings
from orphan_disks.core.log import configure_logging, get_logger
from orphan_disks.providers.azure import AzureDiskProvider
from orphan_disks.providers.base import DiskProviderBase, ProviderAuthenticationError
from orphan_disks.schemas.disk import ClassificationRule, RedactionPolicy, ScanOptions
from orphan_disks.services.orphan_scan import NoSubscriptionsError, run_scan
from orphan_disks.services.report_writer import (
    build_report_path,
    render_preview,
    render_summary,
    write_report,
)

logger = get_logger(__name__)


def build_provider() -> DiskProviderBase:
    """Create the Azure provider from configured credentials."""
    return AzureDiskProvider(
        tenant_id=settings.AZURE_TENANT_ID,
        client_id=settings.AZURE_CLIENT_ID,
        client_secret=settings.AZURE_CLIENT_SECRET,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--output-dir",
    default=settings.OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="Folder for the exported report",
)
@click.option(
    "--format",
    "report_format",
    default=settings.REPORT_FORMAT,
    show_default=True,
    type=click.Choice(["csv", "json"]),
    help="Export format",
)
@click.option(
    "--include-shared/--exclude-shared",
    default=settings.INCLUDE_SHARED,
    show_default=True,
    help="Include multi-attach (maxShares > 1) disks",
)
@click.option(
    "--include-identifiers/--exclude-identifiers",
    default=settings.INCLUDE_IDENTIFIERS,
    show_default=True,
    help="Emit subscription and disk ids (redacted by default)",
)
@click.option(
    "--include-tag-values/--exclude-tag-values",
    default=settings.INCLUDE_TAG_VALUES,
    show_default=True,
    help="Emit tag values, not just tag keys",
)
@click.option(
    "--min-age-days",
    type=click.IntRange(min=0),
    default=settings.MIN_AGE_DAYS,
    show_default=True,
    help="Disks younger than this are classified REVIEW",
)
@click.option(
    "--exclude-tag-key",
    "exclude_tag_keys",
    multiple=True,
    help="Tag key that marks a disk as EXCLUDE (repeatable, replaces the defaults)",
)
@click.option(
    "--exclude-name-pattern",
    "exclude_name_patterns",
    multiple=True,
    help="Name substring that marks a disk as EXCLUDE (repeatable, replaces the defaults)",
)
@click.option(
    "--resource-group",
    "resource_groups",
    multiple=True,
    help="Only report disks in this resource group (repeatable)",
)
@click.option(
    "--subscription",
    "subscription_ids",
    multiple=True,
    help="Only scan this subscription id (repeatable)",
)
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=settings.MAX_CONCURRENCY,
    show_default=True,
    help="Subscriptions scanned in parallel",
)
@click.option(
    "--preview-rows",
    type=click.IntRange(min=0),
    default=settings.PREVIEW_ROWS,
    show_default=True,
    help="Rows shown in the console preview",
)
@click.option("--log-level", default=settings.LOG_LEVEL, show_default=True, help="Log level")
@click.option(
    "--log-format",
    default=settings.LOG_FORMAT,
    show_default=True,
    type=click.Choice(["console", "json"]),
    help="Log output format",
)
def main(
    output_dir: str,
    report_format: str,
    include_shared: bool,
    include_identifiers: bool,
    include_tag_values: bool,
    min_age_days: int,
    exclude_tag_keys: tuple[str, ...],
    exclude_name_patterns: tuple[str, ...],
    resource_groups: tuple[str, ...],
    subscription_ids: tuple[str, ...],
    max_concurrency: int,
    preview_rows: int,
    log_level: str,
    log_format: str,
) -> None:
    """Report unattached Azure managed disks with a SAFE/REVIEW/EXCLUDE classification.

    Read-only: nothing is deleted or modified.
    """
    configure_logging(log_level, log_format)

    options = ScanOptions(
        rule=ClassificationRule(
            min_age_days=min_age_days,
            exclude_tag_keys=exclude_tag_keys or tuple(settings.EXCLUDE_TAG_KEYS),
            exclude_name_patterns=exclude_name_patterns or tuple(settings.EXCLUDE_NAME_PATTERNS),
        ),
        redaction=RedactionPolicy(
            include_identifiers=include_identifiers,
            include_tag_values=include_tag_values,
        ),
        include_shared=include_shared,
        resource_groups=resource_groups,
        subscription_ids=subscription_ids,
        max_concurrency=max_concurrency,
    )

    now = datetime.now(timezone.utc)
    try:
        report = asyncio.run(run_scan(build_provider(), options, now=now))
    except ProviderAuthenticationError as e:
        logger.error("scan.authentication_failed", error=str(e))
        raise click.ClickException(str(e))
    except NoSubscriptionsError as e:
        logger.error("scan.no_subscriptions", error=str(e))
        raise click.ClickException(str(e))

    path = write_report(report.rows, build_report_path(output_dir, report_format, now), report_format)

    if preview_rows:
        click.echo(render_preview(report.rows, limit=preview_rows))
        click.echo()
    click.echo(render_summary(report))
    click.echo(f"Report written to {path}")


if __name__ == "__main__":
    main()
