"""namc_portal.sync.cli

Command line entry point for the HubSpot batch sync (``namc-hubspot-sync``).

Examples:
  namc-hubspot-sync --dry-run --verbose
  namc-hubspot-sync --full-sync --batch-size 25
  namc-hubspot-sync --contacts-only

Exit code is 1 when the run aborted or any record failed to sync.
"""

from __future__ import annotations

import asyncio
import sys

import click

from namc_portal.core.database.utils import create_engine, create_sessionmaker
from namc_portal.core.logging_config import setup_logging
from namc_portal.integrations.hubspot.client import HubSpotClient
from namc_portal.server.core.config import settings

from .hubspot_sync import HubSpotDataSyncer
from .models import SyncOptions, SyncStats


async def _run(options: SyncOptions) -> SyncStats:
    engine = create_engine(settings.postgres.url, echo=settings.postgres.echo)
    session_factory = create_sessionmaker(engine)
    hubspot = HubSpotClient.from_config(settings.hubspot) if settings.hubspot.api_key else None
    try:
        return await HubSpotDataSyncer(session_factory, hubspot, options).run()
    finally:
        if hubspot is not None:
            await hubspot.aclose()
        await engine.dispose()


def _print_summary(stats: SyncStats) -> None:
    prefix = "[dry-run] " if stats.dry_run else ""
    click.echo(f"{prefix}HubSpot sync summary ({'full' if stats.full_sync else 'incremental'})")
    for name, counts in (("contacts", stats.contacts), ("deals", stats.deals)):
        click.echo(
            f"  {name:<9} total={counts.total} created={counts.created} "
            f"updated={counts.updated} errors={counts.errors}"
        )
    click.echo(f"  duration  {stats.duration_seconds:.2f}s, success rate {stats.success_rate}%")
    if stats.aborted:
        click.echo(f"  ABORTED: {stats.abort_reason}", err=True)


@click.command()
@click.option("--dry-run", is_flag=True, default=False, help="Compute the sync without writing to HubSpot")
@click.option("--full-sync", is_flag=True, default=False, help="Sync every record, not just recent or unsynced ones")
@click.option("--contacts-only", is_flag=True, default=False, help="Only sync members to contacts")
@click.option("--deals-only", is_flag=True, default=False, help="Only sync projects and service requests to deals")
@click.option(
    "--batch-size",
    default=None,
    type=click.IntRange(1, 100),
    help="Records per batch  [default: SYNC_BATCH_SIZE or 50]",
)
@click.option("--verbose", is_flag=True, default=False, help="Log every synced record")
def main(
    dry_run: bool,
    full_sync: bool,
    contacts_only: bool,
    deals_only: bool,
    batch_size: int | None,
    verbose: bool,
) -> None:
    """Push NAMC portal members, projects and service requests to HubSpot."""
    if contacts_only and deals_only:
        raise click.UsageError("--contacts-only and --deals-only are mutually exclusive")

    missing = []
    if not settings.hubspot.api_key and not dry_run:
        missing.append("HUBSPOT_API_KEY")
    if "database_url" not in settings.model_fields_set:
        missing.append("DATABASE_URL")
    if missing:
        click.echo(f"FATAL: missing required environment variable(s): {', '.join(missing)}", err=True)
        sys.exit(1)

    setup_logging(log_level="DEBUG" if verbose else None)
    options = SyncOptions(
        dry_run=dry_run,
        full_sync=full_sync,
        include_contacts=not deals_only,
        include_deals=not contacts_only,
        batch_size=batch_size or settings.sync.batch_size,
        batch_delay_seconds=settings.sync.batch_delay_seconds,
        verbose=verbose,
    )

    stats = asyncio.run(_run(options))
    _print_summary(stats)
    if stats.has_errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
