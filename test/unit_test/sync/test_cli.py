"""Unit tests for the ``namc-hubspot-sync`` command."""

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from namc_portal.server.core.config import settings
from namc_portal.sync import cli
from namc_portal.sync.models import ObjectStats, SyncOptions, SyncStats


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_run():
    """Replace the database/HubSpot run and the global logging setup."""
    run = AsyncMock(return_value=SyncStats(dry_run=True, contacts=ObjectStats(total=3, created=3)))
    with patch.object(cli, "_run", run), patch.object(cli, "setup_logging"):
        yield run


class TestOptions:
    def test_dry_run_defaults(self, runner, fake_run):
        result = runner.invoke(cli.main, ["--dry-run"])

        assert result.exit_code == 0, result.output
        options: SyncOptions = fake_run.await_args.args[0]
        assert options.dry_run is True
        assert options.full_sync is False
        assert options.include_contacts and options.include_deals
        assert options.batch_size == settings.sync.batch_size
        assert "[dry-run] HubSpot sync summary (incremental)" in result.output
        assert "contacts  total=3 created=3 updated=0 errors=0" in result.output

    def test_contacts_only_with_batch_size(self, runner, fake_run):
        result = runner.invoke(cli.main, ["--dry-run", "--contacts-only", "--batch-size", "25", "--full-sync"])

        assert result.exit_code == 0, result.output
        options = fake_run.await_args.args[0]
        assert options.include_deals is False
        assert options.batch_size == 25
        assert options.full_sync is True

    def test_batch_size_range(self, runner, fake_run):
        result = runner.invoke(cli.main, ["--dry-run", "--batch-size", "500"])

        assert result.exit_code == 2
        fake_run.assert_not_awaited()

    def test_exclusive_flags(self, runner, fake_run):
        result = runner.invoke(cli.main, ["--dry-run", "--contacts-only", "--deals-only"])

        assert result.exit_code == 2
        assert "mutually exclusive" in result.output


class TestEnvironment:
    def test_live_run_requires_api_key(self, runner, fake_run):
        result = runner.invoke(cli.main, [])

        assert result.exit_code == 1
        assert "FATAL: missing required environment variable(s): HUBSPOT_API_KEY" in result.output
        fake_run.assert_not_awaited()

    def test_database_url_required(self, runner, fake_run, monkeypatch):
        monkeypatch.setattr(settings, "__pydantic_fields_set__", set())

        result = runner.invoke(cli.main, ["--dry-run"])

        assert result.exit_code == 1
        assert "DATABASE_URL" in result.output


class TestExitCode:
    def test_errors_exit_non_zero(self, runner, fake_run):
        fake_run.return_value = SyncStats(contacts=ObjectStats(total=2, errors=1))
        with patch.object(settings, "hubspot_api_key", "test-key"):
            result = runner.invoke(cli.main, [])

        assert result.exit_code == 1
        assert "success rate 50.0%" in result.output

    def test_abort_is_reported(self, runner, fake_run):
        fake_run.return_value = SyncStats(dry_run=True, aborted=True, abort_reason="could not select members")

        result = runner.invoke(cli.main, ["--dry-run"])

        assert result.exit_code == 1
        assert "ABORTED: could not select members" in result.output
