"""
Unit tests for HubSpotDataSyncer.

A fake CRM client records every call so the tests can check what would be
written to HubSpot without any HTTP.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Set, Tuple
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.projects import Project, ServiceRequest
from namc_portal.core.database.entities.users import User
from namc_portal.core.database.repositories.events import EventRegistrationRepository
from namc_portal.core.database.repositories.projects import ProjectRepository
from namc_portal.integrations.hubspot.errors import HubSpotApiError, HubSpotNotConfiguredError, HubSpotNotFoundError
from namc_portal.integrations.hubspot.models import HubSpotObject
from namc_portal.server.core.config import HubSpotConfig
from namc_portal.sync import HubSpotDataSyncer, SyncOptions
from namc_portal.sync.hubspot_sync import contact_properties, project_deal_properties, service_request_deal_properties


class FakeHubSpot:
    def __init__(self, *, missing: Set[str] = frozenset(), failing_emails: Set[str] = frozenset()) -> None:
        self.missing = set(missing)
        self.failing_emails = set(failing_emails)
        self.calls: List[Tuple[str, Any]] = []
        self._next = 0

    def _id(self, prefix: str) -> str:
        self._next += 1
        return f"{prefix}-{self._next}"

    async def upsert_contact(self, email: str, properties: Dict[str, Any]):
        self.calls.append(("upsert_contact", email))
        if email in self.failing_emails:
            raise HubSpotApiError("HubSpot create_contact failed: 400", status_code=400)
        return HubSpotObject(id=self._id("contact"), properties={"email": email}), True

    async def update_contact(self, contact_id: str, properties: Dict[str, Any]):
        self.calls.append(("update_contact", contact_id))
        if contact_id in self.missing:
            raise HubSpotNotFoundError("contacts", contact_id)
        return HubSpotObject(id=contact_id)

    async def create_deal(self, properties: Dict[str, Any]):
        self.calls.append(("create_deal", properties["dealname"]))
        return HubSpotObject(id=self._id("deal"), properties={})

    async def update_deal(self, deal_id: str, properties: Dict[str, Any]):
        self.calls.append(("update_deal", deal_id))
        if deal_id in self.missing:
            raise HubSpotNotFoundError("deals", deal_id)
        return HubSpotObject(id=deal_id)


async def no_sleep(seconds: float) -> None:
    return None


def syncer(session_factory, hubspot, **options) -> HubSpotDataSyncer:
    options.setdefault("batch_delay_seconds", 0)
    config = HubSpotConfig(api_key="test-key", project_pipeline="projects", service_pipeline="services")
    return HubSpotDataSyncer(
        session_factory, hubspot, SyncOptions(**options), hubspot_config=config, sleep=no_sleep
    )


async def reload(session_factory, model, record_id):
    async with session_factory() as session:
        return await session.get(model, record_id)


class TestContacts:
    async def test_creates_contacts_and_stores_ids(self, session_factory, user_factory):
        first = await user_factory()
        second = await user_factory()
        hubspot = FakeHubSpot()

        stats = await syncer(session_factory, hubspot, include_deals=False).run()

        assert stats.contacts.model_dump() == {"total": 2, "created": 2, "updated": 0, "errors": 0}
        assert sorted(c[1] for c in hubspot.calls) == sorted([first.email, second.email])
        stored = {(await reload(session_factory, User, u.id)).hubspot_contact_id for u in (first, second)}
        assert stored == {"contact-1", "contact-2"}
        assert stats.success_rate == 100.0
        assert not stats.has_errors

    async def test_known_contact_is_updated(self, session_factory, user_factory):
        user = await user_factory(hubspot_contact_id="contact-77")
        hubspot = FakeHubSpot()

        stats = await syncer(session_factory, hubspot, include_deals=False).run()

        assert hubspot.calls == [("update_contact", "contact-77")]
        assert stats.contacts.updated == 1
        assert (await reload(session_factory, User, user.id)).hubspot_contact_id == "contact-77"

    async def test_stale_contact_id_is_replaced(self, session_factory, user_factory):
        user = await user_factory(hubspot_contact_id="gone")
        hubspot = FakeHubSpot(missing={"gone"})

        stats = await syncer(session_factory, hubspot, include_deals=False).run()

        assert [c[0] for c in hubspot.calls] == ["update_contact", "upsert_contact"]
        assert stats.contacts.created == 1
        assert (await reload(session_factory, User, user.id)).hubspot_contact_id == "contact-1"

    async def test_record_failure_does_not_stop_the_run(self, session_factory, user_factory):
        bad = await user_factory()
        good = await user_factory()
        hubspot = FakeHubSpot(failing_emails={bad.email})

        stats = await syncer(session_factory, hubspot, include_deals=False).run()

        assert stats.contacts.total == 2
        assert stats.contacts.errors == 1
        assert stats.success_rate == 50.0
        assert stats.has_errors
        assert (await reload(session_factory, User, good.id)).hubspot_contact_id is not None

    async def test_failed_commit_is_counted_and_the_batch_continues(self, session_factory, user_factory):
        users = [await user_factory() for _ in range(3)]
        original_commit = AsyncSession.commit
        commits = []

        async def commit_failing_once(session):
            commits.append(session)
            if len(commits) == 1:
                raise OperationalError("COMMIT", {}, Exception("database is locked"))
            await original_commit(session)

        with patch.object(AsyncSession, "commit", commit_failing_once):
            stats = await syncer(session_factory, FakeHubSpot(), include_deals=False).run()

        assert stats.contacts.total == 3
        assert stats.contacts.errors == 1
        assert not stats.aborted
        stored = [(await reload(session_factory, User, u.id)).hubspot_contact_id for u in users]
        assert sum(1 for contact_id in stored if contact_id) == 2

    async def test_failed_read_rolls_back_without_losing_the_batch(self, session_factory, user_factory):
        for _ in range(3):
            await user_factory()
        original_count = EventRegistrationRepository.count_for_user
        calls = []

        async def count_failing_once(repository, user_id):
            calls.append(user_id)
            if len(calls) == 1:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return await original_count(repository, user_id)

        with patch.object(EventRegistrationRepository, "count_for_user", count_failing_once):
            stats = await syncer(session_factory, FakeHubSpot(), include_deals=False).run()

        assert stats.contacts.model_dump() == {"total": 3, "created": 2, "updated": 0, "errors": 1}

    async def test_incremental_skips_synced_unchanged_members(self, session_factory, user_factory):
        await user_factory(hubspot_contact_id="contact-1", updated_at=utc_now() - timedelta(days=3))
        await user_factory()
        hubspot = FakeHubSpot()

        incremental = await syncer(session_factory, hubspot, include_deals=False, dry_run=True).run()
        full = await syncer(session_factory, hubspot, include_deals=False, dry_run=True, full_sync=True).run()

        assert incremental.contacts.total == 1
        assert full.contacts.total == 2
        assert full.contacts.updated == 1
        assert full.contacts.created == 1

    async def test_batches_pause_between_each_other(self, session_factory, user_factory):
        for _ in range(5):
            await user_factory()
        pauses = []

        async def record_sleep(seconds):
            pauses.append(seconds)

        runner = HubSpotDataSyncer(
            session_factory,
            FakeHubSpot(),
            SyncOptions(batch_size=2, batch_delay_seconds=0.5, include_deals=False),
            sleep=record_sleep,
        )
        stats = await runner.run()

        assert stats.contacts.total == 5
        assert pauses == [0.5, 0.5]


class TestDeals:
    async def test_projects_and_service_requests(self, session_factory, user_factory, persist):
        requester = await user_factory()
        project, request = await persist(
            Project(title="Clinic", description="HVAC", category="Mechanical", status="AWARDED", estimated_value=2e5),
            ServiceRequest(
                requester_id=requester.id, title="Bonding", description="Need bond", service_type="BONDING"
            ),
        )
        hubspot = FakeHubSpot()

        stats = await syncer(session_factory, hubspot, include_contacts=False).run()

        assert hubspot.calls == [("create_deal", "Clinic"), ("create_deal", "Service request: Bonding")]
        assert stats.deals.model_dump() == {"total": 2, "created": 2, "updated": 0, "errors": 0}
        assert (await reload(session_factory, Project, project.id)).hubspot_deal_id == "deal-1"
        assert (await reload(session_factory, ServiceRequest, request.id)).hubspot_deal_id == "deal-2"

    async def test_stale_deal_id_is_replaced(self, session_factory, persist):
        (project,) = await persist(Project(title="Gone", description="x", category="y", hubspot_deal_id="old"))
        hubspot = FakeHubSpot(missing={"old"})

        await syncer(session_factory, hubspot, include_contacts=False).run()

        assert [c[0] for c in hubspot.calls] == ["update_deal", "create_deal"]
        assert (await reload(session_factory, Project, project.id)).hubspot_deal_id == "deal-1"

    async def test_batch_load_failure_aborts(self, session_factory, persist):
        await persist(Project(title="A", description="x", category="y"))
        failure = OperationalError("SELECT", {}, Exception("database is locked"))

        with patch.object(ProjectRepository, "get_many", AsyncMock(side_effect=failure)):
            stats = await syncer(session_factory, FakeHubSpot(), include_contacts=False).run()

        assert stats.aborted
        assert "could not load project batch 1" in stats.abort_reason
        assert stats.has_errors
        assert stats.finished_at is not None


class TestDryRun:
    async def test_no_client_needed(self, session_factory, user_factory):
        user = await user_factory()

        stats = await HubSpotDataSyncer(session_factory, None, SyncOptions(dry_run=True, batch_delay_seconds=0)).run()

        assert stats.dry_run
        assert stats.contacts.created == 1
        assert (await reload(session_factory, User, user.id)).hubspot_contact_id is None

    def test_live_run_requires_client(self, session_factory):
        with pytest.raises(HubSpotNotConfiguredError):
            HubSpotDataSyncer(session_factory, None, SyncOptions())


class TestPropertyMapping:
    def test_contact_properties(self):
        now = datetime(2026, 3, 1)
        user = User(
            id="u1",
            email="maria@example.com",
            password_hash="h",
            first_name="Maria",
            last_name="Lopez",
            member_type="REGULAR",
            skills='["Framing", "Drywall"]',
            member_since=datetime(2024, 5, 17, 9, 30),
        )

        props = contact_properties(user, 0, now)

        assert props["namc_member_id"] == "u1"
        assert props["namc_trade_specialties"] == "Framing;Drywall"
        assert props["namc_member_since"] == "2024-05-17"
        assert props["namc_engagement_score"] == 53
        assert props["namc_risk_level"] == "medium_risk"

    def test_project_deal_properties(self):
        project = Project(
            id="p1", title="Library", description="d" * 1500, category="Civil", status="COMPLETED", budget_max=90000
        )

        props = project_deal_properties(project, "projects")

        assert props["dealstage"] == "closedwon"
        assert props["pipeline"] == "projects"
        assert props["amount"] == 90000
        assert len(props["description"]) == 1000

    def test_unknown_status_uses_default_stage(self):
        request = ServiceRequest(
            id="s1", requester_id="u1", title="T", description="D", service_type="X", status="ON_HOLD"
        )

        assert service_request_deal_properties(request, "services")["dealstage"] == "appointmentscheduled"
