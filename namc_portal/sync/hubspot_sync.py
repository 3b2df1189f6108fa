"""
Batch push of members, projects and service requests into HubSpot.

The syncer snapshots the ids due for a push, then walks them in batches of
``batch_size`` with a fixed pause between batches. Each batch gets its own
database session. A failure on one record is counted and the run moves on; a
failure loading a batch aborts the run.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.projects import (
    Project,
    ProjectStatus,
    ServiceRequest,
    ServiceRequestStatus,
)
from namc_portal.core.database.entities.users import User
from namc_portal.core.database.repositories.events import EventRegistrationRepository
from namc_portal.core.database.repositories.projects import ProjectRepository, ServiceRequestRepository
from namc_portal.core.database.repositories.users import UserRepository
from namc_portal.core.logging_config import get_logger
from namc_portal.core.monitoring import log_sync_run
from namc_portal.integrations.hubspot.client import HubSpotClient
from namc_portal.integrations.hubspot.errors import HubSpotApiError, HubSpotNotConfiguredError, HubSpotNotFoundError
from namc_portal.server.core.config import HubSpotConfig, settings

from .models import ObjectStats, SyncOptions, SyncStats
from .scoring import engagement_score, risk_level

logger = get_logger(__name__)

INCREMENTAL_WINDOW = timedelta(hours=24)

PROJECT_DEAL_STAGES = {
    ProjectStatus.DRAFT.value: "appointmentscheduled",
    ProjectStatus.PUBLISHED.value: "qualifiedtobuy",
    ProjectStatus.BIDDING_OPEN.value: "presentationscheduled",
    ProjectStatus.BIDDING_CLOSED.value: "decisionmakerboughtin",
    ProjectStatus.AWARDED.value: "contractsent",
    ProjectStatus.COMPLETED.value: "closedwon",
    ProjectStatus.CANCELLED.value: "closedlost",
}

SERVICE_REQUEST_DEAL_STAGES = {
    ServiceRequestStatus.OPEN.value: "appointmentscheduled",
    ServiceRequestStatus.IN_PROGRESS.value: "qualifiedtobuy",
    ServiceRequestStatus.COMPLETED.value: "closedwon",
    ServiceRequestStatus.CANCELLED.value: "closedlost",
}

DEFAULT_DEAL_STAGE = "appointmentscheduled"


class BatchLoadError(RuntimeError):
    """Raised when a batch of records cannot be read from the database."""


def _date(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value else None


def contact_properties(user: User, event_count: int, now: datetime) -> Dict[str, Any]:
    """HubSpot contact properties for a member."""
    score = engagement_score(user, event_count, now)
    return {
        "email": user.email,
        "firstname": user.first_name,
        "lastname": user.last_name,
        "company": user.company,
        "jobtitle": user.title,
        "phone": user.phone,
        "city": user.city,
        "state": user.state,
        "zip": user.zip_code,
        "website": user.website,
        "namc_member_id": user.id,
        "namc_member_type": user.member_type,
        "namc_member_since": _date(user.member_since),
        "namc_trade_specialties": ";".join(user.get_skills_list()) or None,
        "namc_engagement_score": score,
        "namc_risk_level": risk_level(score),
    }


def project_deal_properties(project: Project, pipeline: str) -> Dict[str, Any]:
    return {
        "dealname": project.title,
        "pipeline": pipeline,
        "dealstage": PROJECT_DEAL_STAGES.get(project.status, DEFAULT_DEAL_STAGE),
        "amount": project.estimated_value if project.estimated_value is not None else project.budget_max,
        "closedate": _date(project.deadline_date),
        "description": project.description[:1000] if project.description else None,
        "namc_project_id": project.id,
        "namc_project_category": project.category,
        "namc_project_location": project.location,
        "namc_bonding_required": project.bonding_required,
        "namc_client_name": project.client_name,
        "namc_applications_received": project.application_count,
    }


def service_request_deal_properties(request: ServiceRequest, pipeline: str) -> Dict[str, Any]:
    return {
        "dealname": f"Service request: {request.title}",
        "pipeline": pipeline,
        "dealstage": SERVICE_REQUEST_DEAL_STAGES.get(request.status, DEFAULT_DEAL_STAGE),
        "amount": request.max_budget,
        "description": request.description[:1000] if request.description else None,
        "namc_service_request_id": request.id,
        "namc_service_type": request.service_type,
        "namc_urgency": request.urgency,
        "namc_requester_id": request.requester_id,
    }


def _chunks(ids: Sequence[str], size: int) -> List[List[str]]:
    return [list(ids[i : i + size]) for i in range(0, len(ids), size)]


class HubSpotDataSyncer:
    """
    Runs one sync pass.

    Args:
        session_factory: Creates the database sessions used per batch
        hubspot: CRM client; may be ``None`` only for dry runs
        options: What to sync and how
        hubspot_config: Pipelines for the deals (defaults to the app settings)
        sleep: Awaitable used for the pause between batches
        clock: Current naive-UTC time
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hubspot: Optional[HubSpotClient],
        options: Optional[SyncOptions] = None,
        *,
        hubspot_config: Optional[HubSpotConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.options = options or SyncOptions()
        if hubspot is None and not self.options.dry_run:
            raise HubSpotNotConfiguredError()
        self.session_factory = session_factory
        self.hubspot = hubspot
        self.hubspot_config = hubspot_config or settings.hubspot
        self._sleep = sleep
        self._clock = clock
        self.stats = SyncStats(dry_run=self.options.dry_run, full_sync=self.options.full_sync)

    def _log_record(self, message: str) -> None:
        if self.options.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    async def run(self) -> SyncStats:
        """Sync everything the options select and return the statistics."""
        started = time.perf_counter()
        self.stats.started_at = self._clock()
        since = self.stats.started_at - INCREMENTAL_WINDOW
        mode = "full" if self.options.full_sync else "incremental"
        logger.info(
            f"Starting HubSpot sync ({mode}, dry_run={self.options.dry_run}, batch_size={self.options.batch_size})"
        )

        try:
            if self.options.include_contacts:
                await self._sync_contacts(since)
            if self.options.include_deals:
                await self._sync_project_deals(since)
                await self._sync_service_request_deals(since)
        except BatchLoadError as e:
            self.stats.aborted = True
            self.stats.abort_reason = str(e)
            logger.error(f"HubSpot sync aborted: {e}")

        self.stats.finished_at = self._clock()
        self.stats.duration_seconds = round(time.perf_counter() - started, 3)
        logger.info(
            f"HubSpot sync finished: contacts={self.stats.contacts.model_dump()} "
            f"deals={self.stats.deals.model_dump()} success_rate={self.stats.success_rate}%"
        )
        log_sync_run(self.options.dry_run, self.options.full_sync, self.stats.model_dump(mode="json"))
        return self.stats

    async def _candidate_ids(self, repository_cls, what: str, since: datetime) -> List[str]:
        try:
            async with self.session_factory() as session:
                return await repository_cls(session).sync_candidate_ids(full_sync=self.options.full_sync, since=since)
        except SQLAlchemyError as e:
            raise BatchLoadError(f"could not select {what} to sync: {e}") from e

    async def _batches(self, repository_cls, ids: List[str], what: str):
        """
        Yield ``(session, records)`` per batch, pausing between batches.

        The session is only used for reads. Records are detached from it, so
        rolling back a failed read leaves them loaded; id write-backs go
        through ``_store_id``.
        """
        for index, chunk in enumerate(_chunks(ids, self.options.batch_size)):
            if index > 0 and self.options.batch_delay_seconds > 0:
                await self._sleep(self.options.batch_delay_seconds)
            async with self.session_factory() as session:
                try:
                    records = await repository_cls(session).get_many(chunk)
                except SQLAlchemyError as e:
                    raise BatchLoadError(f"could not load {what} batch {index + 1}: {e}") from e
                session.expunge_all()
                logger.debug(f"Processing {what} batch {index + 1} ({len(records)} records)")
                yield session, records

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def _sync_contacts(self, since: datetime) -> None:
        ids = await self._candidate_ids(UserRepository, "members", since)
        logger.info(f"Members selected for contact sync: {len(ids)}")
        async for session, users in self._batches(UserRepository, ids, "member"):
            registrations = EventRegistrationRepository(session)
            for user in users:
                user_id = user.id
                self.stats.contacts.total += 1
                try:
                    event_count = await registrations.count_for_user(user_id)
                    properties = contact_properties(user, event_count, self._clock())
                    await self._push_contact(user, properties)
                except (HubSpotApiError, SQLAlchemyError) as e:
                    self.stats.contacts.errors += 1
                    logger.error(f"Failed to sync member {user_id} to HubSpot: {e}")
                    if isinstance(e, SQLAlchemyError):
                        await session.rollback()

    async def _push_contact(self, user: User, properties: Dict[str, Any]) -> None:
        stats = self.stats.contacts
        if self.options.dry_run:
            self._count(stats, created=user.hubspot_contact_id is None)
            self._log_record(f"[dry-run] would sync member {user.email}")
            return

        if user.hubspot_contact_id:
            try:
                await self.hubspot.update_contact(user.hubspot_contact_id, properties)
                self._count(stats, created=False)
                self._log_record(f"Updated HubSpot contact {user.hubspot_contact_id} for {user.email}")
                return
            except HubSpotNotFoundError:
                logger.warning(f"HubSpot contact {user.hubspot_contact_id} for {user.email} no longer exists")
                user.hubspot_contact_id = None

        contact, created = await self.hubspot.upsert_contact(user.email, properties)
        self._count(stats, created=created)
        self._log_record(f"{'Created' if created else 'Updated'} HubSpot contact {contact.id} for {user.email}")
        await self._store_id(user, "hubspot_contact_id", contact.id)

    # ------------------------------------------------------------------
    # Deals
    # ------------------------------------------------------------------

    async def _sync_project_deals(self, since: datetime) -> None:
        ids = await self._candidate_ids(ProjectRepository, "projects", since)
        logger.info(f"Projects selected for deal sync: {len(ids)}")
        pipeline = self.hubspot_config.project_pipeline
        async for _session, projects in self._batches(ProjectRepository, ids, "project"):
            for project in projects:
                await self._sync_deal(project, project_deal_properties(project, pipeline), "project")

    async def _sync_service_request_deals(self, since: datetime) -> None:
        ids = await self._candidate_ids(ServiceRequestRepository, "service requests", since)
        logger.info(f"Service requests selected for deal sync: {len(ids)}")
        pipeline = self.hubspot_config.service_pipeline
        async for _session, requests in self._batches(ServiceRequestRepository, ids, "service request"):
            for request in requests:
                await self._sync_deal(
                    request, service_request_deal_properties(request, pipeline), "service request"
                )

    async def _sync_deal(self, record, properties: Dict[str, Any], kind: str) -> None:
        stats = self.stats.deals
        stats.total += 1
        if self.options.dry_run:
            self._count(stats, created=record.hubspot_deal_id is None)
            self._log_record(f"[dry-run] would sync {kind} {record.id}")
            return

        try:
            if record.hubspot_deal_id:
                try:
                    await self.hubspot.update_deal(record.hubspot_deal_id, properties)
                    self._count(stats, created=False)
                    self._log_record(f"Updated HubSpot deal {record.hubspot_deal_id} for {kind} {record.id}")
                    return
                except HubSpotNotFoundError:
                    logger.warning(f"HubSpot deal {record.hubspot_deal_id} for {kind} {record.id} no longer exists")
                    record.hubspot_deal_id = None
            deal = await self.hubspot.create_deal(properties)
            self._count(stats, created=True)
            self._log_record(f"Created HubSpot deal {deal.id} for {kind} {record.id}")
            await self._store_id(record, "hubspot_deal_id", deal.id)
        except (HubSpotApiError, SQLAlchemyError) as e:
            stats.errors += 1
            logger.error(f"Failed to sync {kind} {record.id} to HubSpot: {e}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _count(stats: ObjectStats, *, created: bool) -> None:
        if created:
            stats.created += 1
        else:
            stats.updated += 1

    async def _store_id(self, record, attribute: str, hubspot_id: str) -> None:
        """
        Write the HubSpot id back unless the record already carries one.

        Each write-back commits in its own session, so a failed commit only
        loses this record's id.
        """
        if getattr(record, attribute):
            return
        model = type(record)
        async with self.session_factory() as session:
            await session.execute(update(model).where(model.id == record.id).values({attribute: hubspot_id}))
            await session.commit()
        setattr(record, attribute, hubspot_id)
