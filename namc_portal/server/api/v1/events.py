"""
Event listing and registration endpoints.

Registration keeps ``current_capacity`` in step with the active registrations
and refuses duplicates, full events and passed deadlines.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.events import Event, EventRegistration, RegistrationStatus
from namc_portal.core.database.repositories.events import (
    OPEN_STATUSES,
    EventRegistrationRepository,
    EventRepository,
)
from namc_portal.core.errors import ConflictError, NotFoundError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.events import EventRead, RegistrationRead
from namc_portal.server.services.deps import CurrentUser, EmailServiceDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["events"])


@router.get(
    "",
    response_model=ApiResponse[List[EventRead]],
    summary="Upcoming Events",
    description="Published events and events open for registration that have not started yet.",
)
async def list_events(
    request: Request,
    session: SessionDep,
    type: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    result = await EventRepository(session).upcoming(page, limit, event_type=type)
    return ok([EventRead.model_validate(e) for e in result.items], request=request, page=result)


@router.get("/mine", response_model=ApiResponse[List[RegistrationRead]], summary="My Registrations")
async def my_registrations(request: Request, user: CurrentUser, session: SessionDep):
    registrations = await EventRegistrationRepository(session).for_user(user.id)
    return ok([RegistrationRead.model_validate(r) for r in registrations], request=request)


async def _open_event(session, event_id: str) -> Event:
    event = await EventRepository(session).get_by_id(event_id)
    if event is None or event.status not in OPEN_STATUSES:
        raise NotFoundError("Event")
    return event


@router.get("/{event_id}", response_model=ApiResponse[EventRead], summary="Get Event")
async def get_event(event_id: str, request: Request, session: SessionDep):
    return ok(EventRead.model_validate(await _open_event(session, event_id)), request=request)


@router.post(
    "/{event_id}/register",
    response_model=ApiResponse[RegistrationRead],
    status_code=status.HTTP_201_CREATED,
    summary="Register For Event",
    responses={409: {"description": "Already registered, event full or registration closed"}},
)
async def register_for_event(
    event_id: str, request: Request, user: CurrentUser, session: SessionDep, email_service: EmailServiceDep
):
    event = await _open_event(session, event_id)
    events = EventRepository(session)
    registrations = EventRegistrationRepository(session)
    existing = await registrations.get_for(event.id, user.id)
    if existing is not None and existing.status != RegistrationStatus.CANCELLED.value:
        raise ConflictError("You are already registered for this event")
    if event.is_full:
        raise ConflictError("Event is at full capacity")
    if event.registration_deadline is not None and event.registration_deadline < utc_now():
        raise ConflictError("Registration deadline has passed")
    if not await events.claim_seat(event.id):
        raise ConflictError("Event is at full capacity")

    if existing is not None:
        existing.status = RegistrationStatus.REGISTERED.value
        existing.registered_at = utc_now()
        session.add(existing)
        registration = existing
    else:
        registration = EventRegistration(event_id=event.id, user_id=user.id)
        session.add(registration)
    await session.commit()
    await session.refresh(registration)
    await session.refresh(event)
    logger.info(f"Member {user.id} registered for event {event.id} ({event.current_capacity} registered)")

    result = await email_service.send_event_registration(
        user.email, user.first_name, event.title, event.start_date.strftime("%B %d, %Y")
    )
    if not result.success:
        logger.warning(f"Event registration email to {user.email} failed: {result.error}")
    return ok(RegistrationRead.model_validate(registration), request=request, message="Registered successfully")


@router.delete(
    "/{event_id}/register",
    response_model=ApiResponse[RegistrationRead],
    summary="Cancel Registration",
    responses={404: {"description": "No active registration"}},
)
async def cancel_registration(event_id: str, request: Request, user: CurrentUser, session: SessionDep):
    event = await EventRepository(session).get_by_id(event_id)
    if event is None:
        raise NotFoundError("Event")
    registration = await EventRegistrationRepository(session).get_for(event.id, user.id)
    if registration is None or registration.status == RegistrationStatus.CANCELLED.value:
        raise NotFoundError("Registration")

    registration.status = RegistrationStatus.CANCELLED.value
    session.add(registration)
    await EventRepository(session).release_seat(event.id)
    await session.commit()
    await session.refresh(registration)
    logger.info(f"Member {user.id} cancelled registration for event {event.id}")
    return ok(RegistrationRead.model_validate(registration), request=request, message="Registration cancelled")
