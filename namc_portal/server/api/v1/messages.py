"""Direct messaging between members."""

from __future__ import annotations

from typing import List, Literal

from fastapi import APIRouter, Query, Request, status

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities.messages import Message, MessageStatus
from namc_portal.core.database.repositories.messages import MessageRepository
from namc_portal.core.database.repositories.users import UserRepository
from namc_portal.core.errors import NotFoundError, ValidationError
from namc_portal.core.logging_config import get_logger
from namc_portal.core.models.io.common import ApiResponse, ok
from namc_portal.core.models.io.messages import MessageCreate, MessageRead, UnreadCount
from namc_portal.server.services.deps import CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["messages"])


@router.post(
    "",
    response_model=ApiResponse[MessageRead],
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    responses={400: {"description": "Messaging yourself"}, 404: {"description": "Receiver not found"}},
)
async def send_message(body: MessageCreate, request: Request, user: CurrentUser, session: SessionDep):
    if body.receiver_id == user.id:
        raise ValidationError("You cannot send a message to yourself")
    receiver = await UserRepository(session).get_by_id(body.receiver_id)
    if receiver is None or not receiver.is_active:
        raise NotFoundError("Receiver")
    message = Message(sender_id=user.id, receiver_id=receiver.id, subject=body.subject, content=body.content)
    message = await MessageRepository(session).create(message)
    logger.info(f"Message {message.id} sent from {user.id} to {receiver.id}")
    return ok(MessageRead.model_validate(message), request=request, message="Message sent")


@router.get("", response_model=ApiResponse[List[MessageRead]], summary="List Messages")
async def list_messages(
    request: Request,
    user: CurrentUser,
    session: SessionDep,
    folder: Literal["inbox", "sent", "archived"] = "inbox",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    result = await MessageRepository(session).folder(user.id, folder, page, limit)
    return ok([MessageRead.model_validate(m) for m in result.items], request=request, page=result)


@router.get("/unread-count", response_model=ApiResponse[UnreadCount], summary="Unread Count")
async def unread_count(request: Request, user: CurrentUser, session: SessionDep):
    return ok(UnreadCount(unread=await MessageRepository(session).count_unread(user.id)), request=request)


async def _visible_message(repo: MessageRepository, message_id: str, user_id: str) -> Message:
    message = await repo.get_by_id(message_id)
    if message is None or user_id not in (message.sender_id, message.receiver_id):
        raise NotFoundError("Message")
    return message


@router.get("/{message_id}", response_model=ApiResponse[MessageRead], summary="Read Message")
async def read_message(message_id: str, request: Request, user: CurrentUser, session: SessionDep):
    """Only the sender or receiver can read a message; the receiver reading it marks it read."""
    repo = MessageRepository(session)
    message = await _visible_message(repo, message_id, user.id)
    if message.receiver_id == user.id and message.status in (MessageStatus.SENT.value, MessageStatus.DELIVERED.value):
        message.status = MessageStatus.READ.value
        message.read_at = utc_now()
        message = await repo.update(message)
    return ok(MessageRead.model_validate(message), request=request)


@router.post("/{message_id}/archive", response_model=ApiResponse[MessageRead], summary="Archive Message")
async def archive_message(message_id: str, request: Request, user: CurrentUser, session: SessionDep):
    repo = MessageRepository(session)
    message = await _visible_message(repo, message_id, user.id)
    if message.receiver_id != user.id:
        raise ValidationError("Only the receiver can archive a message")
    message.status = MessageStatus.ARCHIVED.value
    message = await repo.update(message)
    return ok(MessageRead.model_validate(message), request=request, message="Message archived")
