"""Message repository: inbox/sent/archived folders and unread counts."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.messages import Message, MessageStatus
from .base import Page, SQLModelRepository

FOLDERS = ("inbox", "sent", "archived")


class MessageRepository(SQLModelRepository[Message]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Message)

    async def folder(self, user_id: str, folder: str, page: int, limit: int) -> Page[Message]:
        """List one mailbox folder, newest first.

        ``inbox`` holds received, non-archived messages; ``sent`` everything the
        user sent; ``archived`` received messages the user archived.
        """
        stmt = select(Message)
        if folder == "sent":
            stmt = stmt.where(Message.sender_id == user_id)
        elif folder == "archived":
            stmt = stmt.where(Message.receiver_id == user_id, Message.status == MessageStatus.ARCHIVED.value)
        else:
            stmt = stmt.where(Message.receiver_id == user_id, Message.status != MessageStatus.ARCHIVED.value)
        stmt = stmt.order_by(Message.sent_at.desc(), Message.id)
        return await self.paginate(stmt, page, limit)

    async def count_unread(self, user_id: str) -> int:
        return await self.count(
            Message.receiver_id == user_id,
            Message.status.in_([MessageStatus.SENT.value, MessageStatus.DELIVERED.value]),
        )

    async def count_all_unread(self) -> int:
        return await self.count(Message.status.in_([MessageStatus.SENT.value, MessageStatus.DELIVERED.value]))
