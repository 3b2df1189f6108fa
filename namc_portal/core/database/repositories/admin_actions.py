"""
Admin audit log repository.

``record`` is the single write path for admin audit rows; it also mirrors the
event onto the ``namc_portal.audit`` logger.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from namc_portal.core.logging_config import log_auth_action

from ..entities.admin_actions import AdminAction
from .base import Page, SQLModelRepository


class AdminActionRepository(SQLModelRepository[AdminAction]):
    """Repository for admin audit entries."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AdminAction)

    async def record(
        self,
        *,
        admin_id: str,
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AdminAction:
        """Persist one audit entry and emit it on the audit logger.

        Args:
            admin_id: Acting admin
            action: Action name, e.g. ``CONTRACTOR_UPDATE``
            target_type: Kind of record affected
            target_id: Id of the record affected
            details: JSON-serializable context
            ip_address: Client address of the request
            user_agent: Client user agent of the request

        Returns:
            The stored AdminAction
        """
        entry = AdminAction(
            admin_id=admin_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=json.dumps(details, default=str) if details is not None else None,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
        )
        entry = await self.create(entry)
        log_auth_action(
            action,
            user_id=admin_id,
            target_type=target_type,
            target_id=target_id,
            ip_address=ip_address,
        )
        return entry

    async def search(
        self, *, action: Optional[str] = None, admin_id: Optional[str] = None, page: int = 1, limit: int = 50
    ) -> Page[AdminAction]:
        stmt = select(AdminAction)
        if action:
            stmt = stmt.where(AdminAction.action == action)
        if admin_id:
            stmt = stmt.where(AdminAction.admin_id == admin_id)
        stmt = stmt.order_by(AdminAction.created_at.desc(), AdminAction.id)
        return await self.paginate(stmt, page, limit)

    async def recent(self, limit: int = 10) -> List[AdminAction]:
        stmt = select(AdminAction).order_by(AdminAction.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
