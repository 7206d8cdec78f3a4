"""
CRUD operations for persisted health logs.

- Writing hourly reports and critical alerts
- Range query on ``timestamp`` for retention
- Batched purge of expired rows
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.crud.base import BaseDB, MAX_BATCH_SIZE
from app.core.db.models.health_log import HealthLog
from app.core.enums import HealthLogType


class HealthLogDB(BaseDB[HealthLog]):
    def __init__(self):
        super().__init__(model=HealthLog)

    async def log(
        self,
        session: AsyncSession,
        log_type: HealthLogType,
        data: dict[str, Any],
        timestamp: int,
        commit_self: bool = True,
    ) -> HealthLog:
        """
        Persist one health log entry.

        Args:
            session: The database session.
            log_type: ``hourly_report`` or ``critical_alert``.
            data: JSON-serialisable payload.
            timestamp: Event time in epoch milliseconds.
            commit_self: Whether to commit after the write.

        Returns:
            The created HealthLog.
        """
        return await self.create(
            session,
            data={"type": log_type.value, "data": data, "timestamp": timestamp},
            commit_self=commit_self,
        )

    async def purge_older_than(
        self,
        session: AsyncSession,
        cutoff_ms: int,
        batch_size: int = MAX_BATCH_SIZE,
        commit_self: bool = True,
    ) -> int:
        """
        Delete one batch of logs whose timestamp is before ``cutoff_ms``.

        Oldest rows go first. Rows beyond ``batch_size`` are left for the
        next purge cycle.

        Args:
            session: The database session.
            cutoff_ms: Retention boundary in epoch milliseconds.
            batch_size: Maximum rows removed in this call.
            commit_self: Whether to commit after the delete.

        Returns:
            Number of rows deleted.
        """
        expired = await self.get_by_conditions(
            session,
            conditions=[self.model.timestamp < cutoff_ms],
            order_by=[self.model.timestamp],
            limit=batch_size,
        )
        return await self.delete_batch(
            session, [log.id for log in expired], commit_self=commit_self
        )
