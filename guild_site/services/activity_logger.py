"""
Operation logger

Records refresh and scheduler steps in the web_logs table alongside the
regular application log.
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models.database import DatabaseHandle
from ..models.web_log import LogStatus, WebLog
from .storage import GuildStorage

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Best-effort persistence of operation log entries"""

    def __init__(self, db: DatabaseHandle):
        self.db = db

    async def log_operation(
        self,
        operation: str,
        status: str,
        details: str = "",
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        """
        Write one entry

        Args:
            operation: Short operation key, e.g. "refresh_guild_members"
            status: success, error, warning or info
            details: Human readable description
            duration_ms: Elapsed time in milliseconds
            metadata: Extra JSON-serializable context

        Returns:
            Id of the stored entry, or None when the entry could not be stored
        """
        status = LogStatus(status).value
        level = logging.ERROR if status == LogStatus.ERROR.value else logging.INFO
        logger.log(level, f"[{operation}] {status}: {details}")

        try:
            async with self.db.session() as session:
                entry = await GuildStorage(session).create_web_log(
                    operation=operation,
                    status=status,
                    details=details,
                    duration=duration_ms,
                    log_metadata=json.dumps(metadata, default=str) if metadata else None
                )
                return entry.id
        except SQLAlchemyError as e:
            logger.error(f"Error logging operation {operation}: {str(e)}")
            return None

    @asynccontextmanager
    async def track(self, operation: str, details: str = "") -> AsyncIterator[Dict[str, Any]]:
        """
        Time a block and log its outcome

        The yielded dict is stored as metadata; an exception is logged with
        status "error" and re-raised.
        """
        started = time.monotonic()
        metadata: Dict[str, Any] = {}
        try:
            yield metadata
        except Exception as e:
            elapsed = int((time.monotonic() - started) * 1000)
            await self.log_operation(operation, "error", f"{details} failed: {str(e)}".strip(), elapsed, metadata)
            raise
        elapsed = int((time.monotonic() - started) * 1000)
        await self.log_operation(operation, "success", details or f"{operation} completed", elapsed, metadata)

    async def recent(
        self,
        limit: int = 50,
        operation: Optional[str] = None,
        status: Optional[str] = None,
        offset: int = 0
    ) -> List[WebLog]:
        """Newest entries first"""
        async with self.db.session() as session:
            return await GuildStorage(session).get_web_logs(
                limit=limit, offset=offset, operation=operation, status=status
            )
