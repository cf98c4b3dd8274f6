from __future__ import annotations

import logging
from typing import Sequence

from .connection import DatabaseConnection
from .mysql_base import db_cursor

logger = logging.getLogger(__name__)


class WriteBatch:
    """Atomic multi-write: statements are queued and committed in one transaction.

    Repositories expose ``stage_*`` methods that append to a batch instead of
    writing immediately. Either every statement commits or none do.
    """

    def __init__(self, conn_factory: DatabaseConnection | None = None):
        self._conn_factory = conn_factory
        self._statements: list[tuple[str, tuple]] = []

    def add(self, sql: str, params: Sequence = ()) -> None:
        self._statements.append((sql, tuple(params)))

    def __len__(self) -> int:
        return len(self._statements)

    def commit(self) -> int:
        if not self._statements:
            return 0
        if self._conn_factory is None:
            raise RuntimeError("WriteBatch has no connection factory")

        with db_cursor(self._conn_factory, dictionary=False) as (_, cur):
            for sql, params in self._statements:
                cur.execute(sql, params)
        logger.debug("Committed batch of %d statements", len(self._statements))
        count = len(self._statements)
        self._statements.clear()
        return count
