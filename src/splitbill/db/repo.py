from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Iterable, Optional, Protocol

import asyncpg

from splitbill.db.codec import bill_event_from_payload, bill_event_to_payload
from splitbill.db.models import BillEvent
from splitbill.logging import get_logger, sql_logger


class BillEventNotFoundError(LookupError):
    pass


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg expects a plain postgresql:// scheme, without "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetch", query=query)
        return await self._pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query)
        return await self._pool.fetchrow(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query)
        return await self._pool.execute(query, *args)

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


class Executor(Protocol):
    async def fetch(self, query: str, *args: Any) -> Iterable[Any]: ...

    async def fetchrow(self, query: str, *args: Any) -> Any: ...

    async def execute(self, query: str, *args: Any) -> str: ...


def _affected_rows(status: str) -> int:
    # asyncpg returns command tags like "UPDATE 1" / "DELETE 0"
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


class BillEventRepository:
    def __init__(self, db: Executor) -> None:
        self.db = db
        self._log = get_logger(__name__)

    async def save(self, event: BillEvent) -> None:
        payload = json.dumps(bill_event_to_payload(event))
        await self.db.execute(
            """
            INSERT INTO bill_events (id, name, created_at, payload)
            VALUES ($1, $2, $3, $4::jsonb)
            ON CONFLICT (id) DO UPDATE
                SET name = EXCLUDED.name,
                    payload = EXCLUDED.payload
            """,
            event.id,
            event.name,
            event.timestamp,
            payload,
        )
        self._log.info(
            "bill_event.saved",
            event_id=event.id,
            participants=len(event.receipt_with_splitting.participants),
        )

    async def get_all(self) -> list[BillEvent]:
        rows = await self.db.fetch(
            """
            SELECT id, name, created_at, payload
            FROM bill_events
            ORDER BY created_at DESC
            """
        )
        events: list[BillEvent] = []
        for row in rows:
            try:
                events.append(self._decode(row))
            except ValueError as exc:
                self._log.warning("bill_event.decode_failed", event_id=row["id"], error=str(exc))
        self._log.info("bill_event.loaded", count=len(events))
        return events

    async def get_by_id(self, event_id: str) -> Optional[BillEvent]:
        row = await self.db.fetchrow(
            "SELECT id, name, created_at, payload FROM bill_events WHERE id = $1",
            event_id,
        )
        if row is None:
            self._log.info("bill_event.not_found", event_id=event_id)
            return None
        return self._decode(row)

    async def update_name(self, event_id: str, new_name: str) -> None:
        status = await self.db.execute(
            "UPDATE bill_events SET name = $1 WHERE id = $2",
            new_name.strip(),
            event_id,
        )
        if _affected_rows(status) == 0:
            raise BillEventNotFoundError(f"Bill event {event_id} not found")
        self._log.info("bill_event.renamed", event_id=event_id)

    async def delete(self, event_id: str) -> None:
        status = await self.db.execute("DELETE FROM bill_events WHERE id = $1", event_id)
        self._log.info("bill_event.deleted", event_id=event_id, existed=_affected_rows(status) > 0)

    @staticmethod
    def _decode(row: Any) -> BillEvent:
        payload = row["payload"]
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        # Columns are the source of truth for name and time; rename touches only the column
        event = bill_event_from_payload(payload)
        return replace(event, id=row["id"], timestamp=row["created_at"]).renamed(row["name"])


_global_repo: BillEventRepository | None = None


def set_global_repository(repo: BillEventRepository) -> None:
    global _global_repo
    _global_repo = repo


def get_global_repository() -> BillEventRepository:
    if _global_repo is None:
        raise RuntimeError("Repository is not initialised")
    return _global_repo
