"""CRUD over resolved namespace handles."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

import sqlalchemy as sa

from .. import schemas
from ..timeutils import describe_elapsed, ensure_utc, utcnow
from .namespaces import NamespaceHandle

# purpose: generic row access for lists, cards and charts plus card completion stamping
# inputs: handles produced by the lifecycle coordinator, validated request schemas
# outputs: plain dict rows with UTC-aware instants
# status: active

# card keys a client may never write through the open attribute map
_RESERVED_CARD_KEYS = frozenset(
    {"id", "_id", "attributes", "completed_at", "completion_message", "created_at", "updated_at"}
)


def _normalize(row: dict[str, Any]) -> dict[str, Any]:
    return {key: ensure_utc(value) if isinstance(value, datetime) else value for key, value in row.items()}


class NamespaceRepository:
    def __init__(self, handle: NamespaceHandle):
        self.handle = handle
        self.table = handle.table
        self.engine = handle.engine

    def list(self) -> list[dict[str, Any]]:
        query = sa.select(self.table).order_by(self.table.c.created_at.asc())
        with self.engine.connect() as conn:
            return [self._present(row._mapping) for row in conn.execute(query)]

    def get(self, record_id: str) -> dict[str, Any] | None:
        with self.engine.connect() as conn:
            row = self._fetch(conn, record_id)
        return self._present(row) if row is not None else None

    def insert(self, values: dict[str, Any]) -> dict[str, Any]:
        now = utcnow()
        row = {**values, "id": uuid4().hex, "created_at": now, "updated_at": now}
        with self.engine.begin() as conn:
            conn.execute(sa.insert(self.table).values(**row))
        return self._present(row)

    def update(self, record_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        with self.engine.begin() as conn:
            current = self._fetch(conn, record_id)
            if current is None:
                return None
            values = self._prepare_update(current, changes)
            values["updated_at"] = utcnow()
            conn.execute(sa.update(self.table).where(self.table.c.id == record_id).values(**values))
        return self._present({**current, **values})

    def delete(self, record_id: str) -> dict[str, Any] | None:
        with self.engine.begin() as conn:
            current = self._fetch(conn, record_id)
            if current is None:
                return None
            conn.execute(sa.delete(self.table).where(self.table.c.id == record_id))
        return self._present(current)

    def _fetch(self, conn: sa.Connection, record_id: str) -> dict[str, Any] | None:
        row = conn.execute(sa.select(self.table).where(self.table.c.id == record_id)).first()
        return _normalize(dict(row._mapping)) if row is not None else None

    def _prepare_update(self, current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in changes.items() if key in self.table.c and key != "id"}

    def _present(self, row) -> dict[str, Any]:
        return _normalize(dict(row))


class ListRepository(NamespaceRepository):
    def create(self, payload: schemas.ListCreate) -> dict[str, Any]:
        return self.insert({"title": payload.title})

    def apply(self, record_id: str, payload: schemas.ListUpdate) -> dict[str, Any] | None:
        return self.update(record_id, _set_fields(payload))


class ChartRepository(NamespaceRepository):
    def create(self, payload: schemas.ChartCreate) -> dict[str, Any]:
        return self.insert(payload.model_dump())

    def apply(self, record_id: str, payload: schemas.ChartUpdate) -> dict[str, Any] | None:
        return self.update(record_id, _set_fields(payload, keep_none=("filter", "period")))


class CardRepository(NamespaceRepository):
    """Cards keep declared columns typed and everything else in ``attributes``."""

    def create(self, payload: schemas.CardCreate) -> dict[str, Any]:
        values = {name: getattr(payload, name) for name in schemas.CardCreate.model_fields}
        values["attributes"] = _extras(payload)
        apply_completion(values, previous_status="pending", start_at=values["start_at"], created_at=utcnow())
        return self.insert(values)

    def apply(self, record_id: str, payload: schemas.CardUpdate) -> dict[str, Any] | None:
        changes = _set_fields(payload, keep_none=("assignee", "description", "start_at", "due_at"))
        extras = _extras(payload)
        if extras:
            changes["attributes"] = extras
        return self.update(record_id, changes)

    def delete_for_list(self, list_id: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(sa.delete(self.table).where(self.table.c.list_id == list_id))
        return result.rowcount

    def _prepare_update(self, current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
        values = super()._prepare_update(current, changes)
        if "attributes" in values:
            values["attributes"] = {**(current.get("attributes") or {}), **values["attributes"]}
        apply_completion(
            values,
            previous_status=current["status"],
            start_at=values.get("start_at", current["start_at"]),
            created_at=current["created_at"],
        )
        return values

    def _present(self, row) -> dict[str, Any]:
        data = _normalize(dict(row))
        attributes = data.pop("attributes", None) or {}
        return {**attributes, **data}


def apply_completion(
    values: dict[str, Any],
    *,
    previous_status: str,
    start_at: datetime | None,
    created_at: datetime,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Stamp or clear completion fields when ``status`` crosses into or out of done."""

    status = values.get("status", previous_status)
    if status == "done" and previous_status != "done":
        completed_at = now or utcnow()
        values["completed_at"] = completed_at
        values["completion_message"] = describe_elapsed(start_at or created_at, completed_at)
    elif status != "done" and previous_status == "done":
        values["completed_at"] = None
        values["completion_message"] = None
    return values


def _set_fields(payload, keep_none: tuple[str, ...] = ()) -> dict[str, Any]:
    fields = type(payload).model_fields
    return {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if key in fields and (value is not None or key in keep_none)
    }


def _extras(payload) -> dict[str, Any]:
    return {key: value for key, value in (payload.model_extra or {}).items() if key not in _RESERVED_CARD_KEYS}
