"""Metadata registry: the canonical record of every process."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from .. import models, schemas
from ..timeutils import utcnow
from .errors import DuplicateProcessName

# purpose: single source of truth for process names, dates and status
# depends_on: procboard.models.Process
# status: active

_logger = logging.getLogger(__name__)


class MetadataRegistry:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    def create(self, payload: schemas.ProcessCreate) -> models.Process:
        """Insert a new process row, refusing names held by an active process."""

        with self._session() as db:
            if _find(db, payload.name) is not None:
                raise DuplicateProcessName(payload.name)
            process = models.Process(**payload.model_dump())
            db.add(process)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateProcessName(payload.name) from exc
            db.refresh(process)
            _logger.info("Registered process %s", process.name)
            return process

    def get(self, name: str) -> models.Process | None:
        with self._session() as db:
            return _find(db, name)

    def list(self) -> list[models.Process]:
        with self._session() as db:
            return db.query(models.Process).order_by(models.Process.created_at.asc()).all()

    def name_taken(self, name: str, *, exclude_id: UUID | None = None) -> bool:
        with self._session() as db:
            query = db.query(models.Process).filter(models.Process.name == name)
            if exclude_id is not None:
                query = query.filter(models.Process.id != exclude_id)
            return db.query(query.exists()).scalar()

    def update(self, name: str, changes: dict[str, Any]) -> models.Process | None:
        """Apply a partial field set to the row currently registered as ``name``.

        A ``name`` change here only moves the metadata; callers go through the
        lifecycle coordinator so the derived namespaces follow.
        """

        with self._session() as db:
            process = _find(db, name)
            if process is None:
                return None
            for key, value in changes.items():
                setattr(process, key, value)
            process.updated_at = utcnow()
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateProcessName(changes.get("name", name)) from exc
            db.refresh(process)
            return process

    def delete(self, name: str) -> models.Process | None:
        with self._session() as db:
            process = _find(db, name)
            if process is None:
                return None
            db.delete(process)
            db.commit()
            _logger.info("Removed metadata for process %s", name)
            return process


def _find(db: Session, name: str) -> models.Process | None:
    return db.query(models.Process).filter(models.Process.name == name).first()
