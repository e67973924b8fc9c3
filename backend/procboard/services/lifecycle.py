"""Namespace lifecycle coordination for processes.

A process owns one table per resource kind, named after the process. Tables are
created on first write, so the set of tables that exist for a process is never
recorded anywhere: it is probed from the store before every structural step.
Renames and deletes run as a short saga. The metadata row is the authoritative
step and commits first. Each namespace kind is then reconciled on its own and
reported, since the store cannot move several tables atomically. Re-running the
namespace step is safe because every kind is re-probed before it is touched.

Derived names can overlap across processes (``X_lists`` is the lists table of
``X`` and the cards table of ``X_lists``). Such names are refused on create and
rename, and a table claimed by another registered process is never moved or
dropped on behalf of a different name.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .. import models, schemas
from .errors import DuplicateProcessName, InvalidPayload, NamespaceConflict
from .handle_cache import NamespaceHandleCache, ProcessNameLocks
from .namespaces import (
    NamespaceHandle,
    NamespaceKind,
    build_table,
    claimants,
    derive,
    derive_all,
    drop_namespace,
    namespace_exists,
    overlapping_names,
    rename_namespace,
)
from .registry import MetadataRegistry

_logger = logging.getLogger(__name__)

# columns that may not be cleared through a partial update
_REQUIRED_PROCESS_FIELDS = ("name", "start_at", "end_at", "status")


class NamespaceLifecycleCoordinator:
    """The only component allowed to create, rename or drop namespace tables."""

    def __init__(
        self,
        registry: MetadataRegistry,
        engine: Engine,
        cache: NamespaceHandleCache | None = None,
    ):
        self.registry = registry
        self.engine = engine
        self.cache = cache if cache is not None else NamespaceHandleCache()
        self._locks = ProcessNameLocks()

    # -- process metadata -------------------------------------------------

    def create_process(self, payload: schemas.ProcessCreate) -> schemas.ProcessCreated:
        _check_reserved(payload.name)
        with self._locks.hold(payload.name, *overlapping_names(payload.name)):
            self._check_overlap(payload.name)
            process = self.registry.create(payload)
        return schemas.ProcessCreated(
            process=schemas.ProcessOut.model_validate(process),
            namespaces={kind.value: ns for kind, ns in derive_all(process.name).items()},
        )

    def get_process(self, name: str) -> models.Process | None:
        return self.registry.get(name)

    def list_processes(self) -> list[models.Process]:
        return self.registry.list()

    def update_process(
        self,
        name: str,
        patch: schemas.ProcessUpdate,
    ) -> schemas.ProcessUpdateResult | None:
        """Apply ``patch``; a name change renames every materialized namespace."""

        changes = {
            key: value
            for key, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_PROCESS_FIELDS
        }
        if not changes:
            raise InvalidPayload("No fields to update")
        new_name = changes.get("name", name)
        _check_reserved(new_name)
        related = overlapping_names(name) | overlapping_names(new_name)
        with self._locks.hold(name, new_name, *related):
            current = self.registry.get(name)
            if current is None:
                return None
            renaming = new_name != current.name
            if renaming:
                if self.registry.name_taken(new_name, exclude_id=current.id):
                    raise DuplicateProcessName(new_name)
                self._check_overlap(new_name, exclude_id=current.id)
            process = self.registry.update(name, changes)
            if process is None:
                return None
            report = None
            if renaming:
                _logger.info("Renaming process %s to %s", name, new_name)
                report = self._rename_namespaces(name, new_name)
        return schemas.ProcessUpdateResult(
            process=schemas.ProcessOut.model_validate(process),
            rename=report,
        )

    def reconcile_rename(self, previous_name: str, name: str) -> schemas.RenameReport | None:
        """Re-run only the namespace step of an earlier rename."""

        with self._locks.hold(previous_name, name, *overlapping_names(previous_name)):
            if self.registry.get(name) is None:
                return None
            if previous_name != name and self.registry.get(previous_name) is not None:
                raise NamespaceConflict(
                    f"'{previous_name}' is registered to an active process; its namespaces are not orphaned"
                )
            return self._rename_namespaces(previous_name, name)

    def delete_process(self, name: str) -> schemas.DeleteReport:
        """Remove the metadata row and drop every namespace derived from ``name``.

        A missing row does not stop the cleanup: it may have been removed by an
        earlier attempt that failed part way through the namespaces.
        """

        with self._locks.hold(name, *overlapping_names(name)):
            removed = self.registry.delete(name)
            if removed is None:
                _logger.info("Metadata for %s already absent, dropping namespaces only", name)
            kinds = []
            for kind, namespace_id in derive_all(name).items():
                kinds.append(self._drop_kind(name, kind, namespace_id))
                self.cache.invalidate(namespace_id)
        return schemas.DeleteReport(
            name=name,
            metadata="deleted" if removed is not None else "already_absent",
            kinds=kinds,
            partial_failure=any(k.outcome == "failed" for k in kinds),
        )

    # -- namespaces ---------------------------------------------------------

    def ensure_namespace(self, name: str, kind: NamespaceKind | str) -> NamespaceHandle | None:
        """Return a handle for the namespace, creating the table on first use.

        Returns ``None`` when ``name`` is no longer registered.
        """

        with self._locks.hold(name):
            if self.registry.get(name) is None:
                return None
            return self._resolve(name, NamespaceKind(kind), create=True)

    @contextmanager
    def namespace(
        self,
        name: str,
        kind: NamespaceKind | str,
        *,
        create: bool = True,
    ) -> Iterator[NamespaceHandle | None]:
        """Hold the process lock while the caller works on one namespace.

        With ``create=False`` an absent namespace yields ``None`` instead of
        being materialized, which keeps reads from creating empty tables. With
        ``create=True`` the registry is checked under the lock, and a process
        renamed or deleted meanwhile yields ``None``.
        """

        with self._locks.hold(name):
            if create and self.registry.get(name) is None:
                yield None
            else:
                yield self._resolve(name, NamespaceKind(kind), create=create)

    @contextmanager
    def namespaces(
        self,
        name: str,
        *kinds: NamespaceKind | str,
        create: bool = True,
    ) -> Iterator[dict[NamespaceKind, NamespaceHandle | None]]:
        with self._locks.hold(name):
            if create and self.registry.get(name) is None:
                yield {NamespaceKind(kind): None for kind in kinds}
            else:
                yield {
                    NamespaceKind(kind): self._resolve(name, NamespaceKind(kind), create=create)
                    for kind in kinds
                }

    def _resolve(self, name: str, kind: NamespaceKind, *, create: bool) -> NamespaceHandle | None:
        namespace_id = derive(name, kind)
        handle = self.cache.get(namespace_id)
        if handle is not None:
            return handle
        if not create and not namespace_exists(self.engine, namespace_id):
            return None
        return self.cache.get_or_create(namespace_id, lambda: self._open(namespace_id, kind))

    def _open(self, namespace_id: str, kind: NamespaceKind) -> NamespaceHandle:
        table = build_table(namespace_id, kind)
        if not namespace_exists(self.engine, namespace_id):
            table.create(self.engine, checkfirst=True)
            _logger.info("Created %s namespace %s", kind.value, namespace_id)
        return NamespaceHandle(namespace_id=namespace_id, kind=kind, table=table, engine=self.engine)

    def _check_overlap(self, name: str, *, exclude_id: UUID | None = None) -> None:
        for other in sorted(overlapping_names(name)):
            if self.registry.name_taken(other, exclude_id=exclude_id):
                raise NamespaceConflict(f"Process name '{name}' shares storage with process '{other}'")

    def _owner(self, namespace_id: str, name: str) -> str | None:
        """Registered process other than ``name`` that derives ``namespace_id``."""

        for other in sorted(claimants(namespace_id)):
            if other != name and self.registry.get(other) is not None:
                return other
        return None

    def _rename_namespaces(self, previous_name: str, name: str) -> schemas.RenameReport:
        kinds = []
        for kind in NamespaceKind:
            source, target = derive(previous_name, kind), derive(name, kind)
            kinds.append(self._rename_kind(name, kind, source, target))
            self.cache.invalidate_many((source, target))
        report = schemas.RenameReport(
            previous_name=previous_name,
            name=name,
            kinds=kinds,
            partial_failure=any(k.outcome == "failed" for k in kinds),
        )
        if report.partial_failure:
            _logger.warning("Rename %s -> %s left namespaces behind: %s", previous_name, name,
                            [k.kind for k in kinds if k.outcome == "failed"])
        return report

    def _rename_kind(self, name: str, kind: NamespaceKind, source: str, target: str) -> schemas.KindReport:
        try:
            if not namespace_exists(self.engine, source):
                _logger.debug("No %s namespace %s to rename", kind.value, source)
                return schemas.KindReport(kind=kind.value, outcome="skipped_absent", namespace=source, target=target)
            owner = self._owner(source, name)
            if owner is not None:
                return schemas.KindReport(
                    kind=kind.value,
                    outcome="failed",
                    namespace=source,
                    target=target,
                    detail=f"namespace {source} belongs to process {owner}",
                )
            if namespace_exists(self.engine, target):
                return schemas.KindReport(
                    kind=kind.value,
                    outcome="failed",
                    namespace=source,
                    target=target,
                    detail=f"namespace {target} already exists",
                )
            rename_namespace(self.engine, source, target, kind)
        except SQLAlchemyError as exc:
            _logger.warning("Renaming namespace %s to %s failed: %s", source, target, exc)
            return schemas.KindReport(kind=kind.value, outcome="failed", namespace=source, target=target, detail=str(exc))
        _logger.info("Renamed %s namespace %s to %s", kind.value, source, target)
        return schemas.KindReport(kind=kind.value, outcome="renamed", namespace=source, target=target)

    def _drop_kind(self, name: str, kind: NamespaceKind, namespace_id: str) -> schemas.KindReport:
        try:
            if not namespace_exists(self.engine, namespace_id):
                _logger.debug("No %s namespace %s to drop", kind.value, namespace_id)
                return schemas.KindReport(kind=kind.value, outcome="skipped_absent", namespace=namespace_id)
            owner = self._owner(namespace_id, name)
            if owner is not None:
                _logger.warning("Refusing to drop namespace %s of process %s", namespace_id, owner)
                return schemas.KindReport(
                    kind=kind.value,
                    outcome="failed",
                    namespace=namespace_id,
                    detail=f"namespace {namespace_id} belongs to process {owner}",
                )
            drop_namespace(self.engine, namespace_id, kind)
        except SQLAlchemyError as exc:
            _logger.warning("Dropping namespace %s failed: %s", namespace_id, exc)
            return schemas.KindReport(kind=kind.value, outcome="failed", namespace=namespace_id, detail=str(exc))
        _logger.info("Dropped %s namespace %s", kind.value, namespace_id)
        return schemas.KindReport(kind=kind.value, outcome="dropped", namespace=namespace_id)


def _check_reserved(name: str) -> None:
    clashes = set(derive_all(name).values()) & set(models.Base.metadata.tables)
    if clashes:
        raise InvalidPayload(f"Process name '{name}' collides with reserved table {sorted(clashes)[0]}")
