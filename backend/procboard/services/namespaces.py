"""Derivation of physical namespace tables from a process name."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import sqlalchemy as sa
from sqlalchemy.engine import Engine

# purpose: map (process name, resource kind) to the table holding that kind's rows
# inputs: canonical process name already trimmed and validated by the registry
# outputs: namespace identifiers and SQLAlchemy table shapes bound to them
# status: active


class NamespaceKind(str, enum.Enum):
    LISTS = "lists"
    CARDS = "cards"
    CHARTS = "charts"


_SUFFIXES = {
    NamespaceKind.CARDS: "",
    NamespaceKind.LISTS: "_lists",
    NamespaceKind.CHARTS: "_graphs",
}


def derive(name: str, kind: NamespaceKind | str) -> str:
    """Return the namespace id for ``kind`` under process ``name``."""

    return f"{name}{_SUFFIXES[NamespaceKind(kind)]}"


def derive_all(name: str) -> dict[NamespaceKind, str]:
    return {kind: derive(name, kind) for kind in NamespaceKind}


def claimants(namespace_id: str) -> dict[str, NamespaceKind]:
    """Every process name whose derivation yields ``namespace_id``, with the kind."""

    names = {}
    for kind, suffix in _SUFFIXES.items():
        if namespace_id.endswith(suffix) and len(namespace_id) > len(suffix):
            names[namespace_id[: len(namespace_id) - len(suffix)]] = kind
    return names


def overlapping_names(name: str) -> set[str]:
    """Other process names sharing at least one derived namespace with ``name``.

    ``X_lists`` is both the lists table of ``X`` and the cards table of ``X_lists``.
    """

    names = set()
    for namespace_id in derive_all(name).values():
        names.update(claimants(namespace_id))
    names.discard(name)
    return names


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _list_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("title", sa.String, nullable=False),
        *_timestamps(),
    ]


def _card_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("list_id", sa.String(32), nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("assignee", sa.String),
        sa.Column("status", sa.String, nullable=False, default="pending"),
        sa.Column("start_at", sa.DateTime(timezone=True)),
        sa.Column("due_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("completion_message", sa.String),
        # unvalidated extras sent by clients alongside the required fields
        sa.Column("attributes", sa.JSON, nullable=False, default=dict),
        *_timestamps(),
    ]


def _chart_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("chart_type", sa.String, nullable=False),
        sa.Column("filter", sa.String),
        sa.Column("period", sa.String),
        *_timestamps(),
    ]


_SHAPES = {
    NamespaceKind.LISTS: _list_columns,
    NamespaceKind.CARDS: _card_columns,
    NamespaceKind.CHARTS: _chart_columns,
}


# index names are schema wide, so they carry the namespace id and follow renames
_INDEXED = {
    NamespaceKind.CARDS: ("list_id",),
}


def index_name(namespace_id: str, column: str) -> str:
    return f"ix_{namespace_id}_{column}"


def build_table(namespace_id: str, kind: NamespaceKind) -> sa.Table:
    """Declare the table for a namespace on its own private MetaData."""

    indexes = [sa.Index(index_name(namespace_id, column), column) for column in _INDEXED.get(kind, ())]
    return sa.Table(namespace_id, sa.MetaData(), *_SHAPES[kind](), *indexes)


@dataclass(frozen=True)
class NamespaceHandle:
    """An opened, reusable reference to one namespace table."""

    namespace_id: str
    kind: NamespaceKind
    table: sa.Table
    engine: Engine


def namespace_exists(engine: Engine, namespace_id: str) -> bool:
    return sa.inspect(engine).has_table(namespace_id)


def rename_namespace(engine: Engine, source: str, target: str, kind: NamespaceKind) -> None:
    """Move ``source`` to ``target`` and rename its indexes in one transaction."""

    preparer = engine.dialect.identifier_preparer
    with engine.begin() as conn:
        conn.execute(
            sa.text(f"ALTER TABLE {preparer.quote(source)} RENAME TO {preparer.quote(target)}")
        )
        existing = {index["name"] for index in sa.inspect(conn).get_indexes(target)}
        for column in _INDEXED.get(kind, ()):
            old_index = index_name(source, column)
            if old_index in existing:
                conn.execute(sa.text(f"DROP INDEX {preparer.quote(old_index)}"))
        for index in build_table(target, kind).indexes:
            index.create(conn, checkfirst=True)


def drop_namespace(engine: Engine, namespace_id: str, kind: NamespaceKind) -> None:
    build_table(namespace_id, kind).drop(engine, checkfirst=True)
