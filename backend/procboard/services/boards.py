"""Process scoped list, card and chart operations."""

from __future__ import annotations

import logging
from typing import Any

from .. import schemas
from .errors import InvalidPayload
from .lifecycle import NamespaceLifecycleCoordinator
from .namespaces import NamespaceKind
from .repositories import CardRepository, ChartRepository, ListRepository

# purpose: resolve a process's namespaces through the coordinator and run repository calls
# inputs: lifecycle coordinator, canonical process name, validated payloads
# outputs: plain dict rows, None when the addressed record is missing
# status: active
# depends_on: procboard.services.lifecycle

_logger = logging.getLogger(__name__)

LISTS = NamespaceKind.LISTS
CARDS = NamespaceKind.CARDS
CHARTS = NamespaceKind.CHARTS


def list_lists(coordinator: NamespaceLifecycleCoordinator, process_name: str) -> list[dict[str, Any]]:
    with coordinator.namespace(process_name, LISTS, create=False) as handle:
        return ListRepository(handle).list() if handle else []


def create_list(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    payload: schemas.ListCreate,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, LISTS) as handle:
        return ListRepository(handle).create(payload) if handle else None


def update_list(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    list_id: str,
    payload: schemas.ListUpdate,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, LISTS, create=False) as handle:
        if handle is None:
            return None
        return ListRepository(handle).apply(list_id, payload)


def delete_list(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    list_id: str,
) -> tuple[dict[str, Any], int] | None:
    """Delete a list and every card of the process that references it."""

    with coordinator.namespaces(process_name, LISTS, CARDS, create=False) as handles:
        if handles[LISTS] is None:
            return None
        removed = ListRepository(handles[LISTS]).delete(list_id)
        if removed is None:
            return None
        cards_removed = 0
        if handles[CARDS] is not None:
            cards_removed = CardRepository(handles[CARDS]).delete_for_list(list_id)
    _logger.info("Deleted list %s of %s with %d cards", list_id, process_name, cards_removed)
    return removed, cards_removed


def list_cards(coordinator: NamespaceLifecycleCoordinator, process_name: str) -> list[dict[str, Any]]:
    with coordinator.namespace(process_name, CARDS, create=False) as handle:
        return CardRepository(handle).list() if handle else []


def get_card(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    card_id: str,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, CARDS, create=False) as handle:
        return CardRepository(handle).get(card_id) if handle else None


def create_card(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    payload: schemas.CardCreate,
) -> dict[str, Any] | None:
    with coordinator.namespaces(process_name, LISTS, create=False) as handles:
        if coordinator.get_process(process_name) is None:
            return None
        _require_list(handles[LISTS], process_name, payload.list_id)
        with coordinator.namespace(process_name, CARDS) as handle:
            return CardRepository(handle).create(payload) if handle else None


def update_card(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    card_id: str,
    payload: schemas.CardUpdate,
) -> dict[str, Any] | None:
    with coordinator.namespaces(process_name, LISTS, CARDS, create=False) as handles:
        if handles[CARDS] is None:
            return None
        if payload.list_id is not None:
            _require_list(handles[LISTS], process_name, payload.list_id)
        return CardRepository(handles[CARDS]).apply(card_id, payload)


def delete_card(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    card_id: str,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, CARDS, create=False) as handle:
        return CardRepository(handle).delete(card_id) if handle else None


def list_charts(coordinator: NamespaceLifecycleCoordinator, process_name: str) -> list[dict[str, Any]]:
    with coordinator.namespace(process_name, CHARTS, create=False) as handle:
        return ChartRepository(handle).list() if handle else []


def create_chart(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    payload: schemas.ChartCreate,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, CHARTS) as handle:
        return ChartRepository(handle).create(payload) if handle else None


def update_chart(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    chart_id: str,
    payload: schemas.ChartUpdate,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, CHARTS, create=False) as handle:
        return ChartRepository(handle).apply(chart_id, payload) if handle else None


def delete_chart(
    coordinator: NamespaceLifecycleCoordinator,
    process_name: str,
    chart_id: str,
) -> dict[str, Any] | None:
    with coordinator.namespace(process_name, CHARTS, create=False) as handle:
        return ChartRepository(handle).delete(chart_id) if handle else None


def _require_list(handle, process_name: str, list_id: str) -> None:
    if handle is None or ListRepository(handle).get(list_id) is None:
        raise InvalidPayload(f"List '{list_id}' does not exist in process '{process_name}'")
