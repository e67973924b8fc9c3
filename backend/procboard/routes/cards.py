from fastapi import APIRouter, Depends, HTTPException, status

from .. import models, schemas
from ..dependencies import get_coordinator, get_process
from ..services import boards
from ..services.errors import InvalidPayload
from ..services.lifecycle import NamespaceLifecycleCoordinator

router = APIRouter(prefix="/api/processes/{process_name}/cards", tags=["cards"])


@router.get("", response_model=list[schemas.CardOut])
def list_cards(
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    return boards.list_cards(coordinator, process.name)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.CardOut)
def create_card(
    payload: schemas.CardCreate,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        created = boards.create_card(coordinator, process.name, payload)
    except InvalidPayload as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if created is None:
        raise HTTPException(status_code=404)
    return created


@router.get("/{card_id}", response_model=schemas.CardOut)
def get_card(
    card_id: str,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    card = boards.get_card(coordinator, process.name, card_id)
    if not card:
        raise HTTPException(status_code=404)
    return card


@router.put("/{card_id}", response_model=schemas.CardOut)
def update_card(
    card_id: str,
    payload: schemas.CardUpdate,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        card = boards.update_card(coordinator, process.name, card_id, payload)
    except InvalidPayload as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not card:
        raise HTTPException(status_code=404)
    return card


@router.delete("/{card_id}", response_model=schemas.DeletedOut)
def delete_card(
    card_id: str,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    removed = boards.delete_card(coordinator, process.name, card_id)
    if not removed:
        raise HTTPException(status_code=404)
    return schemas.DeletedOut(id=removed["id"])
