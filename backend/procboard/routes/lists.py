from fastapi import APIRouter, Depends, HTTPException

from .. import models, schemas
from ..dependencies import get_coordinator, get_process
from ..services import boards
from ..services.lifecycle import NamespaceLifecycleCoordinator

router = APIRouter(prefix="/api/processes/{process_name}/lists", tags=["lists"])


@router.get("", response_model=list[schemas.ListOut])
def list_lists(
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    return boards.list_lists(coordinator, process.name)


@router.post("", status_code=201, response_model=schemas.ListOut)
def create_list(
    payload: schemas.ListCreate,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    created = boards.create_list(coordinator, process.name, payload)
    if created is None:
        raise HTTPException(status_code=404)
    return created


@router.put("/{list_id}", response_model=schemas.ListOut)
def update_list(
    list_id: str,
    payload: schemas.ListUpdate,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    updated = boards.update_list(coordinator, process.name, list_id, payload)
    if not updated:
        raise HTTPException(status_code=404)
    return updated


@router.delete("/{list_id}", response_model=schemas.DeletedOut)
def delete_list(
    list_id: str,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    result = boards.delete_list(coordinator, process.name, list_id)
    if result is None:
        raise HTTPException(status_code=404)
    removed, cards_removed = result
    return schemas.DeletedOut(id=removed["id"], cascaded={"cards": cards_removed})
