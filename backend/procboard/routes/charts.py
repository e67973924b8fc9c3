from fastapi import APIRouter, Depends, HTTPException

from .. import models, schemas
from ..dependencies import get_coordinator, get_process
from ..services import boards
from ..services.lifecycle import NamespaceLifecycleCoordinator

router = APIRouter(prefix="/api/processes/{process_name}/charts", tags=["charts"])


@router.get("", response_model=list[schemas.ChartOut])
def list_charts(
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    return boards.list_charts(coordinator, process.name)


@router.post("", status_code=201, response_model=schemas.ChartOut)
def create_chart(
    payload: schemas.ChartCreate,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    created = boards.create_chart(coordinator, process.name, payload)
    if created is None:
        raise HTTPException(status_code=404)
    return created


@router.put("/{chart_id}", response_model=schemas.ChartOut)
def update_chart(
    chart_id: str,
    payload: schemas.ChartUpdate,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    chart = boards.update_chart(coordinator, process.name, chart_id, payload)
    if not chart:
        raise HTTPException(status_code=404)
    return chart


@router.delete("/{chart_id}", response_model=schemas.DeletedOut)
def delete_chart(
    chart_id: str,
    process: models.Process = Depends(get_process),
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    removed = boards.delete_chart(coordinator, process.name, chart_id)
    if not removed:
        raise HTTPException(status_code=404)
    return schemas.DeletedOut(id=removed["id"])
