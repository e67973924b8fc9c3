"""Process metadata and namespace lifecycle routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from .. import schemas
from ..dependencies import get_coordinator
from ..services.errors import DuplicateProcessName, InvalidPayload, NamespaceConflict
from ..services.lifecycle import NamespaceLifecycleCoordinator

# purpose: expose process create, rename, delete and reconciliation to clients
# depends_on: procboard.services.lifecycle

router = APIRouter(prefix="/api/processes", tags=["processes"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.ProcessCreated)
def create_process(
    payload: schemas.ProcessCreate,
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        return coordinator.create_process(payload)
    except (DuplicateProcessName, NamespaceConflict) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except InvalidPayload as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("", response_model=list[schemas.ProcessOut])
def list_processes(coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator)):
    return coordinator.list_processes()


@router.get("/{process_name}", response_model=schemas.ProcessOut)
def get_process(process_name: str, coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator)):
    process = coordinator.get_process(process_name)
    if not process:
        raise HTTPException(status_code=404)
    return process


@router.put("/{process_name}", response_model=schemas.ProcessUpdateResult)
def update_process(
    process_name: str,
    patch: schemas.ProcessUpdate,
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        result = coordinator.update_process(process_name, patch)
    except (DuplicateProcessName, NamespaceConflict) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except InvalidPayload as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if result is None:
        raise HTTPException(status_code=404)
    return result


@router.post("/{process_name}/reconcile", response_model=schemas.RenameReport)
def reconcile_process(
    process_name: str,
    payload: schemas.ReconcileRequest,
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
):
    try:
        report = coordinator.reconcile_rename(payload.previous_name, process_name)
    except NamespaceConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if report is None:
        raise HTTPException(status_code=404)
    return report


@router.delete("/{process_name}", response_model=schemas.DeleteReport)
def delete_process(process_name: str, coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator)):
    report = coordinator.delete_process(process_name)
    if not report.found:
        raise HTTPException(status_code=404, detail=f"Process '{process_name}' not found")
    return report
