from fastapi import Depends, HTTPException, Request

from . import models
from .services.lifecycle import NamespaceLifecycleCoordinator


def get_coordinator(request: Request) -> NamespaceLifecycleCoordinator:
    return request.app.state.coordinator


def get_process(
    process_name: str,
    coordinator: NamespaceLifecycleCoordinator = Depends(get_coordinator),
) -> models.Process:
    process = coordinator.get_process(process_name)
    if process is None:
        raise HTTPException(status_code=404, detail=f"Process '{process_name}' not found")
    return process
