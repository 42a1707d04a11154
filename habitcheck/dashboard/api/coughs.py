from fastapi import APIRouter, Depends
from typing import List, Dict, Any

from habitcheck.core.store import EntryStore
from habitcheck.shared.models import APIResponse, CoughLogCreateRequest, CoughLogUpdateRequest
from ..dependencies import get_entry_store, persistence_warning

router = APIRouter(prefix="/api/coughs", tags=["coughs"])


@router.get("/", response_model=List[Dict[str, Any]])
async def list_cough_logs(store: EntryStore = Depends(get_entry_store)):
    """All cough logs, newest first"""
    logs = sorted(store.get_cough_logs(), key=lambda log: log.timestamp, reverse=True)
    return [log.to_dict() for log in logs]


@router.get("/{log_id}", response_model=Dict[str, Any])
async def get_cough_log(log_id: str, store: EntryStore = Depends(get_entry_store)):
    return store.get_cough_log(log_id).to_dict()


@router.post("/", response_model=APIResponse, status_code=201)
async def create_cough_log(request: CoughLogCreateRequest, store: EntryStore = Depends(get_entry_store)):
    log = store.add_cough_log(request.to_draft())
    return APIResponse(
        success=True,
        message="Cough logged",
        data=log.to_dict(),
        warning=persistence_warning(store)
    )


@router.patch("/{log_id}", response_model=APIResponse)
async def update_cough_log(log_id: str, request: CoughLogUpdateRequest,
                           store: EntryStore = Depends(get_entry_store)):
    log = store.update_cough_log(log_id, request.to_patch())
    return APIResponse(
        success=True,
        message="Cough log updated",
        data=log.to_dict(),
        warning=persistence_warning(store)
    )


@router.delete("/{log_id}", response_model=APIResponse)
async def delete_cough_log(log_id: str, store: EntryStore = Depends(get_entry_store)):
    store.delete_cough_log(log_id)
    return APIResponse(success=True, message="Cough log deleted", warning=persistence_warning(store))
