from fastapi import APIRouter, Depends
from typing import List, Dict, Any

from habitcheck.core.store import EntryStore
from habitcheck.shared.models import (
    APIResponse,
    HabitCreateRequest,
    HabitUpdateRequest,
    HabitEntryRequest,
)
from ..dependencies import get_entry_store, persistence_warning

router = APIRouter(prefix="/api/habits", tags=["habits"])


@router.get("/", response_model=List[Dict[str, Any]])
async def list_habits(store: EntryStore = Depends(get_entry_store)):
    return [habit.to_dict() for habit in store.get_habits()]


@router.get("/{habit_id}", response_model=Dict[str, Any])
async def get_habit(habit_id: str, store: EntryStore = Depends(get_entry_store)):
    return store.get_habit(habit_id).to_dict()


@router.post("/", response_model=APIResponse, status_code=201)
async def create_habit(request: HabitCreateRequest, store: EntryStore = Depends(get_entry_store)):
    habit = store.add_habit(request.to_draft())
    return APIResponse(
        success=True,
        message="Habit added",
        data=habit.to_dict(),
        warning=persistence_warning(store)
    )


@router.patch("/{habit_id}", response_model=APIResponse)
async def update_habit(habit_id: str, request: HabitUpdateRequest,
                       store: EntryStore = Depends(get_entry_store)):
    habit = store.update_habit(habit_id, request.to_patch())
    return APIResponse(
        success=True,
        message="Habit updated",
        data=habit.to_dict(),
        warning=persistence_warning(store)
    )


@router.delete("/{habit_id}", response_model=APIResponse)
async def delete_habit(habit_id: str, store: EntryStore = Depends(get_entry_store)):
    store.delete_habit(habit_id)
    return APIResponse(success=True, message="Habit deleted", warning=persistence_warning(store))


@router.put("/{habit_id}/entries/{date_key}", response_model=APIResponse)
async def log_habit_entry(habit_id: str, date_key: str, request: HabitEntryRequest,
                          store: EntryStore = Depends(get_entry_store)):
    habit = store.log_habit_entry(habit_id, date_key, request.completed, request.notes)
    return APIResponse(
        success=True,
        message="Entry saved",
        data=habit.entries[date_key].to_dict(),
        warning=persistence_warning(store)
    )


@router.post("/{habit_id}/entries/{date_key}/toggle", response_model=APIResponse)
async def toggle_habit_entry(habit_id: str, date_key: str, store: EntryStore = Depends(get_entry_store)):
    habit = store.toggle_habit_completion(habit_id, date_key)
    return APIResponse(
        success=True,
        message="Entry toggled",
        data=habit.entries[date_key].to_dict(),
        warning=persistence_warning(store)
    )
