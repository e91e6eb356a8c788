from __future__ import annotations

from fastapi import APIRouter, Depends

from .. import schemas
from ..deps import get_current_user, get_progress_tracker
from ..services.progress import NoProgress, ProgressTracker

router = APIRouter(prefix="/flashcards/progress", tags=["progress"])


@router.get("/{card_id}", response_model=schemas.ProgressStateOut)
def get_card_progress(
    card_id: int,
    current_user=Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    result = tracker.get_progress(current_user.id, card_id)
    if isinstance(result, NoProgress):
        return {"flashcard_id": card_id, "studied": False, "progress": None}
    return {"flashcard_id": card_id, "studied": True, "progress": result}


@router.post("/{card_id}", response_model=schemas.ProgressOut)
def update_card_progress(
    card_id: int,
    payload: schemas.ProgressUpdateIn,
    current_user=Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    return tracker.update_progress(current_user.id, card_id, payload.status)
