from __future__ import annotations

from typing import List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud, models, schemas
from ..deps import get_current_user, get_progress_tracker, require_set_owner
from ..exceptions import FlashcardSetNotFoundError
from ..services.progress import ProgressTracker

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/flashcards/sets", tags=["flashcard-sets"])


def _owned_set(db: Session, set_id: int, user) -> models.FlashcardSet:
    fset = crud.get_set(db, set_id)
    if not fset:
        raise FlashcardSetNotFoundError(set_id)
    return require_set_owner(fset, user)


@router.post("/personal", response_model=schemas.FlashcardSetOut, status_code=201)
def create_personal_set(
    payload: schemas.FlashcardSetCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    fset = crud.create_set(
        db,
        owner_id=user.id,
        title=payload.title,
        description=payload.description,
        level=payload.level,
    )
    logger.info("flashcard_set_created", set_id=fset.id, owner_id=user.id)
    return fset


@router.get("/me", response_model=List[schemas.FlashcardSetOut])
def list_my_sets(
    set_type: Optional[models.FlashcardSetType] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return crud.list_user_sets(db, user.id, set_type=set_type)


@router.get("/{set_id}", response_model=schemas.FlashcardSetOut)
def get_set(set_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _owned_set(db, set_id, user)


@router.put("/{set_id}", response_model=schemas.FlashcardSetOut)
def update_set(
    set_id: int,
    payload: schemas.FlashcardSetUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    fset = _owned_set(db, set_id, user)
    return crud.update_set(db, fset, **payload.model_dump(exclude_unset=True))


@router.delete("/{set_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_set(set_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    fset = _owned_set(db, set_id, user)
    crud.soft_delete_set(db, fset)
    logger.info("flashcard_set_deleted", set_id=set_id, owner_id=user.id)
    return


# ----------------- Cards -----------------

@router.post("/{set_id}/cards", response_model=schemas.FlashcardOut, status_code=201)
def add_card(
    set_id: int,
    payload: schemas.FlashcardCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    fset = _owned_set(db, set_id, user)
    return crud.add_card(db, fset, **payload.model_dump())


@router.get("/{set_id}/cards", response_model=List[schemas.FlashcardOut])
def list_cards(set_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    _owned_set(db, set_id, user)
    return crud.list_set_cards(db, set_id)


@router.put("/{set_id}/cards/{card_id}", response_model=schemas.FlashcardOut)
def update_card(
    set_id: int,
    card_id: int,
    payload: schemas.FlashcardUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    _owned_set(db, set_id, user)
    card = crud.get_card_in_set(db, set_id, card_id)
    return crud.update_card(db, card, **payload.model_dump(exclude_unset=True))


@router.delete("/{set_id}/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_card(
    set_id: int,
    card_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    _owned_set(db, set_id, user)
    card = crud.get_card_in_set(db, set_id, card_id)
    crud.soft_delete_card(db, card)
    return


@router.post("/{set_id}/cards/{card_id}/review", response_model=schemas.ReviewCardOut)
def review_card(
    set_id: int,
    card_id: int,
    payload: Optional[schemas.ReviewCardIn] = Body(default=None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker),
):
    _owned_set(db, set_id, user)
    crud.get_card_in_set(db, set_id, card_id)

    mastered = payload is not None and payload.mastered
    view = tracker.review_card(user.id, card_id, mastered=mastered)
    return {
        "review_count": view.review_count,
        "mastered": view.status is models.ProgressStatus.MASTERED,
    }
