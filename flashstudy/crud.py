from __future__ import annotations

from datetime import date, datetime
from typing import Optional, List

from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from . import models
from .exceptions import CardNotFoundError, ValidationError


# ----------------- Users (Auth) -----------------

def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.username == username).first()


def create_user(db: Session, username: str, hashed_password: str) -> models.User:
    user = models.User(username=username, hashed_password=hashed_password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)
    return user


# ----------------- Flashcard sets -----------------

def create_set(
    db: Session,
    owner_id: int,
    title: str,
    description: Optional[str] = None,
    level: Optional[str] = None,
    set_type: models.FlashcardSetType = models.FlashcardSetType.PERSONAL,
) -> models.FlashcardSet:
    fset = models.FlashcardSet(
        owner_id=owner_id,
        title=title.strip(),
        description=description,
        level=level,
        set_type=set_type,
    )
    db.add(fset)
    db.commit()
    db.refresh(fset)
    return fset


def get_set(db: Session, set_id: int) -> Optional[models.FlashcardSet]:
    return (
        db.query(models.FlashcardSet)
        .filter(models.FlashcardSet.id == set_id, models.FlashcardSet.deleted.is_(False))
        .first()
    )


def list_user_sets(
    db: Session,
    owner_id: int,
    set_type: models.FlashcardSetType | None = None,
) -> List[models.FlashcardSet]:
    q = db.query(models.FlashcardSet).filter(
        models.FlashcardSet.owner_id == owner_id,
        models.FlashcardSet.deleted.is_(False),
    )
    if set_type is not None:
        q = q.filter(models.FlashcardSet.set_type == set_type)
    return q.order_by(models.FlashcardSet.created_at.desc(), models.FlashcardSet.id.desc()).all()


def update_set(db: Session, fset: models.FlashcardSet, **changes) -> models.FlashcardSet:
    """Apply only the fields present in ``changes``; ``None`` clears optional ones."""
    if "title" in changes:
        clean = (changes["title"] or "").strip()
        if not clean:
            raise ValidationError("Set title is required")
        fset.title = clean
    for field in ("description", "level"):
        if field in changes:
            setattr(fset, field, changes[field])

    db.commit()
    db.refresh(fset)
    return fset


def soft_delete_set(db: Session, fset: models.FlashcardSet) -> None:
    if fset.deleted:
        return

    # cards stay in the table: progress rows keep pointing at them
    fset.deleted = True
    for card in fset.cards:
        card.deleted = True

    db.commit()


# ----------------- Cards -----------------

def add_card(
    db: Session,
    fset: models.FlashcardSet,
    *,
    front_text: str,
    back_text: str,
    reading: Optional[str] = None,
    example_sentence: Optional[str] = None,
    order_index: Optional[int] = None,
) -> models.Flashcard:
    card = models.Flashcard(
        set_id=fset.id,
        front_text=front_text,
        back_text=back_text,
        reading=reading,
        example_sentence=example_sentence,
        order_index=order_index,
    )
    db.add(card)
    db.commit()
    db.refresh(card)
    return card


def get_card(db: Session, card_id: int) -> Optional[models.Flashcard]:
    """Live card: neither the card nor its set is soft-deleted."""
    return (
        db.query(models.Flashcard)
        .join(models.FlashcardSet, models.FlashcardSet.id == models.Flashcard.set_id)
        .filter(
            models.Flashcard.id == card_id,
            models.Flashcard.deleted.is_(False),
            models.FlashcardSet.deleted.is_(False),
        )
        .first()
    )


def get_card_in_set(db: Session, set_id: int, card_id: int) -> models.Flashcard:
    card = get_card(db, card_id)
    if not card:
        raise CardNotFoundError(card_id)
    if card.set_id != set_id:
        raise ValidationError("Flashcard does not belong to this set")
    return card


def list_set_cards(db: Session, set_id: int) -> List[models.Flashcard]:
    return (
        db.query(models.Flashcard)
        .filter(models.Flashcard.set_id == set_id, models.Flashcard.deleted.is_(False))
        # cards without explicit order go last
        .order_by(
            models.Flashcard.order_index.is_(None),
            models.Flashcard.order_index.asc(),
            models.Flashcard.id.asc(),
        )
        .all()
    )


def update_card(db: Session, card: models.Flashcard, **changes) -> models.Flashcard:
    for field in ("front_text", "back_text"):
        if field in changes:
            if not changes[field]:
                raise ValidationError(f"{field} is required")
            setattr(card, field, changes[field])
    for field in ("reading", "example_sentence", "order_index"):
        if field in changes:
            setattr(card, field, changes[field])

    db.commit()
    db.refresh(card)
    return card


def soft_delete_card(db: Session, card: models.Flashcard) -> None:
    if not card.deleted:
        card.deleted = True
        db.commit()


# ----------------- Progress -----------------

def get_flashcard_progress(db: Session, user_id: int, card_id: int) -> Optional[models.FlashcardProgress]:
    return (
        db.query(models.FlashcardProgress)
        .filter(
            models.FlashcardProgress.user_id == user_id,
            models.FlashcardProgress.flashcard_id == card_id,
        )
        .first()
    )


def count_reviewed_between(
    db: Session,
    user_id: int,
    start: datetime,
    end: datetime,
    level: str | None = None,
) -> int:
    q = db.query(func.count(models.FlashcardProgress.id)).filter(
        models.FlashcardProgress.user_id == user_id,
        models.FlashcardProgress.last_reviewed_at >= start,
        models.FlashcardProgress.last_reviewed_at < end,
    )
    if level:
        q = (
            q.join(models.Flashcard, models.Flashcard.id == models.FlashcardProgress.flashcard_id)
            .join(models.FlashcardSet, models.FlashcardSet.id == models.Flashcard.set_id)
            .filter(models.FlashcardSet.level == level)
        )
    return int(q.scalar() or 0)


# ----------------- Dashboard counts -----------------

def count_user_sets(db: Session, owner_id: int, level: str | None = None) -> int:
    q = db.query(func.count(models.FlashcardSet.id)).filter(
        models.FlashcardSet.owner_id == owner_id,
        models.FlashcardSet.deleted.is_(False),
    )
    if level:
        q = q.filter(models.FlashcardSet.level == level)
    return int(q.scalar() or 0)


def count_user_cards(db: Session, owner_id: int, level: str | None = None) -> int:
    q = (
        db.query(func.count(models.Flashcard.id))
        .join(models.FlashcardSet, models.FlashcardSet.id == models.Flashcard.set_id)
        .filter(
            models.FlashcardSet.owner_id == owner_id,
            models.FlashcardSet.deleted.is_(False),
            models.Flashcard.deleted.is_(False),
        )
    )
    if level:
        q = q.filter(models.FlashcardSet.level == level)
    return int(q.scalar() or 0)


# ----------------- Daily learning -----------------

def list_active_days(db: Session, user_id: int, from_date: date, to_date: date) -> set[date]:
    rows = (
        db.query(models.DailyLearning.learning_date)
        .filter(
            models.DailyLearning.user_id == user_id,
            models.DailyLearning.learning_date >= from_date,
            models.DailyLearning.learning_date <= to_date,
            models.DailyLearning.activity_count > 0,
        )
        .all()
    )
    return {d for (d,) in rows}


def get_last_learning_date(db: Session, user_id: int) -> Optional[date]:
    return (
        db.query(func.max(models.DailyLearning.learning_date))
        .filter(
            models.DailyLearning.user_id == user_id,
            models.DailyLearning.activity_count > 0,
        )
        .scalar()
    )
