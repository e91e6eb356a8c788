"""Per-learner study progress of individual flashcards.

``ProgressTracker`` only talks to three narrow collaborators: a card lookup,
a progress store and an activity recorder. The SQLAlchemy implementations
below are what the HTTP layer wires in; tests may pass anything with the
same methods.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol, Union

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import crud, models, schemas
from ..config import settings
from ..exceptions import CardNotFoundError, ProgressWriteConflictError
from ..utils.time import utcnow
from .activity import SqlActivityRecorder

logger = structlog.get_logger(__name__)


class CardLookup(Protocol):
    def exists(self, card_id: int) -> bool: ...

    def resolve(self, card_id: int) -> models.Flashcard: ...


class ProgressStore(Protocol):
    def find(self, user_id: int, card_id: int) -> Optional[models.FlashcardProgress]: ...

    def save(self, record: models.FlashcardProgress) -> models.FlashcardProgress: ...


class ActivityRecorder(Protocol):
    def record(self, user_id: int, at: datetime) -> None: ...


@dataclass(frozen=True)
class NoProgress:
    """The card exists but the learner has never studied it."""

    user_id: int
    card_id: int


ProgressResult = Union[schemas.ProgressOut, NoProgress]


class ProgressTracker:
    def __init__(
        self,
        cards: CardLookup,
        store: ProgressStore,
        activity: ActivityRecorder,
        *,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int | None = None,
    ) -> None:
        self.cards = cards
        self.store = store
        self.activity = activity
        self.clock = clock
        self.max_attempts = max(1, max_attempts or settings.progress_write_retries)

    def get_progress(self, user_id: int, card_id: int) -> ProgressResult:
        self.cards.resolve(card_id)

        record = self.store.find(user_id, card_id)
        if record is None:
            return NoProgress(user_id=user_id, card_id=card_id)
        return schemas.ProgressOut.model_validate(record)

    def update_progress(
        self, user_id: int, card_id: int, status: models.ProgressStatus
    ) -> schemas.ProgressOut:
        """
        Record one review of ``card_id`` by ``user_id``.

        Creates the progress row on first review. The learner activity event
        is emitted only after the row has been committed.

        Raises:
            CardNotFoundError: card does not resolve; nothing is written.
            ProgressWriteConflictError: every attempt lost a concurrent race.
        """
        return self._record_review(user_id, card_id, status)

    def review_card(self, user_id: int, card_id: int, mastered: bool = False) -> schemas.ProgressOut:
        """Count a review without choosing a status; ``mastered`` promotes the card."""
        return self._record_review(
            user_id, card_id, models.ProgressStatus.MASTERED if mastered else None
        )

    def _record_review(
        self, user_id: int, card_id: int, status: Optional[models.ProgressStatus]
    ) -> schemas.ProgressOut:
        self.cards.resolve(card_id)

        attempt = 0
        while True:
            attempt += 1
            try:
                saved, reviewed_at = self._apply_review(user_id, card_id, status)
                break
            except ProgressWriteConflictError:
                if attempt >= self.max_attempts:
                    logger.warning(
                        "progress_write_conflict",
                        user_id=user_id,
                        card_id=card_id,
                        attempts=attempt,
                    )
                    raise
                logger.debug("progress_write_retry", user_id=user_id, card_id=card_id, attempt=attempt)

        view = schemas.ProgressOut.model_validate(saved)
        self.activity.record(user_id, reviewed_at)

        logger.info(
            "progress_updated",
            user_id=user_id,
            card_id=card_id,
            status=view.status.value,
            review_count=view.review_count,
        )
        return view

    def _apply_review(
        self, user_id: int, card_id: int, status: Optional[models.ProgressStatus]
    ):
        record = self.store.find(user_id, card_id)
        if record is None:
            record = models.FlashcardProgress(
                user_id=user_id,
                flashcard_id=card_id,
                status=models.ProgressStatus.NEW,
                review_count=0,
            )

        now = self.clock()
        # None keeps the current status
        if status is not None:
            record.status = status
        record.last_reviewed_at = now
        record.review_count = (record.review_count or 0) + 1
        if status is models.ProgressStatus.MASTERED and record.mastered_at is None:
            record.mastered_at = now

        return self.store.save(record), now


class SqlCardLookup:
    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, card_id: int) -> bool:
        return crud.get_card(self.db, card_id) is not None

    def resolve(self, card_id: int) -> models.Flashcard:
        card = crud.get_card(self.db, card_id)
        if not card:
            raise CardNotFoundError(card_id)
        return card


class SqlProgressStore:
    """
    Create-or-replace keyed by (user_id, flashcard_id).

    Updates are guarded by ``FlashcardProgress.version``; inserts by the
    unique constraint on the pair. Losing either race rolls the session back
    and raises ``ProgressWriteConflictError``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find(self, user_id: int, card_id: int) -> Optional[models.FlashcardProgress]:
        return crud.get_flashcard_progress(self.db, user_id, card_id)

    def save(self, record: models.FlashcardProgress) -> models.FlashcardProgress:
        user_id, card_id = record.user_id, record.flashcard_id
        inserting = record.id is None

        self.db.add(record)
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ProgressWriteConflictError(user_id, card_id) from e
        except IntegrityError as e:
            self.db.rollback()
            # only an insert beaten by a row for the same pair is a lost race;
            # foreign key or NOT NULL failures propagate
            if not inserting or self.find(user_id, card_id) is None:
                raise
            raise ProgressWriteConflictError(user_id, card_id) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(record)
        return record


def build_progress_tracker(db: Session) -> ProgressTracker:
    return ProgressTracker(
        cards=SqlCardLookup(db),
        store=SqlProgressStore(db),
        activity=SqlActivityRecorder(db),
    )
