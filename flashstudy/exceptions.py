"""Exception hierarchy for the flashcard study service."""

from __future__ import annotations


class StudyError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(StudyError):
    """Resource not found error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class CardNotFoundError(NotFoundError):
    """Flashcard does not resolve."""

    def __init__(self, card_id: int) -> None:
        self.card_id = card_id
        super().__init__(f"Flashcard with id {card_id} not found")


class FlashcardSetNotFoundError(NotFoundError):
    """Flashcard set does not exist or was deleted."""

    def __init__(self, set_id: int) -> None:
        self.set_id = set_id
        super().__init__(f"Flashcard set with id {set_id} not found")


class ValidationError(StudyError):
    """Request is well-formed but violates a domain rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class ProgressWriteConflictError(StudyError):
    """A concurrent update of the same (user, card) progress won the race."""

    def __init__(self, user_id: int, card_id: int) -> None:
        self.user_id = user_id
        self.card_id = card_id
        super().__init__(
            f"Concurrent update of progress for flashcard {card_id}, retry the request",
            status_code=409,
        )
