"""
Exceptions raised by the card core and its orchestration layer.
"""


class CardError(Exception):
    """Base class for card errors."""


class InvalidCardError(CardError, ValueError):
    """Caller supplied invalid card data (empty front, unknown rating, ...)."""


class InvalidOperationError(CardError):
    """Operation is not allowed in the card's current status."""


class CardNotFoundError(CardError):
    """No card with the given id exists for the owner."""

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class ConcurrentReviewError(CardError):
    """Card changed between read and write; the review was not applied."""

    def __init__(self, card_id: str, expected_reps: int):
        super().__init__(
            f"Card {card_id} was reviewed concurrently (expected reps={expected_reps})"
        )
        self.card_id = card_id
        self.expected_reps = expected_reps
