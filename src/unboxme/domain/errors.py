"""Error taxonomy for gift box operations."""

from datetime import timedelta


class GiftBoxError(Exception):
    """Base class for failures scoped to a single user action."""


class ValidationError(GiftBoxError):
    """Input that must be edited before the action can succeed."""

    def __init__(self, problems: list[str] | str) -> None:
        self.problems = [problems] if isinstance(problems, str) else list(problems)
        super().__init__("; ".join(self.problems))


class UpstreamFailure(GiftBoxError, RuntimeError):
    """A storage, payment or persistence collaborator failed; retry is safe."""


class PaymentNotCompleted(GiftBoxError):
    """The payment was cancelled or has not succeeded yet."""

    def __init__(self, payment_reference: str, status: str) -> None:
        self.payment_reference = payment_reference
        self.status = status
        super().__init__(f"Payment {payment_reference} is {status}")


class NotFound(GiftBoxError):
    """The requested draft, box or card does not exist."""


class CardLocked(GiftBoxError):
    """The card is not yet eligible to be revealed."""

    def __init__(self, card_index: int, remaining: timedelta) -> None:
        self.card_index = card_index
        self.remaining = remaining
        super().__init__(f"Card {card_index + 1} is still locked")
