"""Submission checks for gift box drafts."""

from unboxme.domain.boxes import GiftBoxDraft
from unboxme.domain.errors import ValidationError


def submission_problems(draft: GiftBoxDraft) -> list[str]:
    """Return the reasons a draft cannot be submitted yet."""
    problems: list[str] = []
    if not draft.title.strip():
        problems.append("Title is required")
    for index, card in enumerate(draft.cards):
        if not card.message.strip():
            problems.append(f"Card {index + 1} needs a message")
    if draft.pending_uploads:
        problems.append("Wait for media uploads to finish")
    return problems


def ensure_submittable(draft: GiftBoxDraft) -> None:
    """Raise ValidationError unless the draft is ready for checkout."""
    problems = submission_problems(draft)
    if problems:
        raise ValidationError(problems)


def ensure_email(email: str) -> str:
    """Return a trimmed contact email or raise when it is missing."""
    cleaned = email.strip()
    if not cleaned or "@" not in cleaned:
        raise ValidationError("A valid email is required to continue")
    return cleaned
