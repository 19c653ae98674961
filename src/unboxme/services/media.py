"""Media upload orchestration for draft cards."""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol
from uuid import UUID, uuid4

from unboxme.domain.boxes import GiftCard, MediaKind
from unboxme.domain.errors import UpstreamFailure, ValidationError
from unboxme.services.drafts import DraftService

_logger = logging.getLogger(__name__)


class MediaStorage(Protocol):
    """Object store for card media."""

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store bytes at ``path`` and return a durable public URL."""


@dataclass
class MediaService:
    """Uploads card media and attaches the resulting URLs to drafts."""

    storage: MediaStorage
    drafts: DraftService
    max_upload_bytes: int = 10 * 1024 * 1024

    def upload(  # noqa: PLR0913
        self,
        draft_id: UUID,
        card_id: str,
        kind: MediaKind,
        content: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> GiftCard:
        """Upload media for a card; on failure the card's URL stays unset."""
        resolved_type = _resolve_content_type(kind, content_type, filename)
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                f"Uploaded file exceeds {self.max_upload_bytes} bytes"
            )
        path = _object_path(draft_id, card_id, kind, resolved_type, filename)
        self.drafts.mark_pending(draft_id, card_id, kind, pending=True)
        try:
            url = self.storage.upload(path, content, resolved_type)
        except Exception as exc:
            _logger.exception(
                "Media upload failed: draft_id=%s card_id=%s kind=%s",
                draft_id,
                card_id,
                kind,
            )
            raise UpstreamFailure(f"Failed to upload {kind}, please retry") from exc
        finally:
            self.drafts.mark_pending(draft_id, card_id, kind, pending=False)
        _logger.info("Media uploaded: draft_id=%s path=%s", draft_id, path)
        return self.drafts.attach_media(draft_id, card_id, kind, url)


def _resolve_content_type(
    kind: MediaKind, content_type: str | None, filename: str | None
) -> str:
    resolved = content_type
    if not resolved or resolved == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(filename or "")
        resolved = guessed
    if not resolved or not resolved.startswith(f"{kind}/"):
        raise ValidationError(f"Expected an {kind} file")
    return resolved


def _object_path(
    draft_id: UUID,
    card_id: str,
    kind: MediaKind,
    content_type: str,
    filename: str | None,
) -> str:
    suffix = PurePosixPath(filename).suffix.lower() if filename else ""
    if not suffix:
        suffix = mimetypes.guess_extension(content_type) or ""
    return f"drafts/{draft_id}/{card_id}/{kind}-{uuid4().hex}{suffix}"
