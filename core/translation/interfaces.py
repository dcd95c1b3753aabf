from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from core.domain.session_context import SessionContext


class TranslationWorker(Protocol):
    """
    Remote translation capability consumed by the pipeline.

    Receives the encoded chunk and returns the encoded translated image.
    Any exception maps the work item to ERROR; there is no partial result.
    """

    async def translate(
        self,
        image_bytes: bytes,
        mime_type: str,
        target_language: str,
        context: Optional["SessionContext"] = None,
    ) -> bytes:
        """Return the translated image bytes."""
