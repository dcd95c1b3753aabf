from __future__ import annotations

import asyncio
from typing import Optional

from core.domain.session_context import SessionContext
from core.exceptions import TranslationError


class EchoWorker:
    """
    Offline worker: returns the source image bytes unchanged.

    `fail=True` makes every call raise TranslationError, which the scheduler
    maps to ERROR.
    """

    def __init__(self, delay: float = 0.0, fail: bool = False):
        self.delay = delay
        self.fail = fail
        self.calls = 0

    async def translate(
        self,
        image_bytes: bytes,
        mime_type: str,
        target_language: str,
        context: Optional[SessionContext] = None,
    ) -> bytes:
        del mime_type
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise TranslationError(f"Falha simulada ({target_language}) na chamada {self.calls}")
        if context is not None:
            context.merge(summary=f"Página {self.calls} processada sem tradução.")
        return image_bytes
