from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, Sequence

from core.exceptions import HintSourceError
from core.slicing.zones import SafeZone


class ZoneSuggester(Protocol):
    """Fallible async source of safe-zone hints consumed by HybridSlicer."""

    async def suggest_zones(self, image_bytes: bytes, mime_type: str) -> Any:
        """Return a list of zones (SafeZone objects, dicts or a JSON string)."""


class NullZoneSuggester:
    """No hints at all: the slicer runs on the pure algorithmic fallback."""

    async def suggest_zones(self, image_bytes: bytes, mime_type: str) -> list:
        del image_bytes, mime_type
        return []


class StaticZoneSuggester:
    """Returns a fixed, pre-computed hint payload (CLI --zones, tests)."""

    def __init__(self, zones: Sequence[SafeZone | dict] | dict | str):
        self._zones = zones

    async def suggest_zones(self, image_bytes: bytes, mime_type: str):
        del image_bytes, mime_type
        if isinstance(self._zones, (str, dict)):
            return self._zones
        return list(self._zones)


class JsonFileZoneSuggester:
    """Reads a hint payload from a JSON file produced by an offline run."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def suggest_zones(self, image_bytes: bytes, mime_type: str) -> Any:
        del image_bytes, mime_type
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise HintSourceError(f"Cannot read zone hints from {self.path}: {exc}") from exc
