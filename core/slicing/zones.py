"""
MangaTranslator Core - Zonas Seguras

Zonas sugeridas pelo modelo externo são apenas conselho: podem vir vazias,
sobrepostas, fora de ordem ou sem sentido. Aqui elas são validadas item a
item (pydantic) e normalizadas para frações em [0, 1] com start <= end.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

from pydantic import BaseModel, ValidationError

from core.constants import ZoneKind
from core.logging.setup import get_logger

logger = get_logger("Zones")


class SafeZonePayload(BaseModel):
    """Formato JSON devolvido pelo sugeridor de zonas."""
    start_percent: float
    end_percent: float
    type: ZoneKind = ZoneKind.GUTTER


@dataclass(frozen=True)
class SafeZone:
    start_fraction: float
    end_fraction: float
    kind: ZoneKind = ZoneKind.GUTTER

    @property
    def mid_fraction(self) -> float:
        return (self.start_fraction + self.end_fraction) / 2

    def midpoint_px(self, height: int) -> float:
        return self.mid_fraction * height

    def to_rows(self, height: int) -> Tuple[int, int]:
        """Converte as frações em linhas absolutas (floor), dentro de [0, height]."""
        start = max(0, min(height, math.floor(self.start_fraction * height)))
        end = max(0, min(height, math.floor(self.end_fraction * height)))
        return start, end

    def to_dict(self) -> dict:
        return {
            "start_percent": self.start_fraction,
            "end_percent": self.end_fraction,
            "type": self.kind.value,
        }


def _clamp_fraction(value: float) -> float:
    return min(1.0, max(0.0, value))


def normalize_zone(start: float, end: float, kind: ZoneKind = ZoneKind.GUTTER) -> SafeZone | None:
    """Clampa as frações em [0, 1] e corrige zonas invertidas. NaN/inf são descartados."""
    if not (math.isfinite(start) and math.isfinite(end)):
        return None
    start, end = _clamp_fraction(start), _clamp_fraction(end)
    if start > end:
        start, end = end, start
    return SafeZone(start, end, kind)


def parse_safe_zones(payload: Any) -> List[SafeZone]:
    """
    Converte a resposta do sugeridor em lista de SafeZone.

    Aceita string JSON, lista de dicts, lista de SafeZone ou um objeto
    {"zones": [...]}. Entradas malformadas são descartadas individualmente;
    qualquer outro formato vira lista vazia.
    """
    if payload is None:
        return []

    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload or "[]")
        except ValueError:
            logger.warning("Resposta de zonas não é JSON válido, ignorando")
            return []

    if isinstance(payload, dict):
        payload = payload.get("zones")
        if payload is None:
            logger.warning("Objeto de zonas sem a chave 'zones', ignorando")
            return []

    if not isinstance(payload, Iterable) or isinstance(payload, (str, bytes, dict)):
        logger.warning(f"Resposta de zonas com formato inesperado: {type(payload).__name__}")
        return []

    zones: List[SafeZone] = []
    dropped = 0
    for entry in payload:
        if isinstance(entry, SafeZone):
            zone = normalize_zone(entry.start_fraction, entry.end_fraction, entry.kind)
        else:
            try:
                parsed = SafeZonePayload.model_validate(entry)
            except ValidationError:
                dropped += 1
                continue
            zone = normalize_zone(parsed.start_percent, parsed.end_percent, parsed.type)

        if zone is None:
            dropped += 1
            continue
        zones.append(zone)

    if dropped:
        logger.debug(f"{dropped} zona(s) malformada(s) descartada(s)")
    return zones
