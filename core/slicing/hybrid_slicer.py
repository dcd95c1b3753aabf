"""
MangaTranslator Core - Hybrid Slicer

Divide uma tira vertical longa em pedaços de altura limitada, cortando em
linhas visualmente seguras.

Estratégia:
1. Pede zonas seguras ao sugeridor externo (falha = lista vazia)
2. Para cada corte desejado (current + alvo), usa a zona mais próxima se
   estiver dentro da tolerância; senão varre uma janela simétrica (fallback)
3. Garante progresso estrito e funde fatias menores que o mínimo

As zonas são conselho, nunca dependência: sem nenhuma zona o resultado é
o mesmo algoritmo determinístico do fallback.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from config.settings import (
    DEFAULT_CHUNK_MIME,
    FALLBACK_BOTTOM_GUARD,
    FALLBACK_SEARCH_RADIUS,
    MIN_CHUNK_HEIGHT,
    SPLIT_THRESHOLD_RATIO,
    TARGET_CHUNK_HEIGHT,
    ZONE_ACCEPT_TOLERANCE,
    ZONE_MARGIN,
)
from core.logging.setup import get_logger
from core.slicing.chunk_assembler import Chunk, ChunkAssembler
from core.slicing.interfaces import NullZoneSuggester, ZoneSuggester
from core.slicing.zone_scanner import ZoneScanner
from core.slicing.zones import SafeZone, parse_safe_zones
from core.utils.image_ops import RasterImage, encode_image

logger = get_logger("HybridSlicer")


@dataclass
class SlicingOptions:
    """Heurísticas do fatiamento. Os valores ótimos dependem do acervo."""
    target_chunk_height: int = TARGET_CHUNK_HEIGHT
    split_threshold_ratio: float = SPLIT_THRESHOLD_RATIO
    min_chunk_height: int = MIN_CHUNK_HEIGHT
    zone_margin: int = ZONE_MARGIN
    zone_accept_tolerance: float = ZONE_ACCEPT_TOLERANCE
    fallback_search_radius: int = FALLBACK_SEARCH_RADIUS
    fallback_bottom_guard: int = FALLBACK_BOTTOM_GUARD

    def __post_init__(self):
        if self.target_chunk_height <= 0:
            raise ValueError("target_chunk_height deve ser positivo")
        if self.min_chunk_height < 0:
            raise ValueError("min_chunk_height não pode ser negativo")

    def needs_split(self, height: int) -> bool:
        return height > self.target_chunk_height * self.split_threshold_ratio


@dataclass
class SliceResult:
    """Plano de cortes + pedaços + estatísticas de como cada corte foi obtido."""
    cuts: List[int]
    chunks: List[Chunk]
    hints_received: int = 0
    zone_cuts: int = 0
    fallback_cuts: int = 0
    forced_cuts: int = 0
    zones: List[SafeZone] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "cuts": list(self.cuts),
            "chunk_heights": [c.height for c in self.chunks],
            "hints_received": self.hints_received,
            "zone_cuts": self.zone_cuts,
            "fallback_cuts": self.fallback_cuts,
            "forced_cuts": self.forced_cuts,
        }


def finalize_cut_plan(cuts: Sequence[int], height: int, min_chunk_height: int = MIN_CHUNK_HEIGHT) -> List[int]:
    """
    Normaliza uma lista de cortes em CutPlan.

    Remove duplicatas e pontos fora de [0, height], ordena, garante 0 e height
    nas pontas e descarta cortes internos que deixariam uma fatia menor que o
    mínimo (a fatia curta é fundida na vizinha).
    """
    points = sorted({int(c) for c in cuts if 0 <= c <= height} | {0, height})
    if len(points) <= 2:
        return [0, height] if height > 0 else [0]

    kept = [0]
    for p in points[1:-1]:
        if p - kept[-1] >= min_chunk_height and height - p >= min_chunk_height:
            kept.append(p)
    kept.append(height)
    return kept


class HybridSlicer:
    """
    Orquestra sugeridor de zonas, ZoneScanner e ChunkAssembler.
    """

    def __init__(
        self,
        suggester: Optional[ZoneSuggester] = None,
        options: Optional[SlicingOptions] = None,
        scanner: Optional[ZoneScanner] = None,
    ):
        self.suggester = suggester or NullZoneSuggester()
        self.options = options or SlicingOptions()
        self.scanner = scanner or ZoneScanner()
        self.assembler = ChunkAssembler(self.options.min_chunk_height)

    async def fetch_zones(
        self,
        image: RasterImage,
        mime_type: str = DEFAULT_CHUNK_MIME,
        image_bytes: Optional[bytes] = None,
    ) -> List[SafeZone]:
        """
        Pede zonas ao sugeridor. Qualquer falha vira lista vazia.
        """
        try:
            if image_bytes is None:
                image_bytes = encode_image(image, mime_type)
            payload = await self.suggester.suggest_zones(image_bytes, mime_type)
            return parse_safe_zones(payload)
        except Exception as e:
            logger.warning(f"Sugestão de zonas falhou, usando algoritmo puro: {e}")
            return []

    def _select_zone(self, zones: Sequence[SafeZone], height: int, current: int, desired: int) -> Optional[SafeZone]:
        valid = [z for z in zones if z.midpoint_px(height) > current + self.options.zone_margin]
        if not valid:
            return None
        # min() mantém a primeira zona em caso de empate
        return min(valid, key=lambda z: abs(z.midpoint_px(height) - desired))

    def plan_cuts(self, image: RasterImage, zones: Sequence[SafeZone] = (), result: Optional[SliceResult] = None) -> List[int]:
        """
        Calcula o CutPlan (0, ..., height) de forma determinística.

        Args:
            image: Imagem a ser fatiada
            zones: Zonas seguras já validadas (podem estar vazias)
            result: Se fornecido, recebe as estatísticas de cada corte
        """
        opts = self.options
        height, width = image.height, image.width

        if not opts.needs_split(height):
            return [0, height]

        cuts = [0]
        current = 0

        while current < height:
            desired = current + opts.target_chunk_height
            if desired >= height:
                break

            cut = None
            zone = self._select_zone(zones, height, current, desired)
            if zone is not None and abs(zone.midpoint_px(height) - desired) < opts.zone_accept_tolerance:
                z_start, z_end = zone.to_rows(height)
                cut = self.scanner.find_best_cut(image, width, z_start, z_end)
                logger.debug(f"Zona usada: {z_start}-{z_end}, corte em {cut}")
                if result is not None:
                    result.zone_cuts += 1

            if cut is None:
                search_start = max(current + opts.zone_margin, desired - opts.fallback_search_radius)
                search_end = min(height - opts.fallback_bottom_guard, desired + opts.fallback_search_radius)
                cut = self.scanner.find_best_cut(image, width, search_start, search_end)
                logger.debug(f"Sem zona próxima do alvo {desired}, fallback {search_start}-{search_end}: corte em {cut}")
                if result is not None:
                    result.fallback_cuts += 1

            if cut <= current:
                cut = current + opts.target_chunk_height
                if result is not None:
                    result.forced_cuts += 1

            cuts.append(cut)
            current = cut

        cuts.append(height)
        return finalize_cut_plan(cuts, height, opts.min_chunk_height)

    async def slice(
        self,
        image: RasterImage,
        mime_type: str = DEFAULT_CHUNK_MIME,
        image_bytes: Optional[bytes] = None,
        name: str = "<image>",
    ) -> SliceResult:
        """
        Fatiamento completo: zonas -> plano -> pedaços.
        """
        if not self.options.needs_split(image.height):
            # Imagem perto do tamanho alvo: um único pedaço, idêntico à entrada
            whole = RasterImage.from_array(image.pixels)
            return SliceResult(cuts=[0, image.height], chunks=[Chunk(1, 0, image.height, whole)])

        logger.info(f"Iniciando fatiamento híbrido de {name} ({image.width}x{image.height})")
        zones = await self.fetch_zones(image, mime_type, image_bytes)
        logger.info(f"Sugeridor encontrou {len(zones)} zona(s) segura(s)")

        result = SliceResult(cuts=[], chunks=[], hints_received=len(zones), zones=zones)
        result.cuts = self.plan_cuts(image, zones, result=result)
        result.chunks = self.assembler.assemble(image, result.cuts)

        logger.info(
            f"{name}: {len(result.chunks)} pedaço(s) "
            f"(zonas: {result.zone_cuts}, fallback: {result.fallback_cuts}, forçados: {result.forced_cuts})"
        )
        return result

    async def split(
        self,
        image: RasterImage,
        mime_type: str = DEFAULT_CHUNK_MIME,
        image_bytes: Optional[bytes] = None,
        name: str = "<image>",
    ) -> List[Chunk]:
        """Atalho para slice(): devolve apenas os pedaços, em ordem."""
        result = await self.slice(image, mime_type, image_bytes, name)
        return result.chunks
