"""
MangaTranslator Core - Chunk Assembler

Transforma o plano de cortes em sub-imagens concretas. Copia as linhas da
origem sem reamostragem; fatias mais finas que o mínimo são descartadas.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

import numpy as np

from config.settings import CHUNK_NAME_PATTERN, MIN_CHUNK_HEIGHT
from core.logging.setup import get_logger
from core.utils.image_ops import RasterImage, clamp_rows

logger = get_logger("ChunkAssembler")


@dataclass
class Chunk:
    """Pedaço emitido pelo assembler. `index` é 1-based e conta fatias descartadas."""
    index: int
    top: int
    bottom: int
    image: RasterImage

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def name_for(self, filename: str) -> str:
        """page_01.png -> page_01_part_3.png"""
        path = Path(filename)
        return CHUNK_NAME_PATTERN.format(stem=path.stem, index=self.index, suffix=path.suffix)


class ChunkAssembler:

    def __init__(self, min_chunk_height: int = MIN_CHUNK_HEIGHT):
        self.min_chunk_height = min_chunk_height

    def assemble(self, image: RasterImage, cuts: Sequence[int]) -> List[Chunk]:
        """
        Gera um Chunk para cada par consecutivo (y1, y2) do plano.

        Args:
            image: Imagem de origem (não é alterada)
            cuts: Linhas de corte em ordem crescente, de 0 até a altura

        Returns:
            Lista de Chunk na ordem do plano
        """
        chunks: List[Chunk] = []
        width = image.width

        for i, (y1, y2) in enumerate(zip(cuts, cuts[1:])):
            y1, y2 = clamp_rows(y1, y2, image.height)
            h = y2 - y1
            if h < self.min_chunk_height:
                logger.info(f"Fatia {i + 1} ignorada ({y1}-{y2}, altura {h} < {self.min_chunk_height})")
                continue

            buffer = np.empty((h, width, 4), dtype=np.uint8)
            buffer[:] = image.rows(y1, y2)
            chunks.append(Chunk(index=i + 1, top=y1, bottom=y2, image=RasterImage(buffer)))

        logger.debug(f"{len(chunks)} pedaço(s) montado(s) a partir de {len(cuts) - 1} intervalo(s)")
        return chunks
