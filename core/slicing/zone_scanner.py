"""
MangaTranslator Core - Zone Scanner

Encontra a melhor linha de corte dentro de uma zona vertical [start, end).
"""

from dataclasses import dataclass

import numpy as np

from config.settings import (
    CENTER_BIAS_WEIGHT,
    ENERGY_STRIDE,
    GUTTER_BONUS,
    GUTTER_BRIGHT_THRESHOLD,
    GUTTER_DARK_THRESHOLD,
)
from core.slicing.row_energy import region_energy
from core.utils.image_ops import RasterImage, clamp_rows


@dataclass
class ScanWeights:
    """Pesos do score composto (menor = melhor)."""
    stride: int = ENERGY_STRIDE
    bright_threshold: float = GUTTER_BRIGHT_THRESHOLD
    dark_threshold: float = GUTTER_DARK_THRESHOLD
    gutter_bonus: float = GUTTER_BONUS
    center_bias: float = CENTER_BIAS_WEIGHT


class ZoneScanner:
    """
    Escolhe a linha de menor score composto dentro de uma zona.

    score = energia
            - bônus se brilho > limiar claro ou < limiar escuro (calha)
            + center_bias * |y - h/2| / (h/2)

    Empates ficam com a primeira linha (menor índice).
    """

    def __init__(self, weights: ScanWeights = None):
        self.weights = weights or ScanWeights()

    def score_region(self, region: np.ndarray) -> np.ndarray:
        """Retorna o score de cada linha da região (relativo à região)."""
        w = self.weights
        height = region.shape[0]
        energies, brightness = region_energy(region, stride=w.stride)

        scores = energies.copy()
        gutter = (brightness > w.bright_threshold) | (brightness < w.dark_threshold)
        scores[gutter] -= w.gutter_bonus

        half = height / 2
        rows = np.arange(height, dtype=np.float64)
        scores += np.abs(rows - half) / half * w.center_bias
        return scores

    def find_best_cut(self, image: RasterImage, width: int, start_row: int, end_row: int) -> int:
        """
        Melhor linha de corte absoluta em [start_row, end_row).

        Limites fora da imagem são clampados antes da leitura. Zona degenerada
        (start_row >= end_row) devolve start_row.
        """
        if start_row >= end_row:
            return int(start_row)

        start_row, end_row = clamp_rows(start_row, end_row, image.height)
        if start_row >= end_row:
            return start_row

        width = max(0, min(int(width), image.width))
        region = image.rows(start_row, end_row)[:, :width]
        scores = self.score_region(region)

        # argmin devolve a primeira ocorrência do mínimo
        local_best = int(np.argmin(scores))
        return start_row + local_best
