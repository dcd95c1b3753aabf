"""
MangaTranslator Core - Energia por Linha

Mede a "atividade visual" horizontal de uma linha. Energia baixa indica
linha lisa (calha ou fundo vazio), que é onde queremos cortar.
"""

from typing import NamedTuple, Tuple

import numpy as np

from config.settings import ENERGY_STRIDE


class RowEnergy(NamedTuple):
    energy: float
    brightness: float


def row_energy(region: np.ndarray, width: int, row: int, stride: int = ENERGY_STRIDE) -> RowEnergy:
    """
    Calcula energia e brilho de uma linha da região.

    Amostra 1 pixel a cada `stride` na horizontal. O brilho é a média de
    (R+G+B)/3 das amostras; a energia é a média da soma das diferenças
    absolutas por canal entre cada amostra e o pixel `stride` à direita.

    Args:
        region: Array (H, W, 4) uint8 da zona (linhas relativas à zona)
        width: Largura da imagem
        row: Índice da linha dentro da região

    Returns:
        RowEnergy(energy, brightness)
    """
    line = region[row, :width, :3]
    samples = line[0:max(0, width - stride):stride].astype(np.int32)
    if samples.shape[0] == 0:
        # Linha estreita demais para ter vizinho: sem energia, brilho do que houver
        brightness = float(line.astype(np.float64).mean()) if width > 0 else 0.0
        return RowEnergy(0.0, brightness)

    neighbors = line[stride:width:stride].astype(np.int32)
    diff = np.abs(samples - neighbors).sum(axis=1)
    brightness = samples.sum(axis=1) / 3.0
    return RowEnergy(float(diff.mean()), float(brightness.mean()))


def region_energy(region: np.ndarray, stride: int = ENERGY_STRIDE) -> Tuple[np.ndarray, np.ndarray]:
    """
    Versão vetorizada de row_energy para todas as linhas da região.

    Returns:
        (energies, brightness), arrays float64 de tamanho H
    """
    height, width = region.shape[:2]
    rgb = region[:, :, :3]
    samples = rgb[:, 0:max(0, width - stride):stride].astype(np.int32)

    if samples.shape[1] == 0:
        brightness = rgb.astype(np.float64).mean(axis=(1, 2)) if width > 0 else np.zeros(height)
        return np.zeros(height, dtype=np.float64), brightness

    neighbors = rgb[:, stride:width:stride].astype(np.int32)
    diff = np.abs(samples - neighbors).sum(axis=2)
    brightness = samples.sum(axis=2) / 3.0
    return diff.mean(axis=1).astype(np.float64), brightness.mean(axis=1).astype(np.float64)
