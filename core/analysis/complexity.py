from typing import Any, Dict

import cv2
import numpy as np

from config.settings import (
    COMPLEXITY_SAMPLE_STEP,
    COMPLEXITY_THUMBNAIL_SIZE,
    COMPLEXITY_VARIANCE_THRESHOLD,
)
from core.utils.image_ops import RasterImage


def image_variance(
    image: RasterImage,
    thumbnail_size: int = COMPLEXITY_THUMBNAIL_SIZE,
    sample_step: int = COMPLEXITY_SAMPLE_STEP,
) -> float:
    """
    Variância do brilho (R+G+B)/3 numa miniatura da imagem.

    A imagem é esticada para thumbnail_size x thumbnail_size (bilinear) e
    amostrada a cada `sample_step` pixels em ordem row-major.
    """
    if image.width == 0 or image.height == 0:
        return 0.0

    thumb = cv2.resize(
        np.ascontiguousarray(image.pixels),
        (thumbnail_size, thumbnail_size),
        interpolation=cv2.INTER_LINEAR,
    )
    flat = thumb.reshape(-1, 4)[::sample_step, :3].astype(np.float64)
    values = flat.sum(axis=1) / 3.0
    return float(np.var(values))


def is_worth_processing(image: RasterImage, threshold: float = COMPLEXITY_VARIANCE_THRESHOLD) -> bool:
    """
    Pré-filtro: pedaços quase lisos (calhas, papel cinza escaneado) não vão
    para o modelo, que tende a alucinar em espaço vazio.

    Cor sólida ~0, papel sujo ~5-10, arte real costuma passar de 500.
    """
    return image_variance(image) > threshold


def complexity_report(image: RasterImage) -> Dict[str, Any]:
    variance = image_variance(image)
    return {
        "variance": variance,
        "threshold": COMPLEXITY_VARIANCE_THRESHOLD,
        "worth_processing": variance > COMPLEXITY_VARIANCE_THRESHOLD,
    }
