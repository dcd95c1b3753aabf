"""
MangaTranslator Core - Image Operations Utilities
Raster RGBA imutável e funções comuns de conversão/geometria de linhas.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from core.exceptions import SlicingError

MIME_TO_FORMAT = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/webp": "WEBP",
}


@dataclass(frozen=True, eq=False)
class RasterImage:
    """
    Imagem raster em ordem row-major RGBA (4 bytes por pixel).

    `pixels` é uma view somente leitura do array recebido: o array do chamador
    continua gravável e não é copiado. Quem precisa de uma imagem nova aloca
    outro buffer (ver ChunkAssembler), nunca altera este.
    """
    pixels: np.ndarray

    def __post_init__(self):
        arr = self.pixels
        if arr.ndim != 3 or arr.shape[2] != 4 or arr.dtype != np.uint8:
            raise ValueError(f"RasterImage espera array (H, W, 4) uint8, obteve {arr.shape} {arr.dtype}")
        view = arr.view()
        view.setflags(write=False)
        object.__setattr__(self, "pixels", view)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), mesma convenção do PIL."""
        return self.width, self.height

    @classmethod
    def from_array(cls, array: np.ndarray, copy: bool = True) -> "RasterImage":
        """
        Cria raster a partir de array (H, W), (H, W, 3) ou (H, W, 4).
        Sem canal alfa, o alfa vira 255.
        """
        arr = np.asarray(array)
        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)

        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Formato de array não suportado: {arr.shape}")

        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=-1)
        elif copy:
            arr = arr.copy()

        return cls(np.ascontiguousarray(arr))

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))

    def rows(self, start: int, end: int) -> np.ndarray:
        """View somente leitura das linhas [start, end)."""
        return self.pixels[start:end]

    def same_pixels(self, other: "RasterImage") -> bool:
        return self.pixels.shape == other.pixels.shape and np.array_equal(self.pixels, other.pixels)


def clamp_rows(start: int, end: int, height: int) -> Tuple[int, int]:
    """
    Garante que o intervalo de linhas esteja dentro da imagem.

    Args:
        start: Linha inicial (inclusiva)
        end: Linha final (exclusiva)
        height: Altura da imagem

    Returns:
        (start, end) ajustados a [0, height]
    """
    start = max(0, min(int(start), height))
    end = max(0, min(int(end), height))
    return start, end


def decode_image(data: bytes, name: str = "<bytes>") -> RasterImage:
    """Decodifica bytes (PNG/JPEG/WEBP...) em RasterImage."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return RasterImage.from_pil(img)
    except (OSError, ValueError) as exc:
        raise SlicingError(f"Não foi possível decodificar a imagem: {exc}", page_name=name) from exc


def load_raster(path: Union[str, Path]) -> RasterImage:
    path = Path(path)
    return decode_image(path.read_bytes(), name=path.name)


def encode_image(raster: RasterImage, mime_type: str = "image/png", quality: int = 95) -> bytes:
    """
    Codifica o raster no formato indicado pelo mime type.
    JPEG não tem alfa, então é achatado para RGB.
    """
    fmt = MIME_TO_FORMAT.get(mime_type.lower(), "PNG")
    img = raster.to_pil()
    if fmt == "JPEG":
        img = img.convert("RGB")

    buf = io.BytesIO()
    if fmt in ("JPEG", "WEBP"):
        img.save(buf, format=fmt, quality=quality)
    else:
        img.save(buf, format=fmt)
    return buf.getvalue()


def mime_for_path(path: Union[str, Path]) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in (".jpg", ".jpeg"):
        return "image/jpeg"
    if suffix == ".webp":
        return "image/webp"
    return "image/png"


def stack_vertically(images: Sequence[RasterImage]) -> RasterImage:
    """
    Concatena rasters de mesma largura na vertical (sem reamostragem).
    Usado para verificar que os pedaços reconstroem a imagem original.
    """
    if not images:
        raise ValueError("Nenhuma imagem para empilhar")

    widths = {img.width for img in images}
    if len(widths) != 1:
        raise ValueError(f"Larguras diferentes: {sorted(widths)}")

    return RasterImage(np.concatenate([img.pixels for img in images], axis=0))


def chunk_heights(cuts: Sequence[int]) -> List[int]:
    return [b - a for a, b in zip(cuts, cuts[1:])]
