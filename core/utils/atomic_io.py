from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from core.utils.image_ops import RasterImage, encode_image, mime_for_path


def atomic_write_bytes(path: str | Path, content: bytes) -> Path:
    """Write bytes through a temporary sibling file, then os.replace."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    with NamedTemporaryFile("wb", dir=target.parent, prefix=f".{target.name}.", delete=False) as tmp:
        tmp.write(content)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)

    os.replace(tmp_path, target)
    return target


def atomic_write_json(path: str | Path, payload: Any, *, indent: int = 2) -> Path:
    return atomic_write_bytes(path, json.dumps(payload, ensure_ascii=False, indent=indent).encode("utf-8"))


def atomic_save_raster(path: str | Path, raster: RasterImage) -> Path:
    """Encode by file suffix (png/jpg/webp) and write atomically."""
    return atomic_write_bytes(path, encode_image(raster, mime_for_path(path)))
