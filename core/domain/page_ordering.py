"""
Ordenação de páginas pelo número extraído do nome do arquivo.

Mangá é lido da direita para a esquerda, então o padrão é decrescente;
manhwa (tira vertical) é crescente.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence, TypeVar, Union

from core.constants import ReadingMode, SortOrder

T = TypeVar("T")

_DIGITS = re.compile(r"(\d+)")


def extract_page_number(filename: Union[str, Path]) -> int:
    """Primeira sequência de dígitos do nome; 0 se não houver."""
    match = _DIGITS.search(Path(filename).name)
    return int(match.group(1)) if match else 0


def default_sort_order(mode: ReadingMode) -> SortOrder:
    return SortOrder.ASC if mode is ReadingMode.MANHWA else SortOrder.DESC


def sort_page_files(
    files: Sequence[T],
    order: SortOrder = SortOrder.DESC,
    key_name=None,
) -> List[T]:
    """
    Ordena arquivos pelo número da página (ordenação estável).

    Args:
        files: Caminhos, nomes ou objetos quaisquer
        order: ASC ou DESC
        key_name: Extrai o nome de cada elemento (padrão: str(elemento))
    """
    key_name = key_name or str
    return sorted(
        files,
        key=lambda f: extract_page_number(key_name(f)),
        reverse=order is SortOrder.DESC,
    )


def resolve_order(mode: ReadingMode, order: Optional[SortOrder] = None) -> SortOrder:
    return order if order is not None else default_sort_order(mode)
