"""
MangaTranslator Core - Work Item

Unidade de trabalho do agendador e sua máquina de estados:

    PENDING -> PROCESSING -> COMPLETED | ERROR
    COMPLETED | ERROR -> PENDING   (regenerar, limpa o resultado)
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from core.constants import ItemStatus
from core.exceptions import InvalidTransitionError
from core.utils.image_ops import RasterImage

ALLOWED_TRANSITIONS: Dict[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.PENDING: frozenset({ItemStatus.PROCESSING}),
    ItemStatus.PROCESSING: frozenset({ItemStatus.COMPLETED, ItemStatus.ERROR}),
    ItemStatus.COMPLETED: frozenset({ItemStatus.PENDING}),
    ItemStatus.ERROR: frozenset({ItemStatus.PENDING}),
}


def new_item_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass(eq=False)
class WorkItem:
    """
    Item de tradução (um pedaço de página).

    `generation` muda a cada admissão e a cada regeneração; um resultado só é
    aplicado se a geração do despacho ainda for a atual.

    `target_language` e `context` são fixados ao enfileirar; o despacho usa
    esses valores, não os do lote mais recente.
    """
    source_image: RasterImage
    id: str = ""
    name: str = ""
    page_number: int = 0
    mime_type: str = "image/png"
    status: ItemStatus = ItemStatus.PENDING
    result: Optional[RasterImage] = None
    error: Optional[str] = None
    generation: int = 0
    sequence: int = -1
    synthetic: bool = False
    target_language: Optional[str] = None
    context: Optional[Any] = None

    def __post_init__(self):
        if not self.id:
            self.id = new_item_id()

    def can_transition(self, target: ItemStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition(
        self,
        target: ItemStatus,
        result: Optional[RasterImage] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Aplica uma transição válida.

        Raises:
            InvalidTransitionError para transições fora da tabela
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self.id, self.status.value, target.value)

        if target is ItemStatus.PROCESSING:
            self.generation += 1
            self.error = None
        elif target is ItemStatus.PENDING:
            self.generation += 1
            self.result = None
            self.error = None
            self.synthetic = False
        elif target is ItemStatus.COMPLETED:
            self.result = result
        elif target is ItemStatus.ERROR:
            self.error = error

        self.status = target

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "page_number": self.page_number,
            "status": self.status.value,
            "has_result": self.result is not None,
            "error": self.error,
            "generation": self.generation,
            "synthetic": self.synthetic,
            "target_language": self.target_language,
            "width": self.source_image.width,
            "height": self.source_image.height,
        }
