"""
MangaTranslator Core - Scheduler

Laço de admissão com dois limites independentes:
- ConcurrencyGate: no máximo N itens em PROCESSING
- RateWindow: no máximo M admissões em qualquer janela de 60s

Cada tick calcula quantos PENDING podem entrar agora (FIFO pela ordem de
submissão), marca-os PROCESSING junto com o registro do timestamp e despacha
cada um numa task asyncio independente. O tick não bloqueia nem espera o
worker: quem espera é a task.

Toda mutação de status passa pelo mesmo lock, então ticks sobrepostos e
resoluções concorrentes de workers nunca admitem um item duas vezes.
"""

import asyncio
import bisect
import itertools
import threading
import time
from collections import Counter
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from config.settings import (
    CONCURRENCY_LIMIT,
    RATE_COMPACTION_INTERVAL,
    RATE_WINDOW_SECONDS,
    RPM_LIMIT,
    SCHEDULER_IDLE_POLL,
)
from core.constants import ItemStatus
from core.exceptions import UnknownItemError
from core.logging.setup import get_logger
from core.scheduling.concurrency_gate import ConcurrencyGate
from core.scheduling.rate_window import RateWindow
from core.scheduling.work_item import WorkItem
from core.utils.image_ops import RasterImage

logger = get_logger("Scheduler")

DispatchFn = Callable[[WorkItem], Awaitable[RasterImage]]
PrefilterFn = Callable[[RasterImage], bool]
ChangeCallback = Callable[[WorkItem], None]


@dataclass
class SchedulerOptions:
    concurrency_limit: int = CONCURRENCY_LIMIT
    rpm_limit: int = RPM_LIMIT
    window_seconds: float = RATE_WINDOW_SECONDS
    compaction_interval: float = RATE_COMPACTION_INTERVAL
    idle_poll: float = SCHEDULER_IDLE_POLL


@dataclass
class ProcessingStats:
    """Contagem de itens por status."""
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    error: int = 0

    @property
    def progress(self) -> float:
        """Percentual concluído (0-100)."""
        return (self.completed / self.total) * 100 if self.total else 0.0

    @property
    def is_idle(self) -> bool:
        return self.pending == 0 and self.processing == 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "pending": self.pending,
            "processing": self.processing,
            "completed": self.completed,
            "error": self.error,
            "progress": round(self.progress, 2),
        }


class Scheduler:
    """
    Agendador de WorkItems.

    Args:
        dispatch: Corrotina que processa um item e devolve a imagem resultante
        options: Limites de concorrência/RPM
        prefilter: Função pura sobre a imagem; False = completa o item com a
            própria imagem, sem consumir orçamento de RPM nem de concorrência
        clock: Relógio monotônico em segundos (injetável para testes)
        on_change: Chamado após cada transição de status
    """

    def __init__(
        self,
        dispatch: DispatchFn,
        options: Optional[SchedulerOptions] = None,
        prefilter: Optional[PrefilterFn] = None,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[ChangeCallback] = None,
    ):
        self.options = options or SchedulerOptions()
        self._dispatch = dispatch
        self._prefilter = prefilter
        self._clock = clock
        self._on_change = on_change

        self.gate = ConcurrencyGate(self.options.concurrency_limit)
        self.rate_window = RateWindow(self.options.window_seconds, self.options.compaction_interval)

        self._lock = threading.RLock()
        self._items: Dict[str, WorkItem] = {}
        self._pending: List[Tuple[int, str]] = []   # (sequence, id), ordenado
        self._counts: Counter = Counter()
        self._sequence = itertools.count()
        self._screened: Set[Tuple[str, int]] = set()

        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._wakeup: Optional[asyncio.Event] = None

    # ------------------------------------------------------------------
    # Coleção
    # ------------------------------------------------------------------

    def submit(self, items: Union[WorkItem, Iterable[WorkItem]]) -> List[WorkItem]:
        """Registra itens novos (status PENDING) ao final da fila."""
        if isinstance(items, WorkItem):
            items = [items]

        added = []
        with self._lock:
            for item in items:
                if item.id in self._items:
                    raise ValueError(f"Item duplicado: {item.id}")
                if item.status is not ItemStatus.PENDING:
                    raise ValueError(f"Item {item.id} precisa estar PENDING para ser submetido")
                item.sequence = next(self._sequence)
                self._items[item.id] = item
                bisect.insort(self._pending, (item.sequence, item.id))
                self._counts[ItemStatus.PENDING] += 1
                added.append(item)

        if added:
            logger.debug(f"{len(added)} item(ns) submetido(s)")
            self._wake()
        return added

    def get(self, item_id: str) -> WorkItem:
        with self._lock:
            try:
                return self._items[item_id]
            except KeyError:
                raise UnknownItemError(item_id) from None

    @property
    def items(self) -> List[WorkItem]:
        """Itens na ordem de submissão."""
        with self._lock:
            return list(self._items.values())

    def stats(self) -> ProcessingStats:
        with self._lock:
            return ProcessingStats(
                total=len(self._items),
                pending=self._counts[ItemStatus.PENDING],
                processing=self._counts[ItemStatus.PROCESSING],
                completed=self._counts[ItemStatus.COMPLETED],
                error=self._counts[ItemStatus.ERROR],
            )

    @property
    def active_count(self) -> int:
        with self._lock:
            return self._counts[ItemStatus.PROCESSING]

    # ------------------------------------------------------------------
    # Transições
    # ------------------------------------------------------------------

    def _move(self, item: WorkItem, target: ItemStatus, **kwargs) -> None:
        # Chamado sempre com o lock adquirido
        previous = item.status
        previous_generation = item.generation
        item.transition(target, **kwargs)
        self._counts[previous] -= 1
        self._counts[target] += 1

        if previous is ItemStatus.PENDING:
            self._screened.discard((item.id, previous_generation))
            key = (item.sequence, item.id)
            idx = bisect.bisect_left(self._pending, key)
            if idx < len(self._pending) and self._pending[idx] == key:
                del self._pending[idx]
        if target is ItemStatus.PENDING:
            bisect.insort(self._pending, (item.sequence, item.id))

    def _notify(self, items: Iterable[WorkItem]) -> None:
        if self._on_change is not None:
            for item in items:
                try:
                    self._on_change(item)
                except Exception as e:
                    logger.warning(f"Callback on_change falhou para {item.id}: {e}")
        self._wake()

    def _wake(self) -> None:
        if self._loop is not None and self._wakeup is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._wakeup.set)

    def regenerate(self, item_id: str) -> WorkItem:
        """
        Volta um item COMPLETED/ERROR para PENDING, limpando o resultado.
        Uma resposta atrasada da tentativa anterior será descartada.
        """
        with self._lock:
            item = self.get(item_id)
            self._move(item, ItemStatus.PENDING)
        logger.info(f"Item {item_id} voltou para a fila (geração {item.generation})")
        self._notify([item])
        return item

    def _screen_pending(self) -> List[WorkItem]:
        # Completa sinteticamente os itens que o pré-filtro rejeita.
        # Sem timestamp no RateWindow e sem ocupar vaga de concorrência.
        if self._prefilter is None:
            return []

        skipped = []
        for _, item_id in list(self._pending):
            item = self._items[item_id]
            key = (item.id, item.generation)
            if key in self._screened:
                continue
            self._screened.add(key)

            try:
                worth = self._prefilter(item.source_image)
            except Exception as e:
                logger.warning(f"Pré-filtro falhou para {item.id}, processando normalmente: {e}")
                continue

            if not worth:
                self._move(item, ItemStatus.PROCESSING)
                self._move(item, ItemStatus.COMPLETED, result=item.source_image)
                item.synthetic = True
                skipped.append(item)

        if skipped:
            logger.info(f"{len(skipped)} item(ns) de baixa variância concluído(s) sem tradução")
        return skipped

    # ------------------------------------------------------------------
    # Admissão
    # ------------------------------------------------------------------

    def tick(self) -> List[WorkItem]:
        """
        Um passo de agendamento. Precisa de um event loop em execução.

        Returns:
            Itens admitidos neste tick (na ordem FIFO)
        """
        loop = asyncio.get_running_loop()
        opts = self.options

        with self._lock:
            now = self._clock()
            self.rate_window.maybe_compact(now)
            skipped = self._screen_pending()

            admitted: List[Tuple[WorkItem, int]] = []
            pending_count = len(self._pending)
            concurrency_slots = self.gate.slots(self._counts[ItemStatus.PROCESSING])
            rate_slots = self.rate_window.available(now, opts.rpm_limit)
            n = min(pending_count, concurrency_slots, rate_slots)

            if n > 0:
                batch = [self._items[item_id] for _, item_id in self._pending[:n]]
                for item in batch:
                    self._move(item, ItemStatus.PROCESSING)
                    admitted.append((item, item.generation))
                self.rate_window.record(now, count=n)

            for item, generation in admitted:
                task = loop.create_task(self._run(item, generation))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

        if admitted:
            logger.info(
                f"Admitidos {len(admitted)} item(ns) "
                f"(pendentes: {pending_count - len(admitted)}, vagas: {concurrency_slots}, rpm: {rate_slots})"
            )
        elif pending_count:
            logger.debug(f"Backpressure: vagas={concurrency_slots}, rpm={rate_slots}")

        changed = skipped + [item for item, _ in admitted]
        if changed:
            self._notify(changed)
        return [item for item, _ in admitted]

    async def _run(self, item: WorkItem, generation: int) -> None:
        try:
            result = await self._dispatch(item)
        except asyncio.CancelledError:
            self.resolve(item.id, generation, error="cancelled")
            raise
        except Exception as e:
            logger.warning(f"Falha ao processar {item.name or item.id}: {e}")
            self.resolve(item.id, generation, error=str(e) or type(e).__name__)
        else:
            self.resolve(item.id, generation, result=result)

    def resolve(
        self,
        item_id: str,
        generation: int,
        result: Optional[RasterImage] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        Aplica o desfecho de um despacho.

        Só tem efeito se o item ainda estiver PROCESSING na mesma geração do
        despacho; caso contrário o resultado é obsoleto e é descartado.

        Returns:
            True se aplicado
        """
        with self._lock:
            item = self._items.get(item_id)
            if item is None or item.generation != generation or item.status is not ItemStatus.PROCESSING:
                logger.debug(f"Resultado obsoleto descartado para {item_id} (geração {generation})")
                return False

            if error is None:
                self._move(item, ItemStatus.COMPLETED, result=result)
            else:
                self._move(item, ItemStatus.ERROR, error=error)

        logger.debug(f"Item {item_id} -> {item.status.value}")
        self._notify([item])
        return True

    # ------------------------------------------------------------------
    # Laço coordenador
    # ------------------------------------------------------------------

    def _next_wait(self) -> float:
        opts = self.options
        with self._lock:
            pending = len(self._pending)
            active = self._counts[ItemStatus.PROCESSING]
            if pending and self.gate.slots(active) > 0:
                wait = self.rate_window.seconds_until_slot(self._clock(), opts.rpm_limit)
                if wait > 0:
                    return max(0.001, min(wait, opts.idle_poll))
        return opts.idle_poll

    async def run_until_idle(self) -> ProcessingStats:
        """
        Executa ticks até não haver itens PENDING nem PROCESSING.

        Acorda a cada mudança de status (submissão, conclusão, regeneração)
        ou quando a janela de RPM libera uma vaga.
        """
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        try:
            while True:
                self._wakeup.clear()
                self.tick()

                stats = self.stats()
                if stats.is_idle:
                    if self._tasks:
                        # Só restam tasks já resolvidas terminando de desempilhar
                        await asyncio.gather(*list(self._tasks), return_exceptions=True)
                    return self.stats()

                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self._next_wait())
                except asyncio.TimeoutError:
                    pass
        finally:
            self._wakeup = None
            self._loop = None

    async def shutdown(self) -> None:
        """Cancela despachos em andamento; os itens afetados vão para ERROR."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
