"""
MangaTranslator Core - Agendamento

Módulos:
- rate_window: janela deslizante de admissões (RPM)
- concurrency_gate: teto de itens em processamento
- work_item: unidade de trabalho e máquina de estados
- scheduler: laço de admissão + reconciliação de resultados
"""

from .rate_window import RateWindow
from .concurrency_gate import ConcurrencyGate
from .work_item import WorkItem, ALLOWED_TRANSITIONS
from .scheduler import Scheduler, SchedulerOptions, ProcessingStats

__all__ = [
    'RateWindow',
    'ConcurrencyGate',
    'WorkItem',
    'ALLOWED_TRANSITIONS',
    'Scheduler',
    'SchedulerOptions',
    'ProcessingStats',
]
