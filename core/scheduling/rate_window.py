"""
MangaTranslator Core - Rate Window

Log de timestamps de admissão com janela deslizante (padrão 60s).
"""

import bisect
from typing import List, Optional

from config.settings import RATE_COMPACTION_INTERVAL, RATE_WINDOW_SECONDS


class RateWindow:
    """
    Janela deslizante de admissões.

    Entradas com `now - t >= window` estão expiradas e nunca contam em
    `available`, mesmo antes da compactação. A compactação só libera memória.
    """

    def __init__(
        self,
        window_seconds: float = RATE_WINDOW_SECONDS,
        compaction_interval: float = RATE_COMPACTION_INTERVAL,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds deve ser positivo")
        self.window_seconds = float(window_seconds)
        self.compaction_interval = float(compaction_interval)
        self._log: List[float] = []
        self._last_compaction: Optional[float] = None

    def __len__(self) -> int:
        """Tamanho bruto do log (inclui expirados ainda não compactados)."""
        return len(self._log)

    @property
    def timestamps(self) -> List[float]:
        return list(self._log)

    def record(self, timestamp: float, count: int = 1) -> None:
        """
        Registra `count` admissões no instante `timestamp`.

        O log é mantido não-decrescente: um timestamp anterior ao último
        registrado é gravado como o último.
        """
        if count <= 0:
            return
        if self._log and timestamp < self._log[-1]:
            timestamp = self._log[-1]
        self._log.extend([float(timestamp)] * count)

    def _first_active_index(self, now: float) -> int:
        # Índice da primeira entrada com now - t < window
        return bisect.bisect_right(self._log, now - self.window_seconds)

    def active_count(self, now: float) -> int:
        return len(self._log) - self._first_active_index(now)

    def available(self, now: float, limit: int) -> int:
        """limit - admissões na janela, nunca negativo."""
        return max(0, limit - self.active_count(now))

    def seconds_until_slot(self, now: float, limit: int) -> float:
        """Quanto falta para `available` ficar positivo (0 se já está)."""
        start = self._first_active_index(now)
        active = len(self._log) - start
        if active < limit:
            return 0.0
        if limit <= 0:
            return self.window_seconds
        # Precisa expirar (active - limit + 1) entradas; a última delas define a espera
        blocking = self._log[start + active - limit]
        return max(0.0, blocking + self.window_seconds - now)

    def compact(self, now: float) -> int:
        """Remove entradas expiradas. Retorna quantas foram removidas."""
        idx = self._first_active_index(now)
        if idx:
            del self._log[:idx]
        self._last_compaction = now
        return idx

    def maybe_compact(self, now: float) -> int:
        """Compacta no máximo uma vez por `compaction_interval`."""
        if self._last_compaction is None or now - self._last_compaction >= self.compaction_interval:
            return self.compact(now)
        return 0
