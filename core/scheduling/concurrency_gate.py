from config.settings import CONCURRENCY_LIMIT


class ConcurrencyGate:
    """Teto de itens em processamento simultâneo."""

    def __init__(self, ceiling: int = CONCURRENCY_LIMIT):
        if ceiling <= 0:
            raise ValueError("ceiling deve ser positivo")
        self.ceiling = ceiling

    @staticmethod
    def available(ceiling: int, active_count: int) -> int:
        """ceiling - active_count, nunca negativo."""
        return max(0, ceiling - active_count)

    def slots(self, active_count: int) -> int:
        return self.available(self.ceiling, active_count)
