"""
MangaTranslator Core - Exceções do Domínio
Centraliza todas as exceções personalizadas do sistema.
"""

from typing import Optional


class MangaTranslatorError(Exception):
    """Exceção base para todo o domínio MangaTranslator."""
    pass


class SlicingError(MangaTranslatorError):
    """Entrada inutilizável para o fatiamento (ex: bytes que não decodificam)."""
    def __init__(self, message: str, page_name: Optional[str] = None):
        super().__init__(message)
        self.page_name = page_name


class HintSourceError(MangaTranslatorError):
    """Falha do sugeridor de zonas. Sempre tratada dentro do HybridSlicer."""
    pass


class TranslationError(MangaTranslatorError):
    """Erro do worker de tradução para um item."""
    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


class InvalidTransitionError(MangaTranslatorError):
    """Transição de status fora da máquina de estados do WorkItem."""
    def __init__(self, item_id: str, current: str, target: str):
        super().__init__(f"Transição inválida para {item_id}: {current} -> {target}")
        self.item_id = item_id
        self.current = current
        self.target = target


class UnknownItemError(MangaTranslatorError):
    """Item não rastreado pelo agendador."""
    def __init__(self, item_id: str):
        super().__init__(f"Item desconhecido: {item_id}")
        self.item_id = item_id
