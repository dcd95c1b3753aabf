from dataclasses import dataclass, field
from typing import Dict, Optional

from core.logging.setup import get_logger

logger = get_logger("SessionContext")

INITIAL_SUMMARY = "Start of chapter."


@dataclass
class SessionContext:
    """
    Memória da sessão de tradução (glossário + resumo da última página).

    É passada explicitamente aos workers; o pipeline chama reset() a cada
    novo lote de arquivos.
    """
    glossary: Dict[str, str] = field(default_factory=dict)
    last_summary: str = INITIAL_SUMMARY

    def merge(self, new_glossary: Optional[Dict[str, str]] = None, summary: Optional[str] = None) -> None:
        """Termos novos sobrescrevem os antigos; resumo vazio é ignorado."""
        if new_glossary:
            self.glossary.update({str(k): str(v) for k, v in new_glossary.items()})
        if summary:
            self.last_summary = summary

    def reset(self) -> None:
        logger.info("Memória da sessão reiniciada")
        self.glossary = {}
        self.last_summary = INITIAL_SUMMARY

    def to_dict(self) -> dict:
        return {"glossary": dict(self.glossary), "last_summary": self.last_summary}
