from enum import Enum


class ItemStatus(str, Enum):
    """Estados possíveis de um WorkItem."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class ZoneKind(str, Enum):
    """Tipos de zona segura sugeridos pelo modelo externo."""
    GUTTER = "gutter"
    SAFE_BACKGROUND = "safe_background"


class ReadingMode(str, Enum):
    """Modo de leitura: mangá (páginas) ou manhwa (tiras longas)."""
    MANGA = "manga"
    MANHWA = "manhwa"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
