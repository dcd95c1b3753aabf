"""
MangaTranslator Core - Configurações do Sistema
Configurações centralizadas para o fatiamento híbrido e o agendador de tradução.

Baseado em:
- Varredura de energia por linha (corte em calhas/fundos lisos)
- Zonas seguras sugeridas por modelo externo (apenas conselho)
- Limite duplo: concorrência + janela deslizante de requisições por minuto
"""

import os
from typing import Tuple


# ============================================================================
# FATIAMENTO HÍBRIDO (Manhwa / tiras verticais)
# ============================================================================

TARGET_CHUNK_HEIGHT = int(os.environ.get('TARGET_CHUNK_HEIGHT', 2500))   # Altura alvo de cada pedaço
SPLIT_THRESHOLD_RATIO = 1.2        # Abaixo de TARGET * 1.2 a imagem não é cortada
MIN_CHUNK_HEIGHT = int(os.environ.get('MIN_CHUNK_HEIGHT', 100))         # Fatias menores que isso são descartadas

# Seleção de zonas sugeridas
ZONE_MARGIN = 100                  # Zona precisa terminar depois de current + margem
ZONE_ACCEPT_TOLERANCE = 1800       # Distância máxima entre meio da zona e corte desejado

# Fallback matemático
FALLBACK_SEARCH_RADIUS = 300       # Janela simétrica em torno do corte desejado
FALLBACK_BOTTOM_GUARD = 10         # Nunca procura nas últimas N linhas da imagem


# ============================================================================
# ANÁLISE DE ENERGIA POR LINHA
# ============================================================================

ENERGY_STRIDE = 2                  # Amostra 1 a cada 2 pixels na horizontal
GUTTER_BRIGHT_THRESHOLD = 240.0    # Brilho acima disso = calha branca
GUTTER_DARK_THRESHOLD = 20.0       # Brilho abaixo disso = calha preta
GUTTER_BONUS = 30.0                # Subtraído do score em calhas
CENTER_BIAS_WEIGHT = 0.5           # Penalidade por distância ao centro da zona


# ============================================================================
# AGENDADOR (Concorrência + RPM)
# ============================================================================

CONCURRENCY_LIMIT = int(os.environ.get('CONCURRENCY_LIMIT', 5))
RPM_LIMIT = int(os.environ.get('RPM_LIMIT', 20))          # Requisições por janela
RATE_WINDOW_SECONDS = 60.0                                 # Tamanho da janela deslizante
RATE_COMPACTION_INTERVAL = 1.0                             # Limpeza periódica do log de timestamps
SCHEDULER_IDLE_POLL = 0.25                                 # Espera máxima entre ticks ociosos


# ============================================================================
# PRÉ-FILTRO DE COMPLEXIDADE ("Gray Scan Bug")
# ============================================================================

COMPLEXITY_THUMBNAIL_SIZE = 100    # Miniatura 100x100 é suficiente
COMPLEXITY_SAMPLE_STEP = 4         # Amostra 1 a cada 4 pixels
COMPLEXITY_VARIANCE_THRESHOLD = float(os.environ.get('COMPLEXITY_VARIANCE_THRESHOLD', 100.0))


# ============================================================================
# TRADUÇÃO E SAÍDA
# ============================================================================

DEFAULT_TARGET_LANGUAGE = os.environ.get('TARGET_LANGUAGE', 'ru')
SUPPORTED_LANGUAGES: Tuple[str, ...] = ("ru", "en")
LANGUAGE_NAMES = {
    "ru": "Russian",
    "en": "English",
}

CHUNK_NAME_PATTERN = "{stem}_part_{index}{suffix}"
DEFAULT_CHUNK_MIME = "image/png"


# ============================================================================
# CONSTANTES DE ERRO E LOGGING
# ============================================================================

VERBOSE = os.getenv("MANGA_TRANSLATOR_VERBOSE", "false").lower() == "true"
LOG_LEVEL = os.getenv("MANGA_TRANSLATOR_LOG_LEVEL", "INFO")


# ============================================================================
# VALIDAÇÃO DE CONFIGURAÇÃO
# ============================================================================

def validate_config() -> bool:
    """
    Valida se a configuração é consistente.

    Returns:
        True se configuração é válida

    Raises:
        ValueError se houver inconsistências
    """
    if TARGET_CHUNK_HEIGHT <= 0:
        raise ValueError("TARGET_CHUNK_HEIGHT deve ser positivo")

    if MIN_CHUNK_HEIGHT >= TARGET_CHUNK_HEIGHT:
        raise ValueError("MIN_CHUNK_HEIGHT deve ser menor que TARGET_CHUNK_HEIGHT")

    if GUTTER_DARK_THRESHOLD >= GUTTER_BRIGHT_THRESHOLD:
        raise ValueError("GUTTER_DARK_THRESHOLD deve ser menor que GUTTER_BRIGHT_THRESHOLD")

    if CONCURRENCY_LIMIT <= 0 or RPM_LIMIT <= 0:
        raise ValueError("CONCURRENCY_LIMIT e RPM_LIMIT devem ser positivos")

    if DEFAULT_TARGET_LANGUAGE not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Idioma não suportado: {DEFAULT_TARGET_LANGUAGE}")

    return True


# Executa validação no import
if __name__ != "__main__":
    try:
        validate_config()
    except ValueError as e:
        print(f"[Config Warning] {e}")
