"""
MangaTranslator Core - Configuração de Logging

Logger raiz "MangaTranslator"; cada módulo pega um filho com get_logger()
(ex: MangaTranslator.Scheduler). Nível padrão vem de config.settings
(MANGA_TRANSLATOR_LOG_LEVEL / MANGA_TRANSLATOR_VERBOSE).
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from config.settings import LOG_LEVEL, VERBOSE

ROOT_LOGGER_NAME = "MangaTranslator"

CONSOLE_FORMAT = '[%(levelname)s] %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _resolve_level(verbose: Optional[bool]) -> int:
    if verbose is None:
        verbose = VERBOSE
    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    verbose: Optional[bool] = None,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configura o logger raiz do projeto (idempotente).

    Args:
        name: Nome do logger
        verbose: True = DEBUG; None = usa a configuração do ambiente
        log_file: Arquivo de log opcional (sempre em DEBUG)
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _resolve_level(verbose)
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding='utf-8')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(fh)

    logging.captureWarnings(True)
    return logger


def set_verbosity(verbose: bool, name: str = ROOT_LOGGER_NAME) -> None:
    """Troca o nível do console em tempo de execução (flag --verbose da CLI)."""
    logger = logging.getLogger(name)
    level = _resolve_level(verbose)
    has_file = any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    logger.setLevel(logging.DEBUG if has_file else level)
    for handler in logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Retorna um logger filho com o namespace correto."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
