from .interfaces import TranslationWorker
from .echo_worker import EchoWorker

__all__ = [
    'TranslationWorker',
    'EchoWorker',
]
