"""
MangaTranslator Core - Analysis Components

Módulos de análise executados antes do despacho:
- complexity: pré-filtro de variância (evita mandar calhas vazias ao modelo)
"""

from .complexity import image_variance, is_worth_processing, complexity_report

__all__ = [
    'image_variance',
    'is_worth_processing',
    'complexity_report',
]
