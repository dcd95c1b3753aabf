"""
MangaTranslator Core - Fatiamento Híbrido

Módulos:
- row_energy: energia/brilho por linha (varredura de pixels)
- zone_scanner: melhor linha de corte dentro de uma zona
- hybrid_slicer: plano de cortes guiado por zonas + fallback matemático
- chunk_assembler: plano de cortes -> sub-imagens
- zones / interfaces: zonas seguras e contrato do sugeridor externo
"""

from .row_energy import RowEnergy, row_energy, region_energy
from .zone_scanner import ZoneScanner, ScanWeights
from .zones import SafeZone, parse_safe_zones
from .chunk_assembler import Chunk, ChunkAssembler
from .hybrid_slicer import HybridSlicer, SlicingOptions, SliceResult, finalize_cut_plan
from .interfaces import ZoneSuggester, NullZoneSuggester, StaticZoneSuggester

__all__ = [
    'RowEnergy',
    'row_energy',
    'region_energy',
    'ZoneScanner',
    'ScanWeights',
    'SafeZone',
    'parse_safe_zones',
    'Chunk',
    'ChunkAssembler',
    'HybridSlicer',
    'SlicingOptions',
    'SliceResult',
    'finalize_cut_plan',
    'ZoneSuggester',
    'NullZoneSuggester',
    'StaticZoneSuggester',
]
