"""
MangaTranslator Core - Pytest Configuration and Fixtures

Fixtures compartilhadas para todos os testes.
"""

import sys
from pathlib import Path

import pytest

# Adiciona raiz do projeto ao path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.slicing.hybrid_slicer import HybridSlicer, SlicingOptions
from core.test_utils import (
    FakeClock,
    HeldDispatch,
    make_flat_image,
    make_strip,
)


def pytest_configure(config):
    """Configuração adicional do pytest."""
    config.addinivalue_line("markers", "slow: marks tests as slow (skip by default)")
    config.addinivalue_line("markers", "high: high priority tests")
    config.addinivalue_line("markers", "medium: medium priority tests")
    config.addinivalue_line("markers", "low: low priority tests")


# =============================================================================
# FIXTURES DE IMAGEM
# =============================================================================

@pytest.fixture
def long_strip():
    """Tira 8000x200 de ruído com calhas brancas perto dos cortes ideais."""
    return make_strip(8000, width=200, gutters=(2440, 4990, 7560), gutter_height=20)


@pytest.fixture
def noise_strip():
    """Tira 8000x200 só de ruído (sem nenhuma calha)."""
    return make_strip(8000, width=200)


@pytest.fixture
def short_page():
    """Página 1000x200: abaixo do limiar de corte."""
    return make_strip(1000, width=200, seed=7)


@pytest.fixture
def flat_chunk():
    """Pedaço cinza liso (variância zero)."""
    return make_flat_image(400, width=200)


# =============================================================================
# FIXTURES DE FATIAMENTO / AGENDAMENTO
# =============================================================================

@pytest.fixture
def slicer():
    return HybridSlicer(options=SlicingOptions())


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def held_dispatch():
    return HeldDispatch()


@pytest.fixture
def mock_worker(mocker):
    """Worker de tradução mockado: devolve os bytes recebidos."""
    worker = mocker.Mock()
    worker.translate = mocker.AsyncMock(side_effect=lambda image_bytes, *args, **kwargs: image_bytes)
    return worker


@pytest.fixture
def temp_dir(tmp_path):
    """Diretório temporário para testes de I/O."""
    out = tmp_path / "output"
    out.mkdir()
    return out
