"""
Unit tests for row energy / brightness
"""
import numpy as np
import pytest

from core.slicing.row_energy import region_energy, row_energy


def _striped_row(width: int) -> np.ndarray:
    # Blocos de 2 colunas alternando preto/branco: com stride 2 cada amostra
    # difere totalmente da vizinha
    row = np.zeros((1, width, 4), dtype=np.uint8)
    for x in range(width):
        value = 0 if (x // 2) % 2 == 0 else 255
        row[0, x, :3] = value
    row[0, :, 3] = 255
    return row


class TestRowEnergy:

    def test_flat_row_has_zero_energy(self):
        region = np.full((1, 50, 4), 200, dtype=np.uint8)
        result = row_energy(region, 50, 0)
        assert result.energy == 0.0
        assert result.brightness == pytest.approx(200.0)

    def test_striped_row_energy_and_brightness(self):
        region = _striped_row(8)
        result = row_energy(region, 8, 0)
        # Amostras em x=0,2,4 -> 0,255,0; vizinhos em 2,4,6 -> 255,0,255
        assert result.energy == pytest.approx(765.0)
        assert result.brightness == pytest.approx(85.0)

    def test_alpha_channel_is_ignored(self):
        region = np.full((1, 20, 4), 100, dtype=np.uint8)
        region[0, ::3, 3] = 0
        assert row_energy(region, 20, 0).energy == 0.0

    def test_row_narrower_than_stride(self):
        region = np.full((1, 2, 4), 30, dtype=np.uint8)
        result = row_energy(region, 2, 0, stride=2)
        assert result.energy == 0.0
        assert result.brightness == pytest.approx(30.0)

    def test_vectorized_matches_single_row(self):
        rng = np.random.RandomState(3)
        region = rng.randint(0, 256, size=(12, 37, 4), dtype=np.uint8)

        energies, brightness = region_energy(region)

        for y in range(region.shape[0]):
            single = row_energy(region, 37, y)
            assert energies[y] == pytest.approx(single.energy)
            assert brightness[y] == pytest.approx(single.brightness)

    def test_vectorized_narrow_region(self):
        region = np.full((5, 1, 4), 10, dtype=np.uint8)
        energies, brightness = region_energy(region)
        assert energies.shape == (5,)
        assert np.all(energies == 0)
        assert np.allclose(brightness, 10.0)
