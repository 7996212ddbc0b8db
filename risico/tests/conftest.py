"""Shared pytest fixtures for the RISICO test suite.

This module provides reusable fixtures for testing RISICO components:
fuel catalogs, small grids, meteorological batches and model configurations.
"""

from datetime import datetime, timezone

import numpy as np
import pytest

from risico.models.config import ModelConfig
from risico.models.constants import NODATA
from risico.models.input import Input
from risico.models.properties import Properties
from risico.models.state import State
from risico.models.vegetation import Vegetation, VegetationCatalog
from risico.models.warm_state import WarmStateStore


# ============================================================================
# Vegetation Fixtures
# ============================================================================

@pytest.fixture
def grass():
    """Fast drying grass with no live fuel."""
    return Vegetation(id="grass", d0=0.5, d1=NODATA, hhv=18000.0, umid=NODATA,
                      v0=120.0, T0=10.0, sat=40.0, name="grass")


@pytest.fixture
def shrub():
    """Shrubland with a live fuel component modulated by NDVI."""
    return Vegetation(id="shrub", d0=1.0, d1=1.5, hhv=20000.0, umid=120.0,
                      v0=80.0, T0=30.0, sat=50.0, name="shrub", use_ndvi=True)


@pytest.fixture
def rock():
    """Non-burnable surface."""
    return Vegetation(id="rock", d0=0.0, d1=NODATA, hhv=NODATA, umid=NODATA,
                      v0=0.0, T0=30.0, sat=40.0, name="rock")


@pytest.fixture
def catalog(grass, shrub, rock):
    return VegetationCatalog.from_vegetations([grass, shrub, rock])


# ============================================================================
# Grid Fixtures
# ============================================================================

@pytest.fixture
def make_properties(catalog):
    """Factory for a flat grid cycling through the given vegetation codes."""
    def _make(n_cells=6, codes=("grass", "shrub", "rock"), slope=0.0, aspect=0.0):
        veg_codes = [codes[i % len(codes)] for i in range(n_cells)]
        return Properties.from_arrays(
            lons=np.linspace(8.0, 9.0, n_cells),
            lats=np.linspace(44.0, 45.0, n_cells),
            slopes=np.full(n_cells, slope),
            aspects=np.full(n_cells, aspect),
            vegetation_codes=veg_codes,
            catalog=catalog,
            ppf_summer=np.full(n_cells, 0.8),
            ppf_winter=np.full(n_cells, 0.2),
        )
    return _make


@pytest.fixture
def grass_cell(make_properties):
    """Single grass cell."""
    return make_properties(1, codes=("grass",))


# ============================================================================
# Time and Input Fixtures
# ============================================================================

@pytest.fixture
def start_time():
    """A summer morning, in UTC."""
    return datetime(2024, 7, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_input():
    """Factory for uniform input batches.

    Defaults describe a hot, dry, breezy afternoon without rain or snow.
    """
    def _make(n_cells, time, **overrides):
        values = {
            "temperature": 30.0,
            "humidity": 30.0,
            "wind_speed": 10000.0,   # m/h (~2.8 m/s)
            "wind_dir": np.pi / 2,
            "rain": 0.0,
            "snow_cover": 0.0,
        }
        values.update(overrides)
        columns = {name: np.full(n_cells, value, dtype=np.float64)
                   for name, value in values.items()}
        return Input.from_arrays(time, n_cells=n_cells, **columns)
    return _make


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture(params=["legacy", "v2023", "v2025"])
def any_config(request):
    """Configuration of each built-in variant."""
    return ModelConfig.new(request.param)


@pytest.fixture
def legacy_config():
    return ModelConfig.new("legacy")


@pytest.fixture
def v2023_config():
    return ModelConfig.new("v2023")


@pytest.fixture
def make_state(start_time):
    """Factory for a cold-started state."""
    def _make(n_cells, config, dffm=None, num_workers=1, logger=None, time=None):
        store = WarmStateStore.cold_start(n_cells, dffm=dffm)
        return State(store, time or start_time, config,
                     num_workers=num_workers, logger=logger)
    return _make
