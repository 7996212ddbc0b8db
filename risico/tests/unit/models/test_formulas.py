"""Tests for the per-cell RISICO formulas.

Shared formulas are tested directly; variant formulas are reached through
``ModelConfig`` so each one runs with the coefficients of its variant.
"""

import math

import pytest

from risico.models.config import ModelConfig
from risico.models.constants import NODATA
from risico.models.formulas import (
    get_intensity,
    get_lhv_dff,
    get_lhv_l1,
    get_ppf,
    get_t_effect,
)


class TestPPF:
    """Tests for the seasonal ignition probability factor."""

    def test_winter_and_summer(self):
        assert get_ppf(1, 0.8, 0.2) == pytest.approx(0.2)
        assert get_ppf(89, 0.8, 0.2) == pytest.approx(0.2)
        assert get_ppf(151, 0.8, 0.2) == pytest.approx(0.8)
        assert get_ppf(272, 0.8, 0.2) == pytest.approx(0.8)
        assert get_ppf(335, 0.8, 0.2) == pytest.approx(0.2)
        assert get_ppf(366, 0.8, 0.2) == pytest.approx(0.2)

    def test_spring_blend(self):
        """April and May blend linearly from winter to summer."""
        assert get_ppf(90, 1.0, 0.0) == pytest.approx(0.0)
        assert get_ppf(120, 1.0, 0.0) == pytest.approx(30.0 / 61.0)

    def test_autumn_blend(self):
        """October and November blend back from summer to winter."""
        assert get_ppf(273, 1.0, 0.0) == pytest.approx(1.0)
        assert get_ppf(300, 1.0, 0.0) == pytest.approx(1.0 - 27.0 / 62.0)

    def test_negative_factor_gives_zero(self):
        assert get_ppf(200, -1.0, 0.5) == 0.0
        assert get_ppf(200, 0.5, -1.0) == 0.0


class TestHeatingValues:
    """Tests for low heating values and fire intensity."""

    def test_lhv_dead_fuel(self):
        assert get_lhv_dff(18000.0, 10.0) == pytest.approx(18000.0 * 0.9 - 2442.0 * 0.1)

    def test_lhv_live_fuel_missing(self):
        assert get_lhv_l1(NODATA, 0.5, 18000.0) == 0.0

    def test_lhv_live_fuel_with_msi(self):
        """A valid MSI lowers the live fuel moisture."""
        expected = 18000.0 * (1.0 - 0.9) - 2442.0 * 0.9
        assert get_lhv_l1(100.0, 0.5, 18000.0) == pytest.approx(expected)

    def test_lhv_live_fuel_invalid_msi(self):
        assert get_lhv_l1(100.0, 2.0, 18000.0) == pytest.approx(-2442.0)

    def test_intensity_without_greenness(self):
        assert get_intensity(0.5, NODATA, 3600.0, -1.0, 10000.0, 0.0) == pytest.approx(5000.0)

    def test_intensity_with_greenness(self):
        assert get_intensity(0.5, NODATA, 3600.0, 0.5, 10000.0, 0.0) == pytest.approx(2500.0)
        assert get_intensity(0.5, 1.0, 3600.0, 0.5, 10000.0, 2000.0) == pytest.approx(6000.0)

    def test_t_effect(self):
        assert get_t_effect(-5.0) == 1.0
        assert get_t_effect(0.0) == 1.0
        assert get_t_effect(10.0) == pytest.approx(math.exp(0.171))


class TestDrying:
    """Tests for the drying formulas of every variant."""

    def test_legacy_equilibrium(self, legacy_config):
        """A very long step converges to the equilibrium moisture."""
        emc = 50.0 ** 0.555 + 10.6 * math.exp(-5.0)
        result = legacy_config.drying_step(40.0, 30.0, 0.0, 50.0, 30.0, 1e6)
        assert result == pytest.approx(emc, rel=1e-6)

    def test_moves_towards_equilibrium(self, any_config):
        """Wet fuel dries without passing the equilibrium; dry fuel adsorbs."""
        emc = any_config.drying_step(20.0, 25.0, 0.0, 40.0, 10.0, 1e6)

        drier = any_config.drying_step(35.0, 25.0, 0.0, 40.0, 10.0, 1.0)
        assert emc <= drier < 35.0

        wetter = any_config.drying_step(1.0, 25.0, 0.0, 40.0, 10.0, 1.0)
        assert 1.0 < wetter <= emc

    def test_longer_step_dries_more(self, any_config):
        one = any_config.drying_step(35.0, 30.0, 5000.0, 20.0, 10.0, 1.0)
        six = any_config.drying_step(35.0, 30.0, 5000.0, 20.0, 10.0, 6.0)
        assert six < one

    def test_v2023_single_step(self, v2023_config):
        """A dry summer hour lowers 40 % moisture slightly."""
        result = v2023_config.drying_step(40.0, 30.0, 0.0, 30.0, 30.0, 1.0)
        assert 38.0 < result < 40.0

    def test_never_negative(self, any_config):
        assert any_config.drying_step(0.0, 60.0, 100000.0, 0.0, 1.0, 72.0) >= 0.0


class TestWetting:
    """Tests for the rain formula."""

    def test_bounded_by_saturation(self, any_config):
        assert any_config.wetting_step(10.0, 10.0, 40.0) <= 40.0

    def test_more_rain_wets_more(self, any_config):
        low = any_config.wetting_step(1.0, 10.0, 40.0)
        high = any_config.wetting_step(10.0, 10.0, 40.0)
        assert 10.0 < low < high

    def test_saturating_rain(self, any_config):
        assert any_config.wetting_step(60.0, 5.0, 40.0) == 40.0

    def test_already_saturated(self, any_config):
        assert any_config.wetting_step(1.0, 40.0, 40.0) == 40.0


class TestRateOfSpread:
    """Tests for the rate of spread formulas."""

    def test_legacy_calm_flat_dry(self, legacy_config):
        """Without wind, slope and moisture effects the base rate is returned."""
        ros, w = legacy_config.rate_of_spread(120.0, 0.5, 0.0, 0.0, 0.0, 0.0, NODATA, NODATA)
        assert w == 1.0
        assert ros == pytest.approx(120.0)

    def test_legacy_moisture_effect(self, legacy_config):
        ros, _ = legacy_config.rate_of_spread(120.0, 0.5, 0.0, 20.0, 0.0, 0.0, NODATA, NODATA)
        assert ros == pytest.approx(120.0 * math.exp(-1.0))

    def test_v2023_calm_flat_dry(self, v2023_config):
        ros, w = v2023_config.rate_of_spread(120.0, 0.5, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        assert w == pytest.approx(1.0)
        assert ros == pytest.approx(120.0)

    def test_v2023_extinction_moisture(self, v2023_config):
        ros, _ = v2023_config.rate_of_spread(120.0, 0.5, 0.0, 30.0, 0.0, 0.0, 0.0, 0.0)
        assert ros == pytest.approx(0.0, abs=1e-9)

    def test_v2025_missing_wind(self):
        config = ModelConfig.new("v2025")
        ros, w = config.rate_of_spread(120.0, 0.5, 0.0, 10.0, 0.0, 0.0, NODATA, 0.0)
        assert ros == 0.0
        assert w == NODATA

    def test_v2025_very_dry_fuel_exceeds_base_rate(self):
        config = ModelConfig.new("v2025")
        ros, _ = config.rate_of_spread(120.0, 0.5, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        assert ros == pytest.approx(120.0 * (1.0 + 1.0 / (1.0 + math.exp(-4.0))))

    def test_wind_increases_spread(self, any_config):
        calm, _ = any_config.rate_of_spread(120.0, 0.5, 0.0, 5.0, 0.0, 0.0, 0.0, 0.0)
        windy, w = any_config.rate_of_spread(120.0, 0.5, 0.0, 5.0, 0.0, 0.0, 30000.0, 0.0)
        assert windy > calm
        assert w > 1.0

    def test_snow_stops_spread(self, any_config):
        ros, _ = any_config.rate_of_spread(120.0, 0.5, 1.0, 5.0, 0.0, 0.0, 10000.0, 0.0)
        assert ros == 0.0

    def test_non_fuel_stops_spread(self, any_config):
        ros, _ = any_config.rate_of_spread(120.0, 0.5, 0.0, NODATA, 0.0, 0.0, 10000.0, 0.0)
        assert ros == 0.0

    def test_t_effect_scales_spread(self, any_config):
        base, _ = any_config.rate_of_spread(120.0, 0.5, 0.0, 5.0, 0.0, 0.0, 10000.0, 0.0)
        hot, _ = any_config.rate_of_spread(120.0, 0.5, 0.0, 5.0, 0.0, 0.0, 10000.0, 0.0,
                                           t_effect=1.5)
        assert hot == pytest.approx(1.5 * base)

    @pytest.mark.parametrize("slope", [0.0, 0.4])
    def test_legacy_extreme_wind_not_negative(self, legacy_config, slope):
        """Wind beyond the decay limit gives no spread instead of a negative one."""
        ros, w = legacy_config.rate_of_spread(120.0, 0.5, 0.0, 5.0, slope, 0.0,
                                              300000.0, 0.0)
        assert w == 0.0
        assert ros == 0.0


class TestMeteoIndex:
    """Tests for the danger class lookup."""

    def test_legacy_corners(self, legacy_config):
        assert legacy_config.meteo_index(3.0, 1.0) == 4.0
        assert legacy_config.meteo_index(45.0, 1.0) == 1.0
        assert legacy_config.meteo_index(3.0, 3.0) == 5.0
        assert legacy_config.meteo_index(45.0, 3.0) == 2.0

    def test_drier_is_not_safer(self, any_config):
        classes = [any_config.meteo_index(d, 2.0) for d in (2.0, 8.0, 14.0, 22.0, 35.0, 50.0)]
        assert classes == sorted(classes, reverse=True)

    def test_missing_values(self, any_config):
        assert any_config.meteo_index(NODATA, 2.0) == NODATA
        assert any_config.meteo_index(10.0, 0.5) == NODATA
