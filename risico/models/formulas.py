"""Per-cell physical formulas of the RISICO model.

The module has two kinds of functions:

* Formulas shared by every variant (seasonal ignition probability, low
  heating values, fire intensity, temperature effect). These are plain
  JIT-compiled functions.
* Factories (``make_*``) that take a frozen coefficient dataclass and return
  a JIT-compiled function with the coefficients baked in. A model variant is
  a choice of factories plus default coefficients (see ``risico.models.config``).

Every returned function works on scalars so the partition kernels can call
it once per cell.

Units follow the input conventions: temperature degC, humidity %, rain mm,
wind speed m/h, angles in radians, moisture in %.

References:
    - Fiorucci, P. et al. (2008). Dynamic fire danger mapping from satellite
      imagery and meteorological forecast data. Earth Interactions 12(14).
    - Van Wagner, C. E. (1987). Development and structure of the Canadian
      Forest Fire Weather Index System. Forestry Technical Report 35.
    - Rothermel, R. C. (1972). A mathematical model for predicting fire
      spread in wildland fuels. USDA Forest Service Research Paper INT-115.
"""

import math

from risico.exceptions import ConfigError
from risico.models.constants import NODATA, Q
from risico.utilities.numba_utils import njit_if_enabled


# =============================================================================
# Shared formulas
# =============================================================================

# Day-of-year bounds of the seasonal PPF blend
MARCH_31 = 89
MAY_31 = 150
SEPTEMBER_30 = 272
NOVEMBER_30 = 334


@njit_if_enabled(cache=True)
def get_ppf(day_number, ppf_summer, ppf_winter):
    """Ignition probability factor for a day of the year.

    Winter value until March 31st, linear blend to the summer value through
    April and May, summer value June to September, blend back to winter
    through October and November.

    Args:
        day_number (int): Day of the year, 1 to 366.
        ppf_summer (float): Summer factor of the cell.
        ppf_winter (float): Winter factor of the cell.

    Returns:
        float: The factor, 0 when either seasonal factor is negative.
    """
    if ppf_summer < 0.0 or ppf_winter < 0.0:
        return 0.0

    if day_number <= MARCH_31:
        return ppf_winter
    if day_number <= MAY_31:
        val = (day_number - (MARCH_31 + 1)) / (MAY_31 - MARCH_31)
        return val * ppf_summer + (1.0 - val) * ppf_winter
    if day_number <= SEPTEMBER_30:
        return ppf_summer
    if day_number <= NOVEMBER_30:
        val = 1.0 - (day_number - (SEPTEMBER_30 + 1)) / (NOVEMBER_30 - SEPTEMBER_30)
        return val * ppf_summer + (1.0 - val) * ppf_winter
    return ppf_winter


@njit_if_enabled(cache=True)
def get_lhv_dff(hhv, dffm):
    """Low heating value of the dead fine fuel (kJ/kg)."""
    return hhv * (1.0 - (dffm / 100.0)) - Q * (dffm / 100.0)


@njit_if_enabled(cache=True)
def get_lhv_l1(humidity, msi, hhv):
    """Low heating value of the live fuel (kJ/kg).

    A valid moisture stress index lowers the live fuel moisture, never below
    20 %. Returns 0 when the live fuel moisture is unknown.
    """
    if humidity == NODATA:
        return 0.0

    if 0.0 <= msi <= 1.0:
        l1_msi = max(20.0, humidity - (20.0 * msi))
        return hhv * (1.0 - (l1_msi / 100.0)) - Q * (l1_msi / 100.0)

    return hhv * (1.0 - (humidity / 100.0)) - Q * (humidity / 100.0)


@njit_if_enabled(cache=True)
def get_intensity(d0, d1, v, relative_greenness, lhv_dff, lhv_l1):
    """Fire line intensity (kW/m) from fuel loads and spread rate (m/h)."""
    if d1 == NODATA:
        d1 = 0.0
    if d0 == NODATA:
        d0 = 0.0

    if relative_greenness >= 0.0:
        if d1 == 0.0:
            return v * (lhv_dff * d0 * (1.0 - relative_greenness)) / 3600.0
        return v * (lhv_dff * d0 + lhv_l1 * (d1 * (1.0 - relative_greenness))) / 3600.0

    return v * (lhv_dff * d0 + lhv_l1 * d1) / 3600.0


@njit_if_enabled(cache=True)
def get_t_effect(temperature):
    """Temperature amplification of the spread rate."""
    if temperature <= 0.0:
        return 1.0
    return math.exp(temperature * 0.0171)


# =============================================================================
# Moisture dynamics
# =============================================================================

def make_drying_legacy(c):
    """Exponential relaxation towards the equilibrium moisture (RISICO 2015).

    The time constant shrinks with temperature and wind:
    ``K = T0 / (1 + a6 T^b1 + a7 W^b2)``.

    Args:
        c (LegacyDryingCoefficients): Coefficient set.

    Returns:
        Callable[[dffm, T, W, H, T0, dT], float]
    """
    a1, a2, a3, a4, a5 = c.a1, c.a2, c.a3, c.a4, c.a5
    a6, a7, b1, b2 = c.a6, c.a7, c.b1, c.b2
    t_ref = c.t_ref

    @njit_if_enabled(nogil=True)
    def drying(dffm, T, W, H, T0, dT):
        emc = (a1 * H ** a2
               + a3 * math.exp((H - 100.0) / 10.0)
               + a4 * (t_ref - min(T, t_ref)) * (1.0 - math.exp(-a5 * H)))
        k1 = T0 / (1.0 + a6 * T ** b1 + a7 * W ** b2)
        if k1 <= 0.0:
            new_dffm = emc
        else:
            new_dffm = emc + (dffm - emc) * math.exp(-dT / k1)
        return max(new_dffm, 0.0)

    return drying


def make_drying_v2023(c):
    """Asymmetric drying/wetting towards the equilibrium moisture (RISICO 2023).

    Separate time constants apply when the fuel is wetter (drying) or drier
    (adsorption) than the equilibrium. Both are normalized so that they
    equal ``T0`` at the standard conditions ``t_std``, ``w_std``, ``h_std``.
    Wind enters in m/s.

    Args:
        c (DryingCoefficients2023): Coefficient set.

    Returns:
        Callable[[dffm, T, W, H, T0, dT], float]
    """
    a1, a2, a3, a4, a5 = c.a1, c.a2, c.a3, c.a4, c.a5
    t_ref = c.t_ref
    b1_d, c1_d, b2_d, c2_d, b3_d, c3_d = c.b1_d, c.c1_d, c.b2_d, c.c2_d, c.b3_d, c.c3_d
    b1_w, c1_w, b2_w, c2_w, b3_w, c3_w = c.b1_w, c.c1_w, c.b2_w, c.c2_w, c.b3_w, c.c3_w
    t_std, w_std, h_std = c.t_std, c.w_std, c.h_std

    d_dry = ((1.0 + b1_d * t_std ** c1_d + b2_d * w_std ** c2_d)
             / (1.0 + b3_d * h_std ** c3_d))
    d_wet = ((1.0 + b3_w * h_std ** c3_w)
             / (1.0 + b1_w * t_std ** c1_w + b2_w * w_std ** c2_w))

    @njit_if_enabled(nogil=True)
    def drying(dffm, T, W, H, T0, dT):
        W = W / 3600.0

        emc = (a1 * H ** a2
               + a3 * math.exp((H - 100.0) / 10.0)
               + a4 * (t_ref - min(T, t_ref)) * (1.0 - math.exp(-a5 * H)))

        if dffm >= emc:
            k = T0 * d_dry * ((1.0 + b3_d * H ** c3_d)
                              / (1.0 + b1_d * T ** c1_d + b2_d * W ** c2_d))
        else:
            k = T0 * d_wet * ((1.0 + b1_w * T ** c1_w + b2_w * W ** c2_w)
                              / (1.0 + b3_w * H ** c3_w))

        if k <= 0.0:
            return max(emc, 0.0)

        # singular at 100 %
        dffm = min(dffm, 99.9)
        g = (emc - dffm) / (100.0 - dffm)
        e = math.exp(-dT / k)
        new_dffm = (emc - 100.0 * g * e) / (1.0 - g * e)
        return max(new_dffm, 0.0)

    return drying


def make_wetting(c):
    """Rain uptake of the dead fine fuel.

    Uptake grows with rain and shrinks as moisture approaches saturation;
    the result never exceeds ``sat``. Rain at or above ``saturating_rain``
    saturates the fuel outright.

    Args:
        c (WettingCoefficients): Coefficient set.

    Returns:
        Callable[[r, dffm, sat], float]
    """
    r1, r2, r3 = c.r1, c.r2, c.r3
    saturating_rain = c.saturating_rain

    @njit_if_enabled(nogil=True)
    def wetting(r, dffm, sat):
        if r >= saturating_rain or dffm >= sat:
            return sat
        delta_dffm = r * r1 * math.exp(-r2 / ((sat + 1.0) - dffm)) * (1.0 - math.exp(-r3 / r))
        return min(dffm + delta_dffm, sat)

    return wetting


# =============================================================================
# Rate of spread
# =============================================================================

def make_ros_legacy(c):
    """Rate of spread with the RISICO 2015 wind, slope and moisture effects.

    Args:
        c (LegacySpreadCoefficients): Coefficient set.

    Returns:
        Callable[[v0, d0, snow_cover, dffm, slope, aspect, wind_speed,
        wind_dir, t_effect], Tuple[float, float]] returning the spread rate
        (m/h) and the wind effect.
    """
    delta1, delta2, delta3, delta4, delta5 = c.delta1, c.delta2, c.delta3, c.delta4, c.delta5
    qepsix2 = c.qepsix2
    slope_lambda = c.slope_lambda
    moisture_scale = c.moisture_scale
    half_pi = math.pi / 2.0

    @njit_if_enabled(nogil=True)
    def wind_effect(wind_speed, wind_dir, slope, aspect):
        if wind_speed == NODATA or wind_dir == NODATA:
            return 1.0
        # the decay factor vanishes at delta5 and stays there for stronger wind
        ws = ((1.0 + delta1 * (delta2 + math.tanh((wind_speed / delta3) - delta4)))
              * max(0.0, 1.0 - (wind_speed / delta5)))
        eta = wind_dir - aspect
        n = 1.0 + (slope / half_pi) * (ws - 1.0) * math.exp(-((eta - math.pi) ** 2) / qepsix2)
        if n < 1.0:
            n = 1.0
        return ws / n

    @njit_if_enabled(nogil=True)
    def ros(v0, d0, snow_cover, dffm, slope, aspect, wind_speed, wind_dir, t_effect):
        w_effect = wind_effect(wind_speed, wind_dir, slope, aspect)
        if snow_cover > 0.0 or d0 == NODATA or dffm == NODATA:
            return 0.0, w_effect

        moist_effect = math.exp(-1.0 * (dffm / moisture_scale) ** 2)
        s_effect = 1.0 + slope_lambda * (slope / half_pi)
        return v0 * moist_effect * w_effect * s_effect * t_effect, w_effect

    return ros


def _make_wind_slope_effect(c):
    """Maximum over spread directions of the combined wind and slope effect."""
    d1, d2, d3, d4, d5 = c.d1, c.d2, c.d3, c.d4, c.d5
    n_angles = c.n_angles
    if n_angles < 2:
        raise ConfigError("n_angles must be at least 2", parameter="n_angles")
    max_a = c.max_eccentricity
    a_const = 1.0 - (d1 * (d2 * math.tanh((0.0 / d3) - d4)) + (0.0 / d5))
    two_pi = 2.0 * math.pi

    @njit_if_enabled(nogil=True)
    def wind_slope_effect(slope, aspect, wind_speed, wind_dir):
        # m/h to km/h
        ws_kph = wind_speed * 0.001
        w_eff_mod = a_const + (d1 * (d2 * math.tanh((ws_kph / d3) - d4))) + (ws_kph / d5)
        a = (w_eff_mod - 1.0) / 4.0
        if a > max_a:
            a = max_a

        best = 0.0
        for k in range(n_angles):
            angle = two_pi * k / (n_angles - 1)
            theta = wind_dir - angle
            theta_norm = (theta + math.pi) % two_pi - math.pi
            w_eff = (a + 1.0) * (1.0 - a ** 2) / (1.0 - a * math.cos(theta_norm))

            s = math.atan(math.cos(aspect - angle) * math.tan(slope))
            h_eff = 2.0 ** math.tanh((s * 3.0) ** 2 * math.copysign(1.0, s))

            wh = w_eff * h_eff
            if k == 0 or wh > best:
                best = wh
        return best

    return wind_slope_effect


def make_ros_v2023(c):
    """Rate of spread with the RISICO 2023 directional wind/slope effect.

    The moisture effect is a polynomial of moisture over the extinction
    moisture ``mx``, clipped to [0, 1]. Missing wind is taken as calm.

    Args:
        c (SpreadCoefficients2023): Coefficient set.
    """
    m0, m1, m2, m3, m4, m5 = c.m0, c.m1, c.m2, c.m3, c.m4, c.m5
    mx = c.mx
    wind_slope_effect = _make_wind_slope_effect(c)

    @njit_if_enabled(nogil=True)
    def ros(v0, d0, snow_cover, dffm, slope, aspect, wind_speed, wind_dir, t_effect):
        if wind_speed == NODATA:
            wind_speed = 0.0
        if wind_dir == NODATA:
            wind_dir = 0.0
        w_s_eff = wind_slope_effect(slope, aspect, wind_speed, wind_dir)
        if snow_cover > 0.0 or d0 == NODATA or dffm == NODATA:
            return 0.0, w_s_eff

        x = (dffm / 100.0) / mx
        moist_coeff = m5 * x ** 5 + m4 * x ** 4 + m3 * x ** 3 + m2 * x ** 2 + m1 * x + m0
        moist_coeff = min(max(moist_coeff, 0.0), 1.0)
        return v0 * moist_coeff * w_s_eff * t_effect, w_s_eff

    return ros


def make_ros_v2025(c):
    """Rate of spread with the 2025 moisture effect.

    Very dry fuel can exceed the base rate (effect up to ``x0``); a logistic
    decay centred on ``a`` takes over for wetter fuel. Missing wind yields
    no spread and a NODATA wind effect.

    Args:
        c (SpreadCoefficients2025): Coefficient set.
    """
    x0, f, a, b, d = c.x0, c.f, c.a, c.b, c.d
    wind_slope_effect = _make_wind_slope_effect(c)

    @njit_if_enabled(nogil=True)
    def ros(v0, d0, snow_cover, dffm, slope, aspect, wind_speed, wind_dir, t_effect):
        if wind_speed == NODATA or wind_dir == NODATA:
            return 0.0, NODATA
        w_s_eff = wind_slope_effect(slope, aspect, wind_speed, wind_dir)
        if snow_cover > 0.0 or d0 == NODATA or dffm == NODATA:
            return 0.0, w_s_eff

        x = dffm / 100.0
        moist_eff = (x0 - d) * math.exp(-f * x) + d / (1.0 + math.exp(b * (x - a)))
        moist_eff = min(max(moist_eff, 0.0), x0)
        return v0 * moist_eff * w_s_eff * t_effect, w_s_eff

    return ros


# =============================================================================
# Meteorological danger index
# =============================================================================

def make_meteo_index(table):
    """Danger class lookup from moisture class and wind effect class.

    Columns are moisture classes (driest first) bounded above by
    ``table.dffm_edges``; rows are wind effect classes bounded above by
    ``table.wind_edges``. Values beyond the last edge fall in the last class.

    Args:
        table (MeteoIndexTable): Class edges and the row-major class table.

    Returns:
        Callable[[dffm, w_effect], float]
    """
    dffm_edges = table.dffm_edges
    wind_edges = table.wind_edges
    values = table.values
    n_cols = len(dffm_edges) + 1
    n_dffm_edges = len(dffm_edges)
    n_wind_edges = len(wind_edges)

    @njit_if_enabled(nogil=True)
    def meteo_index(dffm, w_effect):
        if dffm <= NODATA or w_effect < 1.0 or w_effect == NODATA:
            return NODATA

        col = n_dffm_edges
        for k in range(n_dffm_edges):
            if dffm <= dffm_edges[k]:
                col = k
                break

        row = n_wind_edges
        for k in range(n_wind_edges):
            if w_effect <= wind_edges[k]:
                row = k
                break

        return values[col + row * n_cols]

    return meteo_index
