"""Partition kernels of the update engine.

Each kernel processes the half-open cell range ``[start, stop)`` of
column arrays and writes only into that range, so disjoint ranges can run
on separate threads. Kernels are compiled in nopython mode with the GIL
released and are built once per :class:`~risico.models.config.FormulaSet`.
"""

from dataclasses import dataclass
from functools import lru_cache
import math
from typing import Callable

from risico.models.constants import (
    MSI_TTL_STEPS,
    NODATA,
    SATELLITE_DATA_SECONDS_VALIDITY,
    SNOW_COVER_THRESHOLD,
    SNOW_SECONDS_VALIDITY,
)
from risico.models.formulas import (
    get_intensity,
    get_lhv_dff,
    get_lhv_l1,
    get_ppf,
    get_t_effect,
)
from risico.utilities.numba_utils import njit_if_enabled

# Row layout of the output matrix written by the output kernel
OUTPUT_ROWS = (
    "dffm", "W", "V", "I", "contrT", "NDVI", "NDWI", "meteoIndex", "PPF",
    "temperature", "rain", "windSpeed", "windDir", "humidity", "snowCover",
)
ROW = {name: k for k, name in enumerate(OUTPUT_ROWS)}

_DFFM, _W, _V, _I, _CONTR_T, _NDVI, _NDWI, _METEO, _PPF = range(9)
_TEMP, _RAIN, _WSPEED, _WDIR, _HUM, _SNOW = range(9, 15)


@dataclass(frozen=True)
class Kernels:
    update: Callable
    output: Callable


@njit_if_enabled(cache=True, nogil=True)
def _update_satellite(start, stop, time_s, ndvi_in, ndwi_in, msi_in,
                      msi, msi_ttl, ndvi, ndvi_time, ndwi, ndwi_time):
    for i in range(start, stop):
        if time_s - ndvi_time[i] > SATELLITE_DATA_SECONDS_VALIDITY:
            ndvi[i] = NODATA
        if ndvi_in[i] != NODATA:
            if 0.0 <= ndvi_in[i] <= 1.0:
                ndvi[i] = ndvi_in[i]
            else:
                ndvi[i] = NODATA
            ndvi_time[i] = time_s

        if time_s - ndwi_time[i] > SATELLITE_DATA_SECONDS_VALIDITY:
            ndwi[i] = NODATA
        if ndwi_in[i] != NODATA:
            if 0.0 <= ndwi_in[i] <= 1.0:
                ndwi[i] = ndwi_in[i]
            else:
                ndwi[i] = NODATA
            ndwi_time[i] = time_s

        if 0.0 <= msi_in[i] <= 1.0:
            msi[i] = msi_in[i]
            msi_ttl[i] = MSI_TTL_STEPS
        elif msi_ttl[i] > 0.0:
            msi_ttl[i] -= 1.0
        else:
            msi[i] = NODATA


@njit_if_enabled(cache=True, nogil=True)
def _update_snow(start, stop, time_s, snow_in, snow_cover, snow_cover_time):
    for i in range(start, stop):
        if snow_in[i] == NODATA:
            if time_s - snow_cover_time[i] > SNOW_SECONDS_VALIDITY:
                snow_cover[i] = NODATA
        else:
            snow_cover[i] = snow_in[i]
            snow_cover_time[i] = time_s


def _make_update_kernel(formulas):
    drying = formulas.drying
    wetting = formulas.wetting
    rain_threshold = formulas.rain_threshold

    @njit_if_enabled(nogil=True)
    def update_moisture(start, stop, dt, integrate, veg_index, veg_d0, veg_sat, veg_T0,
                        temperature, humidity, wind_speed, rain, snow_cover, dffm):
        for i in range(start, stop):
            v = veg_index[i]
            d0 = veg_d0[v]
            sat = veg_sat[v]

            if d0 <= 0.0:
                dffm[i] = NODATA
                continue
            if not integrate:
                continue
            if snow_cover[i] > SNOW_COVER_THRESHOLD:
                dffm[i] = sat
                continue

            temp = temperature[i]
            hum = humidity[i]
            if temp == NODATA or hum == NODATA:
                continue

            t = max(temp, 0.0)
            h = min(hum, 100.0)
            w = wind_speed[i] if wind_speed[i] != NODATA else 0.0
            r = rain[i] if rain[i] != NODATA else 0.0

            # missing moisture restarts from saturation
            value = dffm[i] if dffm[i] != NODATA else sat

            if r > rain_threshold:
                value = wetting(r, value, sat)
            else:
                value = drying(value, t, w, h, veg_T0[v], dt)

            dffm[i] = max(0.0, min(sat, value))

    def update(start, stop, time_s, dt, integrate, veg_index, veg_d0, veg_sat, veg_T0,
               temperature, humidity, wind_speed, rain, snow_in, ndvi_in, ndwi_in, msi_in,
               dffm, snow_cover, snow_cover_time, msi, msi_ttl, ndvi, ndvi_time,
               ndwi, ndwi_time):
        _update_satellite(start, stop, time_s, ndvi_in, ndwi_in, msi_in,
                          msi, msi_ttl, ndvi, ndvi_time, ndwi, ndwi_time)
        _update_snow(start, stop, time_s, snow_in, snow_cover, snow_cover_time)
        update_moisture(start, stop, dt, integrate, veg_index, veg_d0, veg_sat, veg_T0,
                        temperature, humidity, wind_speed, rain, snow_cover, dffm)

    return update


def _make_output_kernel(formulas):
    ros_fn = formulas.ros
    meteo_index_fn = formulas.meteo_index

    @njit_if_enabled(nogil=True)
    def output(start, stop, day_number, use_t_effect,
               veg_index, veg_d0, veg_d1, veg_hhv, veg_umid, veg_v0, veg_use_ndvi,
               slopes, aspects, ppf_summer, ppf_winter,
               temperature, humidity, wind_speed, wind_dir, rain,
               dffm, snow_cover, msi, ndvi, ndwi, out):
        for i in range(start, stop):
            v = veg_index[i]
            d0 = veg_d0[v]
            d1 = veg_d1[v]
            hhv = veg_hhv[v]

            if veg_use_ndvi[v] and ndvi[i] != NODATA:
                ndvi_factor = min(max(1.0 - ndvi[i], 0.0), 1.0)
            else:
                ndvi_factor = 1.0

            if ndwi[i] != NODATA:
                ndwi_factor = min(max(1.0 - ndwi[i], 0.0), 1.0)
            else:
                ndwi_factor = 1.0

            t_effect = get_t_effect(temperature[i]) if use_t_effect else 1.0

            ros, w_effect = ros_fn(veg_v0[v], d0, snow_cover[i], dffm[i], slopes[i],
                                   aspects[i], wind_speed[i], wind_dir[i], t_effect)

            if ros != NODATA and hhv != NODATA:
                lhv_dff = get_lhv_dff(hhv, dffm[i])
                lhv_l1 = get_lhv_l1(veg_umid[v], msi[i], hhv)
                intensity = get_intensity(d0, d1, ros, ndvi[i], lhv_dff, lhv_l1)
            else:
                intensity = NODATA

            out[_DFFM, i] = dffm[i]
            out[_W, i] = w_effect
            out[_V, i] = ros
            out[_I, i] = intensity
            out[_CONTR_T, i] = t_effect
            out[_NDVI, i] = ndvi_factor
            out[_NDWI, i] = ndwi_factor
            out[_METEO, i] = meteo_index_fn(dffm[i], w_effect)
            out[_PPF, i] = get_ppf(day_number, ppf_summer[i], ppf_winter[i])
            out[_TEMP, i] = temperature[i]
            out[_RAIN, i] = rain[i]
            out[_WSPEED, i] = wind_speed[i] / 3600.0 if wind_speed[i] != NODATA else NODATA
            out[_WDIR, i] = math.degrees(wind_dir[i]) if wind_dir[i] != NODATA else NODATA
            out[_HUM, i] = humidity[i]
            out[_SNOW, i] = snow_cover[i]

    return output


@lru_cache(maxsize=None)
def build_kernels(formulas) -> Kernels:
    """Compile the update and output kernels for a set of formulas."""
    return Kernels(update=_make_update_kernel(formulas),
                   output=_make_output_kernel(formulas))
