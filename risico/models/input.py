"""Meteorological input batches for one time step.

An ``Input`` carries one observation per cell, aligned by index with
``Properties``, and the time of the observations. Missing values are
encoded with ``NODATA``. Internally the batch is a set of float64 columns,
which is also the cheapest way for format readers to hand data over
(``Input.from_arrays``).
"""

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from risico.exceptions import ValidationError
from risico.models.constants import (
    HUMIDITY_RANGE,
    NODATA,
    RAIN_MIN,
    SNOW_COVER_MIN,
    TEMPERATURE_RANGE,
    WIND_SPEED_MIN,
)


@dataclass
class InputElement:
    """Observation for one cell.

    Attributes:
        temperature (float): Air temperature (degC).
        rain (float): Precipitation accumulated over the step (mm).
        wind_speed (float): Wind speed (m/h).
        wind_dir (float): Wind direction (rad).
        humidity (float): Relative humidity (%).
        snow_cover (float): Snow cover.
        ndvi (float): Normalized difference vegetation index [0, 1].
        ndwi (float): Normalized difference water index [0, 1].
        msi (float): Moisture stress index [0, 1].
    """
    temperature: float = NODATA
    rain: float = NODATA
    wind_speed: float = NODATA
    wind_dir: float = NODATA
    humidity: float = NODATA
    snow_cover: float = NODATA
    ndvi: float = NODATA
    ndwi: float = NODATA
    msi: float = NODATA


INPUT_FIELDS = tuple(f.name for f in fields(InputElement))

# Physical domain (lower, upper) of the drivers; None means unbounded
INPUT_DOMAIN = {
    "temperature": TEMPERATURE_RANGE,
    "humidity": HUMIDITY_RANGE,
    "rain": (RAIN_MIN, None),
    "wind_speed": (WIND_SPEED_MIN, None),
    "snow_cover": (SNOW_COVER_MIN, None),
}


def as_utc(time: datetime) -> datetime:
    """Return ``time`` as an aware UTC datetime; naive values are taken as UTC."""
    if time.tzinfo is None:
        return time.replace(tzinfo=timezone.utc)
    return time.astimezone(timezone.utc)


class Input:
    """Grid-aligned batch of observations with its timestamp.

    Args:
        time (datetime): Observation time. Naive datetimes are read as UTC.
        data (Sequence[InputElement]): One element per cell.
    """

    def __init__(self, time: datetime, data: Sequence[InputElement]):
        self.time = as_utc(time)
        self.data = tuple(data)
        self._columns = {
            name: np.array([getattr(el, name) for el in self.data], dtype=np.float64)
            for name in INPUT_FIELDS
        }

    @classmethod
    def from_arrays(cls, time: datetime, n_cells: Optional[int] = None,
                    **columns: Sequence[float]) -> 'Input':
        """Build a batch from per-variable arrays.

        Variables not given are filled with NODATA. ``n_cells`` is required
        only when no column is given.

        Raises:
            ValidationError: For unknown variable names or columns of
                different lengths.
        """
        unknown = set(columns) - set(INPUT_FIELDS)
        if unknown:
            raise ValidationError(f"unknown input variables {sorted(unknown)}", field="input")

        lengths = {len(col) for col in columns.values()}
        if n_cells is not None:
            lengths.add(n_cells)
        if len(lengths) > 1:
            raise ValidationError("input columns have different lengths",
                                  field="input", value=sorted(lengths))
        if not lengths:
            raise ValidationError("cannot infer the number of cells", field="input")
        n = lengths.pop()

        arrays: Dict[str, np.ndarray] = {
            name: np.asarray(columns[name], dtype=np.float64) if name in columns
            else np.full(n, NODATA, dtype=np.float64)
            for name in INPUT_FIELDS
        }

        batch = cls.__new__(cls)
        batch.time = as_utc(time)
        batch._columns = arrays
        batch.data = None
        return batch

    def column(self, name: str) -> np.ndarray:
        """Float64 array of one input variable (do not modify)."""
        return self._columns[name]

    def __getitem__(self, index: int) -> InputElement:
        if self.data is None:
            return InputElement(**{name: float(col[index]) for name, col in self._columns.items()})
        return self.data[index]

    def __len__(self) -> int:
        return len(self._columns["temperature"])

    def clamped(self) -> Tuple[Dict[str, np.ndarray], Dict[str, int]]:
        """Columns with out-of-domain observations clamped into ``INPUT_DOMAIN``.

        Non-finite values (NaN, inf) of any variable become NODATA. NODATA
        cells are left untouched. The batch itself is not modified.

        Returns:
            Tuple[Dict[str, np.ndarray], Dict[str, int]]: All columns, and the
            number of clamped cells per variable (only variables with at
            least one clamped cell).
        """
        columns = dict(self._columns)
        counts: Dict[str, int] = {}
        for name in INPUT_FIELDS:
            col = columns[name]
            not_finite = ~np.isfinite(col)
            n_bad = int(np.count_nonzero(not_finite))
            if n_bad == 0:
                continue
            fixed = col.copy()
            fixed[not_finite] = NODATA
            columns[name] = fixed
            counts[name] = n_bad

        for name, (lower, upper) in INPUT_DOMAIN.items():
            col = columns[name]
            valid = col != NODATA
            out_of_range = np.zeros(len(col), dtype=bool)
            if lower is not None:
                out_of_range |= valid & (col < lower)
            if upper is not None:
                out_of_range |= valid & (col > upper)

            n_bad = int(np.count_nonzero(out_of_range))
            if n_bad == 0:
                continue
            fixed = col.copy()
            fixed[out_of_range] = np.clip(col[out_of_range], lower, upper)
            columns[name] = fixed
            counts[name] = counts.get(name, 0) + n_bad
        return columns, counts
