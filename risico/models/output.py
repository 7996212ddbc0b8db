"""Named per-cell output variables of one model time.

An ``Output`` is produced fresh by :meth:`risico.models.state.State.output`
and owned by the caller. Its arrays are read-only and aligned by index
with ``Properties``.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from risico.models.constants import NODATA


class OutputVariableName(str, Enum):
    """Output variables with their long names and units."""

    def __new__(cls, value, long_name, units):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.long_name = long_name
        obj.units = units
        return obj

    dffm = ("dffm", "Dead Fine Fuel Moisture", "%")
    W = ("W", "Wind Effect on fire spread", "-")
    V = ("V", "Rate of Spread", "m/h")
    I = ("I", "Fire Intensity", "kW/m")  # noqa: E741
    contrT = ("contrT", "Temperature Effect on fire spread", "-")
    NDVI = ("NDVI", "NDVI effect", "-")
    NDWI = ("NDWI", "NDWI effect", "-")
    meteoIndex2 = ("meteoIndex2", "Meteorological Index", "-")
    PPF = ("PPF", "Ignition Probability Factor", "-")

    temperature = ("temperature", "Air Temperature", "°C")
    rain = ("rain", "Precipitation", "mm")
    windSpeed = ("windSpeed", "Wind Speed", "m/s")
    windDir = ("windDir", "Wind Direction", "°")
    humidity = ("humidity", "Relative Humidity", "%")
    snowCover = ("snowCover", "Snow Cover", "-")

    VPPF = ("VPPF", "Rate of Spread * PPF", "m/h")
    IPPF = ("IPPF", "Fire Intensity * PPF", "kW/m")
    INDWI = ("INDWI", "Fire Intensity * NDWI effect", "kW/m")
    VNDWI = ("VNDWI", "Rate of Spread * NDWI effect", "m/h")
    INDVI = ("INDVI", "Fire Intensity * NDVI effect", "kW/m")
    VNDVI = ("VNDVI", "Rate of Spread * NDVI effect", "m/h")
    VPPFNDWI = ("VPPFNDWI", "Rate of Spread * PPF * NDWI effect", "m/h")
    IPPFNDWI = ("IPPFNDWI", "Fire Intensity * PPF * NDWI effect", "kW/m")
    VPPFNDVI = ("VPPFNDVI", "Rate of Spread * PPF * NDVI effect", "m/h")
    IPPFNDVI = ("IPPFNDVI", "Fire Intensity * PPF * NDVI effect", "kW/m")

    @classmethod
    def parse(cls, name) -> Optional['OutputVariableName']:
        """Resolve a name case-insensitively; ``None`` when unknown."""
        if isinstance(name, cls):
            return name
        key = str(name).lower()
        if key == "meteoindex":
            return cls.meteoIndex2
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


# Derived variable -> (base, factor, optional second factor)
DERIVED = {
    OutputVariableName.VPPF: ("V", "PPF", None),
    OutputVariableName.IPPF: ("I", "PPF", None),
    OutputVariableName.INDWI: ("I", "NDWI", None),
    OutputVariableName.VNDWI: ("V", "NDWI", None),
    OutputVariableName.INDVI: ("I", "NDVI", None),
    OutputVariableName.VNDVI: ("V", "NDVI", None),
    OutputVariableName.VPPFNDWI: ("V", "NDWI", "PPF"),
    OutputVariableName.IPPFNDWI: ("I", "NDWI", "PPF"),
    OutputVariableName.VPPFNDVI: ("V", "NDVI", "PPF"),
    OutputVariableName.IPPFNDVI: ("I", "NDVI", "PPF"),
}

# Kernel row name -> variable name
_BASE_NAMES = {"meteoIndex": OutputVariableName.meteoIndex2}


def get_derived(a: np.ndarray, b: np.ndarray, c: Optional[np.ndarray] = None) -> np.ndarray:
    """Product of ``a`` with the factors that are not NODATA.

    Cells where ``a`` is NODATA stay NODATA.
    """
    result = np.where(b != NODATA, a * b, a)
    if c is not None:
        result = np.where(c != NODATA, result * c, result)
    return np.where(a == NODATA, NODATA, result)


class Output:
    """Immutable mapping of output variable names to per-cell arrays.

    Args:
        time (datetime): Model time the values refer to.
        values (Dict[str, np.ndarray]): Base variables keyed by name, as
            produced by the output kernel. Derived products are added here.
    """

    def __init__(self, time: datetime, values: Dict[str, np.ndarray]):
        self.time = time
        data: Dict[OutputVariableName, np.ndarray] = {}
        for name, arr in values.items():
            key = _BASE_NAMES.get(name) or OutputVariableName.parse(name)
            if key is None:
                raise KeyError(f"unknown output variable {name}")
            data[key] = np.asarray(arr, dtype=np.float64)

        for name, (a, b, c) in DERIVED.items():
            base = data.get(OutputVariableName(a))
            factor = data.get(OutputVariableName(b))
            if base is None or factor is None:
                continue
            second = data.get(OutputVariableName(c)) if c is not None else None
            data[name] = get_derived(base, factor, second)

        for arr in data.values():
            arr.flags.writeable = False
        self._data = data

    def get(self, name: Union[str, OutputVariableName]) -> Optional[np.ndarray]:
        """Values of a variable, or ``None`` when the variable is not available."""
        key = OutputVariableName.parse(name)
        if key is None:
            return None
        return self._data.get(key)

    def variables(self) -> List[OutputVariableName]:
        return list(self._data)

    def __contains__(self, name) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        first = next(iter(self._data.values()), None)
        return 0 if first is None else len(first)
