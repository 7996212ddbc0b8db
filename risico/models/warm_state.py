"""Per-cell model memory carried between time steps.

``WarmState`` is the record exchanged with the outside world (cold start,
warm start files). ``WarmStateStore`` holds the same fields as one numpy
column per field, which is what the update kernels read and write. Each
kernel writes only the slots of its own index range.
"""

from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Sequence

import numpy as np

from risico.models.constants import DFFM_DEFAULT


@dataclass
class WarmState:
    """Carried state of one cell.

    Attributes:
        dffm (float): Dead fine fuel moisture (%).
        snow_cover (float): Last valid snow cover.
        snow_cover_time (float): Time of the last snow observation (epoch s).
        MSI (float): Last valid moisture stress index.
        MSI_TTL (float): Update steps before MSI expires.
        NDVI (float): Last valid NDVI.
        NDVI_TIME (float): Time of the last NDVI observation (epoch s).
        NDWI (float): Last valid NDWI.
        NDWI_TIME (float): Time of the last NDWI observation (epoch s).
    """
    dffm: float = DFFM_DEFAULT
    snow_cover: float = 0.0
    snow_cover_time: float = 0.0
    MSI: float = 0.0
    MSI_TTL: float = 0.0
    NDVI: float = 0.0
    NDVI_TIME: float = 0.0
    NDWI: float = 0.0
    NDWI_TIME: float = 0.0


WARM_STATE_FIELDS = tuple(f.name for f in fields(WarmState))


class WarmStateStore:
    """Column store of ``WarmState`` for every cell.

    Args:
        columns (Dict[str, np.ndarray]): One float64 array per WarmState field,
            all of the same length. The store takes ownership of the arrays.
    """

    def __init__(self, columns: Dict[str, np.ndarray]):
        missing = set(WARM_STATE_FIELDS) - set(columns)
        if missing:
            raise ValueError(f"missing warm state columns {sorted(missing)}")
        self._columns = {name: np.ascontiguousarray(columns[name], dtype=np.float64)
                         for name in WARM_STATE_FIELDS}
        lengths = {len(col) for col in self._columns.values()}
        if len(lengths) != 1:
            raise ValueError("warm state columns have different lengths")
        self._len = lengths.pop()

    @classmethod
    def new(cls, initial_values: Sequence[WarmState]) -> 'WarmStateStore':
        """Build a store from one WarmState per cell."""
        return cls({
            name: np.array([getattr(w, name) for w in initial_values], dtype=np.float64)
            for name in WARM_STATE_FIELDS
        })

    @classmethod
    def cold_start(cls, n_cells: int, dffm: Optional[float] = None) -> 'WarmStateStore':
        """Build a store of default states, optionally with a given dffm."""
        default = WarmState() if dffm is None else WarmState(dffm=dffm)
        return cls({
            name: np.full(n_cells, getattr(default, name), dtype=np.float64)
            for name in WARM_STATE_FIELDS
        })

    def column(self, name: str) -> np.ndarray:
        return self._columns[name]

    def columns(self) -> Dict[str, np.ndarray]:
        return dict(self._columns)

    def replace(self, index: int, new_value: WarmState) -> None:
        """Overwrite the slot of one cell."""
        if not -self._len <= index < self._len:
            raise IndexError(f"cell index {index} out of range for {self._len} cells")
        for name in WARM_STATE_FIELDS:
            self._columns[name][index] = getattr(new_value, name)

    def copy(self) -> 'WarmStateStore':
        return WarmStateStore({name: col.copy() for name, col in self._columns.items()})

    def to_warm_states(self) -> List[WarmState]:
        return [self[i] for i in range(self._len)]

    def __getitem__(self, index: int) -> WarmState:
        if not -self._len <= index < self._len:
            raise IndexError(f"cell index {index} out of range for {self._len} cells")
        return WarmState(**{name: float(col[index]) for name, col in self._columns.items()})

    def __len__(self) -> int:
        return self._len
