from dataclasses import dataclass, asdict

import numpy as np

from risico.models.constants import NODATA


@dataclass
class CycleLogEntry:
    """Summary of one output variable at one model time."""
    timestamp: str
    phase: str
    variable: str
    n_cells: int
    n_valid: int
    min: float
    mean: float
    max: float

    def to_dict(self):
        return asdict(self)

    @classmethod
    def summarize(cls, timestamp: str, phase: str, variable: str,
                  values: np.ndarray) -> 'CycleLogEntry':
        valid = values[values != NODATA]
        if len(valid) == 0:
            return cls(timestamp, phase, variable, len(values), 0,
                       float('nan'), float('nan'), float('nan'))
        return cls(timestamp, phase, variable, len(values), len(valid),
                   float(valid.min()), float(valid.mean()), float(valid.max()))
