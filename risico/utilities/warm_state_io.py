"""Warm state files.

One file per warm state time, named ``prefix + YYYYmmDDHHMM``, with one
tab-separated line per cell::

    dffm  snow_cover  snow_cover_time  MSI  MSI_TTL  NDVI  NDVI_TIME  NDWI  NDWI_TIME

Files without the two NDWI columns are accepted; NDWI is then missing.
"""

from datetime import datetime, timedelta
import os
from typing import Optional, Tuple
import warnings

import numpy as np
import pandas as pd

from risico.exceptions import ValidationError
from risico.models.constants import NODATA
from risico.models.input import as_utc
from risico.models.warm_state import WARM_STATE_FIELDS, WarmStateStore

WARM_STATE_TIME_FORMAT = "%Y%m%d%H%M"

# Days before the run date searched for a warm state file
LOOKBACK_DAYS = 3


def warm_state_path(prefix: str, time: datetime) -> str:
    return f"{prefix}{as_utc(time).strftime(WARM_STATE_TIME_FORMAT)}"


def write_warm_state(prefix: str, store: WarmStateStore, time: datetime) -> str:
    """Write the warm state of every cell and return the file path."""
    path = warm_state_path(prefix, time)
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)

    df = pd.DataFrame({name: store.column(name) for name in WARM_STATE_FIELDS})
    df.to_csv(path, sep="\t", header=False, index=False)
    return path


def load_warm_state(path: str) -> WarmStateStore:
    """Read one warm state file.

    Raises:
        ValidationError: If a line has fewer than 7 columns or a value is
            not a number.
    """
    try:
        df = pd.read_csv(path, sep=r"\s+", header=None, dtype=np.float64)
    except pd.errors.EmptyDataError:
        return WarmStateStore.cold_start(0)
    except ValueError as e:
        raise ValidationError(f"malformed warm state file {path}: {e}",
                              field="warm_state") from e

    n_cols = df.shape[1]
    if n_cols < 7 or df.iloc[:, :7].isna().any().any():
        raise ValidationError(f"warm state file {path} needs at least 7 columns",
                              field="warm_state", value=n_cols)

    columns = {name: df.iloc[:, k].to_numpy(dtype=np.float64)
               for k, name in enumerate(WARM_STATE_FIELDS[:7])}
    n = len(df)
    if n_cols >= 9:
        columns["NDWI"] = df.iloc[:, 7].fillna(NODATA).to_numpy(dtype=np.float64)
        columns["NDWI_TIME"] = df.iloc[:, 8].fillna(0.0).to_numpy(dtype=np.float64)
    else:
        columns["NDWI"] = np.full(n, NODATA)
        columns["NDWI_TIME"] = np.zeros(n)

    return WarmStateStore(columns)


def read_warm_state(prefix: str, run_date: datetime,
                    hour: int = 0) -> Optional[Tuple[WarmStateStore, datetime]]:
    """Find and read the most recent warm state before ``run_date``.

    Looks for ``run_date - k days + hour hours`` for k = 1 to 3.

    Returns:
        Optional[Tuple[WarmStateStore, datetime]]: The store and its time, or
        None (with a warning) when no file is found.
    """
    run_date = as_utc(run_date)
    for days_before in range(1, LOOKBACK_DAYS + 1):
        current = run_date - timedelta(days=days_before) + timedelta(hours=hour)
        path = warm_state_path(prefix, current)
        if os.path.exists(path):
            return load_warm_state(path), current

    warnings.warn(f"Could not find a valid warm state file for run date "
                  f"{run_date.strftime('%Y-%m-%d')}")
    return None
