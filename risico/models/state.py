"""Time-stepping engine of the RISICO model.

``State`` owns the warm state of every cell, the model configuration and
the time of the last update. Each cycle the caller runs::

    state.update(properties, input)
    output = state.output(properties, input)

``update`` advances the carried moisture and satellite/snow memory to the
input time; ``output`` derives the danger variables from the current state
without modifying it.

Cells are independent: both calls run the compiled kernels over contiguous
index partitions on a thread pool, and the result does not depend on the
number of workers.
"""

from datetime import datetime
from typing import Optional, Sequence, Union
import warnings

import numpy as np

from risico.exceptions import RangeWarning, TemporalOrderError, ValidationError
from risico.models.config import ModelConfig
from risico.models.constants import MAX_DT_HOURS, MIN_DT_HOURS, NODATA
from risico.models.input import Input, as_utc
from risico.models.kernels import OUTPUT_ROWS
from risico.models.output import Output
from risico.models.properties import Properties
from risico.models.warm_state import WarmState, WarmStateStore
from risico.utilities.parallel import MIN_CELLS_PER_WORKER, resolve_num_workers, run_partitioned


class State:
    """Warm state of the grid plus the model configuration and current time.

    Args:
        warm_states (Union[WarmStateStore, Sequence[WarmState]]): Initial
            state of every cell, index-aligned with ``Properties``.
        time (datetime): Time the initial state refers to. Naive datetimes
            are read as UTC.
        config (ModelConfig): Model variant and coefficients.
        num_workers (int, optional): Worker threads for the cell kernels.
            Defaults to the number of CPUs.
        logger (Logger, optional): Run logger receiving status messages and
            per-cycle output summaries.
    """

    # Smallest partition worth handing to a separate worker
    min_cells_per_worker = MIN_CELLS_PER_WORKER

    def __init__(self, warm_states: Union[WarmStateStore, Sequence[WarmState]],
                 time: datetime, config: ModelConfig,
                 num_workers: Optional[int] = None, logger=None):
        if isinstance(warm_states, WarmStateStore):
            self._store = warm_states.copy()
        else:
            self._store = WarmStateStore.new(warm_states)

        self.time = as_utc(time)
        self.config = config
        self.num_workers = resolve_num_workers(num_workers)
        self.logger = logger

        self._kernels = config.kernels

        if self.logger is not None:
            self.logger.log_message(
                f"Model version {config.model_version} "
                f"(t effect: {config.use_t_effect}), {len(self)} cells, "
                f"start {self.time.isoformat()}"
            )

    @classmethod
    def new(cls, warm_states, time: datetime, config: ModelConfig,
            num_workers: Optional[int] = None, logger=None) -> 'State':
        return cls(warm_states, time, config, num_workers=num_workers, logger=logger)

    @property
    def warm_state(self) -> WarmStateStore:
        """Independent copy of the current warm state."""
        return self._store.copy()

    def __len__(self) -> int:
        return len(self._store)

    def update(self, properties: Properties, input: Input) -> None:
        """Advance the state to ``input.time``.

        Either every cell advances and ``time`` moves to ``input.time``, or
        an exception is raised and the state is left as it was.

        Raises:
            ValidationError: Properties, input and state lengths differ.
            TemporalOrderError: ``input.time`` is before the state time.
        """
        self._check_dimensions(properties, input)
        new_time = as_utc(input.time)
        if new_time < self.time:
            raise TemporalOrderError("input time is before the state time",
                                     state_time=self.time, input_time=new_time)

        dt = (new_time - self.time).total_seconds() / 3600.0
        integrate = dt > 0.0
        if integrate:
            dt = min(max(dt, MIN_DT_HOURS), MAX_DT_HOURS)

        columns = self._drivers(input, warn=True)

        scratch = self._store.copy()
        s = scratch.columns()
        time_s = new_time.timestamp()

        run_partitioned(
            self._kernels.update, len(self), self.num_workers,
            time_s, dt, integrate,
            properties.veg_index, properties.veg_d0, properties.veg_sat, properties.veg_T0,
            columns["temperature"], columns["humidity"], columns["wind_speed"],
            columns["rain"], columns["snow_cover"], columns["ndvi"], columns["ndwi"],
            columns["msi"],
            s["dffm"], s["snow_cover"], s["snow_cover_time"], s["MSI"], s["MSI_TTL"],
            s["NDVI"], s["NDVI_TIME"], s["NDWI"], s["NDWI_TIME"],
            min_cells_per_worker=self.min_cells_per_worker,
        )

        self._store = scratch
        self.time = new_time

        if self.logger is not None:
            self.logger.log_message(
                f"Updated to {new_time.isoformat()} (dt {dt:.2f} h"
                f"{'' if integrate else ', no integration'})"
            )

    def output(self, properties: Properties, input: Input) -> Output:
        """Danger variables of the current state.

        Pure with respect to the state; repeated calls with the same inputs
        return the same values.

        Raises:
            ValidationError: Properties, input and state lengths differ.
        """
        self._check_dimensions(properties, input)
        columns = self._drivers(input, warn=False)
        s = self._store.columns()

        out = np.full((len(OUTPUT_ROWS), len(self)), NODATA, dtype=np.float64)
        day_number = self.time.timetuple().tm_yday

        run_partitioned(
            self._kernels.output, len(self), self.num_workers,
            day_number, self.config.use_t_effect,
            properties.veg_index, properties.veg_d0, properties.veg_d1,
            properties.veg_hhv, properties.veg_umid, properties.veg_v0,
            properties.veg_use_ndvi,
            properties.slopes, properties.aspects,
            properties.ppf_summer, properties.ppf_winter,
            columns["temperature"], columns["humidity"], columns["wind_speed"],
            columns["wind_dir"], columns["rain"],
            s["dffm"], s["snow_cover"], s["MSI"], s["NDVI"], s["NDWI"],
            out,
            min_cells_per_worker=self.min_cells_per_worker,
        )

        output = Output(self.time, {name: out[k] for k, name in enumerate(OUTPUT_ROWS)})

        if self.logger is not None:
            self.logger.log_output(output)

        return output

    def _check_dimensions(self, properties: Properties, input: Input) -> None:
        n = len(self)
        if len(properties) != n:
            raise ValidationError("properties and state have different lengths",
                                  field="properties", value=(len(properties), n))
        if len(input) != n:
            raise ValidationError("input and state have different lengths",
                                  field="input", value=(len(input), n))

    def _drivers(self, input: Input, warn: bool) -> dict:
        columns, clamped = input.clamped()
        if warn:
            for name, count in clamped.items():
                message = f"{count} out-of-range {name} value(s) clamped at {input.time.isoformat()}"
                warnings.warn(message, RangeWarning, stacklevel=3)
                if self.logger is not None:
                    self.logger.log_message(message)
        return columns
