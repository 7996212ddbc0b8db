import os
from risico.utilities.logger_schemas import CycleLogEntry
from risico.utilities.parquet_writer import ParquetWriter
import pyarrow as pa
import pyarrow.parquet as pq
import datetime
import numpy as np
import json
import pandas as pd
import glob
import shutil


class Logger:
    """Run log of a RISICO session.

    Keeps a JSON status log of timestamped messages and writes per-cycle
    summaries of the model outputs as Parquet part files, merged into one
    ``cycle_logs.parquet`` by :meth:`finish`.

    Args:
        log_folder (str): Folder under which the session folder is created.
    """

    def __init__(self, log_folder: str):
        self.log_folder = log_folder
        os.makedirs(self.log_folder, exist_ok=True)

        self._session_folder = self.generate_session_folder()
        os.makedirs(self._session_folder, exist_ok=True)

        self.cycle_writer = ParquetWriter(
            os.path.join(self._session_folder, "cycle_logs"), schema=CycleLogEntry
        )

        self._cycle_cache = []

        self._status_log = {
            "run_start": datetime.datetime.now().isoformat(),
            "messages": [],
            "latest_flush": None,
            "results": None
        }

    @property
    def session_folder(self) -> str:
        return self._session_folder

    def cache_cycle_updates(self, entries):
        self._cycle_cache.extend(entries)

    def log_output(self, output, phase: str = "output"):
        """Cache a summary entry for every variable of an output."""
        timestamp = output.time.isoformat()
        self.cache_cycle_updates([
            CycleLogEntry.summarize(timestamp, phase, name, output.get(name))
            for name in output.variables()
        ])

    def flush(self):
        self.cycle_writer.write_batch(self._cycle_cache)
        self._cycle_cache.clear()

        self._status_log["latest_flush"] = datetime.datetime.now().isoformat()
        self._write_status_log()

    def write_results(self, state):
        if state is not None:
            self._status_log["results"] = {
                "final time": state.time.isoformat(),
                "cells": len(state),
                "model version": state.config.model_version,
            }

    def finish(self, state=None):
        self.write_results(state)
        self.flush()

        cycle_log_path = os.path.join(self._session_folder, "cycle_logs")

        self._merge_parquet_files(
            cycle_log_path,
            os.path.join(self._session_folder, "cycle_logs.parquet")
        )

        # Delete the part files after merging
        if os.path.exists(cycle_log_path):
            shutil.rmtree(cycle_log_path)

    def _merge_parquet_files(self, folder_path: str, output_file: str):

        parquet_files = sorted(glob.glob(os.path.join(folder_path, "part-*.parquet")))

        if not parquet_files:
            self.log_message(f"No parquet files found in {folder_path}")
            self._write_status_log()
            return

        dfs = [pd.read_parquet(f) for f in parquet_files]
        combined_df = pd.concat(dfs, ignore_index=True)

        table = pa.Table.from_pandas(combined_df, preserve_index=False)
        pq.write_table(table, output_file, compression='snappy')

    def generate_session_folder(self) -> str:
        """Generates the path for the current session's log files based on current datetime

        :return: Session folder path string
        :rtype: str
        """
        date_time_str = datetime.datetime.now().strftime('%d-%b-%Y-%H-%M-%S-%f')
        return os.path.join(self.log_folder, f"log_{date_time_str}")

    def log_metadata(self, config, properties, start_time: datetime.datetime):
        veg_counts = np.bincount(properties.veg_index, minlength=len(properties.vegetations_dict))

        metadata = {
            "model": config.to_dict(),
            "grid": {
                "cells": len(properties),
                "lat range": [properties.lats.min(), properties.lats.max()] if len(properties) else None,
                "lon range": [properties.lons.min(), properties.lons.max()] if len(properties) else None,
            },
            "vegetation": {
                code: int(count)
                for code, count in zip(properties.vegetations_dict, veg_counts)
            },
            "start time": start_time,
        }

        safe_dict = make_json_serializable(metadata)

        metadata_path = os.path.join(self._session_folder, "metadata.json")
        with open(metadata_path, 'w') as f:
            json.dump(safe_dict, f, indent=2)

    def log_message(self, message: str):
        timestamp = datetime.datetime.now().isoformat()
        entry = f"[{timestamp}]: {message}"
        self._status_log["messages"].append(entry)

    @property
    def messages(self):
        return list(self._status_log["messages"])

    def _write_status_log(self):
        status_path = os.path.join(self._session_folder, "status_log.json")
        with open(status_path, 'w') as f:
            json.dump(self._status_log, f, indent=2)


def make_json_serializable(obj):
    if isinstance(obj, dict):
        return {k: make_json_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [make_json_serializable(item) for item in obj]
    elif isinstance(obj, tuple):
        return [make_json_serializable(item) for item in obj]
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.generic):
        return obj.item()
    elif isinstance(obj, datetime.datetime):
        return obj.isoformat()
    elif isinstance(obj, datetime.date):
        return obj.isoformat()
    elif hasattr(obj, '__dict__'):
        return str(obj)
    else:
        return obj
