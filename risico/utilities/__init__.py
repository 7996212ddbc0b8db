"""Shared utilities for the RISICO engine.

Modules:
    - numba_utils: Optional JIT compilation of the cell kernels.
    - parallel: Thread pool fan-out over contiguous cell ranges.
    - logger: Run logging with Parquet output.
    - logger_schemas: Data schemas for logged entries.
    - parquet_writer: Parquet file writing utilities.
    - warm_state_io: Warm state text files.
"""
