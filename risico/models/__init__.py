"""Data model and physics of the RISICO danger engine.

Modules:
    - vegetation: Fuel type records and the vegetation catalog.
    - properties: Static per-cell grid properties.
    - input: Meteorological and satellite input batches.
    - warm_state: Per-cell memory carried between time steps.
    - formulas: Moisture, spread, intensity and danger index formulas.
    - config: Model variants and their coefficient sets.
    - kernels: Compiled per-partition update and output loops.
    - state: The time-stepping engine.
    - output: Named per-cell output variables.
"""
