"""Custom exceptions for the RISICO fire danger engine.

This module defines the exceptions raised by the engine so callers can
tell structural problems (bad configuration, misaligned grids, time running
backwards) apart from per-cell data anomalies, which are only warned about.

Exception Hierarchy:
    RisicoError (base)
    ├── ConfigError - Unknown model variant, fuel code or malformed config data
    ├── ValidationError - Dimension mismatch or unresolved vegetation reference
    └── TemporalOrderError - Input timestamps moving backwards

Warnings:
    RangeWarning - Out-of-domain observations clamped to their valid range

Example:
    >>> from risico.exceptions import ConfigError
    >>> raise ConfigError("unknown model variant", parameter="v1999")
"""

from datetime import datetime
from typing import Optional


class RisicoError(Exception):
    """Base exception for all RISICO errors.

    Example:
        >>> try:
        ...     state.update(props, batch)
        ... except RisicoError as e:
        ...     print(f"cycle rejected: {e}")
    """

    pass


class ConfigError(RisicoError):
    """Raised when the model configuration or its data is invalid.

    This exception is raised when:
    - An unknown model variant is requested
    - A vegetation code is not in the catalog
    - A vegetation file is malformed
    - An unknown coefficient override is supplied

    Attributes:
        config_path (str): Path to the offending file, if applicable.
        parameter (str): Name of the problematic parameter or code, if applicable.

    Example:
        >>> raise ConfigError(
        ...     "unknown vegetation code",
        ...     parameter="3211"
        ... )
    """

    def __init__(self, message: str, config_path: Optional[str] = None, parameter: Optional[str] = None):
        self.config_path = config_path
        self.parameter = parameter

        parts = []
        if config_path:
            parts.append(f"in {config_path}")
        if parameter:
            parts.append(f"parameter '{parameter}'")

        if parts:
            full_message = f"{message} ({', '.join(parts)})"
        else:
            full_message = message

        super().__init__(full_message)


class ValidationError(RisicoError):
    """Raised when grid-aligned data fails structural validation.

    This exception is raised when:
    - Properties, Input and warm state lengths disagree
    - A cell references a vegetation missing from the dictionary
    - A declared cell count does not match the data

    Attributes:
        field (str): Name of the field that failed validation, if applicable.
        value: The invalid value, if applicable.

    Example:
        >>> raise ValidationError(
        ...     "input length does not match properties",
        ...     field="input",
        ...     value=1023
        ... )
    """

    def __init__(self, message: str, field: Optional[str] = None, value=None):
        self.field = field
        self.value = value

        parts = []
        if field:
            parts.append(f"field '{field}'")
        if value is not None:
            parts.append(f"value={value!r}")

        if parts:
            full_message = f"{message} ({', '.join(parts)})"
        else:
            full_message = message

        super().__init__(full_message)


class TemporalOrderError(RisicoError):
    """Raised when an input batch is older than the last update.

    Moisture integration only runs forward in time, so the state rejects
    the batch and stays as it was.

    Attributes:
        state_time (datetime): Time of the last accepted update.
        input_time (datetime): Time of the rejected batch.

    Example:
        >>> raise TemporalOrderError(
        ...     "input time precedes state time",
        ...     state_time=datetime(2024, 7, 1, 12),
        ...     input_time=datetime(2024, 7, 1, 9)
        ... )
    """

    def __init__(self, message: str, state_time: Optional[datetime] = None,
                 input_time: Optional[datetime] = None):
        self.state_time = state_time
        self.input_time = input_time

        if state_time is not None and input_time is not None:
            full_message = f"{message} (state at {state_time.isoformat()}, input at {input_time.isoformat()})"
        else:
            full_message = message

        super().__init__(full_message)


class RangeWarning(UserWarning):
    """Issued when observations outside their physical domain are clamped.

    One warning is issued per variable and batch, reporting how many cells
    were affected. The batch itself is still processed.
    """

    pass
