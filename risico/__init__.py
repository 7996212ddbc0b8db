"""RISICO - per-cell wildfire danger engine."""

from risico.models.config import ModelConfig, register_variant
from risico.models.input import Input, InputElement
from risico.models.output import Output, OutputVariableName
from risico.models.properties import Properties, PropertiesElement
from risico.models.state import State
from risico.models.vegetation import Vegetation, VegetationCatalog
from risico.models.warm_state import WarmState, WarmStateStore
from risico.exceptions import (
    RisicoError,
    ConfigError,
    ValidationError,
    TemporalOrderError,
    RangeWarning,
)

__version__ = "0.1.0"

__all__ = [
    "ModelConfig",
    "register_variant",
    "Input",
    "InputElement",
    "Output",
    "OutputVariableName",
    "Properties",
    "PropertiesElement",
    "State",
    "Vegetation",
    "VegetationCatalog",
    "WarmState",
    "WarmStateStore",
    "RisicoError",
    "ConfigError",
    "ValidationError",
    "TemporalOrderError",
    "RangeWarning",
]
