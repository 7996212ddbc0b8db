"""Model variant configuration.

A :class:`ModelConfig` picks the drying, wetting, spread and danger index
formulas of one model variant and the coefficients they use. It is chosen
once per run and shared read-only by every partition worker.

Variants are registered by name in a module level registry. The built-in
variants are ``"legacy"`` (RISICO 2015), ``"v2023"`` and ``"v2025"``. Other
variants can be added with :func:`register_variant` without touching the
engine.

Example:
    >>> config = ModelConfig.new("v2023", use_t_effect=True)
    >>> config = ModelConfig.new("legacy", drying={"a6": 0.0004})
"""

from dataclasses import asdict, dataclass, fields, replace
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from risico.exceptions import ConfigError
from risico.models import formulas
from risico.models.kernels import Kernels, build_kernels


# =============================================================================
# Coefficient sets
# =============================================================================

@dataclass(frozen=True)
class LegacyDryingCoefficients:
    """Equilibrium moisture and time constant coefficients of RISICO 2015."""
    a1: float = 1.0
    a2: float = 0.555
    a3: float = 10.6
    a4: float = 0.5022
    a5: float = 0.0133
    a6: float = 0.000343
    a7: float = 0.00722
    b1: float = 3.0
    b2: float = 0.6
    t_ref: float = 30.0


@dataclass(frozen=True)
class DryingCoefficients2023:
    """Equilibrium moisture and asymmetric time constant coefficients.

    ``a1`` to ``a5`` and ``t_ref`` shape the equilibrium moisture content.
    ``*_d`` coefficients drive desorption (fuel wetter than equilibrium),
    ``*_w`` coefficients drive adsorption. ``t_std``, ``w_std`` (m/s) and
    ``h_std`` are the standard conditions at which both time constants
    equal the vegetation ``T0``.
    """
    a1: float = 0.942
    a2: float = 0.679
    a3: float = 11.0
    a4: float = 0.18
    a5: float = 0.115
    t_ref: float = 21.1
    b1_d: float = 0.01
    c1_d: float = 1.5
    b2_d: float = 0.2
    c2_d: float = 1.0
    b3_d: float = 0.01
    c3_d: float = 1.5
    b1_w: float = 0.01
    c1_w: float = 1.0
    b2_w: float = 0.1
    c2_w: float = 1.0
    b3_w: float = 0.01
    c3_w: float = 1.0
    t_std: float = 27.0
    w_std: float = 0.0
    h_std: float = 20.0


@dataclass(frozen=True)
class WettingCoefficients:
    """Rain uptake coefficients.

    ``rain_threshold`` is the rain (mm) above which the step is treated as
    wetting. Rain at or above ``saturating_rain`` saturates the fuel.
    """
    r1: float = 12.119
    r2: float = 20.77
    r3: float = 3.2
    rain_threshold: float = 0.1
    saturating_rain: float = 50.0


@dataclass(frozen=True)
class LegacySpreadCoefficients:
    """Wind, slope and moisture effect coefficients of RISICO 2015."""
    delta1: float = 1.5
    delta2: float = 0.8483
    delta3: float = 16000.0
    delta4: float = 1.25
    delta5: float = 250000.0
    qepsix2: float = 8.0
    slope_lambda: float = 2.0
    moisture_scale: float = 20.0


@dataclass(frozen=True)
class SpreadCoefficients2023:
    """Directional wind/slope effect and polynomial moisture effect.

    Wind coefficients ``d3`` and ``d5`` are in km/h. ``mx`` is the
    extinction moisture as a fraction; ``m0`` to ``m5`` are the polynomial
    coefficients of the moisture damping.
    """
    d1: float = 0.5
    d2: float = 1.0
    d3: float = 30.0
    d4: float = 1.5
    d5: float = 50.0
    n_angles: int = 8
    max_eccentricity: float = 0.99
    mx: float = 0.3
    m0: float = 1.0
    m1: float = -2.59
    m2: float = 5.11
    m3: float = -3.52
    m4: float = 0.0
    m5: float = 0.0


@dataclass(frozen=True)
class SpreadCoefficients2025:
    """Directional wind/slope effect and logistic moisture effect."""
    d1: float = 0.5
    d2: float = 1.0
    d3: float = 30.0
    d4: float = 1.5
    d5: float = 50.0
    n_angles: int = 8
    max_eccentricity: float = 0.99
    x0: float = 2.0
    f: float = 60.0
    a: float = 0.2
    b: float = 20.0
    d: float = 1.0


@dataclass(frozen=True)
class MeteoIndexTable:
    """Danger class table.

    ``values`` is row-major with ``len(dffm_edges) + 1`` columns (moisture
    classes, driest first) and ``len(wind_edges) + 1`` rows (wind effect
    classes, calmest first).
    """
    dffm_edges: Tuple[float, ...]
    wind_edges: Tuple[float, ...]
    values: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, "dffm_edges", tuple(float(v) for v in self.dffm_edges))
        object.__setattr__(self, "wind_edges", tuple(float(v) for v in self.wind_edges))
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

        for name in ("dffm_edges", "wind_edges"):
            edges = getattr(self, name)
            if not edges:
                raise ConfigError("class edges must not be empty", parameter=name)
            if any(b <= a for a, b in zip(edges, edges[1:])):
                raise ConfigError("class edges must be strictly increasing",
                                  parameter=name)

        expected = (len(self.dffm_edges) + 1) * (len(self.wind_edges) + 1)
        if len(self.values) != expected:
            raise ConfigError(
                f"table has {len(self.values)} values, expected {expected}",
                parameter="values")


DANGER_CLASSES = (
    4.0, 3.0, 2.0, 1.0, 1.0, 1.0,
    4.0, 4.0, 3.0, 2.0, 1.0, 1.0,
    5.0, 4.0, 3.0, 2.0, 2.0, 1.0,
    5.0, 5.0, 4.0, 3.0, 2.0, 1.0,
    5.0, 5.0, 5.0, 4.0, 3.0, 2.0,
)

LEGACY_METEO_TABLE = MeteoIndexTable(
    dffm_edges=(5.0, 12.0, 20.0, 30.0, 40.0),
    wind_edges=(1.5, 1.8, 2.2, 2.5),
    values=DANGER_CLASSES,
)

METEO_TABLE_2023 = MeteoIndexTable(
    dffm_edges=(3.5, 5.9, 10.3, 15.9, 25.0),
    wind_edges=(1.24, 2.1, 2.44, 3.38),
    values=DANGER_CLASSES,
)


# =============================================================================
# Variants
# =============================================================================

@dataclass(frozen=True)
class ModelVariant:
    """A named choice of formula factories and their default coefficients."""
    name: str
    drying: Any
    wetting: WettingCoefficients
    spread: Any
    meteo_table: MeteoIndexTable
    make_drying: Callable
    make_ros: Callable
    make_wetting: Callable = formulas.make_wetting
    make_meteo_index: Callable = formulas.make_meteo_index


@dataclass(frozen=True)
class FormulaSet:
    """Compiled per-cell formulas of one configuration."""
    drying: Callable
    wetting: Callable
    ros: Callable
    meteo_index: Callable
    rain_threshold: float


_VARIANTS: Dict[str, ModelVariant] = {}


def register_variant(variant: ModelVariant, overwrite: bool = False) -> None:
    """Make a variant available to :meth:`ModelConfig.new`.

    Raises:
        ConfigError: If the name is taken and ``overwrite`` is False.
    """
    if variant.name in _VARIANTS and not overwrite:
        raise ConfigError(f"variant '{variant.name}' is already registered",
                          parameter="model_version")
    _VARIANTS[variant.name] = variant


def get_variant(name: str) -> ModelVariant:
    try:
        return _VARIANTS[name]
    except KeyError:
        raise ConfigError(
            f"unknown model variant '{name}', available: {available_variants()}",
            parameter="model_version") from None


def available_variants() -> Tuple[str, ...]:
    return tuple(sorted(_VARIANTS))


register_variant(ModelVariant(
    name="legacy",
    drying=LegacyDryingCoefficients(),
    wetting=WettingCoefficients(),
    spread=LegacySpreadCoefficients(),
    meteo_table=LEGACY_METEO_TABLE,
    make_drying=formulas.make_drying_legacy,
    make_ros=formulas.make_ros_legacy,
))

register_variant(ModelVariant(
    name="v2023",
    drying=DryingCoefficients2023(),
    wetting=WettingCoefficients(r1=11.5, r2=18.6),
    spread=SpreadCoefficients2023(),
    meteo_table=METEO_TABLE_2023,
    make_drying=formulas.make_drying_v2023,
    make_ros=formulas.make_ros_v2023,
))

register_variant(ModelVariant(
    name="v2025",
    drying=DryingCoefficients2023(),
    wetting=WettingCoefficients(r1=11.5, r2=18.6),
    spread=SpreadCoefficients2025(),
    meteo_table=METEO_TABLE_2023,
    make_drying=formulas.make_drying_v2023,
    make_ros=formulas.make_ros_v2025,
))


# =============================================================================
# ModelConfig
# =============================================================================

def _override(defaults, overrides: Optional[Mapping[str, Any]], group: str):
    if not overrides:
        return defaults
    known = {f.name for f in fields(defaults)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"unknown {group} coefficient(s): {', '.join(unknown)}",
                          parameter=group)
    try:
        return replace(defaults, **overrides)
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e), parameter=group) from e


@lru_cache(maxsize=None)
def _build_formulas(model_version, drying, wetting, spread, meteo_table) -> FormulaSet:
    variant = get_variant(model_version)
    return FormulaSet(
        drying=variant.make_drying(drying),
        wetting=variant.make_wetting(wetting),
        ros=variant.make_ros(spread),
        meteo_index=variant.make_meteo_index(meteo_table),
        rain_threshold=wetting.rain_threshold,
    )


@dataclass(frozen=True)
class ModelConfig:
    """Formulas and coefficients of one model variant.

    Attributes:
        model_version (str): Registered variant name.
        drying: Drying coefficient set of the variant.
        wetting (WettingCoefficients): Rain uptake coefficients.
        spread: Spread coefficient set of the variant.
        meteo_table (MeteoIndexTable): Danger class table.
        use_t_effect (bool): Whether temperature amplifies the spread rate.
    """
    model_version: str
    drying: Any
    wetting: WettingCoefficients
    spread: Any
    meteo_table: MeteoIndexTable
    use_t_effect: bool = False

    @classmethod
    def new(cls, model_version: str, use_t_effect: bool = False,
            drying: Optional[Mapping[str, Any]] = None,
            wetting: Optional[Mapping[str, Any]] = None,
            spread: Optional[Mapping[str, Any]] = None,
            meteo_table: Optional[MeteoIndexTable] = None) -> "ModelConfig":
        """Build the configuration of a registered variant.

        Args:
            model_version (str): Variant name, e.g. ``"legacy"`` or ``"v2023"``.
            use_t_effect (bool): Enable the temperature effect on spread.
            drying (Mapping, optional): Drying coefficient overrides.
            wetting (Mapping, optional): Wetting coefficient overrides.
            spread (Mapping, optional): Spread coefficient overrides.
            meteo_table (MeteoIndexTable, optional): Replacement danger table.

        Raises:
            ConfigError: Unknown variant or unknown coefficient name.
        """
        variant = get_variant(model_version)
        return cls(
            model_version=model_version,
            drying=_override(variant.drying, drying, "drying"),
            wetting=_override(variant.wetting, wetting, "wetting"),
            spread=_override(variant.spread, spread, "spread"),
            meteo_table=meteo_table if meteo_table is not None else variant.meteo_table,
            use_t_effect=bool(use_t_effect),
        )

    @property
    def formulas(self) -> FormulaSet:
        """Per-cell formulas, compiled once per distinct configuration."""
        return _build_formulas(self.model_version, self.drying, self.wetting,
                               self.spread, self.meteo_table)

    @property
    def kernels(self) -> Kernels:
        """Partition kernels built on :attr:`formulas`."""
        return build_kernels(self.formulas)

    @property
    def coefficients(self) -> dict:
        return {
            "drying": asdict(self.drying),
            "wetting": asdict(self.wetting),
            "spread": asdict(self.spread),
            "meteo_table": asdict(self.meteo_table),
        }

    def to_dict(self) -> dict:
        return {"model_version": self.model_version,
                "use_t_effect": self.use_t_effect,
                **self.coefficients}

    # Scalar entry points, mainly for inspection and tests

    def drying_step(self, dffm, temperature, wind_speed, humidity, T0, dt):
        """Moisture after ``dt`` hours without rain."""
        return self.formulas.drying(float(dffm), float(temperature), float(wind_speed),
                                    float(humidity), float(T0), float(dt))

    def wetting_step(self, rain, dffm, sat):
        """Moisture after ``rain`` mm of rain."""
        return self.formulas.wetting(float(rain), float(dffm), float(sat))

    def rate_of_spread(self, v0, d0, snow_cover, dffm, slope, aspect,
                       wind_speed, wind_dir, t_effect=1.0):
        """Spread rate (m/h) and wind effect of one cell."""
        return self.formulas.ros(float(v0), float(d0), float(snow_cover), float(dffm),
                                 float(slope), float(aspect), float(wind_speed),
                                 float(wind_dir), float(t_effect))

    def meteo_index(self, dffm, w_effect):
        """Danger class for a moisture and wind effect."""
        return self.formulas.meteo_index(float(dffm), float(w_effect))
