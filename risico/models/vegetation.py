"""Vegetation (fuel type) records and the catalog that owns them.

Many grid cells share one fuel type, so each ``Vegetation`` is created once
when the catalog is loaded and handed out by reference afterwards. Records
are frozen dataclasses and the catalog offers no mutation.

Classes:
    - Vegetation: Immutable per-fuel-type parameter bundle.
    - VegetationCatalog: Read-only mapping from vegetation code to record.

File formats:
    Text table, one fuel type per line, whitespace separated::

        # id d0 d1 hhv umid v0 T0 sat [use_ndvi] name
        1 0.5 -9999 18000 -9999 120 30 40 grass

    JSON, a mapping from code to the record fields::

        {"1": {"d0": 0.5, "d1": -9999, "hhv": 18000, "umid": -9999,
               "v0": 120, "T0": 30, "sat": 40, "name": "grass"}}
"""

import json
from dataclasses import dataclass, fields
from typing import Dict, Iterable, Iterator, List

from risico.exceptions import ConfigError
from risico.models.constants import NODATA


@dataclass(frozen=True)
class Vegetation:
    """Fixed parameters of one fuel type.

    Attributes:
        id (str): Vegetation code referenced by the grid cells.
        d0 (float): Dead fine fuel load (kg/m^2). Cells with ``d0 <= 0`` do not burn.
        d1 (float): Live fuel load (kg/m^2), NODATA when absent.
        hhv (float): Higher heating value (kJ/kg).
        umid (float): Live fuel moisture (%), NODATA when absent.
        v0 (float): Base rate of spread (m/h).
        T0 (float): Drying time constant (h).
        sat (float): Saturation moisture, the upper bound of dffm (%).
        name (str): Human readable name.
        use_ndvi (bool): Whether NDVI modulates the outputs of this fuel type.
    """
    id: str = "default"
    d0: float = 0.5
    d1: float = NODATA
    hhv: float = 18000.0
    umid: float = NODATA
    v0: float = 120.0
    T0: float = 30.0
    sat: float = 40.0
    name: str = "default"
    use_ndvi: bool = False


_NUMERIC_FIELDS = ("d0", "d1", "hhv", "umid", "v0", "T0", "sat")


def _parse_bool(token: str) -> bool:
    lowered = token.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {token}")


class VegetationCatalog:
    """Read-only collection of fuel types keyed by code.

    Args:
        vegetations (Dict[str, Vegetation]): Mapping from code to record.

    Example:
        >>> catalog = VegetationCatalog.from_file("vegetation.txt")
        >>> catalog.lookup("1").v0
        120.0
    """

    def __init__(self, vegetations: Dict[str, Vegetation]):
        self._vegetations = dict(vegetations)

    @classmethod
    def default(cls) -> 'VegetationCatalog':
        """Catalog holding only the baseline fuel type, for tests and demos."""
        veg = Vegetation()
        return cls({veg.id: veg})

    @classmethod
    def from_vegetations(cls, vegetations: Iterable[Vegetation]) -> 'VegetationCatalog':
        """Build a catalog from records, rejecting duplicate codes."""
        table = {}
        for veg in vegetations:
            if veg.id in table:
                raise ConfigError("duplicate vegetation code", parameter=veg.id)
            table[veg.id] = veg
        return cls(table)

    @classmethod
    def from_file(cls, file_path: str) -> 'VegetationCatalog':
        """Load a catalog from the whitespace separated table format.

        A leading ``#`` header line and blank lines are skipped. Lines with
        ten or more columns carry the ``use_ndvi`` flag in column nine; the
        name is always the last column.

        Raises:
            ConfigError: If a line has fewer than nine columns or a value
                cannot be parsed.
        """
        records = []
        with open(file_path, "r") as f:
            for i, line in enumerate(f):
                line = line.strip()
                if not line or (i == 0 and line.startswith("#")):
                    continue

                parts = line.split()
                if len(parts) < 9:
                    raise ConfigError(f"invalid line in vegetation file: {line}", config_path=file_path)

                try:
                    values = [float(p) for p in parts[1:8]]
                    use_ndvi = _parse_bool(parts[8]) if len(parts) >= 10 else False
                except ValueError as e:
                    raise ConfigError(f"invalid line in vegetation file: {line} ({e})",
                                      config_path=file_path) from e

                records.append(Vegetation(parts[0], *values, name=parts[-1], use_ndvi=use_ndvi))

        return cls.from_vegetations(records)

    @classmethod
    def from_json(cls, file_path: str) -> 'VegetationCatalog':
        """Load a catalog from a JSON mapping of code to record fields.

        Missing fields take the baseline defaults.
        """
        with open(file_path, "r") as f:
            data = json.load(f)

        known = {f.name for f in fields(Vegetation)}
        records = []
        for code, entry in data.items():
            unknown = set(entry) - known
            if unknown:
                raise ConfigError(f"unknown vegetation fields {sorted(unknown)}",
                                  config_path=file_path, parameter=code)
            kwargs = {k: float(entry[k]) for k in _NUMERIC_FIELDS if k in entry}
            records.append(Vegetation(id=str(code),
                                      name=str(entry.get("name", code)),
                                      use_ndvi=bool(entry.get("use_ndvi", False)),
                                      **kwargs))

        return cls.from_vegetations(records)

    def lookup(self, code: str) -> Vegetation:
        """Return the record for ``code``.

        Raises:
            ConfigError: If the code is not in the catalog.
        """
        try:
            return self._vegetations[str(code)]
        except KeyError:
            raise ConfigError("unknown vegetation code", parameter=str(code)) from None

    def as_dict(self) -> Dict[str, Vegetation]:
        """Shallow copy of the code to record mapping."""
        return dict(self._vegetations)

    def codes(self) -> List[str]:
        return list(self._vegetations)

    def __contains__(self, code) -> bool:
        return str(code) in self._vegetations

    def __len__(self) -> int:
        return len(self._vegetations)

    def __iter__(self) -> Iterator[Vegetation]:
        return iter(self._vegetations.values())
