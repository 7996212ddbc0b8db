"""Static per-cell grid properties.

``Properties`` is built once at the start of a run and never changes. Besides
the per-cell ``PropertiesElement`` records it keeps a column layout of the
same data for the kernels: float arrays for the terrain attributes and an
integer index per cell into column arrays of vegetation parameters, so each
fuel type is stored once no matter how many cells use it.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from risico.exceptions import ValidationError
from risico.models.vegetation import Vegetation, VegetationCatalog


@dataclass(frozen=True)
class PropertiesElement:
    """Static attributes of one grid cell.

    Attributes:
        lon (float): Longitude (deg).
        lat (float): Latitude (deg).
        slope (float): Terrain slope (rad).
        aspect (float): Terrain aspect (rad).
        ppf_summer (float): Summer ignition probability factor.
        ppf_winter (float): Winter ignition probability factor.
        vegetation (Vegetation): Shared fuel type record.
    """
    lon: float
    lat: float
    slope: float
    aspect: float
    ppf_summer: float
    ppf_winter: float
    vegetation: Vegetation


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


class Properties:
    """Index-aligned sequence of cell properties plus the vegetation dictionary.

    Args:
        elements (Sequence[PropertiesElement]): One record per cell, index = cell id.
        vegetations (Dict[str, Vegetation]): Vegetation code to record.
        declared_len (int, optional): Expected number of cells. Defaults to
            ``len(elements)``.

    Raises:
        ValidationError: If the number of elements differs from
            ``declared_len`` or a cell references a vegetation that is not in
            ``vegetations``.
    """

    def __init__(self, elements: Sequence[PropertiesElement],
                 vegetations: Dict[str, Vegetation],
                 declared_len: Optional[int] = None):
        elements = tuple(elements)
        if declared_len is None:
            declared_len = len(elements)

        if len(elements) != declared_len:
            raise ValidationError("number of cells does not match declared length",
                                  field="properties", value=len(elements))

        self.data = elements
        self.vegetations_dict = dict(vegetations)
        self.len = declared_len

        self._veg_codes = list(self.vegetations_dict)
        code_to_idx = {code: i for i, code in enumerate(self._veg_codes)}

        veg_index = np.empty(self.len, dtype=np.int64)
        for i, el in enumerate(elements):
            code = el.vegetation.id
            if code not in code_to_idx or self.vegetations_dict[code] != el.vegetation:
                raise ValidationError(f"cell {i} references an unresolved vegetation",
                                      field="vegetation", value=code)
            veg_index[i] = code_to_idx[code]

        self.veg_index = _readonly(veg_index)

        self.lons = _readonly(np.array([el.lon for el in elements], dtype=np.float64))
        self.lats = _readonly(np.array([el.lat for el in elements], dtype=np.float64))
        self.slopes = _readonly(np.array([el.slope for el in elements], dtype=np.float64))
        self.aspects = _readonly(np.array([el.aspect for el in elements], dtype=np.float64))
        self.ppf_summer = _readonly(np.array([el.ppf_summer for el in elements], dtype=np.float64))
        self.ppf_winter = _readonly(np.array([el.ppf_winter for el in elements], dtype=np.float64))

        vegs = [self.vegetations_dict[c] for c in self._veg_codes]
        self.veg_d0 = _readonly(np.array([v.d0 for v in vegs], dtype=np.float64))
        self.veg_d1 = _readonly(np.array([v.d1 for v in vegs], dtype=np.float64))
        self.veg_hhv = _readonly(np.array([v.hhv for v in vegs], dtype=np.float64))
        self.veg_umid = _readonly(np.array([v.umid for v in vegs], dtype=np.float64))
        self.veg_v0 = _readonly(np.array([v.v0 for v in vegs], dtype=np.float64))
        self.veg_T0 = _readonly(np.array([v.T0 for v in vegs], dtype=np.float64))
        self.veg_sat = _readonly(np.array([v.sat for v in vegs], dtype=np.float64))
        self.veg_use_ndvi = _readonly(np.array([v.use_ndvi for v in vegs], dtype=np.bool_))

    @classmethod
    def from_arrays(cls, lons: Sequence[float], lats: Sequence[float],
                    slopes: Sequence[float], aspects: Sequence[float],
                    vegetation_codes: Sequence[str], catalog: VegetationCatalog,
                    ppf_summer: Optional[Sequence[float]] = None,
                    ppf_winter: Optional[Sequence[float]] = None) -> 'Properties':
        """Build properties from the column arrays produced by the grid loaders.

        Missing PPF arrays default to 1.0 for every cell.

        Raises:
            ValidationError: If the arrays differ in length or a vegetation
                code is not in ``catalog``.
        """
        n = len(lons)
        if ppf_summer is None:
            ppf_summer = np.ones(n)
        if ppf_winter is None:
            ppf_winter = np.ones(n)

        columns = {
            "lats": lats, "slopes": slopes, "aspects": aspects,
            "vegetation_codes": vegetation_codes,
            "ppf_summer": ppf_summer, "ppf_winter": ppf_winter,
        }
        for name, col in columns.items():
            if len(col) != n:
                raise ValidationError("column length does not match number of cells",
                                      field=name, value=len(col))

        elements = []
        for i in range(n):
            code = str(vegetation_codes[i])
            if code not in catalog:
                raise ValidationError(f"cell {i} references an unknown vegetation code",
                                      field="vegetation", value=code)
            elements.append(PropertiesElement(
                lon=float(lons[i]),
                lat=float(lats[i]),
                slope=float(slopes[i]),
                aspect=float(aspects[i]),
                ppf_summer=float(ppf_summer[i]),
                ppf_winter=float(ppf_winter[i]),
                vegetation=catalog.lookup(code),
            ))

        return cls(elements, catalog.as_dict(), n)

    def get_coords(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(lats, lons)`` of all cells."""
        return self.lats, self.lons

    def __getitem__(self, index: int) -> PropertiesElement:
        return self.data[index]

    def __len__(self) -> int:
        return self.len
