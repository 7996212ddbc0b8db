"""Tests for static grid properties."""

import numpy as np
import pytest

from risico.exceptions import ValidationError
from risico.models.properties import Properties, PropertiesElement


class TestPropertiesConstruction:
    """Tests for Properties validation."""

    def test_declared_length_mismatch(self, grass):
        """A declared length different from the element count is rejected."""
        el = PropertiesElement(8.0, 44.0, 0.0, 0.0, 1.0, 1.0, grass)
        with pytest.raises(ValidationError):
            Properties([el, el], {"grass": grass}, declared_len=3)

    def test_unresolved_vegetation(self, grass, shrub):
        """Every cell vegetation must be in the dictionary."""
        el = PropertiesElement(8.0, 44.0, 0.0, 0.0, 1.0, 1.0, shrub)
        with pytest.raises(ValidationError, match="unresolved vegetation"):
            Properties([el], {"grass": grass})

    def test_empty_grid(self, grass):
        props = Properties([], {"grass": grass})
        assert len(props) == 0


class TestPropertiesFromArrays:
    """Tests for the array based constructor used by grid loaders."""

    def test_shared_vegetation_index(self, make_properties):
        """Cells with the same fuel type point at the same vegetation slot."""
        props = make_properties(6)

        assert len(props) == 6
        assert props.veg_index[0] == props.veg_index[3]
        assert props.veg_index[1] == props.veg_index[4]
        assert props.veg_d0[props.veg_index[2]] == 0.0
        assert props[0].vegetation is props[3].vegetation

    def test_default_ppf(self, catalog):
        props = Properties.from_arrays([8.0, 8.1], [44.0, 44.1], [0.0, 0.0], [0.0, 0.0],
                                       ["grass", "grass"], catalog)
        np.testing.assert_array_equal(props.ppf_summer, [1.0, 1.0])
        np.testing.assert_array_equal(props.ppf_winter, [1.0, 1.0])

    def test_unknown_code(self, catalog):
        with pytest.raises(ValidationError, match="unknown vegetation code"):
            Properties.from_arrays([8.0], [44.0], [0.0], [0.0], ["lava"], catalog)

    def test_mismatched_columns(self, catalog):
        with pytest.raises(ValidationError) as exc_info:
            Properties.from_arrays([8.0, 8.1], [44.0], [0.0, 0.0], [0.0, 0.0],
                                   ["grass", "grass"], catalog)
        assert exc_info.value.field == "lats"

    def test_arrays_are_read_only(self, make_properties):
        props = make_properties(3)
        with pytest.raises(ValueError):
            props.slopes[0] = 1.0
        with pytest.raises(ValueError):
            props.veg_sat[0] = 1.0

    def test_coords(self, make_properties):
        props = make_properties(3)
        lats, lons = props.get_coords()
        assert lats[0] == pytest.approx(44.0)
        assert lons[-1] == pytest.approx(9.0)

    def test_index_out_of_range(self, make_properties):
        props = make_properties(3)
        with pytest.raises(IndexError):
            props[3]
