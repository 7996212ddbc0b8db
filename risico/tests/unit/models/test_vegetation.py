"""Tests for the vegetation catalog.

These tests cover the baseline fuel record, catalog lookups and the text and
JSON loaders.
"""

import json

import pytest

from risico.exceptions import ConfigError
from risico.models.constants import NODATA
from risico.models.vegetation import Vegetation, VegetationCatalog


class TestVegetationDefaults:
    """Tests for the baseline fuel type."""

    def test_default_values(self):
        """Default construction should yield the baseline fuel type."""
        veg = Vegetation()
        assert veg.id == "default"
        assert veg.d0 == 0.5
        assert veg.d1 == NODATA
        assert veg.hhv == 18000.0
        assert veg.umid == NODATA
        assert veg.v0 == 120.0
        assert veg.T0 == 30.0
        assert veg.sat == 40.0
        assert veg.use_ndvi is False

    def test_records_are_frozen(self):
        """Vegetation records cannot be modified after creation."""
        veg = Vegetation()
        with pytest.raises(AttributeError):
            veg.d0 = 1.0


class TestCatalogLookup:
    """Tests for VegetationCatalog lookups."""

    def test_lookup_returns_shared_record(self, catalog, grass):
        """Lookups hand out the same record every time."""
        assert catalog.lookup("grass") == grass
        assert catalog.lookup("grass") is catalog.lookup("grass")

    def test_unknown_code_raises(self, catalog):
        """Unknown codes should raise ConfigError."""
        with pytest.raises(ConfigError, match="unknown vegetation code"):
            catalog.lookup("3211")

    def test_duplicate_codes_rejected(self, grass):
        with pytest.raises(ConfigError, match="duplicate"):
            VegetationCatalog.from_vegetations([grass, grass])

    def test_default_catalog(self):
        catalog = VegetationCatalog.default()
        assert len(catalog) == 1
        assert "default" in catalog


class TestCatalogFromFile:
    """Tests for the whitespace separated vegetation table."""

    def test_loads_table_with_header(self, tmp_path):
        """Header and blank lines are skipped, the name is the last column."""
        path = tmp_path / "veg.txt"
        path.write_text(
            "# id d0 d1 hhv umid v0 T0 sat name\n"
            "1 0.5 -9999 18000 -9999 120 30 40 grass\n"
            "\n"
            "2 1.0 1.5 20000 120 80 40 50 true shrub\n"
        )

        catalog = VegetationCatalog.from_file(str(path))

        assert catalog.codes() == ["1", "2"]
        grass = catalog.lookup("1")
        assert grass.name == "grass"
        assert grass.d1 == NODATA
        assert grass.use_ndvi is False

        shrub = catalog.lookup("2")
        assert shrub.name == "shrub"
        assert shrub.umid == 120.0
        assert shrub.sat == 50.0
        assert shrub.use_ndvi is True

    def test_short_line_raises(self, tmp_path):
        """Lines with fewer than nine columns are a ConfigError."""
        path = tmp_path / "veg.txt"
        path.write_text("1 0.5 -9999 18000 -9999 120 30 grass\n")

        with pytest.raises(ConfigError) as exc_info:
            VegetationCatalog.from_file(str(path))
        assert exc_info.value.config_path == str(path)

    def test_non_numeric_value_raises(self, tmp_path):
        path = tmp_path / "veg.txt"
        path.write_text("1 0.5 -9999 high -9999 120 30 40 grass\n")

        with pytest.raises(ConfigError):
            VegetationCatalog.from_file(str(path))


class TestCatalogFromJson:
    """Tests for the JSON vegetation format."""

    def test_missing_fields_take_defaults(self, tmp_path):
        path = tmp_path / "veg.json"
        path.write_text(json.dumps({"7": {"d0": 0.8, "v0": 150, "name": "pasture"}}))

        catalog = VegetationCatalog.from_json(str(path))
        veg = catalog.lookup("7")

        assert veg.d0 == 0.8
        assert veg.v0 == 150.0
        assert veg.T0 == 30.0
        assert veg.name == "pasture"

    def test_unknown_field_raises(self, tmp_path):
        path = tmp_path / "veg.json"
        path.write_text(json.dumps({"7": {"d0": 0.8, "speed": 3}}))

        with pytest.raises(ConfigError, match="unknown vegetation fields"):
            VegetationCatalog.from_json(str(path))
