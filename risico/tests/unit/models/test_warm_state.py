"""Tests for the warm state store."""

import numpy as np
import pytest

from risico.models.constants import DFFM_DEFAULT
from risico.models.warm_state import WarmState, WarmStateStore


class TestWarmStateStore:
    """Tests for WarmStateStore construction and slot access."""

    def test_cold_start_defaults(self):
        store = WarmStateStore.cold_start(3)
        assert len(store) == 3
        assert store[0] == WarmState()
        assert store[2].dffm == DFFM_DEFAULT
        assert store[1].MSI_TTL == 0.0

    def test_cold_start_with_dffm(self):
        store = WarmStateStore.cold_start(2, dffm=12.0)
        np.testing.assert_array_equal(store.column("dffm"), [12.0, 12.0])

    def test_new_from_records(self):
        store = WarmStateStore.new([WarmState(dffm=5.0), WarmState(dffm=7.0, NDVI=0.4)])
        assert store[1].NDVI == 0.4
        assert store.to_warm_states()[0].dffm == 5.0

    def test_replace_writes_one_slot(self):
        store = WarmStateStore.cold_start(3)
        store.replace(1, WarmState(dffm=3.0, MSI=0.2))

        assert store[1].dffm == 3.0
        assert store[1].MSI == 0.2
        assert store[0].dffm == DFFM_DEFAULT
        assert store[2].dffm == DFFM_DEFAULT

    def test_replace_out_of_range(self):
        store = WarmStateStore.cold_start(2)
        with pytest.raises(IndexError):
            store.replace(2, WarmState())

    def test_copy_is_independent(self):
        store = WarmStateStore.cold_start(2)
        clone = store.copy()
        clone.replace(0, WarmState(dffm=1.0))
        assert store[0].dffm == DFFM_DEFAULT

    def test_mismatched_columns_rejected(self):
        columns = WarmStateStore.cold_start(2).columns()
        columns["dffm"] = np.zeros(3)
        with pytest.raises(ValueError):
            WarmStateStore(columns)
