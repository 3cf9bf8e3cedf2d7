"""
Test suite for helpers.py

Tests cover:
- Required-column checks
- Numeric coercion
- Config value coercions (lists, years)
- Year scaffolding and NaN-aware totals
- Derived column naming
"""

import os
import sys

import pytest
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from helpers import (
    _require_columns,
    _to_numeric,
    _coerce_list,
    _coerce_years,
    _year_index,
    _total_or_nan,
    _scenario_col,
    _averted_col,
    _cumulative_col,
    _world_col,
)


class TestRequireColumns:

    def test_passes_when_present(self):
        df = pd.DataFrame(columns=['iso3c', 'year'])
        _require_columns(df, ['iso3c', 'year'])

    def test_lists_every_missing_column(self):
        df = pd.DataFrame(columns=['iso3c'])
        with pytest.raises(KeyError, match="year"):
            _require_columns(df, ['iso3c', 'year', 'population'], 'panel')


class TestToNumeric:

    def test_coerces_and_preserves_input(self):
        df = pd.DataFrame({'a': ['1', 'x', None], 'b': ['keep', 'me', 'please']})
        out = _to_numeric(df, ['a', 'missing_col'])
        assert out['a'].dtype == float
        assert out['a'].iloc[0] == 1.0
        assert np.isnan(out['a'].iloc[1])
        assert df['a'].iloc[0] == '1'  # input untouched


class TestCoerceList:

    def test_list_passthrough(self):
        assert _coerce_list(['a', 'b']) == ['a', 'b']

    def test_string_split(self):
        assert _coerce_list('cases_low; cases_high,deaths') == ['cases_low', 'cases_high', 'deaths']

    def test_nested_list_flattened(self):
        assert _coerce_list([['a', 'b'], 'c']) == ['a', 'b', 'c']

    def test_other_returns_none(self):
        assert _coerce_list(None) is None
        assert _coerce_list(3) is None


class TestCoerceYears:

    def test_list(self):
        assert _coerce_years([2020, 2018, '2019', 2018]) == [2018, 2019, 2020]

    def test_range_mapping(self):
        assert _coerce_years({'start': 2018, 'stop': 2020}) == [2018, 2019, 2020]

    def test_scalar(self):
        assert _coerce_years(2015) == [2015]

    def test_reversed_range_raises(self):
        with pytest.raises(ValueError):
            _coerce_years({'start': 2020, 'stop': 2018})


class TestYearScaffolding:

    def test_year_index_inclusive(self):
        idx = _year_index(2000, 2003)
        assert list(idx) == [2000, 2001, 2002, 2003]
        assert idx.name == 'year'

    def test_year_index_rejects_reversed(self):
        with pytest.raises(ValueError):
            _year_index(2050, 2000)

    def test_total_ignores_nan(self):
        assert _total_or_nan(pd.Series([1.0, np.nan, 2.0])) == 3.0

    def test_total_all_missing_is_nan(self):
        """No observed value must not read as a zero total."""
        assert np.isnan(_total_or_nan(pd.Series([np.nan, np.nan])))
        assert np.isnan(_total_or_nan(pd.Series([], dtype=float)))


class TestColumnNames:

    def test_names(self):
        assert _scenario_col('cases_central') == 'cases_central_if_scenario'
        assert _averted_col('deaths_high') == 'deaths_high_averted'
        assert _cumulative_col('work_days_lost') == 'work_days_lost_averted_cumulative'
        assert _world_col('deaths_central') == 'world_deaths_central_averted'
