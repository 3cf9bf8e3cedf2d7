# tests/test_extrapolation.py
"""
Test suite for extrapolation.py

Tests cover:
- Anchor means over the reference window
- Ratio projection of missing cells
- Missing-prerequisite behaviour (no anchor, no population)
- Estimated-row annotation
"""

import os
import sys

import pytest
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from extrapolation import (
    compute_anchors,
    fill_gaps,
    extrapolate,
    DEFAULT_NOTE,
)

Q = ['cases_central', 'population']


def _panel(rows):
    return pd.DataFrame(rows, columns=['iso3c', 'year', 'cases_central', 'population'])


class TestComputeAnchors:

    def test_mean_of_reference_years(self):
        """Values {10, 20, 30} over 2018-2020 give anchor 20."""
        panel = _panel([
            ('AAA', 2017, 1000.0, 1.0),
            ('AAA', 2018, 10.0, 100.0),
            ('AAA', 2019, 20.0, 100.0),
            ('AAA', 2020, 30.0, 100.0),
            ('AAA', 2021, np.nan, 120.0),
        ])
        anchors = compute_anchors(panel, quantities=Q)
        assert anchors.loc['AAA', 'cases_central'] == pytest.approx(20.0)
        assert anchors.loc['AAA', 'population'] == pytest.approx(100.0)

    def test_missing_reference_year(self):
        """With 2019 missing, anchor is the mean of the other two."""
        panel = _panel([
            ('AAA', 2018, 10.0, 100.0),
            ('AAA', 2019, np.nan, 100.0),
            ('AAA', 2020, 30.0, 100.0),
        ])
        anchors = compute_anchors(panel, quantities=Q)
        assert anchors.loc['AAA', 'cases_central'] == pytest.approx(20.0)

    def test_no_observations_gives_nan(self):
        panel = _panel([
            ('AAA', 2018, np.nan, 100.0),
            ('BBB', 2010, 5.0, 10.0),
        ])
        anchors = compute_anchors(panel, quantities=Q)
        assert np.isnan(anchors.loc['AAA', 'cases_central'])
        assert 'BBB' in anchors.index
        assert anchors.loc['BBB'].isna().all()

    def test_order_independent(self):
        rows = [
            ('AAA', 2018, 10.0, 100.0), ('BBB', 2019, 4.0, 40.0),
            ('AAA', 2020, 30.0, 100.0), ('BBB', 2018, 2.0, 20.0),
        ]
        a = compute_anchors(_panel(rows), quantities=Q)
        b = compute_anchors(_panel(rows[::-1]), quantities=Q)
        pd.testing.assert_frame_equal(a, b)

    def test_custom_window(self):
        panel = _panel([('AAA', 2015, 1.0, 1.0), ('AAA', 2016, 3.0, 1.0), ('AAA', 2018, 100.0, 1.0)])
        anchors = compute_anchors(panel, reference_years=[2015, 2016], quantities=Q)
        assert anchors.loc['AAA', 'cases_central'] == 2.0

    def test_empty_window_raises(self):
        with pytest.raises(ValueError):
            compute_anchors(_panel([('AAA', 2018, 1.0, 1.0)]), reference_years=[], quantities=Q)

    def test_missing_quantity_column(self):
        with pytest.raises(KeyError):
            compute_anchors(_panel([('AAA', 2018, 1.0, 1.0)]), quantities=['deaths_central'])


class TestFillGaps:

    def _anchors(self, cases=50.0, pop=100.0):
        return pd.DataFrame({'cases_central': [cases], 'population': [pop]},
                            index=pd.Index(['AAA'], name='iso3c'))

    def test_ratio_law(self):
        """anchor 50, anchor population 100, population 150 -> 75."""
        panel = _panel([('AAA', 2030, np.nan, 150.0)])
        out = fill_gaps(panel, self._anchors(), quantities=Q)
        assert out.loc[0, 'cases_central'] == pytest.approx(75.0)

    def test_observed_values_untouched(self):
        panel = _panel([('AAA', 2019, 42.0, 150.0)])
        out = fill_gaps(panel, self._anchors(), quantities=Q)
        assert out.loc[0, 'cases_central'] == 42.0

    def test_missing_population_stays_missing(self):
        panel = _panel([('AAA', 2030, np.nan, np.nan)])
        out = fill_gaps(panel, self._anchors(), quantities=Q)
        assert np.isnan(out.loc[0, 'cases_central'])
        assert np.isnan(out.loc[0, 'population'])

    def test_missing_anchor_stays_missing(self):
        panel = _panel([('AAA', 2030, np.nan, 150.0), ('ZZZ', 2030, np.nan, 150.0)])
        out = fill_gaps(panel, self._anchors(cases=np.nan), quantities=Q)
        assert out['cases_central'].isna().all()

    def test_missing_anchor_population_stays_missing(self):
        panel = _panel([('AAA', 2030, np.nan, 150.0)])
        out = fill_gaps(panel, self._anchors(pop=np.nan), quantities=Q)
        assert np.isnan(out.loc[0, 'cases_central'])

    def test_zero_anchor_population_not_infinite(self):
        panel = _panel([('AAA', 2030, np.nan, 150.0)])
        out = fill_gaps(panel, self._anchors(pop=0.0), quantities=Q)
        assert np.isnan(out.loc[0, 'cases_central'])

    def test_fills_historic_gaps_too(self):
        panel = _panel([('AAA', 2005, np.nan, 50.0)])
        out = fill_gaps(panel, self._anchors(), quantities=Q)
        assert out.loc[0, 'cases_central'] == pytest.approx(25.0)

    def test_note_marks_years_after_window(self):
        panel = _panel([('AAA', 2020, 1.0, 100.0), ('AAA', 2021, np.nan, 100.0)])
        out = fill_gaps(panel, self._anchors(), quantities=Q, last_reference_year=2020)
        assert pd.isna(out.loc[0, 'note'])
        assert out.loc[1, 'note'] == DEFAULT_NOTE

    def test_input_not_mutated(self):
        panel = _panel([('AAA', 2030, np.nan, 150.0)])
        before = panel.copy()
        fill_gaps(panel, self._anchors(), quantities=Q)
        pd.testing.assert_frame_equal(panel, before)

    def test_anchors_need_population(self):
        panel = _panel([('AAA', 2030, np.nan, 150.0)])
        with pytest.raises(KeyError):
            fill_gaps(panel, self._anchors().drop(columns=['population']), quantities=Q)


class TestExtrapolate:

    def test_end_to_end_single_country(self):
        panel = _panel([
            ('AAA', 2018, 40.0, 80.0),
            ('AAA', 2019, 50.0, 100.0),
            ('AAA', 2020, 60.0, 120.0),
            ('AAA', 2030, np.nan, 200.0),
        ])
        out = extrapolate(panel, quantities=Q)
        # anchor cases 50, anchor population 100
        assert out.loc[3, 'cases_central'] == pytest.approx(100.0)
        assert 'cases_central_in_2020' not in out.columns
        assert out.loc[3, 'note'] == DEFAULT_NOTE
        assert pd.isna(out.loc[2, 'note'])
