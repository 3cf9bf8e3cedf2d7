# tests/test_figures_static.py
"""
Smoke tests for figures_static.py (Agg backend, files written to a tmp dir).
"""

import os
import sys

import pytest
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from figures_static import _stack, plot_all
from comparators import build_comparables
from data_loaders import return_default_config


def _panel():
    rows = []
    for iso, k in (('AAA', 1.0), ('BBB', 2.0)):
        cum_d = cum_w = 0.0
        for y in range(2018, 2031):
            d = k * max(y - 2020, 0)
            w = 30 * d
            cum_d += d
            cum_w += w
            rows.append({
                'iso3c': iso, 'year': y,
                'deaths_central': 10 * k, 'deaths_central_if_scenario': 10 * k - d,
                'deaths_central_averted': d, 'work_days_lost_averted': w,
                'deaths_central_averted_cumulative': cum_d, 'work_days_lost_averted_cumulative': cum_w,
            })
    return pd.DataFrame(rows)


class TestStack:

    def test_bands_stack_across_countries(self):
        panel = _panel()
        panel.loc[0, 'deaths_central'] = np.nan
        years, lower, upper = _stack(panel, 'deaths_central', (2018, 2020))
        assert list(years) == [2018, 2019, 2020]
        assert lower[:, 0].tolist() == [0.0, 0.0, 0.0]
        # NaN counted as zero
        assert upper[0].tolist() == [0.0, 20.0]
        assert upper[1].tolist() == [10.0, 30.0]
        np.testing.assert_array_equal(lower[:, 1], upper[:, 0])

    def test_scale(self):
        _, _, upper = _stack(_panel(), 'deaths_central', (2018, 2018), scale=-0.5)
        assert upper[0].tolist() == [-5.0, -15.0]


class TestPlotAll:

    def test_writes_three_charts(self, tmp_path):
        cfg = return_default_config()['figures']
        cfg['window'] = {'start': 2020, 'stop': 2030}
        comparables = build_comparables(return_default_config()['comparators'])
        paths = plot_all(_panel(), comparables, str(tmp_path / 'figs'), cfg)
        assert [os.path.basename(p) for p in paths] == [
            'cumulative_impact.png', 'impact.png', 'eradication_vs_current_levels.png',
        ]
        for p in paths:
            assert os.path.getsize(p) > 0

    def test_missing_comparator_raises(self, tmp_path):
        cfg = return_default_config()['figures']
        comparables = build_comparables({})
        with pytest.raises(KeyError):
            plot_all(_panel(), comparables, str(tmp_path), cfg)
