# src/aggregation.py
import pandas as pd

from helpers import _require_columns, _averted_col, _cumulative_col, _world_col

DEFAULT_AGGREGATE_QUANTITIES = [
    "cases_low", "cases_central", "cases_high",
    "deaths_low", "deaths_central", "deaths_high",
    "work_days_lost",
]


def aggregate(panel: pd.DataFrame, quantities=None) -> pd.DataFrame:
    """
    Add world-level and cumulative columns derived from '<q>_averted'.

    - 'world_<q>_averted': sum across countries for the row's year. Missing
      values count as zero in the sum only.
    - '<q>_averted_cumulative': running total per country over ascending years;
      a missing year adds nothing and does not reset the total.

    The returned frame is sorted by (iso3c, year).
    """
    quantities = list(quantities or DEFAULT_AGGREGATE_QUANTITIES)
    averted = [_averted_col(q) for q in quantities]
    _require_columns(panel, ["iso3c", "year"] + averted, "panel")

    out = panel.sort_values(["iso3c", "year"], kind="mergesort").reset_index(drop=True)
    for q, col in zip(quantities, averted):
        out[_world_col(q)] = out.groupby("year")[col].transform("sum")
        out[_cumulative_col(q)] = out[col].fillna(0.0).groupby(out["iso3c"]).cumsum()
    return out


def world_series(panel: pd.DataFrame, quantities=None) -> pd.DataFrame:
    """
    One row per year with the world averted totals (for tables and charts).
    """
    quantities = list(quantities or DEFAULT_AGGREGATE_QUANTITIES)
    cols = [_world_col(q) for q in quantities]
    _require_columns(panel, ["year"] + cols, "aggregated panel")
    return panel.groupby("year")[cols].first().sort_index()
