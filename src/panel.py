# src/panel.py
"""
Panel construction: one row per (iso3c, year).

The burden table and the two population tables arrive already cleaned and
keyed by ISO3 code and integer year. Population estimates and projections are
coalesced into a single `population` column (estimate wins), which is then
outer-joined against the burden observations and restricted to the analysis
horizon.
"""
from __future__ import annotations

import pandas as pd

from helpers import _require_columns

PANEL_KEYS = ["iso3c", "year"]


def _check_unique_keys(df: pd.DataFrame, where: str) -> None:
    dups = df.duplicated(subset=PANEL_KEYS, keep=False)
    if dups.any():
        sample = df.loc[dups, PANEL_KEYS].drop_duplicates().head(5).to_dict("records")
        raise ValueError(f"Duplicate (iso3c, year) keys in {where}: {sample}")


def merge_population(
    estimates: pd.DataFrame,
    projections: pd.DataFrame,
    *,
    estimate_col: str = "population_estimated",
    projection_col: str = "population_projected",
) -> pd.DataFrame:
    """
    Coalesce UN estimates and projections into one population series.

    Parameters
    ----------
    estimates, projections : pd.DataFrame
        Columns ['iso3c', 'year', <value column>].

    Returns
    -------
    pd.DataFrame
        Columns ['iso3c', 'year', 'population']; the estimate is used wherever it
        exists, the projection only where the estimate is missing. Pairs with
        neither are dropped.
    """
    _require_columns(estimates, PANEL_KEYS + [estimate_col], "population estimates")
    _require_columns(projections, PANEL_KEYS + [projection_col], "population projections")
    _check_unique_keys(estimates, "population estimates")
    _check_unique_keys(projections, "population projections")

    pop = pd.merge(
        estimates[PANEL_KEYS + [estimate_col]],
        projections[PANEL_KEYS + [projection_col]],
        on=PANEL_KEYS, how="outer",
    )
    pop["population"] = pop[estimate_col].astype(float).combine_first(pop[projection_col].astype(float))
    pop = pop[pop["population"].notna()]
    return pop[PANEL_KEYS + ["population"]].sort_values(PANEL_KEYS).reset_index(drop=True)


def merge_panel(
    burden: pd.DataFrame,
    estimates: pd.DataFrame,
    projections: pd.DataFrame,
    year_range: tuple[int, int] = (2000, 2050),
) -> pd.DataFrame:
    """
    Full outer join of coalesced population against burden observations.

    Rows present on only one side are kept with the other side's fields NaN.
    Years outside `year_range` (inclusive) are excluded. Inputs are not mutated.
    """
    _require_columns(burden, PANEL_KEYS, "burden observations")
    _check_unique_keys(burden, "burden observations")
    start, end = int(year_range[0]), int(year_range[1])
    if end < start:
        raise ValueError(f"Invalid year range: {year_range}")

    pop = merge_population(estimates, projections)
    burden = burden.drop(columns=["population", "pop"], errors="ignore")

    panel = pd.merge(burden, pop, on=PANEL_KEYS, how="outer")
    panel["year"] = panel["year"].astype(int)
    panel = panel[panel["year"].between(start, end)]
    panel = panel.sort_values(PANEL_KEYS).reset_index(drop=True)
    print(f"[panel] {len(panel)} rows, {panel['iso3c'].nunique()} countries, years {start}-{end}.")
    return panel


def add_country_names(panel: pd.DataFrame, resolver) -> pd.DataFrame:
    """
    Attach the canonical country name for each ISO3 code.
    """
    out = panel.copy()
    out["country"] = out["iso3c"].map(resolver.to_name)
    return out
