# src/extrapolation.py
"""
Population-ratio extrapolation of the burden panel.

For each country, the mean of every tracked quantity over a reference window
(2018-2020 by default) is the anchor. A missing cell is then imputed as

    anchor[q] * population[year] / anchor[population]

i.e. burden is assumed to scale linearly with population relative to the
reference window. This is a fixed heuristic, not an epidemiological model: it
ignores transmission dynamics, interventions and policy change.
"""
from __future__ import annotations

import numpy as np
import pandas as pd

from helpers import _require_columns

DEFAULT_REFERENCE_YEARS = (2018, 2019, 2020)
DEFAULT_QUANTITIES = [
    "cases_low", "cases_central", "cases_high",
    "deaths_low", "deaths_central", "deaths_high",
    "work_days_lost", "population",
]
DEFAULT_NOTE = "Estimated based on 2018-2020 values and population projections by the UN"


def compute_anchors(
    panel: pd.DataFrame,
    reference_years=DEFAULT_REFERENCE_YEARS,
    quantities=None,
) -> pd.DataFrame:
    """
    Per-country mean of each quantity over `reference_years`.

    Parameters
    ----------
    panel : pd.DataFrame
        Must contain 'iso3c', 'year' and every column in `quantities`.
    reference_years : Iterable[int]
        Years averaged into the anchor.
    quantities : list[str] | None
        Columns to anchor; 'population' must be included for `fill_gaps`.

    Returns
    -------
    pd.DataFrame
        Indexed by iso3c (every country present in `panel`), one column per
        quantity. NaN where the country has no observed value in the window.
    """
    quantities = list(quantities or DEFAULT_QUANTITIES)
    _require_columns(panel, ["iso3c", "year"] + quantities, "panel")
    years = sorted({int(y) for y in reference_years})
    if not years:
        raise ValueError("reference_years must not be empty.")

    window = panel[panel["year"].isin(years)]
    anchors = window.groupby("iso3c")[quantities].mean()
    entities = pd.Index(sorted(panel["iso3c"].dropna().unique()), name="iso3c")
    return anchors.reindex(entities).astype(float)


def fill_gaps(
    panel: pd.DataFrame,
    anchors: pd.DataFrame,
    quantities=None,
    *,
    last_reference_year: int = max(DEFAULT_REFERENCE_YEARS),
    note: str = DEFAULT_NOTE,
) -> pd.DataFrame:
    """
    Impute missing cells as anchor value times population change.

    A cell stays NaN when the country has no anchor for that quantity, no
    anchor population, or no population for that year. Rows after
    `last_reference_year` get `note` in the 'note' column; the annotation is
    metadata only.

    Returns a new frame; `panel` is not mutated.
    """
    quantities = list(quantities or DEFAULT_QUANTITIES)
    _require_columns(panel, ["iso3c", "year", "population"] + quantities, "panel")
    if "population" not in anchors.columns:
        raise KeyError("anchors must include a 'population' column.")

    out = panel.copy()
    anchor_pop = out["iso3c"].map(anchors["population"])
    population_change = out["population"] / anchor_pop
    population_change = population_change.replace([np.inf, -np.inf], np.nan)

    n_filled = 0
    for q in quantities:
        if q not in anchors.columns:
            continue
        missing = out[q].isna()
        imputed = out["iso3c"].map(anchors[q]) * population_change
        out.loc[missing, q] = imputed[missing]
        n_filled += int((missing & imputed.notna()).sum())

    out["note"] = np.where(out["year"] > int(last_reference_year), note, None)
    print(f"[extrapolation] Filled {n_filled} cells from {int(last_reference_year)} anchors.")
    return out


def extrapolate(panel: pd.DataFrame, reference_years=DEFAULT_REFERENCE_YEARS, quantities=None, note: str = DEFAULT_NOTE) -> pd.DataFrame:
    """
    compute_anchors + fill_gaps. Anchors are not kept in the result.
    """
    anchors = compute_anchors(panel, reference_years, quantities)
    return fill_gaps(
        panel, anchors, quantities,
        last_reference_year=max(int(y) for y in reference_years), note=note,
    )
