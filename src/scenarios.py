# src/scenarios.py
"""
Policy-target scenario: yearly multipliers and their application to the panel.

A scenario states targets such as "in 2030, cases are 25% of their 2015 level".
Because the extrapolated baseline already drifts with population, the
multiplier needed at a checkpoint year is the *implied ratio*

    target_ratio / (total[checkpoint_year] / total[reference_year])

Implied ratios become knots of a yearly curve: 1.0 at the ramp start year,
linear between knots, 1.0 before the ramp start and flat after the last knot.
Cases (and work days lost, which are proportional to cases) and deaths get
independent curves because their trajectories differ.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from helpers import (
    _require_columns, _year_index, _scenario_col, _averted_col,
)

DEFAULT_CASE_QUANTITIES = ["cases_low", "cases_central", "cases_high", "work_days_lost"]
DEFAULT_DEATH_QUANTITIES = ["deaths_low", "deaths_central", "deaths_high"]


# ------------------------------- checkpoints ---------------------------------

def _coerce_checkpoints(checkpoints) -> List[Tuple[int, float, bool]]:
    """
    Normalize checkpoints to a year-sorted list of (year, target_ratio, active).

    Accepts dicts {'year', 'target_ratio', 'active'(optional, default True)},
    (year, ratio) / (year, ratio, active) tuples, or a {year: ratio} mapping.
    """
    if isinstance(checkpoints, dict):
        checkpoints = list(checkpoints.items())
    out = []
    for cp in checkpoints or []:
        if isinstance(cp, dict):
            year, ratio, active = cp["year"], cp["target_ratio"], cp.get("active", True)
        elif len(cp) == 2:
            (year, ratio), active = cp, True
        else:
            year, ratio, active = cp
        ratio = float(ratio)
        if not np.isfinite(ratio) or ratio <= 0:
            raise ValueError(f"target_ratio must be a positive number, got {ratio!r} for {year}.")
        out.append((int(year), ratio, bool(active)))
    years = [y for y, _, _ in out]
    if len(set(years)) != len(years):
        raise ValueError(f"Duplicate checkpoint years: {years}")
    return sorted(out)


def yearly_totals(panel: pd.DataFrame, column: str) -> pd.Series:
    """
    Sum of `column` across countries for each year; NaN for years with no data.
    """
    _require_columns(panel, ["year", column], "panel")
    return panel.groupby("year")[column].sum(min_count=1)


def implied_ratios(totals: pd.Series, reference_year: int, checkpoints) -> Dict[int, float]:
    """
    Multiplier required at each active checkpoint to hit its target.

    Parameters
    ----------
    totals : pd.Series
        Yearly totals of the baseline (already extrapolated) quantity.
    reference_year : int
        Year the targets are expressed against.
    checkpoints : see `_coerce_checkpoints`.

    Returns
    -------
    dict[int, float]
        {year: implied ratio}. Inactive checkpoints are omitted; a checkpoint
        whose own or reference total is zero/missing maps to NaN.
    """
    ref = float(totals.get(int(reference_year), np.nan))
    out: Dict[int, float] = {}
    for year, target, active in _coerce_checkpoints(checkpoints):
        if not active:
            continue
        at = float(totals.get(year, np.nan))
        if not (np.isfinite(ref) and np.isfinite(at)) or ref == 0 or at == 0:
            out[year] = np.nan
            continue
        out[year] = target / (at / ref)
    return out


# ----------------------------- multiplier curves -----------------------------

def build_multiplier_curve(
    baseline_year: int,
    knots,
    horizon_start: int,
    horizon_end: int,
) -> pd.Series:
    """
    Dense year -> multiplier curve.

    Rules
    -----
    - (baseline_year, 1.0) is an implicit knot; years before it get 1.0.
    - Linear interpolation by year between knots. A NaN knot between defined
      knots is skipped (interpolation spans its defined neighbours).
    - After the last knot the curve holds the last knot's value. If the last
      knot(s) are NaN, the curve is NaN from the last defined knot onwards.

    Parameters
    ----------
    baseline_year : int
    knots : Mapping[int, float] | Iterable[tuple[int, float]]
        Knots after `baseline_year`.
    horizon_start, horizon_end : int
        Inclusive range of years returned.

    Returns
    -------
    pd.Series
        Indexed by year (name 'year').
    """
    pts = dict(knots.items() if hasattr(knots, "items") else knots)
    pts = {int(y): float(v) for y, v in pts.items()}
    early = [y for y in pts if y <= int(baseline_year)]
    if early:
        raise ValueError(f"Knot years {sorted(early)} must be after baseline_year {baseline_year}.")

    pts[int(baseline_year)] = 1.0
    knot_s = pd.Series(pts, dtype=float).sort_index()
    last_knot = int(knot_s.index[-1])

    lo = min(int(horizon_start), int(baseline_year))
    hi = max(int(horizon_end), last_knot)
    curve = knot_s.reindex(_year_index(lo, hi))
    curve = curve.interpolate(method="index", limit_area="inside")

    years = curve.index
    curve[years < int(baseline_year)] = 1.0
    curve[years > last_knot] = curve.loc[last_knot]
    return curve.loc[int(horizon_start):int(horizon_end)].rename("multiplier")


def build_scenario_curves(
    panel: pd.DataFrame,
    scenario: dict,
    horizon_start: int,
    horizon_end: int,
) -> pd.DataFrame:
    """
    Case and death multiplier curves for one scenario definition.

    `scenario` keys: reference_year, ramp_start_year (defaults to
    reference_year), checkpoints, case_total_column, death_total_column.

    Returns
    -------
    pd.DataFrame
        Indexed by year with columns 'case_multiplier' and 'death_multiplier'.
    """
    ref_year = int(scenario["reference_year"])
    ramp_start = int(scenario.get("ramp_start_year") or ref_year)
    checkpoints = scenario.get("checkpoints", [])

    curves = {}
    for label, col in (
        ("case_multiplier", scenario.get("case_total_column", "cases_central")),
        ("death_multiplier", scenario.get("death_total_column", "deaths_central")),
    ):
        ratios = implied_ratios(yearly_totals(panel, col), ref_year, checkpoints)
        shown = ", ".join(f"{y}: {r:.4f}" for y, r in ratios.items()) or "none"
        print(f"[scenario] {label} implied ratios vs {ref_year} ({col}): {shown}")
        curves[label] = build_multiplier_curve(ramp_start, ratios, horizon_start, horizon_end)
    return pd.DataFrame(curves)


# ------------------------------ application ----------------------------------

def apply_scenario(
    panel: pd.DataFrame,
    curves: pd.DataFrame,
    case_quantities=None,
    death_quantities=None,
) -> pd.DataFrame:
    """
    Add '<q>_if_scenario' and '<q>_averted' columns.

    '<q>_if_scenario' = <q> * multiplier[year] (case curve for case-like
    quantities, death curve for death-like ones); '<q>_averted' = <q> minus
    the scenario value and may be negative. A missing quantity or missing
    multiplier leaves both derived cells NaN.
    """
    case_quantities = list(case_quantities or DEFAULT_CASE_QUANTITIES)
    death_quantities = list(death_quantities or DEFAULT_DEATH_QUANTITIES)
    overlap = set(case_quantities) & set(death_quantities)
    if overlap:
        raise ValueError(f"Quantities cannot follow both curves: {sorted(overlap)}")
    if "population" in case_quantities or "population" in death_quantities:
        raise ValueError("population is not subject to the scenario.")
    _require_columns(panel, ["year"] + case_quantities + death_quantities, "panel")
    _require_columns(curves, ["case_multiplier", "death_multiplier"], "scenario curves")

    out = panel.copy()
    for curve_col, qs in (("case_multiplier", case_quantities), ("death_multiplier", death_quantities)):
        m = out["year"].map(curves[curve_col])
        for q in qs:
            out[_scenario_col(q)] = out[q] * m
            out[_averted_col(q)] = out[q] - out[_scenario_col(q)]
    return out
