# src/validation.py
"""
Cross-checks of the panel against published totals and scenario targets.

Checks never alter data. Each returns a `CheckResult`; `report_checks` prints
them and, in strict mode, raises ValueError listing the failures.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import List

import numpy as np
import pandas as pd

from helpers import _require_columns, _scenario_col, _total_or_nan
from scenarios import _coerce_checkpoints


@dataclass
class CheckResult:
    name: str
    expected: float
    observed: float
    passed: bool


def check_published_total(
    panel: pd.DataFrame,
    column: str,
    year: int,
    expected: float,
    scale: float = 1.0,
    name: str | None = None,
) -> CheckResult:
    """
    round(sum(column at year) / scale) == expected.

    A year with no observed values fails (observed is NaN).
    """
    _require_columns(panel, ["year", column], "panel")
    total = _total_or_nan(panel.loc[panel["year"] == int(year), column])
    observed = float(np.round(total / float(scale))) if np.isfinite(total) else np.nan
    return CheckResult(
        name=name or f"{column} {year}",
        expected=float(expected),
        observed=observed,
        passed=bool(np.isfinite(observed) and observed == float(expected)),
    )


def check_scenario_targets(panel: pd.DataFrame, scenario: dict, scale: float = 1000) -> List[CheckResult]:
    """
    For every active checkpoint: scenario total at the checkpoint year equals
    target_ratio times the baseline total at the reference year, both rounded
    to `scale` units. Checked for the case and death total columns.
    """
    ref_year = int(scenario["reference_year"])
    results = []
    for col in (scenario.get("case_total_column", "cases_central"),
                scenario.get("death_total_column", "deaths_central")):
        scol = _scenario_col(col)
        _require_columns(panel, ["year", col, scol], "panel")
        ref_total = _total_or_nan(panel.loc[panel["year"] == ref_year, col])
        for year, target, active in _coerce_checkpoints(scenario.get("checkpoints", [])):
            if not active:
                continue
            got = _total_or_nan(panel.loc[panel["year"] == year, scol])
            exp = float(np.round(ref_total * target / scale)) if np.isfinite(ref_total) else np.nan
            obs = float(np.round(got / scale)) if np.isfinite(got) else np.nan
            results.append(CheckResult(
                name=f"{scol} {year} = {target:g} x {col} {ref_year}",
                expected=exp,
                observed=obs,
                passed=bool(np.isfinite(exp) and np.isfinite(obs) and exp == obs),
            ))
    return results


def run_checks(panel: pd.DataFrame, checks_cfg: dict, scenario: dict | None = None) -> pd.DataFrame:
    """
    Run the configured published-total checks (on the baseline columns) and,
    when `scenario` is given, the scenario target checks.

    Returns
    -------
    pd.DataFrame
        Columns ['name', 'expected', 'observed', 'passed'].
    """
    results: List[CheckResult] = []
    for entry in checks_cfg.get("published_totals", []) or []:
        results.append(check_published_total(
            panel, entry["column"], entry["year"], entry["expected"],
            scale=entry.get("scale", 1.0), name=entry.get("name"),
        ))
    if scenario is not None:
        results.extend(check_scenario_targets(panel, scenario, scale=checks_cfg.get("scenario_scale", 1000)))
    return pd.DataFrame([asdict(r) for r in results], columns=["name", "expected", "observed", "passed"])


def report_checks(results: pd.DataFrame, *, strict: bool = False, verbose: bool = True) -> pd.DataFrame:
    """
    Print every check; raise ValueError on any failure when `strict`.
    """
    if verbose:
        for r in results.itertuples(index=False):
            status = "PASS" if r.passed else "FAIL"
            print(f"[checks] {status}: {r.name} (expected {r.expected:g}, observed {r.observed:g})")
    failed = results[~results["passed"].astype(bool)]
    if len(failed):
        msg = f"{len(failed)} of {len(results)} cross-check(s) failed: " + "; ".join(failed["name"])
        if strict:
            raise ValueError(msg)
        print(f"[checks] Warning: {msg}")
    return results
