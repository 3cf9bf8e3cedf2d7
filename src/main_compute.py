# ------------------------------------------------------------------------------
# Malaria burden projection and eradication-scenario pipeline.
# - Merges WHO burden estimates with UN population estimates/projections
#   into one (iso3c, year) panel over 2000-2050.
# - Fills missing years from 2018-2020 anchors scaled by population change.
# - Applies the configured WHO-target scenario (case and death multiplier
#   curves) and computes averted cases, deaths and work days lost.
# - Adds world and cumulative averted series, runs cross-checks.
# - Writes, into results_dir:
#     * malaria_estimates.csv      (full panel)
#     * scenario_multipliers.csv   (yearly case/death multipliers)
#     * world_averted.csv          (world averted totals per year)
#     * checks.csv                 (cross-check results)
#     * comparables.csv            (static comparator statistics)
#   Outputs are written only once every stage has succeeded.
# ------------------------------------------------------------------------------
from __future__ import annotations

import os
import sys
import argparse
import pandas as pd

from data_loaders import _load_config, load_all_data
from countries import CountryResolver
from panel import merge_panel, add_country_names
from extrapolation import compute_anchors, fill_gaps
from scenarios import build_scenario_curves, apply_scenario
from aggregation import aggregate, world_series
from validation import run_checks, report_checks
from comparators import build_comparables
from helpers import _coerce_list, _coerce_years

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
CONFIG_PATH = os.path.join(ROOT_DIR, "config.yaml")

ID_COLUMNS = ["iso3c", "country", "location", "year"]


def run_pipeline(cfg: dict, data: dict, resolver=None) -> dict:
    """
    Compose the core stages over already-cleaned inputs.

    Parameters
    ----------
    cfg : dict
        Merged configuration (see data_loaders.return_default_config).
    data : dict
        {'burden', 'estimates', 'projections'} frames keyed by (iso3c, year).
    resolver : CountryResolver | None
        Used only to attach country names.

    Returns
    -------
    dict
        {'panel', 'curves', 'world', 'checks'} DataFrames
    """
    hz = cfg["horizon"]
    start, end = int(hz["start_year"]), int(hz["end_year"])
    ext = cfg["extrapolation"]
    ref_years = _coerce_years(ext["reference_years"])
    quantities = _coerce_list(ext["quantities"])
    scen = cfg["scenario"]
    case_qs = _coerce_list(scen["case_quantities"])
    death_qs = _coerce_list(scen["death_quantities"])

    panel = merge_panel(data["burden"], data["estimates"], data["projections"], year_range=(start, end))
    if resolver is not None:
        panel = add_country_names(panel, resolver)

    anchors = compute_anchors(panel, ref_years, quantities)
    panel = fill_gaps(panel, anchors, quantities, last_reference_year=max(ref_years), note=ext["note"])

    curves = build_scenario_curves(panel, scen, start, end)
    panel = apply_scenario(panel, curves, case_qs, death_qs)
    panel["case_multiplier"] = panel["year"].map(curves["case_multiplier"])
    panel["death_multiplier"] = panel["year"].map(curves["death_multiplier"])
    panel = aggregate(panel, case_qs + death_qs)

    checks_cfg = cfg.get("checks", {})
    checks = run_checks(panel, checks_cfg, scen)
    report_checks(
        checks,
        strict=bool(checks_cfg.get("strict", False)),
        verbose=bool(cfg.get("diagnostics", {}).get("print_checks", True)),
    )

    front = [c for c in ID_COLUMNS if c in panel.columns]
    panel = panel[front + [c for c in panel.columns if c not in front]]
    world = world_series(panel, case_qs + death_qs).reset_index()
    return {"panel": panel, "curves": curves.reset_index(), "world": world, "checks": checks}


def save_outputs(results: dict, comparables: pd.DataFrame, results_dir: str) -> dict:
    """
    Write all output tables; each file is staged and only moved into place once
    every table has been written.
    """
    os.makedirs(results_dir, exist_ok=True)
    tables = {
        "malaria_estimates.csv": results["panel"],
        "scenario_multipliers.csv": results["curves"],
        "world_averted.csv": results["world"],
        "checks.csv": results["checks"],
        "comparables.csv": comparables,
    }
    staged = {}
    try:
        for fname, df in tables.items():
            final = os.path.join(results_dir, fname)
            tmp = final + ".tmp"
            df.to_csv(tmp, index=False)
            staged[tmp] = final
    except Exception:
        for tmp in staged:
            if os.path.exists(tmp):
                os.remove(tmp)
        raise
    for tmp, final in staged.items():
        os.replace(tmp, final)
        print(f"[outputs] Wrote {final}")
    return {os.path.basename(f): f for f in staged.values()}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Malaria burden projection and eradication scenario.")
    parser.add_argument("--config", default=CONFIG_PATH, help="YAML config (defaults are used if absent)")
    parser.add_argument("--no-figures", action="store_true", help="skip chart rendering")
    args = parser.parse_args(argv)

    cfg, PATHS = _load_config(ROOT_DIR, args.config)
    resolver = CountryResolver.from_csv(PATHS["country_codes_csv"])
    data = load_all_data(PATHS, cfg, resolver)

    results = run_pipeline(cfg, data, resolver)
    comparables = build_comparables(cfg.get("comparators", {}))
    save_outputs(results, comparables, PATHS["results_dir"])

    if cfg.get("figures", {}).get("enabled", True) and not args.no_figures:
        from figures_static import plot_all
        for path in plot_all(results["panel"], comparables, PATHS["figures_dir"], cfg["figures"]):
            print(f"[figures] Wrote {path}")
    return results


if __name__ == "__main__":
    main(sys.argv[1:])
