# src/data_loaders.py
import os
import re
import unicodedata
import yaml
import pandas as pd

from helpers import _require_columns, _to_numeric

BURDEN_COLUMNS = [
    "location", "year", "pop",
    "cases_low", "cases_central", "cases_high",
    "deaths_low", "deaths_central", "deaths_high",
]
BURDEN_VALUE_COLUMNS = BURDEN_COLUMNS[3:]
WPP_NAME_COL = "Region, subregion, country or area *"


def return_default_config():
    """
    Returns the default configuration dictionary
    """
    return {
        "paths": {
            "data_dir": "./data",
            "results_dir": "./results",
            "figures_dir": "./figures",
            "burden_xlsx": "./data/WMR2021_Annex5F.xlsx",
            "population_xlsx": "./data/WPP2019_POP_F01_1_TOTAL_POPULATION_BOTH_SEXES.xlsx",
            "country_codes_csv": "./data/country_codes.csv",
        },
        "diagnostics": {
            "print_checks": True,
        },
        "horizon": {"start_year": 2000, "end_year": 2050},
        "burden": {
            "skiprows": 3,
            "days_lost_per_case": 3,
        },
        "population": {
            "estimates_sheet": 0, "projections_sheet": 1,  # projections: UN "medium variant"
            "skiprows": 16, "first_year_col": 7,
            "name_col": WPP_NAME_COL,
            "units_multiplier": 1000,  # source is in thousands
            "exclude_labels": ["Less developed regions, excluding China"],
        },
        "extrapolation": {
            "reference_years": [2018, 2019, 2020],
            "quantities": [
                "cases_low", "cases_central", "cases_high",
                "deaths_low", "deaths_central", "deaths_high",
                "work_days_lost", "population",
            ],
            "note": "Estimated based on 2018-2020 values and population projections by the UN",
        },
        "scenario": {
            "name": "who_gts_2030",
            "reference_year": 2015,
            "ramp_start_year": 2020,
            "checkpoints": [
                {"year": 2025, "target_ratio": 0.25, "active": False},
                {"year": 2030, "target_ratio": 0.25, "active": True},
            ],
            "case_total_column": "cases_central",
            "death_total_column": "deaths_central",
            "case_quantities": ["cases_low", "cases_central", "cases_high", "work_days_lost"],
            "death_quantities": ["deaths_low", "deaths_central", "deaths_high"],
        },
        "checks": {
            "strict": False,
            "scenario_scale": 1000,
            "published_totals": [
                {"name": "WHO cases 2020 (millions)", "column": "cases_central",
                 "year": 2020, "expected": 241, "scale": 1_000_000},
                {"name": "WHO deaths 2020 (thousands)", "column": "deaths_central",
                 "year": 2020, "expected": 627, "scale": 1000},
                {"name": "UN world population 2020 (millions)", "column": "population",
                 "year": 2020, "expected": 7795, "scale": 1_000_000},
            ],
        },
        "comparators": {
            "labour": [
                {"location": "sweden", "labor_force": 5522000,
                 "annual_hours_per_worker": 1424, "hours_per_week": 36},
                {"location": "united states", "labor_force": 161204000,
                 "annual_hours_per_worker": 1767, "hours_per_week": 38.7},
                {"location": "uk", "labor_force": 34074000,
                 "annual_hours_per_worker": 1367, "hours_per_week": 36.3},
                {"location": "germany", "labor_force": 43517000,
                 "annual_hours_per_worker": 1332, "hours_per_week": 34.3},
                {"location": "nigeria", "labor_force": 60463000,
                 "annual_hours_per_worker": 1827.24, "hours_per_week": 40},
            ],
            "deaths": [
                {"location": "world", "outcome": "deaths from heart disease", "value": 17600000},
                {"location": "world", "outcome": "deaths from cancer", "value": 10000000},
                {"location": "world", "outcome": "deaths from lung cancer", "value": 1800000},
                {"location": "world", "outcome": "deaths from breast cancer", "value": 685000},
            ],
        },
        "figures": {
            "enabled": True,
            "window": {"start": 2020, "stop": 2042},
            "width": 8, "height": 8,
        },
    }

def _resolve(ROOT_DIR, p):
    """
    Resolve path p relative to ROOT_DIR if not absolute.
    """
    return os.path.abspath(os.path.join(ROOT_DIR, p))

def _deep_merge(dst, src):
    """
    Recursively merge src into dst
    """
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_merge(dst[k], v)
        else:
            dst[k] = v

def _load_config(ROOT_DIR: str, path: str):
    """
    Load YAML config if present; otherwise use defaults for both config and paths.
    Returns (cfg, PATHS)
    """
    cfg = return_default_config()
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as fh:
            user = yaml.safe_load(fh) or {}
        _deep_merge(cfg, user)
    else:
        print(f"[config] No config file at {path}; using built-in defaults.")

    PATHS = {key: _resolve(ROOT_DIR, p) for key, p in cfg["paths"].items()}
    return cfg, PATHS

# ------------------------------ burden (WMR annex) ------------------------------

def carry_labels_down(values) -> list:
    """
    Panel-format repair: a blank label means "same as the last non-blank label above".

    A single pass holding the last seen label; leading blanks stay None.
    """
    out = []
    current = None
    for v in values:
        blank = (not v.strip()) if isinstance(v, str) else bool(pd.isna(v))
        if not blank:
            current = v
        out.append(current)
    return out

_NON_ALNUM = re.compile(r"[^\w\s]|_")
_DIGITS = re.compile(r"\d+")

def clean_location_names(s: pd.Series) -> pd.Series:
    """
    Remove footnote markers from location labels: punctuation/symbols and digits.

    Labels are NFKC-normalized first so superscript markers ("Ethiopia²")
    become plain digits and are stripped with the rest.
    """
    def _clean(x):
        if not isinstance(x, str) and pd.isna(x):
            return None
        t = unicodedata.normalize("NFKC", str(x))
        t = _DIGITS.sub("", _NON_ALNUM.sub("", t))
        return re.sub(r"\s+", " ", t).strip()
    return s.map(_clean)

def add_work_days_lost(df: pd.DataFrame, days_lost_per_case: float) -> pd.DataFrame:
    """
    work_days_lost = cases_central * days_lost_per_case.

    The default of 3 days per case assumes one productive adult per case (the
    patient or a carer) and a weighted average over uncomplicated, severe and
    fatal episodes (range 1-7).
    """
    _require_columns(df, ["cases_central"], "burden table")
    out = df.copy()
    out["work_days_lost"] = out["cases_central"] * float(days_lost_per_case)
    return out

def read_burden_table(file_path: str, skiprows: int = 3) -> pd.DataFrame:
    """
    Read the WMR annex (estimated cases and deaths by country) with canonical names.
    """
    raw = pd.read_excel(file_path, skiprows=skiprows)
    if raw.shape[1] < len(BURDEN_COLUMNS):
        raise ValueError(
            f"Burden table {file_path} has {raw.shape[1]} columns; expected at least {len(BURDEN_COLUMNS)}."
        )
    raw = raw.iloc[:, :len(BURDEN_COLUMNS)].copy()
    raw.columns = BURDEN_COLUMNS
    return raw

def prepare_burden(raw: pd.DataFrame, resolver, days_lost_per_case: float = 3) -> pd.DataFrame:
    """
    Clean a raw burden table into one row per (iso3c, year).

    Steps: carry location labels down, strip footnotes, coerce numerics, resolve
    ISO3 codes (unresolved rows such as regional totals are dropped), add
    work days lost.
    """
    _require_columns(raw, ["location", "year"] + BURDEN_VALUE_COLUMNS, "burden table")
    df = raw.copy()
    df["location"] = carry_labels_down(df["location"].tolist())
    df["location"] = clean_location_names(df["location"])
    df = _to_numeric(df, ["year"] + BURDEN_VALUE_COLUMNS)
    df = df[df["year"].notna() & df["location"].notna()].copy()

    df["iso3c"] = df["location"].map(resolver.to_iso3)
    unresolved = sorted(df.loc[df["iso3c"].isna(), "location"].unique())
    if unresolved:
        print(f"[burden] Dropping {len(unresolved)} unresolved label(s): {', '.join(unresolved[:8])}"
              f"{' ...' if len(unresolved) > 8 else ''}")
    df = df[df["iso3c"].notna()].copy()
    df["year"] = df["year"].astype(int)

    dups = df.duplicated(subset=["iso3c", "year"], keep="first")
    if dups.any():
        print(f"[burden] Dropping {int(dups.sum())} duplicate (iso3c, year) row(s).")
        df = df[~dups]

    df = add_work_days_lost(df, days_lost_per_case)
    cols = ["iso3c", "location", "year"] + BURDEN_VALUE_COLUMNS + ["work_days_lost"]
    print(f"[burden] {len(df)} rows for {df['iso3c'].nunique()} countries.")
    return df[cols].reset_index(drop=True)

# ------------------------------ population (UN WPP) -----------------------------

def read_population_table(
    file_path: str,
    sheet,
    value_name: str,
    skiprows: int = 16,
    name_col: str = WPP_NAME_COL,
    first_year_col: int = 7,
    exclude_labels=None,
    units_multiplier: float = 1000,
) -> pd.DataFrame:
    """
    Read one WPP sheet and reshape it from one-column-per-year to long format.

    Returns columns ['location', 'year', value_name]; values are multiplied by
    `units_multiplier` (WPP reports thousands).
    """
    wide = pd.read_excel(file_path, sheet_name=sheet, skiprows=skiprows)
    return population_wide_to_long(
        wide, value_name, name_col=name_col, first_year_col=first_year_col,
        exclude_labels=exclude_labels, units_multiplier=units_multiplier,
    )

def population_wide_to_long(
    wide: pd.DataFrame,
    value_name: str,
    name_col: str = WPP_NAME_COL,
    first_year_col: int = 7,
    exclude_labels=None,
    units_multiplier: float = 1000,
) -> pd.DataFrame:
    if name_col not in wide.columns:
        raise KeyError(f"Could not find location column {name_col!r} in population table.")
    year_cols = list(wide.columns[first_year_col:])
    if not year_cols:
        raise ValueError("Population table has no year columns.")
    wide = wide[~wide[name_col].isin(exclude_labels or [])]
    long = wide.melt(id_vars=[name_col], value_vars=year_cols, var_name="year", value_name=value_name)
    long = long.rename(columns={name_col: "location"})
    long = _to_numeric(long, ["year", value_name])
    long[value_name] = long[value_name] * float(units_multiplier)
    return long[long["year"].notna()].reset_index(drop=True)

def prepare_population(long: pd.DataFrame, resolver, value_name: str) -> pd.DataFrame:
    """
    Resolve WPP locations to ISO3 and keep country-level (iso3c, year, value) rows.
    """
    _require_columns(long, ["location", "year", value_name], "population table")
    df = long.copy()
    df["iso3c"] = df["location"].map(resolver.to_iso3)
    df = df[df["iso3c"].notna() & df["year"].notna()].copy()
    df["year"] = df["year"].astype(int)
    dups = df.duplicated(subset=["iso3c", "year"], keep="first")
    if dups.any():
        print(f"[population] {value_name}: dropping {int(dups.sum())} duplicate (iso3c, year) row(s).")
        df = df[~dups]
    print(f"[population] {value_name}: {len(df)} rows for {df['iso3c'].nunique()} countries.")
    return df[["iso3c", "year", value_name]].reset_index(drop=True)

def load_all_data(paths: dict, cfg: dict, resolver) -> dict:
    """
    Loads and cleans the burden and population sources.

    Returns {'burden', 'estimates', 'projections'} frames keyed by (iso3c, year).
    """
    data_files = {
        "burden_xlsx": paths["burden_xlsx"],
        "population_xlsx": paths["population_xlsx"],
    }
    for name, path in data_files.items():
        if not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {path}")

    bcfg = cfg["burden"]
    burden = prepare_burden(
        read_burden_table(paths["burden_xlsx"], skiprows=int(bcfg["skiprows"])),
        resolver,
        days_lost_per_case=float(bcfg["days_lost_per_case"]),
    )

    pcfg = cfg["population"]
    common = dict(
        skiprows=int(pcfg["skiprows"]),
        name_col=pcfg["name_col"],
        first_year_col=int(pcfg["first_year_col"]),
        exclude_labels=list(pcfg.get("exclude_labels") or []),
        units_multiplier=float(pcfg["units_multiplier"]),
    )
    estimates = prepare_population(
        read_population_table(paths["population_xlsx"], pcfg["estimates_sheet"], "population_estimated", **common),
        resolver, "population_estimated",
    )
    projections = prepare_population(
        read_population_table(paths["population_xlsx"], pcfg["projections_sheet"], "population_projected", **common),
        resolver, "population_projected",
    )
    return {"burden": burden, "estimates": estimates, "projections": projections}
