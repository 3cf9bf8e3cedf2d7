# src/helpers.py
"""
Small shared utilities: required-column checks, numeric coercion, config
list/year coercion, the dense year index and the names of derived columns
(`<q>_if_scenario`, `<q>_averted`, `<q>_averted_cumulative`, `world_<q>_averted`).
"""
from __future__ import annotations

import numpy as np
import pandas as pd

# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

def _require_columns(df: pd.DataFrame, cols, where: str = "frame") -> None:
    """
    Raise KeyError naming every column of `cols` absent from `df`.
    """
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(f"Missing column(s) {missing} in {where}.")


def _to_numeric(df: pd.DataFrame, cols) -> pd.DataFrame:
    """
    Return a copy of `df` with `cols` coerced to float; unparseable cells become NaN.
    """
    out = df.copy()
    for c in cols:
        if c in out.columns:
            out[c] = pd.to_numeric(out[c], errors="coerce").astype(float)
    return out


# ---------------------------------------------------------------------------
# List / string coercions for config-like values
# ---------------------------------------------------------------------------

def _coerce_list(x):
    """
    Coerce input to a flat list of strings.

    Rules
    -----
    - If `x` is a list, flatten one level; split any string items on ';' or ','.
    - If `x` is a string, split on ';' or ',' and strip.
    - Otherwise return None (caller should fall back to project defaults).

    Parameters
    ----------
    x : Any

    Returns
    -------
    list[str] | None
    """
    if isinstance(x, (list, tuple)):
        flat: list[str] = []
        for it in x:
            if isinstance(it, (list, tuple)):
                flat.extend(str(s) for s in it)
            elif isinstance(it, str) and (";" in it or "," in it):
                flat.extend(
                    [s.strip() for s in it.replace(",", ";").split(";") if s.strip()]
                )
            else:
                flat.append(str(it))
        return flat
    if isinstance(x, str):
        if ";" in x or "," in x:
            return [s.strip() for s in x.replace(",", ";").split(";") if s.strip()]
        return [x.strip()]
    return None


def _coerce_years(x) -> list[int]:
    """
    Coerce a config value into a sorted list of unique integer years.

    Accepts a list of years, a single year, or a mapping {"start": a, "stop": b}
    (inclusive on both ends).
    """
    if isinstance(x, dict):
        start, stop = int(x["start"]), int(x["stop"])
        if stop < start:
            raise ValueError(f"Year range stop ({stop}) precedes start ({start}).")
        return list(range(start, stop + 1))
    if isinstance(x, (list, tuple, set)):
        return sorted({int(float(v)) for v in x})
    return [int(float(x))]


# ---------------------------------------------------------------------------
# Year scaffolding / totals
# ---------------------------------------------------------------------------

def _year_index(start: int, end: int) -> pd.Index:
    """Inclusive integer year index [start, end]."""
    if end < start:
        raise ValueError(f"Horizon end ({end}) precedes start ({start}).")
    return pd.Index(np.arange(int(start), int(end) + 1), name="year")


def _total_or_nan(s: pd.Series) -> float:
    """
    Sum ignoring NaN; return NaN (not 0) when no value is observed.
    """
    return float(s.sum(min_count=1))


# ---------------------------------------------------------------------------
# Derived column naming
# ---------------------------------------------------------------------------

SCENARIO_SUFFIX = "_if_scenario"
AVERTED_SUFFIX = "_averted"
CUMULATIVE_SUFFIX = "_averted_cumulative"


def _scenario_col(q: str) -> str:
    return f"{q}{SCENARIO_SUFFIX}"


def _averted_col(q: str) -> str:
    return f"{q}{AVERTED_SUFFIX}"


def _cumulative_col(q: str) -> str:
    return f"{q}{CUMULATIVE_SUFFIX}"


def _world_col(q: str) -> str:
    return f"world_{q}{AVERTED_SUFFIX}"
