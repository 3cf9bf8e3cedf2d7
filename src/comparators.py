# src/comparators.py
"""
Static comparator statistics used to put averted totals in context.

Labour figures: OECD labour force and average annual hours
(https://data.oecd.org/emp/labour-force.htm, https://stats.oecd.org/Index.aspx?DataSetCode=AVE_HRS);
Nigeria from Statista and Our World in Data. Death tolls: WHO cancer fact
sheet and global heart disease estimates (2020).
"""
import pandas as pd


def work_days_per_year(labor_force: float, annual_hours_per_worker: float, hours_per_week: float) -> float:
    """
    Total days worked in a year, with a day = weekly hours on the main job / 5.
    """
    hours_per_day = float(hours_per_week) / 5.0
    if hours_per_day <= 0:
        raise ValueError(f"hours_per_week must be positive, got {hours_per_week!r}")
    return float(labor_force) * float(annual_hours_per_worker) / hours_per_day


def build_comparables(comparators_cfg: dict) -> pd.DataFrame:
    """
    Comparator table with columns ['location', 'outcome', 'value'].
    """
    rows = []
    for rec in comparators_cfg.get("labour", []) or []:
        rows.append({
            "location": rec["location"],
            "outcome": "days worked",
            "value": work_days_per_year(rec["labor_force"], rec["annual_hours_per_worker"], rec["hours_per_week"]),
        })
    for rec in comparators_cfg.get("deaths", []) or []:
        rows.append({"location": rec["location"], "outcome": rec["outcome"], "value": float(rec["value"])})
    return pd.DataFrame(rows, columns=["location", "outcome", "value"])


def comparator_value(comparables: pd.DataFrame, location: str, outcome: str) -> float:
    """
    Look up one comparator; KeyError if absent.
    """
    hit = comparables[(comparables["location"] == location) & (comparables["outcome"] == outcome)]
    if hit.empty:
        raise KeyError(f"No comparator for ({location!r}, {outcome!r})")
    return float(hit["value"].iloc[0])
