# src/countries.py
"""
Country label -> ISO3 resolution.

Source tables label countries in several conventions ("Côte d'Ivoire¹",
"United Republic of Tanzania", "Bolivia (Plurinational State of)", "BOL", ...).
`CountryResolver` normalizes every label (accents stripped, punctuation removed,
upper case, single spaces) and looks it up in a CSV table with columns
`iso3c,name`. An ISO3 code may appear on several rows; the first row is its
canonical name, the others are aliases.

Regional aggregates ("African Region", "WORLD", ...) are deliberately absent
from the table and therefore resolve to None.
"""
from __future__ import annotations

import re
import unicodedata
import pandas as pd


def deaccent(s):
    if s is None:
        return None
    return "".join(c for c in unicodedata.normalize("NFKD", str(s)) if not unicodedata.combining(c))


def norm_name(s) -> str | None:
    """
    Normalization key shared by table entries and queries.
    """
    if s is None or (not isinstance(s, str) and pd.isna(s)):
        return None
    t = deaccent(s).upper()
    # apostrophes and hyphens vanish rather than split words: "Guinea-Bissau"
    # and a footnote-stripped "GuineaBissau" share one key
    t = t.replace("&", " AND ")
    t = re.sub(r"['’`\-‐–]", "", t)
    t = re.sub(r"[^A-Z0-9 ]", " ", t)
    t = re.sub(r"\s+", " ", t).strip()
    return t or None


class CountryResolver:
    """
    Resolve country names or ISO3 codes to canonical ISO3 codes.
    """

    def __init__(self, table: pd.DataFrame):
        if "iso3c" not in table.columns or "name" not in table.columns:
            raise KeyError("Country table must have 'iso3c' and 'name' columns.")
        self._by_key: dict[str, str] = {}
        self._names: dict[str, str] = {}
        for iso, name in zip(table["iso3c"], table["name"]):
            iso = str(iso).strip().upper()
            if len(iso) != 3:
                raise ValueError(f"Invalid ISO3 code in country table: {iso!r}")
            self._names.setdefault(iso, str(name).strip())
            key = norm_name(name)
            if key is None:
                continue
            prev = self._by_key.get(key)
            if prev is not None and prev != iso:
                raise ValueError(f"Ambiguous country label {name!r}: {prev} vs {iso}")
            self._by_key[key] = iso

    @classmethod
    def from_csv(cls, file_path: str) -> "CountryResolver":
        return cls(pd.read_csv(file_path, dtype=str, keep_default_na=False))

    def to_iso3(self, label) -> str | None:
        """
        ISO3 code for a country name or code; None when unresolved.
        """
        key = norm_name(label)
        if key is None:
            return None
        if len(key) == 3 and key in self._names:
            return key
        return self._by_key.get(key)

    def to_name(self, iso3) -> str | None:
        if iso3 is None or (not isinstance(iso3, str) and pd.isna(iso3)):
            return None
        return self._names.get(str(iso3).strip().upper())
