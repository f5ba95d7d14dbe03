from __future__ import annotations

from pathlib import Path

import pandas as pd

KEY_COLUMNS = ("Year", "Age")


def _require_columns(table: pd.DataFrame, required) -> None:
    missing_cols = [c for c in required if c not in table.columns]
    if missing_cols:
        raise ValueError(f"rate table is missing columns: {missing_cols}")


def _parse_age(age: pd.Series) -> pd.Series:
    # open age groups such as "110+" are kept at their lower bound
    as_text = age.astype(str).str.strip().str.rstrip("+")
    parsed = pd.to_numeric(as_text, errors="coerce")
    if parsed.isna().any():
        bad = age[parsed.isna()].iloc[0]
        raise ValueError(f"Age column has a non-integer entry: {bad!r}")
    return parsed.astype(int)


def clean_rate_table(table: pd.DataFrame) -> pd.DataFrame:
    """
    Validate a wide rate table and normalise its dtypes.

    Year and Age become integers; every other column is a rate column,
    coerced to float with non-numeric entries ('.', blanks) as NaN.
    """
    out = table.copy()
    out.columns = [str(c).strip() for c in out.columns]
    _require_columns(out, KEY_COLUMNS)

    year = pd.to_numeric(out["Year"], errors="coerce")
    if year.isna().any():
        raise ValueError("Year column has missing or non-numeric entries")
    out["Year"] = year.astype(int)
    out["Age"] = _parse_age(out["Age"])

    for col in rate_columns(out):
        out[col] = pd.to_numeric(out[col], errors="coerce").astype(float)
    return out


def load_rate_table(source: str | Path) -> pd.DataFrame:
    """
    Read a Year/Age/rates CSV from a local path or URL.
    """
    df = pd.read_csv(source, skipinitialspace=True)
    return clean_rate_table(df)


def rate_columns(table: pd.DataFrame) -> list[str]:
    return [c for c in table.columns if c not in KEY_COLUMNS]


def to_observations(table: pd.DataFrame, column: str) -> pd.DataFrame:
    """
    Tidy (year, age, value) frame for one rate column of a wide table.

    Raises ValueError naming the column if it is absent, and on duplicate
    (Year, Age) rows.
    """
    _require_columns(table, (*KEY_COLUMNS, column))

    obs = pd.DataFrame(
        {
            "year": pd.to_numeric(table["Year"]).astype(int).to_numpy(),
            "age": _parse_age(table["Age"]).to_numpy(),
            "value": pd.to_numeric(table[column], errors="coerce").to_numpy(dtype=float),
        }
    )
    if obs.duplicated(subset=["year", "age"]).any():
        raise ValueError(f"Duplicate (Year, Age) rows in rate table for column {column!r}")
    if (obs["value"].dropna() < 0.0).any():
        raise ValueError(f"Rates in column {column!r} must be >= 0")
    return obs.sort_values(["year", "age"]).reset_index(drop=True)


def write_rate_table(table: pd.DataFrame, path: str | Path, open_age: int | None = None) -> Path:
    """
    Write a wide rate table in the HMD-style layout that load_rate_table reads.

    The last age group is labelled "<open_age>+" when open_age is given;
    missing rates are written as ".".
    """
    out = clean_rate_table(table)

    ages = out["Age"].astype(str)
    if open_age is not None:
        if (out["Age"] > open_age).any():
            raise ValueError(f"Ages above open_age={open_age} present in rate table")
        ages = ages.where(out["Age"] < open_age, f"{open_age}+")
    out["Age"] = ages

    out = out[[*KEY_COLUMNS, *rate_columns(out)]]
    out.to_csv(path, index=False, na_rep=".", float_format="%.6g")
    return Path(path)
