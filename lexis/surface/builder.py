from __future__ import annotations

import numpy as np
import pandas as pd

from lexis.datasets.rates import to_observations
from lexis.surface.transforms import Transform, apply_transform

KEY_COLS = ["year", "age"]
OBSERVATION_COLS = ["year", "age", "value"]

# Offset that centres a unit tile on its integer (year, age) index.
CELL_OFFSET = 0.5


def _check_observations(obs: pd.DataFrame, name: str = "observations") -> pd.DataFrame:
    missing_cols = set(OBSERVATION_COLS) - set(obs.columns)
    if missing_cols:
        raise ValueError(f"{name} is missing columns: {sorted(missing_cols)}")

    out = obs[OBSERVATION_COLS].copy()
    for col in KEY_COLS:
        if out[col].isna().any():
            raise ValueError(f"{name} has missing values in column '{col}'")
    out["year"] = out["year"].astype(int)
    out["age"] = out["age"].astype(int)
    out["value"] = pd.to_numeric(out["value"], errors="coerce").astype(float)

    if out.duplicated(subset=KEY_COLS).any():
        dupes = out.loc[out.duplicated(subset=KEY_COLS, keep=False), KEY_COLS]
        first = dupes.iloc[0]
        raise ValueError(
            f"{name} has duplicate (year, age) keys, e.g. year={first['year']}, age={first['age']}"
        )
    return out


def _check_clip_bound(clip_bound: float) -> float:
    c = float(clip_bound)
    if not np.isfinite(c) or c <= 0.0:
        raise ValueError("clip_bound must be finite and > 0")
    return c


def _add_centres(df: pd.DataFrame) -> pd.DataFrame:
    df["x"] = df["year"] + CELL_OFFSET
    df["y"] = df["age"] + CELL_OFFSET
    return df


def build_surface(observations: pd.DataFrame, transform: Transform | str = Transform.IDENTITY) -> pd.DataFrame:
    """
    Turn tidy (year, age, value) observations into centred surface cells.

    Output columns: year, age, x, y, value, transformed_value.
    x = year + 0.5 and y = age + 0.5, so each tile is centred on its index.
    Values that cannot be transformed (e.g. log10 of 0) give NaN in
    transformed_value; the rest of the batch is unaffected.
    """
    transform = Transform.parse(transform)
    df = _check_observations(observations)
    df = df.sort_values(KEY_COLS).reset_index(drop=True)

    df = _add_centres(df)
    df["transformed_value"] = apply_transform(df["value"].to_numpy(), transform)
    return df[["year", "age", "x", "y", "value", "transformed_value"]]


def lag_observations(observations: pd.DataFrame, lag: int = 1) -> pd.DataFrame:
    """
    Shift observations forward by `lag` years.

    Joining the result against the unshifted table pairs each year with
    year - lag, so year-on-year cells sit at the later (current) year.
    """
    if int(lag) == 0:
        raise ValueError("lag must be non-zero")
    df = _check_observations(observations)
    df["year"] = df["year"] + int(lag)
    return df


def _join_pairs(current: pd.DataFrame, reference: pd.DataFrame) -> pd.DataFrame:
    cur = _check_observations(current, name="current")
    ref = _check_observations(reference, name="reference")
    # inner join: cells without a partner are dropped
    joined = cur.merge(ref, on=KEY_COLS, how="inner", suffixes=("_current", "_reference"))
    return joined.sort_values(KEY_COLS).reset_index(drop=True)


def build_ratio_surface(
    current: pd.DataFrame,
    reference: pd.DataFrame,
    clip_bound: float,
) -> pd.DataFrame:
    """
    Clipped log-ratio surface: value = clip(ln(current / reference), -c, c).

    Output columns: year, age, x, y, ratio, value. `ratio` is unclipped.
    Keys present on only one side are omitted, as are cells whose ratio is
    undefined (missing values, 0/0). Infinite ratios clip to the bound.
    """
    c = _check_clip_bound(clip_bound)
    df = _join_pairs(current, reference)

    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.log(df["value_current"].to_numpy() / df["value_reference"].to_numpy())

    df["ratio"] = ratio
    df = df[~np.isnan(ratio)].copy()
    df["value"] = np.clip(df["ratio"].to_numpy(), -c, c)

    df = _add_centres(df)
    return df[["year", "age", "x", "y", "ratio", "value"]].reset_index(drop=True)


def build_difference_surface(
    current: pd.DataFrame,
    reference: pd.DataFrame,
    clip_bound: float,
) -> pd.DataFrame:
    """
    Clipped difference surface: value = clip(current - reference, -c, c).

    Same join and omission rules as build_ratio_surface.
    """
    c = _check_clip_bound(clip_bound)
    df = _join_pairs(current, reference)

    df["difference"] = df["value_current"] - df["value_reference"]
    df = df[df["difference"].notna()].copy()
    df["value"] = np.clip(df["difference"].to_numpy(), -c, c)

    df = _add_centres(df)
    return df[["year", "age", "x", "y", "difference", "value"]].reset_index(drop=True)


def build_year_ratio_surface(observations: pd.DataFrame, clip_bound: float, lag: int = 1) -> pd.DataFrame:
    """
    ln(m[year] / m[year - lag]) by age, placed at the current year.
    """
    return build_ratio_surface(observations, lag_observations(observations, lag=lag), clip_bound)


def build_column_ratio_surface(
    table: pd.DataFrame,
    numerator: str,
    denominator: str,
    clip_bound: float,
) -> pd.DataFrame:
    """
    Log-ratio of two rate columns of one table, e.g. Male / Female.
    """
    return build_ratio_surface(
        to_observations(table, numerator),
        to_observations(table, denominator),
        clip_bound,
    )


def build_column_difference_surface(
    table: pd.DataFrame,
    minuend: str,
    subtrahend: str,
    clip_bound: float,
) -> pd.DataFrame:
    return build_difference_surface(
        to_observations(table, minuend),
        to_observations(table, subtrahend),
        clip_bound,
    )


def select_breaks(min_exp: float, max_exp: float, step: float, base: float = 10.0) -> np.ndarray:
    """
    Geometric break sequence base**e for e = min_exp, min_exp + step, ..., max_exp.

    Both ends are included. When the span is not a whole number of steps,
    max_exp is appended after the last full step, e.g. (0, -7, -3) gives
    exponents 0, -3, -6, -7. The sequence is strictly decreasing when
    step < 0 (and base > 1) and strictly increasing when step > 0.

    Example: select_breaks(0, -7, -0.5) -> [1, 10**-0.5, 0.1, ..., 1e-7] (15 values).
    """
    min_exp, max_exp, step, base = float(min_exp), float(max_exp), float(step), float(base)
    if not all(np.isfinite([min_exp, max_exp, step, base])):
        raise ValueError("break parameters must be finite")
    if step == 0.0:
        raise ValueError("step must be non-zero")
    if base <= 0.0 or base == 1.0:
        raise ValueError("base must be > 0 and != 1")

    span = max_exp - min_exp
    if span != 0.0 and np.sign(span) != np.sign(step):
        raise ValueError("step must move from min_exp towards max_exp")

    n_steps = int(np.floor(span / step + 1e-9))
    exponents = min_exp + step * np.arange(n_steps + 1, dtype=float)
    if not np.isclose(exponents[-1], max_exp, rtol=0.0, atol=1e-9):
        exponents = np.append(exponents, max_exp)
    exponents[-1] = max_exp
    return np.power(base, exponents)
