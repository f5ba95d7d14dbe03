from __future__ import annotations

import numpy as np
import pandas as pd


def generate_toy_rates(
    ages: range = range(0, 111),
    years: range = range(1950, 2021),
    seed: int = 123,
) -> pd.DataFrame:
    """
    Generate a synthetic wide mortality table with:
    - high infant mortality falling to a minimum around age 10
    - Gompertz-like rise at adult ages
    - gradual improvement over time, faster at young ages
    - a male excess concentrated at young adult ages
    - a short shock period (epidemic style)

    Output columns (HMD-like):
    Year, Age, Female, Male, Total
    """
    rng = np.random.default_rng(seed)

    age_arr = np.array(list(ages), dtype=int)
    year_arr = np.array(list(years), dtype=int)

    # Gompertz: log m_x ~ a + b * (age - 30)
    a = -7.2
    b = 0.09

    # infant/child component decays with age
    infant_log = -3.6
    infant_decay = 0.45

    improvement_per_year = -0.012
    shock_start, shock_end = 1968, 1969
    shock_log_add = 0.06

    rows = []
    for y in year_arr:
        t = y - year_arr[0]
        shock = shock_log_add if (shock_start <= y <= shock_end) else 0.0
        year_noise = rng.normal(0.0, 0.015)

        for x in age_arr:
            # young ages improve roughly twice as fast
            time_effect = improvement_per_year * t * (2.0 if x < 15 else 1.0)

            senescent = np.exp(a + b * (x - 30))
            infant = np.exp(infant_log - infant_decay * x)
            base = (senescent + infant) * np.exp(time_effect + shock + year_noise)

            male_excess = 0.25 + 0.5 * np.exp(-((x - 22) / 8.0) ** 2)
            female = base * np.exp(rng.normal(0.0, 0.01))
            male = base * np.exp(male_excess + rng.normal(0.0, 0.01))

            rows.append((y, x, female, male, 0.5 * (female + male)))

    return pd.DataFrame(rows, columns=["Year", "Age", "Female", "Male", "Total"])
