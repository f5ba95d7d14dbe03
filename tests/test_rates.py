import numpy as np
import pandas as pd
import pytest

from lexis.datasets.rates import (
    clean_rate_table,
    load_rate_table,
    rate_columns,
    to_observations,
    write_rate_table,
)
from lexis.datasets.toy_rates import generate_toy_rates


def test_load_rate_table_reads_hmd_style_csv(tmp_path) -> None:
    path = tmp_path / "rates.csv"
    path.write_text(
        "Year, Age, Female, Male, Total\n"
        "2000, 109, 0.61, 0.70, 0.64\n"
        "2000, 110+, 0.65, ., 0.66\n"
    )
    table = load_rate_table(path)

    assert table["Age"].tolist() == [109, 110]
    assert rate_columns(table) == ["Female", "Male", "Total"]
    assert np.isnan(table.loc[1, "Male"])


def test_missing_key_column_is_named() -> None:
    with pytest.raises(ValueError, match="Age"):
        clean_rate_table(pd.DataFrame({"Year": [2000], "Male": [0.01]}))


def test_to_observations_names_missing_rate_column() -> None:
    table = pd.DataFrame({"Year": [2000], "Age": [0], "Male": [0.01]})
    with pytest.raises(ValueError, match="Female"):
        to_observations(table, "Female")


def test_to_observations_rejects_duplicate_rows() -> None:
    table = pd.DataFrame({"Year": [2000, 2000], "Age": [0, 0], "Male": [0.01, 0.02]})
    with pytest.raises(ValueError, match="Duplicate"):
        to_observations(table, "Male")


def test_to_observations_is_tidy_and_sorted() -> None:
    table = pd.DataFrame({"Year": [2001, 2000], "Age": [0, 0], "Male": [0.01, 0.02]})
    obs = to_observations(table, "Male")

    assert list(obs.columns) == ["year", "age", "value"]
    assert obs["year"].tolist() == [2000, 2001]
    assert obs["value"].tolist() == [0.02, 0.01]


def test_toy_rates_shape_and_positivity() -> None:
    df = generate_toy_rates(ages=range(0, 11), years=range(2000, 2005), seed=1)

    assert len(df) == 11 * 5
    assert (df[["Female", "Male", "Total"]] > 0).all().all()
    # male excess
    assert (df["Male"] > df["Female"]).all()


def test_toy_rates_reproducible() -> None:
    a = generate_toy_rates(ages=range(0, 5), years=range(2000, 2003), seed=7)
    b = generate_toy_rates(ages=range(0, 5), years=range(2000, 2003), seed=7)
    pd.testing.assert_frame_equal(a, b)


def test_written_table_reads_back(tmp_path) -> None:
    table = pd.DataFrame(
        {"Year": [2000, 2000, 2000], "Age": [0, 1, 2], "Male": [0.005, np.nan, 0.41]}
    )
    path = write_rate_table(table, tmp_path / "rates.csv", open_age=2)

    text = path.read_text().splitlines()
    assert text[2] == "2000,1,."
    assert text[3] == "2000,2+,0.41"

    back = load_rate_table(path)
    assert back["Age"].tolist() == [0, 1, 2]
    assert np.isnan(back.loc[1, "Male"])


def test_write_rejects_ages_above_open_age(tmp_path) -> None:
    table = pd.DataFrame({"Year": [2000, 2000], "Age": [110, 111], "Male": [0.5, 0.6]})
    with pytest.raises(ValueError, match="open_age"):
        write_rate_table(table, tmp_path / "rates.csv", open_age=110)
