import json
import sys

import pytest

from lexis import build_toy_data, run_lexis_surface, run_ratio_surfaces
from lexis.config import Settings


@pytest.fixture
def tmp_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("MPLBACKEND", "Agg")
    s = Settings(
        raw_dir=tmp_path / "raw",
        processed_dir=tmp_path / "processed",
        output_dir=tmp_path / "outputs",
        rates_csv=tmp_path / "raw" / "rates.csv",
    )
    for module in (build_toy_data, run_lexis_surface, run_ratio_surfaces):
        monkeypatch.setattr(module, "settings", s)
    return s


def _run(monkeypatch, module, argv) -> None:
    monkeypatch.setattr(sys, "argv", [module.__name__, *argv])
    module.main()


def test_toy_data_then_surfaces(tmp_settings, monkeypatch) -> None:
    _run(monkeypatch, build_toy_data, ["--start-year", "2000", "--end-year", "2004", "--max-age", "30"])
    assert tmp_settings.rates_csv.exists()

    source = str(tmp_settings.rates_csv)
    _run(monkeypatch, run_lexis_surface, ["--source", source])
    _run(monkeypatch, run_ratio_surfaces, ["--source", source, "--metadata-tag", "t1"])

    assert (tmp_settings.processed_dir / "lexis_surface_male_log10.csv").exists()
    assert (tmp_settings.output_dir / "lexis_surface_male_log10.png").exists()
    for name in ("year_ratio_male", "sex_ratio", "sex_difference"):
        assert (tmp_settings.processed_dir / f"lexis_{name}.csv").exists()
        assert (tmp_settings.output_dir / f"lexis_{name}.png").exists()

    meta = json.loads((tmp_settings.output_dir / "ratio_surfaces_metadata_t1.json").read_text())
    assert meta["summary"]["year_ratio_male"]["cells"] == 4 * 31
    assert meta["args"]["source"] == source


def test_missing_column_fails_fast(tmp_settings, monkeypatch) -> None:
    _run(monkeypatch, build_toy_data, ["--start-year", "2000", "--end-year", "2001", "--max-age", "5"])
    with pytest.raises(ValueError, match="Both"):
        _run(
            monkeypatch,
            run_lexis_surface,
            ["--source", str(tmp_settings.rates_csv), "--column", "Both", "--no-plots"],
        )


def test_single_year_table_still_writes_sex_surfaces(tmp_settings, monkeypatch) -> None:
    source = tmp_settings.raw_dir / "one_year.csv"
    source.parent.mkdir(parents=True)
    source.write_text("Year,Age,Female,Male\n2000,0,0.004,0.005\n2000,1,0.0003,0.0004\n")

    _run(monkeypatch, run_ratio_surfaces, ["--source", str(source)])

    assert not (tmp_settings.output_dir / "lexis_year_ratio_male.png").exists()
    assert (tmp_settings.output_dir / "lexis_sex_ratio.png").exists()
    assert (tmp_settings.output_dir / "lexis_sex_difference.png").exists()

    meta = json.loads((tmp_settings.output_dir / "ratio_surfaces_metadata.json").read_text())
    assert meta["summary"]["year_ratio_male"]["cells"] == 0
    assert meta["summary"]["sex_ratio"]["cells"] == 2


def test_toy_table_uses_open_age_label(tmp_settings, monkeypatch) -> None:
    _run(monkeypatch, build_toy_data, ["--start-year", "2000", "--end-year", "2001", "--max-age", "10"])

    lines = tmp_settings.rates_csv.read_text().splitlines()
    assert lines[0] == "Year,Age,Female,Male,Total"
    assert lines[11].startswith("2000,10+,")

    meta = json.loads((tmp_settings.output_dir / "build_toy_data_metadata.json").read_text())
    assert meta["summary"]["rate_columns"] == ["Female", "Male", "Total"]
    assert meta["summary"]["open_age"] == "10+"
