from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

@dataclass(frozen=True)
class Settings:
    # Paths
    data_dir: Path = PROJECT_ROOT / "data"
    raw_dir: Path = data_dir / "raw"
    processed_dir: Path = data_dir / "processed"
    output_dir: Path = PROJECT_ROOT / "outputs"
    rates_csv: Path = raw_dir / "toy_mortality_rates.csv"

    # Surface defaults
    rate_column: str = "Male"
    age_max: int = 111
    ratio_clip: float = 0.5
    sex_ratio_clip: float = 1.0
    difference_clip: float = 0.05

    # Contour / colour breaks: 10**0, 10**-0.5, ..., 10**-7
    break_min_exp: float = 0.0
    break_max_exp: float = -7.0
    break_step: float = -0.5

    sequential_palette: str = "magma_r"
    diverging_palette: str = "RdBu_r"

settings = Settings()
