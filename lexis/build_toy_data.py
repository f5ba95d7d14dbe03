from __future__ import annotations

import argparse

from lexis.config import PROJECT_ROOT, settings
from lexis.datasets.rates import load_rate_table, rate_columns, write_rate_table
from lexis.datasets.toy_rates import generate_toy_rates
from lexis.runtime_utils import write_run_metadata


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Write a toy Year/Age mortality rate table in the HMD-style layout."
    )
    parser.add_argument("--seed", type=int, default=123)
    parser.add_argument("--start-year", type=int, default=1950)
    parser.add_argument("--end-year", type=int, default=2020)
    parser.add_argument("--max-age", type=int, default=110, help="Written as the open age group, e.g. '110+'.")
    parser.add_argument("--metadata-tag", type=str, default="")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    settings.raw_dir.mkdir(parents=True, exist_ok=True)

    rates = generate_toy_rates(
        ages=range(0, args.max_age + 1),
        years=range(args.start_year, args.end_year + 1),
        seed=args.seed,
    )
    out_path = write_rate_table(rates, settings.rates_csv, open_age=args.max_age)
    print("Saved rate table:", out_path)

    # read back through the loader so the file is known to parse
    table = load_rate_table(out_path)
    columns = rate_columns(table)
    for col in columns:
        print(f"{col}: m_x in [{table[col].min():.3g}, {table[col].max():.3g}]")

    summary = {
        "rows": int(len(table)),
        "years": [int(table["Year"].min()), int(table["Year"].max())],
        "open_age": f"{args.max_age}+",
        "rate_columns": columns,
        "rate_range": {col: [float(table[col].min()), float(table[col].max())] for col in columns},
    }
    metadata_path = write_run_metadata(
        output_dir=settings.output_dir,
        run_name="build_toy_data",
        args=args,
        summary=summary,
        project_root=PROJECT_ROOT,
    )
    print("Saved metadata:", metadata_path)


if __name__ == "__main__":
    main()
