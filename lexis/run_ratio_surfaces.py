from __future__ import annotations

import argparse

import pandas as pd

from lexis.config import PROJECT_ROOT, settings
from lexis.datasets.rates import load_rate_table, to_observations
from lexis.outputs import prepare_surface_dirs, surface_outputs
from lexis.render.lexis_plot import diverging_config, plot_lexis_surface, save_surface_plot
from lexis.runtime_utils import add_common_surface_args, write_run_metadata
from lexis.surface.builder import (
    build_column_difference_surface,
    build_column_ratio_surface,
    build_year_ratio_surface,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Diverging Lexis surfaces: year-on-year change, sex ratio and sex difference."
    )
    add_common_surface_args(parser)
    parser.add_argument("--column", type=str, default=settings.rate_column, help="Column for the year-on-year ratio.")
    parser.add_argument("--numerator", type=str, default="Male")
    parser.add_argument("--denominator", type=str, default="Female")
    parser.add_argument("--lag", type=int, default=1, help="Years between current and reference cells.")
    parser.add_argument("--ratio-clip", type=float, default=settings.ratio_clip)
    parser.add_argument("--sex-ratio-clip", type=float, default=settings.sex_ratio_clip)
    parser.add_argument("--difference-clip", type=float, default=settings.difference_clip)
    parser.add_argument("--palette", type=str, default=settings.diverging_palette)
    return parser


def _save_plot(cells: pd.DataFrame, clip: float, args: argparse.Namespace, out_png, title: str, label: str):
    config = diverging_config(
        clip,
        palette=args.palette,
        age_max=args.age_max,
        title=title,
        colorbar_label=label,
    )
    fig, _ = plot_lexis_surface(cells, config)
    print("Saved plot:", save_surface_plot(fig, out_png))


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    prepare_surface_dirs(settings)
    table = load_rate_table(args.source)

    # ln(m[t] / m[t - lag]); negative = improving mortality
    year_ratio = build_year_ratio_surface(to_observations(table, args.column), args.ratio_clip, lag=args.lag)
    sex_ratio = build_column_ratio_surface(table, args.numerator, args.denominator, args.sex_ratio_clip)
    sex_diff = build_column_difference_surface(table, args.numerator, args.denominator, args.difference_clip)

    surfaces = {
        f"year_ratio_{args.column.lower()}": (year_ratio, args.ratio_clip,
                                              f"{args.column}: log ratio to {args.lag} year(s) earlier", "ln ratio"),
        "sex_ratio": (sex_ratio, args.sex_ratio_clip,
                      f"{args.numerator} / {args.denominator} log rate ratio", "ln ratio"),
        "sex_difference": (sex_diff, args.difference_clip,
                           f"{args.numerator} - {args.denominator} rate difference", "difference"),
    }

    summary = {}
    for name, (cells, clip, title, label) in surfaces.items():
        outputs = surface_outputs(settings, name)
        cells.to_csv(outputs.table, index=False)
        print("Saved:", outputs.table)

        raw_col = "difference" if "difference" in cells.columns else "ratio"
        summary[name] = {
            "cells": int(len(cells)),
            "clipped_cells": int((cells[raw_col].abs() > clip).sum()),
            "clip_bound": float(clip),
        }

        if cells.empty:
            print(f"No cells for {name}; plot skipped")
        elif not args.no_plots:
            _save_plot(cells, clip, args, outputs.plot, title, label)

    metadata_path = write_run_metadata(
        output_dir=settings.output_dir,
        run_name="ratio_surfaces",
        args=args,
        summary=summary,
        project_root=PROJECT_ROOT,
    )
    print("Saved metadata:", metadata_path)


if __name__ == "__main__":
    main()
