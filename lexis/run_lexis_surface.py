from __future__ import annotations

import argparse

import numpy as np

from lexis.config import PROJECT_ROOT, settings
from lexis.datasets.rates import load_rate_table, to_observations
from lexis.outputs import prepare_surface_dirs, surface_outputs
from lexis.render.lexis_plot import plot_lexis_surface, save_surface_plot, sequential_config
from lexis.runtime_utils import add_common_surface_args, write_run_metadata
from lexis.surface.builder import build_surface, select_breaks
from lexis.surface.transforms import Transform


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lexis surface of one rate column (e.g. male mortality).")
    add_common_surface_args(parser)
    parser.add_argument("--column", type=str, default=settings.rate_column, help="Rate column to plot.")
    parser.add_argument(
        "--transform",
        type=str,
        choices=[t.value for t in Transform],
        default=Transform.LOG10.value,
    )
    parser.add_argument("--palette", type=str, default=settings.sequential_palette)
    parser.add_argument("--break-min-exp", type=float, default=settings.break_min_exp)
    parser.add_argument("--break-max-exp", type=float, default=settings.break_max_exp)
    parser.add_argument("--break-step", type=float, default=settings.break_step)
    parser.add_argument("--no-contours", action="store_true", help="Draw the tiles only.")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    prepare_surface_dirs(settings)
    outputs = surface_outputs(settings, f"surface_{args.column.lower()}_{args.transform}")
    table = load_rate_table(args.source)
    obs = to_observations(table, args.column)

    surface = build_surface(obs, transform=args.transform)
    surface.to_csv(outputs.table, index=False)
    print("Saved:", outputs.table)

    breaks = select_breaks(args.break_min_exp, args.break_max_exp, args.break_step)
    n_undefined = int(surface["transformed_value"].isna().sum())
    if n_undefined:
        print(f"Cells with undefined {args.transform} value (left blank): {n_undefined}")

    if not args.no_plots:
        config = sequential_config(
            transform=args.transform,
            breaks=() if args.no_contours else breaks,
            palette=args.palette,
            age_max=args.age_max,
            title=f"{args.column} mortality rate",
            colorbar_label=f"{args.transform}(rate)" if args.transform != "identity" else "rate",
        )
        fig, _ = plot_lexis_surface(surface, config)
        print("Saved plot:", save_surface_plot(fig, outputs.plot))

    summary = {
        "cells": int(len(surface)),
        "undefined_cells": n_undefined,
        "year_min": int(surface["year"].min()),
        "year_max": int(surface["year"].max()),
        "breaks": [float(b) for b in np.asarray(breaks)],
    }
    metadata_path = write_run_metadata(
        output_dir=settings.output_dir,
        run_name="lexis_surface",
        args=args,
        summary=summary,
        project_root=PROJECT_ROOT,
    )
    print("Saved metadata:", metadata_path)


if __name__ == "__main__":
    main()
