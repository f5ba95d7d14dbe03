from __future__ import annotations

import argparse
import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from lexis.config import settings


def add_common_surface_args(
    parser: argparse.ArgumentParser,
    *,
    default_source: str | Path = settings.rates_csv,
) -> argparse.ArgumentParser:
    parser.add_argument(
        "--source",
        type=str,
        default=str(default_source),
        help="Rate table CSV (local path or URL) with Year, Age and rate columns.",
    )
    parser.add_argument("--age-max", type=int, default=settings.age_max, help="Upper age limit of the plot.")
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Build and save the surfaces without generating plot files.",
    )
    parser.add_argument(
        "--metadata-tag",
        type=str,
        default="",
        help="Optional suffix for the metadata JSON filename.",
    )
    return parser


def _git_commit_hash(cwd: Path) -> str:
    try:
        res = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=str(cwd),
            check=True,
            capture_output=True,
            text=True,
        )
        return res.stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return ""


def write_run_metadata(
    *,
    output_dir: Path,
    run_name: str,
    args: argparse.Namespace,
    summary: dict[str, Any],
    project_root: Path,
) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)

    tag = f"_{args.metadata_tag}" if getattr(args, "metadata_tag", "") else ""
    out_path = output_dir / f"{run_name}_metadata{tag}.json"

    payload: dict[str, Any] = {
        "run_name": run_name,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "git_commit": _git_commit_hash(project_root),
        "args": vars(args),
        "summary": summary,
    }

    out_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str))
    return out_path
