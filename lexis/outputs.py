from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from lexis.config import Settings


@dataclass(frozen=True)
class SurfaceOutputs:
    """
    Where one named surface lands: the cell table under processed/ and
    its plot under outputs/.
    """
    table: Path
    plot: Path


def surface_outputs(s: Settings, name: str) -> SurfaceOutputs:
    stem = f"lexis_{name}"
    return SurfaceOutputs(
        table=s.processed_dir / f"{stem}.csv",
        plot=s.output_dir / f"{stem}.png",
    )


def prepare_surface_dirs(s: Settings) -> None:
    for d in (s.processed_dir, s.output_dir):
        d.mkdir(parents=True, exist_ok=True)
