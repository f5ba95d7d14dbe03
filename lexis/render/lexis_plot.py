from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from lexis.config import settings
from lexis.surface.transforms import Transform, apply_transform


@dataclass(frozen=True)
class RenderConfig:
    """
    Everything the renderer needs besides the cells themselves.

    Sequential surfaces colour `color_column` on a plain scale; diverging
    surfaces centre the colour map on `center` (0 for log-ratios and
    differences) and span [vmin, vmax]. Contour breaks are given on the
    original value scale and mapped through `transform` before drawing.
    """
    palette: str = settings.sequential_palette
    transform: Transform = Transform.IDENTITY
    color_column: str = "transformed_value"
    diverging: bool = False
    center: float = 0.0
    vmin: float | None = None
    vmax: float | None = None
    contour_breaks: tuple[float, ...] = field(default_factory=tuple)
    contour_color: str = "white"
    age_max: int = settings.age_max
    title: str = ""
    colorbar_label: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "transform", Transform.parse(self.transform))
        object.__setattr__(self, "contour_breaks", tuple(float(b) for b in self.contour_breaks))
        if self.age_max <= 0:
            raise ValueError("age_max must be > 0")
        if self.vmin is not None and self.vmax is not None and self.vmin >= self.vmax:
            raise ValueError("vmin must be < vmax")
        if self.diverging:
            if self.vmin is not None and self.vmin >= self.center:
                raise ValueError("diverging vmin must be below center")
            if self.vmax is not None and self.vmax <= self.center:
                raise ValueError("diverging vmax must be above center")

    def contour_levels(self) -> np.ndarray:
        levels = apply_transform(self.contour_breaks, self.transform)
        levels = levels[np.isfinite(levels)]
        return np.unique(levels)


def sequential_config(
    transform: Transform | str = Transform.LOG10,
    breaks=(),
    palette: str = settings.sequential_palette,
    **kwargs,
) -> RenderConfig:
    return RenderConfig(
        palette=palette,
        transform=Transform.parse(transform),
        color_column="transformed_value",
        contour_breaks=tuple(breaks),
        **kwargs,
    )


def diverging_config(
    clip_bound: float,
    palette: str = settings.diverging_palette,
    **kwargs,
) -> RenderConfig:
    """
    Colour scale for clipped ratio/difference cells, neutral at 0.
    """
    c = float(clip_bound)
    return RenderConfig(
        palette=palette,
        transform=Transform.IDENTITY,
        color_column="value",
        diverging=True,
        center=0.0,
        vmin=-c,
        vmax=c,
        **kwargs,
    )


def surface_grid(cells: pd.DataFrame, column: str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Pivot cells to a dense age × year grid.

    Returns (years, ages, values) where values[i, j] belongs to ages[i],
    years[j]. Gaps in the year/age ranges are NaN rows/columns.
    """
    required_cols = {"year", "age", column}
    missing_cols = required_cols - set(cells.columns)
    if missing_cols:
        raise ValueError(f"cells are missing columns: {sorted(missing_cols)}")
    if cells.empty:
        raise ValueError("cannot render an empty surface")

    years = np.arange(cells["year"].min(), cells["year"].max() + 1, dtype=int)
    ages = np.arange(cells["age"].min(), cells["age"].max() + 1, dtype=int)
    grid = (
        cells.pivot(index="age", columns="year", values=column)
        .reindex(index=ages, columns=years)
        .to_numpy(dtype=float)
    )
    return years, ages, grid


def _norm(config: RenderConfig, grid: np.ndarray):
    from matplotlib.colors import Normalize, TwoSlopeNorm

    finite = grid[np.isfinite(grid)]
    lo = config.vmin if config.vmin is not None else (finite.min() if finite.size else 0.0)
    hi = config.vmax if config.vmax is not None else (finite.max() if finite.size else 1.0)

    if config.diverging:
        # symmetric around the neutral value unless both ends are given
        if config.vmin is None or config.vmax is None:
            span = max(abs(lo - config.center), abs(hi - config.center)) or 1.0
            lo, hi = config.center - span, config.center + span
        return TwoSlopeNorm(vcenter=config.center, vmin=lo, vmax=hi)
    if lo == hi:
        hi = lo + 1.0
    return Normalize(vmin=lo, vmax=hi)


def plot_lexis_surface(cells: pd.DataFrame, config: RenderConfig, ax=None):
    """
    Draw one unit tile per (year, age) cell with optional contour lines.

    Tiles span [year, year + 1] × [age, age + 1], i.e. they are centred on
    the cell's (x, y). Missing values are left blank. Axes have equal aspect,
    x-limits covering the data years and y-limits (0, age_max).

    Returns (fig, ax).
    """
    if ax is None:
        plt = _pyplot()
        fig, ax = plt.subplots(figsize=(10, 8))
    else:
        fig = ax.figure

    years, ages, grid = surface_grid(cells, config.color_column)
    masked = np.ma.masked_invalid(grid)

    x_edges = np.append(years, years[-1] + 1).astype(float)
    y_edges = np.append(ages, ages[-1] + 1).astype(float)
    mesh = ax.pcolormesh(
        x_edges,
        y_edges,
        masked,
        cmap=config.palette,
        norm=_norm(config, grid),
        shading="flat",
    )

    levels = config.contour_levels()
    finite = grid[np.isfinite(grid)]
    if levels.size and finite.size and grid.shape[0] >= 2 and grid.shape[1] >= 2:
        lo, hi = finite.min(), finite.max()
        levels = levels[(levels >= lo) & (levels <= hi)]
        if levels.size:
            ax.contour(
                years + 0.5,
                ages + 0.5,
                masked,
                levels=levels,
                colors=config.contour_color,
                linewidths=0.6,
            )

    cbar = fig.colorbar(mesh, ax=ax, shrink=0.8)
    if config.colorbar_label:
        cbar.set_label(config.colorbar_label)

    ax.set_aspect("equal")
    ax.set_xlim(float(years[0]), float(years[-1] + 1))
    ax.set_ylim(0.0, float(config.age_max))
    ax.set_xlabel("Year")
    ax.set_ylabel("Age")
    if config.title:
        ax.set_title(config.title)

    return fig, ax


def _pyplot():
    import matplotlib

    # no display and no explicit backend: render off-screen
    if not os.environ.get("DISPLAY") and "MPLBACKEND" not in os.environ:
        matplotlib.use("Agg")

    import matplotlib.pyplot as plt

    return plt


def save_surface_plot(fig, path, dpi: int = 150):
    """
    Write a rendered surface to `path` and release the figure.
    """
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    _pyplot().close(fig)
    return path
