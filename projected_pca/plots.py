from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.lines import Line2D

from .ancestry import ANCESTRY_CODES, BACKGROUND, POP_COLUMN, POPULATION_LEVELS, Population
from .scores import pc_pairs

# cf. gnomad_lof R/constants.R
POP_COLORS: Dict[str, str] = {
    "AFR": "#941494",
    "AMR": "#ED1E24",
    "ASJ": "coral",
    "CSA": "#FF9912",
    "EAS": "#108C44",
    "EUR": "#6AA5CD",
    "FIN": "#002F6C",
    "MDE": "#33CC33",
    "MID": "#EEA9B8",
    "NFE": "#6AA5CD",
    "SAS": "#FF9912",
    "Reference": "#999999",
    "Remaining": "#999999",
}

BACKGROUND_ALPHA = 0.2
FOREGROUND_ALPHA = 0.5
POINT_SIZE = 4
HEX_BINS = 50
PANEL_HEIGHT = 3.0
FIGURE_WIDTH = 6.0
SINGLE_SIZE = 6.0

PLOT_RC = {
    "font.size": 8,
    "axes.titlesize": 8,
    "figure.titlesize": 8,
    "axes.labelsize": 8,
    "legend.fontsize": 7,
}

Limits = Dict[str, Tuple[float, float]]


@dataclass(frozen=True)
class PlotView:
    """One family of figures: which rows to drop and how to draw them."""

    name: str
    kind: str  # "scatter" or "density"
    exclude: Tuple[str, ...]
    label: str


VIEWS: Tuple[PlotView, ...] = (
    PlotView("pca.ancestry", "scatter", (), "by ancestry"),
    PlotView(
        "pca.ancestry.no.ref",
        "scatter",
        (Population.REFERENCE.value,),
        "by ancestry",
    ),
    PlotView("pca.density", "density", (Population.REFERENCE.value,), "density"),
    PlotView(
        "pca.pops.density",
        "density",
        (Population.REFERENCE.value, Population.REMAINING.value),
        "density",
    ),
)


def view_table(df: pd.DataFrame, view: PlotView) -> pd.DataFrame:
    if not view.exclude:
        return df
    return df[~df[POP_COLUMN].isin(view.exclude)]


def _style_axes(
    ax: plt.Axes,
    x_pc: str,
    y_pc: str,
    limits: Limits,
    bare: bool = False,
) -> None:
    ax.set_xlim(*limits[x_pc])
    ax.set_ylim(*limits[y_pc])
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    ax.set_facecolor("none")
    if bare:
        ax.set_xticks([])
        ax.set_yticks([])
    else:
        ax.set_xlabel(x_pc)
        ax.set_ylabel(y_pc)


def draw_scatter(ax: plt.Axes, df: pd.DataFrame, x_pc: str, y_pc: str) -> List[str]:
    """Scatter one PC pair coloured by population.

    Reference/Remaining go first, in gray, so ancestry groups sit on top.
    Returns the population labels drawn, in level order.
    """
    drawn: List[str] = []
    layers = [(p.value, BACKGROUND_ALPHA) for p in BACKGROUND]
    layers += [(p.value, FOREGROUND_ALPHA) for p in ANCESTRY_CODES]
    for pop, alpha in layers:
        sub = df[df[POP_COLUMN] == pop]
        if sub.empty:
            continue
        ax.scatter(
            sub[x_pc].to_numpy(dtype=np.float64),
            sub[y_pc].to_numpy(dtype=np.float64),
            s=POINT_SIZE,
            color=POP_COLORS[pop],
            alpha=alpha,
            linewidths=0,
            label=pop,
        )
        drawn.append(pop)
    return sorted(drawn, key=POPULATION_LEVELS.index)


def draw_density(
    ax: plt.Axes,
    df: pd.DataFrame,
    x_pc: str,
    y_pc: str,
    limits: Limits,
) -> None:
    """Hexagonal bin counts on a log colour scale over the fixed limits."""
    x = df[x_pc].to_numpy(dtype=np.float64)
    y = df[y_pc].to_numpy(dtype=np.float64)
    keep = np.isfinite(x) & np.isfinite(y)
    if not keep.any():
        return
    ax.hexbin(
        x[keep],
        y[keep],
        gridsize=HEX_BINS,
        extent=(*limits[x_pc], *limits[y_pc]),
        bins="log",
        mincnt=1,
        cmap="Spectral_r",
        linewidths=0,
    )


def draw_panel(
    ax: plt.Axes,
    df: pd.DataFrame,
    view: PlotView,
    x_pc: str,
    y_pc: str,
    limits: Limits,
    bare: bool = False,
) -> List[str]:
    drawn: List[str] = []
    if view.kind == "scatter":
        drawn = draw_scatter(ax, df, x_pc, y_pc)
    elif view.kind == "density":
        draw_density(ax, df, x_pc, y_pc, limits)
    else:
        raise ValueError(f"Unknown plot kind '{view.kind}'.")
    _style_axes(ax, x_pc, y_pc, limits, bare=bare)
    return drawn


def _legend_handles(labels: Sequence[str]) -> List[Line2D]:
    # Proxy artists keep legend markers opaque.
    return [
        Line2D([], [], marker="o", linestyle="", color=POP_COLORS[lab], label=lab)
        for lab in labels
    ]


def plot_title(study: str, view: PlotView, n_samples: int, n_variants: int) -> str:
    return f"{study} ({view.label}): # samples = {n_samples}, # variants = {n_variants}"


def build_view_figure(
    df: pd.DataFrame,
    view: PlotView,
    pcs: Sequence[str],
    limits: Limits,
    title: str,
) -> plt.Figure:
    """Grid of all PC-pair panels for one view, two panels per row."""
    pairs = pc_pairs(pcs)
    n_panels = len(pairs)
    nrows = math.ceil(n_panels / 2)
    data = view_table(df, view)

    with plt.rc_context(PLOT_RC):
        fig, axes = plt.subplots(
            nrows,
            2,
            figsize=(FIGURE_WIDTH, PANEL_HEIGHT * nrows),
            squeeze=False,
        )
        flat = axes.ravel()
        drawn = set()
        for ax, (x_pc, y_pc) in zip(flat, pairs):
            drawn.update(draw_panel(ax, data, view, x_pc, y_pc, limits))
        spare = list(flat[n_panels:])
        for ax in spare:
            ax.axis("off")

        if view.kind == "scatter" and drawn:
            handles = _legend_handles(sorted(drawn, key=POPULATION_LEVELS.index))
            if spare:
                spare[0].legend(handles=handles, title="Population", loc="center", frameon=False)
            else:
                fig.legend(
                    handles=handles,
                    title="Population",
                    loc="center left",
                    bbox_to_anchor=(1.0, 0.5),
                    frameon=False,
                )
        fig.suptitle(title)
        fig.tight_layout()
    return fig


def build_pair_figure(
    df: pd.DataFrame,
    view: PlotView,
    x_pc: str,
    y_pc: str,
    limits: Limits,
) -> plt.Figure:
    """Single bare panel: no legend, no axis labels or tick labels."""
    with plt.rc_context(PLOT_RC):
        fig, ax = plt.subplots(figsize=(SINGLE_SIZE, SINGLE_SIZE))
        draw_panel(ax, view_table(df, view), view, x_pc, y_pc, limits, bare=True)
        fig.patch.set_alpha(0.0)
    return fig


def combined_path(prefix: str, view: PlotView, pc_prefix: str, pc_num: int) -> Path:
    return Path(f"{prefix}.{view.name}.all.{pc_prefix}1-{pc_num}.png")


def pair_path(prefix: str, view: PlotView, pc_prefix: str, first: int) -> Path:
    return Path(f"{prefix}.{view.name}.{pc_prefix}{first}-{first + 1}.png")


def save_view(
    df: pd.DataFrame,
    view: PlotView,
    prefix: str,
    title: str,
    pc_prefix: str,
    pc_num: int,
    limits: Limits,
    dpi: int = 300,
) -> List[Path]:
    """Write the combined grid and one cropped image per PC pair."""
    pcs = [f"{pc_prefix}{i + 1}" for i in range(pc_num)]
    written: List[Path] = []

    out_png = combined_path(prefix, view, pc_prefix, pc_num)
    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig = build_view_figure(df, view, pcs, limits, title)
    fig.savefig(out_png, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    written.append(out_png)

    for i in range(1, pc_num, 2):
        x_pc, y_pc = pcs[i - 1], pcs[i]
        out_png = pair_path(prefix, view, pc_prefix, i)
        fig = build_pair_figure(df, view, x_pc, y_pc, limits)
        fig.savefig(out_png, dpi=dpi, transparent=True)
        plt.close(fig)
        written.append(out_png)
    return written


def plot_all(
    merged: pd.DataFrame,
    prefix: str,
    study: str,
    pc_prefix: str,
    pc_num: int,
    limits: Limits,
    n_variants: int,
    dpi: int = 300,
) -> List[Path]:
    """Render every view in VIEWS; returns the written PNG paths."""
    written: List[Path] = []
    for view in VIEWS:
        title = plot_title(study, view, merged.shape[0], n_variants)
        written.extend(
            save_view(
                merged,
                view,
                prefix,
                title,
                pc_prefix=pc_prefix,
                pc_num=pc_num,
                limits=limits,
                dpi=dpi,
            )
        )
    return written
