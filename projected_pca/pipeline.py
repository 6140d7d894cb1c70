from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pandas as pd

from . import ancestry, io, merge, plots, scores
from .config import PipelineConfig


@dataclass
class PipelineResult:
    """Outputs of one run, returned for callers and tests."""

    merged: pd.DataFrame
    id_cols: List[str]
    n_variants: int
    limits: plots.Limits
    plot_paths: List[Path]
    export_path: Optional[Path]


def load_projected(config: PipelineConfig) -> tuple[io.ProjectedScores, int]:
    """Read the .sscore file and put its PCs on the reference scale."""
    pcs = config.plot_pcs
    print(f"Loading --sscore {config.sscore}")
    projected = io.read_sscore(config.sscore, pcs)

    print(f"Loading --sscore-vars {config.sscore_vars}")
    n_variants = io.count_sscore_vars(config.sscore_vars)
    scores.normalize_scores(projected.table, pcs, n_variants)
    return projected, n_variants


def resolve_ancestry(config: PipelineConfig, projected: io.ProjectedScores) -> pd.DataFrame:
    if config.ancestry_mode == "fixed":
        return ancestry.assign_fixed(projected.table, config.ancestry)

    print(f"Loading --ancestry-file {config.ancestry_file}")
    labels = io.read_id_table(
        config.ancestry_file,
        projected.id_cols,
        extra=[config.ancestry_col],
    )
    return ancestry.assign_from_file(
        projected.table,
        labels,
        projected.id_cols,
        config.ancestry_col,
    )


def _run(config: PipelineConfig) -> PipelineResult:
    pcs = config.plot_pcs

    print(f"Loading --reference-score-file {config.reference_score_file}")
    reference = io.read_reference_scores(config.reference_score_file, pcs)
    limits = scores.plot_limits(scores.reference_ranges(reference, pcs))

    projected, n_variants = load_projected(config)
    table = resolve_ancestry(config, projected)

    if config.sequenced is not None:
        print(f"Loading --sequenced {config.sequenced}")
        seq = io.read_id_table(config.sequenced, projected.id_cols)
        table = ancestry.filter_sequenced(table, seq, projected.id_cols)

    merged = merge.merge_scores(reference, table, projected.id_cols)

    print("Plotting PC figures...")
    plot_paths = plots.plot_all(
        merged,
        prefix=config.projected_prefix,
        study=config.study,
        pc_prefix=config.pc_prefix,
        pc_num=config.plot_pc_num,
        limits=limits,
        n_variants=n_variants,
        dpi=config.dpi,
    )

    export_path = None
    if not config.disable_export:
        export_path = config.export_path
        print(f"Removing individual IDs and exporting {export_path}")
        io.write_projected(merged, export_path)

    return PipelineResult(
        merged=merged,
        id_cols=projected.id_cols,
        n_variants=n_variants,
        limits=limits,
        plot_paths=plot_paths,
        export_path=export_path,
    )


def run(config: PipelineConfig) -> PipelineResult:
    """Run the whole pipeline once; library warnings are reported at the end."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = _run(config)

    for w in caught:
        print(f"Warning: {w.category.__name__}: {w.message}")
    print("Successfully finished!")
    return result
