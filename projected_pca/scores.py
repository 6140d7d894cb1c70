from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

PADDING_PERCENT = 20


def normalize_scores(table: pd.DataFrame, pc_names: Sequence[str], n_variants: int) -> None:
    """Divide projected PCs by sqrt(n_variants), in place.

    PLINK 2 --score sums dosage * weight over variants; the reference
    panel's PCs are on the per-sqrt(variant) scale. Must be applied once.
    """
    if n_variants <= 0:
        raise ValueError("n_variants must be positive.")
    cols = list(pc_names)
    table[cols] = table[cols] / np.sqrt(n_variants)


def reference_ranges(
    reference: pd.DataFrame,
    pc_names: Sequence[str],
) -> Dict[str, Tuple[float, float]]:
    """(min, max) of every PC over the reference panel."""
    ranges: Dict[str, Tuple[float, float]] = {}
    for pc in pc_names:
        values = reference[pc].to_numpy(dtype=np.float64)
        ranges[pc] = (float(np.nanmin(values)), float(np.nanmax(values)))
    return ranges


def plot_limits(
    ranges: Dict[str, Tuple[float, float]],
    padding_percent: float = PADDING_PERCENT,
) -> Dict[str, Tuple[float, float]]:
    """Scale both ends of each reference range by (1 + padding)."""
    scale = 1.0 + padding_percent / 100.0
    return {pc: (lo * scale, hi * scale) for pc, (lo, hi) in ranges.items()}


def pc_pairs(pc_names: Sequence[str]) -> List[Tuple[str, str]]:
    """Consecutive non-overlapping pairs: (PC1, PC2), (PC3, PC4), ..."""
    names = list(pc_names)
    return [(names[i], names[i + 1]) for i in range(0, len(names) - 1, 2)]
