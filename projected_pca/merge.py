from __future__ import annotations

from typing import Sequence

import pandas as pd

from .ancestry import POP_COLUMN, POPULATION_LEVELS, Population, bucket_populations
from .io import REFERENCE_ID_COLUMN


def label_reference(reference: pd.DataFrame, id_cols: Sequence[str]) -> pd.DataFrame:
    """Copy reference sample names into the projected ID columns.

    The `s` column is replaced by every ID column used by the projected
    table and all rows are labelled Reference.
    """
    ref = reference.copy()
    for col in id_cols:
        ref[col] = ref[REFERENCE_ID_COLUMN]
    ref = ref.drop(columns=[REFERENCE_ID_COLUMN])
    ref[POP_COLUMN] = Population.REFERENCE.value
    return ref


def merge_scores(
    reference: pd.DataFrame,
    projected: pd.DataFrame,
    id_cols: Sequence[str],
) -> pd.DataFrame:
    """Stack reference and projected rows into one long table.

    - reference rows come first, projected rows after, in their order;
    - columns missing from one source are filled with NaN;
    - `pop` is an ordered categorical over POPULATION_LEVELS.
    """
    ref = label_reference(reference, id_cols)
    proj = bucket_populations(projected)

    merged = pd.concat([ref, proj], ignore_index=True, sort=False)
    merged[POP_COLUMN] = pd.Categorical(
        merged[POP_COLUMN],
        categories=POPULATION_LEVELS,
        ordered=True,
    )
    return merged
