from __future__ import annotations

from enum import Enum
from typing import Any, Sequence

import pandas as pd

POP_COLUMN = "pop"


class Population(str, Enum):
    """Population labels in legend/level order."""

    AFR = "AFR"
    AMR = "AMR"
    ASJ = "ASJ"
    CSA = "CSA"
    EAS = "EAS"
    EUR = "EUR"
    FIN = "FIN"
    MDE = "MDE"
    MID = "MID"
    NFE = "NFE"
    SAS = "SAS"
    REFERENCE = "Reference"
    REMAINING = "Remaining"


BACKGROUND = (Population.REFERENCE, Population.REMAINING)
ANCESTRY_CODES = tuple(p for p in Population if p not in BACKGROUND)
POPULATION_LEVELS = [p.value for p in Population]

_CODE_LOOKUP = {p.value: p for p in ANCESTRY_CODES}


def classify_population(label: Any) -> Population:
    """Map a raw label to an ancestry code, or to REMAINING.

    Missing labels, unlisted codes and "Reference" coming from a study
    ancestry file all end up in the catch-all bucket.
    """
    if isinstance(label, str):
        return _CODE_LOOKUP.get(label, Population.REMAINING)
    return Population.REMAINING


def assign_fixed(table: pd.DataFrame, code: str) -> pd.DataFrame:
    """Give every projected sample the same ancestry code."""
    return table.assign(**{POP_COLUMN: code})


def assign_from_file(
    table: pd.DataFrame,
    ancestry: pd.DataFrame,
    id_cols: Sequence[str],
    ancestry_col: str,
) -> pd.DataFrame:
    """Left-join per-sample labels onto the projected table.

    Samples absent from `ancestry` keep a missing label and are later
    bucketed as Remaining; none are dropped.
    """
    labels = ancestry[list(id_cols) + [ancestry_col]].rename(
        columns={ancestry_col: POP_COLUMN}
    )
    base = table.drop(columns=[POP_COLUMN], errors="ignore")
    return base.merge(labels, on=list(id_cols), how="left")


def bucket_populations(table: pd.DataFrame) -> pd.DataFrame:
    """Rewrite every label outside the ancestry codes to Remaining."""
    bucketed = table[POP_COLUMN].map(lambda v: classify_population(v).value)
    return table.assign(**{POP_COLUMN: bucketed.astype(object)})


def filter_sequenced(
    table: pd.DataFrame,
    sequenced: pd.DataFrame,
    id_cols: Sequence[str],
) -> pd.DataFrame:
    """Keep only projected samples listed in the sequenced-sample table.

    Often more samples are genotyped (and used to define PCs) than
    sequenced; this is an inner join, unlike the ancestry lookup.
    """
    keys = sequenced[list(id_cols)].drop_duplicates()
    return table.merge(keys, on=list(id_cols), how="inner")
