from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

ID_COLUMNS = ("FID", "IID")
REFERENCE_ID_COLUMN = "s"


@dataclass
class ProjectedScores:
    """Projected PC scores read from a PLINK 2 .sscore file.

    - table:   one row per sample, ID columns as text, PC columns named
               by prefix + number (the `_SUM` suffix removed)
    - id_cols: identifier columns present in the file; PLINK 2 may emit
               only IID, so this is a subset of ("FID", "IID")
    """

    table: pd.DataFrame
    id_cols: List[str]

    @property
    def n_samples(self) -> int:
        return int(self.table.shape[0])


def _compression(path: str | Path) -> str:
    # bgzip output is gzip-compatible but its suffix is not inferred by pandas.
    if str(path).lower().endswith(".bgz"):
        return "gzip"
    return "infer"


def _sniff_sep(path: str | Path) -> str:
    """Pick tab, comma or whitespace from the header line."""
    header = pd.read_csv(path, sep="\t", nrows=0, compression=_compression(path))
    cols = list(header.columns)
    if len(cols) > 1:
        return "\t"
    if "," in str(cols[0]):
        return ","
    return r"\s+"


def _read_table(
    path: str | Path,
    text_cols: Iterable[str] = (),
    sep: Optional[str] = None,
) -> pd.DataFrame:
    """Read a delimited table keeping identifier columns as text."""
    if sep is None:
        sep = _sniff_sep(path)
    compression = _compression(path)
    header = pd.read_csv(path, sep=sep, nrows=0, compression=compression)
    dtype = {c: str for c in text_cols if c in header.columns}
    return pd.read_csv(path, sep=sep, dtype=dtype, compression=compression)


def _require_columns(df: pd.DataFrame, required: Sequence[str], path: str | Path) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SystemExit(
            f"File {path} is missing required column(s): {', '.join(missing)}."
        )


def read_reference_scores(path: str | Path, pc_names: Sequence[str]) -> pd.DataFrame:
    """Read the reference panel's precomputed PC scores.

    The reference table is tab-delimited with a sample column `s` and
    PC columns already on the PLINK scale. `path` may be a URL; it is
    read once, without sniffing, so remote files are fetched a single time.
    """
    df = pd.read_csv(
        path,
        sep="\t",
        dtype={REFERENCE_ID_COLUMN: str},
        compression=_compression(path),
    )
    _require_columns(df, [REFERENCE_ID_COLUMN, *pc_names], path)
    return df


def read_sscore(path: str | Path, pc_names: Sequence[str]) -> ProjectedScores:
    """Read a PLINK 2 .sscore file and normalize its column names.

    `#FID`/`#IID` lose the leading marker and `PC1_SUM` becomes `PC1`.
    """
    marked = [f"#{c}" for c in ID_COLUMNS] + list(ID_COLUMNS)
    df = _read_table(path, text_cols=marked)
    df.columns = (
        df.columns.str.replace(r"^#", "", regex=True)
        .str.replace(r"_SUM$", "", regex=True)
    )

    id_cols = [c for c in ID_COLUMNS if c in df.columns]
    if not id_cols:
        raise SystemExit(f"File {path} has neither a FID nor an IID column.")
    _require_columns(df, pc_names, path)
    return ProjectedScores(table=df, id_cols=id_cols)


def count_sscore_vars(path: str | Path) -> int:
    """Number of variants listed in a header-less .sscore.vars file."""
    try:
        variants = pd.read_csv(
            path,
            header=None,
            sep="\t",
            usecols=[0],
            compression=_compression(path),
        )
    except pd.errors.EmptyDataError as e:
        raise SystemExit(f"Variant list {path} is empty.") from e
    n_vars = int(variants.shape[0])
    if n_vars == 0:
        raise SystemExit(f"Variant list {path} is empty.")
    return n_vars


def read_id_table(
    path: str | Path,
    id_cols: Sequence[str],
    extra: Sequence[str] = (),
) -> pd.DataFrame:
    """Read an ancestry or sequenced-sample table keyed by sample IDs.

    Only `id_cols` and `extra` are returned, in that order.
    """
    df = _read_table(path, text_cols=id_cols)
    required = [*id_cols, *extra]
    _require_columns(df, required, path)
    return df[required].copy()


def write_projected(
    merged: pd.DataFrame,
    path: str | Path,
    id_cols: Sequence[str] = ID_COLUMNS,
) -> pd.DataFrame:
    """Write the merged table without identifier columns as .tsv.gz.

    Reference rows are exported along with the projected samples.
    """
    path = Path(path)
    drop = [c for c in id_cols if c in merged.columns]
    out_df = merged.drop(columns=drop)
    path.parent.mkdir(parents=True, exist_ok=True)
    # Fixed gzip mtime so identical inputs give byte-identical files.
    out_df.to_csv(
        path,
        sep="\t",
        index=False,
        compression={"method": "gzip", "mtime": 0},
    )
    return out_df
