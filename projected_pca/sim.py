from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd

# Labels drawn for simulated study samples; "OTH" is outside the ancestry codes.
SIM_LABELS = ("AFR", "AMR", "EAS", "NFE", "SAS", "OTH")


@dataclass
class SimulatedInputs:
    reference: Path
    sscore: Path
    sscore_vars: Path
    ancestry: Path
    sequenced: Path
    sample_ids: List[str]
    n_variants: int


def simulate_inputs(
    out_dir: Path,
    n_reference: int = 60,
    n_projected: int = 40,
    n_pcs: int = 4,
    n_variants: int = 100,
    n_unlabelled: int = 3,
    seed: Optional[int] = None,
) -> SimulatedInputs:
    """Write a consistent set of pipeline inputs under `out_dir`.

    - reference scores:  s, PC1..PCn (tab-delimited)
    - .sscore:           #FID IID ALLELE_CT NAMED_ALLELE_DOSAGE_SUM PC*_SUM,
                         raw sums, i.e. sqrt(n_variants) times the PC scale
    - .sscore.vars:      one variant ID per line, no header
    - ancestry table:    FID IID pop, last `n_unlabelled` samples left out
    - sequenced table:   FID IID for every other sample
    """
    rng = np.random.default_rng(seed)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    # PC spread shrinks with component index, as in a real panel.
    sd = 0.1 / np.arange(1, n_pcs + 1)
    ref_pcs = rng.normal(0.0, sd[None, :], size=(n_reference, n_pcs))
    ref_df = pd.DataFrame(ref_pcs, columns=[f"PC{k + 1}" for k in range(n_pcs)])
    ref_df.insert(0, "s", [f"HG{i + 1:05d}" for i in range(n_reference)])
    reference = out_dir / "reference_scores.tsv"
    ref_df.to_csv(reference, sep="\t", index=False)

    # Leading zeros check that IDs stay text.
    sample_ids = [f"{i + 1:04d}" for i in range(n_projected)]
    raw = rng.normal(0.0, sd[None, :], size=(n_projected, n_pcs)) * np.sqrt(n_variants)
    sscore_df = pd.DataFrame(
        {
            "#FID": sample_ids,
            "IID": sample_ids,
            "ALLELE_CT": np.full(n_projected, 2 * n_variants),
            "NAMED_ALLELE_DOSAGE_SUM": rng.integers(0, 2 * n_variants, size=n_projected),
        }
    )
    for k in range(n_pcs):
        sscore_df[f"PC{k + 1}_SUM"] = raw[:, k]
    sscore = out_dir / "study.sscore"
    sscore_df.to_csv(sscore, sep="\t", index=False)

    sscore_vars = out_dir / "study.sscore.vars"
    with sscore_vars.open("w") as fh:
        for v in range(n_variants):
            fh.write(f"rs{v + 1}\n")

    labelled = sample_ids[: max(n_projected - n_unlabelled, 0)]
    labels = [SIM_LABELS[i % len(SIM_LABELS)] for i in range(len(labelled))]
    ancestry = out_dir / "ancestry.tsv"
    pd.DataFrame({"FID": labelled, "IID": labelled, "pop": labels}).to_csv(
        ancestry, sep="\t", index=False
    )

    seq_ids = sample_ids[::2]
    sequenced = out_dir / "sequenced.tsv"
    pd.DataFrame({"FID": seq_ids, "IID": seq_ids}).to_csv(sequenced, sep="\t", index=False)

    return SimulatedInputs(
        reference=reference,
        sscore=sscore,
        sscore_vars=sscore_vars,
        ancestry=ancestry,
        sequenced=sequenced,
        sample_ids=sample_ids,
        n_variants=n_variants,
    )
