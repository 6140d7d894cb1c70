from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_REFERENCE_SCORE_FILE = (
    "https://storage.googleapis.com/gbmi-public/hgdp_tgp_pca_gbmi_snps_scores.txt.bgz"
)


def even_pc_num(n: int) -> int:
    """Round a PC count down to the nearest even number (7 -> 6)."""
    return 2 * (int(n) // 2)


@dataclass(frozen=True)
class PipelineConfig:
    """Resolved command-line configuration for a single run."""

    sscore: Path
    sscore_vars: Path
    study: str
    out: str
    reference_score_file: str = DEFAULT_REFERENCE_SCORE_FILE
    ancestry: Optional[str] = None
    ancestry_file: Optional[Path] = None
    ancestry_col: Optional[str] = None
    sequenced: Optional[Path] = None
    pc_prefix: str = "PC"
    plot_pc_num: int = 10
    disable_export: bool = False
    dpi: int = 300

    @property
    def ancestry_mode(self) -> str:
        # A fixed code takes precedence over any ancestry file.
        return "fixed" if self.ancestry is not None else "lookup"

    @property
    def plot_pcs(self) -> List[str]:
        return [f"{self.pc_prefix}{i + 1}" for i in range(self.plot_pc_num)]

    @property
    def projected_prefix(self) -> str:
        return f"{self.out}.projected"

    @property
    def export_path(self) -> Path:
        return Path(f"{self.projected_prefix}.pca.tsv.gz")
