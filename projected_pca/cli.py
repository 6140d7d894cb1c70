from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from . import pipeline
from .config import DEFAULT_REFERENCE_SCORE_FILE, PipelineConfig, even_pc_num


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="projected-pca",
        description=(
            "Plot PLINK 2 projected PCs against the HGDP + 1KG reference panel "
            "and export de-identified per-sample PC values."
        ),
    )
    p.add_argument("--sscore", type=Path, help="Path to the PLINK 2's .sscore output")
    p.add_argument(
        "--sscore-vars",
        type=Path,
        dest="sscore_vars",
        help="Path to the PLINK 2's .sscore.vars output (default: <sscore>.vars).",
    )
    p.add_argument("--study", type=str, help="Name of your study")
    p.add_argument(
        "--sequenced",
        type=Path,
        help=(
            "Path to the set of samples that were sequenced. Often more samples are "
            "genotyped (used to define PCs) than sequenced, so projected samples are "
            "restricted to this set. IID (and FID if present) columns, with a header."
        ),
    )
    p.add_argument("--ancestry", type=str, help="Continental ancestry of all participants")
    p.add_argument(
        "--ancestry-file",
        type=Path,
        dest="ancestry_file",
        help="Path to an ancestry file with per-sample labels",
    )
    p.add_argument(
        "--ancestry-col",
        type=str,
        dest="ancestry_col",
        help="Name of the ancestry column in --ancestry-file",
    )
    p.add_argument(
        "--pc-prefix",
        type=str,
        default="PC",
        dest="pc_prefix",
        help="Prefix of PC columns (default: PC).",
    )
    p.add_argument(
        "--plot-pc-num",
        type=int,
        default=10,
        dest="plot_pc_num",
        help="Number of PCs being plotted; rounded down to even (default: 10).",
    )
    p.add_argument(
        "--reference-score-file",
        type=str,
        default=DEFAULT_REFERENCE_SCORE_FILE,
        dest="reference_score_file",
        help=(
            "Path or URL of a reference score file "
            "[required if your system doesn't have Internet access]"
        ),
    )
    p.add_argument("--out", type=str, help="Output prefix")
    p.add_argument(
        "--disable-export",
        action="store_true",
        default=False,
        dest="disable_export",
        help="Do not export per-sample projected PC values",
    )
    return p


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    """Check required flags and fill defaults; nothing is read here."""
    if args.sscore is None:
        raise SystemExit("Please specify --sscore.")

    if args.study is None:
        raise SystemExit("Please specify --study.")

    sscore_vars = args.sscore_vars
    if sscore_vars is None:
        fname = Path(f"{args.sscore}.vars")
        if not fname.exists():
            raise SystemExit("Please specify --sscore-vars.")
        sscore_vars = fname

    lookup_ok = args.ancestry_file is not None and args.ancestry_col is not None
    if args.ancestry is None and not lookup_ok:
        raise SystemExit(
            "Please specify either --ancestry or --ancestry-file and --ancestry-col."
        )

    if not args.reference_score_file:
        raise SystemExit("Please specify --reference-score-file.")

    # Only plot an even number of PCs.
    plot_pc_num = even_pc_num(args.plot_pc_num)
    if plot_pc_num < 2:
        raise SystemExit("Please specify --plot-pc-num of at least 2.")

    if args.out is None:
        raise SystemExit("Please specify --out.")

    return PipelineConfig(
        sscore=args.sscore,
        sscore_vars=sscore_vars,
        study=args.study,
        out=args.out,
        reference_score_file=args.reference_score_file,
        ancestry=args.ancestry,
        ancestry_file=args.ancestry_file,
        ancestry_col=args.ancestry_col,
        sequenced=args.sequenced,
        pc_prefix=args.pc_prefix,
        plot_pc_num=plot_pc_num,
        disable_export=args.disable_export,
    )


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = resolve_config(args)

    print("Started running with the following args:")
    print(config)
    pipeline.run(config)


if __name__ == "__main__":
    main()
