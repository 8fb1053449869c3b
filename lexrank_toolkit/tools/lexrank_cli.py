#!/usr/bin/env python
"""
lexrank: Continuous LexRank centrality for sparse feature vectors.

Reads one record per line (``<id>`` or ``<id>,<feature>:<weight>,...``), runs a fixed number
of damped power iterations and writes one ``<id>:<score>`` line per item.

Examples
--------
# 100 iterations, damping 0.15, scores written to ./output.txt
lexrank documents.txt 100 0.15

# Write a CSV table instead, plus a provenance sidecar
lexrank documents.txt 100 0.15 -o runs/scores.csv --metadata

# Leave all-zero feature rows at zero instead of propagating NaN
lexrank documents.txt 50 0.2 --zero-norm-rows keep

# Keep options in a config file (flags still win)
lexrank documents.txt 100 0.15 --config lexrank.yaml
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from lexrank_toolkit.config import OUTPUT_FORMATS, ZERO_NORM_POLICIES, LexRankConfig, load_config
from lexrank_toolkit.core.io import write_scores
from lexrank_toolkit.core.metadata import write_run_metadata
from lexrank_toolkit.features.records import read_feature_matrix
from lexrank_toolkit.features.sparse_matrix import save_csr_npz
from lexrank_toolkit.ranking.lexrank import LexRankSolver


def _iterations(text: str) -> int:
    try:
        n = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not an integer")
    if n < 0:
        raise argparse.ArgumentTypeError(f"{text!r} must be >= 0")
    return n


def _damping(text: str) -> float:
    try:
        d = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not a number")
    if not (0.0 <= d <= 1.0):
        raise argparse.ArgumentTypeError(f"{text!r} must be within [0, 1]")
    return d


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lexrank",
        description="Continuous LexRank over sparse feature vectors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("input", help="Record file (UTF-8, one item per line)")
    parser.add_argument("iterations", type=_iterations, help="Number of power iterations (>= 0)")
    parser.add_argument("damping", type=_damping, help="Teleportation probability d in [0, 1]")

    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output path (default: output.txt). .csv/.tsv/.parquet write a table",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: auto, from the output extension)",
    )
    parser.add_argument(
        "--precision",
        type=int,
        default=None,
        help="Significant digits in line output (default: 6)",
    )
    parser.add_argument(
        "--zero-norm-rows",
        choices=ZERO_NORM_POLICIES,
        default=None,
        help="Rows whose weights are all zero: 'propagate' (NaN, default) or 'keep' (stay zero)",
    )
    parser.add_argument("--config", default=None, help="Options file (JSON/YAML)")
    parser.add_argument(
        "--metadata",
        dest="write_metadata",
        action="store_true",
        default=None,
        help="Write a <output>.metadata.json provenance sidecar",
    )
    parser.add_argument(
        "--save-matrix",
        default=None,
        help="Also save the parsed (unnormalized) feature matrix and ids as NPZ",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg: LexRankConfig = load_config(args.config).merged(
            output=args.output,
            output_format=args.output_format,
            precision=args.precision,
            zero_norm_rows=args.zero_norm_rows,
            write_metadata=args.write_metadata,
            save_matrix=args.save_matrix,
        )
    except (OSError, ValueError, RuntimeError) as e:
        parser.error(f"invalid config: {e}")

    try:
        fm = read_feature_matrix(args.input)
    except OSError as e:
        print(f"Cannot open input file '{args.input}': {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Cannot read input file: {e}", file=sys.stderr)
        return 1

    for w in fm.warnings:
        print(f"{args.input}: {w}", file=sys.stderr)

    if cfg.save_matrix:
        save_csr_npz(cfg.save_matrix, fm.matrix, ids=fm.ids)

    nnz = fm.matrix.nnz
    solver = LexRankSolver(
        fm.matrix,
        iterations=args.iterations,
        damping=args.damping,
        zero_norm=cfg.zero_norm_rows,  # type: ignore[arg-type]
    )
    result = solver.solve()

    out_path = Path(cfg.output)
    used_fmt = write_scores(out_path, fm.ids, result.scores, fmt=cfg.output_format, precision=cfg.precision)

    if cfg.write_metadata:
        write_run_metadata(
            tool="lexrank",
            output_path=out_path,
            result=result,
            zero_norm_rows=cfg.zero_norm_rows,
            nnz=nnz,
            input_path=args.input,
            parse_warnings=fm.warnings,
            output_options={"format": used_fmt, "precision": cfg.precision},
            matrix_npz=cfg.save_matrix,
        )

    if args.verbose:
        print(f"Items: {result.n_items} (non-zeros: {nnz}, skipped lines/entries: {len(fm.warnings)})", file=sys.stderr)
        print(f"Iterations: {args.iterations}, damping: {args.damping}", file=sys.stderr)
        if result.last_change is not None:
            print(f"Last change (L2): {result.last_change:.3e}", file=sys.stderr)
        print(f"Scores saved to {out_path} ({used_fmt})", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
