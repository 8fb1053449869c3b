"""Run metadata helpers.

A scoring run can emit a small, machine-readable metadata JSON artifact capturing provenance
(input hash, solver settings and convergence trace, versions).

Convention:
- for an output path like `scores.txt` or `scores.parquet`, write a sidecar
  file next to it named `scores.metadata.json`.
"""

from __future__ import annotations

import hashlib
import json
import sys
from datetime import datetime
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import numpy as np

from lexrank_toolkit.ranking.lexrank import LexRankResult

MAX_RECORDED_WARNINGS = 50


def get_toolkit_version() -> str:
    """Return installed package version if available, else 'unknown'."""

    try:
        return importlib_metadata.version("lexrank-toolkit")
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def sha256_file(path: Path, *, max_bytes: int = 200 * 1024 * 1024) -> Optional[str]:
    """Compute SHA256 for a file, returning None if too large or unreadable."""

    try:
        if path.stat().st_size > max_bytes:
            return None
        h = hashlib.sha256()
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(1024 * 1024), b""):
                h.update(chunk)
        return h.hexdigest()
    except OSError:
        return None


def metadata_sidecar_path(output_path: str | Path) -> Path:
    p = Path(output_path)
    return p.with_name(f"{p.stem}.metadata.json")


def solver_summary(result: LexRankResult, *, zero_norm_rows: str, nnz: Optional[int] = None) -> Dict[str, Any]:
    """Describe a finished power iteration: settings, convergence trace and score range."""

    scores = np.asarray(result.scores, dtype=np.float64)
    finite = scores[np.isfinite(scores)]
    return {
        "iterations": int(result.iterations),
        "damping": float(result.damping),
        "zero_norm_rows": str(zero_norm_rows),
        "n_items": result.n_items,
        "nnz": nnz,
        "last_change": result.last_change,
        "change_norms": [float(c) for c in result.change_norms],
        "non_finite_scores": int(scores.size - finite.size),
        "score_min": float(finite.min()) if finite.size else None,
        "score_max": float(finite.max()) if finite.size else None,
        "score_sum": float(finite.sum()) if finite.size else None,
    }


def write_run_metadata(
    *,
    tool: str,
    output_path: str | Path,
    result: LexRankResult,
    zero_norm_rows: str = "propagate",
    nnz: Optional[int] = None,
    input_path: Optional[str | Path] = None,
    parse_warnings: Sequence[str] = (),
    output_options: Optional[Dict[str, Any]] = None,
    matrix_npz: Optional[str | Path] = None,
) -> Path:
    """Write the provenance sidecar for a LexRank run.

    Called after the score file exists, so its size is recorded. Only the first
    ``MAX_RECORDED_WARNINGS`` parse warnings are copied; the total is always kept.
    """

    out_p = Path(output_path)
    in_p = Path(input_path) if input_path else None

    payload: Dict[str, Any] = {
        "tool": str(tool),
        "created_at": datetime.now().isoformat(timespec="seconds"),
        "argv": list(sys.argv),
        "versions": {
            "lexrank_toolkit": get_toolkit_version(),
            "python": sys.version.split()[0],
            "numpy": np.__version__,
        },
        "input": None,
        "parse": {
            "warning_count": len(parse_warnings),
            "warnings": list(parse_warnings[:MAX_RECORDED_WARNINGS]),
        },
        "solver": solver_summary(result, zero_norm_rows=zero_norm_rows, nnz=nnz),
        "output": {
            "path": str(out_p.resolve()),
            "size_bytes": int(out_p.stat().st_size) if out_p.exists() else None,
            **(output_options or {}),
        },
        "matrix_npz": str(Path(matrix_npz).resolve()) if matrix_npz else None,
    }

    if in_p is not None:
        payload["input"] = {
            "path": str(in_p.resolve()),
            "sha256": sha256_file(in_p),
            "size_bytes": int(in_p.stat().st_size) if in_p.exists() else None,
        }

    sidecar = metadata_sidecar_path(out_p)
    sidecar.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return sidecar
