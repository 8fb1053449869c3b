"""Score output helpers.

The native output is a plain text file, one ``<id>:<score>`` line per item in row order.
The same scores can also be written as a two-column table (CSV/TSV/Parquet) for downstream
analysis; table formats go through pandas.

Parquet support requires `pyarrow` (recommended) or another pandas parquet engine.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional, Sequence

import numpy as np
import pandas as pd

OutputFormat = Literal["lines", "csv", "tsv", "parquet"]

SCORE_COLUMNS = ("Item_ID", "Score")


def detect_output_format(path: str | Path, fmt: Optional[str] = None) -> OutputFormat:
    """Detect output format.

    If fmt is provided and not 'auto', it takes precedence.
    Otherwise, detect from file extension; anything unrecognised is written as lines.
    """

    if fmt and fmt.lower() != "auto":
        f = fmt.lower()
        if f in ("lines", "csv", "tsv", "parquet"):
            return f  # type: ignore[return-value]
        raise ValueError(f"Unknown output format: {fmt}")

    ext = Path(path).suffix.lower()
    if ext in (".parquet", ".pq"):
        return "parquet"
    if ext in (".tsv", ".tab"):
        return "tsv"
    if ext == ".csv":
        return "csv"
    return "lines"


def format_score_lines(ids: Sequence[int], scores: Sequence[float], *, precision: int = 6) -> str:
    if len(ids) != len(scores):
        raise ValueError(f"{len(ids)} ids but {len(scores)} scores")
    return "".join(f"{int(i)}:{float(s):.{int(precision)}g}\n" for i, s in zip(ids, scores))


def scores_to_dataframe(ids: Sequence[int], scores: Sequence[float]) -> pd.DataFrame:
    if len(ids) != len(scores):
        raise ValueError(f"{len(ids)} ids but {len(scores)} scores")
    return pd.DataFrame(
        {
            SCORE_COLUMNS[0]: np.asarray(ids, dtype=np.int64),
            SCORE_COLUMNS[1]: np.asarray(scores, dtype=np.float64),
        }
    )


def write_scores(
    path: str | Path,
    ids: Sequence[int],
    scores: Sequence[float],
    *,
    fmt: Optional[str] = None,
    precision: int = 6,
    **kwargs: Any,
) -> OutputFormat:
    """Write scores, creating parent directories. Returns the format used."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    f = detect_output_format(p, fmt)

    if f == "lines":
        p.write_text(format_score_lines(ids, scores, precision=precision), encoding="utf-8")
        return f

    df = scores_to_dataframe(ids, scores)
    if f == "parquet":
        try:
            df.to_parquet(p, index=False, **kwargs)
        except ImportError as e:  # pragma: no cover
            raise RuntimeError(
                "Writing Parquet requires pyarrow (recommended). Install with: pip install pyarrow\n"
                "or install lexrank-toolkit with the parquet extra: pip install 'lexrank-toolkit[parquet]'"
            ) from e
        return f

    if f == "tsv":
        kwargs.setdefault("sep", "\t")
    df.to_csv(p, index=False, **kwargs)
    return f
