"""Sparse matrix helpers.

We avoid adding SciPy as a hard dependency. The feature matrix is kept as plain CSR arrays
(numpy) and only the handful of operations LexRank needs are implemented here:

- row L2 normalization,
- matrix-vector and transpose-matrix-vector products,
- the inverse-degree diagonal of the implicit similarity matrix S·Sᵗ.

Every operation is a single pass over the stored entries (np.bincount keyed by row or column),
so the cost is O(nnz + n_rows); the dense n_rows x n_rows similarity matrix is never formed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Sequence, Tuple

import numpy as np

ZeroNormPolicy = Literal["propagate", "keep"]

# Degrees with |value| below this are treated as zero and left out of D^-1.
DEGREE_EPSILON = float(np.finfo(np.float64).eps)


class CSRMatrix:
    """Compressed sparse row matrix with implicit column count.

    ``data[indptr[i]:indptr[i+1]]`` paired with ``indices[indptr[i]:indptr[i+1]]`` are the
    non-zero entries of row ``i``. Column ids within a row may appear in any order.
    """

    def __init__(self, data: Sequence[float], indptr: Sequence[int], indices: Sequence[int]) -> None:
        self.data = np.asarray(data, dtype=np.float64).copy()
        self.indptr = np.asarray(indptr, dtype=np.int64)
        self.indices = np.asarray(indices, dtype=np.int64)
        self._validate()
        self._rows = np.repeat(np.arange(self.row_count(), dtype=np.int64), np.diff(self.indptr))

    def _validate(self) -> None:
        if self.indptr.ndim != 1 or self.indptr.size == 0:
            raise ValueError("indptr must be a non-empty 1-D array")
        if int(self.indptr[0]) != 0:
            raise ValueError("indptr must start at 0")
        if np.any(np.diff(self.indptr) < 0):
            raise ValueError("indptr must be non-decreasing")
        if self.data.shape != self.indices.shape or self.data.ndim != 1:
            raise ValueError("data and indices must be 1-D arrays of equal length")
        if int(self.indptr[-1]) != self.data.size:
            raise ValueError(f"indptr[-1]={int(self.indptr[-1])} does not match nnz={self.data.size}")
        if self.indices.size and int(self.indices.min()) < 0:
            raise ValueError("column indices must be non-negative")

    def row_count(self) -> int:
        return int(self.indptr.size - 1)

    @property
    def nnz(self) -> int:
        return int(self.data.size)

    @property
    def n_cols(self) -> int:
        """Smallest column space that holds every stored column id."""

        return int(self.indices.max()) + 1 if self.indices.size else 0

    def row(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        start, end = int(self.indptr[i]), int(self.indptr[i + 1])
        return self.indices[start:end], self.data[start:end]

    def copy(self) -> "CSRMatrix":
        return CSRMatrix(self.data, self.indptr, self.indices)

    def to_dense(self, n_cols: Optional[int] = None) -> np.ndarray:
        ncols = self.n_cols if n_cols is None else int(n_cols)
        out = np.zeros((self.row_count(), ncols), dtype=np.float64)
        np.add.at(out, (self._rows, self.indices), self.data)
        return out

    def normalize(self, zero_norm: ZeroNormPolicy = "propagate") -> None:
        """Divide every row in place by its L2 norm.

        A row whose norm is exactly zero (stored entries that are all 0.0) has no defined
        direction. With ``zero_norm="propagate"`` the division still happens and the row becomes
        NaN, matching historical output. With ``zero_norm="keep"`` the row is left as zeros.
        Rows with no stored entries are unaffected either way.
        """

        if zero_norm not in ("propagate", "keep"):
            raise ValueError(f"Unknown zero-norm policy: {zero_norm}")

        sq = np.bincount(self._rows, weights=self.data * self.data, minlength=self.row_count())
        norms = np.sqrt(sq)[self._rows]
        if zero_norm == "keep":
            norms = np.where(norms == 0.0, 1.0, norms)
        with np.errstate(divide="ignore", invalid="ignore"):
            self.data = self.data / norms

    def product(self, vec: Sequence[float]) -> np.ndarray:
        """Return ``S @ vec`` (length n_rows)."""

        v = np.asarray(vec, dtype=np.float64)
        if self.indices.size and v.size <= int(self.indices.max()):
            raise ValueError(f"vector of length {v.size} is too short for column id {int(self.indices.max())}")
        return np.bincount(self._rows, weights=self.data * v[self.indices], minlength=self.row_count())

    def transpose_product(self, vec: Sequence[float], n_cols: Optional[int] = None) -> np.ndarray:
        """Return ``Sᵗ @ vec`` without building the transpose.

        ``n_cols`` sets the length of the result (the column space); it defaults to
        :attr:`n_cols` and must cover every stored column id.
        """

        v = np.asarray(vec, dtype=np.float64)
        if v.size != self.row_count():
            raise ValueError(f"vector length {v.size} != row count {self.row_count()}")
        ncols = self.n_cols if n_cols is None else int(n_cols)
        if ncols < self.n_cols:
            raise ValueError(f"n_cols={ncols} is smaller than the stored column space {self.n_cols}")
        return np.bincount(self.indices, weights=self.data * v[self._rows], minlength=ncols)

    def degrees(self) -> np.ndarray:
        """Row sums of the implicit similarity matrix, ``S·Sᵗ·1``."""

        ones = np.ones(self.row_count(), dtype=np.float64)
        return self.product(self.transpose_product(ones))

    def inverse_diagonal(self) -> "CSRMatrix":
        """Return D^-1 as a diagonal CSR matrix with one row per item.

        Items whose degree is zero (within machine epsilon) get an empty row instead of an
        inverted entry, so they contribute nothing in products.
        """

        deg = self.degrees()
        keep = ~(np.abs(deg) < DEGREE_EPSILON)
        indptr = np.concatenate(([0], np.cumsum(keep)))
        cols = np.flatnonzero(keep)
        return CSRMatrix(1.0 / deg[keep], indptr, cols)

    def __repr__(self) -> str:
        return f"CSRMatrix(n_rows={self.row_count()}, n_cols={self.n_cols}, nnz={self.nnz})"


@dataclass
class CSRBuilder:
    """Row-at-a-time accumulator for :class:`CSRMatrix`.

    Entries are kept in the order given; duplicate column ids in one row are kept as separate
    entries (products sum them).
    """

    data: List[float] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    indptr: List[int] = field(default_factory=lambda: [0])

    @property
    def n_rows(self) -> int:
        return len(self.indptr) - 1

    def add_row(self, entries: Iterable[Tuple[int, float]]) -> None:
        for k, v in entries:
            if int(k) < 0:
                raise ValueError(f"negative column id: {k}")
            self.indices.append(int(k))
            self.data.append(float(v))
        self.indptr.append(len(self.data))

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        data = np.asarray(self.data, dtype=np.float64)
        indices = np.asarray(self.indices, dtype=np.int64)
        indptr = np.asarray(self.indptr, dtype=np.int64)
        return data, indices, indptr

    def build(self) -> CSRMatrix:
        data, indices, indptr = self.to_arrays()
        return CSRMatrix(data, indptr, indices)


def save_csr_npz(path: str | Path, matrix: CSRMatrix, *, ids: Optional[Sequence[int]] = None) -> None:
    payload = {"data": matrix.data, "indices": matrix.indices, "indptr": matrix.indptr}
    if ids is not None:
        payload["ids"] = np.asarray(ids, dtype=np.int64)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, **payload)


def load_csr_npz(path: str | Path) -> Tuple[CSRMatrix, Optional[List[int]]]:
    """Load a bundle written by :func:`save_csr_npz`; ids are None when not stored."""

    with np.load(path) as z:
        matrix = CSRMatrix(z["data"], z["indptr"], z["indices"])
        ids = [int(x) for x in z["ids"]] if "ids" in z.files else None
    return matrix, ids
