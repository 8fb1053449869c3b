"""Continuous LexRank by damped power iteration over a sparse feature matrix.

With S the row-normalized feature matrix and D the diagonal of row sums of S·Sᵗ, the
transition matrix is B = S·Sᵗ·D^-1 and the iteration is

    p_{k+1} = (d/N)·1 + (1 - d)·B·p_k,      p_0 = (d/N)·1

B·p_k is evaluated right to left as three sparse passes
(D^-1 apply, Sᵗ apply, S apply), so the N x N similarity matrix is never built.

The iteration count is fixed: the solver always performs exactly ``iterations`` steps. The
L2 change between successive iterates is recorded for inspection only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from lexrank_toolkit.features.sparse_matrix import CSRMatrix, ZeroNormPolicy

IterationCallback = Callable[[int, float], None]


@dataclass
class LexRankResult:
    scores: np.ndarray
    change_norms: List[float] = field(default_factory=list)
    iterations: int = 0
    damping: float = 0.0

    @property
    def n_items(self) -> int:
        return int(self.scores.size)

    @property
    def last_change(self) -> Optional[float]:
        return self.change_norms[-1] if self.change_norms else None


class LexRankSolver:
    """Power-iteration solver.

    The solver takes ownership of ``matrix``: it is normalized in place during :meth:`solve`.
    Pass ``matrix.copy()`` if the raw weights are still needed afterwards.
    """

    def __init__(
        self,
        matrix: CSRMatrix,
        *,
        iterations: int,
        damping: float,
        zero_norm: ZeroNormPolicy = "propagate",
    ) -> None:
        if int(iterations) != iterations or iterations < 0:
            raise ValueError(f"iterations must be a non-negative integer, got {iterations!r}")
        if not (0.0 <= float(damping) <= 1.0):
            raise ValueError(f"damping must be within [0, 1], got {damping!r}")
        self.matrix = matrix
        self.iterations = int(iterations)
        self.damping = float(damping)
        self.zero_norm = zero_norm
        self.inv_degree: Optional[CSRMatrix] = None

    def _step(self, inv_degree: CSRMatrix, p: np.ndarray, teleport: np.ndarray) -> np.ndarray:
        spread = self.matrix.product(self.matrix.transpose_product(inv_degree.product(p)))
        return teleport + (1.0 - self.damping) * spread

    def solve(self, callback: Optional[IterationCallback] = None) -> LexRankResult:
        n = self.matrix.row_count()
        if n == 0:
            return LexRankResult(scores=np.zeros(0), iterations=self.iterations, damping=self.damping)

        self.matrix.normalize(zero_norm=self.zero_norm)
        self.inv_degree = inv_degree = self.matrix.inverse_diagonal()

        # p_0 doubles as the teleportation term.
        teleport = np.full(n, self.damping / n, dtype=np.float64)
        p = teleport.copy()

        norms: List[float] = []
        for k in range(self.iterations):
            nxt = self._step(inv_degree, p, teleport)
            change = float(np.linalg.norm(nxt - p))
            norms.append(change)
            if callback is not None:
                callback(k + 1, change)
            p = nxt

        return LexRankResult(scores=p, change_norms=norms, iterations=self.iterations, damping=self.damping)


def lexrank_scores(
    matrix: CSRMatrix,
    iterations: int,
    damping: float,
    *,
    zero_norm: ZeroNormPolicy = "propagate",
    callback: Optional[IterationCallback] = None,
) -> np.ndarray:
    """Return the LexRank score vector, positionally aligned with the matrix rows."""

    solver = LexRankSolver(matrix, iterations=iterations, damping=damping, zero_norm=zero_norm)
    return solver.solve(callback=callback).scores
