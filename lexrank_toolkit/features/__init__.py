# ruff: noqa: F401

"""Feature matrix subpackage.

CSR storage with the numeric primitives LexRank needs, and the record parser that fills it.
"""

from __future__ import annotations

from .records import FeatureMatrix, FeatureMatrixBuilder, build_feature_matrix, parse_record, read_feature_matrix
from .sparse_matrix import CSRBuilder, CSRMatrix, load_csr_npz, save_csr_npz
