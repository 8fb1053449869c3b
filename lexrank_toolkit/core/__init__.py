# ruff: noqa: F401

"""Shared utilities for LexRank Toolkit (score output and run provenance)."""

from __future__ import annotations

from .io import detect_output_format, format_score_lines, scores_to_dataframe, write_scores
from .metadata import metadata_sidecar_path, sha256_file, write_run_metadata
