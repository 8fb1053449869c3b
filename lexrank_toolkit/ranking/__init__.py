# ruff: noqa: F401

"""Centrality solvers."""

from __future__ import annotations

from .lexrank import LexRankResult, LexRankSolver, lexrank_scores
