"""LexRank Toolkit (importable package).

Graph-free Continuous LexRank: item centrality computed from a sparse feature matrix by damped
power iteration, without building the pairwise similarity graph.

The command line lives in `lexrank_toolkit.tools.lexrank_cli` (console script: `lexrank`).
"""

from __future__ import annotations
