"""Run configuration.

Options that are not part of the positional command line (output location, format, numeric
policies) can be kept in a JSON or YAML file:

    {
      "output": "runs/scores.csv",
      "output_format": "auto",
      "precision": 8,
      "zero_norm_rows": "keep",
      "write_metadata": true,
      "save_matrix": null
    }

Command-line flags override values loaded from a config file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

ZERO_NORM_POLICIES = ("propagate", "keep")
OUTPUT_FORMATS = ("auto", "lines", "csv", "tsv", "parquet")


@dataclass(frozen=True)
class LexRankConfig:
    output: str = "output.txt"
    output_format: str = "auto"
    precision: int = 6
    zero_norm_rows: str = "propagate"
    write_metadata: bool = False
    save_matrix: Optional[str] = None

    def __post_init__(self) -> None:
        if self.zero_norm_rows not in ZERO_NORM_POLICIES:
            raise ValueError(f"zero_norm_rows must be one of {ZERO_NORM_POLICIES}, got {self.zero_norm_rows!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")
        if int(self.precision) < 1:
            raise ValueError(f"precision must be >= 1, got {self.precision!r}")

    def merged(self, **overrides: Any) -> "LexRankConfig":
        """Return a copy with every non-None override applied."""

        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _load_json_or_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    txt = p.read_text(encoding="utf-8")

    if p.suffix.lower() in (".yaml", ".yml"):
        try:
            import yaml  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise RuntimeError(
                "YAML config requested but PyYAML is not installed. Install with: pip install pyyaml"
            ) from e
        data = yaml.safe_load(txt)
        return data or {}

    return json.loads(txt)


def load_config(path: Optional[str | Path]) -> LexRankConfig:
    """Load a config file; ``None`` returns the defaults."""

    if path is None:
        return LexRankConfig()

    raw = _load_json_or_yaml(path)
    if not isinstance(raw, dict):
        raise ValueError("Config must be a mapping of option names to values")

    known = {f.name for f in fields(LexRankConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")

    return LexRankConfig(**raw)
