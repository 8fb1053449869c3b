"""Item record parsing (text records -> feature matrix).

Record grammar, one record per line:

    <id>
    <id>,<feature_id>:<weight>,<feature_id>:<weight>,...

Parsing is deliberately forgiving at the record level:
- a malformed <id> skips the whole line (no row, no id),
- a weight below zero drops that single entry silently,
- a malformed feature pair is reported and the remaining pairs on that line are ignored.

Problems are collected as human-readable warnings on the result rather than raised, so one bad
line never aborts a large run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .sparse_matrix import CSRBuilder, CSRMatrix


@dataclass(frozen=True)
class ParsedRecord:
    item_id: Optional[int]
    entries: Sequence[Tuple[int, float]]
    warnings: Sequence[str] = ()

    @property
    def ok(self) -> bool:
        return self.item_id is not None


@dataclass(frozen=True)
class FeatureMatrix:
    """Feature matrix plus the item id occupying each row."""

    matrix: CSRMatrix
    ids: Sequence[int]
    warnings: Sequence[str] = ()

    def __post_init__(self) -> None:
        if len(self.ids) != self.matrix.row_count():
            raise ValueError(
                f"id list length {len(self.ids)} does not match matrix row count {self.matrix.row_count()}"
            )

    def __len__(self) -> int:
        return len(self.ids)


def _parse_pair(text: str) -> Tuple[int, float]:
    fid_txt, sep, weight_txt = text.partition(":")
    if not sep:
        raise ValueError(f"missing ':' in feature entry {text!r}")
    fid = int(fid_txt.strip())
    if fid < 0:
        raise ValueError(f"negative feature id in {text!r}")
    weight = float(weight_txt.strip())
    if not math.isfinite(weight):
        raise ValueError(f"non-finite weight in {text!r}")
    return fid, weight


def parse_record(line: str) -> ParsedRecord:
    """Parse a single record line."""

    text = line.strip()
    head, sep, tail = text.partition(",")

    try:
        item_id = int(head.strip())
    except ValueError:
        return ParsedRecord(item_id=None, entries=(), warnings=(f"invalid item id {head.strip()!r}; line skipped",))

    entries: List[Tuple[int, float]] = []
    warnings: List[str] = []
    if sep:
        for raw in tail.split(","):
            try:
                fid, weight = _parse_pair(raw)
            except ValueError as e:
                warnings.append(f"item {item_id}: {e}; remaining entries ignored")
                break
            if weight < 0:
                continue
            entries.append((fid, weight))

    return ParsedRecord(item_id=item_id, entries=tuple(entries), warnings=tuple(warnings))


@dataclass
class FeatureMatrixBuilder:
    """Accumulate record lines into a :class:`FeatureMatrix` (rows follow input order)."""

    ids: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    _csr: CSRBuilder = field(default_factory=CSRBuilder, repr=False)
    _lineno: int = 0

    def add_line(self, line: str) -> bool:
        """Add one line; returns True when it produced a row."""

        self._lineno += 1
        if not line.strip():
            return False

        rec = parse_record(line)
        for w in rec.warnings:
            self.warnings.append(f"line {self._lineno}: {w}")
        if not rec.ok:
            return False

        self._csr.add_row(rec.entries)
        self.ids.append(int(rec.item_id))  # type: ignore[arg-type]
        return True

    def add_lines(self, lines: Iterable[str]) -> "FeatureMatrixBuilder":
        for line in lines:
            self.add_line(line)
        return self

    def build(self) -> FeatureMatrix:
        return FeatureMatrix(matrix=self._csr.build(), ids=list(self.ids), warnings=list(self.warnings))


def build_feature_matrix(lines: Iterable[str]) -> FeatureMatrix:
    return FeatureMatrixBuilder().add_lines(lines).build()


def read_feature_matrix(path: str | Path) -> FeatureMatrix:
    """Read a UTF-8 record file.

    A missing or unreadable file raises ``OSError`` before any parsing happens. Bytes that are
    not valid UTF-8 raise ``ValueError`` naming the file and the last line decoded before the error.
    """

    builder = FeatureMatrixBuilder()
    with open(path, "r", encoding="utf-8") as f:
        try:
            builder.add_lines(f)
        except UnicodeDecodeError as e:
            raise ValueError(f"{path}: not valid UTF-8 after line {builder._lineno} ({e.reason})") from e
    return builder.build()
