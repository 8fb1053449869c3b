from __future__ import annotations

import json

import numpy as np
import pandas as pd
import pytest

from lexrank_toolkit.config import LexRankConfig, load_config
from lexrank_toolkit.core.io import detect_output_format, format_score_lines, write_scores
from lexrank_toolkit.core.metadata import (
    MAX_RECORDED_WARNINGS,
    metadata_sidecar_path,
    solver_summary,
    write_run_metadata,
)
from lexrank_toolkit.ranking.lexrank import LexRankResult


def test_detect_output_format() -> None:
    assert detect_output_format("scores.txt") == "lines"
    assert detect_output_format("scores") == "lines"
    assert detect_output_format("scores.CSV") == "csv"
    assert detect_output_format("scores.tab") == "tsv"
    assert detect_output_format("scores.pq") == "parquet"
    assert detect_output_format("scores.csv", "lines") == "lines"
    with pytest.raises(ValueError, match="Unknown output format"):
        detect_output_format("scores.txt", "xlsx")


def test_format_score_lines_matches_reference_layout() -> None:
    text = format_score_lines([1, 2, 3], [1 / 3, 1 / 3, 1 / 6])
    assert text == "1:0.333333\n2:0.333333\n3:0.166667\n"


def test_format_score_lines_precision_and_nan() -> None:
    assert format_score_lines([7], [0.123456789], precision=3) == "7:0.123\n"
    assert format_score_lines([7], [float("nan")]) == "7:nan\n"


def test_format_score_lines_length_mismatch() -> None:
    with pytest.raises(ValueError, match="ids but"):
        format_score_lines([1, 2], [0.5])


def test_write_scores_lines(tmp_path) -> None:
    out = tmp_path / "sub" / "output.txt"
    assert write_scores(out, [5, 9], [0.25, 0.75]) == "lines"
    assert out.read_text(encoding="utf-8").splitlines() == ["5:0.25", "9:0.75"]


def test_write_scores_csv_and_tsv(tmp_path) -> None:
    csv_out = tmp_path / "scores.csv"
    write_scores(csv_out, [5, 9], [0.25, 0.75])
    df = pd.read_csv(csv_out)
    assert list(df.columns) == ["Item_ID", "Score"]
    assert list(df["Item_ID"]) == [5, 9]

    tsv_out = tmp_path / "scores.tsv"
    write_scores(tsv_out, [5, 9], [0.25, 0.75])
    df = pd.read_csv(tsv_out, sep="\t")
    assert df["Score"].tolist() == pytest.approx([0.25, 0.75])


def test_run_metadata_sidecar(tmp_path) -> None:
    inp = tmp_path / "in.txt"
    inp.write_text("1\n", encoding="utf-8")
    out = tmp_path / "scores.txt"
    out.write_text("1:0.5\n", encoding="utf-8")
    result = LexRankResult(scores=np.array([0.5, 0.25]), change_norms=[0.2, 0.05], iterations=2, damping=0.3)

    sidecar = write_run_metadata(
        tool="lexrank",
        output_path=out,
        result=result,
        zero_norm_rows="keep",
        nnz=4,
        input_path=inp,
        parse_warnings=["line 2: invalid item id 'x'; line skipped"],
        output_options={"format": "lines", "precision": 6},
    )
    assert sidecar == metadata_sidecar_path(out) == tmp_path / "scores.metadata.json"

    payload = json.loads(sidecar.read_text(encoding="utf-8"))
    assert payload["tool"] == "lexrank"
    assert payload["input"]["sha256"] and len(payload["input"]["sha256"]) == 64
    assert payload["output"]["size_bytes"] == len("1:0.5\n")
    assert payload["output"]["format"] == "lines"
    assert payload["parse"]["warning_count"] == 1
    assert "numpy" in payload["versions"]

    solver = payload["solver"]
    assert solver["iterations"] == 2
    assert solver["damping"] == pytest.approx(0.3)
    assert solver["zero_norm_rows"] == "keep"
    assert solver["n_items"] == 2
    assert solver["nnz"] == 4
    assert solver["last_change"] == pytest.approx(0.05)
    assert solver["score_sum"] == pytest.approx(0.75)


def test_solver_summary_counts_non_finite_scores() -> None:
    result = LexRankResult(scores=np.array([np.nan, 0.2, 0.4]), change_norms=[np.nan], iterations=1, damping=0.5)
    summary = solver_summary(result, zero_norm_rows="propagate")
    assert summary["non_finite_scores"] == 1
    assert summary["score_min"] == pytest.approx(0.2)
    assert summary["score_max"] == pytest.approx(0.4)


def test_parse_warnings_are_capped(tmp_path) -> None:
    out = tmp_path / "scores.txt"
    out.write_text("", encoding="utf-8")
    warnings = [f"line {i}: bad" for i in range(MAX_RECORDED_WARNINGS + 10)]
    sidecar = write_run_metadata(
        tool="lexrank",
        output_path=out,
        result=LexRankResult(scores=np.zeros(0)),
        parse_warnings=warnings,
    )
    payload = json.loads(sidecar.read_text(encoding="utf-8"))
    assert payload["parse"]["warning_count"] == MAX_RECORDED_WARNINGS + 10
    assert len(payload["parse"]["warnings"]) == MAX_RECORDED_WARNINGS
    assert payload["solver"]["score_min"] is None


def test_default_config() -> None:
    cfg = load_config(None)
    assert cfg == LexRankConfig()
    assert cfg.output == "output.txt"
    assert cfg.zero_norm_rows == "propagate"


def test_config_json_and_merge(tmp_path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"output": "a.csv", "precision": 9, "zero_norm_rows": "keep"}), encoding="utf-8")
    cfg = load_config(path)
    assert cfg.output == "a.csv"
    assert cfg.precision == 9

    merged = cfg.merged(output="b.txt", precision=None, zero_norm_rows=None)
    assert merged.output == "b.txt"
    assert merged.precision == 9
    assert merged.zero_norm_rows == "keep"


def test_config_yaml(tmp_path) -> None:
    pytest.importorskip("yaml")
    path = tmp_path / "cfg.yaml"
    path.write_text("write_metadata: true\noutput_format: tsv\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.write_metadata is True
    assert cfg.output_format == "tsv"


def test_config_rejects_unknown_keys(tmp_path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"threshold": 0.1}), encoding="utf-8")
    with pytest.raises(ValueError, match="Unknown config keys"):
        load_config(path)


def test_config_rejects_bad_policy() -> None:
    with pytest.raises(ValueError, match="zero_norm_rows"):
        LexRankConfig(zero_norm_rows="zero")
