"""Tests for the high-level API and argparse wiring in main.py."""

import io

import numpy as np
import pytest
from PIL import Image

from main import AuthenticityAPI, build_parser


def _config(tmp_path):
    cfg = tmp_path / "analyzer.yaml"
    cfg.write_text(
        "storage:\n"
        f"  results_dir: {tmp_path / 'analyses'}\n"
        f"  reports_dir: {tmp_path / 'reports'}\n"
    )
    return cfg


def _png(path):
    buf = io.BytesIO()
    Image.fromarray(np.full((24, 24, 3), 90, dtype=np.uint8)).save(buf, format="PNG")
    path.write_bytes(buf.getvalue())
    return path


def test_parser_subcommands():
    parser = build_parser()
    args = parser.parse_args(["analyze", "x.png", "--no-save"])
    assert args.command == "analyze" and args.image == "x.png" and args.no_save
    args = parser.parse_args(["batch", "a.png", "https://example.com/b.jpg"])
    assert args.sources == ["a.png", "https://example.com/b.jpg"]
    args = parser.parse_args(["list", "--type", "edited"])
    assert args.type == "edited"
    with pytest.raises(SystemExit):
        parser.parse_args(["list", "--type", "fake"])


def test_analyze_report_and_list(tmp_path):
    api = AuthenticityAPI(_config(tmp_path))
    out = api.analyze_file(_png(tmp_path / "gray.png"))
    assert out["result_type"] in ("real", "edited", "ai_generated")
    assert "id" in out

    listed = api.list_analyses()
    assert [r["id"] for r in listed] == [out["id"]]

    path = api.write_report(out["id"])
    html = (tmp_path / "reports" / f"TruePic-Report-{out['id'][:8]}.html").read_text(encoding="utf-8")
    assert path.endswith(".html")
    assert "data:image/png;base64," in html


def test_analyze_no_save(tmp_path):
    api = AuthenticityAPI(_config(tmp_path))
    out = api.analyze_file(_png(tmp_path / "gray.png"), save=False)
    assert "id" not in out
    assert api.list_analyses() == []


def test_batch_summary(tmp_path):
    api = AuthenticityAPI(_config(tmp_path))
    good = _png(tmp_path / "a.png")
    summary = api.analyze_batch([str(good), str(tmp_path / "missing.png")])
    assert summary["total"] == 2
    assert summary["counts"]["failed"] == 1
    assert summary["status"] == "completed"
    assert "batch_id" in summary
