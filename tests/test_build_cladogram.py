#!/usr/bin/env python
"""
Unit tests for the build_cladogram command line interface.
"""

import json
import pytest
from pathlib import Path

import build_cladogram
from cladogram.pipeline import CladogramPipeline
from cladogram.taxa import TaxonQuery

from test_pipeline import TREE_TAXA, StubOpenToLClient


@pytest.fixture
def subtree_response():
    with open(Path(__file__).parent / "data" / "induced_subtree.json") as f:
        return json.load(f)


@pytest.fixture
def stub_pipeline(monkeypatch, subtree_response):
    """Make main() build its pipeline around a stub client."""
    created = []

    def factory(config=None):
        config['figures'] = {'styles': {
            name: {'figsize': (2, 2), 'dpi': 50, 'margins': (0.1, 0.1, 0.1, 0.1)}
            for name in ('fan_pdf', 'rectangular_pdf', 'fan_tiff', 'fan_png')
        }}
        pipeline = CladogramPipeline(config=config, opentol_client=StubOpenToLClient(subtree_response))
        created.append(pipeline)
        return pipeline

    queries = [TaxonQuery(name, "test") for name in TREE_TAXA] + [TaxonQuery("Stellarchytrium dubum", "test")]
    monkeypatch.setattr(build_cladogram, "CladogramPipeline", factory)
    monkeypatch.setattr(build_cladogram, "MULTICELLULAR_TAXA", queries)
    return created


def test_parse_args_defaults():
    args = build_cladogram.parse_args([])
    assert args.min_score == 0.5
    assert args.seed is None
    assert args.prefix == "multicellular_lineages"
    assert args.output_dir.endswith("tree_output")
    assert not args.relabel


def test_parse_args_options():
    args = build_cladogram.parse_args(["--seed", "7", "--min-score", "0.8", "-o", "out", "--relabel"])
    assert args.seed == 7
    assert args.min_score == 0.8
    assert args.output_dir == "out"
    assert args.relabel


def test_setup_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        build_cladogram.setup_logging("verbose")


def test_main_success(stub_pipeline, tmp_path, capsys):
    exit_code = build_cladogram.main(["--output-dir", str(tmp_path), "--seed", "3", "--log-level", "warning"])

    assert exit_code == 0
    pipeline = stub_pipeline[0]
    assert pipeline.seed == 3
    assert pipeline.output_dir == str(tmp_path)

    out = capsys.readouterr().out
    assert out.index("Match results:") < out.index("The following taxa were excluded")
    match_table = out[out.index("Match results:"):out.index("The following taxa were excluded")]
    assert "search_string" in match_table
    assert "Volvox carteri" in match_table
    assert "Stellarchytrium dubum" in match_table
    assert "The following taxa were excluded" in out
    assert "Stellarchytrium dubum" in out
    assert "Number of tips: 12" in out
    assert str(tmp_path / "multicellular_lineages.nwk") in out
    assert (tmp_path / "multicellular_lineages_fan.pdf").exists()


def test_main_failure_returns_error_code(stub_pipeline, tmp_path, monkeypatch):
    monkeypatch.setattr(build_cladogram, "MULTICELLULAR_TAXA", [TaxonQuery("Stellarchytrium dubum")])

    exit_code = build_cladogram.main(["--output-dir", str(tmp_path), "--log-level", "critical"])

    assert exit_code == 1


def test_main_failure_still_prints_match_results(stub_pipeline, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(build_cladogram, "MULTICELLULAR_TAXA", [TaxonQuery("Stellarchytrium dubum")])

    assert build_cladogram.main(["--output-dir", str(tmp_path), "--log-level", "critical"]) == 1

    out = capsys.readouterr().out
    assert "Match results:" in out
    assert "Stellarchytrium dubum" in out
