#!/usr/bin/env python
"""
Unit tests for the tree_stats and corrections modules.
"""

import dendropy
import pytest

from cladogram.corrections import relabel_tips
from cladogram.opentol_client import MatchRecord
from cladogram.tree_stats import check_tip_labels, clades, format_summary, summarize, tip_labels


@pytest.fixture
def tree():
    newick = "((Volvox_carteri,Gonium_multicoccum,Ulva_lactuca)Chlorophyta,(Pan_paniscus)Hominini,Choanoeca_perplexa)root;"
    return dendropy.Tree.get(data=newick, schema="newick", suppress_internal_node_taxa=True)


def record(name):
    return MatchRecord(name, 1, 1.0, name, name, False, False, (), 1)


def test_tip_labels_sorted(tree):
    assert tip_labels(tree) == [
        "Choanoeca perplexa", "Gonium multicoccum", "Pan paniscus", "Ulva lactuca", "Volvox carteri"
    ]


def test_clades(tree):
    assert clades(tree) == {
        frozenset(tip_labels(tree)),
        frozenset(["Volvox carteri", "Gonium multicoccum", "Ulva lactuca"]),
        frozenset(["Pan paniscus"]),
    }


def test_clades_ignore_child_order():
    a = dendropy.Tree.get(data="((A,B),(C,D));", schema="newick")
    b = dendropy.Tree.get(data="((D,C),(B,A));", schema="newick")
    c = dendropy.Tree.get(data="((A,C),(B,D));", schema="newick")
    assert clades(a) == clades(b)
    assert clades(a) != clades(c)


def test_summarize(tree):
    summary = summarize(tree)
    assert summary['tips'] == 5
    assert summary['internal_nodes'] == 3
    assert summary['polytomies'] == 2
    assert summary['unary_nodes'] == 1
    assert summary['max_degree'] == 3
    assert summary['tip_labels'] == tip_labels(tree)


def test_format_summary(tree):
    text = format_summary(summarize(tree))
    assert "Number of tips: 5" in text
    assert "Number of internal nodes: 3" in text
    lines = text.splitlines()
    assert lines[lines.index("Tip labels:") + 1].strip() == "Choanoeca perplexa"


def test_check_tip_labels_match(tree):
    records = [record(label) for label in tip_labels(tree)]
    assert check_tip_labels(tree, records) == ([], [])


def test_check_tip_labels_mismatch(tree):
    records = [record(label) for label in tip_labels(tree) if label != "Ulva lactuca"]
    records.append(record("Tetrabaena socialis"))

    missing, extra = check_tip_labels(tree, records)

    assert missing == ["Tetrabaena socialis"]
    assert extra == ["Ulva lactuca"]


def test_relabel_tips(tree):
    applied = relabel_tips(tree, {
        "Gonium multicoccum": "Tetrabaena socialis",
        "Choanoeca perplexa": "Choanoeca flexa",
        "Pirum gemmata": "Chromosphaera perkinsii",
    })

    assert sorted(applied) == [
        ("Choanoeca perplexa", "Choanoeca flexa"),
        ("Gonium multicoccum", "Tetrabaena socialis"),
    ]
    labels = tip_labels(tree)
    assert "Tetrabaena socialis" in labels
    assert "Choanoeca flexa" in labels
    assert "Gonium multicoccum" not in labels
    assert len(labels) == 5


def test_relabel_tips_without_taxa():
    tree = dendropy.Tree.get(data="(A,B);", schema="newick")
    for leaf in tree.leaf_node_iter():
        leaf.label = leaf.taxon.label
        leaf.taxon = None

    assert relabel_tips(tree, {"A": "Z"}) == [("A", "Z")]
    assert tip_labels(tree) == ["B", "Z"]
