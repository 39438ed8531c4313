#!/usr/bin/env python
"""
Unit tests for the renderer module.

Figures are written to a temporary directory and checked for format and
pixel size.
"""

import struct
import pytest
import dendropy

from cladogram.polytomy_resolver import PolytomyResolver
from cladogram.renderer import STYLES, TreeRenderer, cladogram_heights, to_ete_tree, to_phylo_tree


@pytest.fixture
def binary_tree():
    newick = "(((Volvox_carteri,Gonium_multicoccum),Ulva_lactuca),((Pan_paniscus,Monosiga_brevicollis),Saccharomyces_cerevisiae));"
    return dendropy.Tree.get(data=newick, schema="newick")


@pytest.fixture
def renderer(binary_tree):
    return TreeRenderer(binary_tree)


def png_size(path):
    """Read width and height from a PNG header."""
    with open(path, 'rb') as f:
        header = f.read(24)
    assert header[:8] == b'\x89PNG\r\n\x1a\n'
    return struct.unpack('>II', header[16:24])


def test_cladogram_heights(binary_tree):
    heights = cladogram_heights(binary_tree)

    assert heights[binary_tree.seed_node] == 3
    assert {heights[leaf] for leaf in binary_tree.leaf_node_iter()} == {0}
    for node in binary_tree.internal_nodes():
        assert heights[node] == max(heights[c] for c in node.child_nodes()) + 1


def test_phylo_tree_aligns_tips(binary_tree):
    phylo_tree = to_phylo_tree(binary_tree)

    depths = phylo_tree.depths()
    tip_depths = {depths[clade] for clade in phylo_tree.get_terminals()}
    assert tip_depths == {3}
    assert sorted(c.name for c in phylo_tree.get_terminals()) == [
        "Gonium multicoccum", "Monosiga brevicollis", "Pan paniscus",
        "Saccharomyces cerevisiae", "Ulva lactuca", "Volvox carteri",
    ]


def test_ete_tree_aligns_tips(binary_tree):
    ete_tree = to_ete_tree(binary_tree)

    assert {leaf.get_distance(ete_tree) for leaf in ete_tree.iter_leaves()} == {3}
    assert len(ete_tree.get_leaves()) == 6
    assert "Volvox carteri" in ete_tree.get_leaf_names()


def test_ete_tree_keeps_internal_labels():
    tree = dendropy.Tree.get(data="((A,B)Volvocales,C)Chlorophyta;", schema="newick",
                             suppress_internal_node_taxa=True)
    ete_tree = to_ete_tree(tree)

    assert ete_tree.name == "Chlorophyta"
    assert (ete_tree & "A").up.name == "Volvocales"


def test_get_style_overrides(binary_tree):
    renderer = TreeRenderer(binary_tree, config={'styles': {'fan_png': {'fontsize': 12}}})

    style = renderer.get_style('fan_png')
    assert style['fontsize'] == 12
    assert style['dpi'] == 150
    assert STYLES['fan_png']['fontsize'] == 7.8


def test_get_style_unknown(renderer):
    with pytest.raises(ValueError):
        renderer.get_style('fan_svg')


def test_fan_tree_style(renderer):
    ts = renderer.fan_tree_style(renderer.get_style('fan_pdf'))

    assert ts.mode == 'c'
    assert ts.arc_span == 360
    assert not ts.show_leaf_name
    assert ts.legend_position == 3


def test_render_unknown_layout(renderer, tmp_path):
    with pytest.raises(ValueError):
        renderer.render(str(tmp_path / "tree.png"), 'unrooted', renderer.get_style('fan_png'))


def test_render_fan_png(renderer, tmp_path):
    path = renderer.render(str(tmp_path / "tree_fan.png"), 'fan', renderer.get_style('fan_png'))
    assert png_size(path) == (1500, 1500)


def test_render_fan_tiff(renderer, tmp_path):
    path = tmp_path / "tree_fan.tiff"
    renderer.render(str(path), 'fan', dict(renderer.get_style('fan_tiff'), figsize=(2, 2)))

    with open(path, 'rb') as f:
        assert f.read(4) in (b'II*\x00', b'MM\x00*')


def test_render_pdfs(renderer, tmp_path):
    for style_name, layout in (('fan_pdf', 'fan'), ('rectangular_pdf', 'rectangular')):
        path = tmp_path / f"tree_{layout}.pdf"
        renderer.render(str(path), layout, renderer.get_style(style_name))
        with open(path, 'rb') as f:
            assert f.read(5) == b'%PDF-'


def test_render_resolved_polytomies(tmp_path):
    tree = dendropy.Tree.get(data="(A,B,C,D,E,F,G)root;", schema="newick")
    PolytomyResolver(tree, seed=7).resolve_all_polytomies()
    renderer = TreeRenderer(tree)

    style = dict(renderer.get_style('rectangular_pdf'), figsize=(6, 4), dpi=50, margins=(0.2, 0.2, 0.2, 0.2))
    path = renderer.render(str(tmp_path / "small.png"), 'rectangular', style)
    assert png_size(path) == (300, 200)
