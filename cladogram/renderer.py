#!/usr/bin/env python
"""
Tree Renderer Module - Draws cladograms as figure files

This module draws a topology-only tree in a rectangular layout with
Bio.Phylo on matplotlib, and in a fan (circular) layout with an ete3
TreeStyle. Branch lengths are ignored: tips are aligned at the greatest depth
and every internal node sits one step before its shallowest child.
"""

import os
import logging
import tempfile

# Qt renders the fan layout without a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

import matplotlib
matplotlib.use('Agg')  # Headless backend, figures are only written to files
import matplotlib.pyplot as plt
from Bio import Phylo
from Bio.Phylo.BaseTree import Clade, Tree as PhyloTree
from ete3 import Tree as EteTree, TreeStyle, TextFace
from PIL import Image

from cladogram.tree_stats import leaf_label

FAN_TITLE = "Phylogenetic Tree of Multicellular Lineages (Fan Layout)\nBased on Open Tree of Life"
RECTANGULAR_TITLE = "Phylogenetic Tree of Multicellular Lineages (Rectangular Layout)"

# Resolution of vector output, in dots per inch
POINTS_PER_INCH = 72

# Margins are (bottom, left, top, right) in inches
FAN_PDF_STYLE = {
    'figsize': (20, 20),
    'dpi': None,
    'fontsize': 7.8,
    'title_fontsize': 14.4,
    'legend_fontsize': 10.8,
    'edge_width': 1.0,
    'margins': (0.6, 0.6, 0.6, 0.6),
    'title': FAN_TITLE,
    'legend': True,
}

FAN_TIFF_STYLE = dict(
    FAN_PDF_STYLE,
    figsize=(8, 8),
    dpi=300,
    fontsize=8.4,
    edge_width=1.2,
)

FAN_PNG_STYLE = dict(
    FAN_PDF_STYLE,
    figsize=(10, 10),
    dpi=150,
)

RECTANGULAR_PDF_STYLE = {
    'figsize': (25, 18),
    'dpi': None,
    'fontsize': 9.6,
    'title_fontsize': 14.4,
    'legend_fontsize': 10.8,
    'edge_width': 1.2,
    'margins': (0.6, 2.4, 0.6, 0.6),
    'title': RECTANGULAR_TITLE,
    'legend': False,
}

STYLES = {
    'fan_pdf': FAN_PDF_STYLE,
    'fan_tiff': FAN_TIFF_STYLE,
    'fan_png': FAN_PNG_STYLE,
    'rectangular_pdf': RECTANGULAR_PDF_STYLE,
}

RASTER_FORMATS = {
    '.tif': 'TIFF',
    '.tiff': 'TIFF',
}


def cladogram_heights(tree):
    """
    Count the steps from each node down to its deepest tip.

    Args:
        tree (dendropy.Tree): The tree to measure.

    Returns:
        dict: Mapping of node to height. Tips are 0, every internal node is
              one more than its highest child.
    """
    heights = {}
    for node in tree.postorder_node_iter():
        children = node.child_nodes()
        heights[node] = max(heights[c] for c in children) + 1 if children else 0
    return heights


def to_phylo_tree(tree):
    """
    Convert a dendropy tree to a Bio.Phylo tree with cladogram branch lengths.

    Every branch spans the height difference of its two ends, so all tips end
    at the same depth.
    """
    heights = cladogram_heights(tree)
    clades = {}
    for node in tree.postorder_node_iter():
        parent = node.parent_node
        clades[node] = Clade(
            branch_length=heights[parent] - heights[node] if parent is not None else None,
            name=leaf_label(node) if node.is_leaf() else node.label,
            clades=[clades[child] for child in node.child_nodes()],
        )
    return PhyloTree(root=clades[tree.seed_node], rooted=True)


def to_ete_tree(tree):
    """
    Convert a dendropy tree to an ete3 tree with cladogram branch lengths.
    """
    heights = cladogram_heights(tree)
    root = EteTree(name=tree.seed_node.label or '')
    nodes = {tree.seed_node: root}
    for node in tree.preorder_node_iter():
        parent = node.parent_node
        if parent is None:
            continue
        name = leaf_label(node) if node.is_leaf() else node.label
        nodes[node] = nodes[parent].add_child(name=name or '', dist=heights[parent] - heights[node])
    return root


def _points(value):
    # Qt fonts and pens take whole numbers
    return max(1, int(round(value)))


class TreeRenderer:
    """Draws a dendropy tree in fan or rectangular layout."""

    LAYOUTS = ('fan', 'rectangular')

    def __init__(self, tree, config=None):
        """
        Initialize with a tree and optional style overrides.

        Args:
            tree (dendropy.Tree): The tree to draw.
            config (dict, optional): May include 'styles', a dict of style
                                     name to a dict of overrides.
        """
        self.tree = tree
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

    def get_style(self, name):
        """Return a named style with any configured overrides applied."""
        if name not in STYLES:
            raise ValueError(f"Unknown figure style: {name}")
        style = dict(STYLES[name])
        style.update(self.config.get('styles', {}).get(name, {}))
        return style

    @property
    def num_tips(self):
        return len(self.tree.leaf_nodes())

    def draw_rectangular(self, ax, style):
        """
        Draw the tree rightwards with tip labels aligned on the right.

        Font size and edge width are taken from the active rc settings, see
        render_rectangular().

        Args:
            ax (matplotlib.axes.Axes): Axes to draw on.
            style (dict): Figure style.
        """
        Phylo.draw(
            to_phylo_tree(self.tree),
            label_func=lambda clade: clade.name if clade.is_terminal() else None,
            do_show=False,
            show_confidence=False,
            axes=ax,
        )
        ax.set_axis_off()
        ax.set_title(style['title'], fontsize=style['title_fontsize'])

    def fan_tree_style(self, style):
        """
        Build the ete3 TreeStyle of the fan layout.

        Args:
            style (dict): Figure style.

        Returns:
            ete3.TreeStyle: Circular style with tip labels, title and, if
                            enabled, a tip count legend at the bottom left.
        """
        fontsize = _points(style['fontsize'])
        line_width = _points(style['edge_width'])
        bottom, left, top, right = style['margins']

        def layout(node):
            node.img_style['size'] = 0
            node.img_style['hz_line_width'] = line_width
            node.img_style['vt_line_width'] = line_width
            if node.is_leaf():
                node.add_face(TextFace(f" {node.name}", fsize=fontsize), column=0, position="branch-right")

        ts = TreeStyle()
        ts.mode = 'c'
        ts.arc_start = 0
        ts.arc_span = 360
        ts.show_leaf_name = False
        ts.show_scale = False
        ts.layout_fn = layout
        ts.margin_bottom = int(bottom * POINTS_PER_INCH)
        ts.margin_left = int(left * POINTS_PER_INCH)
        ts.margin_top = int(top * POINTS_PER_INCH)
        ts.margin_right = int(right * POINTS_PER_INCH)

        for line in style['title'].split('\n'):
            ts.title.add_face(TextFace(line, fsize=_points(style['title_fontsize'])), column=0)

        if style.get('legend'):
            ts.legend.add_face(TextFace(f"Number of tips: {self.num_tips}",
                                        fsize=_points(style['legend_fontsize'])), column=0)
            ts.legend_position = 3

        return ts

    def render_fan(self, path, style):
        """Draw the fan layout with ete3 and save it to path."""
        dpi = style.get('dpi') or POINTS_PER_INCH
        width, height = style['figsize']
        size = {
            'w': int(round(width * dpi)),
            'h': int(round(height * dpi)),
            'units': 'px',
            'dpi': dpi,
        }

        ete_tree = to_ete_tree(self.tree)
        tree_style = self.fan_tree_style(style)

        image_format = RASTER_FORMATS.get(os.path.splitext(path)[1].lower())
        if image_format is None:
            ete_tree.render(path, tree_style=tree_style, **size)
            return

        # Qt writes PNG, Pillow converts it
        with tempfile.TemporaryDirectory() as tmp_dir:
            png_path = os.path.join(tmp_dir, 'fan.png')
            ete_tree.render(png_path, tree_style=tree_style, **size)
            with Image.open(png_path) as image:
                image.convert('RGB').save(path, format=image_format, dpi=(dpi, dpi))

    def render_rectangular(self, path, style):
        """Draw the rectangular layout with Bio.Phylo and save it to path."""
        width, height = style['figsize']
        bottom, left, top, right = style['margins']

        # Embed TrueType fonts so tip labels stay editable in the PDF
        rc = {
            'pdf.fonttype': 42,
            'font.size': style['fontsize'],
            'lines.linewidth': style['edge_width'],
        }
        with plt.rc_context(rc):
            fig = plt.figure(figsize=(width, height))
            try:
                fig.subplots_adjust(left=left / width, right=1 - right / width,
                                    bottom=bottom / height, top=1 - top / height)
                ax = fig.add_subplot(1, 1, 1)
                self.draw_rectangular(ax, style)

                save_kwargs = {}
                if style.get('dpi'):
                    save_kwargs['dpi'] = style['dpi']
                fig.savefig(path, **save_kwargs)
            finally:
                plt.close(fig)

    def render(self, path, layout, style):
        """
        Draw the tree and save it to a file.

        Args:
            path (str): Output file. The format follows the extension.
            layout (str): 'fan' or 'rectangular'.
            style (dict): Figure style.

        Returns:
            str: The path written.
        """
        if layout not in self.LAYOUTS:
            raise ValueError(f"Unknown layout: {layout}")

        path = str(path)
        if layout == 'fan':
            self.render_fan(path, style)
        else:
            self.render_rectangular(path, style)

        self.logger.info(f"Saved {layout} layout to {path}")
        return path
