#!/usr/bin/env python
"""
Corrections Module - Relabels proxy tips after tree retrieval

Some taxa are misplaced in, or missing from, the Open Tree of Life. A correctly
placed relative is queried in their stead, and its tip is renamed here.
"""

import logging

from cladogram.tree_stats import leaf_label

logger = logging.getLogger(__name__)


def relabel_tips(tree, mapping):
    """
    Rename tips whose label is a key of mapping.

    Args:
        tree (dendropy.Tree): The tree to relabel in place.
        mapping (dict): Mapping of current tip label to new tip label.

    Returns:
        list: (old, new) label pairs that were applied.
    """
    applied = []
    for leaf in tree.leaf_node_iter():
        old = leaf_label(leaf)
        if old not in mapping:
            continue

        new = mapping[old]
        if leaf.taxon is not None:
            leaf.taxon.label = new
        else:
            leaf.label = new
        applied.append((old, new))
        logger.info(f"Relabelled tip '{old}' as '{new}'")

    not_found = sorted(set(mapping) - {old for old, _ in applied})
    if not_found:
        logger.warning(f"No tip found to relabel for: {not_found}")

    return applied
