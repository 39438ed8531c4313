#!/usr/bin/env python
"""
Tree Statistics Module - Tip labels, clades and summary statistics of trees

Topology is compared through clade sets: the set of tip labels below each
internal node. Two trees over the same tips have the same rooted topology if
and only if their clade sets are equal.
"""

import logging

logger = logging.getLogger(__name__)


def leaf_label(node):
    """Return the label of a leaf, taken from its taxon when it has one."""
    if node.taxon is not None:
        return node.taxon.label
    return node.label


def tip_labels(tree):
    """Return the sorted tip labels of a tree."""
    return sorted(leaf_label(leaf) for leaf in tree.leaf_node_iter())


def clades(tree):
    """
    Return the clade set of a tree.

    Args:
        tree (dendropy.Tree): The tree.

    Returns:
        set: One frozenset of tip labels per internal node.
    """
    below = {}
    result = set()
    for node in tree.postorder_node_iter():
        if node.is_leaf():
            below[node] = frozenset([leaf_label(node)])
        else:
            labels = frozenset().union(*(below[c] for c in node.child_node_iter()))
            below[node] = labels
            result.add(labels)
    return result


def summarize(tree):
    """
    Compute summary statistics of a tree.

    Args:
        tree (dendropy.Tree): The tree.

    Returns:
        dict: Tip count, internal node count, polytomy and unary node counts,
              the largest out-degree and the sorted tip labels.
    """
    internal = tree.internal_nodes()
    degrees = [len(node.child_nodes()) for node in internal]
    return {
        'tips': len(tree.leaf_nodes()),
        'internal_nodes': len(internal),
        'polytomies': sum(1 for d in degrees if d > 2),
        'unary_nodes': sum(1 for d in degrees if d == 1),
        'max_degree': max(degrees, default=0),
        'tip_labels': tip_labels(tree),
    }


def format_summary(summary):
    """Format the output of summarize() as a printable report."""
    lines = [
        "Tree Statistics:",
        f"Number of tips: {summary['tips']}",
        f"Number of internal nodes: {summary['internal_nodes']}",
        "",
        "Tip labels:",
    ]
    lines.extend(f"  {label}" for label in summary['tip_labels'])
    return "\n".join(lines)


def check_tip_labels(tree, records):
    """
    Compare the tip labels of a tree with the display names of match records.

    Args:
        tree (dendropy.Tree): The retrieved tree.
        records (list): MatchRecord objects the tree was requested for.

    Returns:
        tuple: (missing, extra) sorted lists. 'missing' holds display names
               with no tip, 'extra' holds tips with no display name.
    """
    expected = {r.name for r in records}
    observed = set(tip_labels(tree))

    missing = sorted(expected - observed)
    extra = sorted(observed - expected)
    if missing:
        logger.warning(f"{len(missing)} taxa have no tip in the tree: {missing}")
    if extra:
        logger.warning(f"{len(extra)} tips do not match a requested taxon: {extra}")
    return missing, extra
