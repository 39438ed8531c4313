#!/usr/bin/env python
"""
Polytomy Resolver Module - Resolves polytomies in phylogenetic trees

This module turns a tree with multifurcations into a strictly bifurcating
tree. Each polytomy is replaced by a random binary resolution of its children.
Nodes with a single child, which the Open Tree of Life keeps for named
taxa, are removed first.
"""

import random
import logging

from dendropy.datamodel.treemodel import Node


class PolytomyResolver:
    """Resolves polytomies into bifurcations with random tie-breaking."""

    def __init__(self, tree, seed=None):
        """
        Initialize with a tree and an optional random seed.

        Args:
            tree (dendropy.Tree): The tree containing polytomies to resolve.
            seed (int, optional): Seed for the tie-breaking random number
                                  generator. Without a seed, results differ
                                  between runs.
        """
        self.tree = tree
        self.seed = seed
        self.rng = random.Random(seed)
        self.logger = logging.getLogger(__name__)

    def find_polytomies(self):
        """
        Find all nodes with more than two children.

        Returns:
            list: Polytomy nodes in postorder.
        """
        return [node for node in self.tree.postorder_node_iter() if len(node.child_nodes()) > 2]

    def resolve_all_polytomies(self):
        """
        Make the tree strictly bifurcating.

        Returns:
            dict: Number of polytomies resolved, unary nodes removed and
                  internal nodes added.
        """
        unary_removed = self.suppress_unary_nodes()

        polytomies = self.find_polytomies()
        self.logger.info(f"Resolving {len(polytomies)} polytomies (seed={self.seed})")

        nodes_added = 0
        for polytomy in polytomies:
            nodes_added += self.resolve_polytomy(polytomy)

        self.logger.info(f"Added {nodes_added} internal nodes, removed {unary_removed} unary nodes")
        return {
            'polytomies': len(polytomies),
            'unary_removed': unary_removed,
            'nodes_added': nodes_added,
        }

    def resolve_polytomy(self, polytomy: Node) -> int:
        """
        Replace a polytomy by a random binary resolution of its children.

        Children are attached one at a time, in random order, to a randomly
        chosen edge of the subtree built so far (including the edge above its
        root). This samples uniformly among all rooted binary topologies of
        the children.

        :param polytomy: The polytomy node to resolve.
        :return: The number of internal nodes added.
        """
        children = polytomy.child_nodes()
        if len(children) < 3:
            return 0

        self.logger.debug(f"Resolving polytomy {polytomy.label} with {len(children)} children")

        order = list(children)
        self.rng.shuffle(order)
        for child in order[2:]:
            polytomy.remove_child(child)

        # Nodes whose parent edge can receive the next child
        attach_points = order[:2]
        added = 0
        for child in order[2:]:
            target = self.rng.choice(attach_points + [polytomy])
            new_node = Node()

            # Attaching above the current subtree root: push its children down
            if target is polytomy:
                for c in polytomy.child_nodes():
                    polytomy.remove_child(c)
                    new_node.add_child(c)
                polytomy.add_child(new_node)
                polytomy.add_child(child)

            # Attaching to an edge inside the subtree: split it
            else:
                parent = target.parent_node
                index = parent.child_nodes().index(target)
                parent.remove_child(target)
                parent.insert_child(index, new_node)
                new_node.add_child(target)
                new_node.add_child(child)

            attach_points.extend([new_node, child])
            added += 1

        return added

    def suppress_unary_nodes(self) -> int:
        """
        Remove nodes with exactly one child, connecting the child to the
        removed node's parent at the same position. A unary root is replaced
        by its child.

        :return: The number of nodes removed.
        """
        count = 0
        for node in list(self.tree.postorder_node_iter()):
            if len(node.child_nodes()) != 1:
                continue

            child = node.child_nodes()[0]
            node.remove_child(child)
            parent = node.parent_node
            if parent is None:
                self.tree.seed_node = child
            else:
                index = parent.child_nodes().index(node)
                parent.remove_child(node)
                parent.insert_child(index, child)
            count += 1

        if count:
            self.logger.info(f"Removed {count} unary nodes")
        return count

    def is_binary(self) -> bool:
        """Return True if every internal node has exactly two children."""
        return all(len(node.child_nodes()) == 2 for node in self.tree.internal_nodes())
