#!/usr/bin/env python
"""
Tree Parser Module - Parses Newick and NEXUS trees

This module parses the induced subtree returned by the Open Tree of Life, and
the interchange files written by the pipeline, into DendroPy tree objects.
"""

import os
import logging
import dendropy


class TreeParser:
    """Parses Newick or NEXUS trees into DendroPy tree objects."""

    # File extensions that are read as NEXUS, everything else is Newick
    NEXUS_EXTENSIONS = ('.nex', '.nexus', '.nxs')

    def __init__(self, config=None):
        """
        Initialize the tree parser.

        Args:
            config (dict, optional): Configuration dictionary. May include a
                                     'schema' dict of DendroPy reader options.
        """
        self.config = config or {}
        self.tree = None
        self.logger = logging.getLogger(__name__)

    def parse_from_file(self, filepath, schema=None):
        """
        Parse a tree from a file path.

        Args:
            filepath (str): Path to the tree file.
            schema (str, optional): 'newick' or 'nexus'. Inferred from the
                                    file extension if not given.

        Returns:
            dendropy.Tree: The parsed tree object.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file cannot be parsed as a tree.
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Tree file not found: {filepath}")

        schema = schema or self._schema_for_path(filepath)
        self.logger.info(f"Parsing {schema} tree from file: {filepath}")

        try:
            self.tree = dendropy.Tree.get(
                path=str(filepath),
                schema=schema,
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree file: {str(e)}")
            raise ValueError(f"Could not parse tree file: {str(e)}")

        self._log_tree_stats()
        return self.tree

    def parse_from_string(self, tree_string, schema='newick'):
        """
        Parse a tree from a string.

        Args:
            tree_string (str): Newick or NEXUS tree string.
            schema (str): 'newick' or 'nexus'.

        Returns:
            dendropy.Tree: The parsed tree object.

        Raises:
            ValueError: If the string cannot be parsed as a tree.
        """
        self.logger.info(f"Parsing {schema} tree from string")

        try:
            self.tree = dendropy.Tree.get(
                data=tree_string,
                schema=schema,
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree string: {str(e)}")
            raise ValueError(f"Could not parse tree string: {str(e)}")

        self._log_tree_stats()
        return self.tree

    def _schema_for_path(self, filepath):
        ext = os.path.splitext(str(filepath))[1].lower()
        return 'nexus' if ext in self.NEXUS_EXTENSIONS else 'newick'

    def _get_schema_kwargs(self):
        """
        Get schema-specific keyword arguments.

        Returns:
            dict: Schema-specific keyword arguments.
        """
        # OpenToL writes spaces in taxon names as underscores, so we convert them back.
        # Internal node labels (clade names, mrcaott...) stay labels, not taxa.
        schema_kwargs = {
            'preserve_underscores': False,
            'suppress_internal_node_taxa': True,
            'suppress_leaf_node_taxa': False,
            'case_sensitive_taxon_labels': True,
        }

        # Add any schema-specific settings from config
        if 'schema' in self.config:
            schema_kwargs.update(self.config['schema'])

        return schema_kwargs

    def _log_tree_stats(self):
        """Log statistics about the parsed tree."""
        if self.tree is None:
            return

        num_tips = len(self.tree.leaf_nodes())
        num_internal = len(self.tree.internal_nodes())
        num_edges = len(self.tree.edges())

        self.logger.info(f"Tree parsed successfully with {num_tips} tips, "
                         f"{num_internal} internal nodes, and {num_edges} edges")
