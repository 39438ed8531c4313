#!/usr/bin/env python
"""
Cladogram Pipeline - Main orchestration module

This module runs the cladogram workflow once, from taxon name resolution to
induced subtree retrieval, polytomy resolution, figure rendering and tree
export. Each stage consumes the output of the previous one.
"""

import os
import time
import logging

from cladogram import matching
from cladogram.corrections import relabel_tips
from cladogram.opentol_client import OpenToLClient
from cladogram.polytomy_resolver import PolytomyResolver
from cladogram.renderer import TreeRenderer
from cladogram.taxa import label_corrections, query_names
from cladogram.tree_parser import TreeParser
from cladogram.tree_stats import check_tip_labels, format_summary, summarize

# (style name, layout, file suffix) of each figure
FIGURES = (
    ('fan_pdf', 'fan', '_fan.pdf'),
    ('rectangular_pdf', 'rectangular', '_rectangular.pdf'),
    ('fan_tiff', 'fan', '_fan.tiff'),
    ('fan_png', 'fan', '_fan.png'),
)

# (schema, file suffix) of each tree interchange file
TREE_FORMATS = (
    ('newick', '.nwk'),
    ('nexus', '.nex'),
)


class CladogramPipeline:
    """Orchestrates the complete cladogram workflow."""

    def __init__(self, config=None, opentol_client=None):
        """
        Initialize with optional configuration.

        Args:
            config (dict, optional): Configuration options for the pipeline,
                                     with 'opentol', 'parser', 'matching',
                                     'resolver', 'output' and 'figures' sections.
            opentol_client (OpenToLClient, optional): Client to use instead of
                                                      building one from config.
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        # Pipeline state
        self.queries = []
        self.records = None
        self.valid = None
        self.excluded = []
        self.excluded_table = ''
        self.subtree_response = None
        self.tree = None
        self.retrieved_summary = None
        self.resolver_stats = None
        self.relabelled = []
        self.outputs = {}

        # Pipeline components
        self.opentol_client = opentol_client or OpenToLClient(config=self.config.get('opentol', {}))
        self.parser = TreeParser(config=self.config.get('parser', {}))

        output_config = self.config.get('output', {})
        self.output_dir = output_config.get('output_dir', os.path.join(os.getcwd(), 'tree_output'))
        self.prefix = output_config.get('prefix', 'multicellular_lineages')
        self.min_score = self.config.get('matching', {}).get('min_score', matching.MIN_SCORE)
        self.seed = self.config.get('resolver', {}).get('seed')
        self.relabel = output_config.get('relabel', False)

        self.logger.info("Cladogram pipeline initialized")

    def resolve_names(self, queries):
        """
        Match the query names to OTT IDs.

        Args:
            queries (list): TaxonQuery objects.

        Returns:
            list: MatchRecord objects, one per unique name.
        """
        self.queries = list(queries)
        self.logger.info(f"Attempting to match {len(self.queries)} species names to OTT IDs")
        self.records = self.opentol_client.match_names(query_names(self.queries))
        self.valid = None
        return self.records

    def filter_taxa(self):
        """
        Split match records into valid and excluded taxa.

        Returns:
            tuple: (valid, excluded) lists of MatchRecord objects.
        """
        if self.records is None:
            raise RuntimeError("No match records. Call resolve_names() first.")

        self.valid, self.excluded = matching.filter_matches(self.records, self.min_score)
        if self.excluded:
            self.logger.warning(f"{len(self.excluded)} taxa were excluded")
        self.excluded_table = matching.report_excluded(self.excluded)
        return self.valid, self.excluded

    def fetch_tree(self):
        """
        Retrieve and parse the induced subtree of the valid taxa.

        Returns:
            dendropy.Tree: The retrieved tree.
        """
        if self.valid is None:
            raise RuntimeError("No filtered taxa. Call filter_taxa() first.")

        ids = matching.ott_ids(self.valid)
        if len(ids) < 2:
            raise ValueError(f"At least 2 valid taxa are needed for a tree, got {len(ids)}")

        self.logger.info("Generating phylogenetic tree")
        self.subtree_response = self.opentol_client.get_induced_subtree(ids, label_format='name')
        self.tree = self.parser.parse_from_string(self.subtree_response['newick'])

        self.retrieved_summary = summarize(self.tree)
        self.logger.info(f"Retrieved tree has {self.retrieved_summary['polytomies']} polytomies "
                         f"(max degree {self.retrieved_summary['max_degree']})")
        check_tip_labels(self.tree, self.valid)
        return self.tree

    def binarize(self):
        """
        Resolve all polytomies of the retrieved tree.

        Returns:
            dict: Resolver statistics.
        """
        self._require_tree()
        self.logger.info("Converting polytomies to dichotomies")
        resolver = PolytomyResolver(self.tree, seed=self.seed)
        self.resolver_stats = resolver.resolve_all_polytomies()
        return self.resolver_stats

    def apply_corrections(self):
        """
        Relabel proxy tips with the names of the taxa they stand in for.

        Returns:
            list: (old, new) label pairs that were applied.
        """
        self._require_tree()
        self.relabelled = relabel_tips(self.tree, label_corrections(self.queries, self.valid))
        return self.relabelled

    def render_figures(self):
        """
        Draw the tree to all figure files.

        Returns:
            dict: Mapping of figure style name to file path.
        """
        self._require_tree()
        self._ensure_output_dir()

        renderer = TreeRenderer(self.tree, config=self.config.get('figures', {}))
        written = {}
        for style_name, layout, suffix in FIGURES:
            path = os.path.join(self.output_dir, self.prefix + suffix)
            written[style_name] = renderer.render(path, layout, renderer.get_style(style_name))

        self.outputs.update(written)
        return written

    def write_trees(self):
        """
        Write the tree as Newick and NEXUS.

        Returns:
            dict: Mapping of schema to file path.
        """
        self._require_tree()
        self._ensure_output_dir()

        written = {}
        for schema, suffix in TREE_FORMATS:
            path = os.path.join(self.output_dir, self.prefix + suffix)
            self.tree.write(path=path, schema=schema, suppress_rooting=True)
            self.logger.info(f"Tree written to {path}")
            written[schema] = path

        self.outputs.update(written)
        return written

    def report(self):
        """Return the printable statistics of the current tree."""
        self._require_tree()
        return format_summary(summarize(self.tree))

    def run(self, queries):
        """
        Run every stage of the pipeline.

        Args:
            queries (list): TaxonQuery objects.

        Returns:
            dict: Mapping of output name to file path.
        """
        start_time = time.time()

        self.resolve_names(queries)
        self.filter_taxa()
        self.fetch_tree()
        self.binarize()
        if self.relabel:
            self.apply_corrections()
        self.render_figures()
        self.write_trees()

        elapsed_time = time.time() - start_time
        self.logger.info(f"Cladogram pipeline completed in {elapsed_time:.2f} seconds")
        return dict(self.outputs)

    def _require_tree(self):
        if self.tree is None:
            raise RuntimeError("No tree loaded. Call fetch_tree() first.")

    def _ensure_output_dir(self):
        os.makedirs(self.output_dir, exist_ok=True)
