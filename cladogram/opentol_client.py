#!/usr/bin/env python
"""
OpenToL Client Module - Interface to Open Tree of Life APIs

This module provides a client for interacting with Open Tree of Life APIs
for taxon name resolution (TNRS) and induced subtree retrieval. Requests are
made once, without retries or caching: any failure is raised to the caller.
"""

import time
import logging
from collections import namedtuple

import requests

# One TNRS result per queried name. ott_id is None if the name was not matched.
MatchRecord = namedtuple('MatchRecord', [
    'search_string',
    'ott_id',
    'score',
    'name',
    'unique_name',
    'is_synonym',
    'is_approximate_match',
    'flags',
    'number_matches',
])


class OpenToLError(Exception):
    """Raised when an Open Tree of Life API returns an error or an unusable response."""

    def __init__(self, message, status_code=None, unknown=None):
        super().__init__(message)
        self.status_code = status_code
        # Map of 'ottNNN' to a reason such as 'pruned_ott_id'
        self.unknown = unknown or {}


class OpenToLClient:
    """Client for interacting with Open Tree of Life APIs."""

    # API base URLs
    OPENTOL_API_BASE = "https://api.opentreeoflife.org/v3"
    TNRS_MATCH_NAMES_URL = f"{OPENTOL_API_BASE}/tnrs/match_names"
    INDUCED_SUBTREE_URL = f"{OPENTOL_API_BASE}/tree_of_life/induced_subtree"

    # Maximum number of taxon names per batch for TNRS
    MAX_NAMES_PER_BATCH = 1000

    # Tip label formats accepted by the induced subtree endpoint
    LABEL_FORMATS = ('name', 'id', 'name_and_id')

    def __init__(self, config=None):
        """
        Initialize with optional configuration for API settings.

        Args:
            config (dict, optional): Configuration for API settings.
                                     May include 'timeout', 'batch_size',
                                     'rate_limit', 'context' and
                                     'approximate_matching'.
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        # Request settings
        self.batch_size = min(
            self.config.get('batch_size', self.MAX_NAMES_PER_BATCH),
            self.MAX_NAMES_PER_BATCH
        )
        self.rate_limit = self.config.get('rate_limit', 1.0)  # seconds between batches
        self.timeout = self.config.get('timeout', 60)  # seconds
        self.context = self.config.get('context')
        self.approximate_matching = self.config.get('approximate_matching', True)

        self.logger.debug(f"OpenToL client initialized with timeout={self.timeout}s")

    def match_names(self, taxon_names, context=None):
        """
        Resolve taxon names to OTT IDs using the TNRS API.

        Args:
            taxon_names (list): List of taxon names to resolve.
            context (str, optional): Taxonomic context to limit search scope.
                                     See OpenToL docs for valid contexts.

        Returns:
            list: One MatchRecord per unique name, in input order.

        Raises:
            OpenToLError: If the service returns an error or malformed data.
            requests.RequestException: On network failure.
        """
        context = context or self.context

        # Remove duplicates while preserving order
        unique_names = []
        seen = set()
        for name in taxon_names:
            if name not in seen:
                unique_names.append(name)
                seen.add(name)

        self.logger.info(f"Matching {len(unique_names)} taxon names against TNRS")

        records = []
        for i in range(0, len(unique_names), self.batch_size):
            batch = unique_names[i:i + self.batch_size]
            self.logger.debug(f"Processing batch of {len(batch)} names (batch {i // self.batch_size + 1})")
            records.extend(self._match_name_batch(batch, context))

            # Rate limiting
            if i + self.batch_size < len(unique_names):
                time.sleep(self.rate_limit)

        unmatched = [r.search_string for r in records if r.ott_id is None]
        if unmatched:
            percent_unmatched = len(unmatched) / len(records) * 100
            self.logger.warning(f"Could not match {len(unmatched)} names ({percent_unmatched:.1f}%)")

        return records

    def get_induced_subtree(self, ott_ids, label_format='name'):
        """
        Get induced subtree from OpenToL using OTT IDs.

        Args:
            ott_ids (list): List of OTT IDs.
            label_format (str): How tips are labelled: 'name', 'id' or 'name_and_id'.

        Returns:
            dict: Induced subtree response with 'newick', 'broken' and
                  'supporting_studies' entries.

        Raises:
            ValueError: If no OTT IDs or an unknown label format is given.
            OpenToLError: If the service returns an error or malformed data.
            requests.RequestException: On network failure.
        """
        if not ott_ids:
            raise ValueError("Empty list of OTT IDs provided to get_induced_subtree")
        if label_format not in self.LABEL_FORMATS:
            raise ValueError(f"Unknown label format: {label_format}")

        self.logger.info(f"Fetching induced subtree for {len(ott_ids)} OTT IDs")
        self.logger.debug(f"OTT IDs: {ott_ids}")

        payload = {
            'ott_ids': [int(ott_id) for ott_id in ott_ids],
            'label_format': label_format
        }
        result = self._post(self.INDUCED_SUBTREE_URL, payload)

        if 'newick' not in result:
            raise OpenToLError("Induced subtree response has no 'newick' entry")

        broken = result.get('broken') or {}
        if broken:
            self.logger.warning(f"{len(broken)} taxa are not monophyletic in the synthetic tree: {broken}")

        return result

    def _match_name_batch(self, names, context=None):
        """
        Resolve a batch of taxon names and select the best match per name.

        Args:
            names (list): Batch of unique taxon names to resolve.
            context (str, optional): Taxonomic context to limit search scope.

        Returns:
            list: MatchRecord per name, in batch order.
        """
        payload = {
            'names': names,
            'do_approximate_matching': self.approximate_matching
        }
        if context:
            payload['context_name'] = context

        response_data = self._post(self.TNRS_MATCH_NAMES_URL, payload)
        if 'results' not in response_data:
            raise OpenToLError("TNRS response has no 'results' entry")

        # Best match per queried name. Matches come sorted by the service, but we
        # sort by score ourselves and keep the first on ties.
        best_matches = {}
        number_matches = {}
        for result in response_data['results']:
            name = result.get('name', '')
            matches = [m for m in result.get('matches', []) if m.get('taxon', {}).get('ott_id')]
            number_matches[name] = len(matches)
            if matches:
                best_matches[name] = max(matches, key=lambda m: m.get('score', 0))

        records = []
        for name in names:
            match = best_matches.get(name)
            if match is None:
                self.logger.debug(f"No matches found for taxon name: {name}")
                records.append(MatchRecord(
                    search_string=name,
                    ott_id=None,
                    score=0.0,
                    name=None,
                    unique_name=None,
                    is_synonym=False,
                    is_approximate_match=False,
                    flags=(),
                    number_matches=0
                ))
                continue

            taxon_info = match['taxon']
            records.append(MatchRecord(
                search_string=name,
                ott_id=int(taxon_info['ott_id']),
                score=float(match.get('score', 0)),
                name=taxon_info.get('name') or match.get('matched_name', name),
                unique_name=taxon_info.get('unique_name') or taxon_info.get('name'),
                is_synonym=bool(match.get('is_synonym', False)),
                is_approximate_match=bool(match.get('is_approximate_match', False)),
                flags=tuple(taxon_info.get('flags', [])),
                number_matches=number_matches[name]
            ))

        return records

    def _post(self, url, payload):
        """
        Perform a single JSON POST request and decode the response.

        Raises:
            OpenToLError: On a non-200 status or a body that is not JSON.
        """
        response = requests.post(
            url,
            json=payload,
            headers={'Content-Type': 'application/json'},
            timeout=self.timeout
        )

        if response.status_code != 200:
            raise self._error_from_response(url, response)

        try:
            return response.json()
        except ValueError as e:
            raise OpenToLError(f"Malformed JSON response from {url}: {str(e)}",
                               status_code=response.status_code)

    def _error_from_response(self, url, response):
        """
        Build an OpenToLError from a failed response.

        Pruned or unknown OTT IDs are reported by the service like this:

        400 - {
            "message": "[/v3/tree_of_life/induced_subtree] Error: node_id 'ott7851091' was not found!",
            "unknown": {
                "ott7851091": "pruned_ott_id"
            }
        }
        """
        message = response.text
        unknown = {}
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                message = error_data.get('message', message)
                unknown = error_data.get('unknown') or {}
        except ValueError:
            pass

        if unknown:
            self.logger.error(f"Unknown or pruned OTT IDs: {unknown}")
        self.logger.error(f"Request to {url} failed: {response.status_code} - {message}")
        return OpenToLError(f"{response.status_code} - {message}",
                            status_code=response.status_code, unknown=unknown)
