#!/usr/bin/env python
"""
Matching Module - Filters TNRS match records by identifier and confidence score

A taxon is kept if and only if it has an OTT ID and its match score is at
least the minimum score. Everything else is reported as excluded.
"""

import logging

# Lowered to 0.5 to include more matches
MIN_SCORE = 0.5

logger = logging.getLogger(__name__)


def is_valid(record, min_score=MIN_SCORE):
    """Return True if the record has an OTT ID and scores at least min_score."""
    return record.ott_id is not None and record.score >= min_score


def filter_matches(records, min_score=MIN_SCORE):
    """
    Partition match records into valid and excluded records.

    Args:
        records (list): MatchRecord objects from name resolution.
        min_score (float): Minimum TNRS score to keep a match.

    Returns:
        tuple: (valid, excluded) lists, each preserving input order.
    """
    valid = []
    excluded = []
    for record in records:
        if is_valid(record, min_score):
            valid.append(record)
        else:
            excluded.append(record)

    logger.info(f"{len(valid)} of {len(records)} taxa passed the match filter (min score {min_score})")
    return valid, excluded


def ott_ids(records):
    """Return the OTT IDs of the records, without duplicates, in order."""
    ids = []
    seen = set()
    for record in records:
        if record.ott_id is not None and record.ott_id not in seen:
            ids.append(record.ott_id)
            seen.add(record.ott_id)
    return ids


def format_match_table(records):
    """
    Format match records as a fixed-width text table.

    Args:
        records (list): MatchRecord objects.

    Returns:
        str: The table, one row per record.
    """
    rows = [("search_string", "unique_name", "ott_id", "score", "approximate_match")]
    for r in records:
        rows.append((
            r.search_string,
            r.unique_name or "NA",
            str(r.ott_id) if r.ott_id is not None else "NA",
            f"{r.score:.2f}",
            str(r.is_approximate_match)
        ))

    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip() for row in rows]
    return "\n".join(lines)


def report_excluded(excluded):
    """
    Log the excluded taxa.

    Args:
        excluded (list): MatchRecord objects that did not pass the filter.

    Returns:
        str: Table of excluded taxa, or an empty string if none were excluded.
    """
    if not excluded:
        return ""

    for record in excluded:
        if record.ott_id is None:
            logger.warning(f"Excluded taxon '{record.search_string}': unmatched")
        else:
            logger.warning(f"Excluded taxon '{record.search_string}': "
                           f"score {record.score:.2f} for ott{record.ott_id}")

    return format_match_table(excluded)
