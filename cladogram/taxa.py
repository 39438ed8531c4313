#!/usr/bin/env python
"""
Taxa Module - Input list of multicellular lineages and their unicellular relatives

This module holds the ordered list of taxon names that are sent to the Open Tree
of Life for name resolution, grouped by clade. Some taxa are misplaced in, or
absent from, the Open Tree of Life. For those a correctly placed proxy taxon is
queried instead and its tip is relabelled once the tree has been retrieved.

Taxonomic validation: https://www.ncbi.nlm.nih.gov/Taxonomy/Browser/wwwtax.cgi
Tree source data: https://tree.opentreeoflife.org
"""

from collections import namedtuple

# A single name sent to TNRS, with its clade grouping and manual-correction notes
TaxonQuery = namedtuple('TaxonQuery', ['name', 'clade', 'note', 'rename_to'], defaults=('', '', None))


def _group(clade, *entries):
    """Build queries for one clade. Entries are names or (name, note[, rename_to]) tuples."""
    queries = []
    for entry in entries:
        if isinstance(entry, str):
            queries.append(TaxonQuery(entry, clade))
        else:
            queries.append(TaxonQuery(entry[0], clade, *entry[1:]))
    return queries


MULTICELLULAR_TAXA = (
    _group(
        "Methanobacteriota (Archaea)",
        ("Methanosarcina barkeri",
         "No unicellular relative found that is distant from the Halobacteria clade"),
    )
    + _group(
        "Halobacteria (Archaea)",
        "Haloferax volcanii",
        "Haloarcula marismortui",
    )
    + _group(
        "Desulfobacteria",
        "Magnetoglobus multicellularis",
        "Algorimarina butyrica",
    )
    + _group(
        "Thermodesulfobacteriota",
        "Electronema",
        ("Desulfovibrio vulgaris", "Basionym: Nitratidesulfovibrio vulgaris"),
    )
    + _group(
        "Clostridia-Eubacteriales",
        "Candidatus Arthromitus",
        "Heliophilum fasciatum",
    )
    + _group(
        "Bacillati-Chloroflexota",
        "Chloroflexus",
        "Dehalococcoides mccartyi",
    )
    + _group(
        "Pseudomonadati-Proteobacteria",
        "Thioploca araucae",
        "Thiobacillus denitrificans",
    )
    + _group(
        "Pseudomonadati-Myxococcota",
        "Anaeromyxobacter dehalogenans",
        "Chondromyces crocatus",
    )
    # Chlorophyta, Streptophyta and Rhodophyta topology matches
    # Umen & Herron 2021 (Ann Rev), Fig. 1
    + _group(
        "Chlorophyta-Ulvales (Ulvophyceae)",
        "Ulva lactuca",
        "Oltmannsiellopsis viridis",
    )
    + _group(
        "Volvocine algae",
        "Chlamydomonas reinhardtii",
        ("Gonium multicoccum",
         "Tetrabaena socialis is misplaced as an outgroup in the Open Tree of Life; "
         "Gonium is correctly placed within the clade",
         "Tetrabaena socialis"),
        "Volvox carteri",
    )
    + _group(
        "Prasiolales",
        "Prasiola calophylla",
    )
    + _group(
        "Streptophyta",
        ("Chara braunii", "Charophytes"),
        ("Mesostigma viride", "Streptophyta"),
        ("Rosa gallica", "Land plants"),
        ("Mesotaenium endlicherianum", "Zygnematophyceae"),
    )
    + _group(
        "Rhodophyta",
        "Pyropia tenera",
        "Porphyridium purpureum",
    )
    # Holozoa needs manual rearrangement following Ruiz-Trillo et al. 2023
    + _group(
        "Holozoa-Metazoa",
        "Pan paniscus",
    )
    # Choanoflagellate tips follow Brunet et al. 2019
    + _group(
        "Holozoa-Choanoflagellata",
        ("Salpingoeca rosetta",
         "Move as outgroup to Monosiga and Choanoeca after generating the tree"),
        "Monosiga brevicollis",
        ("Choanoeca perplexa",
         "Choanoeca flexa is not in the Open Tree of Life",
         "Choanoeca flexa"),
    )
    + _group(
        "Holozoa-Filasterea",
        "Capsaspora owczarzaki",
        "Ministeria vibrans",
    )
    + _group(
        "Holozoa-Ichthyosporea",
        "Sphaeroforma arctica",
        ("Pirum gemmata",
         "Chromosphaera perkinsii is not in the Open Tree of Life",
         "Chromosphaera perkinsii"),
    )
    + _group("Lentinula", "Lentinula edodes", "Rhodotorula mucilaginosa")
    + _group("Aspergillus", "Aspergillus fumigatus", "Saccharomyces cerevisiae")
    + _group("Nereocystis", "Nereocystis luetkeana", "Chattonella subsalsa")
    + _group("Synura", "Synura uvella", "Mallomonas akrokomos")
    + _group("Albugo", "Albugo candida", "Hyphochytrium catenoides")
    + _group("Viridiuvalis", "Viridiuvalis adhaerens", "Lotharella globosa")
    + _group("Zoothamnium", "Zoothamnium niveum", "Epistylis anastatica")
    + _group("Dictyostelium", "Dictyostelium discoideum", "Dermamoeba algensis")
    + _group("Copromyxa", "Copromyxa protea", "Amoeba proteus")
    + _group("Fonticula", "Fonticula alba", "Nuclearia simplex")
    + _group("Sorogena", "Sorogena stoianovitchae", "Cyrtolophosidida")
    + _group("Sorodiplophrys", "Sorodiplophrys stercorea", "Stellarchytrium dubum")
    + _group("Guttulinopsis", "Guttulinopsis nivea")
    + _group("Acrasis", "Acrasis rosea", "Naegleria gruberi")
)


def query_names(queries):
    """
    Return the names to send to name resolution, in input order.

    Args:
        queries (list): List of TaxonQuery objects.

    Returns:
        list: Taxon name strings.
    """
    return [q.name for q in queries]


def label_corrections(queries, records=None):
    """
    Return the tip relabelling needed for proxy taxa.

    Tips carry the display name of the name resolution match, which may differ
    from the queried name. When records are given the mapping is keyed on
    that display name, joined to its query through the search string.

    Args:
        queries (list): List of TaxonQuery objects.
        records (list, optional): MatchRecord objects of the queries.

    Returns:
        dict: Mapping of proxy tip label to the taxon it stands in for.
    """
    renames = {q.name: q.rename_to for q in queries if q.rename_to}
    if records is None:
        return renames

    return {
        rec.name: renames[rec.search_string]
        for rec in records
        if rec.search_string in renames and rec.name
    }
