"""Region catalogs, mention extraction and request-scoped region graphs.

The package bundles the reference region and connectivity data, the
alias-based mention extractor with its context validator, and the builder
that restricts the reference network to the regions a set of documents
actually discusses.
"""

from .builder import FilteredGraph, GraphBuilder, GraphEdge
from .catalog import (
    CatalogError,
    ConnectivityCatalog,
    RegionCatalog,
    build_catalogs,
    load_reference_catalogs,
)
from .context_validator import ContextValidator, Verdict
from .models import (
    ChangeType,
    ConnectionEdge,
    ConnectionKind,
    ContextCategory,
    Document,
    MentionEvidence,
    Region,
    RegionMentions,
    WeightDelta,
    pair_key,
)
from .text_mining import ExtractionResult, MentionExtractor

__all__ = [
    "CatalogError",
    "ChangeType",
    "ConnectionEdge",
    "ConnectionKind",
    "ConnectivityCatalog",
    "ContextCategory",
    "ContextValidator",
    "Document",
    "ExtractionResult",
    "FilteredGraph",
    "GraphBuilder",
    "GraphEdge",
    "MentionEvidence",
    "MentionExtractor",
    "Region",
    "RegionCatalog",
    "RegionMentions",
    "Verdict",
    "WeightDelta",
    "build_catalogs",
    "load_reference_catalogs",
    "pair_key",
]
