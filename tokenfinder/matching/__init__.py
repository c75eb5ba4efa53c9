"""Post-processing of component match candidates."""

from .dedup import build_direct_index, filter_redundant_matches, parse_component_matches

__all__ = ["build_direct_index", "filter_redundant_matches", "parse_component_matches"]
