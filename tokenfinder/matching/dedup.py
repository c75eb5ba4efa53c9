"""Removal of container matches already explained by a direct match elsewhere."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Set

from ..logging import get_logger
from ..models import ComponentDescriptor, ComponentMatch, MatchPath, MatchRecord

logger = get_logger("matching.dedup")


def build_direct_index(component_matches: Iterable[ComponentMatch]) -> Set[str]:
    """Return the main-component ids that own at least one direct match."""
    return {
        item.component.owner_id
        for item in component_matches
        if any(match.property.is_direct for match in item.matches)
    }


def filter_redundant_matches(component_matches: Iterable[ComponentMatch]) -> List[ComponentMatch]:
    """Drop component matches whose every hit is a nested instance matched directly elsewhere.

    A component match survives when it has a direct entry, or a nested entry
    whose nested main component is unknown or absent from the direct index.
    Input order is preserved.
    """
    candidates = list(component_matches)
    direct_index = build_direct_index(candidates)

    kept: List[ComponentMatch] = []
    for item in candidates:
        if _is_informative(item, direct_index):
            kept.append(item)
        else:
            logger.debug(
                "Dropping %s: all matches come from directly matched nested components",
                item.component.name,
            )
    return kept


def _is_informative(item: ComponentMatch, direct_index: Set[str]) -> bool:
    for match in item.matches:
        if match.property.is_direct:
            return True
        nested_id = match.nested_main_component_id
        if not nested_id or nested_id not in direct_index:
            return True
    return False


# ----------------------------------------------------------------------
# Boundary parsing


def parse_component_matches(payload: Iterable[Any]) -> List[ComponentMatch]:
    """Build component matches from the camelCase dicts produced by the matcher.

    Legacy ``" → "``-joined property strings are parsed into :class:`MatchPath`.
    Malformed entries are skipped.
    """
    parsed: List[ComponentMatch] = []
    for raw in payload:
        item = _parse_component_match(raw)
        if item is not None:
            parsed.append(item)
    return parsed


def _parse_component_match(raw: Any) -> Optional[ComponentMatch]:
    if not isinstance(raw, dict):
        return None
    component = _parse_descriptor(raw.get("component"))
    if component is None:
        return None
    matches = [
        record
        for record in (_parse_record(entry) for entry in raw.get("matches") or [])
        if record is not None
    ]
    return ComponentMatch(
        component=component,
        matches=matches,
        confidence=_as_float(raw.get("confidence")),
    )


def _parse_descriptor(raw: Any) -> Optional[ComponentDescriptor]:
    if not isinstance(raw, dict):
        return None
    component_id = raw.get("id")
    if not isinstance(component_id, str) or not component_id:
        return None
    properties = raw.get("properties")
    return ComponentDescriptor(
        id=component_id,
        name=str(raw.get("name", "")),
        page=str(raw.get("page", "")),
        type=str(raw.get("type", "COMPONENT")),
        main_component_id=_as_optional_str(raw.get("mainComponentId")),
        main_component_name=_as_optional_str(raw.get("mainComponentName")),
        variant_name=_as_optional_str(raw.get("variantName")),
        properties=dict(properties) if isinstance(properties, dict) else {},
    )


def _parse_record(raw: Any) -> Optional[MatchRecord]:
    if not isinstance(raw, dict):
        return None
    prop = raw.get("property")
    if not isinstance(prop, str) or not prop.strip():
        return None
    return MatchRecord(
        property=MatchPath.parse(prop),
        property_type=str(raw.get("propertyType", "")),
        matched_value=str(raw.get("matchedValue", "")),
        token_value=str(raw.get("tokenValue", "")),
        confidence=_as_float(raw.get("confidence")),
        nested_main_component_id=_as_optional_str(raw.get("nestedMainComponentId")),
    )


def _as_optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


__all__ = ["build_direct_index", "filter_redundant_matches", "parse_component_matches"]
