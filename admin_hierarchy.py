#!/usr/bin/env python3
"""
Administrative hierarchy resolution for one country's GeoNames places.

Three steps, always in this order for a country:
  1. Build the admin-code index from the country's ADM divisions
  2. Classify each place's level and resolve its parent through the index
  3. Collect child ids per parent in encounter order

Index keys are tuples (country code, admin1, ..., adminN), so codes that
contain '.' cannot collide with a shorter or longer chain.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from geonames_records import FEATURE_LEVELS, admin_codes

AdminKey = Tuple[str, ...]

# Deepest division that can own children through the index
MAX_INDEXED_LEVEL = 4


def admin_key(country_code: str, codes: Iterable[str]) -> AdminKey:
    return (country_code,) + tuple(codes)


def is_admin_division(place: Dict) -> bool:
    return place.get('feature_code') in FEATURE_LEVELS


def get_admin_level(place: Dict) -> int:
    """
    Determine the administrative level of a place.

    ADM feature codes map to fixed levels (PCLI=0 .. ADM5=5). Any other
    place sits one level below the deepest admin code it carries, or at
    level 1 when it has none.
    """
    level = FEATURE_LEVELS.get(place.get('feature_code'))
    if level is not None:
        return level

    admin1, admin2, admin3, admin4 = admin_codes(place)
    if admin4:
        return 5
    if admin3:
        return 4
    if admin2:
        return 3
    if admin1:
        return 2
    return 1


def _chain_key(place: Dict, depth: int) -> Optional[AdminKey]:
    """Key for the first `depth` admin codes, or None if any of them is empty."""
    codes = admin_codes(place)[:depth]
    if not all(codes):
        return None
    return admin_key(place.get('country_code', ''), codes)


def build_admin_code_index(places: Iterable[Dict]) -> Dict[AdminKey, str]:
    """
    Map admin-code chains to the geonameid of the division owning them.

    Only ADM1-ADM4 divisions with every code up to their own level are
    indexed. A later division with the same chain replaces an earlier one.
    """
    index = {}

    for place in places:
        if not is_admin_division(place):
            continue

        level = get_admin_level(place)
        if not 1 <= level <= MAX_INDEXED_LEVEL:
            continue

        key = _chain_key(place, level)
        if key is not None:
            index[key] = place['geonameid']

    return index


def determine_parent(
    place: Dict,
    level: int,
    country_id: str,
    index: Dict[AdminKey, str]
) -> Optional[str]:
    """
    Resolve the geonameid of a place's parent.

    Divisions look up the chain one level shallower than their own and
    fall back straight to the country when it is not indexed. Other places
    try their chains from the most specific (4 codes) down to admin1, then
    fall back to the country. Only level 0 has no parent.
    """
    if level == 0:
        return None

    if is_admin_division(place):
        if level == 1:
            return country_id

        key = _chain_key(place, level - 1)
        if key is not None and key in index:
            return index[key]
        return country_id

    for depth in range(MAX_INDEXED_LEVEL, 0, -1):
        key = _chain_key(place, depth)
        if key is not None and key in index:
            return index[key]

    return country_id


class ChildrenAggregator:
    """Child ids per parent id for one country's pass, in encounter order."""

    def __init__(self):
        self._children: Dict[str, List[str]] = defaultdict(list)

    def add(self, child_id: str, parent_id: Optional[str]):
        if parent_id is None:
            return
        self._children[parent_id].append(child_id)

    def items(self):
        return self._children.items()

    def get(self, parent_id: str) -> List[str]:
        return list(self._children.get(parent_id, []))

    def __len__(self):
        return len(self._children)


def aggregate_children(pairs: Iterable[Tuple[str, Optional[str]]]) -> Dict[str, List[str]]:
    """Group (child id, parent id) pairs into parent id -> child ids."""
    aggregator = ChildrenAggregator()
    for child_id, parent_id in pairs:
        aggregator.add(child_id, parent_id)
    return dict(aggregator.items())
