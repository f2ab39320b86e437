#!/usr/bin/env python3
"""
Review a node of the built hierarchy: its ancestor chain and direct children.

Usage:
  python3 review_hierarchy.py 5391959      # by geonameid
  python3 review_hierarchy.py US           # by country code
  python3 review_hierarchy.py US --store neo4j
"""

import argparse
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

from node_store import NodeStore, open_node_store

load_dotenv()


def get_ancestors(store: NodeStore, node_id: str) -> List[Dict]:
    """
    Parent chain of a node, nearest first, ending at its level-0 root.

    Stops early if a parent is missing from the store or a cycle shows up.
    """
    ancestors = []
    seen = {node_id}

    node = store.get(node_id)
    while node is not None and node.get('parent') is not None:
        parent_id = node['parent']
        if parent_id in seen:
            break
        seen.add(parent_id)

        node = store.get(parent_id)
        if node is None:
            break
        ancestors.append(node)

    return ancestors


def get_children(store: NodeStore, node_id: str) -> List[Dict]:
    """Child node records in stored order; ids missing from the store are left out."""
    node = store.get(node_id)
    if node is None:
        return []

    children = []
    for child_id in node.get('children', []):
        child = store.get(child_id)
        if child is not None:
            children.append(child)
    return children


def find_country(store: NodeStore, country_code: str) -> Optional[Dict]:
    lookup = store.get_country_lookup(country_code.upper())
    if lookup is None:
        return None
    return store.get(lookup['id'])


def resolve_node(store: NodeStore, key: str) -> Optional[Dict]:
    if key.isdigit():
        return store.get(key)
    return find_country(store, key)


def print_node(store: NodeStore, node: Dict, limit: int = 25):
    print("="*60)
    print(f"{node['name']} (id {node['id']}, level {node['level']})")
    print("="*60)

    ancestors = get_ancestors(store, node['id'])
    if ancestors:
        chain = " > ".join(a['name'] for a in reversed(ancestors))
        print(f"\nPath: {chain} > {node['name']}")
    else:
        print("\nPath: (root)")

    child_ids = node.get('children', [])
    print(f"\nChildren: {len(child_ids):,}")
    for child in get_children(store, node['id'])[:limit]:
        print(f"  {child['id']:>10}  L{child['level']}  {child['name']}")
    if len(child_ids) > limit:
        print(f"  ... {len(child_ids) - limit:,} more")


def main():
    parser = argparse.ArgumentParser(description="Inspect a node of the GeoNames hierarchy")
    parser.add_argument('node', help='geonameid or ISO country code')
    parser.add_argument('--data-dir', default=os.getenv('GEONAMES_DATA_DIR', 'data'))
    parser.add_argument('--store', choices=['json', 'neo4j'], default=os.getenv('NODE_STORE', 'json'))
    parser.add_argument('--limit', type=int, default=25, help='Children to list (default: 25)')

    args = parser.parse_args()

    store = open_node_store(
        args.store,
        data_dir=args.data_dir,
        uri=os.getenv('NEO4J_URI', 'bolt://localhost:7687'),
        user=os.getenv('NEO4J_USER', 'neo4j'),
        password=os.getenv('NEO4J_PASSWORD', 'password'),
    )

    try:
        node = resolve_node(store, args.node)
        if node is None:
            print(f"✗ Not found: {args.node}")
            return

        print_node(store, node, limit=args.limit)
        print(f"\nCountries in store: {len(store.get_country_list()):,}")
    finally:
        store.close()


if __name__ == '__main__':
    main()
