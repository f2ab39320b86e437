#!/usr/bin/env python3
"""
Build a navigable GeoNames hierarchy from countryInfo.txt and raw/<CC>.zip.

Output: one node per geographic entity, with its parent and direct children,
so a client can walk country -> deeper levels and back up without loading
the whole dataset.

Steps:
  1. Country catalog: one level-0 node per country, a {id, name} lookup
     per ISO code, and the ordered list of country ids
  2. For each country, in sequence:
       a. build the admin-code index from its ADM divisions
       b. write a node for every place with its resolved parent
       c. attach the collected child ids to their parent nodes

Usage:
  # Build everything downloaded into ./raw into ./data
  python3 build_hierarchy.py

  # Only walk the places of a few countries (catalog still covers all)
  python3 build_hierarchy.py --countries US,CA,AD

  # Write into Neo4j instead of JSON files
  python3 build_hierarchy.py --store neo4j
"""

import argparse
import os
from typing import Dict, List, Optional, Set

from dotenv import load_dotenv
from tqdm import tqdm

from admin_hierarchy import (
    ChildrenAggregator,
    build_admin_code_index,
    determine_parent,
    get_admin_level,
)
from geonames_archive import load_country_data
from geonames_records import parse_code_list, parse_country_info, parse_geonames_text
from node_store import Neo4jNodeStore, NodeStore, open_node_store

load_dotenv()

COUNTRY_INFO_FILE = 'countryInfo.txt'


def country_node(country: Dict) -> Dict:
    """Level-0 node for a countryInfo row; children are attached later."""
    return {
        'id': country['geonameid'],
        'parent': None,
        'children': [],
        'name': country['name'],
        'level': 0,
        'iso': country['iso'],
        'iso3': country['iso3'],
        'capital': country['capital'],
        'area': country['area'],
        'population': country['population'],
        'continent': country['continent'],
        'languages': country['languages'],
    }


def place_node(place: Dict, parent: str, level: int) -> Dict:
    return {
        'id': place['geonameid'],
        'parent': parent,
        'children': [],
        'name': place['name'],
        'level': level,
        'latitude': place['latitude'],
        'longitude': place['longitude'],
        'population': place['population'],
    }


class CountryCatalogBuilder:
    """Seed the store with the root layer and the two country manifests."""

    def __init__(self, store: NodeStore):
        self.store = store

    def build(self, countries: List[Dict]) -> List[str]:
        print("Creating country nodes...")

        country_ids = []
        for country in countries:
            self.store.put_country_lookup(country['iso'], {
                'id': country['geonameid'],
                'name': country['name'],
            })
            self.store.put(country['geonameid'], country_node(country))
            country_ids.append(country['geonameid'])

        self.store.put_country_list(country_ids)

        print(f"✓ Created {len(countries):,} country nodes and lookups")
        print(f"✓ Saved country list with {len(country_ids):,} entries")
        return country_ids


class HierarchyBuilder:
    """Build one country's subtree in three ordered phases."""

    def __init__(self, store: NodeStore, batch_size: int = 10000):
        self.store = store
        self.batch_size = batch_size

    def build_country(self, country_code: str, country_id: str, content: str) -> Dict:
        """
        Write nodes for every place in a country's data file.

        Args:
            country_code: ISO code, used only for reporting
            country_id: geonameid of the country node created by the catalog
            content: decoded text of the country's data file

        Returns:
            Counts for the country: places, skipped_lines, roots_skipped,
            parents_updated, parents_missing
        """
        places, skipped_lines = parse_geonames_text(content)

        # Phase 1: admin-code index from this country's divisions
        index = build_admin_code_index(places)

        # Phase 2: one node per place, children collected for later
        children = ChildrenAggregator()
        batch = []
        written = 0
        roots_skipped = 0

        for place in places:
            level = get_admin_level(place)
            if level == 0:
                # The country root belongs to the catalog
                roots_skipped += 1
                continue

            parent = determine_parent(place, level, country_id, index)
            batch.append(place_node(place, parent, level))
            children.add(place['geonameid'], parent)

            if len(batch) >= self.batch_size:
                self.store.put_many(batch)
                written += len(batch)
                batch = []

        if batch:
            self.store.put_many(batch)
            written += len(batch)

        # Phase 3: every parent now exists, so attach children
        parents_updated = 0
        parents_missing = 0
        for parent_id, child_ids in children.items():
            if self.store.update_children(parent_id, child_ids):
                parents_updated += 1
            else:
                parents_missing += 1

        return {
            'country': country_code,
            'places': written,
            'indexed_divisions': len(index),
            'skipped_lines': skipped_lines,
            'roots_skipped': roots_skipped,
            'parents_updated': parents_updated,
            'parents_missing': parents_missing,
        }


class GeoNamesHierarchyBuild:
    """Run the catalog and then every country's hierarchy against one store."""

    def __init__(self, store: NodeStore, raw_dir: str, batch_size: int = 10000):
        self.store = store
        self.raw_dir = raw_dir
        self.catalog = CountryCatalogBuilder(store)
        self.hierarchy = HierarchyBuilder(store, batch_size=batch_size)

    def load_countries(self) -> List[Dict]:
        """Parse countryInfo.txt. Any failure here aborts the whole run."""
        print(f"Parsing {COUNTRY_INFO_FILE}...")

        path = os.path.join(self.raw_dir, COUNTRY_INFO_FILE)
        with open(path, 'r', encoding='utf-8') as f:
            countries = parse_country_info(f.read())

        print(f"✓ Parsed {len(countries):,} countries")
        return countries

    def build_all(self, country_filter: Optional[Set[str]] = None) -> Dict:
        countries = self.load_countries()
        self.catalog.build(countries)

        if country_filter:
            countries = [c for c in countries if c['iso'] in country_filter]

        stats = {
            'countries': len(countries),
            'processed': [],
            'skipped_countries': [],
            'failed_countries': [],
            'places': 0,
            'skipped_lines': 0,
        }

        print(f"\nProcessing {len(countries):,} country data files...")

        for country in tqdm(countries, desc="Countries"):
            code = country['iso']

            try:
                content = load_country_data(self.raw_dir, code)
                if content is None:
                    stats['skipped_countries'].append(code)
                    continue

                result = self.hierarchy.build_country(code, country['geonameid'], content)

            except Exception as e:
                tqdm.write(f"  ✗ {code}: FAILED - {str(e)[:100]}")
                stats['failed_countries'].append({'country': code, 'error': str(e)})
                continue

            stats['processed'].append(result)
            stats['places'] += result['places']
            stats['skipped_lines'] += result['skipped_lines']

            message = f"✓ Processed {result['places']:,} locations from {code} ({country['name']})"
            if result['skipped_lines']:
                message += f", skipped {result['skipped_lines']:,} malformed lines"
            tqdm.write(message)

        return stats


def print_statistics(stats: Dict):
    print("\n" + "="*60)
    print("HIERARCHY BUILD STATISTICS")
    print("="*60)
    print(f"Countries selected: {stats['countries']:,}")
    print(f"Countries processed: {len(stats['processed']):,}")
    print(f"Places written: {stats['places']:,}")
    print(f"Malformed lines skipped: {stats['skipped_lines']:,}")

    if stats['skipped_countries']:
        print(f"\n⚠ Skipped countries ({len(stats['skipped_countries'])}): "
              f"{', '.join(stats['skipped_countries'][:20])}")

    if stats['failed_countries']:
        print(f"\n⚠ Failed countries: {len(stats['failed_countries'])}")
        for failed in stats['failed_countries'][:5]:
            print(f"    {failed['country']}: {failed['error'][:80]}")

    print("="*60)


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Build the GeoNames country/division hierarchy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--raw-dir',
        default=os.getenv('GEONAMES_RAW_DIR', 'raw'),
        help='Directory holding countryInfo.txt and <CC>.zip (default: ./raw)'
    )
    parser.add_argument(
        '--data-dir',
        default=os.getenv('GEONAMES_DATA_DIR', 'data'),
        help='Output directory for the JSON store (default: ./data)'
    )
    parser.add_argument(
        '--store',
        choices=['json', 'neo4j'],
        default=os.getenv('NODE_STORE', 'json'),
        help='Node store backend (default: json)'
    )
    parser.add_argument(
        '--countries',
        type=str,
        help='Comma-separated country codes to process (e.g., US,CA). Catalog always covers all.'
    )
    parser.add_argument(
        '--batch-size',
        type=int,
        default=10000,
        help='Nodes written per batch (default: 10000)'
    )

    args = parser.parse_args()

    country_filter = None
    if args.countries:
        country_filter = parse_code_list(args.countries)

    print("="*60)
    print("GeoNames Hierarchy Builder")
    print("="*60)
    print(f"\nConfiguration:")
    print(f"  Raw directory: {args.raw_dir}")
    print(f"  Store: {args.store}")
    if args.store == 'json':
        print(f"  Data directory: {args.data_dir}")
    print()

    store = open_node_store(
        args.store,
        data_dir=args.data_dir,
        uri=os.getenv('NEO4J_URI', 'bolt://localhost:7687'),
        user=os.getenv('NEO4J_USER', 'neo4j'),
        password=os.getenv('NEO4J_PASSWORD', 'password'),
        batch_size=args.batch_size,
    )

    try:
        if isinstance(store, Neo4jNodeStore):
            store.setup_schema()

        build = GeoNamesHierarchyBuild(store, args.raw_dir, batch_size=args.batch_size)
        stats = build.build_all(country_filter=country_filter)
        print_statistics(stats)

        print("\n✓ Transformation complete!")

    except Exception as e:
        print(f"\n✗ Error: {e}")
        raise

    finally:
        store.close()


if __name__ == '__main__':
    main()
