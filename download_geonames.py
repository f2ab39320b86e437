#!/usr/bin/env python3
"""
Download the GeoNames country table and per-country dumps.

Fetches countryInfo.txt, then <CC>.zip for every country listed in it,
into the raw directory with the original filenames.

Usage:
  # Everything
  python3 download_geonames.py

  # A few countries only
  python3 download_geonames.py --countries US,CA,AD
"""

import argparse
import os
import time
from typing import Dict, List, Optional, Set

import requests
from dotenv import load_dotenv
from tqdm import tqdm

from geonames_records import parse_code_list, parse_country_codes

load_dotenv()

GEONAMES_DUMP_BASE = 'http://download.geonames.org/export/dump/'
COUNTRY_INFO_FILE = 'countryInfo.txt'


class GeoNamesDownloader:
    """Fetch GeoNames dump files to local disk."""

    def __init__(self, raw_dir: str, base_url: str = GEONAMES_DUMP_BASE,
                 delay: float = 0.1, session: Optional[requests.Session] = None):
        self.raw_dir = raw_dir
        self.base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.delay = delay
        self.session = session or requests.Session()

    def download_file(self, url: str, filepath: str):
        """Stream a URL to disk. Raises requests.RequestException on failure."""
        response = self.session.get(url, stream=True, timeout=60)
        response.raise_for_status()

        tmp_path = filepath + '.part'
        with open(tmp_path, 'wb') as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)
        os.replace(tmp_path, filepath)

    def download_country_info(self) -> List[str]:
        """Fetch countryInfo.txt and return the country codes it lists."""
        os.makedirs(self.raw_dir, exist_ok=True)

        url = f"{self.base_url}{COUNTRY_INFO_FILE}"
        filepath = os.path.join(self.raw_dir, COUNTRY_INFO_FILE)
        print(f"Downloading {url}...")
        self.download_file(url, filepath)
        print(f"✓ Saved to {filepath}")

        with open(filepath, 'r', encoding='utf-8') as f:
            return parse_country_codes(f.read())

    def download_countries(self, country_codes: List[str]) -> Dict[str, List[str]]:
        """Fetch <CC>.zip per code; a failed country is skipped."""
        downloaded = []
        failed = []

        for code in tqdm(country_codes, desc="Downloading", unit=" countries"):
            url = f"{self.base_url}{code}.zip"
            filepath = os.path.join(self.raw_dir, f"{code}.zip")

            try:
                self.download_file(url, filepath)
            except requests.exceptions.RequestException as e:
                tqdm.write(f"✗ Failed to download {url}: {e}")
                failed.append(code)
                continue

            downloaded.append(code)

            # Be nice to geonames.org
            if self.delay:
                time.sleep(self.delay)

        return {'downloaded': downloaded, 'failed': failed}

    def download_all(self, country_filter: Optional[Set[str]] = None) -> Dict[str, List[str]]:
        codes = self.download_country_info()
        print(f"\nFound {len(codes)} countries\n")

        if country_filter:
            codes = [c for c in codes if c in country_filter]

        return self.download_countries(codes)


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(description="Download GeoNames country dumps")
    parser.add_argument(
        '--raw-dir',
        default=os.getenv('GEONAMES_RAW_DIR', 'raw'),
        help='Output directory (default: ./raw)'
    )
    parser.add_argument(
        '--countries',
        type=str,
        help='Comma-separated country codes to download (default: all)'
    )
    parser.add_argument(
        '--delay',
        type=float,
        default=0.1,
        help='Seconds to wait between archives (default: 0.1)'
    )
    parser.add_argument(
        '--base-url',
        default=os.getenv('GEONAMES_BASE_URL', GEONAMES_DUMP_BASE),
        help='GeoNames dump base URL'
    )

    args = parser.parse_args()

    country_filter = None
    if args.countries:
        country_filter = parse_code_list(args.countries)

    print("="*60)
    print("GeoNames Dump Downloader")
    print("="*60)
    print(f"Output directory: {args.raw_dir}\n")

    downloader = GeoNamesDownloader(args.raw_dir, base_url=args.base_url, delay=args.delay)

    try:
        result = downloader.download_all(country_filter=country_filter)
    except Exception as e:
        print(f"\n✗ Fatal error: {e}")
        raise

    print(f"\n✓ Downloaded {len(result['downloaded']):,} country files")
    if result['failed']:
        print(f"⚠ Failed: {', '.join(result['failed'])}")
    print("\n✓ Download complete!")


if __name__ == '__main__':
    main()
