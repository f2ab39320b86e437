#!/usr/bin/env python3
"""
Read a country's GeoNames archive (raw/<CC>.zip) and pick its data file.

Each archive holds <CC>.txt plus a readme.txt; only the data file is used.
"""

import os
import zipfile
from typing import List, Optional, Tuple

from tqdm import tqdm

ArchiveEntry = Tuple[str, bytes]


def archive_path(raw_dir: str, country_code: str) -> str:
    return os.path.join(raw_dir, f"{country_code}.zip")


def read_archive_entries(zip_path: str) -> List[ArchiveEntry]:
    """All file members of a zip archive as (name, content) pairs."""
    with zipfile.ZipFile(zip_path) as zf:
        return [
            (info.filename, zf.read(info))
            for info in zf.infolist()
            if not info.is_dir()
        ]


def find_data_entry(entries: List[ArchiveEntry], country_code: str) -> Optional[ArchiveEntry]:
    """
    Pick the place data file: <CC>.txt if present, else the first
    .txt member that is not a readme.
    """
    exact_name = f"{country_code}.txt"
    for entry in entries:
        if os.path.basename(entry[0]) == exact_name:
            return entry

    for name, content in entries:
        if name.endswith('.txt') and 'readme' not in name.lower():
            return name, content

    return None


def load_country_data(raw_dir: str, country_code: str) -> Optional[str]:
    """
    Decoded content of a country's data file.

    Returns None (after printing why) when the archive is missing, is not
    a valid zip, or holds no data file.
    """
    zip_path = archive_path(raw_dir, country_code)

    if not os.path.exists(zip_path):
        tqdm.write(f"⚠ Skipping {country_code}: ZIP file not found")
        return None

    try:
        entries = read_archive_entries(zip_path)
    except zipfile.BadZipFile as e:
        tqdm.write(f"⚠ Skipping {country_code}: unreadable ZIP ({e})")
        return None

    entry = find_data_entry(entries, country_code)
    if entry is None:
        tqdm.write(f"⚠ No data file found in {country_code}.zip")
        return None

    # Undecodable bytes become U+FFFD instead of failing the whole file
    return entry[1].decode('utf-8', errors='replace')
