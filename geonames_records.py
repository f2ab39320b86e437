#!/usr/bin/env python3
"""
GeoNames record parsing.

Turns the two GeoNames dump formats into plain dictionaries keyed by
field name:
- countryInfo.txt: one row per country (commented header, tab-delimited)
- <CC>.txt: one row per place inside a country's archive (tab-delimited)

Lines with too few fields are skipped, never raised.
"""

from typing import Dict, List, Optional, Set, Tuple

# countryInfo.txt field mapping (tab-delimited, 19th column optional)
COUNTRY_INFO_FIELDS = [
    'iso', 'iso3', 'iso_numeric', 'fips',
    'name', 'capital', 'area', 'population',
    'continent', 'tld', 'currency_code', 'currency_name',
    'phone', 'postal_code_format', 'postal_code_regex', 'languages',
    'geonameid', 'neighbours', 'equivalent_fips_code'
]
MIN_COUNTRY_INFO_FIELDS = 18

# GeoNames field mapping (tab-delimited)
GEONAMES_FIELDS = [
    'geonameid', 'name', 'asciiname', 'alternatenames',
    'latitude', 'longitude', 'feature_class', 'feature_code',
    'country_code', 'cc2', 'admin1_code', 'admin2_code',
    'admin3_code', 'admin4_code', 'population', 'elevation',
    'dem', 'timezone', 'modification_date'
]
MIN_GEONAMES_FIELDS = len(GEONAMES_FIELDS)

ADMIN_CODE_FIELDS = ['admin1_code', 'admin2_code', 'admin3_code', 'admin4_code']

# Feature code to administrative level
FEATURE_LEVELS = {
    'PCLI': 0,  # independent political entity (country)
    'ADM1': 1,  # first-order administrative division
    'ADM2': 2,  # second-order administrative division
    'ADM3': 3,  # third-order administrative division
    'ADM4': 4,  # fourth-order administrative division
    'ADM5': 5,  # fifth-order administrative division
}


def _split_line(line: str) -> List[str]:
    return line.rstrip('\r').split('\t')


def parse_country_info_line(line: str) -> Optional[Dict[str, str]]:
    """Parse one countryInfo.txt row, or None for comments, blanks and short rows."""
    if line.startswith('#') or not line.strip():
        return None

    fields = _split_line(line)
    if len(fields) < MIN_COUNTRY_INFO_FIELDS:
        return None

    country = dict(zip(COUNTRY_INFO_FIELDS, fields))
    country.setdefault('equivalent_fips_code', '')
    return country


def parse_country_info(content: str) -> List[Dict[str, str]]:
    """Parse countryInfo.txt content into country rows, in file order."""
    countries = []
    for line in content.split('\n'):
        country = parse_country_info_line(line)
        if country is not None:
            countries.append(country)
    return countries


def parse_country_codes(content: str) -> List[str]:
    """Extract the ISO code column from countryInfo.txt content."""
    codes = []
    for line in content.split('\n'):
        if line.startswith('#') or not line.strip():
            continue
        code = line.split('\t')[0].strip()
        if code:
            codes.append(code)
    return codes


def parse_code_list(value: str) -> Set[str]:
    """Upper-cased codes from a comma-separated CLI value, e.g. "us, ca" -> {"US", "CA"}."""
    return {code.strip().upper() for code in value.split(',') if code.strip()}


def parse_geonames_line(line: str) -> Optional[Dict[str, str]]:
    """Parse one place row; None if it has fewer than 19 fields."""
    fields = _split_line(line)
    if len(fields) < MIN_GEONAMES_FIELDS:
        return None
    return dict(zip(GEONAMES_FIELDS, fields))


def parse_geonames_text(content: str) -> Tuple[List[Dict[str, str]], int]:
    """
    Parse a country data file.

    Returns:
        (places in file order, number of non-blank lines skipped as malformed)
    """
    places = []
    skipped = 0

    for line in content.split('\n'):
        if not line.strip():
            continue

        place = parse_geonames_line(line)
        if place is None:
            skipped += 1
            continue

        places.append(place)

    return places, skipped


def admin_codes(place: Dict[str, str]) -> List[str]:
    """admin1..admin4 codes of a place, empty strings where unpopulated."""
    return [place.get(field, '') or '' for field in ADMIN_CODE_FIELDS]
