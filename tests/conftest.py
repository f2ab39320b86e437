import zipfile

import pytest

from geonames_records import parse_geonames_line

COUNTRY_INFO = "\n".join([
    "# GeoNames.org Country Information",
    "# ================================",
    "#ISO\tISO3\tISO-Numeric\tfips\tCountry\tCapital\tArea(in sq km)\tPopulation\tContinent\ttld\t"
    "CurrencyCode\tCurrencyName\tPhone\tPostal Code Format\tPostal Code Regex\tLanguages\tgeonameid\t"
    "neighbours\tEquivalentFipsCode",
    "AD\tAND\t020\tAN\tAndorra\tAndorra la Vella\t468\t77006\tEU\t.ad\tEUR\tEuro\t376\tAD###\t"
    "^(?:AD)*(\\d{3})$\tca\t3041565\tES,FR\t",
    "",
    "US\tUSA\t840\tUS\tUnited States\tWashington\t9629091\t327167434\tNA\t.us\tUSD\tDollar\t1\t"
    "#####-####\t^\\d{5}(-\\d{4})?$\ten-US,es-US,haw,fr\t6252001\tCA,MX,CU\t",
    "XX\ttoo\tfew\tfields",
    "",
])


def place_line(geonameid, name, feature_class, feature_code, country_code,
               admin1='', admin2='', admin3='', admin4='',
               latitude='37.0', longitude='-122.0', population='0'):
    """One tab-delimited GeoNames row with 19 fields."""
    return "\t".join([
        geonameid, name, name, '', latitude, longitude,
        feature_class, feature_code, country_code, '',
        admin1, admin2, admin3, admin4,
        population, '', '', 'America/Los_Angeles', '2024-01-01',
    ])


US_LINES = [
    place_line('6252001', 'United States', 'A', 'PCLI', 'US', '00'),
    place_line('5332921', 'California', 'A', 'ADM1', 'US', 'CA',
               latitude='37.25022', longitude='-119.75126', population='39512223'),
    place_line('5391959', 'San Francisco County', 'A', 'ADM2', 'US', 'CA', '075'),
    place_line('5391997', 'San Francisco', 'P', 'PPLA2', 'US', 'CA', '075', population='864816'),
    place_line('5400001', 'Sierra Nevada', 'T', 'MTS', 'US', 'CA'),
    place_line('5400002', 'Orphan Ridge', 'T', 'RDGE', 'US', 'ZZ'),
    place_line('5400003', 'Mystery Township', 'A', 'ADM3', 'US', 'CA', '999', '111'),
    place_line('5400004', 'Open Water', 'H', 'BAY', 'US'),
    "broken\tline",
    "",
    place_line('5400005', 'Second Fork', 'H', 'STM', 'US', 'CA'),
]

US_CONTENT = "\n".join(US_LINES) + "\n"


@pytest.fixture
def make_place():
    """Build a parsed place dict from positional GeoNames values."""
    def _make(*args, **kwargs):
        return parse_geonames_line(place_line(*args, **kwargs))
    return _make


@pytest.fixture
def raw_dir(tmp_path):
    """Raw directory with countryInfo.txt and a US archive (no AD archive)."""
    raw = tmp_path / 'raw'
    raw.mkdir()
    (raw / 'countryInfo.txt').write_text(COUNTRY_INFO, encoding='utf-8')

    with zipfile.ZipFile(raw / 'US.zip', 'w') as zf:
        zf.writestr('readme.txt', 'readme for US.txt')
        zf.writestr('US.txt', US_CONTENT)

    return raw
