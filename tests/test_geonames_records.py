from conftest import COUNTRY_INFO, US_CONTENT, place_line
from geonames_records import (
    admin_codes,
    parse_code_list,
    parse_country_codes,
    parse_country_info,
    parse_country_info_line,
    parse_geonames_line,
    parse_geonames_text,
)


def test_parse_country_info_skips_comments_blanks_and_short_rows():
    countries = parse_country_info(COUNTRY_INFO)

    assert [c['iso'] for c in countries] == ['AD', 'US']


def test_parse_country_info_maps_fields():
    andorra = parse_country_info(COUNTRY_INFO)[0]

    assert andorra['iso3'] == 'AND'
    assert andorra['name'] == 'Andorra'
    assert andorra['capital'] == 'Andorra la Vella'
    assert andorra['area'] == '468'
    assert andorra['population'] == '77006'
    assert andorra['continent'] == 'EU'
    assert andorra['languages'] == 'ca'
    assert andorra['geonameid'] == '3041565'
    assert andorra['neighbours'] == 'ES,FR'


def test_country_row_without_equivalent_fips_code():
    fields = ['ZZ', 'ZZZ', '999', 'ZZ', 'Nowhere', '', '0', '0', 'AN', '.zz',
              '', '', '', '', '', '', '123', '']
    country = parse_country_info_line("\t".join(fields))

    assert country['geonameid'] == '123'
    assert country['equivalent_fips_code'] == ''


def test_parse_country_codes():
    assert parse_country_codes(COUNTRY_INFO) == ['AD', 'US', 'XX']


def test_parse_geonames_line():
    place = parse_geonames_line(place_line('5332921', 'California', 'A', 'ADM1', 'US', 'CA'))

    assert place['geonameid'] == '5332921'
    assert place['feature_code'] == 'ADM1'
    assert place['country_code'] == 'US'
    assert place['admin1_code'] == 'CA'
    assert place['modification_date'] == '2024-01-01'


def test_parse_geonames_line_rejects_short_rows():
    assert parse_geonames_line("1\tOnly\ttwo") is None


def test_parse_geonames_line_strips_carriage_return():
    place = parse_geonames_line(place_line('1', 'X', 'P', 'PPL', 'US') + "\r")

    assert place['modification_date'] == '2024-01-01'


def test_parse_geonames_text_counts_malformed_lines():
    places, skipped = parse_geonames_text(US_CONTENT)

    assert len(places) == 9
    assert skipped == 1
    assert places[0]['geonameid'] == '6252001'
    assert places[-1]['geonameid'] == '5400005'


def test_admin_codes(make_place):
    place = make_place('1', 'X', 'P', 'PPL', 'US', 'CA', '075')

    assert admin_codes(place) == ['CA', '075', '', '']


def test_parse_code_list_strips_and_uppercases():
    assert parse_code_list('US, ca ,,AD ') == {'US', 'CA', 'AD'}
