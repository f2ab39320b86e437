import sys

import pytest

import review_hierarchy
from build_hierarchy import GeoNamesHierarchyBuild
from node_store import JsonNodeStore
from review_hierarchy import find_country, get_ancestors, get_children, print_node, resolve_node


@pytest.fixture
def store(tmp_path, raw_dir):
    store = JsonNodeStore(str(tmp_path / 'data'))
    GeoNamesHierarchyBuild(store, str(raw_dir)).build_all()
    return store


def test_get_ancestors_nearest_first(store):
    ancestors = get_ancestors(store, '5391997')

    assert [a['id'] for a in ancestors] == ['5391959', '5332921', '6252001']


def test_get_ancestors_of_root(store):
    assert get_ancestors(store, '6252001') == []


def test_get_ancestors_stops_at_missing_parent(tmp_path):
    store = JsonNodeStore(str(tmp_path))
    store.put('1', {'id': '1', 'parent': '404', 'children': [], 'name': 'Stray', 'level': 2})

    assert get_ancestors(store, '1') == []


def test_get_ancestors_stops_on_cycle(tmp_path):
    store = JsonNodeStore(str(tmp_path))
    store.put('1', {'id': '1', 'parent': '2', 'children': [], 'name': 'A', 'level': 2})
    store.put('2', {'id': '2', 'parent': '1', 'children': [], 'name': 'B', 'level': 1})

    assert [a['id'] for a in get_ancestors(store, '1')] == ['2']


def test_get_children(store):
    children = get_children(store, '5332921')

    assert [c['name'] for c in children] == ['San Francisco County', 'Sierra Nevada', 'Second Fork']


def test_get_children_of_missing_node(store):
    assert get_children(store, '404') == []


def test_find_country(store):
    assert find_country(store, 'us')['id'] == '6252001'
    assert find_country(store, 'FR') is None


def test_resolve_node(store):
    assert resolve_node(store, '5332921')['name'] == 'California'
    assert resolve_node(store, 'AD')['name'] == 'Andorra'


def test_print_node(store, capsys):
    print_node(store, store.get('5391997'))

    out = capsys.readouterr().out
    assert 'Path: United States > California > San Francisco County > San Francisco' in out
    assert 'Children: 0' in out


def test_print_node_limits_children(store, capsys):
    print_node(store, store.get('6252001'), limit=2)

    out = capsys.readouterr().out
    assert 'Children: 4' in out
    assert '... 2 more' in out


def test_main_lists_limited_children(store, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, 'argv', [
        'review_hierarchy.py', 'us', '--data-dir', str(tmp_path / 'data'), '--store', 'json', '--limit', '1',
    ])

    review_hierarchy.main()

    out = capsys.readouterr().out
    assert 'United States (id 6252001, level 0)' in out
    assert '... 3 more' in out
    assert 'Countries in store: 2' in out
