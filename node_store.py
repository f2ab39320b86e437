#!/usr/bin/env python3
"""
Node stores for the GeoNames hierarchy.

A node is a dict with at least id, parent, children, name and level.
Every store supports point read, point write and replacing a node's
children, plus the two country manifests (country id list and one
{id, name} lookup record per ISO code).

Backends:
- JsonNodeStore: one JSON file per key in a data directory
    data/{geonameid}.json, data/{countrycode}.json, data/countries.json
- Neo4jNodeStore: (:GeoNode) nodes in Neo4j
"""

import json
import os
import tempfile
from typing import Dict, Iterable, List, Optional

from neo4j import GraphDatabase

COUNTRY_LIST_KEY = 'countries'


class NodeStore:
    """Key-addressed node storage. Writes to different ids are independent."""

    def get(self, node_id: str) -> Optional[Dict]:
        raise NotImplementedError

    def put(self, node_id: str, node: Dict):
        raise NotImplementedError

    def put_many(self, nodes: Iterable[Dict]):
        for node in nodes:
            self.put(node['id'], node)

    def update_children(self, node_id: str, child_ids: List[str]) -> bool:
        """
        Replace the children of an existing node.

        Returns False (and writes nothing) when the node does not exist.
        """
        node = self.get(node_id)
        if node is None:
            return False
        node['children'] = list(child_ids)
        self.put(node_id, node)
        return True

    def put_country_lookup(self, country_code: str, record: Dict):
        raise NotImplementedError

    def get_country_lookup(self, country_code: str) -> Optional[Dict]:
        raise NotImplementedError

    def put_country_list(self, country_ids: List[str]):
        raise NotImplementedError

    def get_country_list(self) -> List[str]:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class JsonNodeStore(NodeStore):
    """Directory of pretty-printed JSON files, one per id."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.data_dir, f"{key}.json")

    def _read(self, key: str):
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write(self, key: str, data):
        # Write beside the target then swap in, so readers never see a partial file
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, node_id: str) -> Optional[Dict]:
        return self._read(node_id)

    def put(self, node_id: str, node: Dict):
        self._write(node_id, node)

    def put_country_lookup(self, country_code: str, record: Dict):
        self._write(country_code, record)

    def get_country_lookup(self, country_code: str) -> Optional[Dict]:
        return self._read(country_code)

    def put_country_list(self, country_ids: List[str]):
        self._write(COUNTRY_LIST_KEY, list(country_ids))

    def get_country_list(self) -> List[str]:
        return self._read(COUNTRY_LIST_KEY) or []


class Neo4jNodeStore(NodeStore):
    """Nodes as (:GeoNode {id}) with their attributes as properties."""

    def __init__(self, uri: str, user: str, password: str, batch_size: int = 10000):
        self.driver = GraphDatabase.driver(uri, auth=(user, password))
        self.batch_size = batch_size

    def close(self):
        self.driver.close()

    def setup_schema(self):
        """Create uniqueness constraints for node ids and country codes."""
        constraints = [
            "CREATE CONSTRAINT geonode_id IF NOT EXISTS FOR (n:GeoNode) REQUIRE n.id IS UNIQUE",
            "CREATE CONSTRAINT country_code_lookup IF NOT EXISTS FOR (c:CountryCode) REQUIRE c.code IS UNIQUE",
        ]

        with self.driver.session() as session:
            for cypher in constraints:
                session.run(cypher)
                print(f"✓ {cypher.split()[2]}")

    @staticmethod
    def _node_from_properties(props: Dict) -> Dict:
        node = dict(props)
        # Neo4j drops null properties, so restore the root's parent
        node.setdefault('parent', None)
        node.setdefault('children', [])
        return node

    def get(self, node_id: str) -> Optional[Dict]:
        with self.driver.session() as session:
            result = session.run("""
                MATCH (n:GeoNode {id: $id})
                RETURN properties(n) AS node
            """, id=node_id)
            record = result.single()

        if record is None:
            return None
        return self._node_from_properties(record['node'])

    def put(self, node_id: str, node: Dict):
        with self.driver.session() as session:
            session.run("""
                MERGE (n:GeoNode {id: $id})
                SET n = $props
            """, id=node_id, props=dict(node, id=node_id))

    def put_many(self, nodes: Iterable[Dict]):
        batch = []
        for node in nodes:
            batch.append(node)
            if len(batch) >= self.batch_size:
                self._put_batch(batch)
                batch = []
        if batch:
            self._put_batch(batch)

    def _put_batch(self, nodes: List[Dict]):
        with self.driver.session() as session:
            session.run("""
                UNWIND $nodes AS node
                MERGE (n:GeoNode {id: node.id})
                SET n = node
            """, nodes=nodes)

    def update_children(self, node_id: str, child_ids: List[str]) -> bool:
        with self.driver.session() as session:
            result = session.run("""
                MATCH (n:GeoNode {id: $id})
                SET n.children = $children
                RETURN count(n) AS updated
            """, id=node_id, children=list(child_ids))
            record = result.single()

        return bool(record and record['updated'])

    def put_country_lookup(self, country_code: str, record: Dict):
        with self.driver.session() as session:
            session.run("""
                MERGE (c:CountryCode {code: $code})
                SET c.id = $id, c.name = $name
            """, code=country_code, id=record['id'], name=record['name'])

    def get_country_lookup(self, country_code: str) -> Optional[Dict]:
        with self.driver.session() as session:
            result = session.run("""
                MATCH (c:CountryCode {code: $code})
                RETURN c.id AS id, c.name AS name
            """, code=country_code)
            record = result.single()

        if record is None:
            return None
        return {'id': record['id'], 'name': record['name']}

    def put_country_list(self, country_ids: List[str]):
        with self.driver.session() as session:
            session.run("""
                MERGE (l:CountryList {key: $key})
                SET l.ids = $ids
            """, key=COUNTRY_LIST_KEY, ids=list(country_ids))

    def get_country_list(self) -> List[str]:
        with self.driver.session() as session:
            result = session.run("""
                MATCH (l:CountryList {key: $key})
                RETURN l.ids AS ids
            """, key=COUNTRY_LIST_KEY)
            record = result.single()

        if record is None or record['ids'] is None:
            return []
        return list(record['ids'])


def open_node_store(
    kind: str,
    data_dir: str = 'data',
    uri: str = 'bolt://localhost:7687',
    user: str = 'neo4j',
    password: str = 'password',
    batch_size: int = 10000
) -> NodeStore:
    """Open the JSON or Neo4j backend by name."""
    if kind == 'json':
        return JsonNodeStore(data_dir)
    if kind == 'neo4j':
        return Neo4jNodeStore(uri, user, password, batch_size=batch_size)
    raise ValueError(f"Unknown node store: {kind}")
