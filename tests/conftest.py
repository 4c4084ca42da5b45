"""
Shared fixtures.

FakeGraphStore implements the GraphStore protocol in memory. It understands
just enough of the queries docmirror issues (lookup by `$hash`, batched
`$h0..$hN` resolution, schema type declarations) and records every call.
"""

from __future__ import annotations

import copy
import re
import threading
from typing import Any, Iterable

import pytest

from docmirror.graph.models import ChainDocument
from docmirror.graph.sync import DocumentSync

_TYPE_DECL = re.compile(r"type\s+(\w+)\s*\{([^}]*)\}")
_SCALARS = ("uid", "hash", "creator", "created_date", "dgraph.type")


class FakeGraphStore:
    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.types: dict[str, set[str]] = {}
        self.schema_updates: list[str] = []
        self.queries: list[tuple[str, dict[str, str]]] = []
        self.mutations: list[tuple[dict[str, Any], bool]] = []
        self.deleted: list[str] = []
        self.edge_mutations: list[tuple[str, str, str, bool]] = []
        self.closed = False
        self._next = 0
        self._lock = threading.Lock()

    # --- schema ---

    def update_schema(self, schema: str) -> None:
        self.schema_updates.append(schema)
        for name, body in _TYPE_DECL.findall(schema):
            self.types[name] = set(body.split())

    def missing_types(self, names: Iterable[str]) -> list[str]:
        return [n for n in names if n not in self.types]

    def type_fields(self, name: str) -> set[str]:
        return set(self.types.get(name, set()))

    # --- reads ---

    def query(self, query: str, variables: dict[str, str] | None = None) -> dict[str, Any]:
        variables = dict(variables or {})
        self.queries.append((query, variables))
        if "$hash" in variables:
            doc = self._by_hash(variables["$hash"])
            return {"docs": [self._project(doc, query)] if doc else []}
        out: dict[str, Any] = {}
        for var, value in variables.items():
            doc = self._by_hash(value)
            out[var[1:]] = [{"uid": doc["uid"], "hash": doc["hash"]}] if doc else []
        return out

    # --- writes ---

    def mutate(self, obj: dict[str, Any], *, delete: bool = False) -> dict[str, str]:
        obj = copy.deepcopy(obj)
        self.mutations.append((obj, delete))
        uids: dict[str, str] = {}
        with self._lock:
            self._assign(obj, uids)
            existing = self.docs.get(obj["uid"])
            if existing is None:
                self.docs[obj["uid"]] = obj
            else:
                for key, value in obj.items():
                    if isinstance(value, list) and isinstance(existing.get(key), list):
                        known = {item.get("uid") for item in existing[key]}
                        existing[key].extend(v for v in value if v.get("uid") not in known)
                    else:
                        existing[key] = value
        return uids

    def delete_node(self, uid: str) -> None:
        self.deleted.append(uid)
        self.docs.pop(uid, None)

    def mutate_edge(self, from_uid: str, to_uid: str, name: str, *, delete: bool = False) -> None:
        self.edge_mutations.append((from_uid, to_uid, name, delete))
        targets = self.docs[from_uid].setdefault(name, [])
        if delete:
            targets[:] = [t for t in targets if t["uid"] != to_uid]
        elif {"uid": to_uid} not in targets:
            targets.append({"uid": to_uid})

    def close(self) -> None:
        self.closed = True

    # --- helpers ---

    def _assign(self, node: dict[str, Any], uids: dict[str, str]) -> None:
        uid = node.get("uid")
        if uid is None or uid.startswith("_:"):
            self._next += 1
            new = hex(self._next)
            if uid:
                uids[uid[2:]] = new
            node["uid"] = new
        for value in node.values():
            if isinstance(value, list):
                for child in value:
                    # {"uid": ...} alone is a reference, not an owned node.
                    if isinstance(child, dict) and set(child) != {"uid"}:
                        self._assign(child, uids)

    def _by_hash(self, hash: str) -> dict[str, Any] | None:
        with self._lock:
            docs = list(self.docs.values())
        for doc in docs:
            if doc.get("hash") == hash:
                return doc
        return None

    def _project(self, doc: dict[str, Any], query: str, nested: bool = False) -> dict[str, Any]:
        out = {k: copy.deepcopy(v) for k, v in doc.items() if k in _SCALARS}
        if "dgraph.type" in out and not isinstance(out["dgraph.type"], list):
            out["dgraph.type"] = [out["dgraph.type"]]
        if "content_groups" in query and "content_groups" in doc:
            groups = copy.deepcopy(doc["content_groups"])
            for group in groups:
                for content in group.get("contents", []):
                    content["document"] = [
                        {k: v for k, v in self.docs[ref["uid"]].items() if k in _SCALARS}
                        for ref in content.get("document", [])
                        if ref["uid"] in self.docs
                    ]
            out["content_groups"] = groups
        if "certificates" in query and "certificates" in doc:
            out["certificates"] = copy.deepcopy(doc["certificates"])
        if not nested:
            for key, value in doc.items():
                if key in out or key in ("content_groups", "certificates"):
                    continue
                if isinstance(value, list) and re.search(rf"^\s*{re.escape(key)} \{{", query, re.M):
                    out[key] = [
                        self._project(self.docs[ref["uid"]], query, nested=True)
                        for ref in value
                        if ref["uid"] in self.docs
                    ]
        return out


@pytest.fixture
def store() -> FakeGraphStore:
    return FakeGraphStore()


@pytest.fixture
def sync(store: FakeGraphStore) -> DocumentSync:
    s = DocumentSync(store, lock_stripes=4)
    s.prepare()
    return s


def make_doc(hash: str, *, groups=None, certificates=None, creator: str = "alice") -> ChainDocument:
    return ChainDocument.model_validate(
        {
            "hash": hash,
            "creator": creator,
            "created_date": "2021-03-04T05:06:07Z",
            "content_groups": groups
            if groups is not None
            else [[{"label": "title", "value": ["string", f"doc {hash}"]}]],
            "certificates": certificates or [],
        }
    )
