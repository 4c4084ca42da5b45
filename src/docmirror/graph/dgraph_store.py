"""
Dgraph implementation of the graph store.

Talks to a Dgraph alpha over gRPC with pydgraph. Reads run in read-only
transactions; every write is a single mutation committed immediately, so a
call either lands completely or not at all.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

import pydgraph

from .schema import PREDICATE_NAME

logger = logging.getLogger(__name__)

_UID = re.compile(r"^0x[0-9a-fA-F]+$")

_OWNED_QUERY = """
query owned($uid: string) {
  node(func: uid($uid)) {
    uid
    content_groups {
      uid
      contents {
        uid
      }
    }
    certificates {
      uid
    }
  }
}
"""


@dataclass(slots=True)
class DgraphConfig:
    addr: str = "localhost:9080"
    # Per-call deadline in seconds; None leaves it to the client default.
    timeout: float | None = 30.0


class DgraphGraphStore:
    """Dgraph-backed graph store.

    Dependency: pydgraph (gRPC client).
    """

    def __init__(self, cfg: DgraphConfig):
        self.cfg = cfg
        try:
            self._stub = pydgraph.DgraphClientStub(cfg.addr)
            self._client = pydgraph.DgraphClient(self._stub)
        except Exception as e:
            logger.error(f"Failed to connect to Dgraph at {cfg.addr}: {e}")
            raise
        logger.info(f"Connected to Dgraph at {cfg.addr}")

    def close(self) -> None:
        self._stub.close()
        logger.info("Disconnected from Dgraph")

    def update_schema(self, schema: str) -> None:
        self._client.alter(pydgraph.Operation(schema=schema), timeout=self.cfg.timeout)

    def query(self, query: str, variables: dict[str, str] | None = None) -> dict[str, Any]:
        txn = self._client.txn(read_only=True)
        try:
            res = txn.query(query, variables=variables, timeout=self.cfg.timeout)
        finally:
            txn.discard()
        return json.loads(res.json or b"{}")

    def mutate(self, obj: dict[str, Any], *, delete: bool = False) -> dict[str, str]:
        txn = self._client.txn()
        try:
            if delete:
                res = txn.mutate(del_obj=obj, commit_now=True, timeout=self.cfg.timeout)
            else:
                res = txn.mutate(set_obj=obj, commit_now=True, timeout=self.cfg.timeout)
        finally:
            txn.discard()
        return dict(res.uids)

    def delete_node(self, uid: str) -> None:
        """Delete a document node together with the groups, contents and
        certificates it owns."""
        _check_uid(uid)
        found = self.query(_OWNED_QUERY, {"$uid": uid}).get("node") or []
        owned: list[dict[str, str]] = [{"uid": uid}]
        for node in found:
            for group in node.get("content_groups") or []:
                owned.append({"uid": group["uid"]})
                owned.extend({"uid": c["uid"]} for c in group.get("contents") or [])
            owned.extend({"uid": c["uid"]} for c in node.get("certificates") or [])

        txn = self._client.txn()
        try:
            txn.mutate(del_obj=owned, commit_now=True, timeout=self.cfg.timeout)
        finally:
            txn.discard()

    def mutate_edge(self, from_uid: str, to_uid: str, name: str, *, delete: bool = False) -> None:
        _check_uid(from_uid)
        _check_uid(to_uid)
        if not PREDICATE_NAME.match(name):
            raise ValueError(f"invalid predicate name: {name!r}")
        nquad = f"<{from_uid}> <{name}> <{to_uid}> ."

        txn = self._client.txn()
        try:
            if delete:
                txn.mutate(del_nquads=nquad, commit_now=True, timeout=self.cfg.timeout)
            else:
                txn.mutate(set_nquads=nquad, commit_now=True, timeout=self.cfg.timeout)
        finally:
            txn.discard()

    def missing_types(self, names: Iterable[str]) -> list[str]:
        wanted = list(names)
        present = {t["name"] for t in self._schema_types(wanted)}
        return [n for n in wanted if n not in present]

    def type_fields(self, name: str) -> set[str]:
        for t in self._schema_types([name]):
            if t.get("name") == name:
                return {f["name"] for f in t.get("fields") or []}
        return set()

    def _schema_types(self, names: list[str]) -> list[dict[str, Any]]:
        if not names:
            return []
        for n in names:
            if not PREDICATE_NAME.match(n):
                raise ValueError(f"invalid type name: {n!r}")
        result = self.query(f"schema(type: [{', '.join(names)}]) {{}}")
        return result.get("types") or []


def _check_uid(uid: str) -> None:
    if not _UID.match(uid or ""):
        raise ValueError(f"invalid uid: {uid!r}")
