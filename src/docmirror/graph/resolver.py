from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .query import hash_lookup_query
from .store import GraphStore


@dataclass(slots=True)
class HashResolver:
    """Batched hash -> uid lookup.

    The only way a reference between documents is established; hashes with
    no stored document are simply absent from the result.
    """

    store: GraphStore

    def resolve(self, hashes: Iterable[str]) -> dict[str, str]:
        unique = list(dict.fromkeys(h for h in hashes if h))
        if not unique:
            return {}
        query = hash_lookup_query(len(unique))
        variables = {f"$h{i}": h for i, h in enumerate(unique)}
        result = self.store.query(query.render(), variables)

        out: dict[str, str] = {}
        for i in range(len(unique)):
            for row in result.get(f"h{i}") or []:
                if row.get("hash") and row.get("uid"):
                    out[row["hash"]] = row["uid"]
        return out

    def resolve_one(self, hash: str) -> str | None:
        return self.resolve([hash]).get(hash)
