from __future__ import annotations

import logging
import threading
import zlib
from typing import Any

from ..errors import EdgeEndpointNotFoundError
from .models import NEW_DOCUMENT, ChainDocument, ChainEdge, Document
from .query import RequestConfig, document_query
from .resolver import HashResolver
from .schema import SchemaRegistry
from .store import GraphStore

logger = logging.getLogger(__name__)

_CERTIFICATES_ONLY = RequestConfig(certificates=True)


class DocumentSync:
    """Keeps the graph store in sync with indexer documents and edges.

    The only component that mutates the store. Documents are upserted by
    hash: the first sighting creates the node, later sightings only append
    certificates. Each call issues at most a resolve step and one mutation,
    so a failed call can be retried as a whole.
    """

    def __init__(self, store: GraphStore, *, lock_stripes: int = 64):
        self.store = store
        self.schema = SchemaRegistry(store)
        self.resolver = HashResolver(store)
        # Serializes store_document per hash within this process. Concurrent
        # creates across processes are caught by @upsert on the hash predicate.
        self._hash_locks = tuple(threading.Lock() for _ in range(max(1, lock_stripes)))

    def prepare(self) -> None:
        self.schema.ensure_schema()

    # --- reads ---

    def get_by_hash(self, hash: str, config: RequestConfig | None = None) -> Document | None:
        found = self.get_by_hash_as_map(hash, config)
        return Document.from_result(found) if found is not None else None

    def get_by_hash_as_map(
        self, hash: str, config: RequestConfig | None = None
    ) -> dict[str, Any] | None:
        query = document_query(config or RequestConfig())
        result = self.store.query(query.render(), {"$hash": hash})
        docs = result.get("docs") or []
        return docs[0] if docs else None

    def get_uid(self, hash: str) -> str | None:
        return self.resolver.resolve_one(hash)

    # --- writes ---

    def store_document(self, chain_doc: ChainDocument) -> str:
        """Create the document or append its new certificates; return its uid."""
        with self._lock_for(chain_doc.hash):
            doc = self.get_by_hash(chain_doc.hash, _CERTIFICATES_ONLY)
            if doc is None:
                logger.info("Creating document: %s", chain_doc.hash)
                doc = self._transform_new(chain_doc)
            else:
                added = doc.update_certificates(chain_doc.certificates)
                logger.info(
                    "Updating certificates for document: <%s>%s (%d new)",
                    doc.uid,
                    doc.hash,
                    len(added),
                )
            uids = self.store.mutate(doc.to_mutation())
        return doc.uid or uids[NEW_DOCUMENT]

    def delete_document(self, chain_doc: ChainDocument) -> bool:
        uid = self.resolver.resolve_one(chain_doc.hash)
        if uid is None:
            logger.info("Document: %s not found, couldn't delete", chain_doc.hash)
            return False
        logger.info("Deleting node: <%s>%s", uid, chain_doc.hash)
        self.store.delete_node(uid)
        return True

    def mutate_edge(self, chain_edge: ChainEdge, delete: bool = False) -> None:
        self.schema.register_edge_if_new(chain_edge.name)
        uids = self.resolver.resolve([chain_edge.from_hash, chain_edge.to_hash])
        from_uid = uids.get(chain_edge.from_hash)
        to_uid = uids.get(chain_edge.to_hash)
        for missing, uid in (("from", from_uid), ("to", to_uid)):
            if uid is None:
                raise EdgeEndpointNotFoundError(
                    chain_edge.name, chain_edge.from_hash, chain_edge.to_hash, missing, delete
                )
        logger.info(
            "Mutating [Edge: %s, From: <%s>%s, To: <%s>%s] Delete Op: %s",
            chain_edge.name,
            from_uid,
            chain_edge.from_hash,
            to_uid,
            chain_edge.to_hash,
            delete,
        )
        self.store.mutate_edge(from_uid, to_uid, chain_edge.name, delete=delete)

    # --- internals ---

    def _lock_for(self, hash: str) -> threading.Lock:
        return self._hash_locks[zlib.crc32(hash.encode("utf-8")) % len(self._hash_locks)]

    def _transform_new(self, chain_doc: ChainDocument) -> Document:
        doc = Document.from_chain(chain_doc)
        checksums = doc.checksum_contents()
        uids = self.resolver.resolve(c.value for c in checksums)
        for content in checksums:
            uid = uids.get(content.value)
            if uid is None:
                logger.info(
                    "Document with hash: %s not found, referenced from document: %s",
                    content.value,
                    chain_doc.hash,
                )
                continue
            content.document = [Document(hash=content.value, uid=uid)]
        return doc
