"""Document graph subsystem.

This module provides:
- The document entity model and the indexer input DTOs
- A graph store abstraction (Dgraph implementation in `dgraph_store`)
- Schema registry, hash resolver and retrieval query builder
- The `DocumentSync` facade tying them together
"""

from .models import ChainDocument, ChainEdge, Document
from .query import RequestConfig
from .store import GraphStore
from .sync import DocumentSync

__all__ = ["ChainDocument", "ChainEdge", "Document", "RequestConfig", "GraphStore", "DocumentSync"]
