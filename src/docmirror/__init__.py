"""Mirror of indexer documents into a Dgraph cache.

This package provides:
- An entity model for documents, content groups, contents and certificates
- A schema registry that grows the Document type as relationship names appear
- Hash based reference resolution and a configurable retrieval query builder
- A synchronizer facade plus HTTP and CLI entry points
"""

__version__ = "0.1.0"
