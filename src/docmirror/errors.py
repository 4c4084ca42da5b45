"""
Error types for docmirror.

- DocMirrorError: Base exception
- SchemaError: Schema update could not be expressed or was rejected locally
- InvalidEdgeNameError: Relationship name is not a usable predicate
- EdgeEndpointNotFoundError: An edge references a document that is not stored
- StoreNotConfiguredError: No graph store is available to the service

Errors raised by the store client itself (pydgraph, grpc) are not wrapped;
they reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class DocMirrorError(Exception):
    """Base exception for all docmirror errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "DOCMIRROR_ERROR"
        self.details = details or {}


class SchemaError(DocMirrorError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="SCHEMA_ERROR", details=details)


class InvalidEdgeNameError(SchemaError):
    """Relationship name cannot be used as a Document predicate.

    Raised when:
    - The name is not a plain identifier
    - The name collides with a base predicate or a reserved name
    """

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(
            f"Invalid relationship name {name!r}: {reason}",
            details={"name": name, "reason": reason},
        )
        self.name = name
        self.reason = reason


class EdgeEndpointNotFoundError(DocMirrorError):
    """One endpoint of an edge is not stored, so the edge cannot be mutated."""

    def __init__(
        self,
        edge: str,
        from_hash: str,
        to_hash: str,
        missing: str,
        delete: bool,
    ) -> None:
        super().__init__(
            f"{missing.capitalize()} node of the relationship: "
            f"[Edge: {edge}, From: {from_hash}, To: {to_hash}] does not exist, "
            f"Delete Op: {delete}",
            code="EDGE_ENDPOINT_NOT_FOUND",
            details={
                "edge": edge,
                "from": from_hash,
                "to": to_hash,
                "missing": missing,
                "delete": delete,
            },
        )
        self.edge = edge
        self.from_hash = from_hash
        self.to_hash = to_hash
        self.missing = missing
        self.delete = delete


class StoreNotConfiguredError(DocMirrorError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="STORE_NOT_CONFIGURED")
