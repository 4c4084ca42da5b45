"""
Dgraph schema for mirrored documents.

The base types (Document, ContentGroup, Content, Certificate) are declared
once. Relationship names seen on edge events become `[uid]` predicates of
the Document type the first time they are used.

Dgraph replaces a type's field list on every type declaration, so each
extension re-declares all known Document fields alongside the new one.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass

from ..errors import InvalidEdgeNameError
from .models import CERTIFICATE_TYPE, CONTENT_GROUP_TYPE, CONTENT_TYPE, DOCUMENT_TYPE
from .store import GraphStore

logger = logging.getLogger(__name__)

PREDICATE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


@dataclass(frozen=True, slots=True)
class PredicateDecl:
    name: str
    type: str
    directives: tuple[str, ...] = ()

    def render(self) -> str:
        parts = [f"{self.name}: {self.type}", *self.directives]
        return " ".join(parts) + " ."


@dataclass(frozen=True, slots=True)
class TypeDecl:
    name: str
    fields: tuple[str, ...]

    def render(self) -> str:
        body = "\n".join(f"  {f}" for f in self.fields)
        return f"type {self.name} {{\n{body}\n}}"


BASE_TYPES: tuple[TypeDecl, ...] = (
    TypeDecl(DOCUMENT_TYPE, ("hash", "created_date", "creator", "content_groups", "certificates")),
    TypeDecl(CONTENT_GROUP_TYPE, ("content_group_sequence", "contents")),
    TypeDecl(CONTENT_TYPE, ("label", "value", "type", "content_sequence", "document")),
    TypeDecl(
        CERTIFICATE_TYPE,
        ("certifier", "notes", "certification_date", "certification_sequence"),
    ),
)

BASE_PREDICATES: tuple[PredicateDecl, ...] = (
    # @upsert turns concurrent writes of the same hash into transaction conflicts.
    PredicateDecl("hash", "string", ("@index(exact)", "@upsert")),
    PredicateDecl("created_date", "datetime"),
    PredicateDecl("creator", "string", ("@index(term)",)),
    PredicateDecl("content_groups", "[uid]"),
    PredicateDecl("certificates", "[uid]"),
    PredicateDecl("content_group_sequence", "int"),
    PredicateDecl("contents", "[uid]"),
    PredicateDecl("label", "string", ("@index(term)",)),
    PredicateDecl("value", "string", ("@index(term)",)),
    PredicateDecl("type", "string", ("@index(term)",)),
    PredicateDecl("content_sequence", "int"),
    PredicateDecl("document", "[uid]"),
    PredicateDecl("certifier", "string", ("@index(term)",)),
    PredicateDecl("notes", "string"),
    PredicateDecl("certification_date", "datetime"),
    PredicateDecl("certification_sequence", "int"),
)

BASE_TYPE_NAMES: tuple[str, ...] = tuple(t.name for t in BASE_TYPES)

_RESERVED = frozenset({p.name for p in BASE_PREDICATES} | {"uid", "expand", "type"})


def render_schema(types: tuple[TypeDecl, ...], predicates: tuple[PredicateDecl, ...]) -> str:
    lines = [t.render() for t in types] + [p.render() for p in predicates]
    return "\n".join(lines) + "\n"


BASE_SCHEMA = render_schema(BASE_TYPES, BASE_PREDICATES)


def validate_edge_name(name: str) -> str:
    """Return `name` if it can be used as a Document relationship predicate."""
    if not PREDICATE_NAME.match(name or ""):
        raise InvalidEdgeNameError(name, "must match [A-Za-z_][A-Za-z0-9_.]*")
    if name in _RESERVED or name.startswith("dgraph"):
        raise InvalidEdgeNameError(name, "collides with a reserved predicate")
    return name


class SchemaRegistry:
    """Tracks the Document predicate set and extends it on demand.

    Every schema mutation goes through one lock, so two first uses of a
    relationship name never submit overlapping type declarations.
    """

    def __init__(self, store: GraphStore):
        self.store = store
        self._lock = threading.Lock()
        self._document_fields: set[str] = set()
        self._loaded = False
        # Bumped on every schema update this registry submits.
        self.version = 0

    @property
    def document_fields(self) -> frozenset[str]:
        return frozenset(self._document_fields)

    def schema_ready(self) -> bool:
        missing = self.store.missing_types(BASE_TYPE_NAMES)
        if missing:
            logger.debug("Missing schema types: %s", ", ".join(missing))
        return not missing

    def ensure_schema(self) -> None:
        with self._lock:
            if not self.schema_ready():
                logger.info("Creating base document schema")
                self.store.update_schema(BASE_SCHEMA)
                self.version += 1
            self._load_document_fields()

    def register_edge_if_new(self, name: str) -> bool:
        """Declare `name` as a Document relationship unless already known.

        Returns True when a schema update was submitted.
        """
        validate_edge_name(name)
        with self._lock:
            if not self._loaded:
                self._load_document_fields()
            if name in self._document_fields:
                return False
            # Other processes may have extended Document since the last load.
            self._document_fields |= self.store.type_fields(DOCUMENT_TYPE)
            if name in self._document_fields:
                return False
            fields = tuple(sorted(self._document_fields)) + (name,)
            schema = render_schema(
                (TypeDecl(DOCUMENT_TYPE, fields),),
                (PredicateDecl(name, "[uid]"),),
            )
            logger.info("Adding relationship %s to %s schema", name, DOCUMENT_TYPE)
            self.store.update_schema(schema)
            self._document_fields.add(name)
            self.version += 1
            return True

    def _load_document_fields(self) -> None:
        # Base fields are always part of the type, even before the store has it.
        base = next(t for t in BASE_TYPES if t.name == DOCUMENT_TYPE)
        self._document_fields = set(base.fields) | set(self.store.type_fields(DOCUMENT_TYPE))
        self._loaded = True
