from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Content type tag whose value is the hash of another document.
CHECKSUM_TYPE = "checksum256"

# Blank node name of a document created by a mutation.
NEW_DOCUMENT = "document"

DOCUMENT_TYPE = "Document"
CONTENT_GROUP_TYPE = "ContentGroup"
CONTENT_TYPE = "Content"
CERTIFICATE_TYPE = "Certificate"

_DOCUMENT_KEYS = frozenset(
    {"uid", "hash", "creator", "created_date", "content_groups", "certificates", "dgraph.type"}
)


def _parse_ts(v: Any) -> datetime | None:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v
    if isinstance(v, str):
        s = v.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            return None
    return None


def _format_ts(v: datetime | None) -> str | None:
    return v.isoformat() if v is not None else None


# --- Input DTOs (as emitted by the indexer) ---


class ChainContent(BaseModel):
    """A labeled value inside a content group.

    The indexer encodes values as ``[type, value]`` variants; both that form
    and explicit ``type``/``value`` keys are accepted.
    """

    label: str
    type: str
    value: str

    @model_validator(mode="before")
    @classmethod
    def _split_variant(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("value"), (list, tuple)):
            variant = data["value"]
            if len(variant) != 2:
                raise ValueError("content value variant must be [type, value]")
            data = {**data, "type": variant[0], "value": variant[1]}
        return data

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ChainCertificate(BaseModel):
    certifier: str
    notes: str = ""
    certification_date: datetime | None = None
    # Position in the document's certificate list when omitted.
    sequence: int | None = None


class ChainDocument(BaseModel):
    hash: str = Field(min_length=1)
    creator: str | None = None
    created_date: datetime | None = None
    content_groups: list[list[ChainContent]] = Field(default_factory=list)
    certificates: list[ChainCertificate] = Field(default_factory=list)


class ChainEdge(BaseModel):
    """A named, directed relationship between two documents, by hash."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    from_hash: str = Field(alias="from", min_length=1)
    to_hash: str = Field(alias="to", min_length=1)


# --- Graph entities ---


@dataclass(slots=True)
class Certificate:
    certifier: str
    notes: str = ""
    certification_date: datetime | None = None
    sequence: int = 0
    uid: str | None = None

    @classmethod
    def from_chain(cls, position: int, cert: ChainCertificate) -> "Certificate":
        return cls(
            certifier=cert.certifier,
            notes=cert.notes,
            certification_date=cert.certification_date,
            sequence=cert.sequence if cert.sequence is not None else position,
        )

    def to_mutation(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "dgraph.type": CERTIFICATE_TYPE,
            "certifier": self.certifier,
            "notes": self.notes,
            "certification_sequence": self.sequence,
        }
        if self.uid:
            out["uid"] = self.uid
        if self.certification_date is not None:
            out["certification_date"] = _format_ts(self.certification_date)
        return out

    @classmethod
    def from_result(cls, data: dict[str, Any]) -> "Certificate":
        return cls(
            certifier=data.get("certifier", ""),
            notes=data.get("notes", ""),
            certification_date=_parse_ts(data.get("certification_date")),
            sequence=int(data.get("certification_sequence", 0)),
            uid=data.get("uid"),
        )


@dataclass(slots=True)
class Content:
    label: str
    value: str
    type: str
    sequence: int = 0
    # Zero or one referenced document; populated for resolved checksum contents.
    document: list["Document"] = field(default_factory=list)
    uid: str | None = None

    @property
    def is_checksum(self) -> bool:
        return self.type == CHECKSUM_TYPE

    def to_mutation(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "dgraph.type": CONTENT_TYPE,
            "label": self.label,
            "value": self.value,
            "type": self.type,
            "content_sequence": self.sequence,
        }
        if self.uid:
            out["uid"] = self.uid
        if self.document:
            out["document"] = [{"uid": d.uid} for d in self.document if d.uid]
        return out

    @classmethod
    def from_result(cls, data: dict[str, Any]) -> "Content":
        return cls(
            label=data.get("label", ""),
            value=data.get("value", ""),
            type=data.get("type", ""),
            sequence=int(data.get("content_sequence", 0)),
            document=[Document.from_result(d) for d in data.get("document") or []],
            uid=data.get("uid"),
        )


@dataclass(slots=True)
class ContentGroup:
    sequence: int = 0
    contents: list[Content] = field(default_factory=list)
    uid: str | None = None

    def to_mutation(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "dgraph.type": CONTENT_GROUP_TYPE,
            "content_group_sequence": self.sequence,
        }
        if self.uid:
            out["uid"] = self.uid
        if self.contents:
            out["contents"] = [c.to_mutation() for c in self.contents]
        return out

    @classmethod
    def from_result(cls, data: dict[str, Any]) -> "ContentGroup":
        contents = [Content.from_result(c) for c in data.get("contents") or []]
        contents.sort(key=lambda c: c.sequence)
        return cls(
            sequence=int(data.get("content_group_sequence", 0)),
            contents=contents,
            uid=data.get("uid"),
        )


@dataclass(slots=True)
class Document:
    """A content-addressed document node.

    `hash` is the natural key; `uid` is assigned by the store and stays
    internal. `edges` holds dynamically named relationship lists as returned
    by a retrieval query; they are never written through `to_mutation`.
    """

    hash: str
    creator: str | None = None
    created_date: datetime | None = None
    content_groups: list[ContentGroup] = field(default_factory=list)
    certificates: list[Certificate] = field(default_factory=list)
    edges: dict[str, list["Document"]] = field(default_factory=dict)
    uid: str | None = None

    @classmethod
    def from_chain(cls, chain_doc: ChainDocument) -> "Document":
        groups = [
            ContentGroup(
                sequence=gi,
                contents=[
                    Content(label=c.label, value=c.value, type=c.type, sequence=ci)
                    for ci, c in enumerate(group)
                ],
            )
            for gi, group in enumerate(chain_doc.content_groups)
        ]
        doc = cls(
            hash=chain_doc.hash,
            creator=chain_doc.creator,
            created_date=chain_doc.created_date,
            content_groups=groups,
        )
        doc.update_certificates(chain_doc.certificates)
        return doc

    def checksum_contents(self) -> list[Content]:
        return [c for g in self.content_groups for c in g.contents if c.is_checksum]

    def update_certificates(self, incoming: list[ChainCertificate]) -> list[Certificate]:
        """Append certificates not yet present, keeping ascending sequence order.

        Certificates are append-only: an incoming certificate whose sequence is
        already stored is ignored. Returns the certificates that were added.
        """
        known = {c.sequence for c in self.certificates}
        added: list[Certificate] = []
        for position, cert in enumerate(incoming):
            new = Certificate.from_chain(position, cert)
            if new.sequence in known:
                continue
            known.add(new.sequence)
            added.append(new)
        if added:
            self.certificates.extend(added)
            self.certificates.sort(key=lambda c: c.sequence)
        return added

    def to_mutation(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "uid": self.uid or f"_:{NEW_DOCUMENT}",
            "dgraph.type": DOCUMENT_TYPE,
            "hash": self.hash,
        }
        if self.creator is not None:
            out["creator"] = self.creator
        if self.created_date is not None:
            out["created_date"] = _format_ts(self.created_date)
        if self.content_groups:
            out["content_groups"] = [g.to_mutation() for g in self.content_groups]
        if self.certificates:
            out["certificates"] = [c.to_mutation() for c in self.certificates]
        return out

    @classmethod
    def from_result(cls, data: dict[str, Any]) -> "Document":
        edges = {
            key: [cls.from_result(d) for d in value]
            for key, value in data.items()
            if key not in _DOCUMENT_KEYS
            and isinstance(value, list)
            and all(isinstance(d, dict) for d in value)
        }
        groups = [ContentGroup.from_result(g) for g in data.get("content_groups") or []]
        certs = [Certificate.from_result(c) for c in data.get("certificates") or []]
        groups.sort(key=lambda g: g.sequence)
        certs.sort(key=lambda c: c.sequence)
        return cls(
            hash=data.get("hash", ""),
            creator=data.get("creator"),
            created_date=_parse_ts(data.get("created_date")),
            content_groups=groups,
            certificates=certs,
            edges=edges,
            uid=data.get("uid"),
        )
