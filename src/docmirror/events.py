from __future__ import annotations

import json
import logging
from typing import Iterable, Iterator, Literal

from pydantic import BaseModel, model_validator

from .graph.models import ChainDocument, ChainEdge
from .graph.sync import DocumentSync

logger = logging.getLogger(__name__)


class Event(BaseModel):
    """One change emitted by the indexer."""

    kind: Literal["document", "edge"]
    op: Literal["store", "delete"] = "store"
    document: ChainDocument | None = None
    edge: ChainEdge | None = None

    @model_validator(mode="after")
    def _payload_matches_kind(self) -> "Event":
        if self.kind == "document" and self.document is None:
            raise ValueError("document event without a document payload")
        if self.kind == "edge" and self.edge is None:
            raise ValueError("edge event without an edge payload")
        return self


def apply_event(sync: DocumentSync, event: Event) -> None:
    if event.kind == "document" and event.document is not None:
        if event.op == "delete":
            sync.delete_document(event.document)
        else:
            sync.store_document(event.document)
    elif event.kind == "edge" and event.edge is not None:
        sync.mutate_edge(event.edge, delete=event.op == "delete")
    else:
        raise ValueError(f"{event.kind} event without a {event.kind} payload")


def iter_events(lines: Iterable[str]) -> Iterator[Event]:
    """Parse JSON-lines events, skipping blank lines."""
    for n, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield Event.model_validate(json.loads(line))
        except ValueError as e:
            logger.error("Invalid event on line %d: %s", n, e)
            raise
