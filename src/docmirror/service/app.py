from __future__ import annotations

import os
import secrets
from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from .. import __version__
from ..errors import EdgeEndpointNotFoundError, SchemaError
from ..events import Event, apply_event
from ..graph.models import Document
from ..graph.query import RequestConfig
from ..graph.sync import DocumentSync
from ..settings import settings


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    if not settings.api_key:
        return
    if not secrets.compare_digest((x_api_key or "").encode(), settings.api_key.encode()):
        raise HTTPException(status_code=401, detail="invalid API key")


def _document_out(doc: Document) -> dict[str, Any]:
    return jsonable_encoder(asdict(doc))


def create_app(sync: DocumentSync):
    app = FastAPI(title="docmirror", version=__version__)

    @app.get("/health")
    async def health():
        return {"ok": True, "host": os.uname().nodename}

    @app.get("/v1/documents/{hash}")
    def get_document(
        hash: str,
        content_groups: bool = False,
        certificates: bool = False,
        edges: list[str] = Query(default=[]),
        _auth: None = Depends(require_api_key),
    ):
        try:
            config = RequestConfig(
                content_groups=content_groups, certificates=certificates, edges=tuple(edges)
            )
        except SchemaError as e:
            raise HTTPException(status_code=422, detail=e.message)

        doc = sync.get_by_hash(hash, config)
        if doc is None:
            raise HTTPException(status_code=404, detail="not found")
        return _document_out(doc)

    @app.get("/v1/documents/{hash}/uid")
    def get_uid(hash: str, _auth: None = Depends(require_api_key)):
        uid = sync.get_uid(hash)
        if uid is None:
            raise HTTPException(status_code=404, detail="not found")
        return {"hash": hash, "uid": uid}

    @app.post("/v1/events")
    def post_event(payload: Event, _auth: None = Depends(require_api_key)):
        try:
            apply_event(sync, payload)
        except EdgeEndpointNotFoundError as e:
            raise HTTPException(status_code=404, detail={"error": e.message, **e.details})
        except SchemaError as e:
            raise HTTPException(status_code=422, detail=e.message)
        return {"ok": True, "kind": payload.kind, "op": payload.op}

    return app
