from __future__ import annotations

import uvicorn

from ..errors import StoreNotConfiguredError
from ..graph.dgraph_store import DgraphConfig, DgraphGraphStore
from ..graph.sync import DocumentSync
from ..settings import DocMirrorSettings, settings
from .app import create_app


def build_sync(cfg: DocMirrorSettings = settings) -> DocumentSync:
    if not cfg.dgraph_addr:
        raise StoreNotConfiguredError("Dgraph not configured. Set DOCMIRROR_DGRAPH_ADDR.")
    store = DgraphGraphStore(DgraphConfig(addr=cfg.dgraph_addr, timeout=cfg.dgraph_timeout))
    return DocumentSync(store, lock_stripes=cfg.lock_stripes)


def main() -> None:
    sync = build_sync()
    try:
        sync.prepare()
        config = uvicorn.Config(
            create_app(sync),
            host=settings.bind_host,
            port=settings.bind_port,
            log_level=(settings.log_level or "info").lower(),
        )
        uvicorn.Server(config).run()
    finally:
        sync.store.close()


if __name__ == "__main__":
    main()
