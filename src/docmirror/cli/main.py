from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from docmirror.settings import settings


def _configure_logging() -> None:
    import logging

    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def cmd_version() -> int:
    from docmirror import __version__

    print(__version__)
    return 0


def cmd_prepare_schema(_args: argparse.Namespace) -> int:
    _configure_logging()
    from docmirror.service.server import build_sync

    sync = build_sync()
    try:
        sync.prepare()
        out = {"schema_version": sync.schema.version, "document_fields": sorted(sync.schema.document_fields)}
        print(json.dumps(out))
    finally:
        sync.store.close()
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    _configure_logging()
    from docmirror.graph.query import RequestConfig
    from docmirror.service.server import build_sync

    config = RequestConfig(
        content_groups=args.content_groups,
        certificates=args.certificates,
        edges=tuple(args.edge or ()),
    )
    sync = build_sync()
    try:
        if args.raw:
            out = sync.get_by_hash_as_map(args.hash, config)
        else:
            doc = sync.get_by_hash(args.hash, config)
            out = asdict(doc) if doc is not None else None
    finally:
        sync.store.close()
    if out is None:
        print(f"document {args.hash} not found", file=sys.stderr)
        return 1
    print(json.dumps(out, indent=2, default=str))
    return 0


def cmd_uid(args: argparse.Namespace) -> int:
    _configure_logging()
    from docmirror.service.server import build_sync

    sync = build_sync()
    try:
        uid = sync.get_uid(args.hash)
    finally:
        sync.store.close()
    if uid is None:
        print(f"document {args.hash} not found", file=sys.stderr)
        return 1
    print(uid)
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    _configure_logging()
    from docmirror.events import apply_event, iter_events
    from docmirror.service.server import build_sync

    sync = build_sync()
    applied = 0
    try:
        sync.prepare()
        with Path(args.path).open(encoding="utf-8") as fh:
            for event in iter_events(fh):
                apply_event(sync, event)
                applied += 1
    finally:
        sync.store.close()
    print({"applied": applied})
    return 0


def cmd_serve(_args: argparse.Namespace) -> int:
    _configure_logging()
    from docmirror.service.server import main

    main()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="docmirror")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=lambda _a: cmd_version())

    sub.add_parser("prepare-schema", help="Create the base schema if missing").set_defaults(
        func=cmd_prepare_schema
    )

    get = sub.add_parser("get", help="Fetch a document by hash")
    get.add_argument("hash")
    get.add_argument("--content-groups", action="store_true")
    get.add_argument("--certificates", action="store_true")
    get.add_argument("--edge", action="append", help="Relationship to expand (repeatable)")
    get.add_argument("--raw", action="store_true", help="Print the undecoded query result")
    get.set_defaults(func=cmd_get)

    uid = sub.add_parser("uid", help="Resolve a document hash to its uid")
    uid.add_argument("hash")
    uid.set_defaults(func=cmd_uid)

    replay = sub.add_parser("replay", help="Apply a JSON-lines file of indexer events")
    replay.add_argument("path")
    replay.set_defaults(func=cmd_replay)

    sub.add_parser("serve", help="Run the HTTP API").set_defaults(func=cmd_serve)

    return p


def app() -> None:
    from docmirror.errors import DocMirrorError, StoreNotConfiguredError

    parser = build_parser()
    args = parser.parse_args()
    try:
        rc = args.func(args)
    except StoreNotConfiguredError as e:
        print(e.message, file=sys.stderr)
        rc = 2
    except DocMirrorError as e:
        print(e.message, file=sys.stderr)
        rc = 1
    raise SystemExit(rc)


if __name__ == "__main__":
    app()
