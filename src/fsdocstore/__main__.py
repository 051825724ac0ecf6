# fsdocstore/__main__.py
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from fsdocstore.config.runtime import get_settings
from fsdocstore.errors import DocStoreError
from fsdocstore.services.logger.std import LoggingConfig, setup_logging
from fsdocstore.storage.docstore.registry import CollectionRegistry
from fsdocstore.storage.factory import build_registry

"""
fsdocstore CLI

Inspect and edit a storage root from the shell. Every command prints JSON.

  python -m fsdocstore --root ./data ls users
  python -m fsdocstore --root ./data get users 42
  python -m fsdocstore --root ./data find users --where '{"age": {"$gte": 50}}' --sort age --desc --limit 5
  python -m fsdocstore --root ./data stats users
  python -m fsdocstore --root ./data rm users 42

Exit codes: 0 ok, 1 store error (kind and message on stderr), 2 usage error.
"""


def _dump(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, default=str)


async def _run(args: argparse.Namespace, registry: CollectionRegistry) -> Any:
    where = json.loads(args.where) if getattr(args, "where", None) else None
    # every command works on an existing collection; never create one here
    coll = await registry.resolve(args.collection, create=False)

    if args.cmd == "ls":
        return await coll.all()
    if args.cmd == "get":
        return await coll.read(args.doc_id)
    if args.cmd == "find":
        query: dict[str, Any] = {"where": where}
        if args.sort:
            query["sort"] = {"field": args.sort, "order": "desc" if args.desc else "asc"}
        query["limit"] = args.limit
        query["offset"] = args.offset
        return await coll.filter(query)
    if args.cmd == "stats":
        return (await coll.get_stats()).to_dict()
    if args.cmd == "rm":
        await coll.delete(args.doc_id)
        return {"deleted": args.doc_id}
    raise AssertionError(f"unhandled command {args.cmd!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fsdocstore")
    parser.add_argument("--root", default=None, help="Storage root (default: settings root).")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="cmd", required=True)

    ls = sub.add_parser("ls", help="Print every document in a collection.")
    ls.add_argument("collection")

    get = sub.add_parser("get", help="Print one document.")
    get.add_argument("collection")
    get.add_argument("doc_id")

    find = sub.add_parser("find", help="Filter/sort/paginate a collection.")
    find.add_argument("collection")
    find.add_argument("--where", default=None, help="JSON object of field conditions.")
    find.add_argument("--sort", default=None, help="Field to sort by.")
    find.add_argument("--desc", action="store_true", help="Sort descending.")
    find.add_argument("--limit", type=int, default=None)
    find.add_argument("--offset", type=int, default=None)

    stats = sub.add_parser("stats", help="Document count and recency orderings.")
    stats.add_argument("collection")

    rm = sub.add_parser("rm", help="Delete one document.")
    rm.add_argument("collection")
    rm.add_argument("doc_id")

    return parser


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    args = build_parser().parse_args(argv)

    setup_logging(LoggingConfig(level=args.log_level))

    cfg = get_settings()
    if args.root is not None:
        cfg = cfg.model_copy(update={"root": args.root})
    registry = build_registry(cfg)

    try:
        result = asyncio.run(_run(args, registry))
    except json.JSONDecodeError as exc:
        print(f"InvalidArgument: --where is not valid JSON: {exc}", file=sys.stderr)
        return 2
    except DocStoreError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    print(_dump(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
