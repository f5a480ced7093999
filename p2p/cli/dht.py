#!/usr/bin/env python3
"""
peerdb CLI — persisted DHT records
==================================

Inspect and curate the discovery record set a node reloads at startup.

Examples
--------
# Show the persisted records
python -m p2p.cli.dht show
python -m p2p.cli.dht --db sqlite:///./peerdb.db show --json

# Append records (keeps existing ones, order preserved)
python -m p2p.cli.dht add enr:-IS4QHCYrYZbAKWC...

# Drop the whole set
python -m p2p.cli.dht clear

Records are shown as stored: only their structure is checked, signatures
are not verified, so the output is not authenticated.

Exit codes: 0 ok, 1 store/record error, 2 usage or configuration error.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from core import config as core_config
from core import logging as clog
from core.db import open_item_store
from core.errors import ConfigError, PeerDBError

from ..discovery.enr import Enr
from ..discovery.persisted_dht import DHT_DB_KEY, PersistedDht, clear_dht, load_dht, persist_dht

_LOG = logging.getLogger("p2p.cli.dht")

_UNAUTHENTICATED_NOTE = (
    "Records are checked for structure only. Signatures are not verified, so "
    "shown records are not authenticated."
)


def _open_store(args: argparse.Namespace):
    overrides = {}
    if args.db:
        overrides["db"] = {"uri": args.db}
    if args.log_level:
        overrides["log"] = {"level": args.log_level}
    cfg = core_config.load(args.config, **overrides)
    if args.log_file:
        cfg.ensure_dirs()
    clog.configure_from_config(cfg, to_file=args.log_file)
    clog.bind(component="dht-cli")
    _LOG.debug("opening store", extra={"uri": cfg.db.uri})
    return open_item_store(cfg.db.uri)


def cmd_show(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        enrs = load_dht(store)
    finally:
        store.kv.close()
    if args.json:
        print(json.dumps([e.summary() for e in enrs], indent=2))
        return 0
    if not enrs:
        print("(no persisted records)")
        return 0
    for i, e in enumerate(enrs):
        print(f"{i:>3}  {e!r}\n     {e.to_text()}")
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    new = [Enr.from_text(t) for t in args.enr]
    store = _open_store(args)
    try:
        # strict read: an unreadable stored set must not be overwritten
        item = store.get_item(PersistedDht, DHT_DB_KEY)
        enrs = list(item.enrs) if item is not None else []
        enrs.extend(new)
        persist_dht(store, enrs)
    finally:
        store.kv.close()
    print(f"[+] persisted {len(enrs)} records ({len(new)} added)")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        clear_dht(store)
    finally:
        store.kv.close()
    print("[-] cleared persisted records")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="peerdb-dht",
        description="Manage persisted DHT records.",
        epilog=_UNAUTHENTICATED_NOTE,
    )
    p.add_argument("--config", help="TOML or JSON config file")
    p.add_argument("--db", help="DB URI (overrides config/env), e.g. sqlite:///./peerdb.db")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    p.add_argument(
        "--log-file",
        action="store_true",
        help="Also write JSON logs to <logs_dir>/peerdb.log",
    )
    sub = p.add_subparsers(dest="cmd", metavar="<cmd>")

    sp = sub.add_parser("show", help="List persisted records", epilog=_UNAUTHENTICATED_NOTE)
    sp.add_argument("--json", action="store_true", help="Print a JSON array")
    sp.set_defaults(func=cmd_show)

    sp = sub.add_parser("add", help="Append records given in enr: text form")
    sp.add_argument("enr", nargs="+", help="enr:<base64url>")
    sp.set_defaults(func=cmd_add)

    sp = sub.add_parser("clear", help="Delete the persisted record set")
    sp.set_defaults(func=cmd_clear)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if not func:
        parser.print_help()
        return 2
    try:
        return int(func(args) or 0)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2
    except PeerDBError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n^C")
        return 130


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
