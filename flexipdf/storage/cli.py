"""Command-line inspection of the persisted library store.

Usage examples:

    python -m flexipdf.storage.cli keys
    python -m flexipdf.storage.cli show pdfFiles_v1
    python -m flexipdf.storage.cli check
    python -m flexipdf.storage.cli drop currentFolderId_v1
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import orjson

from ..config_loader import StorageConfig, configure_logging, load_app_config
from .datasource import FileSystemDatasource
from .kv_store import KeyValueStore, create_key_value_store

LOGGER = logging.getLogger("flexipdf.store-cli")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect or repair the FlexiPDF key-value store.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to app.config.yaml (defaults to data/app.config.yaml).",
    )
    parser.add_argument(
        "--directory",
        type=Path,
        default=None,
        help="Store directory; overrides the configured one.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("keys", help="List stored keys.")
    show = subparsers.add_parser("show", help="Print the raw value under a key.")
    show.add_argument("key")
    drop = subparsers.add_parser("drop", help="Delete a key.")
    drop.add_argument("key")
    subparsers.add_parser("check", help="Load every collection, discarding unreadable ones.")
    return parser


def _open_store(args: argparse.Namespace) -> KeyValueStore:
    config = load_app_config(args.config).storage
    if args.directory is not None:
        config = StorageConfig(backend="disk", directory=str(args.directory))
    return create_key_value_store(config, project_root=PROJECT_ROOT)


async def _check(backend: KeyValueStore) -> dict[str, object]:
    datasource = FileSystemDatasource(backend)
    documents = await datasource.load_pdf_files()
    folders = await datasource.load_folders()
    current = await datasource.load_current_folder_id()
    return {"documents": len(documents), "folders": len(folders), "currentFolderId": current}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    backend = _open_store(args)
    try:
        if args.command == "keys":
            for key in backend.keys():
                print(key)
        elif args.command == "show":
            raw = backend.get(args.key)
            if raw is None:
                LOGGER.warning("No value stored under '%s'", args.key)
                return 1
            print(raw)
        elif args.command == "drop":
            backend.delete(args.key)
            LOGGER.info("Deleted '%s'", args.key)
        elif args.command == "check":
            summary = asyncio.run(_check(backend))
            print(orjson.dumps(summary, option=orjson.OPT_INDENT_2).decode("utf-8"))
    finally:
        backend.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
