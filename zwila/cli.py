"""
zwila: command-line front end for managing expiring shared folders.

Reads the storage account, key and container from ZWILA_* environment
variables (or a .env file).

Usage:
    zwila check
    zwila create --description "Holiday photos" --expiry 2026-12-24T00:00:00Z
    zwila upload rhino.png <slug> [--name Northern_White_Rhino.png]
    zwila list [--slug <slug>] [--all]
    zwila sas <slug> <filename> [--minutes 60]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from zwila.client import Zwila
from zwila.config import Settings, settings as default_settings
from zwila.errors import ZwilaError

logger = logging.getLogger("zwila.cli")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    # Keep noisy libraries at WARNING
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _print(data) -> None:
    print(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def cmd_check(z: Zwila, args: argparse.Namespace) -> int:
    ok = await z.has_container()
    _print({"container": z.settings.container, "exists": ok})
    return 0 if ok else 1


async def cmd_create(z: Zwila, args: argparse.Namespace) -> int:
    message = args.message
    if args.message_file:
        message = Path(args.message_file).read_text(encoding="utf-8")
    created = await z.create_folder(args.slug, args.description, args.expiry, message)
    _print({"meta": created.meta.model_dump(mode="json"), "url": created.url})
    return 0


async def cmd_upload(z: Zwila, args: argparse.Namespace) -> int:
    source = Path(args.source)
    uploaded = await z.upload_file(source, args.slug, args.name or source.name)
    _print({"url": uploaded.url, "content_type": uploaded.content_type})
    return 0


async def cmd_meta(z: Zwila, args: argparse.Namespace) -> int:
    meta = await z.get_folder_meta(args.slug)
    _print(meta.model_dump(mode="json"))
    return 0


async def cmd_members(z: Zwila, args: argparse.Namespace) -> int:
    members = await z.list_folder_blobs(args.slug)
    _print([m.model_dump(mode="json") for m in members])
    return 0


async def cmd_list(z: Zwila, args: argparse.Namespace) -> int:
    folders = await z.list_folders(args.slug, include_expired=args.all)
    _print([f.model_dump(mode="json") for f in folders])
    return 0


async def cmd_sas(z: Zwila, args: argparse.Namespace) -> int:
    print(z.get_sas_url(args.slug, args.filename, args.minutes))
    return 0


COMMANDS = {
    "check": cmd_check,
    "create": cmd_create,
    "upload": cmd_upload,
    "meta": cmd_meta,
    "members": cmd_members,
    "list": cmd_list,
    "sas": cmd_sas,
}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zwila",
        description="Manage expiring shared folders in an Azure Storage container.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: ZWILA_LOG_LEVEL or INFO).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("check", help="Check that the container exists.")

    create = sub.add_parser("create", help="Create a folder.")
    create.add_argument("--slug", default=None, help="Folder name (default: random 21-char id).")
    create.add_argument("--description", default=None, help="Internal description.")
    create.add_argument("--expiry", default=None, help="ISO-8601 expiry (default: 31 days from now).")
    msg = create.add_mutually_exclusive_group()
    msg.add_argument("--message", default=None, help="Markdown message shown to recipients.")
    msg.add_argument("--message-file", default=None, help="Read the message from a file.")

    upload = sub.add_parser("upload", help="Upload a file into a folder.")
    upload.add_argument("source", help="Local file to upload.")
    upload.add_argument("slug", help="Target folder.")
    upload.add_argument("--name", default=None, help="Name within the folder (default: source file name).")

    meta = sub.add_parser("meta", help="Show a folder's metadata.")
    meta.add_argument("slug")

    members = sub.add_parser("members", help="List the files in a folder.")
    members.add_argument("slug")

    lst = sub.add_parser("list", help="List folders with their files.")
    lst.add_argument("--slug", default=None, help="Only this folder.")
    lst.add_argument("--all", action="store_true", help="Include expired folders.")

    sas = sub.add_parser("sas", help="Print a short-lived read-only URL for a file.")
    sas.add_argument("slug")
    sas.add_argument("filename")
    sas.add_argument("--minutes", type=int, default=None, help="Lifetime (default: ZWILA_SAS_LIFETIME_MINUTES).")

    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    async with Zwila(settings) as z:
        return await COMMANDS[args.command](z, args)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = default_settings
    configure_logging(args.log_level or settings.log_level)

    try:
        return asyncio.run(run(args, settings))
    except (ZwilaError, ValueError, FileNotFoundError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
