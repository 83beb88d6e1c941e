"""
Zuza file sharing server
"""

import argparse
import asyncio
import inspect
import json
import logging
import os
import secrets
import sys
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from zuza.config import ENV_PREFIX, get_settings, validate_settings
from zuza.store import FileStore, all_objects, is_visible, owned_by
from zuza.store.keys import date_key, format_file_id, sanitize_name
from zuza.store.readmodels import summarize


def get_store() -> FileStore:
    settings = get_settings()
    store = FileStore(settings.datastore, scan_concurrency=settings.scan_concurrency)
    store.check_root()
    return store


def run(args):
    settings = get_settings()
    port = args.port or settings.port
    logging.info(f"Starting server at port {port}, debug={not args.nodebug}, datastore={settings.datastore}")
    if validate_settings():
        logging.warning(validate_settings())
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see zuza/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m zuza create-env` to create an .env file with a login token\n"
    )
    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run(
        "zuza.api:create_app",
        factory=True,
        host="0.0.0.0",
        reload=not args.nodebug,
        port=int(port),
        log_config=log_config,
    )


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    token = secrets.token_hex(nbytes=32)
    env = {
        f"{ENV_PREFIX}datastore": str(Path(args.datastore).absolute()),
        f"{ENV_PREFIX}tokens": json.dumps({token: args.owner}),
    }
    with open(".env", "w") as f:
        for key, val in env.items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print(f"*** Created .env file, login token for {args.owner}: {token} ***")


def _filter(args):
    if args.owner:
        return owned_by(args.owner)
    if args.public:
        return is_visible
    return all_objects


async def show_tree(args):
    days = await get_store().build_tree(_filter(args))
    for day in summarize(days):
        print(f"{day.year}-{day.month}-{day.day}: {day.size} file(s)")


async def show_history(args):
    days = await get_store().list_paged(args.limit or get_settings().max_files, _filter(args), args.older_than)
    for day in days:
        print(f"{day.year}-{day.month}-{day.day}")
        for o in day.objects:
            flag = "public " if o.visible else "private"
            print(f"  {flag} {o.size:>12} {o.modified_at:%H:%M:%S} {o.file_id}")
    if days:
        print(f"(next page: --older-than {days[-1].date})")


async def put_file(args):
    path = Path(args.file)
    file_id = format_file_id(args.date or date_key(), args.owner, sanitize_name(args.name or path.name))
    with path.open("rb") as f:
        stat = await get_store().write(file_id, iter(lambda: f.read(get_settings().chunk_size), b""), args.public)
    print(f"Stored {stat.file_id} ({stat.size} bytes)")


async def get_file(args):
    store = get_store()
    if args.output:
        with open(args.output, "wb") as f:
            await store.read(args.file_id, f)
    else:
        await store.read(args.file_id, sys.stdout.buffer)
        sys.stdout.buffer.flush()


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m zuza")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (useful for testing downstream clients)",
    )
    p.add_argument("-p", "--port", help="Port (default: from settings)")
    p.set_defaults(func=run)

    p = subparsers.add_parser("create-env", help="Create the .env file with a random login token")
    p.add_argument("owner", help="The owner id the token logs in as")
    p.add_argument("-d", "--datastore", default="datastore", help="The datastore directory")
    p.set_defaults(func=create_env)

    subcommands = [
        ("tree", show_tree, "Show the number of files per day"),
        ("history", show_history, "List files, most recent day first"),
    ]
    for name, func, help_text in subcommands:
        p = subparsers.add_parser(name, help=help_text)
        group = p.add_mutually_exclusive_group()
        group.add_argument("--owner", help="Only files of this owner")
        group.add_argument("--public", action="store_true", help="Only visible files")
        if name == "history":
            p.add_argument("-l", "--limit", type=int, help="Number of files (default: max_files setting)")
            p.add_argument("--older-than", help="Only days before this date (YYYYMMDD)")
        p.set_defaults(func=func)

    p = subparsers.add_parser("put", help="Store a local file")
    p.add_argument("file", help="The file to store")
    p.add_argument("--owner", required=True, help="Owner id to store the file under")
    p.add_argument("--name", help="Name to store the file as (default: its file name)")
    p.add_argument("--date", help="Date (YYYYMMDD) to store the file under (default: today)")
    p.add_argument("--public", action="store_true", help="Make the file visible to everyone")
    p.set_defaults(func=put_file)

    p = subparsers.add_parser("get", help="Write a stored file to stdout or a local file")
    p.add_argument("file_id", help="Identifier (date/owner/name) of the file")
    p.add_argument("-o", "--output", help="File to write to (default: stdout)")
    p.set_defaults(func=get_file)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
