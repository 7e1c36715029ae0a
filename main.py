import argparse
import logging  # Import the logging module
import sys

import config

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

from bookmark_service import BookmarkService
from cache_worker import FileCacheStorage, OfflineCacheWorker, WorkerRegistration
from domain.errors import AssetFetchError, WorkerStateError
from proxy_app import create_app
from proxy_service import RecordProxy

# Import repositories
from repositories.airtable_repository import AirtableRepository
from repositories.asset_repository import HttpAssetFetcher
from repositories.local_cache_repository import JsonFileEntryCache
from repositories.proxy_repository import ProxyRepository


def run_serve(args):
    import uvicorn

    proxy_config = config.load_proxy_config()
    if not proxy_config.is_complete:
        logging.warning(f"Missing configuration: {', '.join(proxy_config.missing_fields())}. Every request will fail with 500.")
    record_proxy = RecordProxy(AirtableRepository(proxy_config), proxy_config)
    uvicorn.run(create_app(record_proxy), host=args.host, port=args.port)
    return 0


def print_entries(bookmark_service: BookmarkService):
    links = bookmark_service.render()
    if not links:
        print("No entries.")
    for link in links:
        print(f"{link.title}\t{link.url}\t{link.record_id or ''}")


def run_list(bookmark_service: BookmarkService):
    result = bookmark_service.start()
    print_entries(bookmark_service)
    if not result.ok:
        logging.warning(f"Showing cached entries only: {result.error}")
        return 1
    return 0


def run_add(bookmark_service: BookmarkService, args):
    bookmark_service.load_cached()
    result = bookmark_service.add_entry(args.id, args.title)
    if not result.ok:
        logging.error(f"Could not add '{args.title}': {result.error}")
        return 1
    print(result.message)
    return 0


def run_delete(bookmark_service: BookmarkService, args):
    bookmark_service.start()
    for item in bookmark_service.open_delete_checklist():
        print(f"[ ] {item.record_id}\t{item.title}")

    def confirm(prompt):
        if args.yes:
            return True
        answer = input(f"{prompt}\n[y/N] ")
        return answer.strip().lower() in ("y", "yes")

    result = bookmark_service.delete_entries(args.record_ids, confirm)
    if result.cancelled:
        print("Nothing deleted.")
        return 0
    if not result.ok:
        logging.error(f"Could not delete entries: {result.error}")
        return 1
    print(result.message)
    return 0


def run_offline(args):
    storage = FileCacheStorage(config.ASSET_CACHE_DIR)
    worker = OfflineCacheWorker(config.CACHE_NAME, config.ASSETS_TO_CACHE, storage, HttpAssetFetcher())
    registration = WorkerRegistration()

    try:
        if args.offline_command == "install" or not storage.has(config.CACHE_NAME):
            registration.register(worker)
        else:
            worker.resume()
            registration.active = worker

        if args.offline_command == "fetch":
            asset = registration.fetch(args.path)
    except (AssetFetchError, WorkerStateError) as e:
        logging.error(f"Offline cache {config.CACHE_NAME} failed: {e}")
        return 1

    if args.offline_command == "fetch":
        sys.stdout.buffer.write(asset.content)
    else:
        print(f"Installed {config.CACHE_NAME} ({len(config.ASSETS_TO_CACHE)} assets).")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Anime bookmark list backed by Airtable.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the record proxy.")
    serve.add_argument('--host', type=str, default=config.PROXY_HOST)
    serve.add_argument('--port', type=int, default=config.PROXY_PORT)

    subparsers.add_parser("list", help="Show the bookmark list (cached first, then refreshed).")

    add = subparsers.add_parser("add", help="Add an entry.")
    add.add_argument('id', type=str, help='Identifier on the viewing site.')
    add.add_argument('title', type=str)

    delete = subparsers.add_parser("delete", help="Delete entries by Airtable record id.")
    delete.add_argument('record_ids', nargs='+', metavar='RECORD_ID')
    delete.add_argument('--yes', '-y', action='store_true', help='Skip the confirmation prompt.')

    offline = subparsers.add_parser("offline", help="Manage the offline asset cache.")
    offline_commands = offline.add_subparsers(dest="offline_command", required=True)
    offline_commands.add_parser("install", help="Download and cache every asset in the manifest.")
    fetch = offline_commands.add_parser("fetch", help="Print an asset, cache first.")
    fetch.add_argument('path', type=str)
    return parser


def main(argv=None):
    """
    Composition root of the application.
    Initializes repositories and services, then runs the chosen command.
    """
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return run_serve(args)
    if args.command == "offline":
        return run_offline(args)

    # Client commands share one service
    bookmark_service = BookmarkService(ProxyRepository(), JsonFileEntryCache(config.LOCAL_CACHE_PATH))

    if args.command == "list":
        return run_list(bookmark_service)
    if args.command == "add":
        return run_add(bookmark_service, args)
    if args.command == "delete":
        return run_delete(bookmark_service, args)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
