"""Search index resync entry point.

Runs one debounced resync outside the HTTP server, e.g. from a cron job.

Usage:
    python -m services.index_sync.index_sync [--force] [--collection NAME ...]
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

from services.index_sync.ReindexService import ReindexService
from services.index_sync.ResyncScheduler import ResyncScheduler
from shared.clients.index.IndexClientManager import IndexClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resync search indexes from the document store.")
    parser.add_argument("--force", action="store_true", help="Ignore the staleness window (the sync marker is still updated).")
    parser.add_argument("--collection", action="append", dest="collections", help="Collection to reindex, repeatable. Defaults to SYNC_COLLECTIONS.")
    return parser.parse_args(argv)


async def main(argv: list[str]) -> int:
    """Run one resync. Returns the process exit code."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    store_client = StoreClientManager(helper_config=config).get_client()
    index_client = IndexClientManager(helper_config=config).get_client()

    try:
        # both clients are required; without either there is nothing to sync
        for client in (store_client, index_client):
            try:
                await client.boot()
            except Exception as e:
                logger.error(f"Error booting {client.get_client_type()} client {client.get_engine_name()}: {e}. Aborting.")
                return 1

        reindex_service = ReindexService(helper_config=config, store_client=store_client, index_client=index_client)
        scheduler = ResyncScheduler(helper_config=config, store_client=store_client, reindex_service=reindex_service)
        result = await scheduler.do_maybe_resync(force=args.force, collections=args.collections)
        logger.info("Resync result: %s", result.model_dump_json())
        return 1 if result.status == "failed" else 0
    finally:
        await store_client.close()
        await index_client.close()


if __name__ == "__main__":
    if os.getenv("APP_ENV", "development").lower() != "production":
        load_dotenv()
    sys.exit(asyncio.run(main(sys.argv[1:])))
