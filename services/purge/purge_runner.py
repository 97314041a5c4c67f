"""Purge entry point.

Runs or resumes a purge from the shell. Re-running a failed purge with the
same arguments deletes whatever is left.

Usage:
    python -m services.purge.purge_runner --collection spacedRepData --field cardId --value <id>
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

from services.purge.PurgeService import PurgeError, PurgeService
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.record import PurgeQuery


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete every record of a collection matching field == value.")
    parser.add_argument("--collection", required=True)
    parser.add_argument("--field", required=True)
    parser.add_argument("--value", required=True)
    parser.add_argument("--page-size", type=int, default=None, help="Records per atomic delete. Defaults to PURGE_PAGE_SIZE.")
    return parser.parse_args(argv)


async def main(argv: list[str]) -> int:
    """Run one purge. Returns the process exit code."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    store_client = StoreClientManager(helper_config=config).get_client()

    try:
        await store_client.boot()
        purge_service = PurgeService(helper_config=config, store_client=store_client)
        query = PurgeQuery(collection=args.collection, field=args.field, value=args.value)
        try:
            result = await purge_service.do_purge(query, page_size=args.page_size)
        except PurgeError as e:
            logger.error("%s Re-run the same command to resume.", e)
            return 1
        logger.info("Deleted %d record(s) in %d page(s).", result.deleted, result.pages)
        return 0
    finally:
        await store_client.close()


if __name__ == "__main__":
    if os.getenv("APP_ENV", "development").lower() != "production":
        load_dotenv()
    sys.exit(asyncio.run(main(sys.argv[1:])))
