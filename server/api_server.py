"""FastAPI application entry point for the store/index bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

if os.getenv("APP_ENV", "development").lower() != "production":
    load_dotenv()

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.clients.index.IndexClientManager import IndexClientManager
from shared.clients.auth.AuthClientManager import AuthClientManager
from services.background.BackgroundTaskRunner import BackgroundTaskRunner
from services.index_sync.ReindexService import ReindexService
from services.index_sync.ResyncScheduler import ResyncScheduler
from services.purge.PurgeService import PurgeService
from server.routers.SyncRouter import router as sync_router
from server.routers.PurgeRouter import router as purge_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    store_client = StoreClientManager(helper_config=app.state.helper_config).get_client()
    index_client = IndexClientManager(helper_config=app.state.helper_config).get_client()
    auth_client = AuthClientManager(helper_config=app.state.helper_config).get_client()
    clients: list[ClientInterface] = [store_client, index_client, auth_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.store_client = store_client
    app.state.index_client = index_client
    app.state.auth_client = auth_client

    reindex_service = ReindexService(
        helper_config=app.state.helper_config,
        store_client=store_client,
        index_client=index_client,
    )
    app.state.resync_scheduler = ResyncScheduler(
        helper_config=app.state.helper_config,
        store_client=store_client,
        reindex_service=reindex_service,
    )
    app.state.purge_service = PurgeService(
        helper_config=app.state.helper_config,
        store_client=store_client,
    )
    app.state.task_runner = BackgroundTaskRunner(helper_config=app.state.helper_config)

    await check_connections(clients)
    logging.info("Store/index bridge v%s ready.", app_version, color="green")

    # while the app is running...
    yield

    # when the app shuts down, let running protocols finish, then close all clients
    await app.state.task_runner.shutdown()
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="store_index_bridge",
    description=(
        "Keeps the search index in sync with the document store and purges "
        "dependent records of deleted parents. Resync is triggered via "
        "POST /syncSearchIndexes (debounced), purges via the /delete* routes. "
        "All triggers answer 202 and run in the background."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sync_router)
app.include_router(purge_router)


@app.get("/", response_class=PlainTextResponse, tags=["health"])
async def root() -> str:
    return "Store/index bridge is up."


async def check_connections(clients: list[ClientInterface]) -> None:
    """Check connectivity to all configured backends on startup.

    Failures are logged but never fatal: triggers keep being accepted and the
    background protocols report their own errors.
    """
    for client in clients:
        if not await client.do_healthcheck():
            logging.warning(
                "%s client '%s' is not reachable. Background protocols using it will fail.",
                client.get_client_type(),
                client.get_engine_name(),
            )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "3000"))
    logging.info(
        "Starting store/index bridge v%s from root dir: %s on port %d...",
        app_version,
        os.getenv("ROOT_DIR", os.getcwd()),
        port,
    )
    uvicorn.run(app, host="0.0.0.0", port=port)
