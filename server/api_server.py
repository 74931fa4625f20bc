"""FastAPI application entry point for the Deepen retrieval backend."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.models.health import StartupReport
from services.context_aggregation.ContextAggregationService import ContextAggregationService
from services.context_scoping.ContextScopingService import ContextScopingService
from services.embedding_tasks.EmbeddingTaskService import EmbeddingTaskService
from services.rag_indexing.IndexingService import IndexingService
from services.rag_search.SearchService import SearchService
from server.routers.EmbeddingRouter import router as embedding_router
from server.routers.QueryRouter import router as query_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


def init_services(
    app: FastAPI,
    helper_config: HelperConfig,
    store_client: StoreClientInterface,
    rag_client: RAGClientInterface,
    embed_client: EmbedClientInterface,
) -> None:
    """Wire the booted clients into the services and publish both on app.state."""
    app.state.helper_config = helper_config
    app.state.store_client = store_client
    app.state.rag_client = rag_client
    app.state.embed_client = embed_client
    app.state.clients = [store_client, rag_client, embed_client]

    app.state.indexing_service = IndexingService(
        helper_config=helper_config,
        rag_client=rag_client,
        embed_client=embed_client,
    )
    app.state.search_service = SearchService(
        helper_config=helper_config,
        rag_client=rag_client,
        embed_client=embed_client,
    )
    app.state.scoping_service = ContextScopingService(
        helper_config=helper_config,
        store_client=store_client,
    )
    app.state.aggregation_service = ContextAggregationService(
        helper_config=helper_config,
        store_client=store_client,
        scoping_service=app.state.scoping_service,
        search_service=app.state.search_service,
    )
    app.state.embedding_task_service = EmbeddingTaskService(
        helper_config=helper_config,
        store_client=store_client,
        indexing_service=app.state.indexing_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    helper_config = HelperConfig(logger=logging)

    store_client = StoreClientManager(helper_config=helper_config).get_client()
    rag_client = RAGClientManager(helper_config=helper_config).get_client()
    embed_client = EmbedClientManager(helper_config=helper_config).get_client()
    clients: list[ClientInterface] = [store_client, rag_client, embed_client]

    logging.info("Booting all clients...")
    for client in clients:
        try:
            await client.boot()
        except Exception as e:
            # requests against this client will fail, the server stays up
            logging.warning("Could not boot %s client '%s': %s", client.get_client_type().upper(), client.get_engine_name(), e)

    init_services(app, helper_config, store_client, rag_client, embed_client)
    app.state.startup_report = await check_connections(clients)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="deepen_retrieval",
    description=(
        "Context scoping and retrieval backend for Deepen. "
        "Captures are indexed into a vector database via POST /embeddings/task "
        "and searched per chat turn via POST /query and POST /query/context."
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

app.include_router(query_router)
app.include_router(embedding_router)


async def check_connections(clients: list[ClientInterface]) -> StartupReport:
    """Check configuration and connectivity of all backends.

    Problems are reported as warnings, never raised: the server comes up degraded
    and the affected operations fail when they are issued.

    Returns:
        StartupReport: Health of every client.
    """
    report = StartupReport(clients=[await client.check_health() for client in clients])
    for health in report.clients:
        if health.healthy:
            logging.info("%s client '%s' is healthy.", health.client_type.upper(), health.engine, color="green")
            continue
        for problem in health.configuration_problems:
            logging.warning("%s client '%s' is misconfigured: %s", health.client_type.upper(), health.engine, problem)
        if not health.reachable:
            logging.warning(
                "%s client '%s' is not reachable: %s",
                health.client_type.upper(), health.engine, health.detail or "unknown error",
            )
    return report


@app.get("/health", tags=["health"])
async def health(request: Request) -> StartupReport:
    """Re-run the connection check and return the per-client report."""
    return await check_connections(request.app.state.clients)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting deepen_retrieval API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
