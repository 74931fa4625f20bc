"""Embedding task runner entry point.

Indexes (or removes) the vectors of a single capture, the same way the API's
background task does.

Usage:
    python -m services.embedding_tasks.embedding_runner --document-id <id> --user-id <id> [--delete]
"""

import argparse
import asyncio
import sys

from services.embedding_tasks.EmbeddingTaskService import EmbeddingTaskService
from services.rag_indexing.IndexingService import IndexingService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.tasks import EmbeddingTaskType


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one embedding task for a capture.")
    parser.add_argument("--document-id", required=True, help="Id of the capture.")
    parser.add_argument("--user-id", required=True, help="Id of the capture's owner.")
    parser.add_argument("--delete", action="store_true", help="Remove the capture's vectors instead of indexing it.")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Run a single embedding task. Returns the process exit code."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    store_client = StoreClientManager(helper_config=config).get_client()
    rag_client = RAGClientManager(helper_config=config).get_client()
    embed_client = EmbedClientManager(helper_config=config).get_client()
    clients = [store_client, rag_client, embed_client]

    try:
        # every client is required for a task, abort if one cannot be booted
        for client in clients:
            try:
                await client.boot()
            except Exception as e:
                logger.error(f"Error booting {client.get_client_type().upper()} client {client.get_engine_name()}: {e}. Aborting.")
                return 1

        task_service = EmbeddingTaskService(
            helper_config=config,
            store_client=store_client,
            indexing_service=IndexingService(helper_config=config, rag_client=rag_client, embed_client=embed_client),
        )
        task_type = EmbeddingTaskType.DELETE if args.delete else EmbeddingTaskType.INDEX
        result = await task_service.do_run(args.document_id, args.user_id, task_type)
        if not result.success:
            logger.error(f"Embedding task failed: {result.error.value if result.error else 'unknown'} {result.detail or ''}")
            return 1
        return 0
    finally:
        for client in clients:
            await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
