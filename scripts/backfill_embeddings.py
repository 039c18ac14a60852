"""CLI for computing embeddings of notes that were saved without one

A running server owns the store file, so the backfill is handed to it when it
answers; the file is only written directly when no server is reachable.
"""

import argparse
import sys

import httpx
from loguru import logger

from noteweave.capabilities import EmbeddingCapability
from noteweave.config import settings
from noteweave.embedders.backfill import backfill_file
from noteweave.embedders.factory import build_embedder

REQUEST_TIMEOUT = 5.0


def request_server_backfill(server_url: str, note_ids: list[str] | None) -> bool:
    """Ask a running server to backfill its live store.

    Returns:
        True if the server accepted the request, False if no server is reachable
    """
    try:
        response = httpx.post(
            f"{server_url}/api/embeddings/backfill",
            json={"note_ids": note_ids},
            timeout=REQUEST_TIMEOUT,
        )
    except (httpx.ConnectError, httpx.TimeoutException):
        logger.info(f"No server reachable at {server_url}")
        return False

    response.raise_for_status()
    logger.info(f"Backfill scheduled on server {server_url}")
    return True


def main(store_path: str, note_ids: list[str] | None, server_url: str | None) -> int:
    if server_url and request_server_backfill(server_url, note_ids):
        return 0

    embedder = build_embedder(settings)
    if embedder is None:
        logger.error("No embedding provider configured, nothing to backfill")
        return 1

    embeddings = EmbeddingCapability(embedder, timeout=settings.embedding_timeout_seconds)
    try:
        backfill_file(store_path, embeddings, note_ids)
    finally:
        embeddings.close()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--store",
        type=str,
        required=False,
        help="Local note store file, used when no server is running",
        default=settings.local_store_path,
    )
    parser.add_argument(
        "--note-id",
        dest="note_ids",
        action="append",
        required=False,
        help="Only backfill this note (repeatable)",
    )
    parser.add_argument(
        "--server-url",
        type=str,
        default=settings.server_url,
        help="Running server to hand the backfill to; pass an empty string to skip",
    )

    args = parser.parse_args()

    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
    sys.exit(main(store_path=args.store, note_ids=args.note_ids, server_url=args.server_url))
