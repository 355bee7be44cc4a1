"""Idempotent provisioning of the Cosmos database and collection.

Both resources follow the same policy: read first, create only when the read
reports "not found", and accept an "already exists" answer to the create as
success because another provisioner won the race. Any other failure is fatal
and propagates unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Literal

from cosmos_repository.db.status import is_already_exists, is_not_found

logger = logging.getLogger(__name__)

EnsureOutcome = Literal["existing", "created", "concurrently_created"]


async def _ensure_exists(
    *,
    kind: str,
    read: Callable[[], Awaitable[Any]],
    create: Callable[[], Awaitable[Any]],
    log_extra: dict[str, str],
) -> EnsureOutcome:
    try:
        await read()
    except Exception as exc:
        if not is_not_found(exc):
            raise
    else:
        logger.debug("Cosmos %s already exists", kind, extra=log_extra)
        return "existing"

    try:
        await create()
    except Exception as exc:
        if not is_already_exists(exc):
            raise
        logger.info("Cosmos %s was created concurrently", kind, extra=log_extra)
        return "concurrently_created"

    logger.info("Created Cosmos %s", kind, extra=log_extra)
    return "created"


async def ensure_database(client: Any, database_id: str) -> EnsureOutcome:
    """Make sure ``database_id`` exists on the account behind ``client``."""
    database = client.get_database_client(database_id)
    return await _ensure_exists(
        kind="database",
        read=database.read,
        create=lambda: client.create_database(id=database_id),
        log_extra={"database": database_id},
    )


async def ensure_collection(
    database: Any,
    collection_id: str,
    *,
    partition_key: Any,
    offer_throughput: int | None = 400,
) -> EnsureOutcome:
    """Make sure ``collection_id`` exists inside ``database``.

    ``database`` is a database proxy whose database already exists; new
    collections get ``partition_key`` and ``offer_throughput`` RU/s.
    """
    container = database.get_container_client(collection_id)
    return await _ensure_exists(
        kind="collection",
        read=container.read,
        create=lambda: database.create_container(
            id=collection_id,
            partition_key=partition_key,
            offer_throughput=offer_throughput,
        ),
        log_extra={"database": str(database.id), "collection": collection_id},
    )
