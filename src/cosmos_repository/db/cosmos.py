"""Cosmos DB document repository backed by the azure-cosmos async client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from time import perf_counter
from typing import Any, ClassVar

from cosmos_repository.config.models import CosmosDbSettings
from cosmos_repository.db.document import (
    Document,
    DocumentStoreError,
    DocumentValidationError,
    QuerySpec,
)
from cosmos_repository.db.provisioning import ensure_collection, ensure_database
from cosmos_repository.db.status import is_not_found
from cosmos_repository.errors import MissingDependencyError
from cosmos_repository.health import HealthStatus
from cosmos_repository.observability._observable import ObservableMixin
from cosmos_repository.observability.metrics import MetricsRecorder

logger = logging.getLogger(__name__)

_ID_PATH = "/id"
_ID_QUERY = "SELECT * FROM c WHERE c.id = @id"


def _import_azure_cosmos() -> Any:
    """Load the SDK on first repository construction.

    Tests replace this function with an in-memory account.
    """
    try:
        from azure import cosmos
        from azure.cosmos import aio  # noqa: F401
    except ImportError as exc:  # pragma: no cover - broken installation
        raise MissingDependencyError(
            "cosmos-repository could not import 'azure.cosmos.aio'; the azure-cosmos "
            "and aiohttp requirements of this package are missing from the environment"
        ) from exc
    return cosmos


def _build_client(cosmos: Any, settings: CosmosDbSettings) -> Any:
    kwargs: dict[str, Any] = {"credential": settings.key.get_secret_value()}
    if settings.consistency_level is not None:
        kwargs["consistency_level"] = settings.consistency_level
    if settings.application_name is not None:
        kwargs["user_agent_suffix"] = settings.application_name
    return cosmos.aio.CosmosClient(settings.endpoint, **kwargs)


def _split_query_spec(query_spec: QuerySpec, collection: str) -> tuple[str, list[Any] | None]:
    if isinstance(query_spec, str):
        return query_spec, None
    if isinstance(query_spec, Mapping) and isinstance(query_spec.get("query"), str):
        parameters = query_spec.get("parameters")
        return query_spec["query"], list(parameters) if parameters else None
    raise DocumentValidationError(
        operation="find",
        collection=collection,
        message="query specification must be a SQL string or a mapping with a 'query' string",
    )


class CosmosDocumentRepository(ObservableMixin):
    """Repository over one Cosmos DB collection with upsert-merge saves.

    Construction only binds the client; no network call happens until the
    database and collection are provisioned, either explicitly through
    :meth:`create` / :meth:`provision` or lazily by the first CRUD call.
    Provisioning runs once per instance and every caller waits on the same
    attempt. If it fails the instance is unusable and every later call
    re-raises that failure.

    ``save`` is a read-merge-write sequence, not an atomic upsert: two
    concurrent saves of the same id race and the last write wins.
    """

    _resource_name: ClassVar[str] = "cosmosdb"

    def __init__(
        self,
        settings: CosmosDbSettings | None,
        *,
        client: Any | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        if settings is None:
            raise DocumentValidationError(
                operation="init",
                collection=None,
                message="Cosmos DB connection settings not provided",
            )

        cosmos = _import_azure_cosmos()
        self.settings = settings
        self._client = _build_client(cosmos, settings) if client is None else client
        self._partition_key = cosmos.PartitionKey(path=settings.partition_key_path)
        self._database = self._client.get_database_client(settings.database)
        self._container = self._database.get_container_client(settings.collection)
        self._metrics = metrics
        self._provisioning: asyncio.Future[None] | None = None
        self._closed = False

    @classmethod
    async def create(
        cls,
        settings: CosmosDbSettings | None,
        *,
        client: Any | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> CosmosDocumentRepository:
        """Build a repository and return it once provisioning has succeeded."""
        repository = cls(settings, client=client, metrics=metrics)
        try:
            await repository.provision()
        except BaseException:
            if client is None:
                await repository.close()
            raise
        return repository

    @property
    def client(self) -> Any:
        """Expose underlying Cosmos client for advanced usage."""
        return self._client

    @property
    def container(self) -> Any:
        """Expose the collection (container) proxy."""
        return self._container

    @property
    def database_name(self) -> str:
        return self.settings.database

    @property
    def collection_name(self) -> str:
        return self.settings.collection

    @property
    def is_connected(self) -> bool:
        """Whether resource can still serve requests."""
        return not self._closed

    @property
    def is_provisioned(self) -> bool:
        task = self._provisioning
        return (
            task is not None
            and task.done()
            and not task.cancelled()
            and task.exception() is None
        )

    async def provision(self) -> None:
        """Ensure the database, then the collection, exist.

        Safe to call any number of times and from concurrent tasks. Raises
        :class:`DocumentStoreError` once the repository has been closed.
        """
        if self._closed:
            raise DocumentStoreError(
                operation="provision",
                collection=self.collection_name,
                message="repository is closed",
            )
        if self._provisioning is None:
            self._provisioning = asyncio.ensure_future(self._provision())
        await asyncio.shield(self._provisioning)

    async def _provision(self) -> None:
        try:
            with self._observed("provision"):
                await ensure_database(self._client, self.settings.database)
                await ensure_collection(
                    self._database,
                    self.settings.collection,
                    partition_key=self._partition_key,
                    offer_throughput=self.settings.offer_throughput,
                )
        except Exception as exc:
            logger.error(
                "Cosmos provisioning failed",
                extra={
                    "database": self.settings.database,
                    "collection": self.settings.collection,
                    "error_type": type(exc).__name__,
                },
            )
            raise

    async def get_by_id(
        self,
        document_id: str | None,
        *,
        partition_key: Any | None = None,
    ) -> Document | None:
        """Point read by id.

        An empty id and an unknown id both yield ``None``; the empty case makes
        no remote call at all.
        """
        if not document_id:
            return None

        await self.provision()
        with self._observed("get_by_id"):
            return await self._read_document(document_id, partition_key)

    async def remove(
        self,
        document_id: str | None,
        *,
        partition_key: Any | None = None,
    ) -> Document | None:
        """Delete a document and return it as it was stored.

        Returns ``None`` when there was nothing to delete, so repeated removes
        of the same id are harmless.
        """
        if not document_id:
            return None

        await self.provision()
        with self._observed("remove"):
            document = await self._read_document(document_id, partition_key)
            if document is not None:
                # Address by the stored id and partition value, not the caller's arguments.
                await self._container.delete_item(
                    item=document["id"],
                    partition_key=self._partition_key_value(document),
                )
        return document

    async def find(
        self,
        query_spec: QuerySpec | None,
        *,
        partition_key: Any | None = None,
    ) -> list[Document]:
        """Execute a Cosmos SQL query and materialize every result.

        ``query_spec`` is either a SQL string or
        ``{"query": ..., "parameters": [{"name": "@x", "value": ...}]}``.
        Without ``partition_key`` the query fans out across partitions.
        """
        if not query_spec:
            raise DocumentValidationError(
                operation="find",
                collection=self.collection_name,
                message="query specification not provided",
            )
        query, parameters = _split_query_spec(query_spec, self.collection_name)

        await self.provision()
        with self._observed("find"):
            return await self._query(query, parameters, partition_key)

    async def save(
        self,
        document: Mapping[str, Any] | None,
        options: Mapping[str, Any] | None = None,
    ) -> Document:
        """Create ``document`` or merge it onto the stored document with its id.

        On update, incoming fields overwrite stored ones, fields only present
        in storage survive and the stored id is kept. On create, ``options``
        are passed to ``create_item`` as keyword arguments. Returns the
        document as persisted by Cosmos, server metadata included.
        """
        if document is None:
            raise DocumentValidationError(
                operation="save",
                collection=self.collection_name,
                message="document to save not provided",
            )

        await self.provision()
        with self._observed("save"):
            existing = await self._read_document(document.get("id"), None)
            if existing is not None:
                merged = {**existing, **document, "id": existing["id"]}
                persisted = await self._container.replace_item(item=existing["id"], body=merged)
                logger.debug(
                    "Merged document into stored copy",
                    extra={"collection": self.collection_name, "document_id": existing["id"]},
                )
            else:
                persisted = await self._container.create_item(
                    body=dict(document),
                    **dict(options or {}),
                )
        return dict(persisted)

    async def health_check(self) -> HealthStatus:
        """Verify the collection is readable."""
        started = perf_counter()
        details = {"database": self.database_name, "collection": self.collection_name}
        try:
            await self._container.read()
        except Exception as exc:
            self._record_failure("health_check", started, exc)
            return HealthStatus(
                healthy=False,
                latency_ms=(perf_counter() - started) * 1000,
                message=str(exc),
                details={"error_type": exc.__class__.__name__, **details},
            )

        self._record_success("health_check", started)
        return HealthStatus(
            healthy=True,
            latency_ms=(perf_counter() - started) * 1000,
            message="ok",
            details=details,
        )

    async def close(self) -> None:
        """Stop any provisioning still in flight, then close the Cosmos client."""
        self._closed = True
        await self._cancel_provisioning()
        with self._observed("close"):
            await self._client.close()

    async def _cancel_provisioning(self) -> None:
        task = self._provisioning
        if task is None:
            return
        if not task.done():
            task.cancel()
            await asyncio.wait([task])
        if not task.cancelled():
            # Marks a failure as retrieved; callers already saw it through provision().
            task.exception()

    async def _read_document(
        self,
        document_id: str | None,
        partition_key: Any | None,
    ) -> Document | None:
        if not document_id:
            return None

        if partition_key is None and self.settings.partition_key_path != _ID_PATH:
            # The partition value is unknown, so look the id up across partitions.
            matches = await self._query(_ID_QUERY, [{"name": "@id", "value": document_id}], None)
            return matches[0] if matches else None

        try:
            item = await self._container.read_item(
                item=document_id,
                partition_key=document_id if partition_key is None else partition_key,
            )
        except Exception as exc:
            if is_not_found(exc):
                return None
            raise
        return dict(item)

    async def _query(
        self,
        query: str,
        parameters: list[Any] | None,
        partition_key: Any | None,
    ) -> list[Document]:
        kwargs: dict[str, Any] = {"query": query}
        if parameters:
            kwargs["parameters"] = parameters
        if partition_key is not None:
            kwargs["partition_key"] = partition_key
        return [dict(item) async for item in self._container.query_items(**kwargs)]

    def _partition_key_value(self, document: Mapping[str, Any]) -> Any:
        value: Any = document
        for segment in self.settings.partition_key_path.strip("/").split("/"):
            if not isinstance(value, Mapping) or segment not in value:
                raise DocumentValidationError(
                    operation="remove",
                    collection=self.collection_name,
                    message=(
                        f"stored document has no value at partition key path "
                        f"'{self.settings.partition_key_path}'"
                    ),
                )
            value = value[segment]
        return value


async def create_cosmos_repository(
    settings: CosmosDbSettings | None,
    *,
    metrics: MetricsRecorder | None = None,
) -> CosmosDocumentRepository:
    """Factory returning a provisioned repository."""
    return await CosmosDocumentRepository.create(settings, metrics=metrics)
