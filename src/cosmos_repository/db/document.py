"""Document repository contract and typed errors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from cosmos_repository.errors import CosmosRepositoryError
from cosmos_repository.health import HealthStatus

Document = dict[str, Any]
QuerySpec = str | Mapping[str, Any]


class DocumentStoreError(CosmosRepositoryError):
    """Base exception for document repository operations."""

    def __init__(
        self,
        operation: str,
        collection: str | None,
        message: str,
    ) -> None:
        self.operation = operation
        self.collection = collection
        target = "<unknown>" if collection is None else collection
        super().__init__(f"Document {operation} failed for '{target}': {message}")


class DocumentValidationError(DocumentStoreError):
    """Raised when a required argument is missing; no remote call is made."""


@runtime_checkable
class DocumentRepository(Protocol):
    """CRUD contract over a single provisioned collection.

    Remote failures other than "not found" propagate unchanged.
    """

    async def get_by_id(
        self,
        document_id: str | None,
        *,
        partition_key: Any | None = None,
    ) -> Document | None:
        """Return the stored document, or ``None`` when the id is empty or unknown."""
        ...

    async def save(
        self,
        document: Mapping[str, Any] | None,
        options: Mapping[str, Any] | None = None,
    ) -> Document:
        """Create the document, or merge it onto the stored one with the same id."""
        ...

    async def remove(
        self,
        document_id: str | None,
        *,
        partition_key: Any | None = None,
    ) -> Document | None:
        """Delete by id and return the removed document, ``None`` if absent."""
        ...

    async def find(
        self,
        query_spec: QuerySpec | None,
        *,
        partition_key: Any | None = None,
    ) -> list[Document]:
        """Run a query and return every matching document."""
        ...

    async def health_check(self) -> HealthStatus:
        """Run backend health check."""
        ...

    async def close(self) -> None:
        """Release held connections/resources."""
        ...
