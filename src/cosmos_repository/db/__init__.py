"""Cosmos DB document repository."""

from cosmos_repository.db.cosmos import CosmosDocumentRepository, create_cosmos_repository
from cosmos_repository.db.document import (
    Document,
    DocumentRepository,
    DocumentStoreError,
    DocumentValidationError,
    QuerySpec,
)
from cosmos_repository.db.provisioning import EnsureOutcome, ensure_collection, ensure_database
from cosmos_repository.db.status import (
    StatusOutcome,
    classify_error,
    classify_status,
    is_already_exists,
    is_not_found,
)

__all__ = [
    "CosmosDocumentRepository",
    "Document",
    "DocumentRepository",
    "DocumentStoreError",
    "DocumentValidationError",
    "EnsureOutcome",
    "QuerySpec",
    "StatusOutcome",
    "classify_error",
    "classify_status",
    "create_cosmos_repository",
    "ensure_collection",
    "ensure_database",
    "is_already_exists",
    "is_not_found",
]
