"""Provisioned Cosmos DB document repository with upsert-merge saves."""

from cosmos_repository.config import (
    AppSettings,
    ConnectionDescriptor,
    CosmosDbSettings,
    load_config,
)
from cosmos_repository.db import (
    CosmosDocumentRepository,
    DocumentRepository,
    DocumentStoreError,
    DocumentValidationError,
    create_cosmos_repository,
)
from cosmos_repository.errors import CosmosRepositoryError, MissingDependencyError
from cosmos_repository.health import HealthStatus

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "ConnectionDescriptor",
    "CosmosDbSettings",
    "CosmosDocumentRepository",
    "CosmosRepositoryError",
    "DocumentRepository",
    "DocumentStoreError",
    "DocumentValidationError",
    "HealthStatus",
    "MissingDependencyError",
    "__version__",
    "create_cosmos_repository",
    "load_config",
]
