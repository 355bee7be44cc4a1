"""Custom exceptions for the Cosmos repository package."""


class CosmosRepositoryError(Exception):
    """Base exception for this package."""


class MissingDependencyError(CosmosRepositoryError):
    """Raised when an optional dependency is required but not installed."""
