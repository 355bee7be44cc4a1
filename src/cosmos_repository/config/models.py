"""Typed configuration models with Pydantic validation."""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_OFFER_THROUGHPUT = 400
DEFAULT_PARTITION_KEY_PATH = "/id"


class ServiceSettings(BaseModel):
    """Identification of the service embedding the repository."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Service name")
    version: str = Field(default="0.0.0", min_length=1, description="Service version")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="json", description="Log output format")
    sampling: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Optional sampling ratio for low-severity logs",
    )


class ObservabilitySettings(BaseModel):
    """Metrics settings."""

    model_config = ConfigDict(frozen=True)

    metrics_enabled: bool = Field(default=False, description="Record Prometheus metrics")
    metrics_prefix: str = Field(
        default="cosmos_repository",
        min_length=1,
        description="Prefix applied to every exported metric name",
    )


class CosmosDbSettings(BaseModel):
    """Coordinates of a Cosmos DB collection plus client tuning.

    ``endpoint``, ``key``, ``database`` and ``collection`` address the store;
    the remaining fields only matter when the collection has to be created or
    when the client is built.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(..., min_length=1, description="Cosmos DB account URI")
    key: SecretStr = Field(..., min_length=1, description="Account master key")
    database: str = Field(..., min_length=1, description="Database id")
    collection: str = Field(..., min_length=1, description="Collection (container) id")
    partition_key_path: str = Field(
        default=DEFAULT_PARTITION_KEY_PATH,
        description="Partition key path used when the collection is created",
    )
    offer_throughput: int | None = Field(
        default=DEFAULT_OFFER_THROUGHPUT,
        ge=400,
        description="Provisioned RU/s for a newly created collection",
    )
    consistency_level: (
        Literal["Strong", "BoundedStaleness", "Session", "ConsistentPrefix", "Eventual"] | None
    ) = Field(default=None, description="Client consistency level override")
    application_name: str | None = Field(
        default=None, min_length=1, description="Suffix appended to the client user agent"
    )

    @field_validator("partition_key_path")
    @classmethod
    def validate_partition_key_path(cls, value: str) -> str:
        if not value.startswith("/") or value == "/":
            raise ValueError("partition_key_path must look like '/field' or '/a/b'")
        return value

    @classmethod
    def from_env(cls, prefix: str = "COSMOSDB_") -> CosmosDbSettings | None:
        """Build settings from environment variables.

        Expected variables:
        - COSMOSDB_ENDPOINT
        - COSMOSDB_KEY
        - COSMOSDB_DATABASE
        - COSMOSDB_COLLECTION
        - COSMOSDB_PARTITION_KEY_PATH
        - COSMOSDB_OFFER_THROUGHPUT
        - COSMOSDB_CONSISTENCY_LEVEL
        - COSMOSDB_APPLICATION_NAME

        Returns ``None`` unless the first four are all set.
        """

        def env(name: str) -> str | None:
            value = os.getenv(f"{prefix}{name}")
            if value is None or value.strip() == "":
                return None
            return value.strip()

        endpoint = env("ENDPOINT")
        key = env("KEY")
        database = env("DATABASE")
        collection = env("COLLECTION")
        if not (endpoint and key and database and collection):
            return None

        raw_throughput = env("OFFER_THROUGHPUT")
        try:
            throughput = (
                int(raw_throughput) if raw_throughput is not None else DEFAULT_OFFER_THROUGHPUT
            )
        except ValueError as exc:
            raise ValueError(
                f"{prefix}OFFER_THROUGHPUT must be an integer, got: {raw_throughput!r}"
            ) from exc

        return cls(
            endpoint=endpoint,
            key=SecretStr(key),
            database=database,
            collection=collection,
            partition_key_path=env("PARTITION_KEY_PATH") or DEFAULT_PARTITION_KEY_PATH,
            offer_throughput=throughput,
            consistency_level=env("CONSISTENCY_LEVEL"),  # type: ignore[arg-type]
            application_name=env("APPLICATION_NAME"),
        )


ConnectionDescriptor = CosmosDbSettings


class AppSettings(BaseModel):
    """Root application settings."""

    model_config = ConfigDict(frozen=True)

    service: ServiceSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    cosmosdb: CosmosDbSettings | None = None
