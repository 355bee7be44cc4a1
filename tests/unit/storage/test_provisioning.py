"""Tests for idempotent database/collection provisioning."""

from __future__ import annotations

import logging

import pytest

from cosmos_repository.db.provisioning import ensure_collection, ensure_database
from tests.fakes import FakeAccount, FakeCosmosClient, FakeCosmosError, FakePartitionKey


@pytest.fixture
def client(account: FakeAccount) -> FakeCosmosClient:
    return FakeCosmosClient(account)


class TestEnsureDatabase:
    async def test_creates_missing_database(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        outcome = await ensure_database(client, "inventory")

        assert outcome == "created"
        assert account.databases == {"inventory"}
        assert account.calls == ["read_database", "create_database"]

    async def test_existing_database_is_a_no_op(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.databases.add("inventory")

        outcome = await ensure_database(client, "inventory")

        assert outcome == "existing"
        assert account.calls == ["read_database"]

    async def test_second_ensure_never_errors(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        await ensure_database(client, "inventory")

        assert await ensure_database(client, "inventory") == "existing"
        assert account.calls_to("create_database") == 1

    async def test_already_exists_race_counts_as_success(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        # Another provisioner created the database between our read and create.
        account.databases.add("inventory")
        account.failures["read_database"] = FakeCosmosError(404)

        with caplog.at_level(logging.INFO, logger="cosmos_repository.db.provisioning"):
            outcome = await ensure_database(client, "inventory")

        assert outcome == "concurrently_created"
        assert any(
            getattr(record, "database", None) == "inventory" for record in caplog.records
        )

    async def test_other_read_failure_propagates_without_create(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.failures["read_database"] = FakeCosmosError(403, "forbidden")

        with pytest.raises(FakeCosmosError) as exc_info:
            await ensure_database(client, "inventory")

        assert exc_info.value.status_code == 403
        assert account.calls_to("create_database") == 0

    async def test_other_create_failure_propagates(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.failures["create_database"] = FakeCosmosError(503, "unavailable")

        with pytest.raises(FakeCosmosError) as exc_info:
            await ensure_database(client, "inventory")

        assert exc_info.value.status_code == 503

    async def test_errors_without_status_code_are_fatal(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.failures["read_database"] = ConnectionError("socket closed")

        with pytest.raises(ConnectionError):
            await ensure_database(client, "inventory")

        assert account.calls_to("create_database") == 0


class TestEnsureCollection:
    async def test_creates_missing_collection_with_throughput(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.databases.add("inventory")
        database = client.get_database_client("inventory")

        outcome = await ensure_collection(
            database,
            "items",
            partition_key=FakePartitionKey("/id"),
            offer_throughput=400,
        )

        assert outcome == "created"
        state = account.collections[("inventory", "items")]
        assert state.offer_throughput == 400
        assert state.partition_key_path == "/id"

    async def test_existing_collection_is_a_no_op(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.databases.add("inventory")
        database = client.get_database_client("inventory")
        await ensure_collection(database, "items", partition_key=FakePartitionKey("/id"))

        outcome = await ensure_collection(
            database, "items", partition_key=FakePartitionKey("/id")
        )

        assert outcome == "existing"
        assert account.calls_to("create_collection") == 1

    async def test_already_exists_race_counts_as_success(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        account.databases.add("inventory")
        database = client.get_database_client("inventory")
        await ensure_collection(database, "items", partition_key=FakePartitionKey("/id"))
        account.failures["read_collection"] = FakeCosmosError(404)

        outcome = await ensure_collection(
            database, "items", partition_key=FakePartitionKey("/id")
        )

        assert outcome == "concurrently_created"

    async def test_create_failure_propagates(
        self,
        client: FakeCosmosClient,
        account: FakeAccount,
    ) -> None:
        # Database is missing, so the collection create itself reports 404.
        database = client.get_database_client("inventory")

        with pytest.raises(FakeCosmosError) as exc_info:
            await ensure_collection(database, "items", partition_key=FakePartitionKey("/id"))

        assert exc_info.value.status_code == 404
