"""Shared fixtures wiring the in-memory Cosmos fakes into the repository."""

from __future__ import annotations

from collections.abc import AsyncIterator
from types import SimpleNamespace

import pytest

import cosmos_repository.db.cosmos as cosmos_module
from cosmos_repository.config.models import CosmosDbSettings
from cosmos_repository.db.cosmos import CosmosDocumentRepository
from tests.fakes import FakeAccount, fake_cosmos_module


class RecordingMetrics:
    def __init__(self) -> None:
        self.operations: list[tuple[str, str, bool]] = []
        self.errors: list[tuple[str, str, str]] = []

    def observe_operation(
        self,
        *,
        resource: str,
        operation: str,
        duration_seconds: float,
        success: bool,
    ) -> None:
        assert duration_seconds >= 0
        self.operations.append((resource, operation, success))

    def observe_error(self, *, resource: str, operation: str, error_type: str) -> None:
        self.errors.append((resource, operation, error_type))


@pytest.fixture
def account() -> FakeAccount:
    return FakeAccount()


@pytest.fixture
def fake_cosmos(account: FakeAccount, monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    module = fake_cosmos_module(account)
    monkeypatch.setattr(cosmos_module, "_import_azure_cosmos", lambda: module)
    return module


@pytest.fixture
def settings() -> CosmosDbSettings:
    return CosmosDbSettings(
        endpoint="https://localhost:8081/",
        key="secret-key",
        database="inventory",
        collection="items",
    )


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def repository(
    fake_cosmos: SimpleNamespace,
    settings: CosmosDbSettings,
    metrics: RecordingMetrics,
) -> CosmosDocumentRepository:
    del fake_cosmos
    return CosmosDocumentRepository(settings, metrics=metrics)


@pytest.fixture
async def provisioned(
    fake_cosmos: SimpleNamespace,
    settings: CosmosDbSettings,
    metrics: RecordingMetrics,
) -> AsyncIterator[CosmosDocumentRepository]:
    del fake_cosmos
    repository = await CosmosDocumentRepository.create(settings, metrics=metrics)
    yield repository
    await repository.close()
