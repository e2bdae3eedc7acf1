"""Fixtures for idempotency ledger tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from infrastructure.idempotency import (
    DynamoDBIdempotencyLedger,
    IdempotencyRecord,
    InMemoryIdempotencyLedger,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def record_factory(now):
    """Factory for pending IdempotencyRecord instances."""

    def _factory(
        caller_id: str = "caller-a",
        idempotency_key: str = "key-1",
        request_hash: str = "hash-1",
        ttl_seconds: int = 3600,
        created_at: datetime = now,
    ) -> IdempotencyRecord:
        return IdempotencyRecord.new_pending(
            caller_id, idempotency_key, request_hash, ttl_seconds, now=created_at
        )

    return _factory


@pytest.fixture
def memory_ledger():
    return InMemoryIdempotencyLedger()


@pytest.fixture
def mock_dynamodb_client():
    """MagicMock boto3 DynamoDB client with empty successful responses."""
    client = MagicMock()
    client.get_item.return_value = {}
    client.put_item.return_value = {}
    client.delete_item.return_value = {}
    return client


@pytest.fixture
def dynamodb_ledger(mock_dynamodb_client):
    return DynamoDBIdempotencyLedger(
        client=mock_dynamodb_client, table_name="dispatch_idempotency"
    )
