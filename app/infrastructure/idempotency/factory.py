"""Idempotency ledger factory."""

from typing import Any, Optional, TYPE_CHECKING

import boto3

from infrastructure.idempotency.dynamodb import DynamoDBIdempotencyLedger
from infrastructure.idempotency.ledger import IdempotencyLedger
from infrastructure.idempotency.memory import InMemoryIdempotencyLedger
from infrastructure.logging import get_module_logger

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def create_ledger(
    settings: "Settings", dynamodb_client: Optional[Any] = None
) -> IdempotencyLedger:
    """Create the idempotency ledger selected by IDEMPOTENCY_BACKEND.

    Args:
        settings: Settings instance.
        dynamodb_client: Optional pre-built boto3 DynamoDB client.

    Returns:
        InMemoryIdempotencyLedger or DynamoDBIdempotencyLedger.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = settings.idempotency.IDEMPOTENCY_BACKEND

    if backend == "memory":
        logger.info("initialized_idempotency_ledger", backend="memory")
        return InMemoryIdempotencyLedger()

    if backend == "dynamodb":
        if dynamodb_client is None:
            dynamodb_client = boto3.client(
                "dynamodb",
                region_name=settings.aws.AWS_REGION,
                endpoint_url=settings.aws.DYNAMODB_ENDPOINT_URL,
            )
        logger.info(
            "initialized_idempotency_ledger",
            backend="dynamodb",
            table_name=settings.idempotency.IDEMPOTENCY_TABLE_NAME,
        )
        return DynamoDBIdempotencyLedger(
            client=dynamodb_client,
            table_name=settings.idempotency.IDEMPOTENCY_TABLE_NAME,
        )

    raise ValueError(f"Unknown idempotency backend: {backend}")
