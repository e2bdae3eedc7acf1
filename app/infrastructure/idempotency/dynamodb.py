"""DynamoDB idempotency ledger implementation."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from infrastructure.idempotency.ledger import IdempotencyLedger, IdempotencyLedgerError
from infrastructure.idempotency.models import (
    IdempotencyRecord,
    IdempotencyStatus,
    make_ledger_key,
)
from infrastructure.logging import get_module_logger
from infrastructure.operations import classify_aws_error

logger = get_module_logger()

PARTITION_KEY = "ledger_key"

# Live unless expired, or a pending lock with no stored response past its timeout
CREATE_CONDITION = (
    "attribute_not_exists(#pk) OR #ttl <= :now_epoch OR "
    "(result_status = :pending AND attribute_not_exists(result_body) "
    "AND created_at <= :lock_cutoff)"
)


def _to_epoch(value: datetime) -> float:
    return value.timestamp()


def _from_epoch(value: str) -> datetime:
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


def record_to_item(record: IdempotencyRecord) -> Dict[str, Dict[str, str]]:
    """Convert a record to DynamoDB attribute-value format."""
    item = {
        PARTITION_KEY: {"S": record.ledger_key},
        "caller_id": {"S": record.caller_id},
        "idempotency_key": {"S": record.idempotency_key},
        "request_hash": {"S": record.request_hash},
        "result_status": {"S": record.status.value},
        "created_at": {"N": repr(_to_epoch(record.created_at))},
        "updated_at": {"N": repr(_to_epoch(record.updated_at))},
        # DynamoDB TTL requires an integer epoch
        "ttl": {"N": str(int(_to_epoch(record.expires_at)))},
    }
    if record.result_body is not None:
        item["result_body"] = {"S": json.dumps(record.result_body)}
    return item


def item_to_record(item: Dict[str, Dict[str, str]]) -> IdempotencyRecord:
    """Convert a DynamoDB item back to a record."""
    body_attr = item.get("result_body")
    return IdempotencyRecord(
        caller_id=item["caller_id"]["S"],
        idempotency_key=item["idempotency_key"]["S"],
        request_hash=item["request_hash"]["S"],
        status=IdempotencyStatus(item["result_status"]["S"]),
        result_body=json.loads(body_attr["S"]) if body_attr else None,
        created_at=_from_epoch(item["created_at"]["N"]),
        updated_at=_from_epoch(item["updated_at"]["N"]),
        expires_at=_from_epoch(item["ttl"]["N"]),
    )


class DynamoDBIdempotencyLedger(IdempotencyLedger):
    """DynamoDB-backed idempotency ledger.

    Uses a dedicated table shared by every instance:
    - PK: ledger_key (string, "caller_id#idempotency_key")
    - Attributes: caller_id, idempotency_key, request_hash, result_status,
      result_body (JSON), created_at, updated_at, ttl (DynamoDB TTL)

    Atomic create-if-absent relies on a conditional ``put_item``. DynamoDB
    TTL deletion is lazy, so reads filter expired items themselves.

    Args:
        client: boto3 DynamoDB client
        table_name: DynamoDB table name
    """

    def __init__(self, client: Any, table_name: str):
        self._client = client
        self.table_name = table_name
        logger.info("initialized_dynamodb_idempotency_ledger", table_name=table_name)

    def _raise(self, operation: str, exc: Exception) -> None:
        result = classify_aws_error(exc)
        logger.error(
            "idempotency_ledger_backend_error",
            operation=operation,
            table_name=self.table_name,
            error=result.message,
            error_code=result.error_code,
        )
        raise IdempotencyLedgerError(result.message, result=result) from exc

    def _key(self, caller_id: str, idempotency_key: str) -> Dict[str, Dict[str, str]]:
        return {PARTITION_KEY: {"S": make_ledger_key(caller_id, idempotency_key)}}

    def get(
        self, caller_id: str, idempotency_key: str, now: Optional[datetime] = None
    ) -> Optional[IdempotencyRecord]:
        now = now or datetime.now(timezone.utc)
        try:
            response = self._client.get_item(
                TableName=self.table_name,
                Key=self._key(caller_id, idempotency_key),
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as exc:
            self._raise("get", exc)

        item = response.get("Item")
        if not item:
            logger.debug(
                "idempotency_ledger_miss",
                caller_id=caller_id,
                idempotency_key=idempotency_key,
            )
            return None

        record = item_to_record(item)
        if record.is_expired(now):
            return None
        logger.debug(
            "idempotency_ledger_hit",
            caller_id=caller_id,
            idempotency_key=idempotency_key,
            status=record.status.value,
        )
        return record

    def create_if_absent(
        self,
        record: IdempotencyRecord,
        lock_timeout_seconds: float,
        now: Optional[datetime] = None,
    ) -> Tuple[bool, Optional[IdempotencyRecord]]:
        now = now or datetime.now(timezone.utc)
        now_epoch = _to_epoch(now)
        try:
            self._client.put_item(
                TableName=self.table_name,
                Item=record_to_item(record),
                ConditionExpression=CREATE_CONDITION,
                ExpressionAttributeNames={"#pk": PARTITION_KEY, "#ttl": "ttl"},
                ExpressionAttributeValues={
                    ":now_epoch": {"N": str(int(now_epoch))},
                    ":pending": {"S": IdempotencyStatus.PENDING.value},
                    ":lock_cutoff": {"N": repr(now_epoch - lock_timeout_seconds)},
                },
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                existing = self.get(record.caller_id, record.idempotency_key, now)
                return False, existing
            self._raise("create_if_absent", exc)
        except BotoCoreError as exc:
            self._raise("create_if_absent", exc)

        logger.debug(
            "idempotency_record_created",
            caller_id=record.caller_id,
            idempotency_key=record.idempotency_key,
        )
        return True, record

    def update(
        self,
        caller_id: str,
        idempotency_key: str,
        status: IdempotencyStatus,
        result_body: Dict[str, Any],
        expected_status: Optional[IdempotencyStatus] = None,
    ) -> Optional[IdempotencyRecord]:
        condition = "attribute_exists(#pk)"
        values = {
            ":status": {"S": status.value},
            ":body": {"S": json.dumps(result_body)},
            ":updated_at": {"N": repr(_to_epoch(datetime.now(timezone.utc)))},
        }
        if expected_status is not None:
            condition += " AND result_status = :expected"
            values[":expected"] = {"S": expected_status.value}

        try:
            response = self._client.update_item(
                TableName=self.table_name,
                Key=self._key(caller_id, idempotency_key),
                UpdateExpression=(
                    "SET result_status = :status, result_body = :body, "
                    "updated_at = :updated_at"
                ),
                ConditionExpression=condition,
                ExpressionAttributeNames={"#pk": PARTITION_KEY},
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                logger.warning(
                    "idempotency_update_condition_failed",
                    caller_id=caller_id,
                    idempotency_key=idempotency_key,
                )
                return None
            self._raise("update", exc)
        except BotoCoreError as exc:
            self._raise("update", exc)

        return item_to_record(response["Attributes"])

    def delete(self, caller_id: str, idempotency_key: str) -> None:
        try:
            self._client.delete_item(
                TableName=self.table_name,
                Key=self._key(caller_id, idempotency_key),
            )
        except (ClientError, BotoCoreError) as exc:
            self._raise("delete", exc)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        # Table TTL removes expired items; reads already ignore them.
        logger.debug("idempotency_purge_delegated_to_ttl", table_name=self.table_name)
        return 0

    def get_stats(self) -> Dict[str, Any]:
        return {
            "backend": "dynamodb",
            "table_name": self.table_name,
            "partition_key": PARTITION_KEY,
        }
