"""
DynamoDB record store.

Looks records up by primary key with one table per entity type, retrying
throttled reads and translating boto errors into the store exception
hierarchy.
"""

import time
from decimal import InvalidOperation
from typing import Any, Dict, Mapping, Optional

import boto3
from boto3.dynamodb.types import DYNAMODB_CONTEXT
from botocore.exceptions import ClientError, BotoCoreError

from equality_validation.domain.entity import EntityType
from equality_validation.utils.logger import get_logger, preview_value
from .exceptions import (
    RecordStoreException,
    ThrottlingError,
    NetworkError,
    PermissionError,
)


logger = get_logger(__name__)

_MISSING = object()

# DynamoDB limit on partition key values
MAX_PARTITION_KEY_BYTES = 2048


class DynamoDBRecordStore:
    """
    Record store reading from DynamoDB.

    Table Schema (per entity type):
        Table name: "{table_prefix}{entity_type.table}" (e.g., "app_reference_models")
        Partition Key: entity_type.primary_key (default "id"), typed by entity_type.key_type
    """

    def __init__(
        self,
        table_prefix: str = "",
        dynamodb_resource: Optional[Any] = None,
        region_name: Optional[str] = None,
        max_retries: int = 3,
        backoff_base: float = 1.0,
    ):
        """
        Initialize DynamoDBRecordStore.

        Args:
            table_prefix: Prefix prepended to every entity table name
            dynamodb_resource: boto3 DynamoDB resource (default: creates new)
            region_name: AWS region used when creating the resource
            max_retries: Number of attempts for throttled reads
            backoff_base: Base exponential backoff multiplier (seconds)
        """
        self.table_prefix = table_prefix
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb", region_name=region_name)
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._tables: Dict[str, Any] = {}

    def table_for(self, entity_type: EntityType):
        """Return the (cached) boto3 Table for entity_type."""
        table_name = f"{self.table_prefix}{entity_type.table}"
        if table_name not in self._tables:
            self._tables[table_name] = self.dynamodb.Table(table_name)
        return self._tables[table_name]

    @staticmethod
    def _coerce_key(entity_type: EntityType, key: Any) -> Any:
        """
        Convert a payload identifier to the table's key type, or _MISSING.

        Identifiers DynamoDB would reject outright (empty or oversized
        strings, numbers beyond its 38-digit precision or exponent range)
        can never match a stored item and are reported as _MISSING.
        """
        if key is None or isinstance(key, (bool, dict, list)):
            return _MISSING

        if entity_type.key_type == "S":
            text = str(key)
            if not text or len(text.encode("utf-8")) > MAX_PARTITION_KEY_BYTES:
                return _MISSING
            return text

        try:
            number = DYNAMODB_CONTEXT.create_decimal(str(key).strip())
        except (InvalidOperation, ArithmeticError):
            return _MISSING
        if not number.is_finite():
            return _MISSING
        return number

    def find(  # type: ignore[return]
        self, entity_type: EntityType, key: Any
    ) -> Optional[Mapping[str, Any]]:
        """
        Retrieve a record by primary key.

        Returns None when the item is not found or the key cannot be a
        valid primary key for the table.

        Args:
            entity_type: Type of record to look up
            key: Primary key value from the payload

        Returns:
            Record as a dict, or None if not found

        Raises:
            ThrottlingError: If throttled after max retries
            NetworkError: If connection fails
            PermissionError: If IAM permissions insufficient
            RecordStoreException: For any other DynamoDB error
        """
        entity_type = EntityType.coerce(entity_type)
        table_name = f"{self.table_prefix}{entity_type.table}"
        context = {"table": table_name, "key": preview_value(key)}

        item_key = self._coerce_key(entity_type, key)
        if item_key is _MISSING:
            logger.debug("Key is not a valid primary key, treating as not found", operation="find_record", context=context)
            return None

        table = self.table_for(entity_type)
        logger.debug("Fetching record", operation="find_record", context=context)

        for attempt in range(self.max_retries):
            try:
                start_time = time.time()
                response = table.get_item(Key={entity_type.primary_key: item_key})
                duration_ms = (time.time() - start_time) * 1000

                item = response.get("Item")

                if item is None:
                    logger.debug(
                        "Record not found",
                        operation="find_record",
                        context=context,
                    )
                    return None

                logger.debug(
                    "Record retrieved successfully",
                    operation="find_record",
                    context={**context, "duration_ms": round(duration_ms, 2)},
                )
                return dict(item)

            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")

                if error_code == "ProvisionedThroughputExceededException":
                    if attempt < self.max_retries - 1:
                        wait_time = self.backoff_base * (2**attempt)
                        logger.warning(
                            f"Throttled, retrying after {wait_time}s",
                            operation="find_record",
                            context=context,
                            error=error_code,
                        )
                        time.sleep(wait_time)
                        continue
                    else:
                        logger.error(
                            "Throttling after max retries",
                            operation="find_record",
                            context=context,
                            error=error_code,
                        )
                        raise ThrottlingError(
                            f"DynamoDB throttled after {self.max_retries} retries"
                        ) from e

                elif error_code == "AccessDeniedException":
                    logger.error(
                        "Permission denied",
                        operation="find_record",
                        context=context,
                        error=error_code,
                    )
                    raise PermissionError(f"Insufficient IAM permissions: {error_code}") from e

                else:
                    logger.error(
                        "DynamoDB error",
                        operation="find_record",
                        context=context,
                        error=str(e),
                    )
                    raise RecordStoreException(f"DynamoDB error: {e}") from e

            except (BotoCoreError, OSError) as e:
                logger.error(
                    "Network error",
                    operation="find_record",
                    context=context,
                    error=str(e),
                )
                raise NetworkError(f"Network error: {e}") from e
