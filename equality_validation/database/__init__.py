"""Database module - record lookup by primary key."""

from .store import RecordStore, InMemoryRecordStore
from .dynamodb_client import DynamoDBRecordStore
from .exceptions import (
    RecordStoreException,
    NotFoundError,
    ThrottlingError,
    NetworkError,
    PermissionError,
)

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "DynamoDBRecordStore",
    "RecordStoreException",
    "NotFoundError",
    "ThrottlingError",
    "NetworkError",
    "PermissionError",
]
