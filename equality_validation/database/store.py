"""
Record store contract and in-memory implementation.

A record store resolves a record by primary key. Rules receive a store
instance instead of resolving record types by name at call time.
"""

from itertools import count
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, runtime_checkable

from equality_validation.domain.entity import EntityType
from equality_validation.utils.logger import get_logger, preview_value


logger = get_logger(__name__)


@runtime_checkable
class RecordStore(Protocol):
    """Anything that can look up a record by primary key."""

    def find(self, entity_type: EntityType, key: Any) -> Optional[Mapping[str, Any]]:
        """Return the record whose primary key equals key, or None."""
        ...


class InMemoryRecordStore:
    """
    Record store backed by per-table dictionaries.

    Keys are matched by their string form, the way a SQL lookup coerces
    "5" and 5 to the same row, since identifiers from form payloads
    usually arrive as strings.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._sequences: Dict[str, Iterator[int]] = {}

    def create(self, entity_type: EntityType, attributes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Insert a record, assigning the next integer primary key when absent.

        Args:
            entity_type: Type of record to create
            attributes: Column values

        Returns:
            Copy of the stored record including its primary key
        """
        entity_type = EntityType.coerce(entity_type)
        record = dict(attributes or {})
        table = self._tables.setdefault(entity_type.table, {})
        sequence = self._sequences.setdefault(entity_type.table, count(1))

        if record.get(entity_type.primary_key) is None:
            key = next(sequence)
            while str(key) in table:
                key = next(sequence)
            record[entity_type.primary_key] = key

        table[str(record[entity_type.primary_key])] = record

        logger.debug(
            "Record created",
            operation="create_record",
            context={"table": entity_type.table, "key": preview_value(record[entity_type.primary_key])},
        )
        return dict(record)

    def find(self, entity_type: EntityType, key: Any) -> Optional[Mapping[str, Any]]:
        """
        Retrieve a record by primary key.

        Returns None when key is None or no record matches.
        """
        entity_type = EntityType.coerce(entity_type)
        if key is None or isinstance(key, (dict, list)):
            return None

        record = self._tables.get(entity_type.table, {}).get(str(key))
        if record is None:
            logger.debug(
                "Record not found",
                operation="find_record",
                context={"table": entity_type.table, "key": preview_value(key)},
            )
            return None

        return MappingProxyType(dict(record))

    def delete(self, entity_type: EntityType, key: Any) -> bool:
        """Remove a record; returns True when one was removed."""
        entity_type = EntityType.coerce(entity_type)
        return self._tables.get(entity_type.table, {}).pop(str(key), None) is not None

    def record_count(self, entity_type: EntityType) -> int:
        """Number of records stored for entity_type."""
        entity_type = EntityType.coerce(entity_type)
        return len(self._tables.get(entity_type.table, {}))
