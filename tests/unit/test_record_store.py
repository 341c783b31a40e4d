"""
Unit tests for EntityType and InMemoryRecordStore.
"""

import pytest

from equality_validation.database.store import InMemoryRecordStore, RecordStore
from equality_validation.domain.entity import EntityType


class TestEntityType:
    """Identifiers, display names and table names."""

    @pytest.mark.parametrize(
        "identifier,expected",
        [
            ("app.models.ReferenceModel", "ReferenceModel"),
            ("App\\Models\\ReferenceModel", "ReferenceModel"),
            ("billing::Invoice", "Invoice"),
            ("Invoice", "Invoice"),
        ],
    )
    def test_display_name_strips_namespace(self, identifier, expected):
        assert EntityType(identifier).display_name == expected

    @pytest.mark.parametrize(
        "identifier,expected",
        [
            ("app.models.ReferenceModel", "reference_models"),
            ("app.models.Category", "categories"),
            ("app.models.Address", "addresses"),
            ("app.models.Holiday", "holidays"),
            ("app.models.Box", "boxes"),
        ],
    )
    def test_table_derived_from_display_name(self, identifier, expected):
        assert EntityType(identifier).table == expected

    def test_explicit_table_name_wins(self):
        assert EntityType("app.models.Person", table_name="people").table == "people"

    def test_empty_identifier_rejected(self):
        with pytest.raises(ValueError):
            EntityType("")

    def test_invalid_key_type_rejected(self):
        with pytest.raises(ValueError):
            EntityType("app.models.Person", key_type="B")

    def test_coerce_passthrough_and_string(self):
        entity = EntityType("app.models.Person")

        assert EntityType.coerce(entity) is entity
        assert EntityType.coerce("app.models.Person") == entity

    def test_coerce_class_uses_module_and_table_hints(self):
        class Account:
            __table__ = "ledger_accounts"
            __primary_key__ = "account_no"

        entity = EntityType.coerce(Account)

        assert entity.display_name == "Account"
        assert entity.table == "ledger_accounts"
        assert entity.primary_key == "account_no"
        assert entity.identifier.startswith(__name__)

    def test_coerce_rejects_other_values(self):
        with pytest.raises(TypeError):
            EntityType.coerce(42)

    def test_entity_type_is_immutable(self):
        entity = EntityType("app.models.Person")

        with pytest.raises(AttributeError):
            entity.identifier = "app.models.Other"


class TestInMemoryRecordStore:
    """create() and find() by primary key."""

    @pytest.fixture
    def store(self):
        return InMemoryRecordStore()

    def test_satisfies_record_store_protocol(self, store):
        assert isinstance(store, RecordStore)

    def test_create_assigns_incrementing_ids_per_table(self, store):
        first = store.create("app.models.Invoice", {"code": "A"})
        second = store.create("app.models.Invoice", {"code": "B"})
        other = store.create("app.models.Account", {"code": "C"})

        assert (first["id"], second["id"], other["id"]) == (1, 2, 1)

    def test_create_keeps_explicit_primary_key(self, store):
        record = store.create("app.models.Invoice", {"id": 10, "code": "A"})
        following = store.create("app.models.Invoice", {"code": "B"})

        assert record["id"] == 10
        assert following["id"] == 1

    def test_generated_ids_skip_existing_keys(self, store):
        store.create("app.models.Invoice", {"id": 1, "code": "A"})
        record = store.create("app.models.Invoice", {"code": "B"})

        assert record["id"] == 2

    def test_find_returns_record(self, store):
        created = store.create("app.models.Invoice", {"code": "A"})

        found = store.find(EntityType("app.models.Invoice"), created["id"])

        assert found["code"] == "A"

    def test_find_matches_string_keys(self, store):
        store.create("app.models.Invoice", {"code": "A"})

        assert store.find("app.models.Invoice", "1")["code"] == "A"

    @pytest.mark.parametrize("key", [None, 999, "missing", [1], {"id": 1}])
    def test_find_returns_none_when_not_found(self, store, key):
        store.create("app.models.Invoice", {"code": "A"})

        assert store.find("app.models.Invoice", key) is None

    def test_found_record_is_read_only_copy(self, store):
        store.create("app.models.Invoice", {"code": "A"})
        found = store.find("app.models.Invoice", 1)

        with pytest.raises(TypeError):
            found["code"] = "B"
        assert store.find("app.models.Invoice", 1)["code"] == "A"

    def test_delete_and_record_count(self, store):
        store.create("app.models.Invoice", {"code": "A"})
        store.create("app.models.Invoice", {"code": "B"})

        assert store.delete("app.models.Invoice", 1) is True
        assert store.delete("app.models.Invoice", 1) is False
        assert store.record_count("app.models.Invoice") == 1
        assert store.find("app.models.Invoice", 1) is None
