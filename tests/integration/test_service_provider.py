"""
Integration tests for EqualityValidationServiceProvider.

Covers:
- Configuration merge and bindings performed by register()
- Record store driver selection
- Translation loading and locale configuration performed by boot()
- Publishing config and language files (programmatic and CLI)
"""

import os

import boto3
import pytest
from moto import mock_aws

from equality_validation.cli import main
from equality_validation.config.settings import CONFIG_KEY, ENVIRONMENT_OVERRIDES, ConfigurationError, Settings
from equality_validation.database.dynamodb_client import DynamoDBRecordStore
from equality_validation.database.store import InMemoryRecordStore
from equality_validation.foundation import Application, publish
from equality_validation.provider import (
    CONFIG_TAG,
    LANG_TAG,
    STORE_BINDING,
    EqualityValidationServiceProvider,
    make_record_store,
)
from equality_validation.rules.engine import Validator
from equality_validation.rules.equality import NAMESPACE, EqualityValidation


INVOICE = "billing.Invoice"
ACCOUNT = "billing.Account"


@pytest.fixture(autouse=True)
def cleanup_env(monkeypatch):
    """Remove configuration-related env vars for each test."""
    for variable in ENVIRONMENT_OVERRIDES:
        monkeypatch.delenv(variable, raising=False)


def write_file(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def mismatch_errors(app):
    """Validate one mismatching line with the container's EqualityValidation."""
    store = app.make(STORE_BINDING)
    store.create(INVOICE, {"currency": "EUR"})
    store.create(ACCOUNT, {"currency": "USD"})

    rule = app.make(EqualityValidation).rule(INVOICE, "currency", ACCOUNT, "currency", "lines.*.account_id")
    validator = Validator({"lines": [{"invoice_id": 1, "account_id": 1}]}, {"lines.*.invoice_id": [rule]})
    return validator.errors()


class TestRegister:
    def test_package_defaults_merged(self, tmp_path):
        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert app.settings.get(f"{CONFIG_KEY}.store.driver") == "memory"
        assert app.settings.get(f"{CONFIG_KEY}.locale") == "en"

    def test_published_config_overrides_defaults(self, tmp_path):
        write_file(tmp_path / "config" / "equality-validation.yaml", "locale: de\n")

        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert app.settings.get(f"{CONFIG_KEY}.locale") == "de"
        assert app.settings.get(f"{CONFIG_KEY}.fallback_locale") == "en"
        assert app.translator.locale == "de"

    def test_invalid_config_rejected(self, tmp_path):
        write_file(tmp_path / "config" / "equality-validation.yaml", "store:\n  driver: redis\n")

        app = Application(str(tmp_path))

        with pytest.raises(ConfigurationError):
            app.register(EqualityValidationServiceProvider)

    def test_environment_override_applied(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EQUALITY_VALIDATION_LOCALE", "fr")

        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert app.translator.locale == "fr"

    def test_bindings_are_singletons(self, tmp_path):
        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        store = app.make(STORE_BINDING)
        equality = app.make(EqualityValidation)

        assert isinstance(store, InMemoryRecordStore)
        assert app.make(STORE_BINDING) is store
        assert app.make(EqualityValidation) is equality
        assert equality.store is store
        assert equality.labeler is app.translator

    def test_existing_store_binding_kept(self, tmp_path):
        app = Application(str(tmp_path))
        custom = InMemoryRecordStore()
        app.instance(STORE_BINDING, custom)

        app.register(EqualityValidationServiceProvider)

        assert app.make(EqualityValidation).store is custom

    def test_unbound_lookup_raises(self, tmp_path):
        app = Application(str(tmp_path))

        with pytest.raises(LookupError):
            app.make("missing")

    def test_provider_instance_registered(self, tmp_path):
        app = Application(str(tmp_path))
        provider = EqualityValidationServiceProvider(app)

        assert app.register(provider) is provider
        assert app.providers == [provider]


class TestRecordStoreDriver:
    def test_memory_driver(self):
        app = Application(settings=Settings({CONFIG_KEY: {"store": {"driver": "memory"}}}))

        assert isinstance(make_record_store(app), InMemoryRecordStore)

    def test_dynamodb_driver(self, monkeypatch):
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
        settings = Settings(
            {
                CONFIG_KEY: {
                    "store": {
                        "driver": "dynamodb",
                        "region_name": "eu-west-1",
                        "table_prefix": "app_",
                        "max_retries": 5,
                        "backoff_base": 0.5,
                    }
                }
            }
        )

        with mock_aws():
            store = make_record_store(Application(settings=settings))

        assert isinstance(store, DynamoDBRecordStore)
        assert store.table_prefix == "app_"
        assert store.max_retries == 5
        assert store.backoff_base == 0.5

    def test_dynamodb_driver_end_to_end(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
        monkeypatch.setenv("EQUALITY_VALIDATION_STORE_DRIVER", "dynamodb")
        monkeypatch.setenv("EQUALITY_VALIDATION_TABLE_PREFIX", "app_")
        monkeypatch.setenv("AWS_REGION", "eu-west-1")

        with mock_aws():
            dynamodb = boto3.resource("dynamodb", region_name="eu-west-1")
            for table_name in ("app_invoices", "app_accounts"):
                dynamodb.create_table(
                    TableName=table_name,
                    KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
                    AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "N"}],
                    BillingMode="PAY_PER_REQUEST",
                )
            dynamodb.Table("app_invoices").put_item(Item={"id": 1, "currency": "EUR"})
            dynamodb.Table("app_accounts").put_item(Item={"id": 1, "currency": "EUR"})

            app = Application(str(tmp_path))
            app.register(EqualityValidationServiceProvider)
            rule = app.make(EqualityValidation).rule(INVOICE, "currency", ACCOUNT, "currency", "account_id", False)

            assert Validator({"invoice_id": 1, "account_id": 1}, {"invoice_id": rule}).passes()

    def test_unknown_driver_rejected(self):
        app = Application(settings=Settings({CONFIG_KEY: {"store": {"driver": "redis"}}}))

        with pytest.raises(ConfigurationError, match="Unknown record store driver"):
            make_record_store(app)


class TestBootTranslations:
    def test_package_message_used(self, tmp_path):
        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert mismatch_errors(app) == {
            "lines.0.invoice_id": [
                "The currency of the selected Invoice must match the currency of the selected Account."
            ]
        }

    def test_application_attribute_labels_used(self, tmp_path):
        write_file(tmp_path / "lang" / "en" / "validation.yaml", "attributes:\n  currency: billing currency\n")

        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert mismatch_errors(app)["lines.0.invoice_id"] == [
            "The billing currency of the selected Invoice must match the billing currency of the selected Account."
        ]

    def test_published_vendor_message_overrides_package(self, tmp_path):
        write_file(
            tmp_path / "lang" / "vendor" / NAMESPACE / "en" / "validation.yaml",
            "custom:\n  line_reference_columns_equality: ':reference_model/:target_model :reference_column mismatch'\n",
        )

        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert mismatch_errors(app)["lines.0.invoice_id"] == ["Invoice/Account currency mismatch"]

    def test_configured_locale_falls_back_to_english(self, tmp_path):
        write_file(tmp_path / "config" / "equality-validation.yaml", "locale: de\n")

        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert mismatch_errors(app)["lines.0.invoice_id"] == [
            "The currency of the selected Invoice must match the currency of the selected Account."
        ]


class TestPublish:
    def test_nothing_declared_outside_console(self, tmp_path):
        app = Application(str(tmp_path))
        app.register(EqualityValidationServiceProvider)

        assert app.publish_groups == {}
        assert publish(app) == []

    def test_publish_all_groups(self, tmp_path):
        app = Application(str(tmp_path), running_in_console=True)
        app.register(EqualityValidationServiceProvider)

        written = publish(app)

        config_file = tmp_path / "config" / "equality-validation.yaml"
        lang_file = tmp_path / "lang" / "vendor" / NAMESPACE / "en" / "validation.yaml"
        assert sorted(written) == sorted([str(config_file), str(lang_file)])
        assert "driver: memory" in config_file.read_text()
        assert "line_reference_columns_equality" in lang_file.read_text()

    def test_publish_single_tag(self, tmp_path):
        app = Application(str(tmp_path), running_in_console=True)
        app.register(EqualityValidationServiceProvider)

        written = publish(app, tag=LANG_TAG)

        assert len(written) == 1
        assert not (tmp_path / "config" / "equality-validation.yaml").exists()

    def test_unknown_tag_rejected(self, tmp_path):
        app = Application(str(tmp_path), running_in_console=True)
        app.register(EqualityValidationServiceProvider)

        with pytest.raises(KeyError):
            publish(app, tag="unknown-tag")

    def test_existing_files_skipped_unless_forced(self, tmp_path):
        config_file = tmp_path / "config" / "equality-validation.yaml"
        write_file(config_file, "locale: de\n")

        app = Application(str(tmp_path), running_in_console=True)
        app.register(EqualityValidationServiceProvider)

        assert publish(app, tag=CONFIG_TAG) == []
        assert config_file.read_text() == "locale: de\n"

        assert publish(app, tag=CONFIG_TAG, force=True) == [str(config_file)]
        assert "driver: memory" in config_file.read_text()

    def test_missing_source_skipped(self, tmp_path):
        app = Application(str(tmp_path), running_in_console=True)
        app.publish_groups["extra"] = {str(tmp_path / "missing.yaml"): str(tmp_path / "out.yaml")}

        assert publish(app, tag="extra") == []


class TestPublishCommand:
    def test_publishes_everything(self, tmp_path, capsys):
        assert main(["--base-path", str(tmp_path)]) == 0

        output = capsys.readouterr().out
        assert "Published" in output
        assert (tmp_path / "config" / "equality-validation.yaml").exists()
        assert (tmp_path / "lang" / "vendor" / NAMESPACE / "en" / "validation.yaml").exists()

    def test_second_run_reports_nothing_to_publish(self, tmp_path, capsys):
        main(["--base-path", str(tmp_path)])
        capsys.readouterr()

        assert main(["--base-path", str(tmp_path)]) == 0
        assert "Nothing to publish" in capsys.readouterr().out

    def test_force_overwrites(self, tmp_path, capsys):
        lang_file = tmp_path / "lang" / "vendor" / NAMESPACE / "en" / "validation.yaml"
        write_file(lang_file, "custom: {}\n")

        assert main(["--base-path", str(tmp_path), "--tag", LANG_TAG, "--force"]) == 0
        assert "line_reference_columns_equality" in lang_file.read_text()
        assert not (tmp_path / "config" / "equality-validation.yaml").exists()

    def test_invalid_configuration_returns_error(self, tmp_path):
        write_file(tmp_path / "config" / "equality-validation.yaml", "store:\n  driver: redis\n")

        assert main(["--base-path", str(tmp_path)]) == 1

    def test_unknown_tag_rejected_by_parser(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--base-path", str(tmp_path), "--tag", "other"])
