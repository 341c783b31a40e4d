"""
Service provider registering equality validation with an application.

register() merges the package configuration and binds the record store and
the EqualityValidation factory; boot() loads the package translations and,
in console mode, declares the publishable config and language files.
"""

import os

from equality_validation.config.settings import (
    CONFIG_KEY,
    DEFAULT_CONFIG_FILE,
    SCHEMA_FILE,
    ConfigurationError,
)
from equality_validation.database.dynamodb_client import DynamoDBRecordStore
from equality_validation.database.store import InMemoryRecordStore, RecordStore
from equality_validation.foundation import Application, ServiceProvider
from equality_validation.rules.equality import MESSAGE_KEY, NAMESPACE, EqualityValidation

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
LANG_DIR = os.path.join(PACKAGE_DIR, "lang")

STORE_BINDING = "equality-validation.store"
CONFIG_TAG = "equality-validation-config"
LANG_TAG = "equality-validation-lang"


def make_record_store(app: Application) -> RecordStore:
    """
    Build the record store selected by equality-validation.store.driver.

    Raises:
        ConfigurationError: If the driver is unknown
    """
    settings = app.settings
    driver = settings.get(f"{CONFIG_KEY}.store.driver", "memory")

    if driver == "memory":
        return InMemoryRecordStore()

    if driver == "dynamodb":
        return DynamoDBRecordStore(
            table_prefix=settings.get(f"{CONFIG_KEY}.store.table_prefix", ""),
            region_name=settings.get(f"{CONFIG_KEY}.store.region_name"),
            max_retries=settings.get(f"{CONFIG_KEY}.store.max_retries", 3),
            backoff_base=settings.get(f"{CONFIG_KEY}.store.backoff_base", 1.0),
        )

    raise ConfigurationError(f"Unknown record store driver: {driver}")


class EqualityValidationServiceProvider(ServiceProvider):
    def register(self) -> None:
        self.merge_config_from(DEFAULT_CONFIG_FILE, CONFIG_KEY)
        self.app.settings.apply_environment()
        self.app.settings.validate(CONFIG_KEY, SCHEMA_FILE)

        if not self.app.bound(STORE_BINDING):
            self.app.singleton(STORE_BINDING, make_record_store)

        self.app.singleton(
            EqualityValidation,
            lambda app: EqualityValidation(
                app.make(STORE_BINDING),
                app.translator,
                app.settings.get(f"{CONFIG_KEY}.message_key", MESSAGE_KEY),
            ),
        )

    def boot(self) -> None:
        if self.app.running_in_console:
            self.publishes(
                {DEFAULT_CONFIG_FILE: self.app.config_path(f"{CONFIG_KEY}.yaml")},
                CONFIG_TAG,
            )
            self.publishes(
                {LANG_DIR: self.app.lang_path(os.path.join("vendor", NAMESPACE))},
                LANG_TAG,
            )

        self.load_translations_from(LANG_DIR, NAMESPACE)

        translator = self.app.translator
        translator.set_locale(self.app.settings.get(f"{CONFIG_KEY}.locale", translator.locale))
        translator.fallback_locale = self.app.settings.get(
            f"{CONFIG_KEY}.fallback_locale", translator.fallback_locale
        )
