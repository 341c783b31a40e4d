"""
Minimal application container for service providers.

Provides the pieces a provider needs from its host: a configuration
repository, a translator, singleton bindings, and a registry of publishable
resources that can be copied into the application.
"""

import os
import shutil
from typing import Any, Callable, Dict, List, Optional

from equality_validation.config.settings import Settings
from equality_validation.translation.translator import Translator
from equality_validation.utils.logger import get_logger, log_operation

logger = get_logger(__name__)


class Application:
    """
    Host application: base path, settings, translator and bindings.

    YAML files found in <base_path>/config are loaded into settings under
    their file stem, so a published "equality-validation.yaml" overrides the
    package defaults.
    """

    def __init__(
        self,
        base_path: str = ".",
        settings: Optional[Settings] = None,
        translator: Optional[Translator] = None,
        running_in_console: bool = False,
    ):
        self.base_path = os.path.abspath(base_path)
        self.settings = settings or Settings()
        self.translator = translator or Translator(self.lang_path())
        self.running_in_console = running_in_console
        self.providers: List["ServiceProvider"] = []
        self.publish_groups: Dict[str, Dict[str, str]] = {}
        self._factories: Dict[Any, Callable[["Application"], Any]] = {}
        self._instances: Dict[Any, Any] = {}

        if settings is None:
            self.load_configuration()

    def config_path(self, path: str = "") -> str:
        return os.path.join(self.base_path, "config", path) if path else os.path.join(self.base_path, "config")

    def lang_path(self, path: str = "") -> str:
        return os.path.join(self.base_path, "lang", path) if path else os.path.join(self.base_path, "lang")

    def load_configuration(self) -> None:
        """Load every YAML file in the application config directory."""
        config_dir = self.config_path()
        if not os.path.isdir(config_dir):
            return

        for filename in sorted(os.listdir(config_dir)):
            stem, ext = os.path.splitext(filename)
            if ext in (".yaml", ".yml"):
                self.settings.load_file(os.path.join(config_dir, filename), stem)

    def singleton(self, abstract: Any, factory: Callable[["Application"], Any]) -> None:
        """Bind abstract to a factory whose result is shared after the first make()."""
        self._factories[abstract] = factory
        self._instances.pop(abstract, None)

    def instance(self, abstract: Any, value: Any) -> None:
        """Bind abstract to an existing object."""
        self._instances[abstract] = value

    def bound(self, abstract: Any) -> bool:
        return abstract in self._instances or abstract in self._factories

    def make(self, abstract: Any) -> Any:
        """
        Resolve a binding.

        Raises:
            LookupError: If nothing is bound to abstract
        """
        if abstract in self._instances:
            return self._instances[abstract]

        factory = self._factories.get(abstract)
        if factory is None:
            raise LookupError(f"No binding registered for {abstract!r}")

        value = factory(self)
        self._instances[abstract] = value
        return value

    def register(self, provider: Any) -> "ServiceProvider":
        """
        Register and boot a provider (class or instance).

        Returns:
            The provider instance
        """
        if isinstance(provider, type):
            provider = provider(self)

        provider.register()
        provider.boot()
        self.providers.append(provider)

        logger.info(
            f"Registered provider {type(provider).__name__}",
            operation="register_provider",
            context={"base_path": self.base_path, "running_in_console": self.running_in_console},
        )
        return provider


class ServiceProvider:
    """Base class for packages integrating with an Application."""

    def __init__(self, app: Application):
        self.app = app

    def register(self) -> None:
        """Bind services into the container."""

    def boot(self) -> None:
        """Wire resources once all bindings exist."""

    def publishes(self, paths: Dict[str, str], tag: str) -> None:
        """Declare files or directories that can be copied into the application under tag."""
        self.app.publish_groups.setdefault(tag, {}).update(paths)

    def merge_config_from(self, path: str, key: str) -> None:
        self.app.settings.merge_config_from(path, key)

    def load_translations_from(self, path: str, namespace: str) -> None:
        self.app.translator.add_namespace(namespace, path)


def _copy_path(source: str, destination: str, force: bool) -> List[str]:
    copied: List[str] = []

    if os.path.isfile(source):
        if os.path.exists(destination) and not force:
            logger.debug(f"Skipping existing file {destination}", operation="publish")
            return copied
        os.makedirs(os.path.dirname(destination) or ".", exist_ok=True)
        shutil.copy2(source, destination)
        return [destination]

    for root, _dirs, files in os.walk(source):
        relative = os.path.relpath(root, source)
        for filename in files:
            target_dir = destination if relative == "." else os.path.join(destination, relative)
            copied.extend(_copy_path(os.path.join(root, filename), os.path.join(target_dir, filename), force))

    return copied


@log_operation("publish_resources")
def publish(app: Application, tag: Optional[str] = None, force: bool = False) -> List[str]:
    """
    Copy publishable resources into the application.

    Args:
        app: Application whose providers declared the resources
        tag: Only publish this group (all groups when None)
        force: Overwrite files that already exist

    Returns:
        Destination paths that were written

    Raises:
        KeyError: If tag was never declared
    """
    if tag is not None and tag not in app.publish_groups:
        raise KeyError(f"Nothing to publish for tag '{tag}'")

    groups = [app.publish_groups[tag]] if tag is not None else list(app.publish_groups.values())

    written: List[str] = []
    for paths in groups:
        for source, destination in paths.items():
            if not os.path.exists(source):
                logger.warning(f"Publishable resource missing: {source}", operation="publish")
                continue
            written.extend(_copy_path(source, destination, force))

    return written
