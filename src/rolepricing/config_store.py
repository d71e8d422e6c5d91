"""
Storage backends for the discount configuration
"""

import os
import json
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .models import DiscountConfiguration
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ROLEPRICING_CONFIG"
DEFAULT_CONFIG_FILE = "rolepricing.json"


class ConfigStore(ABC):
    """
    Abstract base class for configuration stores

    A store holds exactly one flat configuration document. Saves replace
    the whole document; there are no partial updates.
    """

    @abstractmethod
    def load(self) -> DiscountConfiguration:
        """
        Read the stored configuration

        Returns an empty configuration when nothing has been stored yet.
        Raises ConfigError when the stored data is unreadable.
        """
        pass

    @abstractmethod
    def save(self, config: DiscountConfiguration) -> None:
        """Replace the stored configuration"""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check whether a configuration has been stored"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored configuration"""
        pass


class InMemoryConfigStore(ConfigStore):
    """
    Store keeping the configuration document in memory

    The document is kept in its serialized form so that every load goes
    through the same parsing as a persistent store would.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Optional[Dict[str, Any]] = None
        if initial is not None:
            self._data = json.loads(json.dumps(initial))

    def load(self) -> DiscountConfiguration:
        if self._data is None:
            return DiscountConfiguration.empty()
        return DiscountConfiguration.from_dict(self._data)

    def save(self, config: DiscountConfiguration) -> None:
        self._data = config.to_dict()

    def exists(self) -> bool:
        return self._data is not None

    def clear(self) -> None:
        self._data = None


class JsonFileConfigStore(ConfigStore):
    """
    Store persisting the configuration as a JSON file

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so readers see either the old or the new
    document and never a partial one.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the store

        Args:
            path: JSON file location (uses $ROLEPRICING_CONFIG or ./rolepricing.json if None)
        """
        self.path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)

    def load(self) -> DiscountConfiguration:
        if not self.path.exists():
            logger.debug(f"No configuration at {self.path}, using empty defaults")
            return DiscountConfiguration.empty()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read configuration {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Corrupt configuration {self.path}: {e}") from e

        return DiscountConfiguration.from_dict(data)

    def save(self, config: DiscountConfiguration) -> None:
        payload = json.dumps(config.to_dict(), indent=2, sort_keys=True)
        directory = self.path.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".rolepricing-", suffix=".json", dir=str(directory))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ConfigError(f"Cannot write configuration {self.path}: {e}") from e

        logger.debug(f"Configuration saved to {self.path}")

    def exists(self) -> bool:
        return self.path.exists()

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ConfigError(f"Cannot remove configuration {self.path}: {e}") from e


def load_config_safely(store: ConfigStore) -> DiscountConfiguration:
    """
    Load the configuration for the pricing path

    Any failure degrades to an empty configuration (no roles enabled),
    so a broken store shows regular prices instead of breaking checkout.
    """
    try:
        return store.load()
    except ConfigError as e:
        logger.warning(f"Discount configuration unavailable, no discounts applied: {e}")
    except Exception as e:
        logger.warning(f"Unexpected error loading discount configuration, no discounts applied: {e}")
    return DiscountConfiguration.empty()


def activate(store: ConfigStore) -> DiscountConfiguration:
    """
    Write empty defaults on first activation

    An existing configuration is left untouched.
    """
    if store.exists():
        logger.debug("Configuration already present, activation keeps it")
        return store.load()

    config = DiscountConfiguration.empty()
    store.save(config)
    logger.info("Initialized empty discount configuration")
    return config


def backup(store: ConfigStore) -> Dict[str, Any]:
    """Snapshot of the stored configuration document"""
    return store.load().to_dict()


def uninstall(store: ConfigStore) -> None:
    """Remove all stored configuration"""
    store.clear()
    logger.info("Discount configuration removed")
