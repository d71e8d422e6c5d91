"""
Tests for configuration stores
"""

import json
import shutil
import tempfile
import pytest
from pathlib import Path
from unittest.mock import Mock

from rolepricing.config_store import (
    ConfigStore,
    InMemoryConfigStore,
    JsonFileConfigStore,
    activate,
    backup,
    load_config_safely,
    uninstall,
)
from rolepricing.models import DiscountConfiguration
from rolepricing.exceptions import ConfigError


def _sample_config() -> DiscountConfiguration:
    return DiscountConfiguration(
        enabled_roles={"wholesale": True},
        default_percent_by_role={"wholesale": 10.0},
        category_overrides={"12": {"wholesale": 15.0}},
    )


class TestInMemoryConfigStore:
    """Test cases for InMemoryConfigStore"""

    def test_empty_store(self):
        """Test loading from an empty store"""
        store = InMemoryConfigStore()
        assert not store.exists()
        assert store.load() == DiscountConfiguration.empty()

    def test_save_and_load(self):
        """Test saved configuration loads back"""
        store = InMemoryConfigStore()
        store.save(_sample_config())

        assert store.exists()
        assert store.load() == _sample_config()

    def test_initial_document_is_copied(self):
        """Test the initial document is not shared with the caller"""
        data = {"enabled_roles": {"wholesale": True}}
        store = InMemoryConfigStore(data)
        data["enabled_roles"]["wholesale"] = False

        assert store.load().is_enabled("wholesale")

    def test_clear(self):
        """Test clearing the store"""
        store = InMemoryConfigStore(_sample_config().to_dict())
        store.clear()
        assert not store.exists()


class TestJsonFileConfigStore:
    """Test cases for JsonFileConfigStore"""

    def setup_method(self):
        """Set up test fixtures"""
        self.temp_dir = Path(tempfile.mkdtemp(prefix="rolepricing_test_"))
        self.path = self.temp_dir / "settings.json"
        self.store = JsonFileConfigStore(self.path)

    def teardown_method(self):
        """Clean up test fixtures"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_file_is_empty(self):
        """Test a missing file loads as empty configuration"""
        assert not self.store.exists()
        assert self.store.load() == DiscountConfiguration.empty()

    def test_save_and_load(self):
        """Test save writes JSON that loads back losslessly"""
        self.store.save(_sample_config())

        data = json.loads(self.path.read_text(encoding="utf-8"))
        assert data["enabled_roles"] == {"wholesale": True}
        assert data["category_overrides"] == {"12": {"wholesale": 15.0}}
        assert self.store.load() == _sample_config()

    def test_save_creates_directories(self):
        """Test save creates missing parent directories"""
        store = JsonFileConfigStore(self.temp_dir / "nested" / "dir" / "settings.json")
        store.save(_sample_config())
        assert store.exists()

    def test_save_leaves_no_temp_files(self):
        """Test the atomic write cleans up after itself"""
        self.store.save(_sample_config())
        self.store.save(DiscountConfiguration.empty())

        assert [p.name for p in self.temp_dir.iterdir()] == ["settings.json"]

    def test_corrupt_file(self):
        """Test corrupt JSON raises ConfigError"""
        self.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError):
            self.store.load()

    def test_wrong_shape(self):
        """Test a JSON document of the wrong shape raises ConfigError"""
        self.path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(ConfigError):
            self.store.load()

    def test_env_var_path(self, monkeypatch):
        """Test the default path comes from the environment"""
        monkeypatch.setenv("ROLEPRICING_CONFIG", str(self.path))
        store = JsonFileConfigStore()
        assert store.path == self.path

    def test_clear(self):
        """Test clearing removes the file and tolerates repeats"""
        self.store.save(_sample_config())
        self.store.clear()
        self.store.clear()
        assert not self.path.exists()


class TestSafeLoading:
    """Test cases for fail-safe loading"""

    def test_corrupt_store_reads_empty(self, tmp_path):
        """Test corrupt storage degrades to an empty configuration"""
        path = tmp_path / "settings.json"
        path.write_text("{broken", encoding="utf-8")

        config = load_config_safely(JsonFileConfigStore(path))

        assert config == DiscountConfiguration.empty()

    def test_unexpected_error_reads_empty(self):
        """Test arbitrary store failures degrade to an empty configuration"""
        store = Mock(spec=ConfigStore)
        store.load.side_effect = RuntimeError("backend down")

        assert load_config_safely(store) == DiscountConfiguration.empty()

    def test_healthy_store(self):
        """Test a healthy store is read normally"""
        store = InMemoryConfigStore(_sample_config().to_dict())
        assert load_config_safely(store) == _sample_config()


class TestLifecycle:
    """Test cases for activation, backup and uninstall"""

    def test_activate_writes_defaults(self):
        """Test first activation stores empty defaults"""
        store = InMemoryConfigStore()
        config = activate(store)

        assert store.exists()
        assert config == DiscountConfiguration.empty()

    def test_activate_keeps_existing(self):
        """Test activation does not overwrite existing settings"""
        store = InMemoryConfigStore(_sample_config().to_dict())
        config = activate(store)

        assert config == _sample_config()

    def test_backup_and_uninstall(self):
        """Test backup snapshot survives uninstall"""
        store = InMemoryConfigStore(_sample_config().to_dict())
        snapshot = backup(store)

        uninstall(store)

        assert not store.exists()
        assert snapshot["default_percent_by_role"] == {"wholesale": 10.0}
        assert DiscountConfiguration.from_dict(snapshot) == _sample_config()
