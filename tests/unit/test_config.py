"""Unit tests for configuration loading and the YAML config store."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from gembot.config import (
    AppConfig,
    ExchangeConfig,
    YamlConfigStore,
    load_config,
    split_strings,
)
from gembot.errors import ConfigStoreError

EXCHANGES_YAML = """\
exchanges:
  gemini:
    enabled: true
    authenticated_api_support: true
    api_key: key-123
    api_secret: secret-456
    available_pairs: BTCUSD,ETHUSD,ETHBTC
    enabled_pairs: BTCUSD,ETHUSD
    rest_polling_delay: 5
    verbose: false
"""

DEFAULT_YAML = """\
system:
  log_level: DEBUG
storage:
  backend: redis
  redis:
    host: cache.local
collector:
  max_concurrency: 4
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    (tmp_path / "default.yaml").write_text(DEFAULT_YAML)
    (tmp_path / "exchanges.yaml").write_text(EXCHANGES_YAML)
    return tmp_path


@pytest.fixture
def store(config_dir: Path) -> YamlConfigStore:
    return YamlConfigStore(config_dir / "exchanges.yaml")


# ---------------------------------------------------------------------------
# Loading tests
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config."""

    def test_loads_yaml_files(self, config_dir: Path) -> None:
        config = load_config(config_dir=config_dir)

        assert config.system.log_level == "DEBUG"
        assert config.storage.backend == "redis"
        assert config.storage.redis.url == "redis://cache.local:6379/0"
        assert config.collector.max_concurrency == 4
        assert config.exchanges_file == str(config_dir / "exchanges.yaml")

        gemini = config.exchange_configs["gemini"]
        assert gemini.name == "gemini"
        assert gemini.enabled is True
        assert gemini.enabled_pair_list == ["BTCUSD", "ETHUSD"]
        assert gemini.available_pair_list == ["BTCUSD", "ETHUSD", "ETHBTC"]
        assert gemini.rest_polling_delay == 5
        assert gemini.api_secret.get_secret_value() == "secret-456"

    def test_defaults_without_files(self, tmp_path: Path) -> None:
        config = load_config(config_dir=tmp_path)
        assert config.system.log_level == "INFO"
        assert config.storage.backend == "memory"
        assert config.exchange_configs == {}

    def test_env_overrides_yaml(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMBOT_SYSTEM__LOG_LEVEL", "WARNING")
        monkeypatch.setenv("GEMBOT_STORAGE__BACKEND", "memory")
        config = load_config(config_dir=config_dir)
        assert config.system.log_level == "WARNING"
        assert config.storage.backend == "memory"
        assert config.storage.redis.host == "cache.local"

    def test_invalid_polling_delay(self) -> None:
        with pytest.raises(ValidationError):
            ExchangeConfig(name="gemini", rest_polling_delay=0)

    def test_app_config_defaults(self) -> None:
        config = AppConfig()
        assert config.monitoring.enabled is False
        assert config.collector.max_concurrency == 8


class TestExchangeConfig:
    """Tests for ExchangeConfig helpers."""

    def test_defaults(self) -> None:
        config = ExchangeConfig(name="gemini")
        assert config.enabled is False
        assert config.rest_polling_delay == 10
        assert config.base_url == "https://api.gemini.com"

    def test_secret_masked_in_repr_and_dump(self) -> None:
        config = ExchangeConfig(name="gemini", api_secret="hunter2")
        assert "hunter2" not in repr(config)
        assert "hunter2" not in config.model_dump_json()

    def test_to_persisted_reveals_secret(self) -> None:
        config = ExchangeConfig(name="gemini", api_secret="hunter2")
        data = config.to_persisted()
        assert data["api_secret"] == "hunter2"
        assert "name" not in data

    def test_split_strings(self) -> None:
        assert split_strings(" BTCUSD, ,ETHUSD ,") == ["BTCUSD", "ETHUSD"]
        assert split_strings("") == []


# ---------------------------------------------------------------------------
# Store tests
# ---------------------------------------------------------------------------


class TestYamlConfigStore:
    """Tests for YamlConfigStore."""

    def test_get_is_case_insensitive(self, store: YamlConfigStore) -> None:
        config = store.get_exchange_config("Gemini")
        assert config.name == "gemini"
        assert config.api_key == "key-123"

    def test_get_missing_exchange(self, store: YamlConfigStore) -> None:
        with pytest.raises(ConfigStoreError, match="not found"):
            store.get_exchange_config("kraken")

    def test_get_invalid_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges:\n  gemini:\n    rest_polling_delay: -1\n")
        with pytest.raises(ConfigStoreError, match="Invalid"):
            YamlConfigStore(path).get_exchange_config("gemini")

    def test_update_round_trip(self, store: YamlConfigStore) -> None:
        config = store.get_exchange_config("gemini")
        store.update_exchange_config(
            config.model_copy(update={"available_pairs": "BTCUSD,ETHUSD,ETHBTC,LTCUSD"})
        )

        reloaded = store.get_exchange_config("gemini")
        assert reloaded.available_pair_list == ["BTCUSD", "ETHUSD", "ETHBTC", "LTCUSD"]
        assert reloaded.enabled_pairs == "BTCUSD,ETHUSD"
        assert reloaded.api_secret.get_secret_value() == "secret-456"

    def test_update_keeps_other_exchanges(self, store: YamlConfigStore) -> None:
        data = yaml.safe_load(store.path.read_text())
        data["exchanges"]["sandbox"] = {"enabled": False}
        store.path.write_text(yaml.safe_dump(data))

        store.update_exchange_config(ExchangeConfig(name="Gemini", enabled=True))

        written = yaml.safe_load(store.path.read_text())
        assert set(written["exchanges"]) == {"gemini", "sandbox"}

    def test_update_creates_file(self, tmp_path: Path) -> None:
        store = YamlConfigStore(tmp_path / "nested" / "exchanges.yaml")
        store.update_exchange_config(ExchangeConfig(name="gemini", enabled_pairs="BTCUSD"))
        assert store.get_exchange_config("gemini").enabled_pair_list == ["BTCUSD"]

    def test_no_temp_files_left(self, store: YamlConfigStore) -> None:
        store.update_exchange_config(store.get_exchange_config("gemini"))
        assert [p.name for p in store.path.parent.iterdir() if p.name.endswith(".tmp")] == []

    def test_get_ignores_name_field(self, tmp_path: Path) -> None:
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges:\n  gemini:\n    name: Gemini\n    enabled: true\n    enabled_pairs: BTCUSD\n")
        config = YamlConfigStore(path).get_exchange_config("gemini")
        assert config.name == "gemini"
        assert config.enabled is True
        assert config.enabled_pair_list == ["BTCUSD"]

    def test_get_empty_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges:\n  gemini:\n")
        assert YamlConfigStore(path).get_exchange_config("gemini").enabled is False

    def test_get_non_mapping_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges:\n  gemini: [1, 2]\n")
        with pytest.raises(ConfigStoreError, match="not a mapping"):
            YamlConfigStore(path).get_exchange_config("gemini")

    def test_unreadable_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges: [unclosed\n")
        with pytest.raises(ConfigStoreError):
            YamlConfigStore(path).get_exchange_config("gemini")
