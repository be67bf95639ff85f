"""Configuration management with Pydantic Settings and YAML files.

``configs/default.yaml`` holds process-wide settings, ``configs/exchanges.yaml``
holds one block per exchange. The exchange file is also the persisted store
that pair reconciliation writes back to (see ``YamlConfigStore``).
"""

from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from gembot.errors import ConfigStoreError

DEFAULT_BASE_URL = "https://api.gemini.com"


def split_strings(value: str, sep: str = ",") -> list[str]:
    """Split a separated string, dropping surrounding blanks and empty items."""
    return [item.strip() for item in value.split(sep) if item.strip()]


# --- Sub-config models ---


class SystemConfig(BaseModel):
    """Top-level system settings."""

    log_level: str = "INFO"
    json_logs: bool = False


class CollectorConfig(BaseModel):
    """Ticker refresh loop settings."""

    max_concurrency: int = Field(default=8, ge=1)


class RedisConfig(BaseModel):
    """Redis settings."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""

    @property
    def url(self) -> str:
        """Build Redis URL string."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class StorageConfig(BaseModel):
    """Ticker cache backend settings."""

    backend: str = "memory"
    ticker_ttl_s: int = 60
    redis: RedisConfig = Field(default_factory=RedisConfig)


class MonitoringConfig(BaseModel):
    """Prometheus exporter settings."""

    enabled: bool = False
    port: int = 9090


class ExchangeConfig(BaseModel):
    """Persisted per-exchange configuration.

    Pair lists are stored comma-separated (``"BTCUSD,ETHUSD"``), matching the
    on-disk format; use the ``*_list`` properties to work with them.
    """

    name: str
    enabled: bool = False
    authenticated_api_support: bool = False
    api_key: str = ""
    api_secret: SecretStr = SecretStr("")
    base_currencies: str = "USD"
    available_pairs: str = ""
    enabled_pairs: str = ""
    rest_polling_delay: float = Field(default=10.0, gt=0)
    verbose: bool = False
    base_url: str = DEFAULT_BASE_URL
    request_timeout_s: float = Field(default=15.0, gt=0)

    @property
    def available_pair_list(self) -> list[str]:
        return split_strings(self.available_pairs)

    @property
    def enabled_pair_list(self) -> list[str]:
        return split_strings(self.enabled_pairs)

    @property
    def base_currency_list(self) -> list[str]:
        return split_strings(self.base_currencies)

    def to_persisted(self) -> dict[str, Any]:
        """Dump for writing to disk, with the secret revealed.

        Everything else that dumps this model (logging, ``repr``) only ever
        sees the masked ``SecretStr``.
        """
        data = self.model_dump(mode="json", exclude={"name"})
        data["api_secret"] = self.api_secret.get_secret_value()
        return data


# --- Main config ---


class AppConfig(BaseSettings):
    """Application configuration.

    Loads from YAML files, with environment variable overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEMBOT_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override YAML (init) values."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    system: SystemConfig = Field(default_factory=SystemConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    exchanges_file: str = "exchanges.yaml"
    exchange_configs: dict[str, ExchangeConfig] = Field(default_factory=dict)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _exchange_entries(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Return the ``exchanges`` mapping of a YAML file with each entry named."""
    exchanges = raw.get("exchanges") or {}
    return {name: {**(cfg or {}), "name": name} for name, cfg in exchanges.items()}


def load_config(
    config_dir: str | Path = "configs",
    config_file: str = "default.yaml",
    exchanges_file: str = "exchanges.yaml",
) -> AppConfig:
    """Load application configuration from YAML files with env var overrides.

    Args:
        config_dir: Path to the configuration directory.
        config_file: Name of the main config YAML file.
        exchanges_file: Name of the exchanges config YAML file.

    Returns:
        Validated AppConfig instance.
    """
    config_path = Path(config_dir)

    raw: dict[str, Any] = {}
    main_config_path = config_path / config_file
    if main_config_path.exists():
        raw = _load_yaml(main_config_path)

    exchanges_config_path = config_path / exchanges_file
    exchange_configs: dict[str, dict[str, Any]] = {}
    if exchanges_config_path.exists():
        exchange_configs = _exchange_entries(_load_yaml(exchanges_config_path))

    raw["exchanges_file"] = str(exchanges_config_path)
    raw["exchange_configs"] = exchange_configs

    # Pydantic Settings will automatically apply env var overrides
    return AppConfig(**raw)


# --- Persistence ---


class ConfigStore(Protocol):
    """Read/write access to persisted exchange configuration."""

    def get_exchange_config(self, name: str) -> ExchangeConfig:
        """Return the persisted config for ``name``.

        Raises:
            ConfigStoreError: If it cannot be read or does not exist.
        """

    def update_exchange_config(self, config: ExchangeConfig) -> None:
        """Persist ``config``, replacing the entry with the same name.

        Raises:
            ConfigStoreError: If it cannot be written.
        """


class YamlConfigStore:
    """ConfigStore backed by an ``exchanges.yaml`` file.

    Every read goes back to disk and returns the latest persisted state.
    Writes go to a temporary file that is then renamed over the original.

    Args:
        path: Path of the exchanges YAML file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get_exchange_config(self, name: str) -> ExchangeConfig:
        with self._lock:
            exchanges = self._read_exchanges()
        # Case-insensitive lookup: the connector is named "Gemini", files use "gemini"
        for key, cfg in exchanges.items():
            if str(key).lower() == name.lower():
                if cfg is None:
                    cfg = {}
                if not isinstance(cfg, dict):
                    raise ConfigStoreError(f"Config for exchange {name!r} is not a mapping")
                # The mapping key is the name; a "name:" field inside the entry is ignored
                try:
                    return ExchangeConfig.model_validate({**cfg, "name": str(key)})
                except (ValidationError, TypeError) as e:
                    raise ConfigStoreError(f"Invalid config for exchange {name!r}: {e}") from e
        raise ConfigStoreError(f"Exchange {name!r} not found in {self._path}")

    def update_exchange_config(self, config: ExchangeConfig) -> None:
        with self._lock:
            exchanges = self._read_exchanges()
            key = next(
                (k for k in exchanges if str(k).lower() == config.name.lower()),
                config.name,
            )
            exchanges[key] = config.to_persisted()
            self._write({"exchanges": exchanges})

    def _read_exchanges(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = _load_yaml(self._path)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigStoreError(f"Failed to read {self._path}: {e}") from e
        exchanges = data.get("exchanges") or {}
        if not isinstance(exchanges, dict):
            raise ConfigStoreError(f"'exchanges' in {self._path} is not a mapping")
        return exchanges

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w") as f:
                    yaml.safe_dump(data, f, sort_keys=False)
                os.replace(tmp_name, self._path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ConfigStoreError(f"Failed to write {self._path}: {e}") from e
