"""
Configuration loading for pylulo, using pydantic-settings.

Settings are merged once at startup from (lowest to highest precedence):

1. YAML config file (``--config PATH`` or ``./config.yaml``)
2. ``.env`` file in the working directory
3. Environment variables prefixed with ``PYLULO_``
4. Command-line flags

The resulting ``Settings`` object is passed explicitly to every component.

Example config.yaml::

    keypair: ~/.config/solana/id.json
    rpc-url: https://mainnet.helius-rpc.com
    rpc-api-key: ...
    lulo-api-key: ...
    priority-fee: "50000"
    allowed-protocols: [kamino, marginfi]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Mapping, Optional

import pydantic
import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PYLULO_"
DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_LULO_API_URL = "https://api.flexlend.fi"
DEFAULT_LOG_LEVEL = "warning"
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

# Config keys as they appear in YAML and on the command line
CONFIG_KEYS = (
    "keypair",
    "rpc-url",
    "rpc-api-key",
    "lulo-api-key",
    "lulo-api-url",
    "priority-fee",
    "allowed-protocols",
    "log-level",
)

SECRET_KEYS = ("rpc-api-key", "lulo-api-key")


def _scalar(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list, tuple)):
        raise ValueError("must be a scalar value")
    text = str(value).strip()
    return text or None


class DashedYamlSource(YamlConfigSettingsSource):
    """YAML source whose keys use dashes (``rpc-url``) like the CLI flags."""

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        try:
            data = super()._read_file(file_path)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config file {file_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in config file {file_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {file_path} must contain a mapping")

        unknown = sorted(str(k) for k in data if k not in CONFIG_KEYS)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", file_path, ", ".join(unknown))

        logger.debug("Loaded config file %s", file_path)
        return {k.replace("-", "_"): v for k, v in data.items() if k in CONFIG_KEYS}


class Settings(BaseSettings):
    """Effective configuration for one CLI invocation."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    keypair: Optional[str] = Field(default=None, description="Path to the wallet keypair file")
    rpc_url: Optional[str] = Field(default=None, description="Solana RPC endpoint")
    rpc_api_key: Optional[str] = Field(default=None, description="API key appended to the RPC URL")
    lulo_api_key: Optional[str] = Field(default=None, description="Lulo API key")
    lulo_api_url: str = Field(default=DEFAULT_LULO_API_URL, description="Lulo API base URL")
    priority_fee: Optional[str] = Field(default=None, description="Priority fee forwarded to Lulo")
    allowed_protocols: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(), description="Protocols whose transactions may be submitted (empty = all)"
    )
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Log level")
    config_file: Optional[Path] = Field(default=None, exclude=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources = [init_settings, env_settings, dotenv_settings]
        config_file = getattr(init_settings, "init_kwargs", {}).get("config_file")
        if config_file is not None:
            sources.append(DashedYamlSource(settings_cls, yaml_file=config_file))
        return tuple(sources)

    @field_validator("keypair", "rpc_url", "rpc_api_key", "lulo_api_key", "priority_fee", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Optional[str]:
        return _scalar(value)

    @field_validator("keypair")
    @classmethod
    def _expand_keypair(cls, value: Optional[str]) -> Optional[str]:
        return str(Path(value).expanduser()) if value else value

    @field_validator("lulo_api_url", mode="before")
    @classmethod
    def _api_url(cls, value: Any) -> str:
        return (_scalar(value) or DEFAULT_LULO_API_URL).rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _log_level(cls, value: Any) -> str:
        level = (_scalar(value) or DEFAULT_LOG_LEVEL).lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {level!r}")
        return level

    @field_validator("allowed_protocols", mode="before")
    @classmethod
    def _protocols(cls, value: Any) -> tuple[str, ...]:
        """Accept a YAML list or a comma-separated string."""
        if value is None:
            return ()
        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, (list, tuple)):
            items = [str(v) for v in value]
        else:
            raise ValueError("must be a list or comma-separated string")
        return tuple(item.strip() for item in items if item.strip())

    def to_dict(self, mask_secrets: bool = True) -> dict[str, Any]:
        """Render settings with dashed keys, as they appear in config.yaml."""
        result: dict[str, Any] = {}
        for attr, value in self.model_dump().items():
            key = attr.replace("_", "-")
            if key == "allowed-protocols":
                value = list(value)
            if mask_secrets and key in SECRET_KEYS and value:
                value = mask_secret(value)
            result[key] = value
        return result


def mask_secret(value: str) -> str:
    """Mask a secret, keeping only its last four characters."""
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


def _describe(exc: pydantic.ValidationError) -> str:
    problems = []
    for error in exc.errors():
        key = ".".join(str(part) for part in error["loc"]).replace("_", "-")
        problems.append(f"{key}: {error['msg']}")
    return "Invalid configuration: " + "; ".join(problems)


def load_settings(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    cwd: Optional[Path] = None,
) -> Settings:
    """
    Merge all configuration sources into a ``Settings`` object.

    Args:
        config_path: Explicit config file. Must exist when given.
        overrides: Values from command-line flags, keyed by config key.
            ``None`` and empty values are ignored.
        cwd: Directory searched for ``config.yaml`` and ``.env``
            (default: the current working directory).

    Returns:
        Frozen Settings

    Raises:
        ConfigurationError: If the config file is missing or malformed, or a
            value fails validation
    """
    cwd = cwd or Path.cwd()

    config_file: Optional[Path] = None
    if config_path is not None:
        config_file = Path(config_path).expanduser()
        if not config_file.is_file():
            raise ConfigurationError(f"Config file not found: {config_file}")
    else:
        candidate = cwd / DEFAULT_CONFIG_FILE
        if candidate.is_file():
            config_file = candidate
        else:
            logger.debug("No config file at %s", candidate)

    flags: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if key not in CONFIG_KEYS:
            raise ConfigurationError(f"Unknown setting: {key}")
        if value is None or value == "" or value == ():
            continue
        flags[key.replace("-", "_")] = value

    try:
        return Settings(_env_file=cwd / ".env", config_file=config_file, **flags)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(_describe(exc)) from exc
