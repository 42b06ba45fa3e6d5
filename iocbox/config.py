"""Configuration management for iocbox with environment support."""

import os
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from dataclasses import dataclass, asdict, fields
from datetime import datetime

from .exceptions import ConfigError
from .logging_config import get_logger

logger = get_logger(__name__)

CONFIG_VERSION = "1.0"
ENV_PREFIX = "IOCBOX_"
DEFAULT_MAX_AUTOWIRE_DEPTH = 64

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ContainerConfig:
    """Container settings."""

    strict: bool = True
    max_autowire_depth: int = DEFAULT_MAX_AUTOWIRE_DEPTH
    log_level: str = "INFO"
    log_json: bool = False

    def save(self, path: str) -> None:
        """Save config to file."""
        config_dir = os.path.dirname(path)
        if config_dir:
            Path(config_dir).mkdir(parents=True, exist_ok=True)

        config_data = {
            "version": CONFIG_VERSION,
            "updated_at": datetime.now().isoformat(),
            **asdict(self),
        }

        with open(path, "w", encoding="utf-8") as f:
            json.dump(config_data, f, indent=2)

        logger.info(f"Config saved to {path}")

    @classmethod
    def load(cls, path: str) -> "ContainerConfig":
        """Load config from file; a missing file gives the defaults."""
        if not os.path.exists(path):
            logger.info(f"Config not found at {path}, using defaults")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read config: {e}", config_path=path) from e

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a JSON object", config_path=path)

        logger.info(f"Config loaded from {path}")

        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @staticmethod
    def get_default_config_path() -> str:
        """Get default config path."""
        return os.path.expanduser("~/.iocbox/config.json")

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> bool:
        """Update config from IOCBOX_* environment variables.

        Returns True if any field changed.
        """
        environ = os.environ if environ is None else environ
        mappings = {
            f"{ENV_PREFIX}STRICT": "strict",
            f"{ENV_PREFIX}MAX_AUTOWIRE_DEPTH": "max_autowire_depth",
            f"{ENV_PREFIX}LOG_LEVEL": "log_level",
            f"{ENV_PREFIX}LOG_JSON": "log_json",
        }

        updated = False

        for env_var, config_key in mappings.items():
            value = environ.get(env_var)
            if value is None:
                continue

            current = getattr(self, config_key)

            if isinstance(current, bool):
                new_value: Any = value.lower() in ("true", "1", "yes")
            elif isinstance(current, int):
                try:
                    new_value = int(value)
                except ValueError:
                    logger.warning(f"Invalid int value for {env_var}")
                    continue
            else:
                new_value = value

            setattr(self, config_key, new_value)
            updated = True
            logger.debug(f"Updated {config_key} from env: {env_var}")

        return updated

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors: List[str] = []

        if not isinstance(self.max_autowire_depth, int) or self.max_autowire_depth < 1:
            errors.append(f"Invalid max_autowire_depth: {self.max_autowire_depth}")

        if str(self.log_level).upper() not in _LOG_LEVELS:
            errors.append(f"Invalid log_level: {self.log_level}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ContainerConfig:
    """Load config from file, apply environment overrides and validate."""
    config_path = path or ContainerConfig.get_default_config_path()
    config = ContainerConfig.load(config_path)
    config.apply_env(environ)

    errors = config.validate()
    if errors:
        raise ConfigError(
            "Invalid configuration: " + "; ".join(errors),
            config_path=config_path,
        )
    return config
