"""Configuration loader with multi-source support."""

import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Type, TypeVar

import platformdirs
import toml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class ConfigLoader:
    """Loads configuration from multiple sources with priority.

    Priority (lowest first): shipped defaults, system config, user config,
    environment variables.
    """

    def __init__(self, app_name: str = "mediafold", config_class: Optional[Type[T]] = None) -> None:
        self.app_name = app_name
        self.config_class = config_class
        self._config: Optional[T] = None

    def load(self, defaults_path: Optional[Path] = None) -> T:
        """Load configuration from all sources.

        Args:
            defaults_path: Optional path to defaults.toml file

        Returns:
            Validated configuration object (plain dict without config_class)
        """
        config_dict = self._load_defaults(defaults_path)
        if self.config_class:
            # Model defaults give environment overrides known keys to resolve against
            config_dict = self._deep_merge(self.config_class().model_dump(), config_dict)

        system_config = self._load_system_config()
        if system_config:
            config_dict = self._deep_merge(config_dict, system_config)

        user_config = self._load_user_config()
        if user_config:
            config_dict = self._deep_merge(config_dict, user_config)

        config_dict = self._apply_env_overrides(config_dict)

        if self.config_class:
            self._config = self.config_class(**config_dict)
        else:
            self._config = config_dict

        return self._config

    def _load_defaults(self, defaults_path: Optional[Path] = None) -> Dict[str, Any]:
        """Load default configuration shipped with app."""
        if defaults_path and defaults_path.exists():
            return toml.load(defaults_path)

        possible_paths = [
            Path.cwd() / "config" / "defaults.toml",
            Path.home() / ".config" / self.app_name / "defaults.toml",
        ]

        for path in possible_paths:
            if path.exists():
                return toml.load(path)

        return {}

    def _load_system_config(self) -> Optional[Dict[str, Any]]:
        """Load system-wide configuration."""
        if os.name == "nt":
            system_path = (
                Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData"))
                / self.app_name
                / "config.toml"
            )
        else:
            system_path = Path(f"/etc/{self.app_name}/config.toml")

        if system_path.exists():
            return toml.load(system_path)

        return None

    def _load_user_config(self) -> Optional[Dict[str, Any]]:
        """Load user-specific configuration."""
        user_config_dir = platformdirs.user_config_dir(appname=self.app_name, appauthor=False)
        user_config_path = Path(user_config_dir) / "config.toml"

        logger.debug(f"Looking for user config: {{'app_name': {self.app_name!r}, 'path': {str(user_config_path)!r}}}")

        if user_config_path.exists():
            logger.debug(f"Loading user config: {{'path': {str(user_config_path)!r}}}")
            return toml.load(user_config_path)

        return None

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Override config with environment variables.

        MEDIAFOLD_INDEX_TIMEOUT=60 sets config["index"]["timeout"]; keys that
        contain underscores (MEDIAFOLD_MEDIA_AUTO_METADATA_EXIF) resolve to the
        longest section or key already present in the config.
        """
        prefix = f"{self.app_name.upper().replace('-', '_')}_"

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            parts = env_key[len(prefix):].lower().split("_")

            current = config
            while len(parts) > 1:
                section = self._match_key(current, parts, sections_only=True)
                if section is None:
                    break
                parts = parts[len(section.split("_")):]
                current = current[section]

            final_key = "_".join(parts)
            if len(parts) > 1 and self._match_key(current, parts) is None:
                # Unknown nested path: build it as sections
                for part in parts[:-1]:
                    current = current.setdefault(part, {})
                final_key = parts[-1]

            current[final_key] = self._convert_env_value(env_value)

        return config

    def _match_key(self, current: Dict[str, Any], parts: List[str], sections_only: bool = False) -> Optional[str]:
        """Find the longest underscore-joined prefix of parts present in current."""
        for length in range(len(parts), 0, -1):
            candidate = "_".join(parts[:length])
            if candidate in current:
                if sections_only and not isinstance(current[candidate], dict):
                    continue
                if sections_only and length == len(parts):
                    continue
                return candidate
        return None

    def _convert_env_value(self, value: str) -> Any:
        """Convert string environment variable to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if "," in value:
            return [v.strip() for v in value.split(",")]

        return value

    @property
    def config(self) -> T:
        """Get loaded configuration."""
        if self._config is None:
            self._config = self.load()
        return self._config
