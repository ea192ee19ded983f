"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Any, Mapping, Optional

from ...core.constants import (
    ENV_PREFIX,
    DEFAULT_SSH_TIMEOUT,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_KEY_BITS,
    DEFAULT_USER,
    DEFAULT_SSH_PORT,
)
from ...core.exceptions import ConfigError


@dataclass
class Settings:
    """Tunable settings"""
    connect_timeout: float = DEFAULT_SSH_TIMEOUT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    key_bits: int = DEFAULT_KEY_BITS
    default_user: str = DEFAULT_USER
    default_port: int = DEFAULT_SSH_PORT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create from dictionary, coercing each value to the field's type"""
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            try:
                values[f.name] = f.type(data[f.name])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {f.name}: {data[f.name]!r}") from e
        return cls(**values)


class ConfigLoader:
    """Configuration loader with priority support"""
    
    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._env_prefix = ENV_PREFIX
        self._environ = os.environ if environ is None else environ
    
    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file, missing file means no settings"""
        if not path.exists():
            return {}
        
        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e
    
    def load_env(self) -> Dict[str, Any]:
        """Load configuration from GUARDIAN_* environment variables"""
        config = {}
        for f in fields(Settings):
            value = self._environ.get(self._env_prefix + f.name.upper())
            if value:
                config[f.name] = value
        return config
    
    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}
        for config in configs:
            result.update({k: v for k, v in config.items() if v is not None})
        return result
    
    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Settings:
        """
        Load settings.
        
        Args:
            toml_path: Path to TOML settings file
            cli_overrides: CLI parameter overrides
            use_env: Whether to load from environment variables
        
        Returns:
            Merged Settings
        """
        configs = []
        
        if toml_path:
            configs.append(self.load_toml(toml_path))
        
        if use_env:
            configs.append(self.load_env())
        
        if cli_overrides:
            configs.append(cli_overrides)
        
        return Settings.from_dict(self.merge_configs(*configs))
