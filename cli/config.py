#!/usr/bin/env python3
"""
Configuration Management Module for the scriptabi CLI

Handles hierarchical configuration loading, environment variable mapping,
validation, and persistence of CLI settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

import yaml

# Configuration file locations in order of precedence (highest to lowest)
CONFIG_SEARCH_PATHS = [
    Path('.scriptabi.yml'),                      # Project-specific YAML
    Path('.scriptabi.json'),                     # Project-specific JSON
    Path.home() / '.scriptabi' / 'config.yml',   # User global YAML
    Path.home() / '.scriptabi' / 'config.json',  # User global JSON
]

# Environment variable prefix
ENV_PREFIX = 'SCRIPTABI_'

OUTPUT_FORMATS = ['table', 'json', 'yaml']
SCRIPT_FORMATS = ['asm', 'hex']
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Default configuration values
DEFAULT_CONFIG = {
    'output': {
        'format': 'table',
    },
    'script': {
        'format': 'asm',
    },
    'artifacts': {
        'search_paths': ['.', 'artifacts'],
    },
    'logging': {
        'level': 'WARNING',
    },
}

# Configuration profiles
PROFILES = {
    'default': {},
    'scripting': {
        'output': {'format': 'json'},
        'script': {'format': 'hex'},
        'logging': {'level': 'ERROR'},
    },
    'debug': {
        'logging': {'level': 'DEBUG'},
    },
}


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""

    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (default, scripting, debug)
        """
        self.logger = logging.getLogger(__name__)
        self.config_file = config_file
        self.profile = profile
        self._config_cache = None
        self._config_sources = []

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.

        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache

        self._config_sources = ["defaults"]
        configs = [DEFAULT_CONFIG]

        if self.profile:
            if self.profile not in PROFILES:
                raise ValueError(f"Unknown configuration profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")

        if self.config_file:
            configs.append(self._load_config_file(Path(self.config_file)))
            self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in CONFIG_SEARCH_PATHS:
                if config_path.exists():
                    configs.append(self._load_config_file(config_path))
                    self._config_sources.append(f"file:{config_path}")
                    self.logger.debug(f"Loaded config from {config_path}")
                    break  # Use first found config file

        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")

        # Later sources override earlier ones
        self._config_cache = self._deep_merge(*configs)
        return self._config_cache

    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ('.yml', '.yaml'):
                data = yaml.safe_load(f)
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unknown config file format: {path}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    def _load_environment_variables(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        SCRIPTABI_OUTPUT_FORMAT maps to output.format. The first underscore
        separates the section from the key, so keys may contain underscores
        (SCRIPTABI_ARTIFACTS_SEARCH_PATHS -> artifacts.search_paths).
        """
        env_config = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            config_key = key[len(ENV_PREFIX):].lower()
            section, _, name = config_key.partition('_')
            if not name:
                self.logger.warning(f"Ignoring environment variable without a key: {key}")
                continue
            env_config.setdefault(section, {})[name] = self._parse_env_value(value)

        return env_config

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool, list]:
        """Parse environment variable value to appropriate type."""
        try:
            return json.loads(value)
        except ValueError:
            pass

        if value.lower() in ('true', 'yes'):
            return True
        if value.lower() in ('false', 'no'):
            return False
        if os.pathsep in value:
            return value.split(os.pathsep)
        return value

    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}

        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                elif isinstance(value, dict):
                    result[key] = self._deep_merge(value)
                else:
                    result[key] = value

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'output.format')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self.load()

        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key_path: str, value: Any):
        """
        Set configuration value by dot-notation path.

        Args:
            key_path: Dot-separated path (e.g., 'script.format')
            value: Value to set
        """
        config = self.load()

        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None, format: str = 'yaml'):
        """
        Save current configuration to file.

        Args:
            path: File path to save to (default: project config file)
            format: Output format ('yaml' or 'json')
        """
        config = self.load()

        if not path:
            path = '.scriptabi.yml' if format == 'yaml' else '.scriptabi.json'

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            if format == 'yaml':
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config, f, indent=2)

        self.logger.info(f"Configuration saved to {path}")

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []

        output_format = config.get('output', {}).get('format')
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {output_format}")

        script_format = config.get('script', {}).get('format')
        if script_format not in SCRIPT_FORMATS:
            errors.append(f"Invalid script format: {script_format}")

        search_paths = config.get('artifacts', {}).get('search_paths')
        if not isinstance(search_paths, list) or not all(isinstance(p, str) for p in search_paths):
            errors.append("artifacts.search_paths must be a list of paths")

        level = config.get('logging', {}).get('level')
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            errors.append(f"Invalid logging level: {level}")

        return errors

    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return list(self._config_sources)

    def find_artifact(self, name: str) -> Path:
        """
        Resolve an artifact path against artifacts.search_paths.

        ``name`` may be a path to an existing file, or a contract name that is
        looked up as ``<name>.json`` (or ``<name>_desc.json``) in each search path.
        """
        direct = Path(name).expanduser()
        if direct.is_file():
            return direct

        for base in self.get('artifacts.search_paths', []):
            base_path = Path(os.path.expandvars(base)).expanduser()
            for candidate in (f"{name}.json", f"{name}_desc.json", name):
                path = base_path / candidate
                if path.is_file():
                    self.logger.debug(f"Resolved artifact {name} to {path}")
                    return path

        raise FileNotFoundError(f"Artifact not found: {name}")

    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []


