"""Configuration management for gitdesk.

This module provides a clean interface for reading and writing both the
per-repository configuration (kept in the facade's key-value store) and
the global configuration file.
"""

import configparser
import io
import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from gitdesk.core.errors import ValidationError

# Built-in values used when nothing else supplies a key.
DEFAULTS = {
    ('user', 'name'): 'Gitdesk User',
    ('user', 'email'): 'user@gitdesk.dev',
    ('core', 'autocrlf'): 'false',
    ('init', 'defaultbranch'): 'main',
}

AUTOCRLF_VALUES = ('true', 'false', 'input')


def split_key(name: str) -> Tuple[str, str]:
    """
    Split a dotted configuration name into (section, key).

    Args:
        name: Name such as 'user.name' or 'init.defaultBranch'

    Returns:
        Tuple of lower-cased (section, key)

    Raises:
        ValidationError: If the name has no section part
    """
    if '.' not in name:
        raise ValidationError(f"Invalid config key '{name}' (expected section.key)")
    section, key = name.split('.', 1)
    if not section or not key:
        raise ValidationError(f"Invalid config key '{name}' (expected section.key)")
    return section.lower(), key.lower()


class Config:
    """
    Manages gitdesk configuration.

    Configuration is stored in INI format, similar to Git:
    - Global config: ~/.gitdeskconfig
    - Repository config: INI text under the 'config' key of the store

    Priority order (highest to lowest):
    1. Environment variables (GITDESK_<SECTION>_<KEY>)
    2. Repository config
    3. Global config
    4. Built-in defaults
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.gitdeskconfig'
    STORE_KEY = 'config'

    def __init__(self, store, global_config_path: Optional[Path] = None):
        """
        Initialize Config manager.

        Args:
            store: KeyValueStore holding the repository config
            global_config_path: Override for the global config file
        """
        self.store = store
        self.global_config_path = global_config_path or self.GLOBAL_CONFIG_PATH
        self._global_config = None
        self._repo_config = None

    @property
    def global_config(self) -> configparser.ConfigParser:
        """Load and return global configuration."""
        if self._global_config is None:
            self._global_config = configparser.ConfigParser()
            if self.global_config_path.exists():
                self._global_config.read(self.global_config_path)
        return self._global_config

    @property
    def repo_config(self) -> configparser.ConfigParser:
        """Load and return repository configuration."""
        if self._repo_config is None:
            self._repo_config = configparser.ConfigParser()
            text = self.store.get(self.STORE_KEY)
            if text:
                self._repo_config.read_string(text)
        return self._repo_config

    def _save_repo_config(self) -> None:
        buffer = io.StringIO()
        self.repo_config.write(buffer)
        self.store.set(self.STORE_KEY, buffer.getvalue())

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Args:
            section: Config section (e.g., 'user', 'core')
            key: Config key (e.g., 'name', 'email')
            fallback: Value returned when no layer (including the
                built-in defaults) supplies the key

        Returns:
            Configuration value or fallback
        """
        section, key = section.lower(), key.lower()

        env_value = os.environ.get(f"GITDESK_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value

        if self.repo_config.has_option(section, key):
            return self.repo_config.get(section, key)

        if self.global_config.has_option(section, key):
            return self.global_config.get(section, key)

        return DEFAULTS.get((section, key), fallback)

    def set(self, section: str, key: str, value: str) -> None:
        """
        Set a repository configuration value and persist it.

        Args:
            section: Config section
            key: Config key
            value: Value to set

        Raises:
            ValidationError: If core.autocrlf is given an unknown value
        """
        section, key = section.lower(), key.lower()
        value = str(value)
        if (section, key) == ('core', 'autocrlf') and value.lower() not in AUTOCRLF_VALUES:
            raise ValidationError(
                f"core.autocrlf must be one of {', '.join(AUTOCRLF_VALUES)}"
            )

        if not self.repo_config.has_section(section):
            self.repo_config.add_section(section)
        self.repo_config.set(section, key, value)
        self._save_repo_config()

    def unset(self, section: str, key: str) -> bool:
        """
        Remove a repository configuration value.

        Returns:
            True if value was removed, False if it didn't exist
        """
        section, key = section.lower(), key.lower()
        if not self.repo_config.has_option(section, key):
            return False

        self.repo_config.remove_option(section, key)
        if not self.repo_config.options(section):
            self.repo_config.remove_section(section)
        self._save_repo_config()
        return True

    def update(self, values: Dict[str, str]) -> None:
        """Set several dotted keys at once (e.g. {'user.name': 'Ada'})."""
        for name, value in values.items():
            section, key = split_key(name)
            self.set(section, key, value)

    def list_all(self) -> Dict[str, Dict[str, str]]:
        """
        List all configuration values after layering.

        Returns:
            Dict of sections to key-value dicts
        """
        result: Dict[str, Dict[str, str]] = {}
        for (section, key), value in DEFAULTS.items():
            result.setdefault(section, {})[key] = value
        for parser in (self.global_config, self.repo_config):
            for section in parser.sections():
                for key, value in parser.items(section):
                    result.setdefault(section, {})[key] = value
        return result

    def as_flat_dict(self) -> Dict[str, str]:
        """Effective configuration as {'section.key': value}."""
        flat = {}
        for section, values in self.list_all().items():
            for key in values:
                flat[f"{section}.{key}"] = self.get(section, key)
        return flat

    def get_user_identity(self) -> Tuple[str, str]:
        """
        Get user name and email for commits.

        Returns:
            Tuple of (name, email)
        """
        return self.get('user', 'name'), self.get('user', 'email')

    @property
    def autocrlf(self) -> str:
        """Line-ending policy: 'true', 'false' or 'input'."""
        return (self.get('core', 'autocrlf') or 'false').lower()

    @property
    def default_branch(self) -> str:
        return self.get('init', 'defaultbranch') or 'main'
