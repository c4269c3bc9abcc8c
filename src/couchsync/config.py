import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from couchsync.utils import deep_merge_dicts, load_settings


DEFAULTS: Dict[str, Any] = {
    'couch_url': 'http://127.0.0.1:5984',
    'db_name': None,
    'username': None,
    'password': None,
    'timeout': 30.0,
    'log_level': 'info',
}


class ConnectionSettings(BaseModel):
    """Settings used to open a CouchDB connection"""
    url: str = DEFAULTS['couch_url']
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = Field(default=DEFAULTS['timeout'], gt=0)


class Config:
    """Static configuration class - no instances, only class methods"""
    _config: Dict[str, Any] = dict(DEFAULTS)

    @classmethod
    def initialize(cls, config_file: str = '') -> Dict[str, Any]:
        """Initialize the config with values from config file"""
        cls._config = cls._load_system_config(config_file)
        return cls._config

    @classmethod
    def reset(cls) -> None:
        """Drop any loaded values and go back to the defaults"""
        cls._config = dict(DEFAULTS)

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get a configuration value by key"""
        return cls._config.get(key, default)

    @classmethod
    def get_connection_settings(cls) -> ConnectionSettings:
        """Build validated connection settings from config data"""
        return ConnectionSettings.model_validate({
            'url': cls._config.get('couch_url') or DEFAULTS['couch_url'],
            'username': cls._config.get('username'),
            'password': cls._config.get('password'),
            'timeout': cls._config.get('timeout', DEFAULTS['timeout']),
        })

    @classmethod
    def get_db_name(cls) -> Optional[str]:
        """Name of the default database, if one is configured"""
        return cls._config.get('db_name') or None

    @classmethod
    def _load_system_config(cls, config_file: str) -> Dict[str, Any]:
        """
        Load and return the configuration merged over the defaults.
        If the file is not found, return the default configuration values.
        """
        config = dict(DEFAULTS)
        if len(config_file) > 0:
            config_path = Path(config_file)
            if config_path.exists():
                return deep_merge_dicts(config, load_settings(config_path))
        logging.warning(f'Configuration file "{config_file}" not found. Using defaults.')
        return config
