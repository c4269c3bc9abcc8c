import inspect
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import json5
import yaml


def load_settings(config_file: Optional[Path], required: bool = True) -> Dict[str, Any]:
    """Load a settings file. The format follows the suffix: .json5, .yaml/.yml, otherwise JSON."""
    try:
        if config_file:
            suffix = config_file.suffix.lower()
            with open(config_file, 'r') as config_handle:
                if suffix == '.json5':
                    settings = json5.load(config_handle)
                elif suffix in ('.yaml', '.yml'):
                    settings = yaml.safe_load(config_handle)
                else:
                    settings = json.load(config_handle)
            return settings or {}
    except Exception as e:
        if required:
            logging.error(f"Error loading config file {config_file}: {e}")
        return {}

    return {}


def deep_merge_dicts(dest: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if (
            key in dest
            and isinstance(dest[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge_dicts(dest[key], value)
        else:
            dest[key] = value
    return dest


def setup_logging(level: str = 'info') -> None:
    """Configure the root logger from a level name such as 'debug' or 'WARNING'."""
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        logging.warning(f"Unknown log level '{level}', using INFO")
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logging.getLogger().setLevel(numeric)


async def maybe_await(value: Any) -> Any:
    """Await value when a callback turned out to be a coroutine function"""
    if inspect.isawaitable(value):
        return await value
    return value
