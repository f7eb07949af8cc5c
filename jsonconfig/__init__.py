"""
Public API for the jsonconfig package.
Import the main user-facing functions and classes.
"""

import logging

from jsonconfig.config import (
    JsonConfig,
    load_config,
    load_config_async,
    get_default_config_path,
    DEFAULT_CONFIG_PATH,
)
from jsonconfig.base import (
    CURRENT_VERSION,
    DEFAULT_OPTIONS,
    JsonOptions,
    ConfigDocument,
    ConfigEntry,
    default_document,
    to_document,
    to_mapping,
)
from jsonconfig.errors import (
    JsonConfigError,
    ParseError,
    VersionMismatchError,
    KeyNotFoundError,
    DeserializationError,
    SerializationError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Store
    'JsonConfig',
    'load_config',
    'load_config_async',
    'get_default_config_path',
    'DEFAULT_CONFIG_PATH',
    # Document model
    'CURRENT_VERSION',
    'DEFAULT_OPTIONS',
    'JsonOptions',
    'ConfigDocument',
    'ConfigEntry',
    'default_document',
    'to_document',
    'to_mapping',
    # Errors
    'JsonConfigError',
    'ParseError',
    'VersionMismatchError',
    'KeyNotFoundError',
    'DeserializationError',
    'SerializationError',
]
