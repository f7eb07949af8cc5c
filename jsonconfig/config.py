"""
Configuration management using Mapping interfaces.

Implement:
- JsonConfig: MutableMapping of string entries persisted to a JSON file
- load_config / load_config_async: Load (or create) a config file
- Default config location
"""

import asyncio
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Optional
from collections.abc import Mapping, MutableMapping

from jsonconfig.base import (
    CURRENT_VERSION,
    DEFAULT_OPTIONS,
    ConfigDocument,
    JsonOptions,
    default_document,
    to_document,
    to_mapping,
)
from jsonconfig.errors import VersionMismatchError
from jsonconfig.util import (
    PathLike,
    decode_value,
    dump_document,
    encode_value,
    get_value_or_raise,
    parse_document,
    _ensure_parent_dir,
    _read_text_file,
    _write_text_file,
)

logger = logging.getLogger(__name__)

# Default config location, overridable with the JSONCONFIG_PATH environment variable
DEFAULT_CONFIG_PATH = Path.home() / '.jsonconfig' / 'config.json'
CONFIG_PATH_ENV_VAR = 'JSONCONFIG_PATH'


def get_default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_PATH_ENV_VAR) or DEFAULT_CONFIG_PATH)


class JsonConfig(MutableMapping):
    """
    String key/value configuration backed by a JSON file.

    Examples:
        >>> config = JsonConfig.load('settings.json')  # doctest: +SKIP
        >>> config.set('theme', 'dark')  # doctest: +SKIP
        >>> config.set_typed('window', {'width': 800, 'height': 600})  # doctest: +SKIP
        >>> config.get_typed('window', dict)['width']  # doctest: +SKIP
        800
        >>> config.save()  # doctest: +SKIP

    With ``auto_flush=True`` every mutation that changes the entries is
    written to disk before the call returns.
    """

    def __init__(
        self,
        document: ConfigDocument,
        path: PathLike,
        *,
        auto_flush: bool = False,
        options: JsonOptions = DEFAULT_OPTIONS,
    ):
        self._entries: Dict[str, str] = to_mapping(document)
        if len(self._entries) < len(document.entries):
            logger.warning(
                'Config %s has duplicate keys; keeping the last value of each',
                path,
            )
        self._path = Path(path)
        self.auto_flush = auto_flush
        self._options = options

    # ----------------------------------------------------------------------------------
    # Loading

    @classmethod
    def load(
        cls,
        path: PathLike,
        allow_version_mismatch: bool = False,
        *,
        auto_flush: bool = False,
        options: JsonOptions = DEFAULT_OPTIONS,
    ) -> 'JsonConfig':
        """
        Load the config at ``path``, creating a default one if there is no file.

        Args:
            path: Path to the config file
            allow_version_mismatch: Accept documents whose version is not CURRENT_VERSION
            auto_flush: Save after every mutation
            options: Codec options used for this config

        Raises:
            ParseError: If the file is not a valid config document
            VersionMismatchError: If the versions differ and that is not allowed
            OSError: If the file or its directory cannot be read or written
        """
        path = Path(path)
        if path.exists():
            document = parse_document(_read_text_file(path), options)
            _check_version(document, path, allow_version_mismatch)
            logger.debug('Loaded %d entries from %s', len(document.entries), path)
        else:
            document = default_document()
            _ensure_parent_dir(path)
            _write_text_file(path, dump_document(document, options))
            logger.debug('Created default config at %s', path)
        return cls(document, path, auto_flush=auto_flush, options=options)

    @classmethod
    async def load_async(
        cls,
        path: PathLike,
        allow_version_mismatch: bool = False,
        *,
        auto_flush: bool = False,
        options: JsonOptions = DEFAULT_OPTIONS,
    ) -> 'JsonConfig':
        """Same as ``load``, with the file I/O done off the event loop."""
        path = Path(path)
        if await asyncio.to_thread(path.exists):
            text = await asyncio.to_thread(_read_text_file, path)
            document = parse_document(text, options)
            _check_version(document, path, allow_version_mismatch)
            logger.debug('Loaded %d entries from %s', len(document.entries), path)
        else:
            document = default_document()
            text = dump_document(document, options)
            await asyncio.to_thread(_ensure_parent_dir, path)
            await asyncio.to_thread(_write_text_file, path, text)
            logger.debug('Created default config at %s', path)
        return cls(document, path, auto_flush=auto_flush, options=options)

    # ----------------------------------------------------------------------------------
    # Properties

    @property
    def path(self) -> Path:
        return self._path

    @property
    def options(self) -> JsonOptions:
        return self._options

    @property
    def entries(self) -> Mapping[str, str]:
        """Read-only view of the entries."""
        return MappingProxyType(self._entries)

    # ----------------------------------------------------------------------------------
    # Entries

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of ``key``, or ``default`` if it is not in the config."""
        return self._entries.get(key, default)

    def contains(self, key: str) -> bool:
        return key in self._entries

    def set(self, key: str, value: str) -> None:
        """Set the value of ``key``."""
        _check_key(key)
        if not isinstance(value, str):
            raise TypeError(
                f'Config values must be str, not {type(value).__name__}. '
                'Use set_typed to store other values.'
            )
        self._entries[key] = value
        self._flush_if_needed()

    def remove(self, key: str) -> bool:
        """Remove ``key``. Returns True if it was there."""
        if key not in self._entries:
            return False
        del self._entries[key]
        self._flush_if_needed()
        return True

    # ----------------------------------------------------------------------------------
    # Typed entries

    def get_typed(self, key: str, type_) -> Any:
        """
        Decode the value of ``key`` as ``type_``.

        Raises:
            DeserializationError: If ``key`` is missing or its value cannot be decoded
        """
        return decode_value(self._entries.get(key), type_, self._options, key=key)

    def set_typed(self, key: str, value: Any, type_=None) -> None:
        """Store ``value`` as JSON text under ``key``.

        Raises:
            SerializationError: If ``value`` cannot be encoded or is not a ``type_``
            TypeError: If ``key`` is not a str
        """
        _check_key(key)
        self._entries[key] = encode_value(value, type_, self._options)
        self._flush_if_needed()

    def modify_typed(self, key: str, type_, mutator: Callable[[Any], Any]) -> Any:
        """
        Decode the value of ``key``, apply ``mutator`` and store the result.

        ``mutator`` either returns the new value, or returns None after
        modifying its argument in place.

        Returns:
            The stored value

        Raises:
            KeyNotFoundError: If ``key`` is not in the config
            DeserializationError: If the current value cannot be decoded
            SerializationError: If the mutated value is not a ``type_``
        """
        text = get_value_or_raise(self._entries, key)
        value = decode_value(text, type_, self._options, key=key)
        result = mutator(value)
        if result is None:
            result = value
        self._entries[key] = encode_value(result, type_, self._options)
        self._flush_if_needed()
        return result

    # ----------------------------------------------------------------------------------
    # Persistence

    def to_document(self) -> ConfigDocument:
        return to_document(self._entries, CURRENT_VERSION)

    def save(self) -> None:
        """Write all entries to the config file, replacing its content."""
        _write_text_file(self._path, dump_document(self.to_document(), self._options))
        logger.debug('Saved %d entries to %s', len(self._entries), self._path)

    async def save_async(self) -> None:
        """Same as ``save``, with the file write done off the event loop."""
        text = dump_document(self.to_document(), self._options)
        await asyncio.to_thread(_write_text_file, self._path, text)
        logger.debug('Saved %d entries to %s', len(self._entries), self._path)

    def _flush_if_needed(self) -> None:
        if self.auto_flush:
            self.save()

    # ----------------------------------------------------------------------------------
    # Mapping interface

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __setitem__(self, key: str, value: str) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.remove(key):
            raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({str(self._path)!r}, entries={len(self)})'


def _check_key(key: Any) -> None:
    if not isinstance(key, str):
        raise TypeError(f'Config keys must be str, not {type(key).__name__}')


def _check_version(
    document: ConfigDocument, path: Path, allow_version_mismatch: bool
) -> None:
    if document.config_version == CURRENT_VERSION:
        return
    if not allow_version_mismatch:
        raise VersionMismatchError(CURRENT_VERSION, document.config_version)
    logger.warning(
        'Config %s has version %r (current is %r); loading it as is',
        path,
        document.config_version,
        CURRENT_VERSION,
    )


def load_config(
    path: PathLike | None = None,
    allow_version_mismatch: bool = False,
    **kwargs,
) -> JsonConfig:
    """Load a config, from the default location if ``path`` is not given."""
    if path is None:
        path = get_default_config_path()
    return JsonConfig.load(path, allow_version_mismatch, **kwargs)


async def load_config_async(
    path: PathLike | None = None,
    allow_version_mismatch: bool = False,
    **kwargs,
) -> JsonConfig:
    if path is None:
        path = get_default_config_path()
    return await JsonConfig.load_async(path, allow_version_mismatch, **kwargs)
