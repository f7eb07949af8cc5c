"""
Core data models for the jsonconfig package.

Define:
- CURRENT_VERSION: Version stamped into every saved document
- JsonOptions: Configuration for the JSON codec (depth limit, comments, indent)
- ConfigEntry, ConfigDocument: The on-disk shape of a config file
- to_document, to_mapping: Explicit conversions between the document and the live mapping
"""

from typing import Any, List, Dict
from collections.abc import Mapping
from dataclasses import dataclass
from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator


CURRENT_VERSION = '1.0'


@dataclass(frozen=True)
class JsonOptions:
    """Configuration for encoding and decoding config documents and values."""

    max_depth: int = 8
    skip_comments: bool = True
    indent: int | None = 2


DEFAULT_OPTIONS = JsonOptions()


def _fold_keys(data: Any, names: Mapping[str, str]) -> Any:
    """Rename keys of ``data`` matching ``names`` case-insensitively to their canonical form."""
    if not isinstance(data, Mapping):
        return data
    folded = {}
    for k, v in data.items():
        canonical = names.get(k.lower(), k) if isinstance(k, str) else k
        folded[canonical] = v
    return folded


class ConfigEntry(BaseModel):
    """A single key/value pair of the config."""

    model_config = ConfigDict(populate_by_name=True)

    key: StrictStr = Field(alias='Key')
    value: StrictStr = Field(alias='Value')

    @model_validator(mode='before')
    @classmethod
    def _case_insensitive_names(cls, data: Any) -> Any:
        return _fold_keys(data, {'key': 'Key', 'value': 'Value'})


class ConfigDocument(BaseModel):
    """The root object of a config file.

    Property names are matched case-insensitively, so ``configversion`` or
    ``ENTRIES`` in a hand-edited file are accepted.
    """

    model_config = ConfigDict(populate_by_name=True)

    config_version: StrictStr = Field(alias='ConfigVersion')
    entries: List[ConfigEntry] = Field(default_factory=list, alias='Entries')

    @model_validator(mode='before')
    @classmethod
    def _case_insensitive_names(cls, data: Any) -> Any:
        return _fold_keys(
            data, {'configversion': 'ConfigVersion', 'entries': 'Entries'}
        )


def default_document() -> ConfigDocument:
    """A document with the current version and no entries."""
    return ConfigDocument(config_version=CURRENT_VERSION, entries=[])


def to_document(
    mapping: Mapping[str, str], version: str = CURRENT_VERSION
) -> ConfigDocument:
    """Build the document to persist from the live mapping."""
    return ConfigDocument(
        config_version=version,
        entries=[ConfigEntry(key=k, value=v) for k, v in mapping.items()],
    )


def to_mapping(document: ConfigDocument) -> Dict[str, str]:
    """Project the entries of a document into a dict (last duplicate wins)."""
    return {entry.key: entry.value for entry in document.entries}
