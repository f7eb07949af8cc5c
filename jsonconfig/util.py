"""
JSON codec and file helpers.

Every encode/decode call takes an explicit ``JsonOptions`` value; there is no
module-level serializer state.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Union

from pydantic import TypeAdapter, ValidationError
from pydantic import PydanticSchemaGenerationError
from pydantic_core import PydanticSerializationError

from jsonconfig.base import ConfigDocument, JsonOptions, DEFAULT_OPTIONS
from jsonconfig.errors import (
    ParseError,
    KeyNotFoundError,
    DeserializationError,
    SerializationError,
)


PathLike = Union[str, Path]


# --------------------------------------------------------------------------------------
# Text level


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments that are outside of string literals.

    >>> strip_json_comments('{"a": 1 // one\\n}')
    '{"a": 1 \\n}'
    >>> strip_json_comments('{"url": "http://x"}')
    '{"url": "http://x"}'
    """
    out = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        c = text[i]
        if in_string:
            out.append(c)
            if c == '\\' and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if c == '"':
                in_string = False
            i += 1
        elif c == '"':
            in_string = True
            out.append(c)
            i += 1
        elif text.startswith('//', i):
            end = text.find('\n', i)
            if end == -1:
                break
            i = end  # keep the newline
        elif text.startswith('/*', i):
            end = text.find('*/', i + 2)
            if end == -1:
                raise ParseError(f'Unterminated block comment at position {i}')
            out.append(' ')
            i = end + 2
        else:
            out.append(c)
            i += 1
    return ''.join(out)


def json_depth(obj: Any) -> int:
    """Return the nesting depth of containers in ``obj`` (a scalar has depth 0).

    >>> json_depth(1), json_depth([]), json_depth({'a': [1, {'b': 2}]})
    (0, 1, 3)
    """
    deepest = 0
    stack = [(obj, 1)]
    while stack:
        item, depth = stack.pop()
        if isinstance(item, dict):
            children = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in children)
    return deepest


def loads_json(text: str, options: JsonOptions = DEFAULT_OPTIONS) -> Any:
    """Parse JSON text according to ``options``, raising ``ParseError`` on failure."""
    if options.skip_comments:
        text = strip_json_comments(text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f'Invalid JSON: {e}') from e
    except RecursionError as e:
        raise ParseError(
            f'JSON nesting depth exceeds the maximum of {options.max_depth}'
        ) from e
    depth = json_depth(data)
    if depth > options.max_depth:
        raise ParseError(
            f'JSON nesting depth {depth} exceeds the maximum of {options.max_depth}'
        )
    return data


# --------------------------------------------------------------------------------------
# Documents


def parse_document(text: str, options: JsonOptions = DEFAULT_OPTIONS) -> ConfigDocument:
    """Parse the text of a config file into a ``ConfigDocument``."""
    data = loads_json(text, options)
    try:
        return ConfigDocument.model_validate(data)
    except ValidationError as e:
        raise ParseError(f'Invalid config document:\n{e}') from e


def dump_document(document: ConfigDocument, options: JsonOptions = DEFAULT_OPTIONS) -> str:
    """Serialize a ``ConfigDocument`` to (indented) JSON text."""
    return json.dumps(
        document.model_dump(by_alias=True), indent=options.indent, ensure_ascii=False
    )


# --------------------------------------------------------------------------------------
# Typed values


@lru_cache
def _type_adapter(type_) -> TypeAdapter:
    return TypeAdapter(type_)


def encode_value(value: Any, type_=None, options: JsonOptions = DEFAULT_OPTIONS) -> str:
    """Encode ``value`` to compact JSON text.

    ``type_`` defaults to the runtime type of ``value``; pass it explicitly for
    generic types such as ``list[int]``. An explicit ``type_`` must match
    ``value`` exactly (strict validation, no coercion).
    """
    check_type = type_ is not None
    type_ = type(value) if type_ is None else type_
    try:
        adapter = _type_adapter(type_)
        if check_type:
            adapter.validate_python(value, strict=True)
        data = adapter.dump_python(value, mode='json')
    except ValidationError as e:
        raise SerializationError(f'Value {value!r} is not a valid {type_!r}:\n{e}') from e
    except (PydanticSerializationError, PydanticSchemaGenerationError) as e:
        raise SerializationError(f'Cannot encode {type_!r} value: {e}') from e
    depth = json_depth(data)
    if depth > options.max_depth:
        raise SerializationError(
            f'Value nesting depth {depth} exceeds the maximum of {options.max_depth}'
        )
    return json.dumps(data, ensure_ascii=False)


def decode_value(
    text: str | None, type_, options: JsonOptions = DEFAULT_OPTIONS, *, key=None
) -> Any:
    """Decode JSON text as ``type_``.

    ``text`` is ``None`` when the key was not found; that is a decode failure
    too, since there is nothing to decode.
    """
    if text is None:
        raise DeserializationError(f'No value to decode for key {key!r}', key=key)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DeserializationError(
            f'Value of key {key!r} is not valid JSON: {e}', key=key
        ) from e
    except RecursionError as e:
        raise DeserializationError(
            f'Value of key {key!r} is nested deeper than {options.max_depth}',
            key=key,
        ) from e
    depth = json_depth(data)
    if depth > options.max_depth:
        raise DeserializationError(
            f'Value of key {key!r} has nesting depth {depth}, '
            f'the maximum is {options.max_depth}',
            key=key,
        )
    try:
        return _type_adapter(type_).validate_python(data)
    except ValidationError as e:
        raise DeserializationError(
            f'Value of key {key!r} cannot be decoded as {type_!r}:\n{e}', key=key
        ) from e


# --------------------------------------------------------------------------------------
# Mappings and files


def get_value_or_raise(mapping: Mapping[str, str], key: str) -> str:
    """Like ``mapping[key]`` but raises ``KeyNotFoundError``."""
    if key not in mapping:
        raise KeyNotFoundError(key)
    return mapping[key]


def _read_text_file(path: PathLike) -> str:
    """Read a UTF-8 text file, with or without a byte order mark."""
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f'{path} is not UTF-8 text: {e}') from e


def _write_text_file(path: PathLike, text: str) -> None:
    """Write ``text`` to ``path``, truncating whatever was there."""
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def _ensure_parent_dir(path: PathLike) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
