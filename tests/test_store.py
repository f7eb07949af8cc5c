"""
Tests for the load / mutate / save lifecycle of JsonConfig.
"""

import asyncio
import json
from dataclasses import dataclass, field
from unittest.mock import patch

import pytest

from jsonconfig import (
    JsonConfig,
    JsonOptions,
    load_config,
    load_config_async,
    VersionMismatchError,
    ParseError,
    CURRENT_VERSION,
)


@dataclass
class Profile:
    name: str
    tags: list = field(default_factory=list)


@pytest.fixture
def config_path(tmp_path):
    """Path of a config file that does not exist yet, in a missing directory."""
    return tmp_path / 'nested' / 'dir' / 'config.json'


def _read_json(path):
    return json.loads(path.read_text(encoding='utf-8'))


class TestDefaultCreation:
    """Loading a path with no file."""

    def test_creates_default_file(self, config_path):
        config = JsonConfig.load(config_path)

        assert len(config) == 0
        assert config_path.exists()
        assert _read_json(config_path) == {'ConfigVersion': '1.0', 'Entries': []}

    def test_default_file_is_indented(self, config_path):
        JsonConfig.load(config_path)
        assert config_path.read_text(encoding='utf-8').startswith(
            '{\n  "ConfigVersion": "1.0"'
        )


class TestRoundTrip:
    """Save then reload yields the same entries."""

    def test_round_trip(self, config_path):
        entries = {'b': '2', 'a': '1', 'unicode': 'héllo ✓', 'empty': ''}
        config = JsonConfig.load(config_path)
        for k, v in entries.items():
            config.set(k, v)
        config.save()

        reloaded = JsonConfig.load(config_path)
        assert dict(reloaded) == entries

    def test_save_after_removal_truncates(self, config_path):
        config = JsonConfig.load(config_path)
        config.set('long', 'x' * 500)
        config.save()
        config.remove('long')
        config.save()

        assert _read_json(config_path) == {'ConfigVersion': '1.0', 'Entries': []}

    def test_save_stamps_current_version(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text('{"ConfigVersion": "0.9", "Entries": []}')
        config = JsonConfig.load(config_path, allow_version_mismatch=True)
        config.save()

        assert _read_json(config_path)['ConfigVersion'] == CURRENT_VERSION

    def test_typed_round_trip(self, config_path):
        config = JsonConfig.load(config_path)
        profile = Profile('ada', ['admin'])
        config.set_typed('profile', profile)
        config.set_typed('ratio', 0.25)
        config.set_typed('flag', True)
        config.set_typed('nothing', None)
        config.save()

        reloaded = JsonConfig.load(config_path)
        assert reloaded.get_typed('profile', Profile) == profile
        assert reloaded.get_typed('ratio', float) == 0.25
        assert reloaded.get_typed('flag', bool) is True
        assert reloaded.get_typed('nothing', type(None)) is None


class TestVersionGate:
    """Version check on load."""

    @pytest.fixture
    def old_config(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            json.dumps(
                {'ConfigVersion': '0.9', 'Entries': [{'Key': 'k', 'Value': 'v'}]}
            )
        )
        return config_path

    def test_mismatch_fails(self, old_config):
        with pytest.raises(VersionMismatchError) as excinfo:
            JsonConfig.load(old_config)
        assert excinfo.value.expected == '1.0'
        assert excinfo.value.found == '0.9'

    def test_mismatch_allowed(self, old_config):
        config = JsonConfig.load(old_config, allow_version_mismatch=True)
        assert dict(config) == {'k': 'v'}

    def test_mismatch_fails_async(self, old_config):
        with pytest.raises(VersionMismatchError):
            asyncio.run(JsonConfig.load_async(old_config))


class TestAutoFlush:
    """Saving after mutations."""

    def test_set_with_auto_flush_writes(self, config_path):
        config = JsonConfig.load(config_path, auto_flush=True)
        config.set('k', 'v')

        assert dict(JsonConfig.load(config_path)) == {'k': 'v'}

    def test_set_without_auto_flush_does_not_write(self, config_path):
        config = JsonConfig.load(config_path)
        before = config_path.read_text()
        config.set('k', 'v')
        config.set_typed('n', 1)

        assert config_path.read_text() == before
        config.save()
        assert dict(JsonConfig.load(config_path)) == {'k': 'v', 'n': '1'}

    def test_every_mutation_flushes(self, config_path):
        config = JsonConfig.load(config_path, auto_flush=True)
        with patch('jsonconfig.config._write_text_file') as write:
            config.set('a', '1')
            config.set_typed('b', [1])
            config.modify_typed('b', list[int], lambda xs: xs + [2])
            config.remove('a')
        assert write.call_count == 4

    def test_removing_absent_key_does_not_write(self, config_path):
        config = JsonConfig.load(config_path, auto_flush=True)
        with patch('jsonconfig.config._write_text_file') as write:
            assert config.remove('absent') is False
        write.assert_not_called()

    def test_failed_modify_does_not_write(self, config_path):
        config = JsonConfig.load(config_path, auto_flush=True)
        with patch('jsonconfig.config._write_text_file') as write:
            with pytest.raises(KeyError):
                config.modify_typed('absent', int, lambda n: n)
        write.assert_not_called()

    def test_auto_flush_can_be_toggled(self, config_path):
        config = JsonConfig.load(config_path)
        config.auto_flush = True
        config['k'] = 'v'

        assert _read_json(config_path)['Entries'] == [{'Key': 'k', 'Value': 'v'}]


class TestLoadFailures:
    """Loading is all-or-nothing."""

    def test_invalid_document(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text('{"ConfigVersion": "1.0", "Entries": [{"Key": 1}]}')
        with pytest.raises(ParseError):
            JsonConfig.load(config_path)

    def test_too_deep(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            '{"ConfigVersion": "1.0", "Entries": [], "Extra": [[[[[[[[]]]]]]]]}'
        )
        with pytest.raises(ParseError, match='depth'):
            JsonConfig.load(config_path)

    def test_very_deep(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            '{"ConfigVersion": "1.0", "Entries": [], "X": '
            + '[' * 100000
            + ']' * 100000
            + '}'
        )
        with pytest.raises(ParseError):
            JsonConfig.load(config_path)

    def test_not_utf8(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_bytes(
            b'{"ConfigVersion": "1.0", "Entries": [{"Key": "a", "Value": "\xff"}]}'
        )
        with pytest.raises(ParseError):
            JsonConfig.load(config_path)
        with pytest.raises(ParseError):
            asyncio.run(JsonConfig.load_async(config_path))

    def test_byte_order_mark_is_accepted(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_bytes(
            b'\xef\xbb\xbf{"ConfigVersion": "1.0", '
            b'"Entries": [{"Key": "a", "Value": "b"}]}'
        )
        assert dict(JsonConfig.load(config_path)) == {'a': 'b'}

    def test_comments_rejected_when_not_skipped(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text('{"ConfigVersion": "1.0"} // note')
        assert len(JsonConfig.load(config_path)) == 0
        with pytest.raises(ParseError):
            JsonConfig.load(config_path, options=JsonOptions(skip_comments=False))


class TestAsync:
    """Async load and save."""

    def test_load_async_creates_default(self, config_path):
        config = asyncio.run(load_config_async(config_path))

        assert len(config) == 0
        assert _read_json(config_path) == {'ConfigVersion': '1.0', 'Entries': []}

    def test_save_async_round_trip(self, config_path):
        async def scenario():
            config = await JsonConfig.load_async(config_path)
            config.set('a', '1')
            config.set_typed('b', {'x': 1})
            await config.save_async()
            return await JsonConfig.load_async(config_path)

        reloaded = asyncio.run(scenario())
        assert dict(reloaded) == {'a': '1', 'b': '{"x": 1}'}
        assert dict(load_config(config_path)) == dict(reloaded)
