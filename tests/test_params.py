"""
Parameter string tests

Tests parsing, serialization and the typed helpers used by directive
consumers.
"""

import pytest

from matcha.lib.params import (
    flag_get,
    integer_get,
    params_parse,
    params_serialize,
    params_splitHead,
)


class TestParamsParse:
    """Test params_parse()"""

    def test_quoted_value_keeps_commas(self):
        """Quoted values keep their separators"""
        assert params_parse('bg="rgba(0,0,0,0.5)", shadow=lg') == {
            "bg": "rgba(0,0,0,0.5)",
            "shadow": "lg",
        }

    def test_single_quotes(self):
        """Single-quoted values work like double-quoted ones"""
        assert params_parse("title='a, b'") == {"title": "a, b"}

    def test_flag(self):
        """A key without = is a true flag"""
        assert params_parse("glass, shadow=lg") == {"glass": "true", "shadow": "lg"}

    def test_last_key_wins(self):
        """Duplicate keys keep the last value"""
        assert params_parse("a=1, a=2") == {"a": "2"}

    def test_escaped_comma(self):
        """An escaped comma is part of an unquoted value"""
        assert params_parse(r"title=a\,b, x=1") == {"title": "a,b", "x": "1"}

    @pytest.mark.parametrize("raw", ["", None, "   "])
    def test_empty(self, raw):
        """Empty input yields an empty mapping"""
        assert params_parse(raw) == {}

    def test_junk_skipped(self):
        """Text that is not a key is skipped up to the next comma"""
        assert params_parse("!!!, a=1") == {"a": "1"}


class TestParamsSerialize:
    """Test params_serialize() against params_parse()"""

    def test_quotes_only_when_needed(self):
        """Plain values stay bare, values with separators are quoted"""
        assert params_serialize({"bg": "rgba(0,0,0,0.5)", "shadow": "lg"}) == 'bg="rgba(0,0,0,0.5)", shadow=lg'

    @pytest.mark.parametrize("raw", [
        'bg="rgba(0,0,0,0.5)", shadow=lg',
        "title='say \"hi\", then go'",
        "glass, radius=8px",
        r"text=a\,b",
    ])
    def test_parse_serialize_idempotent(self, raw):
        """Serializing a parsed mapping parses back to the same mapping"""
        parsed = params_parse(raw)
        assert params_parse(params_serialize(parsed)) == parsed


class TestHelpers:
    """Test params_splitHead(), flag_get() and integer_get()"""

    def test_split_head(self):
        """A leading positional token is separated from the pairs"""
        assert params_splitHead("cols, ratio=1:2") == ("cols", "ratio=1:2")
        assert params_splitHead(" zoom") == ("zoom", "")
        assert params_splitHead("src=a.mp4") == ("", "src=a.mp4")
        assert params_splitHead(None) == ("", "")

    def test_flag_get(self):
        """false, 0, no and off are false; missing keys use the default"""
        params = {"a": "false", "b": "true", "c": "off"}
        assert flag_get(params, "a") is False
        assert flag_get(params, "b") is True
        assert flag_get(params, "c") is False
        assert flag_get(params, "d", True) is True

    def test_integer_get(self):
        """Leading integers are read, anything else falls back"""
        assert integer_get({"d": "300ms"}, "d") == 300
        assert integer_get({"d": "fast"}, "d", 5) == 5
        assert integer_get({}, "d", 7) == 7
