"""Tests for pattern parsing and value extraction."""

import re

import pytest

from ambient_light.core.errors import ConfigError, ExtractionError
from ambient_light.domain.extractor import (
    DEFAULT_STATUS_PATTERN,
    extract_value,
    parse_pattern,
)


def test_default_pattern_extracts_decimal():
    assert extract_value(DEFAULT_STATUS_PATTERN, "light=42.5 lux", 1) == 42.5


def test_default_pattern_extracts_negative_integer():
    assert extract_value(DEFAULT_STATUS_PATTERN, "value: -7", 1) == -7.0


def test_no_match_raises():
    with pytest.raises(ExtractionError, match="no match"):
        extract_value(DEFAULT_STATUS_PATTERN, "sensor offline", 1)


def test_group_index_beyond_pattern_groups_raises():
    pattern = re.compile(r"lux=([0-9.]+)")
    with pytest.raises(ExtractionError, match="missing group"):
        extract_value(pattern, "lux=12.5", 2)


def test_optional_group_not_participating_raises():
    # group 2 is the fractional part, absent for an integer reading
    with pytest.raises(ExtractionError, match="missing group"):
        extract_value(DEFAULT_STATUS_PATTERN, "light=42 lux", 2)


def test_second_group_selected():
    pattern = re.compile(r"temp=([0-9.]+) lux=([0-9.]+)")
    assert extract_value(pattern, "temp=21.5 lux=830.25", 2) == 830.25


def test_captured_text_not_a_number():
    pattern = re.compile(r"lux=(\w+)")
    with pytest.raises(ExtractionError):
        extract_value(pattern, "lux=dark", 1)


def test_value_is_not_clamped():
    pattern = re.compile(r"(\d+)")
    assert extract_value(pattern, "lux 120000", 1) == 120000.0


def test_extraction_is_deterministic():
    body = '{"lux": 311.7}'
    results = {extract_value(DEFAULT_STATUS_PATTERN, body, 1) for _ in range(5)}
    assert results == {311.7}


class TestParsePattern:
    def test_plain_string(self):
        p = parse_pattern(r"lux=(\d+)")
        assert p.pattern == r"lux=(\d+)"

    def test_literal_with_flags(self):
        p = parse_pattern(r"/LUX=(\d+)/i")
        assert p.pattern == r"LUX=(\d+)"
        assert p.flags & re.IGNORECASE
        assert extract_value(p, "lux=55", 1) == 55.0

    def test_literal_global_flag_ignored(self):
        p = parse_pattern(r"/(\d+)/g")
        assert extract_value(p, "a 3 b 4", 1) == 3.0

    def test_compiled_pattern_passes_through(self):
        compiled = re.compile("x")
        assert parse_pattern(compiled) is compiled

    @pytest.mark.parametrize("value", [42, None, ["(\\d+)"], {"pattern": "x"}])
    def test_unsupported_type(self, value):
        with pytest.raises(ConfigError):
            parse_pattern(value)

    def test_invalid_regex(self):
        with pytest.raises(ConfigError):
            parse_pattern("(unclosed")

    def test_unknown_flag(self):
        with pytest.raises(ConfigError):
            parse_pattern(r"/(\d+)/q")
