"""
Tests for pseudo-file parsers.
"""

import logging
import math

import pytest

from cgroupv2_exporter.parsers import InvalidValuePolicy, ParseError, Parser, ParserKind, parse


def single(prefix: str) -> Parser:
    return Parser(ParserKind.SINGLE_VALUE, prefix)


def flat(prefix: str, policy: InvalidValuePolicy = InvalidValuePolicy.ZERO) -> Parser:
    return Parser(ParserKind.FLAT_KEY_VALUE, prefix, policy)


def nested(prefix: str, policy: InvalidValuePolicy = InvalidValuePolicy.ZERO) -> Parser:
    return Parser(ParserKind.NESTED_KEY_VALUE, prefix, policy)


class TestSingleValue:
    def test_number(self) -> None:
        assert parse(single("memory_current"), "5678") == {"memory_current": 5678.0}

    def test_trailing_newline(self) -> None:
        assert single("memory_current").parse("5678\n") == {"memory_current": 5678.0}

    def test_float(self) -> None:
        assert single("x").parse(" 0.25 \n") == {"x": 0.25}

    def test_max_is_infinity(self) -> None:
        result = single("memory_high").parse("max\n")

        assert list(result) == ["memory_high"]
        assert math.isinf(result["memory_high"]) and result["memory_high"] > 0

    @pytest.mark.parametrize("content", ["", "\n", "abc", "12 34", "Max"])
    def test_non_numeric_fails(self, content: str) -> None:
        with pytest.raises(ParseError):
            single("memory_current").parse(content)


class TestFlatKeyValue:
    def test_lines(self) -> None:
        result = flat("memory_stat").parse("anon 1024\nfile 2048\nkernel 0\n")

        assert result == {
            "memory_stat_anon": 1024.0,
            "memory_stat_file": 2048.0,
            "memory_stat_kernel": 0.0,
        }

    def test_malformed_lines_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING)

        result = flat("memory_stat").parse("anon 1\nthree fields here\nlonely\nfile 2\n")

        assert result == {"memory_stat_anon": 1.0, "memory_stat_file": 2.0}
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 2

    def test_blank_lines_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING)

        assert flat("p").parse("\na 1\n\n") == {"p_a": 1.0}
        assert not caplog.records

    def test_invalid_value_is_zero_by_default(self) -> None:
        assert flat("p").parse("a notanumber\nb 2\n") == {"p_a": 0.0, "p_b": 2.0}

    def test_invalid_value_skipped_with_policy(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING)

        result = flat("p", InvalidValuePolicy.SKIP).parse("a notanumber\nb 2\n")

        assert result == {"p_b": 2.0}
        assert "p_a" in caplog.text

    def test_empty_file(self) -> None:
        assert flat("p").parse("") == {}


class TestNestedKeyValue:
    def test_pressure_file(self) -> None:
        content = "some avg10=1.23 avg60=4.56\nfull avg10=5.67 avg60=8.90"

        result = nested("memory_pressure").parse(content)

        assert result == {
            "memory_pressure_some_avg10": 1.23,
            "memory_pressure_some_avg60": 4.56,
            "memory_pressure_full_avg10": 5.67,
            "memory_pressure_full_avg60": 8.90,
        }

    def test_io_stat_device_groups(self) -> None:
        content = "253:0 rbytes=1024 wbytes=2048\n8:0 rbytes=1 wbytes=2\n"

        result = nested("io_stat").parse(content)

        assert result["io_stat_253:0_rbytes"] == 1024.0
        assert result["io_stat_8:0_wbytes"] == 2.0

    def test_malformed_tokens_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING)

        result = nested("p").parse("some avg10=1 bogus a=b=c avg60=2\n")

        assert result == {"p_some_avg10": 1.0, "p_some_avg60": 2.0}
        assert len(caplog.records) == 2

    def test_short_line_does_not_stop_parsing(self) -> None:
        result = nested("p").parse("some\nfull avg10=3\n")

        assert result == {"p_full_avg10": 3.0}

    def test_invalid_value_policies(self) -> None:
        content = "some avg10=x avg60=2\n"

        assert nested("p").parse(content) == {"p_some_avg10": 0.0, "p_some_avg60": 2.0}
        assert nested("p", InvalidValuePolicy.SKIP).parse(content) == {"p_some_avg60": 2.0}


def test_parser_is_hashable_value() -> None:
    assert single("a") == single("a")
    assert len({single("a"), single("a"), flat("a")}) == 2
