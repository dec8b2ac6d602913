"""
Tests for configuration loading and validation.
"""

from pathlib import Path

import pytest

from cgroupv2_exporter.config.lexer import LexerError, TokenType, tokenize
from cgroupv2_exporter.config.loader import ConfigError, ConfigLoader
from cgroupv2_exporter.config.parser import ConfigSyntaxError, parse_config
from cgroupv2_exporter.config.schema import Config, SchemaError, parse_listen_address
from cgroupv2_exporter.parsers import InvalidValuePolicy

EXAMPLE_CONFIG = Path(__file__).parent.parent / "config.example.conf"


class TestLexer:
    def test_token_types(self) -> None:
        tokens = tokenize('web { port 9753; path "/a b"; memory.stat on; } # comment')

        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER,
            TokenType.LBRACE,
            TokenType.IDENTIFIER,
            TokenType.NUMBER,
            TokenType.SEMICOLON,
            TokenType.IDENTIFIER,
            TokenType.STRING,
            TokenType.SEMICOLON,
            TokenType.IDENTIFIER,
            TokenType.BOOLEAN,
            TokenType.SEMICOLON,
            TokenType.RBRACE,
            TokenType.EOF,
        ]
        assert tokens[3].value == 9753
        assert tokens[6].value == "/a b"
        assert tokens[8].value == "memory.stat"
        assert tokens[9].value is True

    def test_positions(self) -> None:
        tokens = tokenize("a;\n  b;")

        assert (tokens[2].line, tokens[2].column) == (2, 3)

    def test_string_escapes(self) -> None:
        assert tokenize(r'"say \"hi\"\n"')[0].value == 'say "hi"\n'

    def test_unterminated_string(self) -> None:
        with pytest.raises(LexerError, match="Unterminated"):
            tokenize('path "/sys/fs')

    def test_unexpected_character(self) -> None:
        with pytest.raises(LexerError) as exc_info:
            tokenize("port = 1;")

        assert exc_info.value.column == 6


class TestParser:
    def test_blocks_and_directives(self) -> None:
        document = parse_config(
            """
            cgroups {
                path "/a";
                path "/b" "/c";
            }
            collectors { memory.stat on; }
            """
        )

        cgroups = document.get_block("cgroups")
        assert cgroups.get_all_values("path") == ["/a", "/b", "/c"]
        assert cgroups.line == 2
        assert document.get_block("collectors").get_value("memory.stat") is True
        assert document.get_block("missing") is None

    def test_last_directive_wins(self) -> None:
        document = parse_config("web { port 1; port 2; }")

        assert document.get_block("web").get_value("port") == 2

    def test_missing_semicolon(self) -> None:
        with pytest.raises(ConfigSyntaxError):
            parse_config("web { port 1 }")

    def test_unclosed_block(self) -> None:
        with pytest.raises(ConfigSyntaxError, match="close 'web'"):
            parse_config("web { port 1;")


class TestSchema:
    def test_defaults(self) -> None:
        config = Config()

        assert config.web.listen_address == ""
        assert config.web.port == 9753
        assert config.web.telemetry_path == "/metrics"
        assert config.cgroups.paths == []
        assert config.collectors.invalid_values is InvalidValuePolicy.ZERO
        assert config.collectors.overrides == {}

    def test_collectors_block(self) -> None:
        config = ConfigLoader().load_string(
            """
            collectors {
                disable_defaults on;
                invalid_values skip;
                only memory.current memory.stat;
                memory.stat on;
                memory.high off;
            }
            """
        )

        assert config.collectors.disable_defaults is True
        assert config.collectors.invalid_values is InvalidValuePolicy.SKIP
        assert config.collectors.only == ["memory.current", "memory.stat"]
        assert config.collectors.overrides == {"memory.stat": True, "memory.high": False}

    def test_collector_switch_must_be_boolean(self) -> None:
        with pytest.raises(ConfigError, match="memory.stat"):
            ConfigLoader().load_string("collectors { memory.stat 1; }")

    def test_invalid_policy(self) -> None:
        with pytest.raises(ConfigError, match="invalid_values"):
            ConfigLoader().load_string("collectors { invalid_values drop; }")

    def test_telemetry_path_must_be_absolute(self) -> None:
        with pytest.raises(ConfigError, match="telemetry_path"):
            ConfigLoader().load_string('web { telemetry_path "metrics"; }')

    def test_logging_block(self) -> None:
        config = ConfigLoader().load_string(
            'logging { level debug; format logfmt; file "/tmp/x.log"; colors off; }'
        )

        assert config.logging.level == "debug"
        assert config.logging.format == "logfmt"
        assert config.logging.file == "/tmp/x.log"
        assert config.logging.colors is False

    @pytest.mark.parametrize(
        "value, expected",
        [
            (":9753", ("", 9753)),
            ("127.0.0.1:8080", ("127.0.0.1", 8080)),
            ("[::1]:9753", ("::1", 9753)),
        ],
    )
    def test_parse_listen_address(self, value: str, expected: tuple[str, int]) -> None:
        assert parse_listen_address(value) == expected

    @pytest.mark.parametrize("value", ["9753", "host:", "host:port"])
    def test_parse_listen_address_invalid(self, value: str) -> None:
        with pytest.raises(SchemaError):
            parse_listen_address(value)


class TestLoader:
    def test_load_example_config(self) -> None:
        config = ConfigLoader().load_file(EXAMPLE_CONFIG)

        assert isinstance(config, Config)
        assert config.web.port == 9753
        assert config.cgroups.paths == ["/sys/fs/cgroup", "/sys/fs/cgroup/system.slice/*.service"]
        assert config.collectors.overrides["memory.stat"] is True

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader().load_file(tmp_path / "missing.conf")

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Not a file"):
            ConfigLoader().load_file(tmp_path)

    def test_syntax_error_is_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.conf"
        path.write_text("web {\n")

        with pytest.raises(ConfigError, match="bad.conf"):
            ConfigLoader().load_file(path)

    def test_validate_warnings(self, tmp_path: Path, make_cgroup) -> None:
        cgroup = make_cgroup("app.scope")
        plain = tmp_path / "plain"
        plain.mkdir()
        loader = ConfigLoader()
        config = loader.load_string(
            f"""
            web {{ port 70000; bogus 1; }}
            cgroups {{ path "{cgroup}"; path "{plain}"; path "{tmp_path}/gone"; }}
            collectors {{ memory.bogus on; only nope; }}
            unknown {{ }}
            stray 1;
            """
        )

        warnings = loader.validate(config, ["memory.current"])

        assert len(warnings) == 8
        assert any("Unknown directive 'bogus' in web block" in w for w in warnings)
        assert any("Unknown block 'unknown'" in w for w in warnings)
        assert any("Unknown top-level directive 'stray'" in w for w in warnings)
        assert any("Unknown collector 'memory.bogus'" in w for w in warnings)
        assert any("Unknown collector 'nope'" in w for w in warnings)
        assert any(f"Not a cgroup v2 directory: {plain}" in w for w in warnings)
        assert any("does not exist" in w and w.endswith("gone") for w in warnings)
        assert any("Port out of range: 70000" in w for w in warnings)

    def test_validate_clean_config(self, make_cgroup) -> None:
        cgroup = make_cgroup("app.scope")
        loader = ConfigLoader()
        config = loader.load_string(f'cgroups {{ path "{cgroup}"; }} collectors {{ memory.current on; }}')

        assert loader.validate(config, ["memory.current"]) == []
