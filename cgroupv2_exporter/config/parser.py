"""
Recursive descent parser for nginx-like configuration syntax.

Grammar:
    document    := (block | directive)*
    block       := IDENTIFIER [STRING] '{' (block | directive)* '}'
    directive   := IDENTIFIER value* ';'
    value       := STRING | NUMBER | BOOLEAN | IDENTIFIER
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .lexer import Lexer, Token, TokenType

_VALUE_TOKENS = (TokenType.STRING, TokenType.NUMBER, TokenType.BOOLEAN, TokenType.IDENTIFIER)


class ConfigSyntaxError(Exception):
    """Exception raised for malformed configuration structure."""

    def __init__(self, message: str, token: Token | None = None):
        self.token = token
        if token:
            super().__init__(f"Line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(message)


@dataclass
class Directive:
    """
    A configuration directive with a name and values.

    Examples:
        port 9753;            -> Directive(name="port", values=[9753])
        memory.stat on;       -> Directive(name="memory.stat", values=[True])
    """

    name: str
    values: list[Any] = field(default_factory=list)
    line: int = 0

    @property
    def value(self) -> Any:
        """Get single value (first) or None."""
        return self.values[0] if self.values else None


@dataclass
class Block:
    """
    A configuration block with a type, optional name, and contents.

    Directives and nested blocks keep their file order.
    """

    type: str
    name: str | None = None
    directives: list[Directive] = field(default_factory=list)
    blocks: list["Block"] = field(default_factory=list)
    line: int = 0

    def get_directive(self, name: str) -> Directive | None:
        """Get the last directive with given name (later settings win)."""
        for d in reversed(self.directives):
            if d.name == name:
                return d
        return None

    def get_value(self, name: str, default: Any = None) -> Any:
        directive = self.get_directive(name)
        if directive is not None and directive.values:
            return directive.value
        return default

    def get_all_values(self, name: str) -> list[Any]:
        """
        Get all values from all directives with given name.

        Repeated directives accumulate:
            path "/sys/fs/cgroup/a";
            path "/sys/fs/cgroup/b" "/sys/fs/cgroup/c";
        Returns: ["/sys/fs/cgroup/a", "/sys/fs/cgroup/b", "/sys/fs/cgroup/c"]
        """
        values = []
        for d in self.directives:
            if d.name == name:
                values.extend(d.values)
        return values

    def get_block(self, type_name: str) -> "Block | None":
        for b in self.blocks:
            if b.type == type_name:
                return b
        return None


@dataclass
class ConfigDocument:
    """Root document: a block without name whose children are top-level."""

    root: Block = field(default_factory=lambda: Block(type="<root>"))
    filename: str = "<string>"

    @property
    def blocks(self) -> list[Block]:
        return self.root.blocks

    @property
    def directives(self) -> list[Directive]:
        return self.root.directives

    def get_block(self, type_name: str) -> Block | None:
        return self.root.get_block(type_name)


class ConfigParser:
    """Recursive descent parser for nginx-like configuration."""

    def __init__(self, source: str, filename: str = "<string>"):
        self.filename = filename
        self._tokens = list(Lexer(source, filename))
        self._pos = 0

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if self._current.type != token_type:
            raise ConfigSyntaxError(message, self._current)
        return self._advance()

    def parse(self) -> ConfigDocument:
        """Parse the entire configuration document."""
        document = ConfigDocument(filename=self.filename)
        self._parse_body(document.root, TokenType.EOF)
        return document

    def _parse_body(self, block: Block, terminator: TokenType) -> None:
        while self._current.type != terminator:
            if self._current.type != TokenType.IDENTIFIER:
                if self._current.type == TokenType.EOF:
                    raise ConfigSyntaxError(f"Expected '}}' to close '{block.type}' block", self._current)
                raise ConfigSyntaxError(
                    f"Expected directive or block, got {self._current.type.name}", self._current
                )
            self._parse_statement(block)

    def _parse_statement(self, parent: Block) -> None:
        """Parse a block or a directive and attach it to parent."""
        name_token = self._advance()
        name = str(name_token.value)

        values = []
        while self._current.type in _VALUE_TOKENS:
            values.append(self._advance().value)

        if self._current.type == TokenType.LBRACE:
            if len(values) > 1 or (values and not isinstance(values[0], str)):
                raise ConfigSyntaxError(
                    f"Block '{name}' takes at most one name before '{{'", self._current
                )
            self._advance()
            block = Block(type=name, name=values[0] if values else None, line=name_token.line)
            self._parse_body(block, TokenType.RBRACE)
            self._advance()  # consume }
            parent.blocks.append(block)
            return

        self._expect(TokenType.SEMICOLON, f"Expected '{{' or ';' after '{name}'")
        parent.directives.append(Directive(name=name, values=values, line=name_token.line))


def parse_config(source: str, filename: str = "<string>") -> ConfigDocument:
    """
    Parse a configuration string.

    Raises:
        LexerError: Invalid token
        ConfigSyntaxError: Invalid structure
    """
    return ConfigParser(source, filename).parse()


def parse_config_file(path: str | Path) -> ConfigDocument:
    """Parse a configuration file."""
    path = Path(path)
    return parse_config(path.read_text(), str(path))
