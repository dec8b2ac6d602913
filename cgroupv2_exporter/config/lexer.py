"""
Lexer (tokenizer) for nginx-like configuration syntax.

Supports:
- Identifiers, including dotted collector names (memory.stat)
- Quoted strings (single or double quotes, backslash escapes)
- Integers and floats
- Booleans (on, off, true, false, yes, no)
- Braces and semicolons
- Comments starting with #
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types for the nginx-like config syntax."""

    IDENTIFIER = auto()  # directive or block name, bare word value
    STRING = auto()  # "quoted string"
    NUMBER = auto()  # 123, 45.67
    BOOLEAN = auto()  # on, off, true, false, yes, no

    LBRACE = auto()  # {
    RBRACE = auto()  # }
    SEMICOLON = auto()  # ;

    EOF = auto()


@dataclass
class Token:
    """A single token from the lexer."""

    type: TokenType
    value: str | int | float | bool
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class LexerError(Exception):
    """Exception raised for lexer errors."""

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, column {column}: {message}")


BOOLEAN_KEYWORDS = {
    "on": True,
    "off": False,
    "true": True,
    "false": False,
    "yes": True,
    "no": False,
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

_TOKEN_RE = re.compile(
    r"""
      (?P<space>[ \t\r\n]+)
    | (?P<comment>\#[^\n]*)
    | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | (?P<number>-?\d+(?:\.\d+)?(?![A-Za-z0-9_.\-]))
    | (?P<word>[A-Za-z_][A-Za-z0-9_.\-]*)
    | (?P<lbrace>\{)
    | (?P<rbrace>\})
    | (?P<semicolon>;)
    """,
    re.VERBOSE,
)

_PUNCTUATION = {
    "lbrace": TokenType.LBRACE,
    "rbrace": TokenType.RBRACE,
    "semicolon": TokenType.SEMICOLON,
}


def _unquote(raw: str) -> str:
    body = raw[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


class Lexer:
    """
    Tokenizer for nginx-like configuration syntax.

    Example config:
        web {
            port 9753;
        }

        collectors {
            memory.stat on;
        }
    """

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename

    def tokenize(self) -> Iterator[Token]:
        """Generate all tokens from the source, ending with EOF."""
        pos = 0
        line = 1
        line_start = 0

        while pos < len(self.source):
            match = _TOKEN_RE.match(self.source, pos)
            column = pos - line_start + 1

            if match is None:
                char = self.source[pos]
                if char in "\"'":
                    raise LexerError("Unterminated string literal", line, column)
                raise LexerError(f"Unexpected character: {char!r}", line, column)

            kind = match.lastgroup
            text = match.group()

            if kind == "string":
                yield Token(TokenType.STRING, _unquote(text), line, column)
            elif kind == "number":
                value = float(text) if "." in text else int(text)
                yield Token(TokenType.NUMBER, value, line, column)
            elif kind == "word":
                if text.lower() in BOOLEAN_KEYWORDS:
                    yield Token(TokenType.BOOLEAN, BOOLEAN_KEYWORDS[text.lower()], line, column)
                else:
                    yield Token(TokenType.IDENTIFIER, text, line, column)
            elif kind in _PUNCTUATION:
                yield Token(_PUNCTUATION[kind], text, line, column)

            newlines = text.count("\n")
            if newlines:
                line += newlines
                line_start = pos + text.rfind("\n") + 1
            pos = match.end()

        yield Token(TokenType.EOF, "", line, pos - line_start + 1)

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function to tokenize a source string."""
    return list(Lexer(source, filename))
