"""
Configuration parsing module with nginx-like syntax support.
"""

from .lexer import Lexer, LexerError, Token, TokenType
from .loader import ConfigError, ConfigLoader, load_config
from .parser import ConfigParser, ConfigSyntaxError
from .schema import Config

__all__ = [
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "ConfigParser",
    "ConfigSyntaxError",
    "Config",
    "ConfigError",
    "ConfigLoader",
    "load_config",
]
