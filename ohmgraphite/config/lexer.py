"""
Tokenizer for the nginx-like configuration syntax.

    interval 5s;
    graphite {
        host "10.0.0.5";
        port 2003;
        tags on;
    }

Durations (``500ms``, ``10s``, ``5m``, ``1h``, ``1d``) are converted to
seconds, ``on``/``off``/``true``/``false`` become booleans, and both ``#``
and ``/* */`` comments are skipped.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator


class TokenType(Enum):
    """Token types for the config syntax."""

    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()
    DURATION = auto()
    BOOLEAN = auto()
    LBRACE = auto()
    RBRACE = auto()
    SEMICOLON = auto()
    INCLUDE = auto()
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


BOOLEAN_KEYWORDS = {"on": True, "off": False, "true": True, "false": False}

# Duration units in seconds
DURATION_UNITS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>[ \t\r\n]+)
    | (?P<line_comment>\#[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
    | (?P<number>\d+(?:\.\d+)?)(?P<unit>[A-Za-z]+)?
    | (?P<ident>[A-Za-z_][A-Za-z0-9_\-]*)
    | (?P<punct>[{};])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}
_PUNCT = {"{": TokenType.LBRACE, "}": TokenType.RBRACE, ";": TokenType.SEMICOLON}


def _unescape(body: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body, flags=re.DOTALL)


class Lexer:
    """Tokenizer producing a stream of Token objects."""

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename

    def _position(self, offset: int) -> tuple[int, int]:
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return line, column

    def tokenize(self) -> Iterator[Token]:
        """Generate all tokens from the source, ending with EOF."""
        pos = 0
        length = len(self.source)

        while pos < length:
            match = _TOKEN_RE.match(self.source, pos)
            line, column = self._position(pos)

            if match is None:
                if self.source.startswith("/*", pos):
                    raise LexerError("Unterminated multi-line comment", line, column)
                if self.source[pos] in "\"'":
                    raise LexerError("Unterminated string literal", line, column)
                raise LexerError(f"Unexpected character: {self.source[pos]!r}", line, column)

            pos = match.end()
            kind = match.lastgroup

            if kind in ("ws", "line_comment", "block_comment"):
                continue

            if kind == "string":
                yield Token(TokenType.STRING, _unescape(match.group("string")[1:-1]), line, column)
            elif kind in ("number", "unit"):
                text = match.group("number")
                number = float(text) if "." in text else int(text)
                unit = match.group("unit")
                if unit is None:
                    yield Token(TokenType.NUMBER, number, line, column)
                elif unit.lower() in DURATION_UNITS:
                    yield Token(TokenType.DURATION, number * DURATION_UNITS[unit.lower()], line, column)
                else:
                    raise LexerError(f"Unknown duration unit: {unit}", line, column)
            elif kind == "ident":
                word = match.group("ident")
                if word.lower() in BOOLEAN_KEYWORDS:
                    yield Token(TokenType.BOOLEAN, BOOLEAN_KEYWORDS[word.lower()], line, column)
                elif word.lower() == "include":
                    yield Token(TokenType.INCLUDE, word, line, column)
                else:
                    yield Token(TokenType.IDENTIFIER, word, line, column)
            else:
                char = match.group("punct")
                yield Token(_PUNCT[char], char, line, column)

        line, column = self._position(length)
        yield Token(TokenType.EOF, "", line, column)

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function to tokenize a source string."""
    return list(Lexer(source, filename))
