"""
Recursive descent parser for the nginx-like configuration syntax.

Grammar:
    document    := (block | directive | include)*
    block       := IDENTIFIER [value] '{' (block | directive | include)* '}'
    directive   := IDENTIFIER value* ';'
    value       := STRING | NUMBER | DURATION | BOOLEAN | IDENTIFIER
    include     := 'include' STRING ';'
"""

import glob as glob_module
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from .lexer import Lexer, Token, TokenType


class ParseError(Exception):
    """Exception raised for parser errors."""

    def __init__(self, message: str, token: Token | None = None):
        self.token = token
        if token:
            super().__init__(f"Line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(message)


@dataclass
class Directive:
    """
    A directive with a name and values.

        port 2003;                  -> Directive("port", [2003])
        rename "/cpu/0/load/0" "Total";  -> Directive("rename", ["/cpu/0/load/0", "Total"])
    """

    name: str
    values: list[Any] = field(default_factory=list)
    line: int = 0

    @property
    def value(self) -> Any:
        """First value or None."""
        return self.values[0] if self.values else None


@dataclass
class Block:
    """A block with a type, optional name and nested contents."""

    type: str
    name: str | None = None
    directives: list[Directive] = field(default_factory=list)
    blocks: list["Block"] = field(default_factory=list)
    line: int = 0

    def get_directive(self, name: str) -> Directive | None:
        """Get first directive with given name."""
        for d in self.directives:
            if d.name == name:
                return d
        return None

    def get_directives(self, name: str) -> list[Directive]:
        """Get all directives with given name."""
        return [d for d in self.directives if d.name == name]

    def get_value(self, name: str, default: Any = None) -> Any:
        """Get the first value of a directive."""
        directive = self.get_directive(name)
        if directive is None or directive.value is None:
            return default
        return directive.value

    def get_all_values(self, name: str) -> list[Any]:
        """Collect the first value of every directive with given name."""
        return [d.value for d in self.get_directives(name) if d.value is not None]

    def get_block(self, type_name: str) -> "Block | None":
        """Get first nested block with given type."""
        for b in self.blocks:
            if b.type == type_name:
                return b
        return None


@dataclass
class ConfigDocument(Block):
    """Root document: an unnamed block holding top-level content."""

    type: str = "<root>"
    filename: str = "<string>"

    def get_blocks(self, type_name: str) -> list[Block]:
        """Get all top-level blocks with given type."""
        return [b for b in self.blocks if b.type == type_name]


_VALUE_TYPES = (
    TokenType.STRING,
    TokenType.NUMBER,
    TokenType.DURATION,
    TokenType.BOOLEAN,
    TokenType.IDENTIFIER,
)


class ConfigParser:
    """Parser turning a token stream into a ConfigDocument."""

    def __init__(
        self,
        source: str,
        filename: str = "<string>",
        base_path: Path | None = None,
        included_files: frozenset[str] = frozenset(),
    ):
        self.filename = filename
        self.base_path = base_path or Path.cwd()
        self.included_files = included_files
        self._tokens: Iterator[Token] = Lexer(source, filename).tokenize()
        self.current: Token = next(self._tokens)

    def _advance(self) -> Token:
        token = self.current
        if token.type != TokenType.EOF:
            self.current = next(self._tokens)
        return token

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if self.current.type != token_type:
            raise ParseError(message, self.current)
        return self._advance()

    def parse(self) -> ConfigDocument:
        """Parse the entire configuration document."""
        doc = ConfigDocument(filename=self.filename)
        self._parse_body(doc, closing=TokenType.EOF)
        return doc

    def _parse_body(self, block: Block, closing: TokenType) -> None:
        while self.current.type != closing:
            if self.current.type == TokenType.INCLUDE:
                included = self._parse_include()
                block.directives.extend(included.directives)
                block.blocks.extend(included.blocks)
            elif self.current.type == TokenType.IDENTIFIER:
                item = self._parse_statement()
                if isinstance(item, Block):
                    block.blocks.append(item)
                else:
                    block.directives.append(item)
            elif self.current.type == TokenType.EOF:
                raise ParseError(f"Expected '}}' to close '{block.type}' block", self.current)
            else:
                raise ParseError(
                    f"Expected block, directive, or include; got {self.current.type.name}",
                    self.current,
                )

    def _parse_statement(self) -> Block | Directive:
        name_token = self._advance()
        name = str(name_token.value)

        values: list[Any] = []
        while self.current.type in _VALUE_TYPES:
            values.append(self._advance().value)

        if self.current.type == TokenType.LBRACE:
            if len(values) > 1:
                raise ParseError(
                    f"Block '{name}' has too many arguments before '{{'; expected 0 or 1",
                    self.current,
                )
            self._advance()
            block = Block(
                type=name,
                name=str(values[0]) if values else None,
                line=name_token.line,
            )
            self._parse_body(block, closing=TokenType.RBRACE)
            self._advance()
            return block

        self._expect(TokenType.SEMICOLON, f"Expected '{{' or ';' after directive '{name}'")
        return Directive(name=name, values=values, line=name_token.line)

    def _parse_include(self) -> ConfigDocument:
        include_token = self._advance()
        path_token = self._expect(TokenType.STRING, "Expected file path after 'include'")
        self._expect(TokenType.SEMICOLON, "Expected ';' after include path")

        pattern = str(path_token.value)
        if not Path(pattern).is_absolute():
            pattern = str(self.base_path / pattern)

        merged = ConfigDocument()
        # No match is not an error
        for path in sorted(glob_module.glob(pattern)):
            resolved = str(Path(path).resolve())
            if resolved in self.included_files:
                raise ParseError(f"Circular include detected: {path}", include_token)

            parser = ConfigParser(
                source=Path(path).read_text(),
                filename=path,
                base_path=Path(path).parent,
                included_files=self.included_files | {resolved},
            )
            included = parser.parse()
            merged.directives.extend(included.directives)
            merged.blocks.extend(included.blocks)

        return merged


def parse_config(source: str, filename: str = "<string>", base_path: Path | None = None) -> ConfigDocument:
    """Parse a configuration string."""
    return ConfigParser(source, filename, base_path).parse()


def parse_config_file(path: str | Path) -> ConfigDocument:
    """Parse a configuration file."""
    path = Path(path)
    return ConfigParser(
        path.read_text(),
        str(path),
        path.parent,
        frozenset({str(path.resolve())}),
    ).parse()
