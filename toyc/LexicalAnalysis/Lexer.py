from __future__ import annotations

import io
import string
from typing import Iterator, TextIO

from toyc.LexicalAnalysis.Tokens import Token, TokenType, KEYWORDS


IDENTIFIER_START = frozenset(string.ascii_letters)
IDENTIFIER_BODY = frozenset(string.ascii_letters + string.digits)
DIGITS = frozenset(string.digits)
WHITESPACE = frozenset(string.whitespace)


class Lexer:
    """
    Turn a character stream into tokens, one at a time. The lexer only ever holds a single character of lookahead
    (`_last_char`), so it can work on an open file without reading it all in first. Every character maps to some
    token, so there is no lexer-level error; once the input is exhausted, the EOF token is returned on every call.
    """

    _stream: TextIO
    _last_char: str
    _line: int
    _column: int
    _current_line: list[str]
    lines: list[str]

    def __init__(self, source: str | TextIO):
        self._stream = io.StringIO(source) if isinstance(source, str) else source

        # Start on a space so the first call to next_token() reads the first real character.
        self._last_char = " "
        self._line = 1
        self._column = 0
        self._current_line = []
        self.lines = []

    def next_token(self) -> Token:
        # Skip any whitespace. Comments are treated as whitespace too, so loop until neither is found.
        while True:
            while self._last_char in WHITESPACE:
                self._advance()

            if self._last_char != "#":
                break

            while self._last_char not in ("", "\n", "\r"):
                self._advance()

        line, column = self._line, self._column

        # Identifiers and keywords: [A-Za-z][A-Za-z0-9]*. The identifier text is checked against the keyword set
        # afterwards, so "define" is an identifier and not "def" followed by "ine".
        if self._last_char in IDENTIFIER_START:
            identifier = self._consume_while(IDENTIFIER_BODY)
            return Token(identifier, KEYWORDS.get(identifier, TokenType.LxIdentifier), line, column)

        # Numbers: [0-9]+ only. There is no sign, decimal point or exponent in the grammar.
        if self._last_char in DIGITS:
            number = self._consume_while(DIGITS)
            return Token(number, TokenType.LxNumber, line, column)

        if self._last_char == "":
            return Token("", TokenType.TkEOF, line, column)

        # Anything else is returned as the character itself.
        character = self._last_char
        self._advance()
        return Token(character, TokenType.TkCharacter, line, column)

    def lex(self) -> list[Token]:
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.token_type == TokenType.TkEOF:
                return

    def _consume_while(self, accepted: frozenset[str]) -> str:
        text = []
        while self._last_char in accepted:
            text.append(self._last_char)
            self._advance()
        return "".join(text)

    def _advance(self) -> None:
        # Keep track of the position and the text of every line read, so errors can point into the source.
        if self._last_char == "\n":
            self.lines.append("".join(self._current_line))
            self._current_line = []
            self._line += 1
            self._column = 0

        self._last_char = self._stream.read(1)
        if self._last_char:
            self._column += 1
            if self._last_char not in ("\n", "\r"):
                self._current_line.append(self._last_char)

    def source_line(self, line: int) -> str:
        if 0 < line <= len(self.lines):
            return self.lines[line - 1]
        return "".join(self._current_line) if line == self._line else ""
