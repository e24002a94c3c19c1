from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    TkEOF = "\0"

    # Any single character that isn't part of an identifier, number or comment. The character itself is stored in the
    # token's metadata, so "(", "+", ";" etc all share this one type.
    TkCharacter = "<char>"

    # Keywords
    KwDef = "def"
    KwExtern = "extern"
    KwIf = "if"
    KwThen = "then"
    KwElse = "else"

    # Lexemes. The regex describes the accepted text, but the lexer scans them a character at a time.
    LxIdentifier = r"[A-Za-z][A-Za-z0-9]*"
    LxNumber = r"[0-9]+"


KEYWORDS: dict[str, TokenType] = {
    token.value: token for token in TokenType if token.name.startswith("Kw")}


@dataclass(frozen=True)
class Token:
    token_metadata: str
    token_type: TokenType
    line: int = 0
    column: int = 0

    @property
    def value(self) -> str | float:
        match self.token_type:
            case TokenType.LxNumber: return float(self.token_metadata)
            case _: return self.token_metadata

    def is_character(self, character: str) -> bool:
        return self.token_type == TokenType.TkCharacter and self.token_metadata == character

    def __str__(self):
        match self.token_type:
            case TokenType.TkEOF: return "<EOF>"
            case TokenType.LxIdentifier: return f"identifier '{self.token_metadata}'"
            case TokenType.LxNumber: return f"number '{self.token_metadata}'"
            case _: return f"'{self.token_metadata}'"
