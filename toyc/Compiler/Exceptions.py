from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from toyc.LexicalAnalysis.Tokens import Token


T = TypeVar("T")


class CompilerError(Exception):
    kind: str = "Error"
    code: str = "0000"
    message: str
    tok: Optional[Token]

    def __init__(self, message: str, tok: Optional[Token] = None):
        Exception.__init__(self, f"[{self.code}] {message}")
        self.message = message
        self.tok = tok


class ParseSyntaxError(CompilerError):
    kind = "SyntaxError"
    code = "0001"


class ResolutionError(CompilerError):
    kind = "ResolutionError"


class UnknownVariableError(ResolutionError):
    code = "0002"

    def __init__(self, variable: str, tok: Optional[Token] = None):
        ResolutionError.__init__(self, f"Unknown variable name '{variable}'", tok)


class UnknownFunctionError(ResolutionError):
    code = "0003"

    def __init__(self, function: str, tok: Optional[Token] = None):
        ResolutionError.__init__(self, f"Unknown function referenced '{function}'", tok)


class ArityError(CompilerError):
    kind = "ArityError"
    code = "0004"

    def __init__(self, function: str, expected: int, given: int, tok: Optional[Token] = None):
        CompilerError.__init__(self, f"Function '{function}' takes {expected} argument(s) but {given} were given", tok)


class RedefinitionError(CompilerError):
    kind = "RedefinitionError"
    code = "0005"


class OperatorError(CompilerError):
    kind = "OperatorError"
    code = "0006"

    def __init__(self, op: str, tok: Optional[Token] = None):
        CompilerError.__init__(self, f"Invalid binary operator '{op}'", tok)


class VerificationError(CompilerError):
    kind = "VerificationError"
    code = "0007"


class EvaluationError(CompilerError):
    kind = "EvaluationError"
    code = "0008"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: CompilerError


Result = Ok[T] | Err
