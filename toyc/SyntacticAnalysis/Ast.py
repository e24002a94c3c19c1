from __future__ import annotations

from dataclasses import dataclass, field


# The position is the 1-based (line, column) of the first token of the node, used for error reporting. It takes no part
# in equality, so two parses of the same code are always equal.
def _pos():
    return field(default=(0, 0), compare=False, repr=False)


@dataclass(frozen=True)
class NumberAst:
    value: float
    _tok: tuple[int, int] = _pos()

    def __str__(self):
        return str(int(self.value)) if self.value.is_integer() else str(self.value)


@dataclass(frozen=True)
class VariableAst:
    identifier: str
    _tok: tuple[int, int] = _pos()

    def __str__(self):
        return self.identifier


@dataclass(frozen=True)
class BinaryExpressionAst:
    lhs: ExpressionAst
    op: str
    rhs: ExpressionAst
    _tok: tuple[int, int] = _pos()

    def __str__(self):
        return "(" + str(self.lhs) + " " + self.op + " " + str(self.rhs) + ")"


@dataclass(frozen=True)
class CallExpressionAst:
    callee: str
    arguments: tuple[ExpressionAst, ...]
    _tok: tuple[int, int] = _pos()

    def __str__(self):
        return self.callee + "(" + ", ".join([str(argument) for argument in self.arguments]) + ")"


@dataclass(frozen=True)
class IfExpressionAst:
    condition: ExpressionAst
    then_branch: ExpressionAst
    else_branch: ExpressionAst
    _tok: tuple[int, int] = _pos()

    def __str__(self):
        s = "if " + str(self.condition)
        s += " then " + str(self.then_branch)
        s += " else " + str(self.else_branch)
        return s


@dataclass(frozen=True)
class PrototypeAst:
    identifier: str
    parameters: tuple[str, ...]
    _tok: tuple[int, int] = _pos()

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def __str__(self):
        return self.identifier + "(" + ", ".join(self.parameters) + ")"


@dataclass(frozen=True)
class FunctionAst:
    prototype: PrototypeAst
    body: ExpressionAst
    _tok: tuple[int, int] = _pos()

    @property
    def is_anonymous(self) -> bool:
        return self.prototype.identifier.startswith(ANONYMOUS_FUNCTION_NAME)

    def __str__(self):
        if self.is_anonymous:
            return str(self.body)
        return "def " + str(self.prototype) + " " + str(self.body)


ExpressionAst = NumberAst | VariableAst | BinaryExpressionAst | CallExpressionAst | IfExpressionAst
TopLevelAst = FunctionAst | PrototypeAst


# Identifiers can't start with an underscore, so no user function can ever collide with this name.
ANONYMOUS_FUNCTION_NAME = "__anon_expr"

BIN_OP_PRECEDENCE = {
    "<": 10,
    ">": 10,
    "+": 20,
    "-": 20,
    "*": 40,
    "/": 40,
}

BIN_FN = {
    "+": "add",
    "-": "sub",
    "*": "mul",
    "/": "div",
    "<": "lt",
    ">": "gt",
}
