from __future__ import annotations

from toyc.LexicalAnalysis.Lexer import Lexer
from toyc.LexicalAnalysis.Tokens import Token, TokenType
from toyc.SyntacticAnalysis import Ast
from toyc.Compiler.Exceptions import Ok, Err, Result, ParseSyntaxError


def _error(message: str, tok: Token) -> Err:
    return Err(ParseSyntaxError(message, tok))


class Parser:
    """
    Recursive descent parser with one token of lookahead. Each production expects the current token to be the first
    token of its construct, and on success leaves the current token on the first token after it. On failure the error
    is returned (not raised) and the current token is left where the failure happened. Skipping past bad input is the
    caller's decision.
    """

    _lexer: Lexer
    _current: Token

    def __init__(self, lexer: Lexer):
        self._lexer = lexer
        self._current = lexer.next_token()

    @property
    def current(self) -> Token:
        return self._current

    def next_token(self) -> Token:
        self._current = self._lexer.next_token()
        return self._current

    def _pos(self) -> tuple[int, int]:
        return self._current.line, self._current.column

    def _current_precedence(self) -> int:
        # Only single character tokens in the precedence table are binary operators. Everything else returns -1, which
        # is lower than any minimum precedence, so it ends the expression.
        if self._current.token_type != TokenType.TkCharacter:
            return -1
        return Ast.BIN_OP_PRECEDENCE.get(self._current.token_metadata, -1)

    # Top level

    def parse_definition(self) -> Result[Ast.FunctionAst]:
        """
        [Definition] => [Token(def)] [Prototype] [Expression]
        """
        c1 = self._pos()
        self.next_token()

        p1 = self.parse_prototype()
        if isinstance(p1, Err):
            return p1

        p2 = self.parse_expression()
        if isinstance(p2, Err):
            return p2

        return Ok(Ast.FunctionAst(p1.value, p2.value, c1))

    def parse_extern(self) -> Result[Ast.PrototypeAst]:
        """
        [ExternDeclaration] => [Token(extern)] [Prototype]
        """
        self.next_token()
        return self.parse_prototype()

    def parse_top_level_expression(self) -> Result[Ast.FunctionAst]:
        """
        [TopLevelExpression] => [Expression]

        The expression is wrapped in a zero parameter function, so the code generator handles it exactly like any other
        definition.
        """
        c1 = self._pos()
        p1 = self.parse_expression()
        if isinstance(p1, Err):
            return p1

        prototype = Ast.PrototypeAst(Ast.ANONYMOUS_FUNCTION_NAME, (), c1)
        return Ok(Ast.FunctionAst(prototype, p1.value, c1))

    def parse_prototype(self) -> Result[Ast.PrototypeAst]:
        """
        [Prototype] => [Identifier] [Token(()] [Identifier]* [Token())]

        Commas between the parameters are skipped rather than required, so "f(a b)" and "f(a, b)" are the same
        prototype. Parameter names must be unique within one prototype.
        """
        c1 = self._pos()
        if self._current.token_type != TokenType.LxIdentifier:
            return _error("Expected function name in prototype", self._current)

        function_name = self._current.token_metadata
        self.next_token()

        if not self._current.is_character("("):
            return _error("Expected '(' in prototype", self._current)

        parameters = []
        while True:
            self.next_token()
            if self._current.token_type == TokenType.LxIdentifier:
                if self._current.token_metadata in parameters:
                    return _error(f"Duplicate parameter name '{self._current.token_metadata}' in prototype", self._current)
                parameters.append(self._current.token_metadata)
            elif not self._current.is_character(","):
                break

        if not self._current.is_character(")"):
            return _error("Expected ')' in prototype", self._current)

        self.next_token()
        return Ok(Ast.PrototypeAst(function_name, tuple(parameters), c1))

    # Expressions

    def parse_expression(self) -> Result[Ast.ExpressionAst]:
        """
        [Expression] => [Primary] ([BinaryOperator] [Primary])*
        """
        p1 = self.parse_primary()
        if isinstance(p1, Err):
            return p1
        return self.parse_binary_operation_rhs(0, p1.value)

    def parse_binary_operation_rhs(self, min_precedence: int, lhs: Ast.ExpressionAst) -> Result[Ast.ExpressionAst]:
        """
        Precedence climbing. Operators binding at least as tightly as `min_precedence` are folded into `lhs` from left
        to right, so "a - b - c" is "(a - b) - c". When the operator after the right hand side binds more tightly than
        the current one, the right hand side is parsed first with a raised minimum, so "a + b * c" is "a + (b * c)".
        """
        while True:
            precedence = self._current_precedence()
            if precedence < min_precedence:
                return Ok(lhs)

            c1 = self._pos()
            op = self._current.token_metadata
            self.next_token()

            rhs = self.parse_primary()
            if isinstance(rhs, Err):
                return rhs

            if precedence < self._current_precedence():
                rhs = self.parse_binary_operation_rhs(precedence + 1, rhs.value)
                if isinstance(rhs, Err):
                    return rhs

            lhs = Ast.BinaryExpressionAst(lhs, op, rhs.value, c1)

    def parse_primary(self) -> Result[Ast.ExpressionAst]:
        """
        [Primary] => [Number] | [IdentifierExpression] | [ParenthesisExpression] | [IfExpression]
        """
        match self._current.token_type:
            case TokenType.LxNumber: return self.parse_number_expression()
            case TokenType.LxIdentifier: return self.parse_identifier_expression()
            case TokenType.KwIf: return self.parse_if_expression()
            case TokenType.TkCharacter if self._current.is_character("("): return self.parse_parenthesis_expression()
            case _: return _error(f"Unknown token {self._current} when expecting an expression", self._current)

    def parse_number_expression(self) -> Result[Ast.NumberAst]:
        c1 = self._pos()
        value = self._current.value
        self.next_token()
        return Ok(Ast.NumberAst(value, c1))

    def parse_parenthesis_expression(self) -> Result[Ast.ExpressionAst]:
        """
        [ParenthesisExpression] => [Token(()] [Expression] [Token())]

        Grouping doesn't produce a node of its own, the tree structure already records it.
        """
        self.next_token()
        p1 = self.parse_expression()
        if isinstance(p1, Err):
            return p1

        if not self._current.is_character(")"):
            return _error("Expected ')'", self._current)

        self.next_token()
        return p1

    def parse_identifier_expression(self) -> Result[Ast.VariableAst | Ast.CallExpressionAst]:
        """
        [IdentifierExpression] => [Identifier] | [Identifier] [Token(()] ([Expression] ([Token(,)] [Expression])*)? [Token())]
        """
        c1 = self._pos()
        identifier = self._current.token_metadata
        self.next_token()

        if not self._current.is_character("("):
            return Ok(Ast.VariableAst(identifier, c1))

        self.next_token()
        arguments = []
        if not self._current.is_character(")"):
            while True:
                argument = self.parse_expression()
                if isinstance(argument, Err):
                    return argument
                arguments.append(argument.value)

                if self._current.is_character(")"):
                    break
                if not self._current.is_character(","):
                    return _error("Expected ')' or ',' in argument list", self._current)
                self.next_token()

        self.next_token()
        return Ok(Ast.CallExpressionAst(identifier, tuple(arguments), c1))

    def parse_if_expression(self) -> Result[Ast.IfExpressionAst]:
        """
        [IfExpression] => [Token(if)] [Expression] [Token(then)] [Expression] [Token(else)] [Expression]
        """
        c1 = self._pos()
        self.next_token()

        p1 = self.parse_expression()
        if isinstance(p1, Err):
            return p1

        if self._current.token_type != TokenType.KwThen:
            return _error("Expected 'then'", self._current)
        self.next_token()

        p2 = self.parse_expression()
        if isinstance(p2, Err):
            return p2

        if self._current.token_type != TokenType.KwElse:
            return _error("Expected 'else'", self._current)
        self.next_token()

        p3 = self.parse_expression()
        if isinstance(p3, Err):
            return p3

        return Ok(Ast.IfExpressionAst(p1.value, p2.value, p3.value, c1))
