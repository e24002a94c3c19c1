from __future__ import annotations

import llvmlite.ir as ll
from multimethod import multimethod

from toyc.Compiler.Context import CompilationContext
from toyc.Compiler.Exceptions import (
    Ok, Err, Result, CompilerError, UnknownVariableError, ArityError, OperatorError)
from toyc.LexicalAnalysis.Tokens import Token, TokenType
from toyc.SyntacticAnalysis import Ast


def _tok(ast, metadata: str = "") -> Token:
    # Rebuild a token from an AST node's position, so codegen errors can point at the source like parse errors do.
    line, column = ast._tok
    return Token(metadata, TokenType.TkCharacter, line, column)


class CodeGen:
    """
    Walk the AST and emit LLVM IR through the backend. There is one `generate` per expression node type; an unknown node
    type fails dispatch, so adding a node without teaching the generator about it can't go unnoticed.
    """

    _context: CompilationContext

    def __init__(self, context: CompilationContext):
        self._context = context

    @property
    def _backend(self):
        return self._context.backend

    @multimethod
    def generate(self, ast: Ast.NumberAst):
        return self._backend.emit_constant(ast.value)

    @multimethod
    def generate(self, ast: Ast.VariableAst):
        value = self._context.named_values.get(ast.identifier)
        if value is None:
            raise UnknownVariableError(ast.identifier, _tok(ast, ast.identifier))
        return value

    @multimethod
    def generate(self, ast: Ast.BinaryExpressionAst):
        lhs = self.generate(ast.lhs)
        rhs = self.generate(ast.rhs)

        kind = Ast.BIN_FN.get(ast.op)
        if kind is None:
            raise OperatorError(ast.op, _tok(ast, ast.op))
        return self._backend.emit_binary_op(kind, lhs, rhs)

    @multimethod
    def generate(self, ast: Ast.CallExpressionAst):
        llvm_function = self._context.function_register.resolve(ast.callee, _tok(ast, ast.callee))

        # No currying or padding, the argument count must match exactly.
        if len(llvm_function.args) != len(ast.arguments):
            raise ArityError(ast.callee, len(llvm_function.args), len(ast.arguments), _tok(ast, ast.callee))

        arguments = [self.generate(argument) for argument in ast.arguments]
        return self._backend.emit_call(llvm_function, arguments)

    @multimethod
    def generate(self, ast: Ast.IfExpressionAst):
        condition = self.generate(ast.condition)
        condition = self._backend.emit_compare("!=", condition, self._backend.emit_constant(0.0), name="ifcond")

        then_block = self._backend.create_basic_block("then")
        else_block = self._backend.create_basic_block("else")
        merge_block = self._backend.create_basic_block("ifcont")
        self._backend.emit_conditional_branch(condition, then_block, else_block)

        # Generating a branch can add blocks of its own (ie a nested if), so the block that jumps to the merge block is
        # whichever one is current after generating it, not necessarily the one it started in.
        self._backend.set_insertion_point(then_block)
        then_value = self.generate(ast.then_branch)
        self._backend.emit_unconditional_branch(merge_block)
        then_block = self._backend.current_block

        self._backend.set_insertion_point(else_block)
        else_value = self.generate(ast.else_branch)
        self._backend.emit_unconditional_branch(merge_block)
        else_block = self._backend.current_block

        self._backend.set_insertion_point(merge_block)
        return self._backend.emit_phi([(then_value, then_block), (else_value, else_block)])

    def generate_function(self, ast: Ast.FunctionAst) -> Result[ll.Function]:
        prototype = ast.prototype
        function_register = self._context.function_register

        try:
            function_register.check_compatible(prototype)
        except CompilerError as e:
            e.tok = e.tok or _tok(prototype, prototype.identifier)
            return Err(e)

        # Anything that existed before this definition (an extern declaration, or a declaration materialized by an
        # earlier call) must survive a failed body, as other functions may already call it.
        existed = self._backend.lookup_function(prototype.identifier) is not None
        previous = function_register.lookup(prototype.identifier)

        function_register.register(prototype)
        llvm_function = function_register.resolve(prototype.identifier)

        self._context.named_values.clear()
        for name, argument in zip(prototype.parameters, llvm_function.args):
            self._context.named_values[name] = argument

        try:
            self._backend.begin_function_body(llvm_function)
            return_value = self.generate(ast.body)
            self._backend.emit_return(return_value)
            self._backend.verify_function(llvm_function)
            return Ok(llvm_function)

        except CompilerError as e:
            # Put the register back as it was, so a failed definition can't be resolved by a later call.
            if previous is not None:
                function_register.register(previous)
            else:
                function_register.unregister(prototype.identifier)

            if existed:
                self._backend.clear_function_body(llvm_function)
            else:
                self._backend.erase_function(llvm_function)
            return Err(e)

        finally:
            self._context.named_values.clear()
