"""
Register the prototype of every declared function, and resolve function names to backend functions.

Forward references:
-- An "extern" only registers its prototype, nothing is emitted for it.
-- The first call to a registered-but-never-emitted function materializes its declaration in the module on demand.
-- A "def" moves its prototype into the register before its body is generated, so the function can call itself, and
   later calls still resolve after the AST is thrown away.

Redefinition policy:
-- Re-declaring a name with the same number of parameters is allowed (ie "extern foo(a)" then "def foo(a) ...").
-- Re-declaring a name with a different number of parameters is an error.
-- Defining a name that already has a body is an error.
"""

from __future__ import annotations

from typing import Optional

import llvmlite.ir as ll

from toyc.CodeGen.Backend import Backend
from toyc.Compiler.Exceptions import RedefinitionError, UnknownFunctionError
from toyc.LexicalAnalysis.Tokens import Token
from toyc.SyntacticAnalysis import Ast


class FunctionRegister:
    _registry: dict[str, Ast.PrototypeAst]
    _backend: Backend

    def __init__(self, backend: Backend):
        self._registry = {}
        self._backend = backend

    def register(self, prototype: Ast.PrototypeAst) -> None:
        self._registry[prototype.identifier] = prototype

    def register_extern(self, prototype: Ast.PrototypeAst) -> None:
        self._check_arity(prototype)
        self.register(prototype)

    def unregister(self, name: str) -> None:
        self._registry.pop(name, None)

    def lookup(self, name: str) -> Optional[Ast.PrototypeAst]:
        return self._registry.get(name)

    def check_compatible(self, prototype: Ast.PrototypeAst) -> None:
        self._check_arity(prototype)

        llvm_function = self._backend.lookup_function(prototype.identifier)
        if llvm_function is not None and not llvm_function.is_declaration:
            raise RedefinitionError(f"Function '{prototype.identifier}' cannot be redefined")

    def resolve(self, name: str, tok: Optional[Token] = None) -> ll.Function:
        # A function already in the module (defined, or declared by an earlier call) is used as-is.
        if llvm_function := self._backend.lookup_function(name):
            return llvm_function

        # Otherwise emit the declaration from the registered prototype.
        if prototype := self._registry.get(name):
            return self._backend.declare_function(prototype.identifier, prototype.parameters)

        raise UnknownFunctionError(name, tok)

    def _check_arity(self, prototype: Ast.PrototypeAst) -> None:
        name = prototype.identifier

        registered = self._registry.get(name)
        if registered is not None and registered.arity != prototype.arity:
            raise RedefinitionError(
                f"Function '{name}' was declared with {registered.arity} parameter(s), cannot redeclare it with "
                f"{prototype.arity}")

        llvm_function = self._backend.lookup_function(name)
        if llvm_function is not None and len(llvm_function.args) != prototype.arity:
            raise RedefinitionError(
                f"Function '{name}' exists with {len(llvm_function.args)} parameter(s), cannot redeclare it with "
                f"{prototype.arity}")

    def __contains__(self, name: str) -> bool:
        return name in self._registry
