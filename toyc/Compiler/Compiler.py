from __future__ import annotations

import dataclasses
import sys
from typing import TextIO

from toyc.CodeGen.CodeGen import CodeGen
from toyc.Compiler.Config import CompilerOptions
from toyc.Compiler.Context import CompilationContext
from toyc.Compiler.Exceptions import Ok, Err, CompilerError
from toyc.Compiler.Printer import ErrFmt, ast_to_json, save_json, save_text
from toyc.LexicalAnalysis.Lexer import Lexer
from toyc.LexicalAnalysis.Tokens import TokenType
from toyc.SyntacticAnalysis import Ast
from toyc.SyntacticAnalysis.Parser import Parser


class Compiler:
    """
    The compile loop: read one top-level unit at a time (definition, extern or bare expression), and generate it before
    reading the next. A unit that fails to parse or generate is reported and skipped; it never stops later units from
    compiling.
    """

    _file_path: str
    _lexer: Lexer
    _parser: Parser
    _context: CompilationContext
    _codegen: CodeGen
    _stderr: TextIO

    errors: list[CompilerError]
    results: list[float]
    units: list[Ast.TopLevelAst]

    def __init__(self, code: str | TextIO, file_path: str = "<input>", options: CompilerOptions = None, stderr: TextIO = None):
        self._file_path = file_path
        self._lexer = Lexer(code)
        self._parser = Parser(self._lexer)
        self._context = CompilationContext.create(options)
        self._codegen = CodeGen(self._context)
        self._stderr = stderr or sys.stderr

        self.errors = []
        self.results = []
        self.units = []

    @property
    def options(self) -> CompilerOptions:
        return self._context.options

    @property
    def context(self) -> CompilationContext:
        return self._context

    def compile(self) -> bool:
        while True:
            token = self._parser.current
            match token.token_type:
                case TokenType.TkEOF:
                    break
                case TokenType.TkCharacter if token.is_character(";"):
                    self._parser.next_token()
                case TokenType.KwDef:
                    self._handle_definition()
                case TokenType.KwExtern:
                    self._handle_extern()
                case _:
                    self._handle_top_level_expression()

        options = self.options
        if options.dump_ast_path:
            save_json(ast_to_json(self.units), options.dump_ast_path)
        if options.output_path:
            save_text(self.ir(), options.output_path)

        return not self.errors

    def ir(self) -> str:
        return self._context.backend.ir()

    def _handle_definition(self) -> None:
        match self._parser.parse_definition():
            case Err(error):
                self._recover(error)
            case Ok(function):
                self.units.append(function)
                self._log("Read function definition:", function)
                self._generate(function)

    def _handle_extern(self) -> None:
        match self._parser.parse_extern():
            case Err(error):
                self._recover(error)
            case Ok(prototype):
                self.units.append(prototype)
                self._log("Read extern:", f"extern {prototype}")
                try:
                    self._context.function_register.register_extern(prototype)
                except CompilerError as e:
                    self._report(e)

    def _handle_top_level_expression(self) -> None:
        match self._parser.parse_top_level_expression():
            case Err(error):
                self._recover(error)
            case Ok(function):
                self.units.append(function)
                self._log("Read top-level expression:", function)

                # Each top-level expression keeps its own function in the module: "__anon_expr", "__anon_expr.1", ...
                name = self._context.backend.unique_function_name(Ast.ANONYMOUS_FUNCTION_NAME)
                function = dataclasses.replace(function, prototype=dataclasses.replace(function.prototype, identifier=name))
                llvm_function = self._generate(function)

                # Nothing can call an anonymous function, so it doesn't stay in the register.
                self._context.function_register.unregister(name)

                if llvm_function is not None and self.options.evaluate:
                    try:
                        result = self._context.backend.evaluate(llvm_function.name)
                        self.results.append(result)
                        self._log("Evaluated to", result, always=True)
                    except CompilerError as e:
                        self._report(e)

    def _generate(self, function: Ast.FunctionAst):
        match self._codegen.generate_function(function):
            case Err(error):
                self._report(error)
                return None
            case Ok(llvm_function):
                if self.options.verbose:
                    print(str(llvm_function), file=self._stderr)
                return llvm_function

    def _recover(self, error: CompilerError) -> None:
        # Skip the token the parse failed on, and try again from the next one.
        self._report(error)
        self._parser.next_token()

    def _report(self, error: CompilerError) -> None:
        self.errors.append(error)
        source_line = self._lexer.source_line(error.tok.line) if error.tok else ""
        print(ErrFmt.err(error, source_line, self._file_path, self.options.colour), file=self._stderr)

    def _log(self, *message, always: bool = False) -> None:
        if always or self.options.verbose:
            print(*message, file=self._stderr)
