from __future__ import annotations

from dataclasses import dataclass, field

import llvmlite.ir as ll

from toyc.CodeGen.Backend import Backend
from toyc.Compiler.Config import CompilerOptions
from toyc.SemanticAnalysis.FunctionRegister import FunctionRegister


@dataclass
class CompilationContext:
    """
    All state that lives for one compilation run. It is created once by the Compiler and handed to everything that
    needs it, so two runs can never see each other's functions or variables.
    """

    backend: Backend
    function_register: FunctionRegister
    options: CompilerOptions = field(default_factory=CompilerOptions)

    # Parameter name -> backend argument, for the function body currently being generated only.
    named_values: dict[str, ll.Argument] = field(default_factory=dict)

    @staticmethod
    def create(options: CompilerOptions = None) -> CompilationContext:
        options = options or CompilerOptions()
        backend = Backend(options.module_name)
        return CompilationContext(backend, FunctionRegister(backend), options)
