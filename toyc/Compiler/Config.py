from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


DEFAULT_MODULE_NAME = "toy"
OUTPUT_ENCODING = "utf-8"


@dataclass
class CompilerOptions:
    module_name: str = DEFAULT_MODULE_NAME

    # JIT-evaluate every top-level expression and keep the values in Compiler.results.
    evaluate: bool = False

    # Echo each unit as it is read, and the IR of each function as it is generated, to stderr.
    verbose: bool = False
    colour: bool = True

    output_path: Optional[str] = None
    dump_ast_path: Optional[str] = None
