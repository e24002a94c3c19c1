from __future__ import annotations

import argparse
import io
import sys

import colorama

from toyc.Compiler.Compiler import Compiler
from toyc.Compiler.Config import CompilerOptions, DEFAULT_MODULE_NAME, OUTPUT_ENCODING

__version__ = "1.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toyc",
        description="Compile a toy language source file to LLVM IR.")
    parser.add_argument("source", help="path to the source file")
    parser.add_argument("-o", "--output", help="write the LLVM IR here instead of stdout")
    parser.add_argument("--evaluate", action="store_true", help="JIT-evaluate each top-level expression")
    parser.add_argument("--dump-ast", metavar="PATH", help="write the parsed top-level units as JSON")
    parser.add_argument("--module-name", default=DEFAULT_MODULE_NAME, help="name of the LLVM module")
    parser.add_argument("--no-colour", action="store_true", help="disable coloured diagnostics")
    parser.add_argument("-v", "--verbose", action="store_true", help="echo each unit and its IR to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] = None) -> int:
    args = build_parser().parse_args(argv)
    colorama.just_fix_windows_console()

    options = CompilerOptions(
        module_name=args.module_name,
        evaluate=args.evaluate,
        verbose=args.verbose,
        colour=not args.no_colour,
        output_path=args.output,
        dump_ast_path=args.dump_ast)

    # An unreadable source is reported, but compilation still runs (over no input) so the usual outputs are produced.
    try:
        source = open(args.source, encoding=OUTPUT_ENCODING)
        readable = True
    except OSError as e:
        print(f"Could not open file '{args.source}': {e.strerror}", file=sys.stderr)
        source = io.StringIO()
        readable = False

    with source:
        compiler = Compiler(source, args.source, options)
        succeeded = compiler.compile()

    if not options.output_path:
        sys.stdout.write(compiler.ir())

    return 0 if succeeded and readable else 1


if __name__ == "__main__":
    sys.exit(main())
