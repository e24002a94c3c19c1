from __future__ import annotations

import dataclasses
import json
import re
from typing import Any

import colorama
import inflection

from toyc.Compiler.Config import OUTPUT_ENCODING
from toyc.Compiler.Exceptions import CompilerError


class ErrFmt:
    @staticmethod
    def escape_ansi(line: str) -> str:
        ansi_escape = re.compile(r'(?:\x1B[@-_]|[\x80-\x9F])[0-?]*[ -/]*[@-~]')
        return ansi_escape.sub('', line)

    @staticmethod
    def err(error: CompilerError, source_line: str, file_path: str, colour: bool = True) -> str:
        """
        Format an error as:

        -> file.toy:3:9
          |
        3 | def foo(a) a + b
          |              ^ <- ResolutionError: [0002] Unknown variable name 'b'
        """
        line, column = (error.tok.line, error.tok.column) if error.tok else (0, 0)

        # The number of "^" characters is the length of the offending token's text (at least 1, so EOF is visible).
        error_length = max(1, len(error.tok.token_metadata)) if error.tok else 1

        line_number = "".join([
            f"{colorama.Fore.WHITE}{colorama.Style.BRIGHT}",
            str(line),
            f" | {colorama.Style.RESET_ALL}"])
        number_margin_len = len(str(line)) + 1

        file_path_string = "".join([
            "-> ",
            f"{colorama.Fore.WHITE}{colorama.Style.BRIGHT}",
            f"{file_path}:{line}:{column}",
            f"{colorama.Style.RESET_ALL}"])

        top_line_padding_string = "".join([
            " " * number_margin_len,
            f"{colorama.Fore.WHITE}{colorama.Style.BRIGHT}| {colorama.Style.RESET_ALL}"])

        line_containing_error_string = "".join([
            line_number,
            f"{colorama.Fore.GREEN}",
            source_line,
            f"{colorama.Style.RESET_ALL}"])

        error_description_string = "".join([
            " " * number_margin_len,
            f"{colorama.Fore.WHITE}{colorama.Style.BRIGHT}| {colorama.Style.RESET_ALL}",
            f"{colorama.Fore.RED}{colorama.Style.BRIGHT}",
            " " * max(0, column - 1), "^" * error_length,
            f"{colorama.Style.RESET_ALL}",
            f" <- {error.kind}: {error}"])

        final_string = "\n".join([
            "",
            file_path_string,
            top_line_padding_string,
            line_containing_error_string,
            error_description_string])
        return final_string if colour else ErrFmt.escape_ansi(final_string)


def ast_to_json(ast: Any) -> Any:
    # Tag each node with its kind (ie "binary_expression"), as the dataclass fields alone don't say which node it is.
    if dataclasses.is_dataclass(ast):
        node = {"node": inflection.underscore(type(ast).__name__.removesuffix("Ast"))}
        node |= {f.name: ast_to_json(getattr(ast, f.name)) for f in dataclasses.fields(ast) if not f.name.startswith("_")}
        return node
    if isinstance(ast, (list, tuple)):
        return [ast_to_json(item) for item in ast]
    return ast


def save_json(json_dict: Any, file_path: str) -> None:
    with open(file_path, "w", encoding=OUTPUT_ENCODING) as file:
        json.dump(json_dict, file, indent=1)
        file.write("\n")


def save_text(text: str, file_path: str) -> None:
    with open(file_path, "w", encoding=OUTPUT_ENCODING) as file:
        file.write(text)
