import contextlib
import io
import json
import os
import tempfile
import unittest

from toyc.__main__ import main
from toyc.Compiler.Compiler import Compiler
from toyc.Compiler.Config import CompilerOptions
from toyc.Compiler.Exceptions import (
    ArityError, EvaluationError, ParseSyntaxError, RedefinitionError, UnknownFunctionError, UnknownVariableError)
from toyc.Compiler.Printer import ErrFmt
from toyc.SyntacticAnalysis import Ast


class TestCompiler(unittest.TestCase):
    def compile(self, code, **options):
        options.setdefault("colour", False)
        self.stderr = io.StringIO()
        compiler = Compiler(code, "test.toy", CompilerOptions(**options), self.stderr)
        compiler.compile()
        return compiler

    def test_empty_input(self):
        compiler = self.compile("")
        self.assertEqual(compiler.errors, [])
        self.assertEqual(compiler.units, [])
        self.assertIn("ModuleID", compiler.ir())

    def test_units_are_compiled_in_order(self):
        compiler = self.compile("extern sin(x); def foo(a) sin(a) + 1; foo(2);;")
        self.assertEqual(compiler.errors, [])
        self.assertEqual([type(unit) for unit in compiler.units], [Ast.PrototypeAst, Ast.FunctionAst, Ast.FunctionAst])
        self.assertTrue(compiler.units[2].is_anonymous)
        self.assertIsNotNone(compiler.context.backend.lookup_function("foo"))

    def test_anonymous_functions_are_kept(self):
        compiler = self.compile("1 + 2; 3 * 4")
        self.assertEqual(compiler.errors, [])
        ir = compiler.ir()
        self.assertIn('define double @"__anon_expr"()', ir)
        self.assertIn('define double @"__anon_expr.1"()', ir)
        self.assertNotIn(Ast.ANONYMOUS_FUNCTION_NAME, compiler.context.function_register)
        self.assertNotIn(f"{Ast.ANONYMOUS_FUNCTION_NAME}.1", compiler.context.function_register)

    def test_failed_anonymous_function_is_removed(self):
        compiler = self.compile("1 + x; 2")
        self.assertEqual([type(error) for error in compiler.errors], [UnknownVariableError])
        self.assertIsNotNone(compiler.context.backend.lookup_function(Ast.ANONYMOUS_FUNCTION_NAME))
        self.assertIsNone(compiler.context.backend.lookup_function(f"{Ast.ANONYMOUS_FUNCTION_NAME}.1"))

    def test_recovery_after_codegen_error(self):
        compiler = self.compile("def foo(a b) a + b\nfoo(1)\ndef bar(x) x")
        self.assertEqual([type(error) for error in compiler.errors], [ArityError])
        self.assertIsNotNone(compiler.context.backend.lookup_function("bar"))

    def test_recovery_after_parse_error(self):
        compiler = self.compile("def foo( 1; def bar(x) x")
        self.assertEqual([type(error) for error in compiler.errors], [ParseSyntaxError])
        self.assertIsNone(compiler.context.backend.lookup_function("foo"))
        self.assertIsNotNone(compiler.context.backend.lookup_function("bar"))

    def test_failed_definition_is_not_callable(self):
        compiler = self.compile("def foo(a) b\nfoo(1)\ndef bar(x) foo(x)")
        self.assertEqual(
            [type(error) for error in compiler.errors],
            [UnknownVariableError, UnknownFunctionError, UnknownFunctionError])
        self.assertNotIn('@"foo"', compiler.ir())

    def test_failed_definition_can_be_redefined(self):
        compiler = self.compile("def foo(a) b; def foo(a b) a+b; foo(1, 2)", evaluate=True)
        self.assertEqual([type(error) for error in compiler.errors], [UnknownVariableError])
        self.assertEqual(compiler.results, [3.0])

    def test_failed_extern_is_reported(self):
        compiler = self.compile("extern foo(a)\nextern foo(a b)\ndef foo(x) x")
        self.assertEqual([type(error) for error in compiler.errors], [RedefinitionError])
        self.assertIsNotNone(compiler.context.backend.lookup_function("foo"))

    def test_compile_returns_success(self):
        stderr = io.StringIO()
        self.assertTrue(Compiler("def f(x) x", stderr=stderr).compile())
        self.assertFalse(Compiler("def f(x) y", stderr=stderr).compile())

    # Evaluation

    def test_evaluation(self):
        compiler = self.compile(
            "def f(x) if x then 2 else 3\nf(1); f(0); 4*2+1; 10/4; 1<2; 3>4; 8-2-1", evaluate=True)
        self.assertEqual(compiler.errors, [])
        self.assertEqual(compiler.results, [2.0, 3.0, 9.0, 2.5, 1.0, 0.0, 5.0])
        self.assertIn("Evaluated to 2.5", self.stderr.getvalue())

    def test_evaluation_of_recursion(self):
        compiler = self.compile("def fib(n) if n < 2 then n else fib(n-1) + fib(n-2)\nfib(10)", evaluate=True)
        self.assertEqual(compiler.results, [55.0])

    def test_evaluation_after_extern_definition(self):
        compiler = self.compile("extern foo(a); def foo(a) a*2; foo(3)", evaluate=True)
        self.assertEqual(compiler.errors, [])
        self.assertEqual(compiler.results, [6.0])

    def test_incompatible_redefinition_keeps_first(self):
        compiler = self.compile("def foo(a) a; def foo(a b) a+b; foo(5)", evaluate=True)
        self.assertEqual([type(error) for error in compiler.errors], [RedefinitionError])
        self.assertEqual(compiler.results, [5.0])

    def test_unresolved_extern_is_not_evaluated(self):
        compiler = self.compile("extern nosuchfunction(x) nosuchfunction(1)", evaluate=True)
        self.assertEqual([type(error) for error in compiler.errors], [EvaluationError])
        self.assertIn("nosuchfunction", compiler.errors[0].message)
        self.assertEqual(compiler.results, [])

    def test_no_evaluation_by_default(self):
        compiler = self.compile("1 + 1")
        self.assertEqual(compiler.results, [])
        self.assertNotIn("Evaluated", self.stderr.getvalue())

    # Diagnostics

    def test_diagnostic_points_at_source(self):
        compiler = self.compile("def foo(a)\n  a + b")
        self.assertIsInstance(compiler.errors[0], UnknownVariableError)

        report = self.stderr.getvalue()
        self.assertIn("-> test.toy:2:7", report)
        self.assertIn("2 |   a + b", report)
        self.assertIn("^ <- ResolutionError: [0002] Unknown variable name 'b'", report)
        self.assertNotIn("\x1b", report)

    def test_coloured_diagnostic(self):
        self.compile("def f(x) y", colour=True)
        report = self.stderr.getvalue()
        self.assertIn("\x1b[", report)
        self.assertIn("-> test.toy:1:10", ErrFmt.escape_ansi(report))

    def test_verbose_echoes_units(self):
        self.compile("def f(x) x + 1", verbose=True)
        output = self.stderr.getvalue()
        self.assertIn("Read function definition: def f(x) (x + 1)", output)
        self.assertIn('define double @"f"', output)

    # Outputs

    def test_outputs_are_written(self):
        with tempfile.TemporaryDirectory() as directory:
            ir_path = os.path.join(directory, "out.ll")
            ast_path = os.path.join(directory, "ast.json")
            compiler = self.compile("extern g(a); def f(x) g(x) < 2", output_path=ir_path, dump_ast_path=ast_path)

            with open(ir_path) as file:
                self.assertEqual(file.read(), compiler.ir())
            with open(ast_path) as file:
                units = json.load(file)

        self.assertEqual(units[0], {"node": "prototype", "identifier": "g", "parameters": ["a"]})
        self.assertEqual(units[1]["node"], "function")
        self.assertEqual(units[1]["body"]["node"], "binary_expression")
        self.assertEqual(units[1]["body"]["lhs"]["node"], "call_expression")

    def test_module_name(self):
        compiler = self.compile("", module_name="example")
        self.assertIn('"example"', compiler.ir())

    # Command line

    def run_main(self, argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_main(self):
        with tempfile.TemporaryDirectory() as directory:
            source_path = os.path.join(directory, "source.toy")
            with open(source_path, "w") as file:
                file.write("# doubles its argument\ndef double(x) x * 2\n")

            code, stdout, _ = self.run_main([source_path, "--no-colour"])
            self.assertEqual(code, 0)
            self.assertIn('define double @"double"', stdout)

            output_path = os.path.join(directory, "source.ll")
            code, stdout, _ = self.run_main([source_path, "-o", output_path])
            self.assertEqual(code, 0)
            self.assertEqual(stdout, "")
            self.assertTrue(os.path.exists(output_path))

    def test_main_with_errors(self):
        with tempfile.TemporaryDirectory() as directory:
            source_path = os.path.join(directory, "source.toy")
            with open(source_path, "w") as file:
                file.write("def f(x) y\ndef g(x) x\n")

            code, stdout, stderr = self.run_main([source_path, "--no-colour"])
            self.assertEqual(code, 1)
            self.assertIn('@"g"', stdout)
            self.assertIn("Unknown variable name 'y'", stderr)

    def test_main_with_missing_file(self):
        with tempfile.TemporaryDirectory() as directory:
            missing_path = os.path.join(directory, "missing.toy")
            code, stdout, stderr = self.run_main([missing_path])

        self.assertEqual(code, 1)
        self.assertIn(f"Could not open file '{missing_path}'", stderr)
        self.assertIn("ModuleID", stdout)


if __name__ == "__main__":
    unittest.main()
