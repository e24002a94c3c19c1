from __future__ import annotations

from ctypes import CFUNCTYPE, c_double
from typing import Optional, Sequence

import llvmlite.ir as ll
import llvmlite.binding as llvm

from toyc.Compiler.Exceptions import VerificationError, EvaluationError


class Backend:
    """
    The narrow interface the code generator emits through. Everything LLVM specific lives here: the module, the
    builder, the single numeric type (double), verification and JIT evaluation.
    """

    context: ll.Context
    module: ll.Module
    builder: ll.IRBuilder
    double: ll.DoubleType

    def __init__(self, module_name: str = "toy"):
        self.context = ll.Context()
        self.module = ll.Module(name=module_name, context=self.context)
        self.builder = ll.IRBuilder()
        self.double = ll.DoubleType()

    # Functions

    def lookup_function(self, name: str) -> Optional[ll.Function]:
        value = self.module.globals.get(name)
        return value if isinstance(value, ll.Function) else None

    def declare_function(self, name: str, parameter_names: Sequence[str]) -> ll.Function:
        llvm_function_type = ll.FunctionType(self.double, [self.double] * len(parameter_names))
        llvm_function = ll.Function(self.module, llvm_function_type, name=name)
        for argument, parameter_name in zip(llvm_function.args, parameter_names):
            argument.name = parameter_name
        return llvm_function

    def begin_function_body(self, llvm_function: ll.Function) -> ll.Block:
        llvm_basic_block_entry = llvm_function.append_basic_block(name="entry")
        self.builder.position_at_end(llvm_basic_block_entry)
        return llvm_basic_block_entry

    def unique_function_name(self, name: str) -> str:
        return self.module.get_unique_name(name)

    def erase_function(self, llvm_function: ll.Function) -> None:
        # llvmlite has no eraseFromParent(), so remove the global from the module and free its name for reuse.
        del self.module.globals[llvm_function.name]
        self._release_name(llvm_function.name)

    def _release_name(self, name: str) -> None:
        if hasattr(self.module.scope, "_useset"):
            self.module.scope._useset.discard(name)

    def clear_function_body(self, llvm_function: ll.Function) -> None:
        # Turn a function back into a declaration, so existing callers still have something to link against.
        llvm_function.blocks = []

    def verify_function(self, llvm_function: ll.Function) -> None:
        # LLVM verification works on a parsed module, so the whole module is checked. Every function in it before this
        # one has already passed, so any failure belongs to the function just generated.
        try:
            llvm_module = llvm.parse_assembly(str(self.module))
            llvm_module.verify()
        except RuntimeError as e:
            raise VerificationError(f"Function '{llvm_function.name}' failed verification: {str(e).strip()}") from None

    # Blocks

    def create_basic_block(self, label: str) -> ll.Block:
        return self.builder.function.append_basic_block(name=label)

    def set_insertion_point(self, block: ll.Block) -> None:
        self.builder.position_at_end(block)

    @property
    def current_block(self) -> ll.Block:
        return self.builder.block

    # Instructions

    def emit_constant(self, value: float) -> ll.Constant:
        return ll.Constant(self.double, value)

    def emit_binary_op(self, kind: str, lhs: ll.Value, rhs: ll.Value) -> ll.Value:
        match kind:
            case "add": return self.builder.fadd(lhs, rhs, name="addtmp")
            case "sub": return self.builder.fsub(lhs, rhs, name="subtmp")
            case "mul": return self.builder.fmul(lhs, rhs, name="multmp")
            case "div": return self.builder.fdiv(lhs, rhs, name="divtmp")
            case "lt": return self._bool_to_double(self.builder.fcmp_unordered("<", lhs, rhs, name="cmptmp"))
            case "gt": return self._bool_to_double(self.builder.fcmp_unordered(">", lhs, rhs, name="cmptmp"))
            case _: raise ValueError(f"Unknown binary operation '{kind}'")

    def emit_compare(self, op: str, lhs: ll.Value, rhs: ll.Value, name: str = "cmptmp") -> ll.Value:
        return self.builder.fcmp_ordered(op, lhs, rhs, name=name)

    def emit_call(self, llvm_function: ll.Function, arguments: list[ll.Value]) -> ll.Value:
        return self.builder.call(llvm_function, arguments, name="calltmp")

    def emit_conditional_branch(self, condition: ll.Value, then_block: ll.Block, else_block: ll.Block) -> None:
        self.builder.cbranch(condition, then_block, else_block)

    def emit_unconditional_branch(self, target: ll.Block) -> None:
        self.builder.branch(target)

    def emit_phi(self, incoming: list[tuple[ll.Value, ll.Block]], name: str = "iftmp") -> ll.Value:
        phi = self.builder.phi(self.double, name=name)
        for value, block in incoming:
            phi.add_incoming(value, block)
        return phi

    def emit_return(self, value: ll.Value) -> None:
        self.builder.ret(value)

    def _bool_to_double(self, value: ll.Value) -> ll.Value:
        return self.builder.uitofp(value, self.double, name="booltmp")

    # Output

    def ir(self) -> str:
        return str(self.module)

    def evaluate(self, name: str) -> float:
        """
        JIT compile the module and call the zero-argument function `name`, returning its result. Declarations without a
        body must be resolvable as symbols of the running process (ie libm's "sin"), otherwise LLVM would abort the
        whole process when finalizing, so they're checked first.
        """
        unresolved = [f.name for f in self.module.functions if f.is_declaration and not llvm.address_of_symbol(f.name)]
        if unresolved:
            raise EvaluationError(f"Cannot evaluate '{name}', unresolved external function(s): {', '.join(unresolved)}")

        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()

        target_machine = llvm.Target.from_default_triple().create_target_machine()
        llvm_module = llvm.parse_assembly(str(self.module))
        llvm_module.triple = llvm.get_process_triple()
        llvm_module.data_layout = str(target_machine.target_data)

        with llvm.create_mcjit_compiler(llvm_module, target_machine) as ee:
            ee.finalize_object()
            function_pointer = ee.get_function_address(name)
            py_function = CFUNCTYPE(c_double)(function_pointer)
            return py_function()
