"""
Lowering checked syntax into bytecode.

Forward jumps are resolved without any fix-up pass: the code to be skipped
gets rendered first into a group, so its exact length is known before the
jump that skips it has to be written. Backward jumps (loops) go by named
markers, which the VM records as it passes them.

Bodies of if and while statements share the frame of their enclosing function,
so a return inside one returns from the function. A bare block gets a frame of
its own, which knows where the block ends: any return within it, however deeply
nested in ifs and loops, resumes there with the value of the block.
"""
from typing import Optional
from boozetools.support.foundation import Visitor
from . import syntax, primitive
from .bytecode import Opcode, JumpMode, JumpAddressing, InstructionWriter, function_record, instruction, u16, Structure
from .diagnostics import Failure
from .ontology import ValueExpression

class CompileFailure(Failure):
	phase = "compile"

UNARY_INSTRUCTION = {
	syntax.Negate: Opcode.NEGATE_INT,
	syntax.Not: Opcode.NEGATE_BOOL,
}

class FunctionCompiler(Visitor):
	"""
	One instance per function is the usual way, but compile() starts fresh each time.
	Statement visitors take the label of the innermost enclosing loop (or None);
	expression visitors take nothing.
	"""
	_writer: InstructionWriter
	_transient: int

	def compile(self, fn:syntax.Function) -> bytes:
		self._writer = InstructionWriter()
		self._transient = 0
		self._write_block(fn.body, force_return=True, loop=None)
		return self._writer.finish()

	def _write_block(self, block:syntax.Block, *, force_return:bool, loop:Optional[str]):
		for stmt in block.statements:
			if isinstance(stmt, ValueExpression):
				self.visit(stmt)
			else:
				self.visit(stmt, loop)
			if isinstance(stmt, syntax.BlockReturn):
				return  # Anything after is unreachable.
		if force_return:
			self._writer.write(Opcode.PUSH_UNIT)
			self._writer.write(Opcode.RET)

	def _jump(self, mode:JumpMode, addressing:JumpAddressing, target):
		self._writer.write(Opcode.PUSH_INT, mode)
		self._writer.write(Opcode.JUMP, (addressing, target))

	# Statements:

	def visit_VariableDefinition(self, stmt:syntax.VariableDefinition, loop):
		self.visit(stmt.value)
		self._writer.write(Opcode.LET, stmt.nom.text)

	def visit_Reassignment(self, stmt:syntax.Reassignment, loop):
		self.visit(stmt.value)
		self._writer.write(Opcode.LET, stmt.nom.text)

	def visit_IfStatement(self, stmt:syntax.IfStatement, loop):
		self._writer.start_group()
		self._write_block(stmt.then, force_return=False, loop=loop)
		then_part = self._writer.end_group()
		self.visit(stmt.condition)
		self._jump(JumpMode.IF_FALSE, JumpAddressing.RELATIVE_BYTES, len(then_part))
		self._writer.write_raw(then_part)

	def visit_WhileLoop(self, stmt:syntax.WhileLoop, loop):
		label = "while%d" % self._transient
		self._transient += 1
		self._writer.start_group()
		self._write_block(stmt.body, force_return=False, loop=label)
		self._jump(JumpMode.ALWAYS, JumpAddressing.MARKER, label)
		body = self._writer.end_group()
		self._writer.write(Opcode.MARK, label)
		self.visit(stmt.condition)
		self._writer.write(Opcode.MARK, label + "break")
		self._jump(JumpMode.IF_FALSE, JumpAddressing.RELATIVE_BYTES, len(body))
		self._writer.write_raw(body)

	def visit_LoopBreak(self, stmt:syntax.LoopBreak, loop):
		if loop is None:
			raise CompileFailure("'break' must be inside a while loop.", stmt)
		# The false lands where the loop condition would be, so the exit jump fires.
		self._writer.write(Opcode.PUSH_BOOL, 0)
		self._jump(JumpMode.ALWAYS, JumpAddressing.MARKER, loop + "break")

	def visit_BlockReturn(self, stmt:syntax.BlockReturn, loop):
		if stmt.value is None:
			self._writer.write(Opcode.PUSH_UNIT)
		else:
			self.visit(stmt.value)
		self._writer.write(Opcode.RET)

	# Expressions:

	def visit_Block(self, block:syntax.Block):
		self._writer.start_group()
		self._write_block(block, force_return=True, loop=None)
		body = self._writer.end_group()
		self._writer.write(Opcode.START_FRAME, len(body))
		self._writer.write_raw(body)

	def visit_IntegerLiteral(self, expr:syntax.IntegerLiteral):
		self._writer.write(Opcode.PUSH_INT, expr.value)

	def visit_StringLiteral(self, expr:syntax.StringLiteral):
		self._writer.write(Opcode.PUSH_STRING, expr.value)

	def visit_BooleanLiteral(self, expr:syntax.BooleanLiteral):
		self._writer.write(Opcode.PUSH_BOOL, int(expr.value))

	def visit_Lookup(self, expr:syntax.Lookup):
		self._writer.write(Opcode.LOAD, expr.nom.text)

	def visit_Group(self, expr:syntax.Group):
		self.visit(expr.arg)

	def visit_UnaryExp(self, expr:syntax.UnaryExp):
		self.visit(expr.arg)
		self._writer.write(UNARY_INSTRUCTION[type(expr)])

	def visit_BinExp(self, expr:syntax.BinExp):
		self.visit(expr.lhs)
		self.visit(expr.rhs)
		self._writer.write(primitive.BINARY_OPERATORS[expr.glyph()].opcode)

	def visit_Call(self, expr:syntax.Call):
		if not isinstance(expr.fn_exp, syntax.Lookup):
			raise CompileFailure("Only a function's name can be called.", expr.fn_exp)
		for arg in expr.args:
			self.visit(arg)
		self._writer.write(Opcode.CALL, expr.fn_exp.nom.text)

class ProgramCompiler:
	"""
	Standard functions first, then the user's, then the call to main.
	"""
	def compile(self, module:syntax.Module) -> bytes:
		if module.find("main") is None:
			raise CompileFailure("A program needs a function called 'main'.")
		code = bytearray()
		for std in primitive.STANDARD_FUNCTIONS:
			code += function_record(std.name, std.arg_names(), std.body)
		for fn in module.functions:
			code += function_record(fn.name(), fn.arg_names(), FunctionCompiler().compile(fn))
		code += u16(Structure.END)
		code += instruction(Opcode.CALL, "main")
		code += instruction(Opcode.END)
		return bytes(code)

def compile_program(module:syntax.Module) -> bytes:
	return ProgramCompiler().compile(module)
