"""
The bytecode interpreter: a flat fetch-and-dispatch loop.

Frames live on the heap, linked by ``previous``, so recursion in the guest
program never recurses in Python. Runaway recursion hits ``max_depth`` instead.
"""
import sys
from typing import Optional, TextIO
from ..bytecode import ByteReader, FunctionRecord, MalformedBytecode, Opcode, JumpMode, JumpAddressing
from ..diagnostics import Report
from .stacking import StackFrame, VMFailure
from .values import StackValue, IntegerValue, StringValue, BooleanValue, UnitValue, UNIT, boolean

DEFAULT_MAX_DEPTH = 10_000

class Interpreter:
	_reader: ByteReader
	_functions: dict[str, FunctionRecord]
	_global: StackFrame
	_current: StackFrame

	def __init__(self, *, sink:Optional[TextIO]=None, max_depth:int=DEFAULT_MAX_DEPTH, report:Report=None, trace:bool=False):
		self._sink = sink
		self._max_depth = max_depth
		self._report = report
		self._trace = trace and report is not None

	def interpret(self, code:bytes) -> int:
		""" Run the program; answer its exit code. Raises VMFailure if anything is amiss. """
		self._reader = ByteReader(code)
		self._functions = {}
		try:
			for record in self._reader.read_structure():
				self._functions[record.name] = record
		except MalformedBytecode as ex:
			raise VMFailure(ex.message, ex.offset) from ex
		self._global = self._current = StackFrame("", None, None, None)
		return self._run()

	def _run(self) -> int:
		reader = self._reader
		while True:
			offset = reader.pointer
			try:
				opcode = reader.read_opcode()
				if self._trace:
					self._report.info("%6d  %s%s" % (offset, "  " * self._current.depth, opcode.name))
				if opcode is Opcode.END:
					return self._exit_code()
				else:
					getattr(self, "_op_" + opcode.name)()
			except MalformedBytecode as ex:
				raise VMFailure(ex.message, ex.offset) from ex
			except VMFailure as ex:
				if ex.offset is None: ex.offset = offset
				raise

	def _exit_code(self) -> int:
		if self._current.is_empty():
			raise VMFailure("The program ended with nothing on the stack")
		result = self._current.peek()
		if isinstance(result, IntegerValue): return result.value
		if isinstance(result, UnitValue): return 0
		raise VMFailure("The program's result must be an integer, not %r" % result)

	def _pop(self, kind:type) -> StackValue:
		value = self._current.pop()
		if not isinstance(value, kind):
			raise VMFailure("Expected %s but found %r" % (kind.kind, value))
		return value

	# Literals:

	def _op_PUSH_INT(self): self._current.push(IntegerValue(self._reader.read_i64()))
	def _op_PUSH_STRING(self): self._current.push(StringValue(self._reader.read_string()))
	def _op_PUSH_BOOL(self): self._current.push(boolean(self._reader.read_u16() != 0))
	def _op_PUSH_UNIT(self): self._current.push(UNIT)

	# Names and markers:

	def _op_LOAD(self):
		self._current.push(self._current.get_named_value(self._reader.read_string()))

	def _op_LET(self):
		name = self._reader.read_string()
		self._current.set_named_value(name, self._current.pop())

	def _op_MARK(self):
		name = self._reader.read_string()
		self._current.markers[name] = self._reader.pointer

	def _op_JUMP(self):
		raw_mode = self._pop(IntegerValue).value
		try: mode = JumpMode(raw_mode)
		except ValueError: raise VMFailure("Unrecognized jump mode %d" % raw_mode)
		addressing = self._reader.read_addressing()
		if addressing is JumpAddressing.RELATIVE_BYTES:
			distance = self._reader.read_u64()
			target = self._reader.pointer + distance
		else:
			label = self._reader.read_string()
			try: target = self._current.markers[label]
			except KeyError: raise VMFailure("No marker %r in this frame" % label)
		if mode is JumpMode.IF_FALSE and self._pop(BooleanValue).value:
			return
		if not 0 <= target <= len(self._reader.code):
			raise VMFailure("Jump target %d is out of bounds" % target)
		self._reader.pointer = target

	# Frames:

	def _op_START_FRAME(self):
		length = self._reader.read_u64()
		block_end = self._reader.pointer + length
		if block_end > len(self._reader.code):
			raise VMFailure("Block of %d bytes runs past the end of the code" % length)
		self._enter(StackFrame("", block_end, self._current, self._current))

	def _op_CALL(self):
		name = self._reader.read_string()
		try: record = self._functions[name]
		except KeyError: raise VMFailure("There is no function called %r" % name)
		caller = self._current
		callee = StackFrame(name, self._reader.pointer, caller, caller.scope_root())
		for arg in reversed(record.arguments):
			callee.bind_local(arg, caller.pop())
		self._enter(callee)
		self._reader.pointer = record.offset

	def _enter(self, frame:StackFrame):
		if frame.depth > self._max_depth:
			raise VMFailure("The call stack is exhausted (more than %d frames deep)" % self._max_depth)
		self._current = frame

	def _op_RET(self):
		frame = self._current
		if frame.previous is None:
			raise VMFailure("Cannot return from the global frame")
		value = frame.pop()
		self._reader.pointer = frame.return_pointer
		self._current = frame.previous
		self._current.push(value)

	# Arithmetic and logic:

	def _binary_ints(self):
		right = self._pop(IntegerValue).value
		left = self._pop(IntegerValue).value
		return left, right

	def _op_ADD(self):
		left, right = self._binary_ints()
		self._current.push(IntegerValue(left + right))

	def _op_SUB(self):
		left, right = self._binary_ints()
		self._current.push(IntegerValue(left - right))

	def _op_LESS_THAN(self):
		left, right = self._binary_ints()
		self._current.push(boolean(left < right))

	def _op_LESS_THAN_EQ(self):
		left, right = self._binary_ints()
		self._current.push(boolean(left <= right))

	def _op_GREATER_THAN(self):
		left, right = self._binary_ints()
		self._current.push(boolean(left > right))

	def _op_GREATER_THAN_EQ(self):
		left, right = self._binary_ints()
		self._current.push(boolean(left >= right))

	def _op_EQUALITY(self):
		right = self._current.pop()
		left = self._current.pop()
		self._current.push(boolean(left == right))

	def _op_NEGATE_INT(self):
		self._current.push(IntegerValue(-self._pop(IntegerValue).value))

	def _op_ECHO(self):
		sink = sys.stdout if self._sink is None else self._sink
		sink.write(self._pop(StringValue).value)

	def _op_NEGATE_BOOL(self):
		self._current.push(boolean(not self._pop(BooleanValue).value))

def run_program(code:bytes, **kwargs) -> int:
	return Interpreter(**kwargs).interpret(code)
