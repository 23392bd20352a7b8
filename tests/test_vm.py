import io
import unittest
from milner.bytecode import Opcode, JumpMode, JumpAddressing, Structure, instruction, function_record, u16
from milner.vm.executive import Interpreter, run_program, VMFailure
from milner.vm.stacking import StackFrame
from milner.vm.values import IntegerValue, StringValue, UNIT

def _program(*functions) -> bytes:
	""" Each function is (name, args, list-of-instructions). main gets called. """
	code = b"".join(function_record(name, args, b"".join(body)) for name, args, body in functions)
	return code + u16(Structure.END) + instruction(Opcode.CALL, "main") + instruction(Opcode.END)

def _main(*body) -> bytes:
	return _program(("main", [], body))

I = instruction

def _block(*body) -> bytes:
	code = b"".join(body)
	return I(Opcode.START_FRAME, len(code)) + code

class FrameTests(unittest.TestCase):

	def test_write_goes_to_owner(self):
		outer = StackFrame("main", 0, None, None)
		outer.bind_local("x", IntegerValue(1))
		inner = StackFrame("", None, outer, outer)
		inner.set_named_value("x", IntegerValue(2))
		inner.set_named_value("y", IntegerValue(3))
		self.assertEqual(IntegerValue(2), outer.get_named_value("x"))
		self.assertFalse(outer.holds("y"))
		self.assertTrue(inner.holds("y"))
		self.assertEqual(1, inner.depth)

	def test_empty_stack(self):
		frame = StackFrame("main", 0, None, None)
		self.assertTrue(frame.is_empty())
		with self.assertRaises(VMFailure):
			frame.pop()
		frame.push(UNIT)
		self.assertIs(UNIT, frame.peek())
		self.assertFalse(frame.is_empty())


class InterpreterTests(unittest.TestCase):

	def assertExit(self, expected, code, **kwargs):
		self.assertEqual(expected, run_program(code, **kwargs))

	def assertFails(self, code, **kwargs) -> VMFailure:
		with self.assertRaises(VMFailure) as cm:
			run_program(code, **kwargs)
		self.assertEqual("runtime", cm.exception.phase)
		return cm.exception

	def test_exit_codes(self):
		self.assertExit(42, _main(I(Opcode.PUSH_INT, 42), I(Opcode.RET)))
		self.assertExit(-3, _main(I(Opcode.PUSH_INT, -3), I(Opcode.RET)))
		self.assertExit(0, _main(I(Opcode.PUSH_UNIT), I(Opcode.RET)))

	def test_non_integer_exit(self):
		self.assertFails(_main(I(Opcode.PUSH_STRING, "x"), I(Opcode.RET)))
		self.assertFails(_main(I(Opcode.PUSH_BOOL, 1), I(Opcode.RET)))

	def test_arguments_bind_in_order(self):
		code = _program(
			("minus", ["a", "b"], [I(Opcode.LOAD, "a"), I(Opcode.LOAD, "b"), I(Opcode.SUB), I(Opcode.RET)]),
			("main", [], [I(Opcode.PUSH_INT, 10), I(Opcode.PUSH_INT, 3), I(Opcode.CALL, "minus"), I(Opcode.RET)]),
		)
		self.assertExit(7, code)

	def test_callee_cannot_see_caller_locals(self):
		code = _program(
			("peek", [], [I(Opcode.LOAD, "x"), I(Opcode.RET)]),
			("main", [], [I(Opcode.PUSH_INT, 5), I(Opcode.LET, "x"), I(Opcode.CALL, "peek"), I(Opcode.RET)]),
		)
		self.assertIn("'x'", self.assertFails(code).message)

	def test_callee_from_block_still_isolated(self):
		code = _program(
			("peek", [], [I(Opcode.LOAD, "x"), I(Opcode.RET)]),
			("main", [], [
				I(Opcode.PUSH_INT, 5), I(Opcode.LET, "x"),
				_block(I(Opcode.CALL, "peek"), I(Opcode.RET)),
				I(Opcode.RET),
			]),
		)
		self.assertFails(code)

	def test_block_sees_and_updates_enclosing(self):
		self.assertExit(2, _main(
			I(Opcode.PUSH_INT, 1), I(Opcode.LET, "x"),
			_block(I(Opcode.PUSH_INT, 2), I(Opcode.LET, "x"), I(Opcode.PUSH_UNIT), I(Opcode.RET)),
			I(Opcode.LOAD, "x"), I(Opcode.RET),
		))

	def test_block_locals_vanish(self):
		self.assertFails(_main(
			_block(I(Opcode.PUSH_INT, 2), I(Opcode.LET, "y"), I(Opcode.PUSH_UNIT), I(Opcode.RET)),
			I(Opcode.LOAD, "y"), I(Opcode.RET),
		))

	def test_block_value_lands_in_enclosing_frame(self):
		self.assertExit(9, _main(
			_block(I(Opcode.PUSH_INT, 9), I(Opcode.RET)),
			I(Opcode.RET),
		))

	def test_early_return_resumes_after_block(self):
		# let y = { if (true) { return 1; } return 2; }; return y + 10;
		then_part = I(Opcode.PUSH_INT, 1) + I(Opcode.RET)
		self.assertExit(11, _main(
			_block(
				I(Opcode.PUSH_BOOL, 1),
				I(Opcode.PUSH_INT, JumpMode.IF_FALSE), I(Opcode.JUMP, (JumpAddressing.RELATIVE_BYTES, len(then_part))),
				then_part,
				I(Opcode.PUSH_INT, 2), I(Opcode.RET),
			),
			I(Opcode.LET, "y"),
			I(Opcode.LOAD, "y"), I(Opcode.PUSH_INT, 10), I(Opcode.ADD), I(Opcode.RET),
		))

	def test_block_longer_than_the_code(self):
		ex = self.assertFails(_main(I(Opcode.START_FRAME, 10_000), I(Opcode.PUSH_UNIT), I(Opcode.RET)))
		self.assertIn("10000", ex.message)

	def test_conditional_jump(self):
		skipped = I(Opcode.PUSH_INT, 1) + I(Opcode.RET)
		for flag, expected in [(1, 1), (0, 2)]:
			with self.subTest(flag=flag):
				self.assertExit(expected, _main(
					I(Opcode.PUSH_BOOL, flag),
					I(Opcode.PUSH_INT, JumpMode.IF_FALSE), I(Opcode.JUMP, (JumpAddressing.RELATIVE_BYTES, len(skipped))),
					skipped,
					I(Opcode.PUSH_INT, 2), I(Opcode.RET),
				))

	def test_loop_by_marker(self):
		# n = 0; while (n < 4) { n = n + 1; } return n;
		body = (
			I(Opcode.LOAD, "n") + I(Opcode.PUSH_INT, 1) + I(Opcode.ADD) + I(Opcode.LET, "n")
			+ I(Opcode.PUSH_INT, JumpMode.ALWAYS) + I(Opcode.JUMP, (JumpAddressing.MARKER, "top"))
		)
		self.assertExit(4, _main(
			I(Opcode.PUSH_INT, 0), I(Opcode.LET, "n"),
			I(Opcode.MARK, "top"),
			I(Opcode.LOAD, "n"), I(Opcode.PUSH_INT, 4), I(Opcode.LESS_THAN),
			I(Opcode.PUSH_INT, JumpMode.IF_FALSE), I(Opcode.JUMP, (JumpAddressing.RELATIVE_BYTES, len(body))),
			body,
			I(Opcode.LOAD, "n"), I(Opcode.RET),
		))

	def test_unknown_marker(self):
		self.assertFails(_main(I(Opcode.PUSH_INT, JumpMode.ALWAYS), I(Opcode.JUMP, (JumpAddressing.MARKER, "nowhere"))))

	def test_jump_out_of_bounds(self):
		self.assertFails(_main(I(Opcode.PUSH_INT, JumpMode.ALWAYS), I(Opcode.JUMP, (JumpAddressing.RELATIVE_BYTES, 10_000))))

	def test_unknown_opcode(self):
		ex = self.assertFails(_main(I(Opcode.PUSH_INT, 1), u16(99)))
		self.assertIn("99", ex.message)
		self.assertIsNotNone(ex.offset)

	def test_wrong_operand_kind(self):
		self.assertFails(_main(I(Opcode.PUSH_STRING, "a"), I(Opcode.PUSH_INT, 1), I(Opcode.ADD), I(Opcode.RET)))
		self.assertFails(_main(I(Opcode.PUSH_INT, 1), I(Opcode.NEGATE_BOOL), I(Opcode.RET)))

	def test_stack_underflow(self):
		self.assertFails(_main(I(Opcode.ADD)))

	def test_unknown_function(self):
		self.assertFails(_main(I(Opcode.CALL, "nobody"), I(Opcode.RET)))

	def test_return_from_global_frame(self):
		self.assertFails(u16(Structure.END) + I(Opcode.PUSH_UNIT) + I(Opcode.RET))

	def test_runaway_recursion(self):
		code = _program(
			("forever", [], [I(Opcode.CALL, "forever"), I(Opcode.RET)]),
			("main", [], [I(Opcode.CALL, "forever"), I(Opcode.RET)]),
		)
		ex = self.assertFails(code, max_depth=50)
		self.assertIn("50", ex.message)

	def test_truncated_code(self):
		self.assertFails(_main(I(Opcode.PUSH_INT, 1))[:-3])

	def test_echo_writes_to_sink(self):
		sink = io.StringIO()
		code = _main(I(Opcode.PUSH_STRING, "héllo"), I(Opcode.ECHO), I(Opcode.PUSH_UNIT), I(Opcode.RET))
		self.assertEqual(0, Interpreter(sink=sink).interpret(code))
		self.assertEqual("héllo", sink.getvalue())

	def test_comparisons_and_equality(self):
		for opcode, left, right, expected in [
			(Opcode.LESS_THAN, 1, 2, True),
			(Opcode.LESS_THAN_EQ, 2, 2, True),
			(Opcode.GREATER_THAN, 1, 2, False),
			(Opcode.GREATER_THAN_EQ, 2, 3, False),
			(Opcode.EQUALITY, 4, 4, True),
		]:
			with self.subTest(opcode=opcode):
				skip = I(Opcode.PUSH_INT, 1) + I(Opcode.RET)
				self.assertExit(1 if expected else 0, _main(
					I(Opcode.PUSH_INT, left), I(Opcode.PUSH_INT, right), I(opcode),
					I(Opcode.PUSH_INT, JumpMode.IF_FALSE), I(Opcode.JUMP, (JumpAddressing.RELATIVE_BYTES, len(skip))),
					skip,
					I(Opcode.PUSH_INT, 0), I(Opcode.RET),
				))

	def test_equality_of_mixed_kinds(self):
		self.assertNotEqual(IntegerValue(1), StringValue("1"))
		self.assertEqual(StringValue("a"), StringValue("a"))


if __name__ == '__main__':
	unittest.main()
