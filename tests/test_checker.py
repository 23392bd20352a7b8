import unittest
from milner import syntax
from milner.diagnostics import Report
from milner.front_end import parse_text
from milner.primitive import int_type, bool_type, unit_type, string_type
from milner.static.check import TypeChecker, TypeCheckFailure

def _check(text):
	return TypeChecker(Report()).check_program(parse_text(text))

class GoodProgramTests(unittest.TestCase):

	def test_context_holds_scoped_names(self):
		checked = _check("""
			fn int add(a: int, b: int) { return a + b; }
			fn int main() {
				let x = add(1, 2);
				if (x < 5) { let y = "small"; }
				return x;
			}
		""")
		ctx = checked.context
		self.assertEqual(int_type, ctx["main.x"])
		self.assertEqual(int_type, ctx["add.a"])
		self.assertEqual(string_type, ctx["main.if0.y"])
		self.assertEqual("int -> int -> int", str(ctx["add"]))

	def test_statement_types(self):
		checked = _check("""
			fn bool main() {
				let b = 1 == "one";
				echo("hi");
				return !b;
			}
		""")
		define, call, ret = checked.module.find("main").body.statements
		self.assertEqual(bool_type, checked.types[define])
		self.assertEqual(unit_type, checked.types[call])
		self.assertEqual(bool_type, checked.types[ret])

	def test_block_value(self):
		checked = _check("""
			fn int main() {
				let s = { let t = "x"; return t; };
				let n = { echo("no value"); };
				return 0;
			}
		""")
		self.assertEqual(string_type, checked.context["main.s"])
		self.assertEqual(unit_type, checked.context["main.n"])

	def test_return_nested_in_loop_counts(self):
		_check("""
			fn int first(n: int) {
				while (true) {
					if (n > 3) { return n; }
					n = n + 1;
				}
				return 0;
			}
			fn int main() { return first(1); }
		""")

	def test_block_returns_nested_in_if_and_while(self):
		checked = _check("""
			fn int main() {
				let y = { if (true) { return 1; } while (true) { return 2; } return 3; };
				return y;
			}
		""")
		self.assertEqual(int_type, checked.context["main.y"])

	def test_unit_function_without_return(self):
		_check("fn unit hello() { echo(\"hi\"); } fn int main() { hello(); return 0; }")

	def test_mutual_recursion(self):
		_check("""
			fn bool even(n: int) { if (n == 0) { return true; } return odd(n - 1); }
			fn bool odd(n: int) { if (n == 0) { return false; } return even(n - 1); }
			fn int main() { return 0; }
		""")

	def test_same_name_in_two_functions(self):
		_check("""
			fn int f() { let x = 1; return x; }
			fn int main() { let x = "not an int"; return f(); }
		""")


class BadProgramTests(unittest.TestCase):

	def assertFailure(self, text, message):
		with self.assertRaises(TypeCheckFailure) as cm:
			_check(text)
		self.assertIn(message, cm.exception.message)
		self.assertEqual("type-check", cm.exception.phase)
		return cm.exception

	def test_return_type_mismatch(self):
		ex = self.assertFailure(
			"fn bool foo() { return 1; } fn int main() { foo(); return 0; }",
			'Function "foo" was expected to have return type "bool", found "int"',
		)
		self.assertIsNotNone(ex.phrase)

	def test_wrong_arity(self):
		self.assertFailure(
			"fn int add(a: int, b: int) { return a + b; } fn int main() { return add(1, 2, 3); }",
			"Wrong number of arguments to 'add': expected 2, got 3",
		)

	def test_arity_of_standard_function(self):
		self.assertFailure('fn int main() { echo("a", "b"); return 0; }', "Wrong number of arguments to 'echo'")

	def test_redeclare(self):
		self.assertFailure("fn int main() { let x = 1; let x = 2; return x; }", "Cannot re-declare variable named 'x'")

	def test_redeclare_parameter(self):
		self.assertFailure("fn int f(x: int) { let x = 2; return x; } fn int main() { return f(1); }", "Cannot re-declare variable named 'x'")

	def test_undeclared_reassign(self):
		self.assertFailure("fn int main() { y = 2; return 0; }", "Cannot reassign undeclared variable 'y'")

	def test_inner_names_do_not_leak(self):
		self.assertFailure("fn int main() { if (true) { let z = 1; } return z; }", "main.z")

	def test_mismatches(self):
		for text in [
			'fn int main() { return 1 + "two"; }',
			'fn int main() { let x = 1; x = true; return x; }',
			'fn int main() { if (1) { return 1; } return 0; }',
			'fn int main() { while ("yes") { break; } return 0; }',
			'fn int main() { return -true; }',
			'fn int main() { if (!0) { return 1; } return 0; }',
			'fn int main() { echo(5); return 0; }',
			'fn int main() { return 1 < "2"; }',
		]:
			with self.subTest(text):
				with self.assertRaises(TypeCheckFailure):
					_check(text)

	def test_missing_return(self):
		self.assertFailure("fn int main() { let x = 1; }", 'found "unit"')

	def test_return_only_inside_if(self):
		ex = self.assertFailure(
			"fn int f(n: int) { if (n < 2) { return n; } } fn int main() { return f(5) + 1; }",
			'Function "f" was expected to have return type "int", found "unit"',
		)
		self.assertEqual("f", ex.phrase.nom.text)

	def test_block_returns_must_agree(self):
		ex = self.assertFailure(
			'fn unit main() { let y = { if (true) { return 1; } return "s"; }; echo(y); }',
			"The returns from this block disagree",
		)
		self.assertIsInstance(ex.phrase, syntax.BlockReturn)

	def test_block_that_can_finish_without_return(self):
		ex = self.assertFailure(
			"fn int main() { let y = { if (true) { return 1; } }; return y; }",
			"This block can finish without a return",
		)
		self.assertIsInstance(ex.phrase, syntax.Block)

	def test_parameter_cannot_hide_a_global(self):
		for text in [
			'fn int f(echo: string) { return 1; } fn int main() { return f("x"); }',
			"fn int f(main: int) { return main; } fn int main() { return f(1); }",
			"fn int f(int: int) { return 1; } fn int main() { return f(1); }",
		]:
			with self.subTest(text):
				self.assertFailure(text, "would hide a name that is already defined")

	def test_parameter_twice(self):
		self.assertFailure("fn int f(a: int, a: int) { return a; } fn int main() { return f(1, 2); }", "Parameter 'a' appears twice.")

	def test_unknown_type(self):
		self.assertFailure("fn float main() { return 0; }", "Unknown type 'float'")

	def test_duplicate_function(self):
		self.assertFailure("fn int f() { return 1; } fn int f() { return 2; } fn int main() { return 0; }", "already defined")

	def test_cannot_call_a_literal(self):
		self.assertFailure("fn int main() { return (1)(2); }", "Cannot call function on this type")


if __name__ == '__main__':
	unittest.main()
