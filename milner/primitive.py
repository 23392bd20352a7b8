"""
The things a program can use without defining them:
the four primitive types, the operators, and the standard functions.
Standard functions are written directly in bytecode.
"""
from typing import NamedTuple
from .algebra import TypeVariable, Quantifier, Context, nullary, arrow
from .bytecode import Opcode, instruction

INT, STRING, BOOL, UNIT = "int", "string", "bool", "unit"
PRIMITIVE_TYPES = (INT, STRING, BOOL, UNIT)

int_type, string_type, bool_type, unit_type = map(nullary, PRIMITIVE_TYPES)

# Operator tags in the typing context:
BOOL_NEGATION = "_boolNegation"
INT_NEGATION = "_intNegation"
INT_ADDITION = "_intAddition"
INT_SUBTRACTION = "_intSubtraction"
INT_LESS_THAN = "_intLessThan"
INT_LESS_THAN_EQ = "_intLessThanEq"
INT_GREATER_THAN = "_intGreaterThan"
INT_GREATER_THAN_EQ = "_intGreaterThanEq"
EQUALITY = "_equality"
REASSIGNMENT = "_reassignment"
BOOL_CONDITION = "_boolCondition"

class BinaryOperator(NamedTuple):
	tag: str
	opcode: Opcode

BINARY_OPERATORS = {
	"+": BinaryOperator(INT_ADDITION, Opcode.ADD),
	"-": BinaryOperator(INT_SUBTRACTION, Opcode.SUB),
	"<": BinaryOperator(INT_LESS_THAN, Opcode.LESS_THAN),
	"<=": BinaryOperator(INT_LESS_THAN_EQ, Opcode.LESS_THAN_EQ),
	">": BinaryOperator(INT_GREATER_THAN, Opcode.GREATER_THAN),
	">=": BinaryOperator(INT_GREATER_THAN_EQ, Opcode.GREATER_THAN_EQ),
	"==": BinaryOperator(EQUALITY, Opcode.EQUALITY),
}

class StandardFunction(NamedTuple):
	name: str
	params: tuple[tuple[str, str], ...]
	return_type: str
	body: bytes
	def arg_names(self): return [name for name, _ in self.params]
	def signature(self):
		return arrow(*[nullary(t) for _, t in self.params], nullary(self.return_type))

STANDARD_FUNCTIONS = (
	StandardFunction(
		"echo", (("value", STRING),), UNIT,
		instruction(Opcode.LOAD, "value")
		+ instruction(Opcode.ECHO)
		+ instruction(Opcode.PUSH_UNIT)
		+ instruction(Opcode.RET),
	),
)

def initial_context() -> Context:
	ctx = Context()
	for name in PRIMITIVE_TYPES:
		ctx[name] = nullary(name)
	ctx["true"] = ctx["false"] = bool_type
	ctx[BOOL_NEGATION] = arrow(bool_type, bool_type)
	ctx[INT_NEGATION] = arrow(int_type, int_type)
	for tag in INT_ADDITION, INT_SUBTRACTION:
		ctx[tag] = arrow(int_type, int_type, int_type)
	for tag in INT_LESS_THAN, INT_LESS_THAN_EQ, INT_GREATER_THAN, INT_GREATER_THAN_EQ:
		ctx[tag] = arrow(int_type, int_type, bool_type)
	l, r = TypeVariable("l"), TypeVariable("r")
	ctx[EQUALITY] = Quantifier("l", Quantifier("r", arrow(l, r, bool_type)))
	ctx[REASSIGNMENT] = Quantifier("l", arrow(l, l, l))
	ctx[BOOL_CONDITION] = arrow(bool_type, bool_type)
	for fn in STANDARD_FUNCTIONS:
		ctx[fn.name] = fn.signature()
	return ctx
