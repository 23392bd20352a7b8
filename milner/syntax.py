"""
The set of parse-nodes in simple form.
The parser calls these constructors bottom-up as it recognizes each phrase.
Class-level type annotations make peace with the IDE wherever later passes add fields.

The statement forms are closed: definition, reassignment, if, while, break, return,
bare block, and any expression standing alone. Every pass dispatches on these
with a Visitor, so a new form without a visit_ method fails loudly.
"""
from typing import Optional, Sequence
from .ontology import Phrase, Nom, Statement, ValueExpression

class Literal(ValueExpression):
	def __init__(self, value, where:slice):
		self.value, self._where = value, where
	def __str__(self): return "<Literal %r>" % (self.value,)
	def left(self): return self._where.start
	def right(self): return self._where.stop

class IntegerLiteral(Literal): pass
class StringLiteral(Literal): pass
class BooleanLiteral(Literal): pass

class Lookup(ValueExpression):
	def __init__(self, nom:Nom): self.nom = nom
	def __str__(self): return self.nom.text
	def left(self): return self.nom.left()
	def right(self): return self.nom.right()

class UnaryExp(ValueExpression):
	def __init__(self, op:Nom, arg:ValueExpression):
		self.op, self.arg = op, arg
	def __str__(self): return "(%s%s)" % (self.op.text, self.arg)
	def left(self): return self.op.left()
	def right(self): return self.arg.right()

class Negate(UnaryExp): pass
class Not(UnaryExp): pass

class Group(ValueExpression):
	def __init__(self, arg:ValueExpression, where:slice):
		self.arg, self._where = arg, where
	def __str__(self): return "(%s)" % self.arg
	def left(self): return self._where.start
	def right(self): return self._where.stop

class BinExp(ValueExpression):
	def __init__(self, lhs:ValueExpression, op:Nom, rhs:ValueExpression):
		self.lhs, self.op, self.rhs = lhs, op, rhs
	def __str__(self): return "(%s %s %s)" % (self.lhs, self.op.text, self.rhs)
	def glyph(self): return self.op.text
	def left(self): return self.lhs.left()
	def right(self): return self.rhs.right()

class Call(ValueExpression):
	def __init__(self, fn_exp:ValueExpression, args:Sequence[ValueExpression], where:slice):
		self.fn_exp, self.args, self._where = fn_exp, list(args), where
	def __str__(self):
		return "%s(%s)" % (self.fn_exp, ', '.join(map(str, self.args)))
	def left(self): return self.fn_exp.left()
	def right(self): return self._where.stop

class Block(ValueExpression):
	""" Braces around statements. Also usable as a value: the value of its first return. """
	def __init__(self, statements:Sequence[Statement], where:slice):
		self.statements, self._where = list(statements), where
	def left(self): return self._where.start
	def right(self): return self._where.stop

#########################

class VariableDefinition(Statement):
	def __init__(self, kw:Nom, nom:Nom, value:ValueExpression):
		self._kw, self.nom, self.value = kw, nom, value
	def left(self): return self._kw.left()
	def right(self): return self.value.right()

class Reassignment(Statement):
	def __init__(self, nom:Nom, value:ValueExpression):
		self.nom, self.value = nom, value
	def left(self): return self.nom.left()
	def right(self): return self.value.right()

class IfStatement(Statement):
	def __init__(self, kw:Nom, condition:ValueExpression, then:Block):
		self._kw, self.condition, self.then = kw, condition, then
	def left(self): return self._kw.left()
	def right(self): return self.then.right()

class WhileLoop(Statement):
	def __init__(self, kw:Nom, condition:ValueExpression, body:Block):
		self._kw, self.condition, self.body = kw, condition, body
	def left(self): return self._kw.left()
	def right(self): return self.body.right()

class LoopBreak(Statement):
	def __init__(self, kw:Nom): self._kw = kw
	def left(self): return self._kw.left()
	def right(self): return self._kw.right()

class BlockReturn(Statement):
	def __init__(self, kw:Nom, value:Optional[ValueExpression]):
		self._kw, self.value = kw, value
	def left(self): return self._kw.left()
	def right(self): return (self.value or self._kw).right()

#########################

class Parameter(Phrase):
	def __init__(self, nom:Nom, type_name:Nom):
		self.nom, self.type_name = nom, type_name
	def __repr__(self): return "<:%s:%s>" % (self.nom.text, self.type_name.text)
	def left(self): return self.nom.left()
	def right(self): return self.type_name.right()

class Function(Phrase):
	def __init__(self, return_type:Nom, nom:Nom, params:Sequence[Parameter], body:Block):
		self.return_type, self.nom, self.params, self.body = return_type, nom, list(params), body
	def __repr__(self): return "<fn %s/%d>" % (self.nom.text, len(self.params))
	def name(self) -> str: return self.nom.text
	def arg_names(self) -> list[str]: return [p.nom.text for p in self.params]
	def left(self): return self.nom.left()
	def right(self): return self.nom.right()

class Module:
	functions: list[Function]
	source_path: Optional[str]
	def __init__(self, functions:Sequence[Function], source_path=None):
		self.functions = list(functions)
		self.source_path = source_path
	def find(self, name:str) -> Optional[Function]:
		for fn in self.functions:
			if fn.name() == name: return fn
