"""
Static checking, in three passes over the syntax tree:

1. Arity: every call to a known function passes the right number of arguments.
   This goes first, because a curried type error about an extra argument
   is much less helpful than simply counting.
2. Inference: each statement gets lowered into the little lambda-calculus
   and handed to Algorithm W against the running context. Variable definitions
   commit their (monomorphic) types to the context as they go.
3. Return types: every return belonging to a function must agree with its header.

Any problem raises TypeCheckFailure, pointing at the guilty phrase.
"""
from boozetools.support.foundation import Visitor
from boozetools.support.symtab import SymbolAlreadyExists
from .. import syntax, primitive
from ..algebra import Context, Monotype, TypeApplication, nullary, arrow
from ..calculus import Variable, Application, Let, apply_all
from ..diagnostics import Failure, Report
from ..ontology import Phrase, ValueExpression
from ..space import Scope
from ..type_inference import TypeInferer, InferenceFailed, unify

class TypeCheckFailure(Failure):
	phase = "type-check"

def _declared_type(nom) -> TypeApplication:
	if nom.text not in primitive.PRIMITIVE_TYPES:
		raise TypeCheckFailure("Unknown type '%s'" % nom.text, nom)
	return nullary(nom.text)

def _unwrap(expr):
	while isinstance(expr, syntax.Group): expr = expr.arg
	return expr

def _own_returns(statements):
	"""
	The returns that leave the frame these statements run in: the direct ones,
	and those in the bodies of if and while statements nested within.
	A nested bare block has a frame of its own, so its returns do not count.
	"""
	for stmt in statements:
		if isinstance(stmt, syntax.BlockReturn): yield stmt
		elif isinstance(stmt, syntax.IfStatement): yield from _own_returns(stmt.then.statements)
		elif isinstance(stmt, syntax.WhileLoop): yield from _own_returns(stmt.body.statements)

def _falls_through(statements) -> bool:
	""" Without a return of its own, a body can run off its end, which gives unit. """
	return not any(isinstance(stmt, syntax.BlockReturn) for stmt in statements)

class CheckedProgram:
	""" What the checker learned: the context at the end, and a type for each statement. """
	def __init__(self, module:syntax.Module, context:Context, types:dict):
		self.module = module
		self.context = context
		self.types = types

class TypeChecker:
	def __init__(self, report:Report):
		self._report = report

	def check_program(self, module:syntax.Module) -> CheckedProgram:
		ArityChecker(module)
		inference = InferenceChecker(module, self._report)
		ReturnTypeChecker(module, inference.types)
		return CheckedProgram(module, inference.context, inference.types)

#########################

class ArityChecker(Visitor):
	"""
	Walks every expression looking for calls on a known function name.
	Calls on anything else are left for inference or the compiler to reject.
	"""
	def __init__(self, module:syntax.Module):
		self._arity = {fn.name: len(fn.params) for fn in primitive.STANDARD_FUNCTIONS}
		for fn in module.functions:
			self._arity[fn.name()] = len(fn.params)
		for fn in module.functions:
			self.visit(fn.body)

	def visit_Block(self, block:syntax.Block):
		for stmt in block.statements: self.visit(stmt)

	def visit_VariableDefinition(self, stmt:syntax.VariableDefinition): self.visit(stmt.value)
	def visit_Reassignment(self, stmt:syntax.Reassignment): self.visit(stmt.value)

	def visit_IfStatement(self, stmt:syntax.IfStatement):
		self.visit(stmt.condition)
		self.visit(stmt.then)

	def visit_WhileLoop(self, stmt:syntax.WhileLoop):
		self.visit(stmt.condition)
		self.visit(stmt.body)

	def visit_LoopBreak(self, stmt): pass

	def visit_BlockReturn(self, stmt:syntax.BlockReturn):
		if stmt.value is not None: self.visit(stmt.value)

	def visit_Literal(self, expr): pass
	def visit_Lookup(self, expr): pass
	def visit_UnaryExp(self, expr:syntax.UnaryExp): self.visit(expr.arg)
	def visit_Group(self, expr:syntax.Group): self.visit(expr.arg)

	def visit_BinExp(self, expr:syntax.BinExp):
		self.visit(expr.lhs)
		self.visit(expr.rhs)

	def visit_Call(self, expr:syntax.Call):
		callee = _unwrap(expr.fn_exp)
		if isinstance(callee, syntax.Lookup) and callee.nom.text in self._arity:
			name = callee.nom.text
			expected, given = self._arity[name], len(expr.args)
			if expected != given:
				msg = "Wrong number of arguments to '%s': expected %d, got %d" % (name, expected, given)
				raise TypeCheckFailure(msg, expr)
		else:
			self.visit(expr.fn_exp)
		for arg in expr.args: self.visit(arg)

#########################

class InferenceChecker(Visitor):
	"""
	Statement visitors infer and record a type; expression visitors return
	a calculus term. A block is both: it gets typed in its own child scope,
	and then it stands for a synthetic variable bound to its type.
	"""
	context: Context
	types: dict[Phrase, Monotype]

	def __init__(self, module:syntax.Module, report:Report):
		self._report = report
		self._engine = TypeInferer()
		self._transient = 0
		self.context = primitive.initial_context()
		self.types = {}
		self._globals = Scope.root()
		for name in primitive.PRIMITIVE_TYPES: self._globals.add_unscoped_variable(name)
		for fn in primitive.STANDARD_FUNCTIONS: self._globals.add_unscoped_variable(fn.name)
		for fn in module.functions: self._declare_function(fn)
		for fn in module.functions: self._check_function(fn)

	def _next(self, prefix:str) -> str:
		name = "%s%d" % (prefix, self._transient)
		self._transient += 1
		return name

	def _declare_function(self, fn:syntax.Function):
		try: scoped = self._globals.add_unscoped_variable(fn.name())
		except SymbolAlreadyExists:
			raise TypeCheckFailure("The name '%s' is already defined." % fn.name(), fn)
		arg_types = [_declared_type(p.type_name) for p in fn.params]
		self.context[scoped] = arrow(*arg_types, _declared_type(fn.return_type))

	def _check_function(self, fn:syntax.Function):
		scope = self._globals.make_child_scope(fn.name())
		for param in fn.params:
			if self._globals.get_scoped_variable(param.nom.text) is not None:
				raise TypeCheckFailure("Parameter '%s' would hide a name that is already defined." % param.nom.text, param.nom)
			try: scoped = scope.add_unscoped_variable(param.nom.text)
			except SymbolAlreadyExists:
				raise TypeCheckFailure("Parameter '%s' appears twice." % param.nom.text, param)
			self.context[scoped] = _declared_type(param.type_name)
		self._report.info("Checking", fn.name())
		self._assign_types(fn.body.statements, scope)

	def _assign_types(self, statements, scope:Scope):
		for stmt in statements:
			if isinstance(stmt, syntax.Call):
				# A call for its effect: thread its value into what follows.
				self._infer(stmt, Let(self._next("_let"), self.visit(stmt, scope), Variable(primitive.UNIT)))
			elif isinstance(stmt, ValueExpression):
				self._infer(stmt, self.visit(stmt, scope))
			else:
				self.visit(stmt, scope)

	def _infer(self, stmt:Phrase, term) -> Monotype:
		try: subst, t = self._engine.infer(self.context, term)
		except InferenceFailed as ex:
			raise TypeCheckFailure(ex.message, stmt) from ex
		t = subst.apply(t)
		self.types[stmt] = t
		self._report.info("   %s : %s" % (term, t))
		return t

	def _type_block(self, block:syntax.Block, scope:Scope) -> Monotype:
		""" Every way out of a block must agree, and that is the type of the block. """
		self._assign_types(block.statements, scope)
		exits = [(self.types[stmt], stmt) for stmt in _own_returns(block.statements)]
		if _falls_through(block.statements):
			exits.append((primitive.unit_type, block))
		t = exits[0][0]
		for other, where in exits[1:]:
			try: t = unify(t, other).apply(t)
			except InferenceFailed as ex:
				if where is block: msg = "This block can finish without a return, which gives unit. %s" % ex.message
				else: msg = "The returns from this block disagree. %s" % ex.message
				raise TypeCheckFailure(msg, where) from ex
		return t

	# Statements:

	def visit_VariableDefinition(self, stmt:syntax.VariableDefinition, scope:Scope):
		name = stmt.nom.text
		if scope.get_scoped_variable(name) is not None:
			raise TypeCheckFailure("Cannot re-declare variable named '%s'" % name, stmt.nom)
		t = self._infer(stmt, self.visit(stmt.value, scope))
		self.context[scope.add_unscoped_variable(name)] = t

	def visit_Reassignment(self, stmt:syntax.Reassignment, scope:Scope):
		scoped = scope.get_scoped_variable(stmt.nom.text)
		if scoped is None:
			raise TypeCheckFailure("Cannot reassign undeclared variable '%s'" % stmt.nom.text, stmt.nom)
		term = apply_all(Variable(primitive.REASSIGNMENT), [Variable(scoped), self.visit(stmt.value, scope)])
		self._infer(stmt, term)

	def visit_IfStatement(self, stmt:syntax.IfStatement, scope:Scope):
		self._infer(stmt, Application(Variable(primitive.BOOL_CONDITION), self.visit(stmt.condition, scope)))
		self._assign_types(stmt.then.statements, scope.make_child_scope(self._next("if")))

	def visit_WhileLoop(self, stmt:syntax.WhileLoop, scope:Scope):
		self._infer(stmt, Application(Variable(primitive.BOOL_CONDITION), self.visit(stmt.condition, scope)))
		self._assign_types(stmt.body.statements, scope.make_child_scope(self._next("while")))

	def visit_LoopBreak(self, stmt:syntax.LoopBreak, scope:Scope):
		self._infer(stmt, Variable(primitive.UNIT))

	def visit_BlockReturn(self, stmt:syntax.BlockReturn, scope:Scope):
		if stmt.value is None:
			term = Variable(primitive.UNIT)
		else:
			term = Let("ret", self.visit(stmt.value, scope), Variable("ret"))
		self._infer(stmt, term)

	# Expressions:

	def visit_Block(self, block:syntax.Block, scope:Scope):
		name = self._next("block")
		t = self._type_block(block, scope.make_child_scope(name))
		self.types[block] = t
		self.context["_" + name] = t
		return Variable("_" + name)

	def visit_IntegerLiteral(self, expr, scope): return Variable(primitive.INT)
	def visit_StringLiteral(self, expr, scope): return Variable(primitive.STRING)
	def visit_BooleanLiteral(self, expr, scope): return Variable(primitive.BOOL)

	def visit_Lookup(self, expr:syntax.Lookup, scope:Scope):
		# An unknown name becomes a variable nothing binds, so inference will complain.
		name = expr.nom.text
		return Variable(scope.get_scoped_variable(name) or scope.as_unregistered_scoped_variable(name))

	def visit_Negate(self, expr:syntax.Negate, scope:Scope):
		return Application(Variable(primitive.INT_NEGATION), self.visit(expr.arg, scope))

	def visit_Not(self, expr:syntax.Not, scope:Scope):
		return Application(Variable(primitive.BOOL_NEGATION), self.visit(expr.arg, scope))

	def visit_Group(self, expr:syntax.Group, scope:Scope):
		return self.visit(expr.arg, scope)

	def visit_BinExp(self, expr:syntax.BinExp, scope:Scope):
		op = primitive.BINARY_OPERATORS[expr.glyph()]
		return apply_all(Variable(op.tag), [self.visit(expr.lhs, scope), self.visit(expr.rhs, scope)])

	def visit_Call(self, expr:syntax.Call, scope:Scope):
		callee = _unwrap(expr.fn_exp)
		if not isinstance(callee, (syntax.Lookup, syntax.Call)):
			raise TypeCheckFailure("Cannot call function on this type", expr.fn_exp)
		return apply_all(self.visit(callee, scope), [self.visit(a, scope) for a in expr.args])

#########################

class ReturnTypeChecker:
	"""
	Every return belonging to a function must match its declared result.
	So must running off the end, which gives unit.
	"""
	def __init__(self, module:syntax.Module, types:dict):
		self._types = types
		for fn in module.functions:
			self._check(fn)

	def _check(self, fn:syntax.Function):
		expected = fn.return_type.text
		for stmt in _own_returns(fn.body.statements):
			self._compare(fn, expected, self._types[stmt], stmt)
		if _falls_through(fn.body.statements):
			self._compare(fn, expected, primitive.unit_type, fn)

	@staticmethod
	def _compare(fn:syntax.Function, expected:str, found:Monotype, where:Phrase):
		found_name = found.constructor if isinstance(found, TypeApplication) else str(found)
		if found_name != expected:
			msg = 'Function "%s" was expected to have return type "%s", found "%s"' % (fn.name(), expected, found_name)
			raise TypeCheckFailure(msg, where)
