"""
Algorithm W, more or less exactly as Damas and Milner wrote it down.

The engine infers a (substitution, monotype) pair for a calculus term against a context.
Each instance carries its own fresh-variable counter, so separate runs in one process
never share type-variable names.
"""
from boozetools.support.foundation import Visitor
from .algebra import (
	Monotype, TypeVariable, TypeApplication, Quantifier, Polytype,
	Substitution, Context, EMPTY, ARROW, Render,
)
from . import calculus

class InferenceFailed(Exception):
	gripe = "Type inference failed."
	def __init__(self, message:str):
		super().__init__(message)
		self.message = message
	def __str__(self): return self.message

class UnboundVariable(InferenceFailed):
	gripe = "Variable is not in scope"

class UnrecognizedExpression(InferenceFailed):
	gripe = "Inference does not know this kind of term"

class UnificationFailed(InferenceFailed):
	gripe = "Types do not match"

class Incompatible(UnificationFailed):
	gripe = "Type constructors disagree"

class ArityMismatch(UnificationFailed):
	gripe = "Type constructors take different numbers of arguments"

class RecursiveTypeError(UnificationFailed):
	gripe = "This would make an infinitely-large type"

def _show(*types) -> list[str]:
	# One renderer for all, so ?a means the same thing throughout a message.
	render = Render()
	return [t.visit(render) for t in types]

def unify(a:Monotype, b:Monotype) -> Substitution:
	""" The most general substitution that makes a and b the same, or else raise. """
	if isinstance(a, TypeVariable):
		if a == b:
			return EMPTY
		if b.contains(a):
			raise RecursiveTypeError("Cannot unify %s with %s: recursive type" % tuple(_show(a, b)))
		return Substitution({a.name: b})
	if isinstance(b, TypeVariable):
		return unify(b, a)
	assert isinstance(a, TypeApplication) and isinstance(b, TypeApplication), (a, b)
	if a.constructor != b.constructor:
		raise Incompatible("Expected %s, found %s" % tuple(_show(a, b)))
	if a.arity() != b.arity():
		raise ArityMismatch("%s and %s take different numbers of arguments" % tuple(_show(a, b)))
	subst = EMPTY
	for x, y in zip(a.args, b.args):
		step = unify(subst.apply(x), subst.apply(y))
		subst = step.combine(subst)
	return subst


class TypeInferer(Visitor):
	"""
	Usage:
		subst, t = TypeInferer().infer(context, term)
	The counter is per-instance; make a fresh inferer per type-check pass if you want
	the names to start over.
	"""
	def __init__(self, prefix="x_"):
		self._prefix = prefix
		self._counter = 0

	def fresh(self) -> TypeVariable:
		tv = TypeVariable("%s%d" % (self._prefix, self._counter))
		self._counter += 1
		return tv

	def instantiate(self, poly:Polytype) -> Monotype:
		mapping = {}
		while isinstance(poly, Quantifier):
			mapping[poly.bound] = self.fresh()
			poly = poly.body
		return Substitution(mapping).apply(poly)

	def infer(self, context:Context, term) -> tuple[Substitution, Monotype]:
		if not isinstance(term, calculus.Term):
			raise UnrecognizedExpression("Cannot infer a type for %r" % (term,))
		return self.visit(term, context)

	def visit_Variable(self, term:calculus.Variable, context:Context):
		poly = context.get(term.name)
		if poly is None:
			raise UnboundVariable("Variable %r does not exist" % term.name)
		return EMPTY, self.instantiate(poly)

	def visit_Let(self, term:calculus.Let, context:Context):
		s1, t1 = self.infer(context, term.value)
		inner = s1.apply(context)
		inner = inner.extended(term.var_name, inner.generalise(t1))
		s2, t2 = self.infer(inner, term.body)
		return s2.combine(s1), t2

	def visit_Abstraction(self, term:calculus.Abstraction, context:Context):
		tv = self.fresh()
		s1, t1 = self.infer(context.extended(term.arg_name, tv), term.body)
		return s1, s1.apply(TypeApplication(ARROW, (tv, t1)))

	def visit_Application(self, term:calculus.Application, context:Context):
		s1, t1 = self.infer(context, term.left)
		s2, t2 = self.infer(s1.apply(context), term.right)
		tv = self.fresh()
		s3 = unify(s2.apply(t1), TypeApplication(ARROW, (t2, tv)))
		return s3.combine(s2.combine(s1)), s3.apply(tv)
