"""
The term algebra for Hindley-Milner types.
  --  Variables, constructor applications, and the quantifiers that bind them.  --

Design Note:
-------------
Here, "constructor" is just a string tag. It might name a primitive type (``int``),
the function-arrow (``_fn``), or one of the built-in operators. The unifier does
not care which; it only compares tags and arity.

Everything here is immutable. A substitution rewrites a term into a new term.
"""
from typing import Iterable, Union

ARROW = "_fn"

#########################

class Monotype:
	def visit(self, visitor): raise NotImplementedError(type(self))
	def contains(self, v:"TypeVariable") -> bool: raise NotImplementedError(type(self))
	def free_variables(self) -> list[str]:
		""" Names of free variables, in order of first appearance. """
		found = {}
		self.poll(found)
		return list(found)
	def poll(self, found:dict): raise NotImplementedError(type(self))
	def __str__(self): return self.visit(Render())

class TypeVariable(Monotype):
	def __init__(self, name:str):
		assert isinstance(name, str), type(name)
		self.name = name
	def __repr__(self): return "<%s>" % self.name
	def __eq__(self, other): return isinstance(other, TypeVariable) and self.name == other.name
	def __hash__(self): return hash(("var", self.name))
	def visit(self, visitor): return visitor.on_variable(self)
	def contains(self, v): return self == v
	def poll(self, found:dict): found.setdefault(self.name)

class TypeApplication(Monotype):
	def __init__(self, constructor:str, args:Iterable[Monotype]=()):
		self.constructor = constructor
		self.args = tuple(args)
	def __repr__(self):
		if self.args: return "%s[%s]" % (self.constructor, ', '.join(map(repr, self.args)))
		else: return self.constructor
	def __eq__(self, other):
		return (
			isinstance(other, TypeApplication)
			and self.constructor == other.constructor
			and self.args == other.args
		)
	def __hash__(self): return hash((self.constructor, self.args))
	def visit(self, visitor): return visitor.on_application(self)
	def contains(self, v): return any(a.contains(v) for a in self.args)
	def poll(self, found:dict):
		for a in self.args: a.poll(found)
	def arity(self): return len(self.args)

class Quantifier:
	""" A universally-quantified type. The body may itself be another quantifier. """
	def __init__(self, bound:str, body:"Polytype"):
		self.bound, self.body = bound, body
	def __repr__(self): return "<forall %s. %r>" % (self.bound, self.body)
	def __eq__(self, other):
		return isinstance(other, Quantifier) and self.bound == other.bound and self.body == other.body
	def __hash__(self): return hash(("forall", self.bound, self.body))
	def __str__(self): return self.visit(Render())
	def visit(self, visitor): return visitor.on_quantifier(self)
	def free_variables(self) -> list[str]:
		return [name for name in self.body.free_variables() if name != self.bound]
	def poll(self, found:dict):
		for name in self.free_variables(): found.setdefault(name)

Polytype = Union[Monotype, Quantifier]

def nullary(constructor:str) -> TypeApplication:
	return TypeApplication(constructor, ())

def arrow(*types:Monotype) -> Monotype:
	""" Curried function type: arrow(a, b, c) means a -> (b -> c). """
	*args, result = types
	for a in reversed(args):
		result = TypeApplication(ARROW, (a, result))
	return result

#########################

class TypeVisitor:
	def on_variable(self, v:TypeVariable): pass
	def on_application(self, a:TypeApplication): pass
	def on_quantifier(self, q:Quantifier): pass

def _name_variable(n):
	name = ""
	while n:
		n, remainder = divmod(n-1, 26)
		name = chr(97+remainder) + name
	return name

class Render(TypeVisitor):
	""" Return a string representation of the term. """
	def __init__(self):
		self.delta = {}
	def on_variable(self, v: TypeVariable):
		if v.name not in self.delta:
			self.delta[v.name] = "?%s"%_name_variable(len(self.delta)+1)
		return self.delta[v.name]
	def on_application(self, a: TypeApplication):
		if a.constructor == ARROW and len(a.args) == 2:
			arg, res = a.args
			left = arg.visit(self)
			if isinstance(arg, TypeApplication) and arg.constructor == ARROW:
				left = "(%s)" % left
			return "%s -> %s" % (left, res.visit(self))
		if a.args:
			return "%s[%s]" % (a.constructor, ", ".join(p.visit(self) for p in a.args))
		return a.constructor
	def on_quantifier(self, q: Quantifier):
		bound = TypeVariable(q.bound).visit(self)
		return "forall %s. %s" % (bound, q.body.visit(self))

class _Rewrite(TypeVisitor):
	def __init__(self, mapping:dict):
		self.mapping = mapping
	def on_variable(self, v: TypeVariable):
		return self.mapping.get(v.name, v)
	def on_application(self, a: TypeApplication):
		return a if not a.args else TypeApplication(a.constructor, [p.visit(self) for p in a.args])
	def on_quantifier(self, q: Quantifier):
		# The bound name is not free in the body, so it must not be rewritten there.
		if q.bound in self.mapping:
			inner = dict(self.mapping)
			del inner[q.bound]
			return Quantifier(q.bound, q.body.visit(_Rewrite(inner)))
		return Quantifier(q.bound, q.body.visit(self))

#########################

class Substitution:
	"""
	A finite map from type-variable names to monotypes.

	``s1.combine(s2)`` means "first s2, then s1", which is to say:
		s1.combine(s2).apply(t) == s1.apply(s2.apply(t))
	"""
	def __init__(self, mapping:dict=None):
		self._mapping = dict(mapping or ())

	def __repr__(self):
		return "{%s}" % ", ".join("%s := %s" % (k, v) for k, v in self._mapping.items())
	def __len__(self): return len(self._mapping)
	def __contains__(self, name): return name in self._mapping
	def __getitem__(self, name) -> Monotype: return self._mapping[name]
	def items(self): return self._mapping.items()

	def apply(self, term):
		if not self._mapping: return term
		if isinstance(term, Context):
			return Context({name: self.apply(poly) for name, poly in term.items()})
		return term.visit(_Rewrite(self._mapping))

	def combine(self, other:"Substitution") -> "Substitution":
		mapping = dict(self._mapping)
		# A name bound by both must go through ``other`` first, or the composition law breaks.
		mapping.update((name, self.apply(t)) for name, t in other.items())
		return Substitution(mapping)

EMPTY = Substitution()

class Context:
	""" The typing environment: scoped name -> polytype. """
	def __init__(self, bindings:dict=None):
		self._bindings = dict(bindings or ())

	def __repr__(self): return "<Context of %d>" % len(self._bindings)
	def __contains__(self, name): return name in self._bindings
	def __getitem__(self, name) -> Polytype: return self._bindings[name]
	def __setitem__(self, name, poly:Polytype): self._bindings[name] = poly
	def get(self, name, default=None): return self._bindings.get(name, default)
	def items(self): return self._bindings.items()

	def extended(self, name:str, poly:Polytype) -> "Context":
		bindings = dict(self._bindings)
		bindings[name] = poly
		return Context(bindings)

	def free_variables(self) -> set[str]:
		found = {}
		for poly in self._bindings.values():
			poly.poll(found)
		return set(found)

	def generalise(self, t:Monotype) -> Polytype:
		in_context = self.free_variables()
		poly = t
		for name in reversed(t.free_variables()):
			if name not in in_context:
				poly = Quantifier(name, poly)
		return poly
