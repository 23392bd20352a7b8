"""
The little lambda-calculus that every surface construct gets lowered into
before type inference. Four shapes are enough for Algorithm W.

These are produced fresh for each type-check pass and then thrown away.
"""
from typing import NamedTuple

class Variable(NamedTuple):
	name: str
	def __str__(self): return self.name

class Application(NamedTuple):
	left: "Term"
	right: "Term"
	def __str__(self): return "(%s %s)" % (self.left, self.right)

class Abstraction(NamedTuple):
	arg_name: str
	body: "Term"
	def __str__(self): return "(\\%s. %s)" % (self.arg_name, self.body)

class Let(NamedTuple):
	var_name: str
	value: "Term"
	body: "Term"
	def __str__(self): return "(let %s = %s in %s)" % (self.var_name, self.value, self.body)

Term = (Variable, Application, Abstraction, Let)

def apply_all(fn, args):
	""" Curried application of fn to each argument in turn. """
	for a in args:
		fn = Application(fn, a)
	return fn
