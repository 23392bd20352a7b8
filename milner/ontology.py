"""
These most-fundamental classes in the syntax class hierarchy
are separate from the rest to avoid circular imports:
diagnostics needs to know what a Phrase is, and the
syntax module needs to know nothing about diagnostics.

A phrase knows where it came from in the source text,
as character offsets, so that complaints can point at it.
"""

class Phrase:
	def left(self) -> int:
		""" Return the offset of the first character of this phrase """
		raise NotImplementedError(type(self))
	def right(self) -> int:
		""" Return the offset just past the last character of this phrase """
		raise NotImplementedError(type(self))
	def span(self) -> slice: return slice(self.left(), self.right())

class Nom(Phrase):
	""" Representing the occurrence of a name anywhere. """
	def __init__(self, text:str, where:slice=None):
		assert isinstance(text, str)
		self.text = text
		self.where = where or slice(0, 0)  # An empty slice means pre-defined.
	def __repr__(self): return "<Name %r>" % self.text
	def left(self): return self.where.start
	def right(self): return self.where.stop

class Statement(Phrase): pass

class ValueExpression(Statement):
	""" Any expression may stand alone as a statement. """
