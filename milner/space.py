"""
Scoped names. Every identifier the user writes gets mangled into a name that is
unique across the whole program: the path of enclosing scopes, then the identifier,
joined with dots. The global scope has no name, so globals stay as they are written.

	root = Scope.root()
	main = root.make_child_scope("main")
	main.add_unscoped_variable("x")     # -> "main.x"
	main.make_child_scope("if0").get_scoped_variable("x")   # -> "main.x"

The same mangling is used by the type checker to key its context.
"""
from typing import Optional
from boozetools.support.symtab import NameSpace, NoSuchSymbol

class Scope:
	def __init__(self, name:str, parent:Optional["Scope"]=None):
		self.name = name
		self.parent = parent
		if parent is None:
			self.path = name
			self._names = NameSpace(place=self)
		else:
			self.path = parent.qualify(name)
			self._names = parent._names.new_child(self)

	@staticmethod
	def root() -> "Scope":
		return Scope("")

	def __repr__(self): return "<Scope %r>" % self.path

	def qualify(self, name:str) -> str:
		return self.path + "." + name if self.path else name

	def add_unscoped_variable(self, name:str) -> str:
		""" Raises SymbolAlreadyExists if this very scope already has the name. """
		scoped = self.qualify(name)
		self._names[name] = scoped
		return scoped

	def as_unregistered_scoped_variable(self, name:str) -> str:
		return self.qualify(name)

	def get_scoped_variable(self, name:str) -> Optional[str]:
		try: scoped, _ = self._names.find(name)
		except NoSuchSymbol: return None
		return scoped

	def make_child_scope(self, name:str) -> "Scope":
		return Scope(name, self)
