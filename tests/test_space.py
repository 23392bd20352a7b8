import unittest
from boozetools.support.symtab import SymbolAlreadyExists
from milner.space import Scope

class ScopeTests(unittest.TestCase):

	def setUp(self) -> None:
		self.root = Scope.root()

	def test_root_names_are_plain(self):
		self.assertEqual("foo", self.root.add_unscoped_variable("foo"))
		self.assertEqual("foo", self.root.get_scoped_variable("foo"))

	def test_child_names_are_qualified(self):
		a = self.root.make_child_scope("a")
		self.assertEqual("a.foo", a.add_unscoped_variable("foo"))
		b = a.make_child_scope("b")
		self.assertEqual("a.b.bar", b.add_unscoped_variable("bar"))
		self.assertEqual("a.b", b.path)

	def test_lookup_walks_outward(self):
		a = self.root.make_child_scope("a")
		self.root.add_unscoped_variable("g")
		a.add_unscoped_variable("x")
		inner = a.make_child_scope("b").make_child_scope("c")
		self.assertEqual("a.x", inner.get_scoped_variable("x"))
		self.assertEqual("g", inner.get_scoped_variable("g"))
		self.assertIsNone(inner.get_scoped_variable("nope"))
		self.assertIsNone(self.root.get_scoped_variable("x"), "Parents cannot see into children")

	def test_siblings_do_not_share(self):
		a = self.root.make_child_scope("a")
		b = self.root.make_child_scope("b")
		a.add_unscoped_variable("x")
		self.assertIsNone(b.get_scoped_variable("x"))
		self.assertEqual("b.x", b.add_unscoped_variable("x"))

	def test_duplicate_in_same_scope(self):
		a = self.root.make_child_scope("a")
		a.add_unscoped_variable("x")
		with self.assertRaises(SymbolAlreadyExists):
			a.add_unscoped_variable("x")

	def test_unregistered_name(self):
		a = self.root.make_child_scope("a")
		self.assertEqual("a.y", a.as_unregistered_scoped_variable("y"))
		self.assertIsNone(a.get_scoped_variable("y"))
		self.assertEqual("y", self.root.as_unregistered_scoped_variable("y"))


if __name__ == '__main__':
	unittest.main()
