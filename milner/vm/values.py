"""
This module defines the tagged values the VM pushes around.
There are only four kinds, and none of them refers to anything else,
so there is nothing to collect and nothing that can form a cycle.
"""

class StackValue:
	kind = "value"
	def __init__(self, value):
		self.value = value
	def __eq__(self, other):
		return type(self) is type(other) and self.value == other.value
	def __hash__(self): return hash((self.kind, self.value))
	def __repr__(self): return "<%s %r>" % (self.kind, self.value)

class IntegerValue(StackValue): kind = "int"
class StringValue(StackValue): kind = "string"
class BooleanValue(StackValue): kind = "bool"

class UnitValue(StackValue):
	kind = "unit"
	def __init__(self): super().__init__(None)
	def __repr__(self): return "<unit>"

UNIT = UnitValue()
TRUE = BooleanValue(True)
FALSE = BooleanValue(False)

def boolean(flag:bool) -> BooleanValue:
	return TRUE if flag else FALSE
